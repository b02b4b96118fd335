"""CLI entry point."""

from __future__ import annotations

import asyncio
import logging

import typer
from rich.console import Console
from rich.table import Table

from postwatch.core.config import Settings, get_settings
from postwatch.core.logging import configure_logging
from postwatch.kv import create_kv
from postwatch.notifier.console import ConsoleNotifier
from postwatch.pipeline import PipelineStats, run_tick
from postwatch.retention import RetentionSweeper, SweepResult
from postwatch.storage.records import RecordStore

app = typer.Typer(
    name="postwatch",
    help="Watch a subreddit for new posts and announce them to a webhook",
    no_args_is_help=True,
)
console = Console()
logger = logging.getLogger("postwatch.cli")


def _load_settings(**overrides) -> Settings:
    settings = get_settings(**{k: v for k, v in overrides.items() if v is not None})
    configure_logging(settings.log_level, settings.log_format)
    return settings


def _print_stats(stats: PipelineStats | None) -> None:
    if stats is None:
        console.print("[red]Tick failed, see log for details[/red]")
        return
    console.print(
        f"[bold]{stats.feed_name}[/bold]: fetched {stats.fetched}, "
        f"new {stats.new}, errors {stats.errors}, expired {stats.deleted}"
    )


async def _with_store(settings: Settings, action):
    kv = create_kv(settings)
    await kv.initialize()
    try:
        return await action(RecordStore(kv))
    finally:
        await kv.close()


@app.command()
def run(
    dry_run: bool = typer.Option(False, "--dry-run", help="Print new posts instead of calling the webhook"),
    subreddit: str | None = typer.Option(None, help="Override the configured subreddit"),
) -> None:
    """Run one tick: fetch, store new posts, notify, sweep."""
    settings = _load_settings(subreddit=subreddit)
    notifier = ConsoleNotifier() if dry_run else None
    stats = asyncio.run(run_tick(settings, notifier=notifier))
    _print_stats(stats)
    if stats is None:
        raise typer.Exit(code=1)


@app.command()
def watch(
    interval: float | None = typer.Option(None, help="Seconds between ticks (default from settings)"),
    dry_run: bool = typer.Option(False, "--dry-run", help="Print new posts instead of calling the webhook"),
) -> None:
    """Run ticks forever on a fixed interval."""
    settings = _load_settings(poll_interval=interval)

    async def loop() -> None:
        while True:
            notifier = ConsoleNotifier() if dry_run else None
            _print_stats(await run_tick(settings, notifier=notifier))
            await asyncio.sleep(settings.poll_interval)

    console.print(f"Polling r/{settings.subreddit} every {settings.poll_interval:g}s (Ctrl+C to stop)")
    try:
        asyncio.run(loop())
    except KeyboardInterrupt:
        console.print("Stopped.")


@app.command()
def sweep(
    days: int | None = typer.Option(None, help="Maximum record age in days (default from settings)"),
) -> None:
    """Delete stored posts older than the retention window."""
    settings = _load_settings()
    max_age = days if days is not None else settings.retention_days

    async def action(store: RecordStore) -> SweepResult:
        return await RetentionSweeper(store).sweep(max_age)

    result = asyncio.run(_with_store(settings, action))
    console.print(f"Scanned {result.scanned}, deleted {result.deleted}, failed {result.failed}")


@app.command()
def recent(limit: int = typer.Option(5, help="Number of posts to show")) -> None:
    """Show the most recently stored posts."""
    settings = _load_settings()

    async def action(store: RecordStore):
        return await store.recent(limit)

    records = asyncio.run(_with_store(settings, action))

    table = Table(title="Recently stored posts")
    table.add_column("ID")
    table.add_column("Title")
    table.add_column("Author")
    table.add_column("Score", justify="right")
    for record in records:
        table.add_row(record.post_id, record.title, f"u/{record.author}", str(record.score))
    console.print(table)


@app.command()
def show(post_id: str) -> None:
    """Print one stored post as JSON."""
    settings = _load_settings()

    async def action(store: RecordStore):
        return await store.get(post_id)

    record = asyncio.run(_with_store(settings, action))
    if record is None:
        console.print(f"[yellow]No stored post {post_id}[/yellow]")
        raise typer.Exit(code=1)
    console.print_json(record.model_dump_json())


@app.command()
def version() -> None:
    """Show version."""
    from postwatch import __version__

    console.print(f"postwatch {__version__}")


@app.command()
def info() -> None:
    """Show system information."""
    import sys

    from postwatch import __version__

    settings = get_settings()
    console.print(f"[bold]PostWatch[/bold] {__version__}")
    console.print(f"Python {sys.version}")
    console.print(f"Feed: r/{settings.subreddit} (limit {settings.fetch_limit})")
    console.print(f"Store: {settings.kv_backend}")
    console.print(f"Webhook: {'configured' if settings.discord_webhook_url else 'not configured'}")


if __name__ == "__main__":
    app()
