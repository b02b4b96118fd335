"""Tests for postwatch.pipeline - IngestPipeline and run_tick.

Tests cover:
- New-post selection and ordering
- Per-item failure isolation (store and notifier)
- Sweep on every completed run
- Feed errors ending the run
- run_tick wiring and error containment
"""

from __future__ import annotations

import pytest

from postwatch.core.config import Settings
from postwatch.core.exceptions import FeedFetchError, StorageError
from postwatch.kv.memory import MemoryKV
from postwatch.models.post import FeedItem
from postwatch.pipeline import IngestPipeline, ItemOutcome, PipelineStats, run_tick
from postwatch.retention import RetentionSweeper
from postwatch.storage.records import RecordStore
from postwatch.utils.clock import DAY_MS

NOW = 1_700_000_000_000

# =============================================================================
# Test Fixtures and Helpers
# =============================================================================


def make_item(post_id: str) -> FeedItem:
    return FeedItem(
        id=post_id,
        title=f"Post {post_id}",
        permalink=f"/r/guinness/comments/{post_id}/",
        author="stoutfan",
        created_utc=1700000000.0,
        score=1,
        url="",
    )


class StaticFeed:
    """Feed returning a fixed page, or raising."""

    def __init__(self, items=(), error: Exception | None = None) -> None:
        self.items = list(items)
        self.error = error
        self.fetches = 0
        self.closed = False

    @property
    def name(self) -> str:
        return "static"

    async def fetch_recent(self, limit=None):
        self.fetches += 1
        if self.error is not None:
            raise self.error
        return list(self.items)

    async def close(self):
        self.closed = True


class RecordingNotifier:
    """Notifier recording calls; can fail for selected ids."""

    def __init__(self, raise_for=(), reject=()) -> None:
        self.calls: list[str] = []
        self.raise_for = set(raise_for)
        self.reject = set(reject)

    async def notify(self, item):
        self.calls.append(item.id)
        if item.id in self.raise_for:
            raise RuntimeError(f"notifier blew up on {item.id}")
        return item.id not in self.reject

    async def close(self):
        pass


class FailingPutKV(MemoryKV):
    """MemoryKV that refuses writes to selected keys."""

    def __init__(self, fail_keys=()) -> None:
        super().__init__()
        self.fail_keys = set(fail_keys)

    async def put(self, key, value):
        if key in self.fail_keys:
            raise StorageError(f"cannot write {key}")
        await super().put(key, value)


class UnlistableKV(MemoryKV):
    async def list(self, prefix="", cursor=None, limit=1000):
        raise StorageError("listing unavailable")


def make_pipeline(feed, kv=None, notifier=None, **kwargs) -> IngestPipeline:
    store = RecordStore(kv if kv is not None else MemoryKV(), clock=lambda: NOW)
    sweeper = RetentionSweeper(store, clock=lambda: NOW)
    return IngestPipeline(feed, store, notifier, sweeper, **kwargs)


# =============================================================================
# Selection
# =============================================================================


class TestSelectNew:
    """Tests for the dedup step."""

    def test_keeps_feed_order(self):
        items = [make_item(i) for i in ("c", "a", "b")]
        assert [i.id for i in IngestPipeline.select_new(items, set())] == ["c", "a", "b"]

    def test_drops_stored(self):
        items = [make_item(i) for i in ("p1", "p2", "p3")]
        assert [i.id for i in IngestPipeline.select_new(items, {"p2"})] == ["p1", "p3"]


# =============================================================================
# Run
# =============================================================================


class TestRun:
    """Tests for a full pipeline run."""

    async def test_stores_and_notifies_only_new(self):
        kv = MemoryKV()
        store = RecordStore(kv)
        await store.save(make_item("p2"), stored_at=NOW)
        notifier = RecordingNotifier()
        pipeline = make_pipeline(StaticFeed([make_item("p1"), make_item("p2")]), kv, notifier)

        stats = await pipeline.run()

        assert stats.fetched == 2
        assert stats.stored_count == 1
        assert stats.new == 1
        assert stats.duplicates == 1
        assert stats.new_ids == ["p1"]
        assert notifier.calls == ["p1"]
        assert sorted(kv.snapshot()) == ["post:p1", "post:p2"]

    async def test_second_run_finds_nothing_new(self):
        kv = MemoryKV()
        notifier = RecordingNotifier()
        feed = StaticFeed([make_item("p1"), make_item("p2")])

        first = await make_pipeline(feed, kv, notifier).run()
        second = await make_pipeline(feed, kv, notifier).run()

        assert first.new == 2
        assert second.new == 0
        assert second.dedup_rate == 1.0
        assert notifier.calls == ["p1", "p2"]

    async def test_processes_in_feed_order(self):
        notifier = RecordingNotifier()
        await make_pipeline(StaticFeed([make_item(i) for i in ("z", "a", "m")]), notifier=notifier).run()
        assert notifier.calls == ["z", "a", "m"]

    async def test_store_failure_does_not_stop_later_items(self):
        """B fails to store; A is stored and C is still attempted."""
        kv = FailingPutKV(fail_keys={"post:B"})
        notifier = RecordingNotifier()
        pipeline = make_pipeline(StaticFeed([make_item(i) for i in "ABC"]), kv, notifier)

        stats = await pipeline.run()

        assert sorted(kv.snapshot()) == ["post:A", "post:C"]
        assert stats.errors == 1
        assert [o.ok for o in stats.outcomes] == [True, False, True]
        assert notifier.calls == ["A", "B", "C"]

    async def test_notifier_exception_is_contained(self):
        kv = MemoryKV()
        notifier = RecordingNotifier(raise_for={"A"}, reject={"B"})
        pipeline = make_pipeline(StaticFeed([make_item(i) for i in "ABC"]), kv, notifier)

        stats = await pipeline.run()

        assert len(kv) == 3
        assert stats.notified == 1
        assert stats.errors == 0
        assert [o.notified for o in stats.outcomes] == [False, False, True]

    async def test_without_notifier(self):
        kv = MemoryKV()
        stats = await make_pipeline(StaticFeed([make_item("p1")]), kv).run()
        assert stats.new == 1
        assert stats.notified == 0
        assert "post:p1" in kv

    async def test_store_outage_treats_everything_as_new(self):
        notifier = RecordingNotifier()
        pipeline = make_pipeline(StaticFeed([make_item("p1")]), UnlistableKV(), notifier)

        stats = await pipeline.run()

        assert stats.stored_count == 0
        assert stats.new == 1
        assert notifier.calls == ["p1"]
        assert stats.sweep.error == "listing unavailable"


class TestSweepInRun:
    """The sweep runs on every completed run."""

    async def test_sweep_runs_with_no_new_posts(self):
        kv = MemoryKV()
        store = RecordStore(kv)
        await store.save(make_item("ancient"), stored_at=NOW - 40 * DAY_MS)

        stats = await make_pipeline(StaticFeed([]), kv).run()

        assert stats.new == 0
        assert stats.deleted == 1
        assert "post:ancient" not in kv

    async def test_retention_days_passed_to_sweep(self):
        kv = MemoryKV()
        await RecordStore(kv).save(make_item("week_old"), stored_at=NOW - 8 * DAY_MS)

        stats = await make_pipeline(StaticFeed([]), kv, retention_days=7).run()

        assert stats.deleted == 1
        assert stats.sweep.cutoff_ms == NOW - 7 * DAY_MS

    async def test_feed_error_skips_everything(self):
        kv = MemoryKV()
        await RecordStore(kv).save(make_item("ancient"), stored_at=0)
        notifier = RecordingNotifier()
        pipeline = make_pipeline(StaticFeed(error=FeedFetchError("boom")), kv, notifier)

        with pytest.raises(FeedFetchError):
            await pipeline.run()

        assert "post:ancient" in kv
        assert notifier.calls == []


class TestFixedPageLimitation:
    """Only one fixed-size page is fetched per run."""

    async def test_posts_beyond_the_page_are_never_seen(self):
        """Seven posts arrive between ticks; the page holds five, two are missed."""
        kv = MemoryKV()
        backlog = [make_item(f"n{i}") for i in range(7)]
        feed = StaticFeed(backlog[:5])

        stats = await make_pipeline(feed, kv).run()

        assert stats.new == 5
        assert "post:n5" not in kv
        assert "post:n6" not in kv


# =============================================================================
# Stats and outcomes
# =============================================================================


class TestStats:
    """Tests for stats helpers."""

    def test_dedup_rate_zero_fetched(self):
        assert PipelineStats(feed_name="f").dedup_rate == 0.0

    def test_outcome_ok(self):
        assert ItemOutcome("p", stored=True).ok
        assert not ItemOutcome("p", stored=True, error="x").ok
        assert not ItemOutcome("p").ok


# =============================================================================
# run_tick
# =============================================================================


class TestRunTick:
    """Tests for the scheduler entry point."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        for name in ("REDDIT_CLIENT_ID", "REDDIT_CLIENT_SECRET", "DISCORD_WEBHOOK_URL", "KV_BACKEND"):
            monkeypatch.delenv(f"POSTWATCH_{name}", raising=False)

    async def test_returns_stats(self):
        kv = MemoryKV()
        notifier = RecordingNotifier()
        feed = StaticFeed([make_item("p1")])

        stats = await run_tick(Settings(), kv=kv, feed=feed, notifier=notifier)

        assert stats is not None
        assert stats.new == 1
        assert "post:p1" in kv
        assert notifier.calls == ["p1"]

    async def test_feed_error_returns_none(self):
        kv = MemoryKV()
        feed = StaticFeed(error=FeedFetchError("status 500"))

        result = await run_tick(Settings(), kv=kv, feed=feed, notifier=RecordingNotifier())

        assert result is None
        assert len(kv) == 0

    async def test_missing_credentials_returns_none(self):
        result = await run_tick(Settings(kv_backend="memory"), notifier=RecordingNotifier())
        assert result is None

    async def test_missing_cloudflare_config_returns_none(self):
        result = await run_tick(Settings(kv_backend="cloudflare"), feed=StaticFeed())
        assert result is None

    async def test_injected_resources_are_not_closed(self):
        feed = StaticFeed()
        await run_tick(Settings(), kv=MemoryKV(), feed=feed, notifier=RecordingNotifier())
        assert feed.closed is False

    async def test_uses_configured_sqlite_backend(self, tmp_path):
        settings = Settings(kv_backend="sqlite", kv_path=tmp_path / "tick.db")

        stats = await run_tick(settings, feed=StaticFeed([make_item("p1")]), notifier=RecordingNotifier())

        assert stats.new == 1
        assert (tmp_path / "tick.db").exists()

    async def test_default_notifier_without_webhook(self):
        """No webhook configured: posts are stored, notification is a no-op."""
        kv = MemoryKV()

        stats = await run_tick(Settings(), kv=kv, feed=StaticFeed([make_item("p1")]))

        assert stats.new == 1
        assert stats.notified == 0
        assert "post:p1" in kv
