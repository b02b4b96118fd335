"""Pipeline - ingest orchestrator, one run per scheduled tick.

Each run:
1. Fetches the newest posts from the feed
2. Loads the identifiers already in the record store
3. Keeps the posts not seen before, in feed order
4. For each new post, in order: stores it, then notifies
5. Sweeps records older than the retention window

Only a feed failure ends a run early. Store and notification failures are
recorded per post and the run moves on to the next one.

The fetch is a single page (5 posts by default). If more posts than that
arrive between two ticks, the older ones are never seen. This is a known
limitation of polling one fixed-size page.

Example:
    >>> from postwatch.pipeline import IngestPipeline, PipelineStats
    >>> hasattr(IngestPipeline, "run")
    True
    >>> PipelineStats(feed_name="r/guinness", fetched=5, new=2, duplicates=3).dedup_rate
    0.6
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from postwatch.core.exceptions import ConfigurationError
from postwatch.feed.reddit import RedditClient
from postwatch.kv import create_kv
from postwatch.notifier.discord import DiscordNotifier
from postwatch.retention import DEFAULT_MAX_AGE_DAYS, RetentionSweeper
from postwatch.storage.records import RecordStore

if TYPE_CHECKING:
    from postwatch.core.config import Settings
    from postwatch.models.post import FeedItem
    from postwatch.protocols.feed import FeedClient
    from postwatch.protocols.kv import KeyValueStore
    from postwatch.protocols.notification import Notifier
    from postwatch.retention import SweepResult

logger = logging.getLogger(__name__)


@dataclass
class ItemOutcome:
    """What happened to one new post.

    Example:
        >>> from postwatch.pipeline import ItemOutcome
        >>> ItemOutcome("p1", stored=True, notified=False).ok
        True
        >>> ItemOutcome("p2", stored=False, error="disk full").ok
        False
    """

    post_id: str
    stored: bool = False
    notified: bool = False
    error: str | None = None

    @property
    def ok(self) -> bool:
        """True if the post was stored without error."""
        return self.stored and self.error is None


@dataclass
class PipelineStats:
    """Statistics from one pipeline run.

    Example:
        >>> from postwatch.pipeline import PipelineStats
        >>> stats = PipelineStats(feed_name="r/guinness", fetched=4, duplicates=1)
        >>> stats.dedup_rate
        0.25
    """

    feed_name: str
    fetched: int = 0
    stored_count: int = 0
    new: int = 0
    duplicates: int = 0
    errors: int = 0
    notified: int = 0
    deleted: int = 0
    duration_ms: float = 0.0
    outcomes: list[ItemOutcome] = field(default_factory=list)
    sweep: SweepResult | None = None
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def dedup_rate(self) -> float:
        """Share of fetched posts that were already stored (0.0 to 1.0)."""
        if self.fetched == 0:
            return 0.0
        return self.duplicates / self.fetched

    @property
    def new_ids(self) -> list[str]:
        """Identifiers of the new posts, in processing order."""
        return [o.post_id for o in self.outcomes]


class IngestPipeline:
    """Fetch, dedup, store, notify and sweep.

    Args:
        feed: Feed client producing candidate posts.
        store: Record store used as dedup ledger and archive.
        notifier: Optional notifier for new posts.
        sweeper: Retention sweeper (defaults to one over ``store``).
        retention_days: Maximum record age kept by the sweep.

    Example:
        >>> import asyncio
        >>> from postwatch.kv.memory import MemoryKV
        >>> from postwatch.storage.records import RecordStore
        >>> from postwatch.pipeline import IngestPipeline
        >>> class EmptyFeed:
        ...     name = "empty"
        ...     async def fetch_recent(self, limit=None):
        ...         return []
        ...     async def close(self):
        ...         pass
        >>> stats = asyncio.run(IngestPipeline(EmptyFeed(), RecordStore(MemoryKV())).run())
        >>> stats.new, stats.sweep.scanned
        (0, 0)
    """

    def __init__(
        self,
        feed: FeedClient,
        store: RecordStore,
        notifier: Notifier | None = None,
        sweeper: RetentionSweeper | None = None,
        *,
        retention_days: int = DEFAULT_MAX_AGE_DAYS,
    ) -> None:
        self._feed = feed
        self._store = store
        self._notifier = notifier
        self._sweeper = sweeper or RetentionSweeper(store)
        self._retention_days = retention_days

    @property
    def feed(self) -> FeedClient:
        return self._feed

    @property
    def store(self) -> RecordStore:
        return self._store

    @property
    def notifier(self) -> Notifier | None:
        """Get the notifier (if configured)."""
        return self._notifier

    @staticmethod
    def select_new(candidates: list[FeedItem], stored_ids: set[str]) -> list[FeedItem]:
        """Candidates whose identifier is not stored, in candidate order.

        Example:
            >>> from postwatch.models.post import FeedItem
            >>> from postwatch.pipeline import IngestPipeline
            >>> make = lambda i: FeedItem(id=i, title=i, permalink="/", author="a",
            ...                           created_utc=0, score=0, url="")
            >>> new = IngestPipeline.select_new([make("p1"), make("p2")], {"p2"})
            >>> [i.id for i in new]
            ['p1']
        """
        return [item for item in candidates if item.id not in stored_ids]

    async def process(self, item: FeedItem) -> ItemOutcome:
        """Store one new post, then notify.

        Never raises: failures are captured in the outcome. Notification is
        attempted even if the store write failed.
        """
        outcome = ItemOutcome(post_id=item.id)

        try:
            outcome.stored = await self._store.save(item)
            if not outcome.stored:
                outcome.error = "store write failed"
        except Exception as e:
            outcome.error = f"store write failed: {e}"
            logger.error(f"Failed to store post {item.id}: {e}")

        if self._notifier is not None:
            try:
                outcome.notified = await self._notifier.notify(item)
            except Exception as e:
                logger.error(f"Notifier raised for post {item.id}: {e}")

        return outcome

    async def run(self) -> PipelineStats:
        """Run one tick.

        Raises:
            FeedError: If the feed cannot be fetched. Nothing is stored,
                notified or swept in that case.
        """
        start_time = time.perf_counter()
        stats = PipelineStats(feed_name=self._feed.name)

        candidates = await self._feed.fetch_recent()
        stats.fetched = len(candidates)
        logger.info(f"Fetched {stats.fetched} posts from {stats.feed_name}")

        stored = await self._store.load_all()
        stats.stored_count = len(stored)
        logger.info(f"Found {stats.stored_count} stored posts.")

        new_items = self.select_new(candidates, {r.post_id for r in stored})
        stats.new = len(new_items)
        stats.duplicates = stats.fetched - stats.new
        logger.info(f"Found {stats.new} new posts to store.")

        for item in new_items:
            logger.info(f"New post {item.id}: {item.title}")
            outcome = await self.process(item)
            stats.outcomes.append(outcome)
            if not outcome.ok:
                stats.errors += 1
            if outcome.notified:
                stats.notified += 1

        stats.sweep = await self._sweeper.sweep(self._retention_days)
        stats.deleted = stats.sweep.deleted

        stats.duration_ms = (time.perf_counter() - start_time) * 1000
        return stats


async def run_tick(
    settings: Settings,
    *,
    kv: KeyValueStore | None = None,
    feed: FeedClient | None = None,
    notifier: Notifier | None = None,
) -> PipelineStats | None:
    """Scheduler entry point: build collaborators from settings and run once.

    Every error is logged here and swallowed; the caller only ever sees
    the stats of a completed run or None.

    Args:
        settings: Application settings.
        kv: Key-value store to use instead of the configured backend.
        feed: Feed client to use instead of a RedditClient.
        notifier: Notifier to use instead of a DiscordNotifier.
    """
    owned: list[Any] = []
    try:
        if kv is None:
            kv = create_kv(settings)
            owned.append(kv)
        await kv.initialize()

        if feed is None:
            if not settings.reddit_client_id or settings.reddit_client_secret is None:
                raise ConfigurationError("reddit_client_id and reddit_client_secret are required")
            feed = RedditClient(
                settings.reddit_client_id,
                settings.reddit_client_secret.get_secret_value(),
                subreddit=settings.subreddit,
                limit=settings.fetch_limit,
                user_agent=settings.user_agent,
                timeout=settings.http_timeout,
            )
            owned.append(feed)

        if notifier is None:
            notifier = DiscordNotifier(
                settings.discord_webhook_url,
                subreddit=settings.subreddit,
                timeout=settings.http_timeout,
            )
            owned.append(notifier)

        pipeline = IngestPipeline(
            feed,
            RecordStore(kv),
            notifier,
            retention_days=settings.retention_days,
        )
        stats = await pipeline.run()
        logger.info(
            f"Tick complete: {stats.new} new, {stats.duplicates} seen, "
            f"{stats.errors} errors, {stats.deleted} expired ({stats.duration_ms:.0f}ms)"
        )
        return stats
    except Exception as e:
        logger.error(f"Tick failed: {e}")
        return None
    finally:
        for resource in reversed(owned):
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Error closing {type(resource).__name__}: {e}")
