"""Retention sweeper - evicts records older than the retention window.

The sweep walks the whole ``post:`` prefix on every run, so its cost grows
with the number of stored posts. At one subreddit's daily volume this is a
few hundred keys at most.

Example:
    >>> import asyncio
    >>> from postwatch.kv.memory import MemoryKV
    >>> from postwatch.retention import RetentionSweeper
    >>> from postwatch.storage.records import RecordStore
    >>> sweeper = RetentionSweeper(RecordStore(MemoryKV()), clock=lambda: 10 * 86_400_000)
    >>> result = asyncio.run(sweeper.sweep(max_age_days=3))
    >>> result.cutoff_ms, result.deleted
    (604800000, 0)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from postwatch.utils.clock import DAY_MS, Clock, now_ms

if TYPE_CHECKING:
    from postwatch.storage.records import RecordStore

logger = logging.getLogger(__name__)

DEFAULT_MAX_AGE_DAYS = 30


@dataclass
class SweepResult:
    """Outcome of one sweep.

    Example:
        >>> from postwatch.retention import SweepResult
        >>> SweepResult(cutoff_ms=0, scanned=3, deleted=1, failed=1).retained
        1
    """

    cutoff_ms: int
    scanned: int = 0
    deleted: int = 0
    failed: int = 0
    error: str | None = None

    @property
    def retained(self) -> int:
        """Records scanned and kept."""
        return self.scanned - self.deleted - self.failed


class RetentionSweeper:
    """Deletes records whose ``stored_at`` is before the cutoff.

    A record exactly at the cutoff is kept. Delete failures are logged and
    counted; they never stop the sweep.

    Args:
        store: Record store to sweep.
        clock: Returns "now" in epoch milliseconds.
    """

    def __init__(self, store: RecordStore, *, clock: Clock = now_ms) -> None:
        self._store = store
        self._clock = clock

    def cutoff(self, max_age_days: int = DEFAULT_MAX_AGE_DAYS) -> int:
        """Oldest ``stored_at`` that is kept.

        Example:
            >>> from postwatch.kv.memory import MemoryKV
            >>> from postwatch.retention import RetentionSweeper
            >>> from postwatch.storage.records import RecordStore
            >>> now = 5_000_000_000
            >>> RetentionSweeper(RecordStore(MemoryKV()), clock=lambda: now).cutoff(30)
            2408000000
        """
        return self._clock() - max_age_days * DAY_MS

    async def sweep(self, max_age_days: int = DEFAULT_MAX_AGE_DAYS) -> SweepResult:
        """Delete every record older than ``max_age_days``.

        Returns:
            SweepResult with counts. If the listing fails part-way the
            result holds the counts so far and the error message.
        """
        result = SweepResult(cutoff_ms=self.cutoff(max_age_days))
        logger.info(f"Cleaning up posts older than {max_age_days} days...")

        try:
            async for key, record in self._store.iter_records():
                result.scanned += 1
                if record.stored_at >= result.cutoff_ms:
                    continue
                if await self._store.remove(key):
                    result.deleted += 1
                    logger.info(f"Deleted old post: {record.title}")
                else:
                    result.failed += 1
        except Exception as e:
            result.error = str(e)
            logger.error(f"Error during cleanup: {e}")

        logger.info(f"Cleanup complete. Deleted {result.deleted} old posts.")
        return result
