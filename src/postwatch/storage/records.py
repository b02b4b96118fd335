"""Record store - seen-post ledger and archive over a key-value store.

Every post is written under ``post:<id>``, so the same store answers
"have we seen this post?" and keeps the post's details for later use.

Reads, writes and deletes are best-effort per key: a failure is logged and
reported to the caller as a ``False``/``None`` result, never raised, so one
bad key cannot stop a scan.

Example:
    >>> import asyncio
    >>> from postwatch.kv.memory import MemoryKV
    >>> from postwatch.models.post import FeedItem
    >>> from postwatch.storage.records import RecordStore
    >>> store = RecordStore(MemoryKV(), clock=lambda: 1_000)
    >>> item = FeedItem(
    ...     id="p1", title="Pint", permalink="/r/guinness/comments/p1/",
    ...     author="a", created_utc=1.0, score=1, url="",
    ... )
    >>> asyncio.run(store.save(item))
    True
    >>> [r.post_id for r in asyncio.run(store.load_all())]
    ['p1']
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from typing import TYPE_CHECKING

from pydantic import ValidationError

from postwatch.models.post import KEY_PREFIX, StoredRecord
from postwatch.protocols.kv import DEFAULT_PAGE_SIZE
from postwatch.utils.clock import Clock, now_ms

if TYPE_CHECKING:
    from postwatch.models.post import FeedItem
    from postwatch.protocols.kv import KeyValueStore

logger = logging.getLogger(__name__)


async def iter_keys(
    kv: KeyValueStore,
    prefix: str,
    *,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> AsyncIterator[str]:
    """Yield every key under prefix, following the store's cursor.

    Each call starts a new listing, so the sequence can be restarted.
    Listing errors propagate to the caller.

    Example:
        >>> import asyncio
        >>> from postwatch.kv.memory import MemoryKV
        >>> from postwatch.storage.records import iter_keys
        >>> kv = MemoryKV({"post:a": "", "post:b": "", "post:c": ""})
        >>> async def collect():
        ...     return [k async for k in iter_keys(kv, "post:", page_size=2)]
        >>> asyncio.run(collect())
        ['post:a', 'post:b', 'post:c']
    """
    cursor: str | None = None
    while True:
        page = await kv.list(prefix, cursor=cursor, limit=page_size)
        for key in page.keys:
            yield key
        if page.complete or not page.cursor:
            return
        cursor = page.cursor


class RecordStore:
    """StoredRecord persistence over a KeyValueStore.

    Args:
        kv: The underlying key-value store.
        prefix: Key prefix for post records.
        clock: Returns "now" in epoch milliseconds.
        page_size: Keys requested per listing page.
    """

    def __init__(
        self,
        kv: KeyValueStore,
        *,
        prefix: str = KEY_PREFIX,
        clock: Clock = now_ms,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        self._kv = kv
        self._prefix = prefix
        self._clock = clock
        self._page_size = page_size

    @property
    def kv(self) -> KeyValueStore:
        """The underlying key-value store."""
        return self._kv

    @property
    def prefix(self) -> str:
        return self._prefix

    def key_for(self, post_id: str) -> str:
        """Store key for a post identifier (``post:<id>`` by default)."""
        return f"{self._prefix}{post_id}"

    async def iter_records(self) -> AsyncIterator[tuple[str, StoredRecord]]:
        """Yield ``(key, record)`` for every readable record.

        Keys whose value is missing, unreadable or malformed are logged and
        skipped. A failure of the listing itself propagates.
        """
        async for key in iter_keys(self._kv, self._prefix, page_size=self._page_size):
            try:
                raw = await self._kv.get(key)
            except Exception as e:
                logger.error(f"Failed to read {key}: {e}")
                continue

            if raw is None:
                logger.debug(f"Key {key} vanished during scan")
                continue

            try:
                record = StoredRecord.model_validate_json(raw)
            except ValidationError as e:
                logger.warning(f"Skipping malformed record {key}: {e.error_count()} validation error(s)")
                continue

            yield key, record

    async def load_all(self) -> list[StoredRecord]:
        """Load every stored record.

        If the store cannot be listed at all, returns an empty list so the
        tick carries on and treats every candidate as new. Duplicate
        notifications during a store outage are preferred over dropping
        new posts.
        """
        logger.debug("Loading stored records...")
        records: list[StoredRecord] = []
        try:
            async for _key, record in self.iter_records():
                records.append(record)
        except Exception as e:
            logger.error(f"Error listing stored records, continuing with none: {e}")
            return []

        logger.debug(f"Retrieved {len(records)} records from store.")
        return records

    async def save(self, item: FeedItem, *, stored_at: int | None = None) -> bool:
        """Persist a FeedItem under ``post:<id>``, overwriting any existing value.

        Returns:
            True if written, False if the store failed (logged).
        """
        record = StoredRecord.from_item(
            item,
            stored_at=self._clock() if stored_at is None else stored_at,
        )
        key = self.key_for(item.id)

        try:
            await self._kv.put(key, record.model_dump_json())
        except Exception as e:
            logger.error(f"Failed to store post {item.id}: {e}")
            return False

        logger.info(f"Stored post {item.id}: {item.title}")
        return True

    async def remove(self, key: str) -> bool:
        """Delete a single record by key.

        Returns:
            True if deleted, False if the store failed (logged).
        """
        try:
            await self._kv.delete(key)
        except Exception as e:
            logger.error(f"Failed to delete {key}: {e}")
            return False
        return True

    async def get(self, post_id: str) -> StoredRecord | None:
        """Get a stored record by post identifier, or None if absent or unreadable."""
        key = self.key_for(post_id)
        try:
            raw = await self._kv.get(key)
        except Exception as e:
            logger.error(f"Error fetching post {post_id}: {e}")
            return None

        if raw is None:
            return None

        try:
            return StoredRecord.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"Malformed record {key}: {e.error_count()} validation error(s)")
            return None

    async def recent(self, limit: int = 5) -> list[StoredRecord]:
        """Most recently stored records, newest first.

        Example:
            >>> import asyncio
            >>> from postwatch.kv.memory import MemoryKV
            >>> from postwatch.models.post import FeedItem
            >>> from postwatch.storage.records import RecordStore
            >>> store = RecordStore(MemoryKV())
            >>> async def example():
            ...     for n, stamp in (("a", 1), ("b", 3), ("c", 2)):
            ...         item = FeedItem(id=n, title=n, permalink="/", author="x",
            ...                         created_utc=0, score=0, url="")
            ...         await store.save(item, stored_at=stamp)
            ...     return [r.post_id for r in await store.recent(2)]
            >>> asyncio.run(example())
            ['b', 'c']
        """
        records = await self.load_all()
        records.sort(key=lambda r: r.stored_at, reverse=True)
        return records[:limit]
