"""In-memory key-value store.

Provides a complete in-memory implementation of KeyValueStore, useful for
testing, development and dry runs. Listings are paginated like a managed
KV service so callers exercise the cursor path.

Example:
    >>> import asyncio
    >>> from postwatch.kv.memory import MemoryKV
    >>> kv = MemoryKV()
    >>> asyncio.run(kv.put("post:a", "{}"))
    >>> asyncio.run(kv.get("post:a"))
    '{}'
    >>> asyncio.run(kv.list("post:")).keys
    ['post:a']
"""

from __future__ import annotations

import bisect

from postwatch.protocols.kv import DEFAULT_PAGE_SIZE, KeyPage


class MemoryKV:
    """In-memory key-value store using a dictionary.

    Keys are listed in lexicographic order. The cursor is the last key of
    the previous page, so a listing stays consistent when keys are deleted
    between pages.

    Best for: Testing, development, dry runs.

    Example:
        >>> import asyncio
        >>> from postwatch.kv.memory import MemoryKV
        >>> kv = MemoryKV({"post:1": "a", "post:2": "b", "other": "c"})
        >>> page = asyncio.run(kv.list("post:", limit=1))
        >>> page.keys, page.complete
        (['post:1'], False)
        >>> asyncio.run(kv.list("post:", cursor=page.cursor, limit=1)).keys
        ['post:2']
    """

    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})
        self._initialized = False

    async def initialize(self) -> None:
        """No-op for memory store."""
        self._initialized = True

    async def close(self) -> None:
        """Mark closed. Data is kept so a store can be reopened in tests."""
        self._initialized = False

    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> KeyPage:
        """List keys under prefix, ``limit`` at a time."""
        keys = sorted(k for k in self._data if k.startswith(prefix))
        start = bisect.bisect_right(keys, cursor) if cursor else 0
        page = keys[start : start + limit]
        complete = start + limit >= len(keys)
        return KeyPage(
            keys=page,
            cursor=None if complete or not page else page[-1],
            complete=complete,
        )

    async def get(self, key: str) -> str | None:
        """Get the value for a key."""
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        """Write a value, replacing any existing one."""
        self._data[key] = value

    async def delete(self, key: str) -> None:
        """Delete a key if present."""
        self._data.pop(key, None)

    # --- Utility Methods ---

    def __len__(self) -> int:
        return len(self._data)

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def snapshot(self) -> dict[str, str]:
        """Copy of the current contents.

        Example:
            >>> from postwatch.kv.memory import MemoryKV
            >>> MemoryKV({"k": "v"}).snapshot()
            {'k': 'v'}
        """
        return dict(self._data)
