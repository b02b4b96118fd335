"""Key-value store protocol.

Defines the interface for the key-value service that backs the record
store (in-memory, SQLite, Cloudflare Workers KV).

Example:
    >>> from postwatch.protocols.kv import KeyPage
    >>> page = KeyPage(keys=["post:a", "post:b"], cursor="b", complete=False)
    >>> page.keys
    ['post:a', 'post:b']
    >>> page.complete
    False
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

DEFAULT_PAGE_SIZE = 1000


@dataclass
class KeyPage:
    """One page of a prefix listing.

    ``cursor`` is opaque and only meaningful to the store that produced it.
    When ``complete`` is True there are no further pages.
    """

    keys: list[str] = field(default_factory=list)
    cursor: str | None = None
    complete: bool = True


@runtime_checkable
class KeyValueStore(Protocol):
    """Key-value store protocol.

    Values are strings (serialized JSON). Implementations raise
    ``StorageError`` on backend failures.

    See Also:
        postwatch.kv.memory.MemoryKV: In-memory implementation
    """

    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> KeyPage:
        """List keys starting with prefix, one page at a time."""
        ...

    async def get(self, key: str) -> str | None:
        """Get the value for a key, or None if absent."""
        ...

    async def put(self, key: str, value: str) -> None:
        """Write a value, replacing any existing one."""
        ...

    async def delete(self, key: str) -> None:
        """Delete a key. Deleting a missing key is not an error."""
        ...

    async def initialize(self) -> None:
        """Initialize the store (open connections, create tables)."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        ...
