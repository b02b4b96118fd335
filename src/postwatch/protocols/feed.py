"""Feed client protocol.

Defines the interface for clients that fetch the newest posts from a feed.

Example:
    >>> from postwatch.protocols.feed import FeedClient
    >>> hasattr(FeedClient, "fetch_recent")
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from postwatch.models.post import FeedItem


@runtime_checkable
class FeedClient(Protocol):
    """Feed client protocol.

    ``fetch_recent`` raises ``FeedError`` on any failure; it never returns
    a partial listing.
    """

    @property
    def name(self) -> str:
        """Name of the feed, used in logs."""
        ...

    async def fetch_recent(self, limit: int | None = None) -> list[FeedItem]:
        """Fetch the newest items, newest first."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        ...
