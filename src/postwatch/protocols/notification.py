"""Notification protocol.

Defines the interface for sending one-way new-post notifications
(webhooks, console).

Example:
    >>> from postwatch.protocols.notification import Notifier
    >>> hasattr(Notifier, "notify")
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from postwatch.models.post import FeedItem


@runtime_checkable
class Notifier(Protocol):
    """Notification backend protocol.

    ``notify`` is best-effort: it returns True if the message was delivered
    and False otherwise, and does not raise.
    """

    async def notify(self, item: FeedItem) -> bool:
        """Send a notification for a new item."""
        ...

    async def close(self) -> None:
        """Clean up resources."""
        ...
