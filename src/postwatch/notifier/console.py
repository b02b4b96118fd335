"""Console notifier implementation.

Prints a one-line summary per new post to a text stream. Used by
``postwatch run --dry-run`` and handy in tests.

Example:
    >>> from postwatch.notifier.console import ConsoleNotifier
    >>> notifier = ConsoleNotifier()
    >>> hasattr(notifier, "notify")
    True
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime
from typing import TextIO

from postwatch.models.post import FeedItem
from postwatch.notifier.discord import SITE_URL


class ConsoleNotifier:
    """Console notifier that writes to stdout.

    Example:
        >>> import asyncio
        >>> import io
        >>> from postwatch.models.post import FeedItem
        >>> from postwatch.notifier.console import ConsoleNotifier
        >>> out = io.StringIO()
        >>> notifier = ConsoleNotifier(stream=out, show_timestamp=False)
        >>> item = FeedItem(id="p1", title="Pint", permalink="/r/guinness/comments/p1/",
        ...                 author="a", created_utc=0, score=3, url="")
        >>> asyncio.run(notifier.notify(item))
        True
        >>> out.getvalue()
        '🆕 Pint (u/a, 3 points) https://reddit.com/r/guinness/comments/p1/\\n'
    """

    def __init__(
        self,
        stream: TextIO | None = None,
        show_timestamp: bool = True,
    ) -> None:
        """Initialize console notifier.

        Args:
            stream: Output stream (default sys.stdout).
            show_timestamp: Prefix each line with the current time.
        """
        self._stream = stream or sys.stdout
        self._show_timestamp = show_timestamp
        self.sent: list[str] = []

    async def close(self) -> None:
        """Clean up resources (no-op for console)."""

    async def notify(self, item: FeedItem) -> bool:
        """Write a summary line for the item."""
        self._stream.write(self._format(item) + "\n")
        self._stream.flush()
        self.sent.append(item.id)
        return True

    def _format(self, item: FeedItem) -> str:
        parts: list[str] = []

        if self._show_timestamp:
            ts = datetime.now(UTC).strftime("%Y-%m-%d %H:%M:%S")
            parts.append(f"[{ts}]")

        parts.append("🆕")
        parts.append(f"{item.title} (u/{item.author}, {item.score} points)")
        parts.append(f"{SITE_URL}{item.permalink}")
        return " ".join(parts)
