"""Discord webhook notifier.

Posts one rich embed per new post to a Discord (or Discord-compatible)
webhook. Delivery is attempted once; failures are logged and swallowed so
ingestion always moves on.

Example:
    >>> from postwatch.models.post import FeedItem
    >>> from postwatch.notifier.discord import DiscordNotifier
    >>> item = FeedItem(
    ...     id="p1", title="Pint", permalink="/r/guinness/comments/p1/pint/",
    ...     author="stoutfan", created_utc=1700000000, score=12,
    ...     url="https://i.redd.it/pint.jpg",
    ... )
    >>> payload = DiscordNotifier("https://discord.test/hook").build_payload(item)
    >>> payload["embeds"][0]["url"]
    'https://reddit.com/r/guinness/comments/p1/pint/'
    >>> payload["embeds"][0]["image"]
    {'url': 'https://i.redd.it/pint.jpg'}
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from postwatch.core.exceptions import NotificationError
from postwatch.models.post import FeedItem

logger = logging.getLogger(__name__)

SITE_URL = "https://reddit.com"
PREVIEW_LENGTH = 300
PLACEHOLDER_DESCRIPTION = "Click the link to view this post on Reddit!"
IMAGE_MARKERS = (".jpg", ".png", ".gif", "imgur", "i.redd.it")

LOGO_URL = "https://logoeps.com/wp-content/uploads/2013/03/guinness-vector-logo.png"
REDDIT_ICON_URL = "https://www.redditstatic.com/desktop2x/img/favicon/android-icon-192x192.png"
SUBREDDIT_ICON_URL = "https://styles.redditmedia.com/t5_2qh2w/styles/communityIcon_6kzk4e2pke831.png"


def preview(text: str | None, length: int = PREVIEW_LENGTH) -> str:
    """Body preview for the embed description.

    Example:
        >>> from postwatch.notifier.discord import preview
        >>> preview("short")
        'short'
        >>> len(preview("x" * 301))
        303
        >>> preview(None)
        'Click the link to view this post on Reddit!'
    """
    if not text:
        return PLACEHOLDER_DESCRIPTION
    if len(text) > length:
        return f"{text[:length]}..."
    return text


def is_image_url(url: str | None) -> bool:
    """True if the URL looks like a directly embeddable image.

    Example:
        >>> from postwatch.notifier.discord import is_image_url
        >>> is_image_url("https://imgur.com/a/xyz"), is_image_url("https://example.com")
        (True, False)
    """
    return bool(url) and any(marker in url for marker in IMAGE_MARKERS)


class DiscordNotifier:
    """Webhook notifier for new posts.

    With no webhook URL configured every ``notify`` call is a logged no-op.

    Args:
        webhook_url: Target webhook, or None to disable.
        http: Optional pre-built client (tests pass one with a mock transport).
        subreddit: Subreddit name shown in the message.
        username: Display name of the webhook message.
        avatar_url: Avatar of the webhook message.
        color: Embed accent color.
        footer_text: Embed footer text.
        timeout: Request timeout in seconds, None for no limit.
    """

    def __init__(
        self,
        webhook_url: str | None = None,
        *,
        http: httpx.AsyncClient | None = None,
        subreddit: str = "guinness",
        username: str = "Guinness Scanner",
        avatar_url: str = LOGO_URL,
        color: int = 0x000000,
        footer_text: str = "Sláinte! 🍻",
        timeout: float | None = None,
    ) -> None:
        self._webhook_url = webhook_url
        self._subreddit = subreddit
        self._username = username
        self._avatar_url = avatar_url
        self._color = color
        self._footer_text = footer_text
        self._timeout = timeout
        self._client = http
        self._owns_client = http is None

    @property
    def enabled(self) -> bool:
        """True when a webhook URL is configured."""
        return bool(self._webhook_url)

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this notifier created it."""
        if not self._owns_client or self._client is None:
            return
        if not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def build_payload(self, item: FeedItem) -> dict[str, Any]:
        """Build the webhook JSON body for an item."""
        embed: dict[str, Any] = {
            "author": {
                "name": f"u/{item.author}",
                "url": f"{SITE_URL}/u/{item.author}",
                "icon_url": REDDIT_ICON_URL,
            },
            "title": item.title,
            "url": f"{SITE_URL}{item.permalink}",
            "description": preview(item.selftext),
            "color": self._color,
            "fields": [
                {"name": "📊 Score", "value": f"{item.score} points", "inline": True},
                # Discord renders <t:N:R> as relative time ("5 minutes ago")
                {"name": "🕒 Posted", "value": f"<t:{int(item.created_utc)}:R>", "inline": True},
                {"name": "🔗 Subreddit", "value": f"r/{self._subreddit}", "inline": True},
            ],
            "thumbnail": {"url": SUBREDDIT_ICON_URL},
            "footer": {"text": self._footer_text, "icon_url": self._avatar_url},
            "timestamp": datetime.fromtimestamp(item.created_utc, tz=UTC).isoformat(),
        }

        if is_image_url(item.url):
            embed["image"] = {"url": item.url}

        return {
            "username": self._username,
            "avatar_url": self._avatar_url,
            "content": f"🍺 **New post in r/{self._subreddit}!**",
            "embeds": [embed],
        }

    async def _post(self, payload: dict[str, Any]) -> None:
        """Send one webhook request.

        Raises:
            NotificationError: On transport failure or a non-success status.
        """
        client = self._ensure_client()
        try:
            response = await client.post(self._webhook_url, json=payload)  # type: ignore[arg-type]
        except httpx.HTTPError as e:
            raise NotificationError(f"Webhook request failed: {e}") from e

        if not response.is_success:
            raise NotificationError(
                f"Webhook failed: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=response.text,
            )

    async def notify(self, item: FeedItem) -> bool:
        """Send a notification for a new post.

        Returns:
            True if the webhook accepted the message, False otherwise.
        """
        if not self.enabled:
            logger.info("No webhook URL configured, skipping notification")
            return False

        logger.info(f"Sending notification for: {item.title}")
        try:
            await self._post(self.build_payload(item))
        except NotificationError as e:
            logger.error(f"Notification for {item.id} failed: {e}")
            if e.body:
                logger.error(f"Webhook error response: {e.body}")
            return False
        except Exception as e:
            logger.error(f"Error sending notification for {item.id}: {e}")
            return False

        logger.info(f"Notification sent for: {item.title}")
        return True
