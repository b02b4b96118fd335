"""Reddit feed client.

Fetches the newest posts of one subreddit through the OAuth API using the
client-credentials grant.

Example:
    >>> from postwatch.feed.reddit import RedditClient
    >>> client = RedditClient("id", "secret", subreddit="guinness")
    >>> client.listing_url(5)
    'https://oauth.reddit.com/r/guinness/new?limit=5'
    >>> client.credential is None
    True
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import httpx
from pydantic import ValidationError

from postwatch.core.config import DEFAULT_USER_AGENT
from postwatch.core.exceptions import FeedAuthError, FeedFetchError
from postwatch.models.post import FeedItem

logger = logging.getLogger(__name__)

TOKEN_URL = "https://www.reddit.com/api/v1/access_token"
API_BASE = "https://oauth.reddit.com"
DEFAULT_LIMIT = 5


@dataclass(frozen=True)
class AccessCredential:
    """Bearer token issued by the token endpoint.

    Example:
        >>> from postwatch.feed.reddit import AccessCredential
        >>> AccessCredential(access_token="abc").authorization
        'Bearer abc'
    """

    access_token: str
    token_type: str = "bearer"
    expires_in: int | None = None

    @property
    def authorization(self) -> str:
        """Value for the Authorization header."""
        return f"Bearer {self.access_token}"


class RedditClient:
    """Client for a subreddit's "new" listing.

    The access token is cached on the instance for its lifetime and is
    never persisted. Create one client per tick.

    A non-success status from either endpoint is logged with its body and
    raised as a FeedError. Requests are not retried.

    Args:
        client_id: OAuth client identifier.
        client_secret: OAuth client secret.
        subreddit: Subreddit name without the ``r/`` prefix.
        limit: Default number of posts per fetch.
        user_agent: User-Agent sent with every request.
        http: Optional pre-built client (tests pass one with a mock transport).
        timeout: Request timeout in seconds, None for no limit.
        token_url: Token endpoint.
        api_base: API root for listing requests.

    Example:
        >>> async with RedditClient(client_id, client_secret) as reddit:
        ...     posts = await reddit.fetch_recent()
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        *,
        subreddit: str = "guinness",
        limit: int = DEFAULT_LIMIT,
        user_agent: str = DEFAULT_USER_AGENT,
        http: httpx.AsyncClient | None = None,
        timeout: float | None = None,
        token_url: str = TOKEN_URL,
        api_base: str = API_BASE,
    ) -> None:
        self._client_id = client_id
        self._client_secret = client_secret
        self._subreddit = subreddit
        self._limit = limit
        self._user_agent = user_agent
        self._timeout = timeout
        self._token_url = token_url
        self._api_base = api_base.rstrip("/")
        self._client = http
        self._owns_client = http is None
        self._credential: AccessCredential | None = None

    @property
    def name(self) -> str:
        """Feed name, e.g. ``r/guinness``."""
        return f"r/{self._subreddit}"

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def user_agent(self) -> str:
        return self._user_agent

    @property
    def credential(self) -> AccessCredential | None:
        """Cached credential, if authenticated."""
        return self._credential

    def listing_url(self, limit: int) -> str:
        return f"{self._api_base}/r/{self._subreddit}/new?limit={limit}"

    def _ensure_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
            self._owns_client = True
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this instance created it."""
        if not self._owns_client or self._client is None:
            return
        if not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> RedditClient:
        """Async context manager entry."""
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Async context manager exit."""
        await self.close()

    async def authenticate(self) -> AccessCredential:
        """Exchange client credentials for a bearer token.

        Returns the cached credential when one exists.

        Raises:
            FeedAuthError: On a non-success response or an unusable body.
        """
        if self._credential is not None:
            logger.debug("Using cached access token.")
            return self._credential

        logger.info("Requesting new access token...")
        client = self._ensure_client()
        try:
            response = await client.post(
                self._token_url,
                auth=(self._client_id, self._client_secret),
                data={"grant_type": "client_credentials"},
                headers={"User-Agent": self._user_agent},
            )
        except httpx.HTTPError as e:
            raise FeedAuthError(f"Token request failed: {e}", source=self.name) from e

        if not response.is_success:
            logger.error(f"Failed to fetch token: {response.status_code} {response.reason_phrase}")
            logger.error(f"Token fetch response: {response.text}")
            raise FeedAuthError(
                f"Failed to fetch token: {response.status_code}",
                source=self.name,
                status_code=response.status_code,
                body=response.text,
            )

        try:
            payload = response.json()
            self._credential = AccessCredential(
                access_token=payload["access_token"],
                token_type=payload.get("token_type", "bearer"),
                expires_in=payload.get("expires_in"),
            )
        except (ValueError, KeyError, TypeError) as e:
            raise FeedAuthError(
                f"Token response missing access_token: {e}",
                source=self.name,
                status_code=response.status_code,
                body=response.text,
            ) from e

        logger.info("Access token obtained.")
        return self._credential

    async def fetch_recent(self, limit: int | None = None) -> list[FeedItem]:
        """Fetch the newest posts, newest first.

        Args:
            limit: Number of posts to request (defaults to the client's limit).

        Raises:
            FeedAuthError: If authentication fails.
            FeedFetchError: On a non-success response or a malformed listing.
        """
        credential = await self.authenticate()
        url = self.listing_url(limit or self._limit)
        logger.debug(f"Fetching {url}")

        client = self._ensure_client()
        try:
            response = await client.get(
                url,
                headers={
                    "Authorization": credential.authorization,
                    "User-Agent": self._user_agent,
                },
            )
        except httpx.HTTPError as e:
            raise FeedFetchError(f"Listing request failed: {e}", source=self.name) from e

        if not response.is_success:
            logger.error(f"Failed to fetch URL: {url} - Status: {response.status_code} {response.reason_phrase}")
            logger.error(f"Fetch response: {response.text}")
            raise FeedFetchError(
                f"Failed to fetch posts: {response.status_code}",
                source=self.name,
                status_code=response.status_code,
                body=response.text,
            )

        items = self._parse_listing(response)
        logger.info(f"Fetched {len(items)} posts from {self.name}.")
        return items

    def _parse_listing(self, response: httpx.Response) -> list[FeedItem]:
        """Map ``data.children[*].data`` to FeedItems."""
        try:
            payload: Any = response.json()
            children = payload["data"]["children"]
            return [FeedItem.model_validate(child["data"]) for child in children]
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            raise FeedFetchError(
                f"Malformed listing response: {e}",
                source=self.name,
                status_code=response.status_code,
                body=response.text,
            ) from e
