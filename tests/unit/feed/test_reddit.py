"""Tests for RedditClient - OAuth token exchange and listing fetch.

HTTP is served by httpx.MockTransport; no network access.
"""

from __future__ import annotations

import base64

import httpx
import pytest

from postwatch.core.exceptions import FeedAuthError, FeedError, FeedFetchError
from postwatch.feed.reddit import API_BASE, TOKEN_URL, AccessCredential, RedditClient
from postwatch.protocols.feed import FeedClient

# =============================================================================
# Test Fixtures and Helpers
# =============================================================================


def listing_child(post_id: str, **overrides) -> dict:
    data = {
        "id": post_id,
        "title": f"Post {post_id}",
        "permalink": f"/r/guinness/comments/{post_id}/post/",
        "author": "stoutfan",
        "created_utc": 1700000000.0,
        "score": 3,
        "url": "https://example.com",
        "selftext": "",
        "ups": 3,
    }
    data.update(overrides)
    return {"kind": "t3", "data": data}


class FakeReddit:
    """Token endpoint plus a subreddit listing."""

    def __init__(self, children=None, *, token_status=200, listing_status=200, listing_body=None):
        self.children = children if children is not None else [listing_child("p1"), listing_child("p2")]
        self.token_status = token_status
        self.listing_status = listing_status
        self.listing_body = listing_body
        self.token_requests: list[httpx.Request] = []
        self.listing_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            self.token_requests.append(request)
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_client")
            return httpx.Response(
                200,
                json={"access_token": "tok-1", "token_type": "bearer", "expires_in": 86400},
            )

        self.listing_requests.append(request)
        if self.listing_status != 200:
            return httpx.Response(self.listing_status, text="server exploded")
        if self.listing_body is not None:
            return httpx.Response(200, json=self.listing_body)
        return httpx.Response(200, json={"kind": "Listing", "data": {"children": self.children}})


@pytest.fixture
def reddit() -> FakeReddit:
    return FakeReddit()


@pytest.fixture
async def http(reddit):
    client = httpx.AsyncClient(transport=httpx.MockTransport(reddit))
    yield client
    await client.aclose()


def make_client(http: httpx.AsyncClient, **kwargs) -> RedditClient:
    return RedditClient("my-id", "my-secret", http=http, **kwargs)


# =============================================================================
# Authentication
# =============================================================================


class TestAuthenticate:
    """Tests for the client-credentials exchange."""

    async def test_sends_basic_auth_and_form_body(self, http, reddit):
        client = make_client(http)

        credential = await client.authenticate()

        request = reddit.token_requests[0]
        expected = base64.b64encode(b"my-id:my-secret").decode()
        assert request.method == "POST"
        assert request.headers["Authorization"] == f"Basic {expected}"
        assert request.headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert request.content == b"grant_type=client_credentials"
        assert credential == AccessCredential("tok-1", "bearer", 86400)

    async def test_sends_user_agent(self, http, reddit):
        client = make_client(http, user_agent="TestBot/0.1")

        await client.authenticate()

        assert reddit.token_requests[0].headers["User-Agent"] == "TestBot/0.1"

    async def test_token_is_cached(self, http, reddit):
        """Two fetches on one client issue exactly one token request."""
        client = make_client(http)

        await client.fetch_recent()
        await client.fetch_recent()

        assert len(reddit.token_requests) == 1
        assert len(reddit.listing_requests) == 2

    async def test_rejected_credentials_raise(self):
        reddit = FakeReddit(token_status=401)
        async with httpx.AsyncClient(transport=httpx.MockTransport(reddit)) as http:
            client = make_client(http)

            with pytest.raises(FeedAuthError) as exc_info:
                await client.authenticate()

        assert exc_info.value.status_code == 401
        assert exc_info.value.body == "invalid_client"
        assert client.credential is None

    async def test_token_body_without_access_token_raises(self):
        handler = lambda request: httpx.Response(200, json={"error": "nope"})  # noqa: E731
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(FeedAuthError):
                await make_client(http).authenticate()


# =============================================================================
# Fetching
# =============================================================================


class TestFetchRecent:
    """Tests for the listing request."""

    async def test_returns_items_in_listing_order(self, http):
        items = await make_client(http).fetch_recent()

        assert [item.id for item in items] == ["p1", "p2"]
        assert items[0].permalink == "/r/guinness/comments/p1/post/"

    async def test_listing_request_shape(self, http, reddit):
        client = make_client(http, subreddit="stout", limit=7, user_agent="TestBot/0.1")

        await client.fetch_recent()

        request = reddit.listing_requests[0]
        assert str(request.url) == f"{API_BASE}/r/stout/new?limit=7"
        assert request.headers["Authorization"] == "Bearer tok-1"
        assert request.headers["User-Agent"] == "TestBot/0.1"

    async def test_limit_override(self, http, reddit):
        await make_client(http).fetch_recent(limit=2)
        assert reddit.listing_requests[0].url.params["limit"] == "2"

    async def test_empty_listing(self):
        reddit = FakeReddit(children=[])
        async with httpx.AsyncClient(transport=httpx.MockTransport(reddit)) as http:
            assert await make_client(http).fetch_recent() == []

    async def test_server_error_raises(self):
        reddit = FakeReddit(listing_status=500)
        async with httpx.AsyncClient(transport=httpx.MockTransport(reddit)) as http:
            with pytest.raises(FeedFetchError) as exc_info:
                await make_client(http).fetch_recent()

        assert exc_info.value.status_code == 500
        assert exc_info.value.body == "server exploded"
        assert isinstance(exc_info.value, FeedError)

    async def test_auth_failure_stops_before_listing(self):
        reddit = FakeReddit(token_status=401)
        async with httpx.AsyncClient(transport=httpx.MockTransport(reddit)) as http:
            with pytest.raises(FeedAuthError):
                await make_client(http).fetch_recent()

        assert reddit.listing_requests == []

    @pytest.mark.parametrize(
        "body",
        [
            {"kind": "Listing"},
            {"data": {"children": [{"kind": "t3"}]}},
            {"data": {"children": [{"data": {"id": "p1"}}]}},
        ],
    )
    async def test_malformed_listing_raises(self, body):
        reddit = FakeReddit(listing_body=body)
        async with httpx.AsyncClient(transport=httpx.MockTransport(reddit)) as http:
            with pytest.raises(FeedFetchError):
                await make_client(http).fetch_recent()

    async def test_transport_error_raises_feed_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as http:
            with pytest.raises(FeedAuthError):
                await make_client(http).fetch_recent()


class TestRedditClientMisc:
    """Naming, lifecycle and protocol compliance."""

    def test_name(self):
        assert RedditClient("id", "secret", subreddit="stout").name == "r/stout"

    def test_implements_protocol(self):
        assert isinstance(RedditClient("id", "secret"), FeedClient)

    async def test_close_leaves_injected_client_open(self, http):
        client = make_client(http)
        await client.close()
        assert not http.is_closed

    async def test_context_manager_closes_owned_client(self):
        async with RedditClient("id", "secret") as client:
            owned = client._ensure_client()
        assert owned.is_closed
