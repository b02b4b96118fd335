"""Cloudflare Workers KV store over the REST API.

Lets a PostWatch process share the seen-post ledger with a Workers KV
namespace.

Example:
    >>> from postwatch.kv.cloudflare import CloudflareKV
    >>> kv = CloudflareKV(account_id="acc", namespace_id="ns", api_token="tok")
    >>> kv.base_url
    'https://api.cloudflare.com/client/v4/accounts/acc/storage/kv/namespaces/ns'
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from postwatch.core.exceptions import StorageError
from postwatch.protocols.kv import DEFAULT_PAGE_SIZE, KeyPage

logger = logging.getLogger(__name__)

API_ROOT = "https://api.cloudflare.com/client/v4"


class CloudflareKV:
    """Workers KV namespace accessed through the Cloudflare API.

    Args:
        account_id: Cloudflare account identifier.
        namespace_id: KV namespace identifier.
        api_token: API token with Workers KV read/write permission.
        http: Optional pre-built client (tests pass one with a mock transport).
        timeout: Request timeout in seconds, None for no limit.
    """

    def __init__(
        self,
        account_id: str,
        namespace_id: str,
        api_token: str,
        *,
        http: httpx.AsyncClient | None = None,
        timeout: float | None = None,
    ) -> None:
        self._account_id = account_id
        self._namespace_id = namespace_id
        self._api_token = api_token
        self._timeout = timeout
        self._client = http
        self._owns_client = http is None

    @property
    def base_url(self) -> str:
        """Namespace endpoint."""
        return f"{API_ROOT}/accounts/{self._account_id}/storage/kv/namespaces/{self._namespace_id}"

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self._api_token}"}

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._timeout))
            self._owns_client = True
        return self._client

    async def initialize(self) -> None:
        """Create the HTTP client if none was injected."""
        self._ensure_client()

    async def close(self) -> None:
        """Close the HTTP client if this store created it."""
        if not self._owns_client or self._client is None:
            return
        if not self._client.is_closed:
            await self._client.aclose()
        self._client = None

    def _value_url(self, key: str) -> str:
        return f"{self.base_url}/values/{quote(key, safe='')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = self._ensure_client()
        headers = {**self.headers, **kwargs.pop("headers", {})}
        try:
            return await client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise StorageError(f"{method} {url} failed: {e}") from e

    @staticmethod
    def _check(response: httpx.Response, action: str) -> None:
        if response.is_success:
            return
        logger.error(f"Workers KV {action} failed: {response.status_code} {response.text}")
        raise StorageError(f"Workers KV {action} failed: HTTP {response.status_code}")

    async def list(
        self,
        prefix: str = "",
        cursor: str | None = None,
        limit: int = DEFAULT_PAGE_SIZE,
    ) -> KeyPage:
        """List one page of keys under prefix."""
        params: dict[str, Any] = {"prefix": prefix, "limit": limit}
        if cursor:
            params["cursor"] = cursor

        response = await self._request("GET", f"{self.base_url}/keys", params=params)
        self._check(response, "list")

        try:
            payload = response.json()
            keys = [entry["name"] for entry in payload.get("result", [])]
            next_cursor = (payload.get("result_info") or {}).get("cursor") or None
        except (ValueError, KeyError, TypeError) as e:
            raise StorageError(f"Malformed list response: {e}") from e

        return KeyPage(keys=keys, cursor=next_cursor, complete=next_cursor is None)

    async def get(self, key: str) -> str | None:
        """Get a value; a 404 means the key is absent."""
        response = await self._request("GET", self._value_url(key))
        if response.status_code == 404:
            return None
        self._check(response, f"get {key}")
        return response.text

    async def put(self, key: str, value: str) -> None:
        """Write a value."""
        response = await self._request(
            "PUT",
            self._value_url(key),
            content=value.encode("utf-8"),
            headers={"Content-Type": "text/plain"},
        )
        self._check(response, f"put {key}")

    async def delete(self, key: str) -> None:
        """Delete a key."""
        response = await self._request("DELETE", self._value_url(key))
        if response.status_code == 404:
            return
        self._check(response, f"delete {key}")
