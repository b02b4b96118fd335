"""Key-value store backends.

Example:
    >>> from postwatch.core.config import Settings
    >>> from postwatch.kv import MemoryKV, create_kv
    >>> isinstance(create_kv(Settings(kv_backend="memory")), MemoryKV)
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from postwatch.core.exceptions import ConfigurationError
from postwatch.kv.cloudflare import CloudflareKV
from postwatch.kv.memory import MemoryKV
from postwatch.kv.sqlite import SQLiteKV

if TYPE_CHECKING:
    from postwatch.core.config import Settings
    from postwatch.protocols.kv import KeyValueStore


def create_kv(settings: Settings) -> KeyValueStore:
    """Build the key-value store selected by ``settings.kv_backend``.

    Raises:
        ConfigurationError: If the Cloudflare backend is selected without
            account, namespace and token.
    """
    if settings.kv_backend == "memory":
        return MemoryKV()

    if settings.kv_backend == "cloudflare":
        missing = [
            name
            for name in ("cloudflare_account_id", "cloudflare_namespace_id", "cloudflare_api_token")
            if not getattr(settings, name)
        ]
        if missing:
            raise ConfigurationError(f"Cloudflare KV backend requires: {', '.join(missing)}")
        return CloudflareKV(
            account_id=settings.cloudflare_account_id,  # type: ignore[arg-type]
            namespace_id=settings.cloudflare_namespace_id,  # type: ignore[arg-type]
            api_token=settings.cloudflare_api_token.get_secret_value(),  # type: ignore[union-attr]
            timeout=settings.http_timeout,
        )

    return SQLiteKV(settings.kv_path)


__all__ = ["CloudflareKV", "MemoryKV", "SQLiteKV", "create_kv"]
