"""
PostWatch - New-post watcher for a single subreddit.

PostWatch polls a subreddit's "new" listing, records posts it has not seen
before in a key-value store, and announces each one to a webhook.

Key Features:
- Key-value dedup ledger keyed by ``post:<id>`` (idempotent writes)
- Best-effort per-post storage and notification
- Time-based eviction of old records
- Pluggable stores: in-memory, SQLite, Cloudflare Workers KV

Quick Start:
    >>> from postwatch import IngestPipeline, MemoryKV, RecordStore, RedditClient
    >>> store = RecordStore(MemoryKV())
    >>> async with RedditClient(client_id, client_secret) as reddit:
    ...     stats = await IngestPipeline(reddit, store).run()
"""

# Core
from postwatch.core.config import Settings, get_settings
from postwatch.core.exceptions import (
    ConfigurationError,
    FeedAuthError,
    FeedError,
    FeedFetchError,
    NotificationError,
    PostWatchError,
    StorageError,
)

# Feed clients
from postwatch.feed.reddit import AccessCredential, RedditClient

# Key-value stores
from postwatch.kv import CloudflareKV, MemoryKV, SQLiteKV, create_kv

# Models
from postwatch.models.post import KEY_PREFIX, FeedItem, StoredRecord, record_key

# Notifiers
from postwatch.notifier.console import ConsoleNotifier
from postwatch.notifier.discord import DiscordNotifier

# Orchestration
from postwatch.pipeline import IngestPipeline, ItemOutcome, PipelineStats, run_tick
from postwatch.retention import RetentionSweeper, SweepResult
from postwatch.storage.records import RecordStore, iter_keys

__version__ = "0.1.0"

__all__ = [
    # Models
    "FeedItem",
    "StoredRecord",
    "KEY_PREFIX",
    "record_key",
    # Feed
    "AccessCredential",
    "RedditClient",
    # Storage
    "CloudflareKV",
    "MemoryKV",
    "SQLiteKV",
    "create_kv",
    "RecordStore",
    "iter_keys",
    # Notifier
    "ConsoleNotifier",
    "DiscordNotifier",
    # Orchestration
    "IngestPipeline",
    "ItemOutcome",
    "PipelineStats",
    "RetentionSweeper",
    "SweepResult",
    "run_tick",
    # Configuration
    "Settings",
    "get_settings",
    # Exceptions
    "PostWatchError",
    "FeedError",
    "FeedAuthError",
    "FeedFetchError",
    "StorageError",
    "NotificationError",
    "ConfigurationError",
    # Version
    "__version__",
]
