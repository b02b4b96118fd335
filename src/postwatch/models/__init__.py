"""Data models."""

from postwatch.models.base import PostWatchModel
from postwatch.models.post import KEY_PREFIX, FeedItem, StoredRecord, record_key

__all__ = [
    "KEY_PREFIX",
    "FeedItem",
    "PostWatchModel",
    "StoredRecord",
    "record_key",
]
