"""Core configuration, logging and exceptions."""

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
from postwatch.core.logging import configure_logging

__all__ = [
    "ConfigurationError",
    "FeedAuthError",
    "FeedError",
    "FeedFetchError",
    "NotificationError",
    "PostWatchError",
    "Settings",
    "StorageError",
    "configure_logging",
    "get_settings",
]
