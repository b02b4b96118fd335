"""Protocol definitions - all extension points."""

from postwatch.protocols.feed import FeedClient
from postwatch.protocols.kv import DEFAULT_PAGE_SIZE, KeyPage, KeyValueStore
from postwatch.protocols.notification import Notifier

__all__ = [
    # Feed
    "FeedClient",
    # Key-value store
    "DEFAULT_PAGE_SIZE",
    "KeyPage",
    "KeyValueStore",
    # Notification
    "Notifier",
]
