"""Custom exceptions.

PostWatch splits failures into those that end a tick (feed errors) and
those that are handled per item (storage and notification errors):

Example:
    >>> from postwatch.core.exceptions import FeedAuthError, FeedError, PostWatchError
    >>> err = FeedAuthError("token request failed", status_code=401, body="nope")
    >>> isinstance(err, FeedError), isinstance(err, PostWatchError)
    (True, True)
    >>> err.status_code
    401
"""

from __future__ import annotations


class PostWatchError(Exception):
    """Base exception for PostWatch.

    Example:
        >>> from postwatch.core.exceptions import PostWatchError
        >>> str(PostWatchError("something went wrong"))
        'something went wrong'
    """


class FeedError(PostWatchError):
    """Feed operation failed. Fatal to the current tick.

    Example:
        >>> from postwatch.core.exceptions import FeedError
        >>> FeedError("listing failed", source="reddit", status_code=503).source
        'reddit'
    """

    def __init__(
        self,
        message: str,
        *,
        source: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message)
        self.source = source
        self.status_code = status_code
        self.body = body


class FeedAuthError(FeedError):
    """Token exchange with the feed API failed."""


class FeedFetchError(FeedError):
    """Fetching or decoding the listing failed."""


class StorageError(PostWatchError):
    """Key-value store operation failed.

    Example:
        >>> from postwatch.core.exceptions import StorageError
        >>> raise StorageError("connection lost")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        StorageError: connection lost
    """


class NotificationError(PostWatchError):
    """Webhook delivery failed."""

    def __init__(self, message: str, *, status_code: int | None = None, body: str | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(PostWatchError):
    """Configuration is invalid.

    Example:
        >>> from postwatch.core.exceptions import ConfigurationError
        >>> raise ConfigurationError("missing key")  # doctest: +IGNORE_EXCEPTION_DETAIL
        Traceback (most recent call last):
        ConfigurationError: missing key
    """
