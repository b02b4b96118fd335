"""Post models - the unit of ingestion.

This module contains the two shapes a post takes:

- `FeedItem`: a post as returned by the feed listing, one per fetch
- `StoredRecord`: the persisted projection, keyed by ``post:<id>``

Example:
    >>> from postwatch.models.post import FeedItem, StoredRecord, record_key
    >>> item = FeedItem(
    ...     id="abc123",
    ...     title="Perfect pour",
    ...     permalink="/r/guinness/comments/abc123/perfect_pour/",
    ...     author="stoutfan",
    ...     created_utc=1700000000,
    ...     score=42,
    ...     url="https://i.redd.it/pint.jpg",
    ... )
    >>> record_key(item.id)
    'post:abc123'
    >>> StoredRecord.from_item(item, stored_at=1700000000000).post_id
    'abc123'
"""

from __future__ import annotations

from pydantic import ConfigDict, Field

from postwatch.models.base import PostWatchModel

KEY_PREFIX = "post:"


def record_key(post_id: str) -> str:
    """Return the store key for a post identifier.

    Example:
        >>> record_key("xyz")
        'post:xyz'
    """
    return f"{KEY_PREFIX}{post_id}"


class FeedItem(PostWatchModel):
    """A post from the feed's "new" listing.

    Example:
        >>> from postwatch.models.post import FeedItem
        >>> item = FeedItem.model_validate({
        ...     "id": "p1",
        ...     "title": "Hello",
        ...     "permalink": "/r/guinness/comments/p1/hello/",
        ...     "author": "someone",
        ...     "created_utc": 1700000000.0,
        ...     "score": 3,
        ...     "url": "https://example.com",
        ...     "ups": 3,
        ... })
        >>> item.selftext is None
        True
    """

    id: str = Field(..., min_length=1, description="Identifier, unique within the feed")
    title: str = Field(..., description="Post title")
    permalink: str = Field(..., description="Path of the post on the site")
    author: str = Field(..., description="Author's username")
    created_utc: float = Field(..., description="Creation time in epoch seconds")
    score: int = Field(default=0, description="Net score at fetch time")
    url: str = Field(default="", description="Linked URL (or the post URL for text posts)")
    selftext: str | None = Field(default=None, description="Body text of text posts")


class StoredRecord(PostWatchModel):
    """A post as persisted in the record store.

    Every FeedItem field is copied verbatim; ``stored_at`` is the epoch
    millisecond timestamp of the write and drives retention.

    Example:
        >>> from postwatch.models.post import StoredRecord
        >>> raw = (
        ...     '{"post_id": "p1", "title": "t", "permalink": "/p1", '
        ...     '"created_utc": 1.0, "author": "a", "url": "", "score": 1, '
        ...     '"stored_at": 5}'
        ... )
        >>> StoredRecord.model_validate_json(raw).stored_at
        5
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    post_id: str = Field(..., min_length=1)
    title: str
    permalink: str
    created_utc: float
    author: str
    url: str = ""
    selftext: str | None = None
    score: int = 0
    stored_at: int = Field(..., description="Epoch milliseconds when stored")

    @property
    def key(self) -> str:
        """Store key for this record."""
        return record_key(self.post_id)

    @classmethod
    def from_item(cls, item: FeedItem, stored_at: int) -> StoredRecord:
        """Create a StoredRecord from a FeedItem.

        Example:
            >>> from postwatch.models.post import FeedItem, StoredRecord
            >>> item = FeedItem(
            ...     id="p9", title="T", permalink="/p9", author="a",
            ...     created_utc=1.0, score=1, url="",
            ... )
            >>> StoredRecord.from_item(item, stored_at=10).key
            'post:p9'
        """
        return cls(
            post_id=item.id,
            title=item.title,
            permalink=item.permalink,
            created_utc=item.created_utc,
            author=item.author,
            url=item.url,
            selftext=item.selftext,
            score=item.score,
            stored_at=stored_at,
        )
