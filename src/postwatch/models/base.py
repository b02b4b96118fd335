"""Base model shared by PostWatch data types.

Example:
    >>> from postwatch.models.base import PostWatchModel
    >>> PostWatchModel.model_config["extra"]
    'ignore'
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class PostWatchModel(BaseModel):
    """Base model with standard configuration.

    Unknown fields are ignored so raw API payloads can be validated
    directly without pre-filtering.
    """

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        extra="ignore",
    )
