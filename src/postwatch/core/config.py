"""PostWatch configuration.

Application settings loaded from environment variables with POSTWATCH_ prefix.

Example:
    >>> from postwatch.core.config import get_settings
    >>> settings = get_settings(log_level="DEBUG")
    >>> settings.log_level
    'DEBUG'
    >>> settings.kv_backend
    'sqlite'
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_USER_AGENT = "CreamyBot/1.0 (by /u/dazftw)"


class Settings(BaseSettings):
    """Application settings.

    Loads from environment variables with POSTWATCH_ prefix.

    Example:
        >>> from postwatch.core.config import Settings
        >>> s = Settings(subreddit="stout")
        >>> s.subreddit
        'stout'
        >>> s.fetch_limit
        5
    """

    model_config = SettingsConfigDict(
        env_prefix="POSTWATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Feed
    reddit_client_id: str | None = Field(default=None, description="OAuth client identifier")
    reddit_client_secret: SecretStr | None = Field(default=None, description="OAuth client secret")
    subreddit: str = Field(default="guinness", min_length=1)
    fetch_limit: int = Field(default=5, ge=1, le=100, description="Posts fetched per tick")
    user_agent: str = Field(default=DEFAULT_USER_AGENT)

    # Notification
    discord_webhook_url: str | None = Field(default=None, description="Webhook for new-post messages")

    # Storage
    kv_backend: Literal["sqlite", "memory", "cloudflare"] = Field(default="sqlite")
    kv_path: Path = Field(default=Path("./data/postwatch.db"), description="SQLite file for the sqlite backend")
    cloudflare_account_id: str | None = None
    cloudflare_namespace_id: str | None = None
    cloudflare_api_token: SecretStr | None = None

    # Retention and scheduling
    retention_days: int = Field(default=30, ge=1)
    poll_interval: float = Field(default=300.0, gt=0.0, description="Seconds between ticks in watch mode")
    http_timeout: float | None = Field(default=None, description="Outbound request timeout; None waits indefinitely")

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["console", "plain"] = Field(default="console", description="Log format: console or plain")


def get_settings(**overrides: Any) -> Settings:
    """Get settings with optional overrides.

    Example:
        >>> from postwatch.core.config import get_settings
        >>> get_settings(retention_days=7).retention_days
        7
    """
    return Settings(**overrides)
