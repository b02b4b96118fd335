"""Feed clients."""

from postwatch.feed.reddit import AccessCredential, RedditClient

__all__ = ["AccessCredential", "RedditClient"]
