"""Notifier backends."""

from postwatch.notifier.console import ConsoleNotifier
from postwatch.notifier.discord import DiscordNotifier, is_image_url, preview

__all__ = ["ConsoleNotifier", "DiscordNotifier", "is_image_url", "preview"]
