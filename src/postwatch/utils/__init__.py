"""Utility helpers."""

from postwatch.utils.clock import DAY_MS, Clock, now_ms

__all__ = ["DAY_MS", "Clock", "now_ms"]
