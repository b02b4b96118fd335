"""Wall-clock helpers.

Components that stamp or compare times take a ``clock`` callable so tests
can pin "now".

Example:
    >>> from postwatch.utils.clock import DAY_MS, now_ms
    >>> now_ms() > 1_600_000_000_000
    True
    >>> DAY_MS
    86400000
"""

from __future__ import annotations

import time
from collections.abc import Callable

Clock = Callable[[], int]

DAY_MS = 86_400_000


def now_ms() -> int:
    """Current time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


__all__ = ["DAY_MS", "Clock", "now_ms"]
