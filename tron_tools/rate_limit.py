"""Per-tool fixed-window rate limiter.

The window resets once ``period_ms`` has elapsed since the last reset, so
a burst straddling a boundary can admit up to ``2 * requests`` calls within
one period. Bookkeeping stays O(1) per call.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from tron_tools.base import RateLimit


def monotonic_ms() -> float:
    return time.monotonic() * 1000


@dataclass
class RateLimitTracker:
    """Request timestamps within the current window."""

    window_start: float
    requests: list[float] = field(default_factory=list)


class RateLimiter:
    """Rate limiter keyed by tool id."""

    def __init__(self, clock: Callable[[], float] = monotonic_ms):
        self._clock = clock
        self._trackers: dict[str, RateLimitTracker] = {}
        self._lock = threading.Lock()

    def allow(self, tool_id: str, limit: RateLimit) -> bool:
        """Record a request and return True, or return False if over the limit."""
        with self._lock:
            now = self._clock()
            tracker = self._trackers.get(tool_id)
            if tracker is None:
                tracker = RateLimitTracker(window_start=now)
                self._trackers[tool_id] = tracker

            if now - tracker.window_start > limit.period_ms:
                tracker.requests.clear()
                tracker.window_start = now

            if len(tracker.requests) >= limit.requests:
                return False

            tracker.requests.append(now)
            return True

    def usage(self, tool_id: str) -> int:
        """Requests admitted in the current window."""
        with self._lock:
            tracker = self._trackers.get(tool_id)
            return len(tracker.requests) if tracker else 0

    def reset(self, tool_id: str | None = None) -> None:
        with self._lock:
            if tool_id is None:
                self._trackers.clear()
            else:
                self._trackers.pop(tool_id, None)
