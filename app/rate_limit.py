"""Process-wide fixed-window request limiter keyed by client address.

slowapi's parser works in whole seconds, so the sub-second global window is
kept here. The check is read-then-write without locking; it is a soft limit.
"""
import math
import time
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass
class Window:
    started_at: float
    count: int


@dataclass(frozen=True)
class Decision:
    allowed: bool
    retry_after: float = 0.0

    @property
    def retry_after_header(self) -> str:
        return str(max(1, math.ceil(self.retry_after)))


class RateLimiter:
    def __init__(
        self,
        max_requests: int = 1,
        window_ms: int = 250,
        clock: Optional[Callable[[], float]] = None,
        enabled: bool = True,
    ):
        self.max_requests = max_requests
        self.window = window_ms / 1000
        self.clock = clock or time.monotonic
        self.enabled = enabled
        self._windows: dict[str, Window] = {}

    def hit(self, key: str) -> Decision:
        if not self.enabled:
            return Decision(allowed=True)

        now = self.clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self.window:
            self._windows[key] = Window(started_at=now, count=1)
            self._prune(now)
            return Decision(allowed=True)

        if window.count >= self.max_requests:
            return Decision(allowed=False, retry_after=window.started_at + self.window - now)

        window.count += 1
        return Decision(allowed=True)

    def reset(self) -> None:
        self._windows.clear()

    def _prune(self, now: float) -> None:
        if len(self._windows) < 10_000:
            return
        expired = [k for k, w in self._windows.items() if now - w.started_at >= self.window]
        for key in expired:
            del self._windows[key]
