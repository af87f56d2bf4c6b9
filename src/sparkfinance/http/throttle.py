"""Token-bucket request scheduler."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

from sparkfinance.errors import RequestCancelledError, ThrottleTimeoutError


class TokenBucket:
    """Releases permits at a fixed rate, queuing callers in arrival order.

    Each ``acquire`` reserves the next free slot under the lock and then
    waits outside it, so concurrent callers are released first-come
    first-served at ``rate_per_second``. ``capacity`` permits may be used
    back to back after an idle period.
    """

    def __init__(
        self,
        rate_per_second: float,
        capacity: int = 1,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.rate = rate_per_second
        self.capacity = capacity
        self.clock = clock
        self.sleep = sleep
        self.logger = logging.getLogger("sparkfinance.http.throttle")
        self._lock = threading.Lock()
        self._tokens = float(capacity)
        self._updated = clock()

    @classmethod
    def per_minute(cls, requests_per_minute: float, burst: int = 1, **kwargs: object) -> TokenBucket:
        return cls(requests_per_minute / 60.0, burst, **kwargs)

    def acquire(
        self,
        timeout: float | None = None,
        cancel_event: threading.Event | None = None,
    ) -> float:
        """Block until a permit is released and return the seconds waited."""
        with self._lock:
            self._refill()
            wait = 0.0 if self._tokens >= 1 else (1 - self._tokens) / self.rate
            if timeout is not None and wait > timeout:
                raise ThrottleTimeoutError(
                    f"Next request slot opens in {wait:.1f}s, beyond the {timeout:.1f}s timeout"
                )
            self._tokens -= 1

        if wait <= 0:
            return 0.0
        self.logger.debug("Throttling request for %.2fs", wait)
        if cancel_event is None:
            self.sleep(wait)
            return wait
        if cancel_event.wait(wait):
            with self._lock:
                self._tokens += 1
            raise RequestCancelledError("Queued request cancelled")
        return wait

    def _refill(self) -> None:
        now = self.clock()
        elapsed = max(0.0, now - self._updated)
        self._updated = now
        self._tokens = min(float(self.capacity), self._tokens + elapsed * self.rate)
