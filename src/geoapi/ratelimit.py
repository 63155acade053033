import logging
import threading
import time
from typing import Callable

DEFAULT_QUERIES_PER_SECOND = 50.0


class RateLimiter:
    """Spaces permits at least ``1 / queries_per_second`` apart across all callers.

    A single "next eligible time" cursor is read and advanced under a lock; callers then
    sleep outside the lock until their slot. Permits are handed out in lock-acquisition
    order, so no caller waits longer than the callers queued ahead of it.
    """

    def __init__(
        self,
        queries_per_second: float = DEFAULT_QUERIES_PER_SECOND,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.queries_per_second = queries_per_second
        self.interval = 1.0 / queries_per_second if queries_per_second > 0 else 0.0
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._next_eligible = 0.0
        self._logger = logging.getLogger("geoapi")

    @property
    def enabled(self) -> bool:
        return self.interval > 0

    def acquire(self) -> float:
        """Block until a permit is granted; return the granted timestamp."""
        if not self.enabled:
            return self._clock()
        with self._lock:
            now = self._clock()
            granted = max(now, self._next_eligible)
            self._next_eligible = granted + self.interval
        wait = granted - now
        if wait > 0:
            self._logger.debug(f"rate limit: waiting {wait:.3f}s for permit")
            self._sleep(wait)
        return granted
