"""Minimum spacing between outbound reasoning calls."""
import logging
import threading
import time
from typing import Callable, Optional

logger = logging.getLogger("Cashflow.RateLimiter")


class RateLimiter:
    """Depth-1 token bucket shared by every caller in the process.

    The lock is held across the wait, so the timestamp check, the sleep and the
    timestamp update happen as one step and no two grant timestamps returned
    by ``acquire`` are ever closer than ``min_interval`` seconds. The request
    itself goes out after the grant, so scheduling delay on the caller side can
    move it later but never earlier than its grant.
    """

    def __init__(
        self,
        min_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_call: Optional[float] = None

    def acquire(self) -> float:
        """Block until a call may go out; returns the granted timestamp."""
        with self._lock:
            now = self._clock()
            while self._last_call is not None:
                wait = self.min_interval - (now - self._last_call)
                if wait <= 0:
                    break
                logger.info("Rate limiter: waiting %.3fs before next reasoning call", wait)
                self._sleep(wait)
                now = self._clock()
            self._last_call = now
            return now
