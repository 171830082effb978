"""Request throttling for remote API clients."""

import time
import logging
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class RateLimiter:
    """Fixed-interval rate limiter.

    Keeps the time of the last successful call and sleeps the shortfall
    before the next one, so calls are spaced at least ``1 / calls_per_second``
    apart. The clock and sleep functions are injectable for tests.
    """

    def __init__(
        self,
        calls_per_second: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if calls_per_second <= 0:
            raise ValueError("calls_per_second must be positive")
        self.calls_per_second = calls_per_second
        self.min_interval = 1.0 / calls_per_second
        self.last_call_time: Optional[float] = None
        self._clock = clock
        self._sleep = sleep

    def wait(self) -> float:
        """Block until the next call is allowed. Returns the time slept."""
        if self.last_call_time is None:
            return 0.0

        time_since_last = self._clock() - self.last_call_time
        if time_since_last >= self.min_interval:
            return 0.0

        sleep_time = self.min_interval - time_since_last
        logger.debug(f"Rate limiting: sleeping for {sleep_time:.3f}s")
        self._sleep(sleep_time)
        return sleep_time

    def mark(self) -> None:
        """Record a successful call."""
        self.last_call_time = self._clock()
