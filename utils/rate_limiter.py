"""
Token bucket throttle for sequential LLM calls
"""

import threading
import time
from typing import Callable

from utils.logging_utils import get_logger

logger = get_logger(__name__)


class TokenBucket:
    """
    Token bucket limiting how often a caller may proceed

    Tokens refill continuously at ``rate`` per second up to ``capacity``.
    ``acquire`` blocks until a token is available.
    """

    def __init__(self, rate: float, capacity: float = 1.0,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        if rate <= 0:
            raise ValueError("rate must be positive")
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.rate = rate
        self.capacity = capacity
        self.clock = clock
        self.sleep = sleep
        self._tokens = capacity
        self._updated = clock()
        self._lock = threading.Lock()

    @classmethod
    def from_config(cls, config) -> "TokenBucket":
        """Per-minute request budget with no burst"""
        return cls(rate=config.rating_requests_per_minute / 60.0, capacity=1.0)

    def _refill(self):
        now = self.clock()
        elapsed = max(now - self._updated, 0.0)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate)
        self._updated = now

    def try_acquire(self) -> bool:
        """Take a token if one is available without waiting"""
        with self._lock:
            self._refill()
            if self._tokens >= 1:
                self._tokens -= 1
                return True
            return False

    def acquire(self) -> float:
        """
        Block until a token is available and take it

        Returns:
            Seconds spent waiting
        """
        waited = 0.0
        while True:
            with self._lock:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return waited
                wait = (1 - self._tokens) / self.rate
            logger.debug(f"Rate limit reached, waiting {wait:.2f}s")
            self.sleep(wait)
            waited += wait
