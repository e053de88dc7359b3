"""Fixed-window request rate limiter keyed by client identifier."""
import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass
class RateRecord:
    """Request count for one client inside its current window."""
    key: str
    count: int
    window_reset_at: float


@dataclass(frozen=True)
class RateDecision:
    """Result of a rate-limit check."""
    allowed: bool
    remaining: int
    retry_after: int  # seconds until the key's window resets


class RateLimiter:
    """
    Fixed-window counter: at most ``limit`` requests per key per window.

    Windows start at a key's first request and are not sliding, so a client
    can burst up to twice the limit across a window boundary. Good enough for
    abuse mitigation on the chat endpoint.
    """

    def __init__(
        self,
        limit: int = 20,
        window_seconds: float = 60.0,
        max_keys: int = 10000,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            limit: Maximum requests allowed per window
            window_seconds: Window length in seconds
            max_keys: Record count that triggers a sweep of expired windows
            clock: Monotonic time source in seconds
        """
        if limit < 1:
            raise ValueError("limit must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")

        self.limit = limit
        self.window_seconds = window_seconds
        self.max_keys = max_keys
        self._clock = clock
        self._records: Dict[str, RateRecord] = {}
        self._lock = threading.Lock()

    def check(self, key: str) -> RateDecision:
        """Count one request for ``key`` and decide whether it may proceed."""
        with self._lock:
            now = self._clock()
            record = self._records.get(key)

            if record is None or now >= record.window_reset_at:
                if record is None and len(self._records) >= self.max_keys:
                    self._sweep_locked(now)
                record = RateRecord(key=key, count=1, window_reset_at=now + self.window_seconds)
                self._records[key] = record
                return RateDecision(True, self.limit - 1, self._retry_after(record, now))

            if record.count >= self.limit:
                logger.warning(f"Rate limit reached for client {key}")
                return RateDecision(False, 0, self._retry_after(record, now))

            record.count += 1
            return RateDecision(True, self.limit - record.count, self._retry_after(record, now))

    def sweep(self) -> int:
        """Drop records whose window has expired. Returns how many were removed."""
        with self._lock:
            return self._sweep_locked(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def _sweep_locked(self, now: float) -> int:
        expired = [key for key, record in self._records.items() if now >= record.window_reset_at]
        for key in expired:
            del self._records[key]
        if expired:
            logger.info(f"Evicted {len(expired)} expired rate-limit records")
        return len(expired)

    @staticmethod
    def _retry_after(record: RateRecord, now: float) -> int:
        return max(1, math.ceil(record.window_reset_at - now))
