"""
Client-side rate limiting.

Zoho APIs enforce per-plan request quotas and answer with 429 once they are
exceeded. A rate limiter wraps each outgoing call and may delay it so the
process stays under a configured budget.

The default :class:`NoopRateLimiter` executes calls directly. The
:class:`SlidingWindowRateLimiter` keeps an in-process sliding window per
bucket key and blocks the calling thread until a slot is free.
"""

import logging
import math
import threading
import time
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, Optional, TypeVar


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_KEY = "zoho_api"
DEFAULT_REQUEST_COUNT = 100
DEFAULT_TIME_WINDOW = 60
DEFAULT_SAFETY_MARGIN = 0.2


class RateLimiter(ABC):
    """Interface for rate limiting outgoing requests."""

    @abstractmethod
    def execute(self, action: Callable[[], T], **opts: Any) -> T:
        """
        Run ``action`` once the limiter permits it.

        Args:
            action: Zero-argument callable performing the request
            **opts: Per-call overrides (implementation specific; unknown
                keys are ignored)

        Returns:
            Whatever ``action`` returns
        """
        pass


class NoopRateLimiter(RateLimiter):
    """Rate limiter that never delays."""

    def execute(self, action: Callable[[], T], **opts: Any) -> T:
        return action()


class _Window:
    def __init__(self):
        self.timestamps: Deque[float] = deque()


class SlidingWindowRateLimiter(RateLimiter):
    """
    Sliding window rate limiter.

    At most ``floor(request_count * (1 - safety_margin))`` calls start per
    ``time_window`` seconds for each bucket key.

    Per-call options: ``enabled`` (``False`` bypasses the limiter), ``key``,
    ``request_count``, ``time_window`` and ``safety_margin``.
    """

    def __init__(
        self,
        request_count: int = DEFAULT_REQUEST_COUNT,
        time_window: float = DEFAULT_TIME_WINDOW,
        safety_margin: float = DEFAULT_SAFETY_MARGIN,
        key: str = DEFAULT_KEY,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the rate limiter.

        Args:
            request_count: Requests allowed per window
            time_window: Window size in seconds
            safety_margin: Fraction of the budget kept in reserve
            key: Default bucket key
            clock: Monotonic clock in seconds
            sleep: Sleep function taking seconds
        """
        if request_count < 1:
            raise ValueError("request_count must be >= 1")
        if time_window <= 0:
            raise ValueError("time_window must be positive")
        if not 0 <= safety_margin < 1:
            raise ValueError("safety_margin must be in [0, 1)")

        self.request_count = request_count
        self.time_window = time_window
        self.safety_margin = safety_margin
        self.key = key
        self._clock = clock
        self._sleep = sleep
        self._windows: Dict[str, _Window] = {}
        self._lock = threading.Lock()
        logger.info(f"RateLimiter initialized: {request_count} requests / {time_window} seconds "
                    f"(safety margin {safety_margin:.0%})")

    @staticmethod
    def effective_limit(request_count: int, safety_margin: float) -> int:
        """Number of calls permitted per window after the safety margin."""
        return max(1, math.floor(request_count * (1 - safety_margin)))

    def _reserve(self, key: str, limit: int, window: float) -> float:
        """Record a slot and return 0, or return the seconds to wait."""
        with self._lock:
            state = self._windows.setdefault(key, _Window())
            now = self._clock()
            while state.timestamps and now - state.timestamps[0] >= window:
                state.timestamps.popleft()

            if len(state.timestamps) < limit:
                state.timestamps.append(now)
                return 0.0

            return max(0.0, state.timestamps[0] + window - now)

    def acquire(self, key: Optional[str] = None, request_count: Optional[int] = None,
                time_window: Optional[float] = None, safety_margin: Optional[float] = None) -> None:
        """Block until a slot is available in the bucket."""
        key = key or self.key
        window = time_window or self.time_window
        limit = self.effective_limit(
            request_count or self.request_count,
            self.safety_margin if safety_margin is None else safety_margin,
        )

        while True:
            wait_time = self._reserve(key, limit, window)
            if wait_time <= 0:
                return
            logger.debug(f"Rate limit reached for {key!r}. Waiting for {wait_time:.2f} seconds.")
            self._sleep(wait_time)

    def get_wait_time(self, key: Optional[str] = None) -> float:
        """Estimate the seconds before the next call in ``key`` may start."""
        key = key or self.key
        limit = self.effective_limit(self.request_count, self.safety_margin)
        with self._lock:
            state = self._windows.get(key)
            if state is None:
                return 0.0
            now = self._clock()
            live = [t for t in state.timestamps if now - t < self.time_window]
            if len(live) < limit:
                return 0.0
            return max(0.0, live[0] + self.time_window - now)

    def execute(self, action: Callable[[], T], **opts: Any) -> T:
        if opts.get("enabled", True) is False:
            return action()
        self.acquire(
            key=opts.get("key"),
            request_count=opts.get("request_count"),
            time_window=opts.get("time_window"),
            safety_margin=opts.get("safety_margin"),
        )
        return action()

    def reset(self) -> None:
        """Forget all recorded calls."""
        with self._lock:
            self._windows.clear()


__all__ = [
    "RateLimiter",
    "NoopRateLimiter",
    "SlidingWindowRateLimiter",
]
