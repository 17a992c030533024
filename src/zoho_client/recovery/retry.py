"""
Retry policies for transient API failures.

Wraps a zero-argument "perform the call" action in a policy loop with
exponential backoff and jitter. Outcomes are classified as success (2xx),
retryable (a network error or status code in the policy's retryable sets)
or terminal (everything else).

The engine never converts a failure into a different one: when attempts
run out, or the failure is terminal, the last ``HttpResult`` is returned
as-is and the last ``TransportError`` is re-raised as-is.

For 429 responses a retry-after hint in the response body is honoured
(``retry_after``, ``details.retry_after``, ``Retry-After``; integer or
numeric string, in seconds), capped at ``max_delay_ms``.
"""

import dataclasses
import logging
import random
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, FrozenSet, Optional, Union

from ..runtime.errors import NetworkErrorKind, TransportError
from ..transport.http import HttpResult


logger = logging.getLogger(__name__)

# Maximum jitter as a fraction of the delay
JITTER_FACTOR = 0.3

DEFAULT_RETRYABLE_NETWORK_ERRORS: FrozenSet[NetworkErrorKind] = frozenset({
    NetworkErrorKind.TIMEOUT,
    NetworkErrorKind.ECONNREFUSED,
    NetworkErrorKind.CLOSED,
    NetworkErrorKind.NXDOMAIN,
    NetworkErrorKind.EHOSTUNREACH,
})

# 529 is Zoho's "site overloaded"
DEFAULT_RETRYABLE_STATUS_CODES: FrozenSet[int] = frozenset({429, 500, 502, 503, 504, 529})

Outcome = Union[HttpResult, TransportError]
RetryAfterFn = Callable[[HttpResult], Optional[float]]


@dataclass(frozen=True)
class RetryPolicy:
    """Retry configuration. Delays are in milliseconds."""
    enabled: bool = True
    max_retries: int = 3
    base_delay_ms: int = 1000
    max_delay_ms: int = 30_000
    jitter: bool = True
    retryable_network_errors: FrozenSet[NetworkErrorKind] = DEFAULT_RETRYABLE_NETWORK_ERRORS
    retryable_status_codes: FrozenSet[int] = DEFAULT_RETRYABLE_STATUS_CODES

    def __post_init__(self):
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        object.__setattr__(self, "retryable_network_errors",
                           frozenset(NetworkErrorKind(k) for k in self.retryable_network_errors))
        object.__setattr__(self, "retryable_status_codes",
                           frozenset(int(s) for s in self.retryable_status_codes))

    @property
    def active(self) -> bool:
        """False when the policy allows exactly one attempt."""
        return self.enabled and self.max_retries > 0

    def merge(self, **overrides: Any) -> "RetryPolicy":
        """
        Return a copy with overrides applied.

        Unknown keys are ignored so per-request option dicts can be passed
        through unchanged.
        """
        known = {f.name for f in dataclasses.fields(self)}
        applicable = {k: v for k, v in overrides.items() if k in known and v is not None}
        if not applicable:
            return self
        return dataclasses.replace(self, **applicable)


def calculate_delay(attempt: int, base_delay_ms: float, max_delay_ms: float, jitter: bool) -> float:
    """
    Exponential backoff delay for an attempt, in milliseconds.

    ``min(base * 2^attempt, max)``, plus up to 30% random jitter when enabled.

    Examples:
        >>> calculate_delay(0, 1000, 30000, False)
        1000
        >>> calculate_delay(2, 1000, 30000, False)
        4000
    """
    delay = min(round(base_delay_ms * (2 ** attempt)), max_delay_ms)
    if jitter:
        return delay + random.uniform(0, delay * JITTER_FACTOR)
    return delay


def _positive_seconds(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value) if value > 0 else None
    if isinstance(value, str):
        try:
            seconds = float(value.strip())
        except ValueError:
            return None
        return seconds if seconds > 0 else None
    return None


def extract_retry_after(body: Any) -> Optional[float]:
    """
    Extract a retry-after hint (seconds) from a 429 response body.

    Keys are tried in order: ``retry_after``, ``details.retry_after``,
    ``Retry-After``.
    """
    if not isinstance(body, dict):
        return None

    candidates = [body.get("retry_after")]
    details = body.get("details")
    if isinstance(details, dict):
        candidates.append(details.get("retry_after"))
    candidates.append(body.get("Retry-After"))

    for value in candidates:
        seconds = _positive_seconds(value)
        if seconds is not None:
            return seconds
    return None


def default_retry_after(result: HttpResult) -> Optional[float]:
    """Retry-after from the body, falling back to the ``Retry-After`` header."""
    seconds = extract_retry_after(result.body)
    if seconds is None:
        for name, value in result.headers.items():
            if name.lower() == "retry-after":
                seconds = _positive_seconds(value)
                break
    return seconds


def is_retryable(outcome: Any, policy: RetryPolicy) -> bool:
    """
    Check whether an outcome should be retried under a policy.

    Examples:
        >>> is_retryable(HttpResult(500), RetryPolicy())
        True
        >>> is_retryable(HttpResult(400), RetryPolicy())
        False
    """
    if isinstance(outcome, HttpResult):
        return outcome.status_code in policy.retryable_status_codes
    if isinstance(outcome, TransportError):
        return outcome.kind in policy.retryable_network_errors
    return False


class RetryEngine:
    """
    Executes actions under a retry policy.

    The engine holds no per-call state, so one instance can be shared by
    concurrent callers; each call sleeps only on its own thread.
    """

    def __init__(
        self,
        policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        retry_after_fn: RetryAfterFn = default_retry_after,
    ):
        """
        Initialize the engine.

        Args:
            policy: Retry configuration (defaults to :class:`RetryPolicy`)
            sleep: Sleep function taking seconds
            retry_after_fn: Interprets 429 responses; returns seconds or None
        """
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self.retry_after_fn = retry_after_fn

        # Statistics
        self._stats_lock = threading.Lock()
        self.total_attempts = 0
        self.total_retries = 0
        self.total_successes = 0
        self.total_failures = 0

    def _count(self, name: str) -> None:
        with self._stats_lock:
            setattr(self, name, getattr(self, name) + 1)

    def retry_delay(self, outcome: Outcome, attempt: int, policy: Optional[RetryPolicy] = None) -> float:
        """Delay in milliseconds before retrying ``outcome``."""
        policy = policy or self.policy
        if isinstance(outcome, HttpResult) and outcome.status_code == 429:
            seconds = self.retry_after_fn(outcome)
            if seconds is not None:
                return min(seconds * 1000, policy.max_delay_ms)
        return calculate_delay(attempt, policy.base_delay_ms, policy.max_delay_ms, policy.jitter)

    def execute(self, action: Callable[[], HttpResult], policy: Optional[RetryPolicy] = None) -> HttpResult:
        """
        Execute ``action`` under the retry policy.

        Args:
            action: Performs one attempt; returns an ``HttpResult`` or raises
                ``TransportError``
            policy: Overrides the engine's policy for this call

        Returns:
            The first 2xx result, or the last result when attempts are
            exhausted or the failure is terminal

        Raises:
            TransportError: The last transport failure, unchanged
        """
        policy = policy or self.policy

        if not policy.active:
            self._count("total_attempts")
            return action()

        attempt = 0
        while True:
            self._count("total_attempts")
            try:
                outcome: Outcome = action()
            except TransportError as e:
                outcome = e

            if isinstance(outcome, HttpResult) and outcome.ok:
                self._count("total_successes")
                if attempt > 0:
                    logger.info(f"Request succeeded on attempt {attempt + 1}")
                return outcome

            if is_retryable(outcome, policy) and attempt < policy.max_retries:
                delay_ms = self.retry_delay(outcome, attempt, policy)
                logger.warning(
                    f"Attempt {attempt + 1} failed ({_describe(outcome)}). "
                    f"Retrying in {delay_ms / 1000:.2f}s..."
                )
                self._count("total_retries")
                self._sleep(delay_ms / 1000)
                attempt += 1
                continue

            self._count("total_failures")
            if isinstance(outcome, TransportError):
                raise outcome
            return outcome

    def get_stats(self) -> dict:
        """Get retry statistics."""
        with self._stats_lock:
            return {
                "total_attempts": self.total_attempts,
                "total_retries": self.total_retries,
                "total_successes": self.total_successes,
                "total_failures": self.total_failures,
                "success_rate": self.total_successes / max(self.total_attempts, 1),
                "retry_rate": self.total_retries / max(self.total_attempts, 1),
            }


def _describe(outcome: Any) -> str:
    if isinstance(outcome, HttpResult):
        return f"HTTP {outcome.status_code}"
    if isinstance(outcome, TransportError):
        return outcome.kind.value
    return repr(outcome)


def with_retry(action: Callable[[], HttpResult], policy: Optional[RetryPolicy] = None,
               sleep: Callable[[float], None] = time.sleep, **overrides: Any) -> HttpResult:
    """
    Execute ``action`` with retry.

    Args:
        action: Zero-argument callable performing one attempt
        policy: Base policy (defaults to :class:`RetryPolicy`)
        sleep: Sleep function taking seconds
        **overrides: Policy fields to override, e.g. ``max_retries=0``

    Returns:
        The result of the last attempt
    """
    effective = (policy or RetryPolicy()).merge(**overrides)
    return RetryEngine(effective, sleep=sleep).execute(action)


__all__ = [
    "JITTER_FACTOR",
    "DEFAULT_RETRYABLE_NETWORK_ERRORS",
    "DEFAULT_RETRYABLE_STATUS_CODES",
    "RetryPolicy",
    "RetryEngine",
    "calculate_delay",
    "extract_retry_after",
    "default_retry_after",
    "is_retryable",
    "with_retry",
]
