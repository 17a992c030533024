"""
Recovery mechanisms for the Zoho client.

Provides retry with exponential backoff and client-side rate limiting.
"""

from .retry import (
    RetryPolicy,
    RetryEngine,
    calculate_delay,
    extract_retry_after,
    is_retryable,
    with_retry,
)
from .rate_limiter import RateLimiter, NoopRateLimiter, SlidingWindowRateLimiter

__all__ = [
    "RetryPolicy",
    "RetryEngine",
    "calculate_delay",
    "extract_retry_after",
    "is_retryable",
    "with_retry",
    "RateLimiter",
    "NoopRateLimiter",
    "SlidingWindowRateLimiter",
]
