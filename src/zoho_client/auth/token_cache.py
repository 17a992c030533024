"""
Thread-safe token caching and refresh coordination.

When several threads receive 401s for the same service at once, only one
token refresh is sent upstream. The first caller installs an in-flight
:class:`~concurrent.futures.Future` for the service and performs the refresh
outside the lock; late arrivals wait on that future and receive the identical
token, or the identical exception.

Tokens are cached in memory for ``ttl_seconds`` (default 3500, slightly less
than Zoho's one-hour expiry) measured on a monotonic clock. A failed refresh
leaves the cache untouched.

Example::

    cache = TokenCache()
    token = cache.get_or_refresh("crm")
    token = cache.refresh("desk", "1000.refresh", "eu")
"""

import logging
import threading
import time
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional

from ..config import CredentialsSource, Service, ServiceLike, get_config, to_service
from ..regions import RegionLike
from ..runtime.errors import TokenRefreshError, ZohoError
from .token import OAuthRefresher


logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 3500
DEFAULT_REFRESH_TIMEOUT = 60.0

# (service, refresh_token, region) -> token response containing "access_token"
Refresher = Callable[[Service, str, Optional[RegionLike]], Mapping[str, Any]]


@dataclass(frozen=True)
class TokenEntry:
    """A cached access token and its expiry on the monotonic clock."""
    token: str
    expires_at: float

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


class TokenCache:
    """
    Per-service access token cache with single-flight refresh.

    Different services never block each other: the lock only guards the
    token and in-flight maps and is never held across the upstream call.
    """

    def __init__(
        self,
        refresher: Optional[Refresher] = None,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        refresh_timeout: float = DEFAULT_REFRESH_TIMEOUT,
        credentials: Optional[CredentialsSource] = None,
    ):
        """
        Initialize the cache.

        Args:
            refresher: Upstream refresh collaborator (defaults to :class:`OAuthRefresher`)
            ttl_seconds: Lifetime of cached tokens
            clock: Monotonic clock in seconds
            refresh_timeout: Seconds a waiter blocks on an in-flight refresh
            credentials: Credentials source used by :meth:`get_or_refresh`
        """
        self._credentials = credentials or get_config
        self._refresher = refresher or OAuthRefresher(self._credentials)
        self.ttl_seconds = ttl_seconds
        self.refresh_timeout = refresh_timeout
        self._clock = clock

        self._lock = threading.Lock()
        self._tokens: Dict[Service, TokenEntry] = {}
        self._inflight: Dict[Service, Future] = {}

    # Cache access

    def get_token(self, service: ServiceLike) -> Optional[str]:
        """Return the cached token if still live, without any I/O."""
        svc = to_service(service)
        with self._lock:
            entry = self._tokens.get(svc)
            if entry is not None and entry.is_live(self._clock()):
                return entry.token
        return None

    def put_token(self, service: ServiceLike, token: str) -> None:
        """Store a token obtained elsewhere (e.g. the initial OAuth flow)."""
        svc = to_service(service)
        with self._lock:
            self._tokens[svc] = TokenEntry(token, self._clock() + self.ttl_seconds)

    def invalidate(self, service: ServiceLike) -> None:
        """Drop the cached token for a service."""
        svc = to_service(service)
        with self._lock:
            self._tokens.pop(svc, None)

    def clear(self) -> None:
        with self._lock:
            self._tokens.clear()

    def is_refreshing(self, service: ServiceLike) -> bool:
        svc = to_service(service)
        with self._lock:
            return svc in self._inflight

    # Refresh

    def get_or_refresh(self, service: ServiceLike) -> str:
        """
        Return a live cached token, refreshing it when none is cached.

        The refresh token and region are read from the credentials source.

        Raises:
            TokenRefreshError: If the refresh fails or no refresh token is configured
            ConfigurationError: If the service has no credentials
        """
        token = self.get_token(service)
        if token is not None:
            return token

        svc = to_service(service)
        cfg = self._credentials(svc)
        if not cfg.refresh_token:
            raise TokenRefreshError(f"No refresh token configured for {svc.value}",
                                    details={"service": svc.value})
        return self.refresh(svc, cfg.refresh_token, cfg.effective_region, only_if_missing=True)

    def refresh(self, service: ServiceLike, refresh_token: Optional[str] = None,
                region: Optional[RegionLike] = None, timeout: Optional[float] = None,
                only_if_missing: bool = False) -> str:
        """
        Refresh the token for a service, coordinating with concurrent callers.

        If a refresh for the service is already in flight, wait for it and
        return its outcome instead of issuing another upstream call.

        Args:
            service: Service whose token is refreshed
            refresh_token: OAuth refresh token (defaults to the configured one)
            region: Accounts server region
            timeout: Seconds to wait on an in-flight refresh
            only_if_missing: Return a live cached token instead of refreshing

        Returns:
            The new access token

        Raises:
            TokenRefreshError: If the refresh fails or the wait times out
        """
        svc = to_service(service)

        with self._lock:
            if only_if_missing:
                entry = self._tokens.get(svc)
                if entry is not None and entry.is_live(self._clock()):
                    return entry.token
            future = self._inflight.get(svc)
            leader = future is None
            if leader:
                future = Future()
                self._inflight[svc] = future

        if not leader:
            logger.debug(f"Waiting for in-flight token refresh for {svc.value}")
            try:
                return future.result(timeout or self.refresh_timeout)
            except FutureTimeoutError:
                raise TokenRefreshError(f"Timed out waiting for token refresh for {svc.value}",
                                        details={"service": svc.value}) from None

        try:
            token = self._perform_refresh(svc, refresh_token, region)
        except BaseException as e:
            self._complete(svc, future, error=e)
            raise

        self._complete(svc, future, token=token)
        logger.info(f"Access token refreshed for {svc.value}")
        return token

    def _perform_refresh(self, svc: Service, refresh_token: Optional[str],
                         region: Optional[RegionLike]) -> str:
        if refresh_token is None:
            cfg = self._credentials(svc)
            refresh_token = cfg.refresh_token
            region = region or cfg.effective_region

        try:
            response = self._refresher(svc, refresh_token, region)
        except TokenRefreshError:
            raise
        except ZohoError as e:
            raise TokenRefreshError(f"Token refresh for {svc.value} failed: {e.message}",
                                    details={"service": svc.value}, cause=e) from e

        token = response.get("access_token") if isinstance(response, Mapping) else None
        if not isinstance(token, str) or not token:
            logger.warning(f"Unexpected token refresh response for {svc.value}: {response!r}")
            raise TokenRefreshError("Unexpected token refresh response",
                                    details={"service": svc.value})
        return token

    def _complete(self, svc: Service, future: Future, token: Optional[str] = None,
                  error: Optional[BaseException] = None) -> None:
        with self._lock:
            if error is None:
                self._tokens[svc] = TokenEntry(token, self._clock() + self.ttl_seconds)
            self._inflight.pop(svc, None)

        if error is None:
            future.set_result(token)
        else:
            future.set_exception(error)


_default_cache: Optional[TokenCache] = None
_default_cache_lock = threading.Lock()


def default_token_cache() -> TokenCache:
    """Return the process-wide token cache, creating it on first use."""
    global _default_cache
    with _default_cache_lock:
        if _default_cache is None:
            _default_cache = TokenCache()
        return _default_cache


def set_default_token_cache(cache: Optional[TokenCache]) -> None:
    """Replace the process-wide token cache (``None`` resets it)."""
    global _default_cache
    with _default_cache_lock:
        _default_cache = cache


__all__ = [
    "DEFAULT_TTL_SECONDS",
    "DEFAULT_REFRESH_TIMEOUT",
    "TokenEntry",
    "TokenCache",
    "default_token_cache",
    "set_default_token_cache",
]
