"""
Orchestrating client for Zoho REST APIs.

Sends a :class:`~zoho_client.request.Request` with the behaviour every
endpoint needs:

1. Rate limiting: the call is admitted by the configured rate limiter
2. Retry: transient failures are retried with exponential backoff
3. Token refresh: a final 401 triggers one coordinated token refresh and
   one more retried send carrying the new token

Example::

    request = (Request("crm")
               .set_access_token(access_token)
               .with_method("GET")
               .with_path("Leads"))
    input = InputRequest(access_token).with_refresh_token(refresh_token)
    leads = ZohoClient().send(request, input)
"""

import logging
import threading
import time
from typing import Any, Callable, Optional

from .auth.token_cache import TokenCache, default_token_cache
from .config import ClientSettings, Service
from .input_request import InputRequest, TokenRefreshCallback
from .recovery.rate_limiter import NoopRateLimiter, RateLimiter
from .recovery.retry import RetryEngine, RetryPolicy
from .request import PreparedRequest, Request
from .runtime.errors import error_from_result
from .transport.http import HttpResult, RequestsTransport, Transport, default_transport


logger = logging.getLogger(__name__)


class ZohoClient:
    """
    Client orchestrating rate limiting, retry and token refresh.

    All collaborators are injectable. Without explicit settings the defaults
    are the shared transport and the process-wide token cache; with settings
    the client owns a transport and token cache built from them. The retry
    policy comes from :class:`ClientSettings` and the rate limiter is a no-op.
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        token_cache: Optional[TokenCache] = None,
        retry_policy: Optional[RetryPolicy] = None,
        rate_limiter: Optional[RateLimiter] = None,
        settings: Optional[ClientSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the client.

        Args:
            transport: HTTP transport
            token_cache: Token cache used to coordinate refreshes
            retry_policy: Default retry policy
            rate_limiter: Rate limiter admitting each call
            settings: Client settings used for defaults
            sleep: Sleep function used for retry backoff
        """
        if settings is not None:
            transport = transport or RequestsTransport(default_timeout=settings.http_timeout)
            token_cache = token_cache or TokenCache(
                ttl_seconds=settings.token_ttl_seconds,
                refresh_timeout=settings.token_refresh_timeout,
            )
        self.settings = settings or ClientSettings()
        self._transport = transport
        self._token_cache = token_cache
        self.retry_policy = retry_policy or self.settings.retry_policy()
        self.rate_limiter = rate_limiter or NoopRateLimiter()
        self.retry_engine = RetryEngine(self.retry_policy, sleep=sleep)

    @property
    def transport(self) -> Transport:
        return self._transport or default_transport()

    @property
    def token_cache(self) -> TokenCache:
        return self._token_cache or default_token_cache()

    def send(self, request: Request, input: Optional[InputRequest] = None) -> Any:
        """
        Send a request and return the decoded body of a 2xx response.

        Args:
            request: The request to send (it is sealed by this call)
            input: Call context (refresh token, retry and rate limit options)

        Returns:
            Decoded response body

        Raises:
            ApiError: For non-2xx responses (``AuthenticationError`` for a 401)
            TransportError: If no response was received
            TokenRefreshError: If a 401 triggered a refresh that failed
        """
        return _collapse(self.send_raw(request, input))

    def send_raw(self, request: Request, input: Optional[InputRequest] = None) -> HttpResult:
        """
        Send a request and return the final HTTP result for any status.

        Raises:
            TransportError: If no response was received
            TokenRefreshError: If a 401 triggered a refresh that failed
        """
        input = input or InputRequest("")
        return self.rate_limiter.execute(lambda: self._execute(request, input),
                                         **input.rate_limit_opts)

    def send_without_rate_limit(self, request: Request, input: Optional[InputRequest] = None) -> Any:
        """Same as :meth:`send`, bypassing the rate limiter."""
        return _collapse(self._execute(request, input or InputRequest("")))

    def _execute(self, request: Request, input: InputRequest) -> HttpResult:
        policy = self.retry_policy.merge(**input.retry_opts)
        prepared = request.prepare()

        result = self._send_with_retry(prepared, policy)
        if result.status_code != 401:
            return result

        if not input.refresh_token:
            logger.debug(f"{prepared.method} {prepared.url} returned 401 and no refresh token is set")
            return result

        service = request.service or Service.CRM
        logger.info(f"Access token rejected for {service.value}; refreshing")
        new_token = self.token_cache.refresh(service, input.refresh_token, input.region)
        _notify_token_refresh(input.on_token_refresh, new_token)

        retried = request.copy().set_access_token(new_token).prepare()
        return self._send_with_retry(retried, policy)

    def _send_with_retry(self, prepared: PreparedRequest, policy: RetryPolicy) -> HttpResult:
        transport = self.transport
        return self.retry_engine.execute(lambda: prepared.send_raw(transport), policy)


def _collapse(result: HttpResult) -> Any:
    if result.ok:
        return result.body
    raise error_from_result(result.status_code, result.body)


def _notify_token_refresh(callback: Optional[TokenRefreshCallback], token: str) -> None:
    if callback is None:
        return
    try:
        callback(token)
    except Exception as e:
        logger.warning(f"Token refresh callback failed: {e}")


_default_client: Optional[ZohoClient] = None
_default_client_lock = threading.Lock()


def default_client() -> ZohoClient:
    """Return the process-wide client, creating it on first use."""
    global _default_client
    with _default_client_lock:
        if _default_client is None:
            _default_client = ZohoClient(settings=ClientSettings.from_env())
        return _default_client


def set_default_client(client: Optional[ZohoClient]) -> None:
    """Replace the process-wide client (``None`` resets it)."""
    global _default_client
    with _default_client_lock:
        _default_client = client


__all__ = [
    "ZohoClient",
    "default_client",
    "set_default_client",
]
