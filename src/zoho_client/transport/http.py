"""
HTTP transport for the Zoho client.

The orchestration core never opens sockets itself: it hands a fully
rendered request to a :class:`Transport`. The default implementation wraps a
``requests.Session``; tests inject fakes implementing the same interface.
"""

from __future__ import annotations
import json
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

import requests

from ..runtime.errors import NetworkErrorKind, TransportError


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class HttpResult:
    """An HTTP response with its body already decoded."""
    status_code: int
    body: Any = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True for 2xx responses."""
        return 200 <= self.status_code < 300


def parse_body(raw: Union[bytes, str, None]) -> Any:
    """
    Decode a response payload.

    JSON payloads are decoded; anything else is returned as text.
    """
    if raw is None:
        return ""
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError:
            return raw
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class Transport(ABC):
    """Interface for performing one HTTP exchange."""

    @abstractmethod
    def perform(
        self,
        method: str,
        url: str,
        body: bytes,
        headers: Dict[str, str],
        timeout: Optional[float] = None,
        recv_timeout: Optional[float] = None,
    ) -> HttpResult:
        """
        Perform an HTTP request.

        Args:
            method: HTTP method (upper case)
            url: Fully qualified URL
            body: Encoded request body
            headers: Request headers
            timeout: Connection timeout in seconds
            recv_timeout: Receive timeout in seconds

        Returns:
            The response, whatever its status code

        Raises:
            TransportError: If no HTTP response was received
        """
        pass

    def close(self) -> None:
        """Release any pooled resources."""


_DNS_MARKERS = (
    "name or service not known",
    "nodename nor servname",
    "getaddrinfo failed",
    "failed to resolve",
    "nameresolutionerror",
    "temporary failure in name resolution",
)
_REFUSED_MARKERS = ("connection refused", "errno 111", "winerror 10061")
_UNREACHABLE_MARKERS = ("no route to host", "network is unreachable", "host is unreachable")


def classify_exception(exc: Exception) -> NetworkErrorKind:
    """Map a ``requests`` exception onto a network error kind."""
    if isinstance(exc, requests.exceptions.Timeout):
        return NetworkErrorKind.TIMEOUT

    if isinstance(exc, requests.exceptions.ConnectionError):
        text = str(exc).lower()
        if any(marker in text for marker in _DNS_MARKERS):
            return NetworkErrorKind.NXDOMAIN
        if any(marker in text for marker in _REFUSED_MARKERS):
            return NetworkErrorKind.ECONNREFUSED
        if any(marker in text for marker in _UNREACHABLE_MARKERS):
            return NetworkErrorKind.EHOSTUNREACH
        return NetworkErrorKind.CLOSED

    # Response stream cut off or corrupted mid-read
    if isinstance(exc, (requests.exceptions.ChunkedEncodingError,
                        requests.exceptions.ContentDecodingError)):
        return NetworkErrorKind.CLOSED

    return NetworkErrorKind.UNKNOWN


class RequestsTransport(Transport):
    """
    Transport backed by ``requests``.

    The session must not perform its own urllib3 retries: retry policy is
    owned by the retry engine.
    """

    def __init__(self, session: Optional[requests.Session] = None,
                 default_timeout: float = DEFAULT_TIMEOUT, verify_ssl: bool = True):
        """
        Initialize the transport.

        Args:
            session: Session to reuse (a fresh one is created otherwise)
            default_timeout: Timeout used when a request sets none
            verify_ssl: Verify TLS certificates
        """
        self._session = session or requests.Session()
        self.default_timeout = default_timeout
        self.verify_ssl = verify_ssl

    @property
    def session(self) -> requests.Session:
        return self._session

    def perform(
        self,
        method: str,
        url: str,
        body: bytes,
        headers: Dict[str, str],
        timeout: Optional[float] = None,
        recv_timeout: Optional[float] = None,
    ) -> HttpResult:
        connect_timeout = timeout or self.default_timeout
        read_timeout = recv_timeout or timeout or self.default_timeout

        logger.debug(f"{method} {url}")
        try:
            resp = self._session.request(
                method,
                url,
                data=body or None,
                headers=headers,
                timeout=(connect_timeout, read_timeout),
                verify=self.verify_ssl,
            )
        except requests.exceptions.RequestException as e:
            kind = classify_exception(e)
            logger.debug(f"Transport failure ({kind.value}) for {method} {url}: {e}")
            raise TransportError(kind, str(e), {"method": method, "url": url}, e) from e

        return HttpResult(
            status_code=resp.status_code,
            body=parse_body(resp.content),
            headers=dict(resp.headers),
        )

    def close(self) -> None:
        self._session.close()


_default_transport: Optional[Transport] = None
_default_transport_lock = threading.Lock()


def default_transport() -> Transport:
    """Return the process-wide default transport, creating it on first use."""
    global _default_transport
    with _default_transport_lock:
        if _default_transport is None:
            _default_transport = RequestsTransport()
        return _default_transport


def set_default_transport(transport: Optional[Transport]) -> None:
    """Replace the process-wide default transport (``None`` resets it)."""
    global _default_transport
    with _default_transport_lock:
        _default_transport = transport
