"""
Request builder for Zoho REST APIs.

A :class:`Request` is a builder local to one logical call. Chainable
mutators configure the target API, path, method, headers, query params,
body and timeouts; :meth:`Request.prepare` renders the final URL and encoded
body into an immutable :class:`PreparedRequest` and seals the builder so it
cannot change after it has been handed to the wire.

Example:
    >>> req = (Request("crm")
    ...        .set_access_token("token123")
    ...        .with_region("com")
    ...        .with_method("GET")
    ...        .with_path("Leads"))
    >>> req.render_url()
    'https://www.zohoapis.com/crm/v8/Leads'
"""

from __future__ import annotations
import copy
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union
from urllib.parse import urlencode

from . import regions
from .config import Service
from .regions import Region, RegionLike
from .runtime.errors import (
    EncodingError, RequestSealedError, ValidationError, error_from_result, vendor_error_code,
)
from .transport.http import HttpResult, Transport, default_transport


logger = logging.getLogger(__name__)

DEFAULT_VERSION = "v8"
DEFAULT_BASE_URL = regions.OAUTH_URLS[regions.DEFAULT_REGION]
JSON_CONTENT_TYPE = "application/json"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"


class ApiType(str, Enum):
    """Target API of a request; selects the URL template."""
    CRM = "crm"
    DESK = "desk"
    WORKDRIVE = "workdrive"
    RECRUIT = "recruit"
    BOOKINGS = "bookings"
    OAUTH = "oauth"
    PORTAL = "portal"
    BULK = "bulk"
    RECRUIT_BULK = "recruit_bulk"
    COMPOSITE = "composite"
    MEETING = "meeting"
    CLIQ = "cliq"


API_TYPE_SERVICES: Dict[ApiType, Service] = {
    ApiType.CRM: Service.CRM,
    ApiType.BULK: Service.CRM,
    ApiType.COMPOSITE: Service.CRM,
    ApiType.DESK: Service.DESK,
    ApiType.WORKDRIVE: Service.WORKDRIVE,
    ApiType.RECRUIT: Service.RECRUIT,
    ApiType.RECRUIT_BULK: Service.RECRUIT,
    ApiType.BOOKINGS: Service.BOOKINGS,
    ApiType.PORTAL: Service.PROJECTS,
    ApiType.MEETING: Service.MEETING,
    ApiType.CLIQ: Service.CLIQ,
}


# =============================================================================
# Body variants
# =============================================================================

@dataclass(frozen=True)
class JsonBody:
    """Structured value serialized as JSON."""
    value: Any

    def encode(self) -> bytes:
        try:
            return json.dumps(self.value, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Failed to encode request body: {e}", cause=e) from e


@dataclass(frozen=True)
class RawBody:
    """Bytes or text sent unchanged."""
    data: Union[bytes, str] = b""

    def encode(self) -> bytes:
        if isinstance(self.data, str):
            return self.data.encode("utf-8")
        return bytes(self.data)


@dataclass(frozen=True)
class FormBody:
    """Key/value pairs sent as application/x-www-form-urlencoded."""
    fields: Tuple[Tuple[str, Any], ...] = ()

    @classmethod
    def of(cls, fields: Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]) -> FormBody:
        items = fields.items() if isinstance(fields, Mapping) else fields
        return cls(tuple((str(k), v) for k, v in items))

    def encode(self) -> bytes:
        return urlencode([(k, _query_value(v)) for k, v in self.fields]).encode("ascii")


Body = Union[JsonBody, RawBody, FormBody]


def to_body(value: Any) -> Body:
    """Wrap a plain value into the matching body variant."""
    if isinstance(value, (JsonBody, RawBody, FormBody)):
        return value
    if value is None:
        return RawBody(b"")
    if isinstance(value, (bytes, bytearray, str)):
        return RawBody(bytes(value) if isinstance(value, bytearray) else value)
    return JsonBody(value)


def _query_value(value: Any) -> Any:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Enum):
        return value.value
    return value


def encode_query(params: Mapping[str, Any]) -> str:
    """URL-encode query params; list values repeat the key."""
    pairs: List[Tuple[str, Any]] = []
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            pairs.extend((str(key), _query_value(v)) for v in value)
        else:
            pairs.append((str(key), _query_value(value)))
    return urlencode(pairs)


def append_params(base: str, params: Optional[Mapping[str, Any]]) -> str:
    """Append query params, joining with ``?`` or ``&``."""
    if not params:
        return base
    separator = "&" if "?" in base else "?"
    return f"{base}{separator}{encode_query(params)}"


# =============================================================================
# Prepared request
# =============================================================================

@dataclass(frozen=True)
class PreparedRequest:
    """Fully rendered request ready for the transport."""
    api_type: ApiType
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: bytes = b""
    timeout: Optional[float] = None
    recv_timeout: Optional[float] = None

    def send_raw(self, transport: Optional[Transport] = None) -> HttpResult:
        """
        Perform the request.

        Returns:
            The response for any HTTP status

        Raises:
            TransportError: If no response was received
        """
        transport = transport or default_transport()
        result = transport.perform(
            self.method, self.url, self.body, dict(self.headers), self.timeout, self.recv_timeout
        )
        if result.status_code >= 400:
            _log_error_result(self, result)
        return result


def _log_error_result(prepared: PreparedRequest, result: HttpResult) -> None:
    vendor_code = vendor_error_code(result.body)
    if vendor_code:
        logger.warning(f"{prepared.method} {prepared.url} -> {result.status_code} ({vendor_code})")
    else:
        logger.warning(f"{prepared.method} {prepared.url} -> {result.status_code}")


# =============================================================================
# Builder
# =============================================================================

class Request:
    """
    Builder for one HTTP call to a Zoho API.

    Mutators return ``self`` for chaining. Once :meth:`prepare` (or a send
    method) has run, the builder is sealed and further mutation raises
    :class:`RequestSealedError`; use :meth:`copy` to derive a new request.
    """

    def __init__(self, api_type: Union[ApiType, str]):
        """
        Initialize the request.

        Args:
            api_type: Target API (see :class:`ApiType`)
        """
        self.api_type = _api_type(api_type)
        self.path: Optional[str] = None
        self.method: Optional[str] = None
        self.params: Dict[str, Any] = {}
        self.body: Body = RawBody(b"")
        self.headers: Dict[str, str] = {"Content-Type": JSON_CONTENT_TYPE}
        self.base_url: str = DEFAULT_BASE_URL
        self.version: str = DEFAULT_VERSION
        self.region: Region = regions.DEFAULT_REGION
        self.timeout: Optional[float] = None
        self.recv_timeout: Optional[float] = None
        self._sealed = False

    def __repr__(self) -> str:
        return (f"Request(api_type={self.api_type.value!r}, method={self.method!r}, "
                f"path={self.path!r}, region={self.region.value!r})")

    @property
    def sealed(self) -> bool:
        return self._sealed

    @property
    def service(self) -> Optional[Service]:
        """Logical service whose credentials this request uses."""
        return API_TYPE_SERVICES.get(self.api_type)

    def _check_mutable(self) -> None:
        if self._sealed:
            raise RequestSealedError()

    # Mutators

    def set_api_type(self, api_type: Union[ApiType, str]) -> Request:
        self._check_mutable()
        self.api_type = _api_type(api_type)
        return self

    def with_version(self, version: str) -> Request:
        self._check_mutable()
        self.version = version
        return self

    def with_region(self, region: RegionLike) -> Request:
        """
        Set the data-center region.

        Raises:
            InvalidRegionError: If the region is not supported
        """
        self._check_mutable()
        self.region = regions.validate(region)
        return self

    def with_method(self, method: str) -> Request:
        self._check_mutable()
        self.method = str(method).upper()
        return self

    def set_base_url(self, base_url: str) -> Request:
        self._check_mutable()
        self.base_url = base_url.rstrip("/")
        return self

    def set_headers(self, headers: Mapping[str, str]) -> Request:
        """Merge headers into the request; later values win."""
        self._check_mutable()
        self.headers.update(headers)
        return self

    def set_access_token(self, access_token: str) -> Request:
        return self.set_headers({"Authorization": f"Zoho-oauthtoken {access_token}"})

    def set_org_id(self, org_id: str) -> Request:
        """Set the organization header (required by Zoho Desk)."""
        return self.set_headers({"orgId": org_id})

    def with_path(self, path: str) -> Request:
        self._check_mutable()
        self.path = path
        return self

    def with_body(self, body: Any) -> Request:
        """
        Set the request body.

        Dicts and lists are sent as JSON, ``str``/``bytes`` unchanged, and
        :class:`FormBody` form-encoded with the matching content type.
        """
        self._check_mutable()
        self.body = to_body(body)
        if isinstance(self.body, FormBody):
            self.headers["Content-Type"] = FORM_CONTENT_TYPE
        elif isinstance(self.body, JsonBody) and self.headers.get("Content-Type") == FORM_CONTENT_TYPE:
            self.headers["Content-Type"] = JSON_CONTENT_TYPE
        return self

    def with_form(self, fields: Union[Mapping[str, Any], Sequence[Tuple[str, Any]]]) -> Request:
        return self.with_body(FormBody.of(fields))

    def with_params(self, params: Optional[Mapping[str, Any]]) -> Request:
        """Replace the URL query params."""
        self._check_mutable()
        self.params = dict(params or {})
        return self

    def with_timeout(self, timeout: float) -> Request:
        """Set the connection timeout in seconds."""
        self._check_mutable()
        self.timeout = _positive(timeout, "timeout")
        return self

    def with_recv_timeout(self, timeout: float) -> Request:
        """Set the receive timeout in seconds."""
        self._check_mutable()
        self.recv_timeout = _positive(timeout, "recv_timeout")
        return self

    # Rendering

    def render_url(self) -> str:
        """Map (api type, region, version, path) to the full URL."""
        path = self.path or ""
        t = self.api_type
        region = self.region

        if t is ApiType.CRM:
            base = f"{regions.api_url('zohoapis', region)}/crm/{self.version}/{path}"
        elif t is ApiType.RECRUIT:
            base = f"{regions.api_url('recruit', region)}/recruit/{self.version}/{path}"
        elif t is ApiType.BOOKINGS:
            base = f"{regions.api_url('zohoapis', region)}/bookings/{self.version}/{path}"
        elif t is ApiType.OAUTH:
            base = f"{self.base_url}/oauth/{self.version}/{path}"
        elif t is ApiType.PORTAL:
            base = f"{regions.api_url('projects', region)}{path}"
        elif t is ApiType.DESK:
            base = f"{regions.api_url('desk', region)}/api/{self.version}/{path}"
        elif t is ApiType.WORKDRIVE:
            base = f"{regions.api_url('zohoapis', region)}/workdrive/api/{self.version}/{path}"
        elif t is ApiType.BULK:
            base = f"{regions.api_url('zohoapis', region)}/crm/bulk/{self.version}/{path}"
        elif t is ApiType.RECRUIT_BULK:
            base = f"{regions.api_url('recruit', region)}/recruit/bulk/{self.version}/{path}"
        elif t is ApiType.COMPOSITE:
            base = f"{regions.api_url('zohoapis', region)}/crm/{self.version}/__composite_requests"
        elif t is ApiType.MEETING:
            base = f"{regions.api_url('meeting', region)}/api/{self.version}/{path}"
        else:
            base = f"{regions.api_url('cliq', region)}/api/{self.version}/{path}"

        return append_params(base, self.params)

    def encode_body(self) -> bytes:
        return self.body.encode()

    def prepare(self) -> PreparedRequest:
        """
        Render the request and seal the builder.

        Raises:
            ValidationError: If no HTTP method was set
            EncodingError: If the body cannot be serialized
        """
        if not self.method:
            raise ValidationError("HTTP method is not set", details={"api_type": self.api_type.value})

        prepared = PreparedRequest(
            api_type=self.api_type,
            method=self.method,
            url=self.render_url(),
            headers=dict(self.headers),
            body=self.encode_body(),
            timeout=self.timeout,
            recv_timeout=self.recv_timeout if self.recv_timeout is not None else self.timeout,
        )
        self._sealed = True
        return prepared

    def copy(self) -> Request:
        """Return an unsealed clone of this request."""
        clone = copy.copy(self)
        clone.headers = dict(self.headers)
        clone.params = dict(self.params)
        clone._sealed = False
        return clone

    # Sending

    def send_raw(self, transport: Optional[Transport] = None) -> HttpResult:
        """
        Prepare and perform the request without collapsing the status.

        Raises:
            TransportError: If no response was received
        """
        return self.prepare().send_raw(transport)

    def send(self, transport: Optional[Transport] = None) -> Any:
        """
        Prepare and perform the request.

        Returns:
            Decoded body of a 2xx response

        Raises:
            ApiError: For non-2xx responses
            TransportError: If no response was received
        """
        result = self.send_raw(transport)
        if result.ok:
            return result.body
        raise error_from_result(result.status_code, result.body)


def _api_type(value: Union[ApiType, str]) -> ApiType:
    try:
        return ApiType(value)
    except ValueError:
        raise ValidationError(f"Unknown API type {value!r}", details={"api_type": str(value)}) from None


def _positive(value: float, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ValueError(f"{name} must be a positive number, got {value!r}")
    return value


__all__ = [
    "ApiType",
    "API_TYPE_SERVICES",
    "JsonBody",
    "RawBody",
    "FormBody",
    "Body",
    "to_body",
    "encode_query",
    "append_params",
    "PreparedRequest",
    "Request",
]
