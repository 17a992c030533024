"""
Zoho Client Error Model

This module provides the error handling framework for the Zoho client,
covering transport failures, non-2xx API responses, token refresh failures
and local validation problems.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import Enum, IntEnum


class ErrorCode(IntEnum):
    """Client error codes."""

    # Success
    OK = 0

    # General errors (1-99)
    UNKNOWN = 1
    INTERNAL = 2
    INVALID_URL = 3
    NOT_FOUND = 4
    CONFLICT = 6

    # Encoding errors (100-199)
    ENCODING_ERROR = 100
    INVALID_JSON = 101

    # Network errors (200-299)
    NETWORK_ERROR = 200
    CONNECTION_FAILED = 201
    TIMEOUT = 202
    RATE_LIMITED = 203
    SERVICE_UNAVAILABLE = 204

    # Authentication errors (300-399)
    UNAUTHENTICATED = 300
    FORBIDDEN = 301
    TOKEN_REFRESH_FAILED = 310

    # API errors (400-499)
    API_ERROR = 400
    BAD_REQUEST = 401

    # Validation errors (500-599)
    VALIDATION_ERROR = 500
    INVALID_REGION = 501
    INVALID_ID = 502
    REQUEST_SEALED = 503
    INVALID_FILE_BODY = 504
    FILE_SIZE_EXCEEDED = 505

    # Configuration errors (600-699)
    CONFIGURATION_ERROR = 600

    # Pagination errors (700-799)
    PAGE_FETCH_FAILED = 700


class NetworkErrorKind(str, Enum):
    """Transport-level failure kinds."""

    TIMEOUT = "timeout"
    ECONNREFUSED = "econnrefused"
    CLOSED = "closed"
    NXDOMAIN = "nxdomain"
    EHOSTUNREACH = "ehostunreach"
    UNKNOWN = "unknown"


class ZohoError(Exception):
    """
    Base class for all client errors.

    Provides structured error information: a code, free-form details
    and the underlying cause, if any.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a client error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class TransportError(ZohoError):
    """Transport failure: the request never produced an HTTP response."""

    def __init__(self, kind: NetworkErrorKind, message: str = "",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        self.kind = NetworkErrorKind(kind)
        code = ErrorCode.TIMEOUT if self.kind is NetworkErrorKind.TIMEOUT else ErrorCode.NETWORK_ERROR
        super().__init__(message or f"Transport error: {self.kind.value}", code, details, cause)


class ApiError(ZohoError):
    """Non-2xx HTTP response."""

    def __init__(self, status_code: int, body: Any = None, message: Optional[str] = None,
                 code: ErrorCode = ErrorCode.API_ERROR, cause: Optional[Exception] = None):
        self.status_code = status_code
        self.body = body
        details = {"status_code": status_code}
        vendor_code = vendor_error_code(body)
        if vendor_code:
            details["vendor_code"] = vendor_code
        super().__init__(message or f"HTTP {status_code}", code, details, cause)


class AuthenticationError(ApiError):
    """401 responses."""

    def __init__(self, status_code: int = 401, body: Any = None, message: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(status_code, body, message or "Unauthorized", ErrorCode.UNAUTHENTICATED, cause)


class RateLimitError(ApiError):
    """429 responses."""

    def __init__(self, status_code: int = 429, body: Any = None, message: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(status_code, body, message or "Rate limited", ErrorCode.RATE_LIMITED, cause)


class ServerError(ApiError):
    """5xx responses."""

    def __init__(self, status_code: int = 500, body: Any = None, message: Optional[str] = None,
                 cause: Optional[Exception] = None):
        super().__init__(status_code, body, message, ErrorCode.SERVICE_UNAVAILABLE, cause)


class TokenRefreshError(ZohoError):
    """Upstream OAuth refresh failed."""

    def __init__(self, message: str = "Token refresh failed",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.TOKEN_REFRESH_FAILED, details, cause)


class ValidationError(ZohoError):
    """Local input validation errors. Never retried."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.VALIDATION_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class InvalidRegionError(ValidationError):
    """Unknown data-center region."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.INVALID_REGION, details)


class RequestSealedError(ValidationError):
    """A prepared request was mutated."""

    def __init__(self, message: str = "Request has already been prepared and cannot be modified"):
        super().__init__(message, ErrorCode.REQUEST_SEALED)


class ConfigurationError(ZohoError):
    """Missing or malformed credentials/configuration."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCode.CONFIGURATION_ERROR, details)


class EncodingError(ZohoError):
    """Request body could not be serialized."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.ENCODING_ERROR, details, cause)


class PaginationError(ZohoError):
    """A page fetch failed while draining a paginated listing."""

    def __init__(self, page: int, cause: Exception):
        self.page = page
        super().__init__(f"Failed to fetch page {page}", ErrorCode.PAGE_FETCH_FAILED,
                         {"page": page}, cause)


def vendor_error_code(body: Any) -> Optional[str]:
    """
    Extract the vendor error code from a response body.

    Zoho APIs report errors either as ``{"code": ...}`` or nested inside
    ``{"data": [{"code": ...}]}``.
    """
    if isinstance(body, dict):
        if isinstance(body.get("code"), str):
            return body["code"]
        data = body.get("data")
        if isinstance(data, list) and data and isinstance(data[0], dict):
            code = data[0].get("code")
            if isinstance(code, str):
                return code
        if isinstance(body.get("error"), str):
            return body["error"]
    return None


def error_from_result(status_code: int, body: Any) -> ApiError:
    """
    Create an appropriate error from a non-2xx response.

    Args:
        status_code: HTTP status code
        body: Parsed response body

    Returns:
        Appropriate ApiError subclass instance
    """
    if status_code == 401:
        return AuthenticationError(status_code, body)
    elif status_code == 403:
        return ApiError(status_code, body, "Forbidden", ErrorCode.FORBIDDEN)
    elif status_code == 404:
        return ApiError(status_code, body, "Not found", ErrorCode.NOT_FOUND)
    elif status_code == 409:
        return ApiError(status_code, body, "Conflict", ErrorCode.CONFLICT)
    elif status_code == 429:
        return RateLimitError(status_code, body)
    elif status_code >= 500:
        return ServerError(status_code, body)
    elif 400 <= status_code < 500:
        return ApiError(status_code, body, code=ErrorCode.BAD_REQUEST)
    return ApiError(status_code, body)


__all__ = [
    "ErrorCode",
    "NetworkErrorKind",
    "ZohoError",
    "TransportError",
    "ApiError",
    "AuthenticationError",
    "RateLimitError",
    "ServerError",
    "TokenRefreshError",
    "ValidationError",
    "InvalidRegionError",
    "RequestSealedError",
    "ConfigurationError",
    "EncodingError",
    "PaginationError",
    "vendor_error_code",
    "error_from_result",
]
