"""
Test the error model and status code mapping.
"""

import pytest

from zoho_client.runtime.errors import (
    ApiError, AuthenticationError, ErrorCode, NetworkErrorKind, PaginationError, RateLimitError,
    ServerError, TokenRefreshError, TransportError, ZohoError, error_from_result, vendor_error_code,
)


@pytest.mark.parametrize("status,cls,code", [
    (400, ApiError, ErrorCode.BAD_REQUEST),
    (401, AuthenticationError, ErrorCode.UNAUTHENTICATED),
    (403, ApiError, ErrorCode.FORBIDDEN),
    (404, ApiError, ErrorCode.NOT_FOUND),
    (409, ApiError, ErrorCode.CONFLICT),
    (429, RateLimitError, ErrorCode.RATE_LIMITED),
    (500, ServerError, ErrorCode.SERVICE_UNAVAILABLE),
    (529, ServerError, ErrorCode.SERVICE_UNAVAILABLE),
])
def test_error_from_result(status, cls, code):
    error = error_from_result(status, {"code": "X"})

    assert type(error) is cls
    assert error.code is code
    assert error.status_code == status
    assert error.body == {"code": "X"}


@pytest.mark.parametrize("body,expected", [
    ({"code": "INVALID_TOKEN"}, "INVALID_TOKEN"),
    ({"data": [{"code": "DUPLICATE_DATA", "status": "error"}]}, "DUPLICATE_DATA"),
    ({"error": "invalid_code"}, "invalid_code"),
    ({"data": []}, None),
    ("plain text", None),
    (None, None),
])
def test_vendor_error_code(body, expected):
    assert vendor_error_code(body) == expected


def test_api_errors_are_zoho_errors():
    assert issubclass(AuthenticationError, ApiError)
    assert issubclass(ApiError, ZohoError)
    assert issubclass(TokenRefreshError, ZohoError)


def test_transport_error_kind():
    timeout = TransportError(NetworkErrorKind.TIMEOUT)
    refused = TransportError("econnrefused", "connection refused")

    assert timeout.code is ErrorCode.TIMEOUT
    assert refused.kind is NetworkErrorKind.ECONNREFUSED
    assert refused.code is ErrorCode.NETWORK_ERROR
    assert refused.message == "connection refused"


def test_str_and_to_dict():
    cause = ValueError("bad")
    error = ZohoError("Something failed", ErrorCode.INTERNAL, {"key": "v"}, cause)

    assert str(error) == "[INTERNAL] Something failed | Details: {'key': 'v'} | Caused by: bad"
    assert error.to_dict() == {
        "code": ErrorCode.INTERNAL.value,
        "message": "Something failed",
        "details": {"key": "v"},
        "cause": "bad",
    }


def test_pagination_error():
    cause = ServerError(503)
    error = PaginationError(3, cause)

    assert error.page == 3
    assert error.cause is cause
    assert error.details == {"page": 3}
