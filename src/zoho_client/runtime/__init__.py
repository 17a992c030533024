"""
Runtime support for the Zoho client.

Currently holds the error model shared by every component.
"""

from .errors import *

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
