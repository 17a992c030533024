"""
Zoho Client - multi-tenant client for Zoho REST APIs

This package provides request building and URL routing across Zoho services
and data-center regions, coordinated OAuth token refresh, retry with
exponential backoff, and lazy pagination.
"""

# Errors
from .runtime.errors import *

# Regions and configuration
from .regions import Region, DEFAULT_REGION, valid_regions
from .config import Service, ServiceConfig, ClientSettings, get_config

# Requests and transport
from .request import ApiType, Request, PreparedRequest, JsonBody, RawBody, FormBody
from .transport import HttpResult, Transport, RequestsTransport
from .input_request import InputRequest

# Recovery
from .recovery import (
    RetryPolicy, RetryEngine, calculate_delay, with_retry,
    RateLimiter, NoopRateLimiter, SlidingWindowRateLimiter,
)

# Auth
from .auth import TokenCache, OAuthRefresher, default_token_cache, refresh_access_token

# Client and pagination
from .client import ZohoClient, default_client
from .pagination import PageOptions, PageError, stream_all, fetch_all, fetch_page

__version__ = "0.1.0"
__all__ = [
    # Errors
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

    # Regions and configuration
    "Region",
    "DEFAULT_REGION",
    "valid_regions",
    "Service",
    "ServiceConfig",
    "ClientSettings",
    "get_config",

    # Requests and transport
    "ApiType",
    "Request",
    "PreparedRequest",
    "JsonBody",
    "RawBody",
    "FormBody",
    "HttpResult",
    "Transport",
    "RequestsTransport",
    "InputRequest",

    # Recovery
    "RetryPolicy",
    "RetryEngine",
    "calculate_delay",
    "with_retry",
    "RateLimiter",
    "NoopRateLimiter",
    "SlidingWindowRateLimiter",

    # Auth
    "TokenCache",
    "OAuthRefresher",
    "default_token_cache",
    "refresh_access_token",

    # Client and pagination
    "ZohoClient",
    "default_client",
    "PageOptions",
    "PageError",
    "stream_all",
    "fetch_all",
    "fetch_page",
]
