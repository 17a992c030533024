"""
Transport layer for the Zoho client.
"""

from .http import (
    HttpResult,
    Transport,
    RequestsTransport,
    parse_body,
    classify_exception,
    default_transport,
    set_default_transport,
)

__all__ = [
    "HttpResult",
    "Transport",
    "RequestsTransport",
    "parse_body",
    "classify_exception",
    "default_transport",
    "set_default_transport",
]
