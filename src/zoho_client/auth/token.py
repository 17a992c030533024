"""
Zoho OAuth token refresh.

Each Zoho service (CRM, Desk, WorkDrive, ...) can have its own OAuth client
credentials; the ``service`` argument selects which ones are used. Tokens are
refreshed against the accounts server of the service's region.

Example::

    body = refresh_access_token("1000.abc123", service="desk", region="com")
    token = body["access_token"]
"""

import logging
from typing import Any, Dict, Mapping, Optional

from .. import regions
from ..config import CredentialsSource, Service, ServiceLike, get_config, to_service
from ..regions import RegionLike
from ..request import ApiType, Request
from ..runtime.errors import ApiError, TokenRefreshError, TransportError
from ..transport.http import Transport


logger = logging.getLogger(__name__)

OAUTH_VERSION = "v2"

# Vendor error codes returned (with HTTP 200) by the token endpoint
_KNOWN_ERRORS = {
    "invalid_code": "Refresh token is invalid or expired. Generate a new one.",
    "invalid_client": "Client ID or Client Secret is invalid. Check your configuration.",
}


def oauth_url(region: RegionLike) -> str:
    """
    Return the accounts server URL for a region.

    Examples:
        >>> oauth_url("eu")
        'https://accounts.zoho.eu'
    """
    return regions.oauth_url(region)


def build_refresh_request(refresh_token: str, client_id: str, client_secret: str,
                          region: RegionLike = regions.DEFAULT_REGION) -> Request:
    """Build the refresh-token grant request (credentials travel in the form body)."""
    return (Request(ApiType.OAUTH)
            .set_base_url(oauth_url(region))
            .with_version(OAUTH_VERSION)
            .with_path("token")
            .with_method("POST")
            .with_form({
                "client_id": client_id,
                "client_secret": client_secret,
                "refresh_token": refresh_token,
                "grant_type": "refresh_token",
            }))


def refresh_access_token(
    refresh_token: Any,
    service: ServiceLike = Service.CRM,
    region: Optional[RegionLike] = None,
    credentials: Optional[CredentialsSource] = None,
    transport: Optional[Transport] = None,
) -> Dict[str, Any]:
    """
    Exchange a refresh token for a new access token.

    Args:
        refresh_token: OAuth refresh token
        service: Service whose client credentials are used
        region: Accounts server region (defaults to the service's region)
        credentials: Credentials source (defaults to :func:`get_config`)
        transport: HTTP transport (defaults to the shared transport)

    Returns:
        Decoded token response, e.g. ``{"access_token": ..., "expires_in": 3600}``

    Raises:
        TokenRefreshError: If the token endpoint rejects the request
        ConfigurationError: If the service has no client credentials
    """
    svc = to_service(service)
    if not isinstance(refresh_token, str) or not refresh_token:
        raise TokenRefreshError("INVALID_REFRESH_TOKEN", details={"service": svc.value})

    cfg = (credentials or get_config)(svc)
    region = regions.validate(region) if region is not None else cfg.effective_region

    request = build_refresh_request(refresh_token, cfg.client_id, cfg.client_secret, region)
    try:
        body = request.send(transport)
    except (ApiError, TransportError) as e:
        raise TokenRefreshError(
            f"Token refresh for {svc.value} failed: {e.message}",
            details={"service": svc.value, "region": region.value},
            cause=e,
        ) from e

    if not isinstance(body, Mapping):
        raise TokenRefreshError("Unexpected token refresh response",
                                details={"service": svc.value, "response": body})

    if "error" in body:
        error = body["error"]
        message = _KNOWN_ERRORS.get(error) if isinstance(error, str) else None
        message = message or f"Token refresh rejected: {error}"
        raise TokenRefreshError(message, details={"service": svc.value, "error": error})

    return dict(body)


class OAuthRefresher:
    """
    Upstream refresh collaborator for :class:`~zoho_client.auth.token_cache.TokenCache`.

    Calling the instance performs one refresh-token grant and returns the
    decoded response.
    """

    def __init__(self, credentials: Optional[CredentialsSource] = None,
                 transport: Optional[Transport] = None):
        self.credentials = credentials or get_config
        self.transport = transport

    def __call__(self, service: ServiceLike, refresh_token: str,
                 region: Optional[RegionLike] = None) -> Dict[str, Any]:
        logger.debug(f"Refreshing access token for {to_service(service).value}")
        return refresh_access_token(
            refresh_token,
            service=service,
            region=region,
            credentials=self.credentials,
            transport=self.transport,
        )


__all__ = [
    "OAUTH_VERSION",
    "oauth_url",
    "build_refresh_request",
    "refresh_access_token",
    "OAuthRefresher",
]
