"""
Caller-facing request context.

An :class:`InputRequest` is the primary input of every endpoint function. It
carries the access token, the module API name, query params and body, the
Desk organization id, the region, and the options that drive token refresh,
retry and rate limiting for the call.

Example:
    >>> input = (InputRequest("token123")
    ...          .with_module_api_name("Leads")
    ...          .with_region("eu"))
    >>> input.region.value
    'eu'
"""

from __future__ import annotations
import dataclasses
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from . import regions
from .regions import Region, RegionLike


TokenRefreshCallback = Callable[[str], Any]


@dataclass(frozen=True)
class InputRequest:
    """
    Immutable context for one API call.

    ``with_*`` methods return updated copies.
    """
    access_token: str
    module_api_name: Optional[str] = None
    query_params: Dict[str, Any] = field(default_factory=dict)
    body: Any = None
    org_id: Optional[str] = None
    region: Region = regions.DEFAULT_REGION
    refresh_token: Optional[str] = None
    on_token_refresh: Optional[TokenRefreshCallback] = None
    retry_opts: Dict[str, Any] = field(default_factory=dict)
    rate_limit_opts: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not isinstance(self.access_token, str):
            raise TypeError("access_token must be a string")
        object.__setattr__(self, "region", regions.validate(self.region))
        object.__setattr__(self, "query_params", dict(self.query_params or {}))
        object.__setattr__(self, "retry_opts", dict(self.retry_opts or {}))
        object.__setattr__(self, "rate_limit_opts", dict(self.rate_limit_opts or {}))

    def _replace(self, **changes: Any) -> InputRequest:
        return dataclasses.replace(self, **changes)

    def with_access_token(self, access_token: str) -> InputRequest:
        return self._replace(access_token=access_token)

    def with_module_api_name(self, module_api_name: Optional[str]) -> InputRequest:
        return self._replace(module_api_name=module_api_name)

    def with_query_params(self, query_params: Optional[Dict[str, Any]]) -> InputRequest:
        return self._replace(query_params=query_params or {})

    def with_body(self, body: Any) -> InputRequest:
        """Set the body: a dict, a list (batch operations) or a string."""
        return self._replace(body=body)

    def with_org_id(self, org_id: str) -> InputRequest:
        """Set the organization id (required by Zoho Desk)."""
        return self._replace(org_id=org_id)

    def with_region(self, region: RegionLike) -> InputRequest:
        """
        Set the data-center region.

        Raises:
            InvalidRegionError: If the region is not supported
        """
        return self._replace(region=regions.validate(region))

    def with_refresh_token(self, refresh_token: Optional[str]) -> InputRequest:
        """Enable automatic token refresh on 401 responses."""
        return self._replace(refresh_token=refresh_token)

    def with_on_token_refresh(self, callback: Optional[TokenRefreshCallback]) -> InputRequest:
        """Register a callback invoked with the new access token after a refresh."""
        return self._replace(on_token_refresh=callback)

    def with_retry_opts(self, **opts: Any) -> InputRequest:
        """Override retry policy fields for this call, e.g. ``max_retries=5``."""
        return self._replace(retry_opts={**self.retry_opts, **opts})

    def with_rate_limit_opts(self, **opts: Any) -> InputRequest:
        """Override rate limiter options for this call, e.g. ``key="zoho:bulk"``."""
        return self._replace(rate_limit_opts={**self.rate_limit_opts, **opts})


__all__ = [
    "InputRequest",
    "TokenRefreshCallback",
]
