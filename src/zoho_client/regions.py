"""
Zoho data center region configuration.

Zoho operates multiple data centers worldwide. This module provides the
static lookup from (service family, region) to base URLs used by the
request builder, plus the accounts (OAuth) server per region.
"""

from __future__ import annotations
from enum import Enum
from typing import Dict, List, Union

from .runtime.errors import InvalidRegionError


class Region(str, Enum):
    """Supported data-center regions."""
    IN = "in"
    COM = "com"
    EU = "eu"
    AU = "au"
    JP = "jp"
    UK = "uk"
    CA = "ca"
    SA = "sa"


DEFAULT_REGION = Region.IN

RegionLike = Union[Region, str]

# OAuth/Accounts URLs for token operations
OAUTH_URLS: Dict[Region, str] = {
    Region.IN: "https://accounts.zoho.in",
    Region.COM: "https://accounts.zoho.com",
    Region.EU: "https://accounts.zoho.eu",
    Region.AU: "https://accounts.zoho.com.au",
    Region.JP: "https://accounts.zoho.jp",
    Region.UK: "https://accounts.zoho.uk",
    Region.CA: "https://accounts.zohocloud.ca",
    Region.SA: "https://accounts.zoho.sa",
}

# API base URLs by service family
API_URLS: Dict[str, Dict[Region, str]] = {
    # CRM, Bookings, WorkDrive, Bulk, Composite
    "zohoapis": {
        Region.IN: "https://www.zohoapis.in",
        Region.COM: "https://www.zohoapis.com",
        Region.EU: "https://www.zohoapis.eu",
        Region.AU: "https://www.zohoapis.com.au",
        Region.JP: "https://www.zohoapis.jp",
        Region.UK: "https://www.zohoapis.uk",
        Region.CA: "https://www.zohoapis.ca",
        Region.SA: "https://www.zohoapis.sa",
    },
    "recruit": {
        Region.IN: "https://recruit.zoho.in",
        Region.COM: "https://recruit.zoho.com",
        Region.EU: "https://recruit.zoho.eu",
        Region.AU: "https://recruit.zoho.com.au",
        Region.JP: "https://recruit.zoho.jp",
        Region.UK: "https://recruit.zoho.uk",
        Region.CA: "https://recruit.zohocloud.ca",
        Region.SA: "https://recruit.zoho.sa",
    },
    "desk": {
        Region.IN: "https://desk.zoho.in",
        Region.COM: "https://desk.zoho.com",
        Region.EU: "https://desk.zoho.eu",
        Region.AU: "https://desk.zoho.com.au",
        Region.JP: "https://desk.zoho.jp",
        Region.UK: "https://desk.zoho.uk",
        Region.CA: "https://desk.zohocloud.ca",
        Region.SA: "https://desk.zoho.sa",
    },
    "projects": {
        Region.IN: "https://projectsapi.zoho.in",
        Region.COM: "https://projectsapi.zoho.com",
        Region.EU: "https://projectsapi.zoho.eu",
        Region.AU: "https://projectsapi.zoho.com.au",
        Region.JP: "https://projectsapi.zoho.jp",
        Region.UK: "https://projectsapi.zoho.uk",
        Region.CA: "https://projectsapi.zohocloud.ca",
        Region.SA: "https://projectsapi.zoho.sa",
    },
    "meeting": {
        Region.IN: "https://meeting.zoho.in",
        Region.COM: "https://meeting.zoho.com",
        Region.EU: "https://meeting.zoho.eu",
        Region.AU: "https://meeting.zoho.com.au",
        Region.JP: "https://meeting.zoho.jp",
        Region.UK: "https://meeting.zoho.uk",
        Region.CA: "https://meeting.zohocloud.ca",
        Region.SA: "https://meeting.zoho.sa",
    },
    "cliq": {
        Region.IN: "https://cliq.zoho.in",
        Region.COM: "https://cliq.zoho.com",
        Region.EU: "https://cliq.zoho.eu",
        Region.AU: "https://cliq.zoho.com.au",
        Region.JP: "https://cliq.zoho.jp",
        Region.UK: "https://cliq.zoho.uk",
        Region.CA: "https://cliq.zohocloud.ca",
        Region.SA: "https://cliq.zoho.sa",
    },
}


def valid_regions() -> List[Region]:
    """Return the supported regions in documentation order."""
    return list(Region)


def is_valid(region: RegionLike) -> bool:
    """Check whether ``region`` names a supported data center."""
    try:
        Region(region)
    except ValueError:
        return False
    return True


def validate(region: RegionLike) -> Region:
    """
    Validate a region and return it as a :class:`Region`.

    Raises:
        InvalidRegionError: If the region is unknown
    """
    try:
        return Region(region)
    except ValueError:
        valid = ", ".join(r.value for r in Region)
        raise InvalidRegionError(
            f"Invalid region {region!r}. Valid regions are: {valid}",
            details={"region": str(region)},
        ) from None


def _lookup(table: Dict[Region, str], region: RegionLike, fallback: str) -> str:
    try:
        return table.get(Region(region), fallback)
    except ValueError:
        return fallback


def oauth_url(region: RegionLike) -> str:
    """
    Return the accounts server URL for a region.

    Unknown regions fall back to the default region.
    """
    return _lookup(OAUTH_URLS, region, OAUTH_URLS[DEFAULT_REGION])


def api_url(family: str, region: RegionLike) -> str:
    """
    Return the API base URL for a service family in a region.

    Unknown families or regions fall back to the default ``zohoapis`` URL so
    URL construction is total.
    """
    default = API_URLS["zohoapis"][DEFAULT_REGION]
    table = API_URLS.get(family)
    if table is None:
        return default
    return _lookup(table, region, default)


__all__ = [
    "Region",
    "DEFAULT_REGION",
    "OAUTH_URLS",
    "API_URLS",
    "valid_regions",
    "is_valid",
    "validate",
    "oauth_url",
    "api_url",
]
