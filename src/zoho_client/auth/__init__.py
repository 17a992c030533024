"""
OAuth token handling for the Zoho client.
"""

from .token import OAuthRefresher, oauth_url, refresh_access_token
from .token_cache import TokenCache, TokenEntry, default_token_cache, set_default_token_cache

__all__ = [
    "OAuthRefresher",
    "oauth_url",
    "refresh_access_token",
    "TokenCache",
    "TokenEntry",
    "default_token_cache",
    "set_default_token_cache",
]
