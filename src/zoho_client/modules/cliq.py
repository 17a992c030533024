"""
Zoho Cliq API (v2).
"""

from typing import Any, Optional

from ..auth.token_cache import TokenCache
from ..client import ZohoClient, default_client
from ..config import Service
from ..input_request import InputRequest
from ..request import ApiType
from ..validation import validate_id
from .base import base_request, send

VERSION = "v2"


def create_message(message: str, channel_name: str, input: Optional[InputRequest] = None,
                   client: Optional[ZohoClient] = None,
                   token_cache: Optional[TokenCache] = None) -> Any:
    """
    Post a message to a channel by its unique name.

    Without ``input``, the access token comes from the token cache, refreshed
    with the configured Cliq credentials when needed.

    Raises:
        ValidationError: If the channel name is unsafe
        TokenRefreshError: If no token could be obtained
    """
    validate_id(channel_name, "channel_name")

    if input is None:
        cache = token_cache or (client or default_client()).token_cache
        input = InputRequest(cache.get_or_refresh(Service.CLIQ))

    request = (base_request(ApiType.CLIQ, input, VERSION)
               .with_method("POST")
               .with_path(f"channelsbyname/{channel_name}/message")
               .with_body({"text": message}))
    return send(request, input, client)
