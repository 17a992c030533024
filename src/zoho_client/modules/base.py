"""
Shared plumbing for endpoint modules.

Endpoint modules are thin path/verb tables: they build a
:class:`~zoho_client.request.Request` from an
:class:`~zoho_client.input_request.InputRequest` and hand it to a
:class:`~zoho_client.client.ZohoClient`.
"""

from typing import Any, Optional, Union

from ..client import ZohoClient, default_client
from ..input_request import InputRequest
from ..request import ApiType, Request
from ..runtime.errors import ValidationError
from ..validation import validate_id


def base_request(api_type: Union[ApiType, str], input: InputRequest,
                 version: Optional[str] = None) -> Request:
    """Request carrying the caller's token, region and query params."""
    request = (Request(api_type)
               .set_access_token(input.access_token)
               .with_region(input.region)
               .with_params(input.query_params))
    if version is not None:
        request.with_version(version)
    return request


def send(request: Request, input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Send through ``client`` (or the default client) and return the body."""
    return (client or default_client()).send(request, input)


def module_name(input: InputRequest) -> str:
    """
    Return the validated module API name.

    Raises:
        ValidationError: If the name is missing or unsafe
    """
    if not input.module_api_name:
        raise ValidationError("module_api_name is required", details={"field": "module_api_name"})
    return validate_id(input.module_api_name, "module_api_name")


def data_body(input: InputRequest) -> dict:
    """Wrap the caller's records in the ``{"data": [...]}`` envelope."""
    return {"data": input.body}
