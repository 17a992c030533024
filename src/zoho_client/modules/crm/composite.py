"""
Zoho CRM Composite API.

Executes up to 5 sub-requests (GET, POST, PUT, DELETE) in a single call.
Composite requests are not transactional: each sub-request succeeds or fails
on its own, and every entry of ``__composite_responses`` carries its own
status code.

With ``"parallel_execution": False`` sub-requests run in order and later
ones may reference earlier responses with ``@{reference_id:$.json_path}``
placeholders; in parallel mode (the default) placeholders are rejected.

Example::

    body = {
        "parallel_execution": False,
        "__composite_requests": [
            composite.build_request("GET", "find", "/crm/v8/Contacts/search?email=a@b.c"),
            composite.build_request("PUT", "update", "/crm/v8/Contacts/@{find:$.data[0].id}",
                                    body={"data": [{"Title": "CTO"}]}),
        ],
    }
    responses = composite.execute(InputRequest(token).with_body(body))
"""

import logging
from typing import Any, Dict, Optional

from ...client import ZohoClient
from ...input_request import InputRequest
from ...request import ApiType
from ...runtime.errors import ValidationError
from ..base import base_request, send


logger = logging.getLogger(__name__)

VERSION = "v8"
MAX_COMPOSITE_REQUESTS = 5
VALID_METHODS = ("GET", "POST", "PUT", "DELETE")


def build_request(method: str, reference_id: str, url: str, body: Any = None) -> Dict[str, Any]:
    """
    Build one composite sub-request.

    Examples:
        >>> build_request("get", "leads", "/crm/v8/Leads")
        {'method': 'GET', 'reference_id': 'leads', 'url': '/crm/v8/Leads'}
    """
    item = {"method": str(method).upper(), "reference_id": reference_id, "url": url}
    if body is not None:
        item["body"] = body
    return item


def _fail(message: str) -> None:
    raise ValidationError(message, details={"api": "composite"})


def _check_string(item: Dict[str, Any], field: str, index: int) -> None:
    value = item[field]
    if not isinstance(value, str) or value.strip() == "":
        _fail(f"Request {index}: {field} must be a non-empty string")


def validate_composite_body(body: Any) -> None:
    """
    Validate a composite request body.

    Raises:
        ValidationError: Describing the first problem found
    """
    if not isinstance(body, dict) or not isinstance(body.get("__composite_requests"), list):
        _fail("Body must contain __composite_requests array")

    requests = body["__composite_requests"]
    if not requests:
        _fail("At least one composite request is required")

    parallel = body.get("parallel_execution", True)
    if not isinstance(parallel, bool):
        _fail(f"parallel_execution must be a boolean (true or false), got: {parallel!r}")

    if len(requests) > MAX_COMPOSITE_REQUESTS:
        _fail(f"Composite API supports a maximum of {MAX_COMPOSITE_REQUESTS} requests, "
              f"got {len(requests)}")

    if parallel and any(isinstance(r, dict) and "@{" in str(r.get("url", "")) for r in requests):
        _fail("Data reference placeholders (@{...}) can only be used with "
              "parallel_execution: false (sequential mode)")

    for index, item in enumerate(requests, start=1):
        if not isinstance(item, dict):
            _fail(f"Request {index}: must be a map")
        for field in ("method", "reference_id", "url"):
            if field not in item:
                _fail(f"Request {index}: missing required field '{field}'")
        method = item["method"]
        if not isinstance(method, str):
            _fail(f"Request {index}: method must be a string")
        if method.upper() not in VALID_METHODS:
            _fail(f"Request {index}: invalid method '{method}'. "
                  f"Must be one of: {', '.join(VALID_METHODS)}")
        _check_string(item, "reference_id", index)
        _check_string(item, "url", index)

    reference_ids = [item["reference_id"] for item in requests]
    if len(reference_ids) != len(set(reference_ids)):
        _fail("Duplicate reference_id found. Each request must have a unique reference_id")


def execute(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """
    Execute the composite request in ``input.body``.

    Returns:
        The response body with ``__composite_responses``

    Raises:
        ValidationError: If the body is malformed (nothing is sent)
    """
    if input.module_api_name:
        logger.warning("Composite.execute: module_api_name is set but will be ignored. "
                       "Sub-request paths come from the __composite_requests body.")

    validate_composite_body(input.body)

    request = (base_request(ApiType.COMPOSITE, input, VERSION)
               .with_method("POST")
               .with_body(input.body))
    return send(request, input, client)
