"""
Zoho Meeting API (v2).

Most endpoints are scoped by the organization id (``zsoid``) returned by
:func:`get_user_info`.
"""

from typing import Any, Optional

from ..client import ZohoClient
from ..input_request import InputRequest
from ..request import ApiType, Request
from ..validation import validate_ids
from .base import base_request, send

VERSION = "v2"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.MEETING, input, VERSION)


def get_user_info(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Current user details, including ``zsoid``."""
    request = _request(input).with_method("GET").with_path("user.json")
    return send(request, input, client)


def create_session(input: InputRequest, zsoid: str, client: Optional[ZohoClient] = None) -> Any:
    """Schedule a meeting; ``input.body`` is ``{"session": {...}}``."""
    validate_ids(zsoid=zsoid)
    request = (_request(input)
               .with_method("POST")
               .with_path(f"{zsoid}/sessions.json")
               .with_body(input.body))
    return send(request, input, client)


def list_sessions(input: InputRequest, zsoid: str, client: Optional[ZohoClient] = None) -> Any:
    validate_ids(zsoid=zsoid)
    request = _request(input).with_method("GET").with_path(f"{zsoid}/sessions.json")
    return send(request, input, client)


def delete_session(input: InputRequest, zsoid: str, meeting_key: str,
                   client: Optional[ZohoClient] = None) -> Any:
    validate_ids(zsoid=zsoid, meeting_key=meeting_key)
    request = _request(input).with_method("DELETE").with_path(f"{zsoid}/sessions/{meeting_key}.json")
    return send(request, input, client)


def get_participant_report(input: InputRequest, zsoid: str, meeting_key: str,
                           client: Optional[ZohoClient] = None) -> Any:
    validate_ids(zsoid=zsoid, meeting_key=meeting_key)
    request = (_request(input)
               .with_method("GET")
               .with_path(f"{zsoid}/participant/{meeting_key}.json"))
    return send(request, input, client)


def get_recordings(input: InputRequest, zsoid: str, meeting_key: str,
                   client: Optional[ZohoClient] = None) -> Any:
    validate_ids(zsoid=zsoid, meeting_key=meeting_key)
    request = _request(input).with_method("GET").with_path(f"{zsoid}/recordings/{meeting_key}.json")
    return send(request, input, client)
