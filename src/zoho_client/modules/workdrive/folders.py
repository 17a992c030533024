"""
Zoho WorkDrive Folders API (v1).
"""

from typing import Any, Optional

from ...client import ZohoClient
from ...input_request import InputRequest
from ...request import ApiType, Request
from ...validation import validate_id
from ..base import base_request, send

VERSION = "v1"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.WORKDRIVE, input, VERSION)


def list_team_folders(input: InputRequest, team_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(team_id, "team_id")
    request = _request(input).with_method("GET").with_path(f"teams/{team_id}/teamfolders")
    return send(request, input, client)


def list_folders(input: InputRequest, folder_id: str, client: Optional[ZohoClient] = None) -> Any:
    """List the children of a folder."""
    validate_id(folder_id, "folder_id")
    request = _request(input).with_method("GET").with_path(f"files/{folder_id}/files")
    return send(request, input, client)


def get_folder(input: InputRequest, folder_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(folder_id, "folder_id")
    request = _request(input).with_method("GET").with_path(f"files/{folder_id}")
    return send(request, input, client)


def create_folder(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """
    Create a folder.

    ``input.body``:
    ``{"data": {"attributes": {"name": "Reports", "parent_id": "..."}, "type": "files"}}``
    """
    request = _request(input).with_method("POST").with_path("files").with_body(input.body)
    return send(request, input, client)


def delete_folder(input: InputRequest, folder_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(folder_id, "folder_id")
    request = _request(input).with_method("DELETE").with_path(f"files/{folder_id}")
    return send(request, input, client)
