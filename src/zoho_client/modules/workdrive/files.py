"""
Zoho WorkDrive Files API (v1).

File operations against ``www.zohoapis.<region>/workdrive/api/v1``. Bodies
for rename, move and copy follow WorkDrive's JSON:API shape, e.g.::

    {"data": {"attributes": {"name": "report.pdf"}, "type": "files"}}
"""

import mimetypes
from typing import Any, Optional

from ...client import ZohoClient
from ...input_request import InputRequest
from ...request import ApiType, Request
from ...validation import validate_id
from ..base import base_request, send

VERSION = "v1"
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.WORKDRIVE, input, VERSION)


def mime_type(file_name: str) -> str:
    """
    Guess a content type from a file name.

    Examples:
        >>> mime_type("report.pdf")
        'application/pdf'
    """
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or DEFAULT_CONTENT_TYPE


def list_files(input: InputRequest, folder_id: str, client: Optional[ZohoClient] = None) -> Any:
    """List the files inside a folder."""
    validate_id(folder_id, "folder_id")
    request = _request(input).with_method("GET").with_path(f"files/{folder_id}/files")
    return send(request, input, client)


def get_file(input: InputRequest, file_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(file_id, "file_id")
    request = _request(input).with_method("GET").with_path(f"files/{file_id}")
    return send(request, input, client)


def download_file(input: InputRequest, file_id: str, client: Optional[ZohoClient] = None) -> Any:
    """Download file content; non-JSON content is returned as text or bytes."""
    validate_id(file_id, "file_id")
    request = _request(input).with_method("GET").with_path(f"download/{file_id}")
    return send(request, input, client)


def upload_file(input: InputRequest, folder_id: str, file_name: str,
                client: Optional[ZohoClient] = None) -> Any:
    """
    Upload ``input.body`` (bytes) as ``file_name`` into a folder.

    The content type is guessed from the file name.
    """
    validate_id(folder_id, "folder_id")
    request = (_request(input)
               .with_method("POST")
               .with_path("upload")
               .with_params({"parent_id": folder_id, "filename": file_name})
               .set_headers({"Content-Type": mime_type(file_name)})
               .with_body(input.body))
    return send(request, input, client)


def rename_file(input: InputRequest, file_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(file_id, "file_id")
    request = _request(input).with_method("PATCH").with_path(f"files/{file_id}").with_body(input.body)
    return send(request, input, client)


def move_file(input: InputRequest, file_id: str, client: Optional[ZohoClient] = None) -> Any:
    """Move a file; ``input.body`` sets the new ``parent_id`` attribute."""
    validate_id(file_id, "file_id")
    request = _request(input).with_method("PATCH").with_path(f"files/{file_id}").with_body(input.body)
    return send(request, input, client)


def copy_file(input: InputRequest, file_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(file_id, "file_id")
    request = (_request(input)
               .with_method("POST")
               .with_path(f"files/{file_id}/copy")
               .with_body(input.body))
    return send(request, input, client)


def delete_file(input: InputRequest, file_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(file_id, "file_id")
    request = _request(input).with_method("DELETE").with_path(f"files/{file_id}")
    return send(request, input, client)


def search_files(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Search files; the query goes in ``input.query_params``."""
    request = _request(input).with_method("GET").with_path("files/search")
    return send(request, input, client)
