"""
Zoho Bulk Write API.

Inserts, updates or upserts up to 25,000 records per job, for CRM
(``/crm/bulk/v8``) or Recruit (``/recruit/bulk/v2``):

1. Upload a CSV (or zipped CSV) file and note the returned ``file_id``
2. Create a job referencing the file and its field mappings
3. Poll the job status until it completes

The file content is passed in already encoded; building the CSV is up to
the caller.
"""

import logging
import time
from typing import Any, Callable, Optional

from ...client import ZohoClient
from ...config import Service, ServiceLike
from ...input_request import InputRequest
from ...request import Request
from ...runtime.errors import ErrorCode, ValidationError, ZohoError
from ...validation import validate_id
from ..base import base_request, send
from .read import api_config

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 25 * 1024 * 1024

# Job states that mean "poll again"
PENDING_STATES = frozenset({"ADDED", "QUEUED", "IN PROGRESS", "IN_PROGRESS"})


def _request(input: InputRequest, service: ServiceLike) -> Request:
    api_type, version = api_config(service)
    return base_request(api_type, input, version)


def format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def validate_file(body: Any) -> bytes:
    """
    Check an upload body and return it as bytes.

    Raises:
        ValidationError: If the body is not ``bytes``/``str`` or exceeds 25 MB
    """
    if isinstance(body, str):
        body = body.encode("utf-8")
    if not isinstance(body, (bytes, bytearray)):
        raise ValidationError("File body must be binary data", ErrorCode.INVALID_FILE_BODY,
                              details={"field": "body"})

    size = len(body)
    if size > MAX_FILE_SIZE:
        raise ValidationError(
            f"File size {format_size(size)} exceeds maximum allowed size of {format_size(MAX_FILE_SIZE)}",
            ErrorCode.FILE_SIZE_EXCEEDED,
            details={"actual_size": size, "max_size": MAX_FILE_SIZE},
        )
    return bytes(body)


def upload_file(input: InputRequest, module_name: str, service: ServiceLike = Service.CRM,
                client: Optional[ZohoClient] = None) -> Any:
    """
    Upload a CSV file for a bulk write job.

    ``input.body`` holds the encoded file content. Returns the upload
    response, e.g. ``{"status": "success", "details": {"file_id": "..."}}``.
    """
    validate_id(module_name, "module_name")
    content = validate_file(input.body)
    request = (_request(input, service)
               .with_method("POST")
               .with_path("write/file")
               .with_params({**input.query_params, "module": module_name})
               .set_headers({"Content-Type": "text/csv"})
               .with_body(content))
    return send(request, input, client)


def create_job(input: InputRequest, service: ServiceLike = Service.CRM,
               client: Optional[ZohoClient] = None) -> Any:
    """
    Create a bulk write job.

    ``input.body`` holds the job definition, e.g.::

        {
            "operation": "insert",
            "resource": [{
                "type": "data",
                "module": {"api_name": "Leads"},
                "file_id": file_id,
                "field_mappings": [{"api_name": "Last_Name", "index": 0}],
            }],
        }
    """
    request = _request(input, service).with_method("POST").with_path("write").with_body(input.body)
    return send(request, input, client)


def get_job_status(input: InputRequest, job_id: str, service: ServiceLike = Service.CRM,
                   client: Optional[ZohoClient] = None) -> Any:
    """Fetch the status of a bulk write job (``QUEUED``, ``IN_PROGRESS``, ``COMPLETED``, ...)."""
    validate_id(job_id, "job_id")
    request = _request(input, service).with_method("GET").with_path(f"write/{job_id}")
    return send(request, input, client)


def poll_until_complete(
    input: InputRequest,
    job_id: str,
    service: ServiceLike = Service.CRM,
    client: Optional[ZohoClient] = None,
    max_attempts: int = 60,
    poll_interval: float = 5.0,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Poll a bulk write job until it leaves the pending states.

    Returns:
        The final job status (``state`` is ``COMPLETED``, ``FAILED``, ...)

    Raises:
        ZohoError: If the job is still pending after ``max_attempts`` polls
    """
    for attempt in range(1, max_attempts + 1):
        status = get_job_status(input, job_id, service, client)
        state = status.get("state") if isinstance(status, dict) else None
        if state not in PENDING_STATES:
            return status

        logger.debug(f"Bulk write job {job_id} is {state} (poll {attempt}/{max_attempts})")
        if attempt < max_attempts:
            sleep(poll_interval)

    raise ZohoError(f"Bulk write job {job_id} did not complete after {max_attempts} polls",
                    ErrorCode.TIMEOUT, details={"job_id": job_id})
