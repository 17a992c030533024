"""
Zoho Bulk Read API.

Creates asynchronous export jobs and polls their status, for CRM
(``/crm/bulk/v8``) or Recruit (``/recruit/bulk/v2``).
"""

from typing import Any, Optional, Tuple

from ...client import ZohoClient
from ...config import Service, ServiceLike, to_service
from ...input_request import InputRequest
from ...request import ApiType, Request
from ...runtime.errors import ValidationError
from ...validation import validate_id
from ..base import base_request, send

_API_CONFIG = {
    Service.CRM: (ApiType.BULK, "v8"),
    Service.RECRUIT: (ApiType.RECRUIT_BULK, "v2"),
}


def api_config(service: ServiceLike) -> Tuple[ApiType, str]:
    """Return ``(api_type, version)`` for a bulk-capable service."""
    svc = to_service(service)
    if svc not in _API_CONFIG:
        raise ValidationError(f"Bulk APIs are not supported for {svc.value}",
                              details={"service": svc.value})
    return _API_CONFIG[svc]


def _request(input: InputRequest, service: ServiceLike) -> Request:
    api_type, version = api_config(service)
    return base_request(api_type, input, version)


def create_job(input: InputRequest, service: ServiceLike = Service.CRM,
               client: Optional[ZohoClient] = None) -> Any:
    """
    Create a bulk read job.

    ``input.body`` holds the job definition, e.g.
    ``{"query": {"module": {"api_name": "Leads"}}}``.
    """
    request = _request(input, service).with_method("POST").with_path("read").with_body(input.body)
    return send(request, input, client)


def get_job_status(input: InputRequest, job_id: str, service: ServiceLike = Service.CRM,
                   client: Optional[ZohoClient] = None) -> Any:
    """Fetch the status of a bulk read job."""
    validate_id(job_id, "job_id")
    request = _request(input, service).with_method("GET").with_path(f"read/{job_id}")
    return send(request, input, client)
