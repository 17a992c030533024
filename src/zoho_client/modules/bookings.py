"""
Zoho Bookings API (v1).

Appointment endpoints take form-encoded bodies; ``input.body`` is a mapping
of form fields, e.g.::

    {"service_id": "...", "staff_id": "...", "from_time": "30-Apr-2025 10:00:00",
     "customer_details": json.dumps({"name": "Jane", "email": "jane@example.com"})}
"""

from typing import Any, Mapping, Optional

from ..client import ZohoClient
from ..input_request import InputRequest
from ..request import ApiType, Request
from ..runtime.errors import ValidationError
from .base import base_request, send

VERSION = "v1"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.BOOKINGS, input, VERSION)


def _form_request(input: InputRequest, path: str) -> Request:
    if not isinstance(input.body, Mapping):
        raise ValidationError("Bookings form body must be a mapping of fields",
                              details={"path": path})
    return _request(input).with_method("POST").with_path(path).with_form(input.body)


def get_appointment(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Fetch an appointment; ``input.query_params`` carries ``booking_id``."""
    request = _request(input).with_method("GET").with_path("json/appointment")
    return send(request, input, client)


def book_appointment(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _form_request(input, "json/appointment")
    return send(request, input, client)


def update_appointment(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Update appointment status (``booking_id``, ``action``: cancel/complete/noshow)."""
    request = _form_request(input, "json/updateappointment")
    return send(request, input, client)


def reschedule_appointment(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _form_request(input, "json/rescheduleappointment")
    return send(request, input, client)


def add_staff(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("POST").with_path("json/addstaff").with_body(input.body)
    return send(request, input, client)
