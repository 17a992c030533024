"""
Zoho Recruit Records API (v2).

Same shape as the CRM Records API against ``recruit.zoho.<region>``: the
module comes from ``input.module_api_name`` and bodies are wrapped in
``{"data": [...]}``.
"""

from typing import Any, Iterator, List, Optional, Sequence

from ... import pagination
from ...client import ZohoClient
from ...input_request import InputRequest
from ...request import ApiType, Request
from ...validation import validate_id
from ..base import base_request, data_body, module_name, send

VERSION = "v2"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.RECRUIT, input, VERSION)


def get_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("GET").with_path(module_name(input))
    return send(request, input, client)


def get_record(input: InputRequest, record_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(record_id, "record_id")
    request = _request(input).with_method("GET").with_path(f"{module_name(input)}/{record_id}")
    return send(request, input, client)


def insert_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("POST")
               .with_path(module_name(input))
               .with_body(data_body(input)))
    return send(request, input, client)


def update_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = (_request(input)
               .with_method("PUT")
               .with_path(module_name(input))
               .with_body(data_body(input)))
    return send(request, input, client)


def upsert_records(input: InputRequest, duplicate_check_fields: Optional[Sequence[str]] = None,
                   client: Optional[ZohoClient] = None) -> Any:
    """Insert or update records, matching on ``duplicate_check_fields``."""
    body = data_body(input)
    if duplicate_check_fields is not None:
        body["duplicate_check_fields"] = list(duplicate_check_fields)
    request = (_request(input)
               .with_method("POST")
               .with_path(f"{module_name(input)}/upsert")
               .with_body(body))
    return send(request, input, client)


def search_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("GET").with_path(f"{module_name(input)}/search")
    return send(request, input, client)


def delete_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("DELETE").with_path(module_name(input))
    return send(request, input, client)


def get_associated_records(input: InputRequest, record_id: str,
                           client: Optional[ZohoClient] = None) -> Any:
    """Records associated with a record, e.g. candidates of a job opening."""
    validate_id(record_id, "record_id")
    request = (_request(input)
               .with_method("GET")
               .with_path(f"{module_name(input)}/{record_id}/associate"))
    return send(request, input, client)


def stream_all(input: InputRequest, client: Optional[ZohoClient] = None,
               **page_opts: Any) -> Iterator[Any]:
    """Lazily yield every record of the module across pages."""
    module_name(input)

    def fetch(params):
        return get_records(input.with_query_params(params), client)

    return pagination.stream_all(fetch, params=input.query_params, **page_opts)


def fetch_all_records(input: InputRequest, client: Optional[ZohoClient] = None,
                      **page_opts: Any) -> List[Any]:
    module_name(input)

    def fetch(params):
        return get_records(input.with_query_params(params), client)

    return pagination.fetch_all(fetch, params=input.query_params, **page_opts)
