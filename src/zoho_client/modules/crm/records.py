"""
Zoho CRM Records API (v8).

Operations on records of any CRM module (Leads, Contacts, Deals, ...). The
module is taken from ``input.module_api_name``; record bodies are passed as
``input.body`` and wrapped in the ``{"data": [...]}`` envelope.

Example::

    input = InputRequest(token).with_module_api_name("Leads")
    leads = records.get_records(input.with_query_params({"fields": "Email"}))

    for lead in records.stream_all(input, per_page=100, max_records=5000):
        ...
"""

from typing import Any, Iterator, List, Optional, Sequence

from ... import pagination
from ...client import ZohoClient
from ...input_request import InputRequest
from ...request import ApiType, Request
from ...validation import validate_id
from ..base import base_request, data_body, module_name, send

VERSION = "v8"


def _request(input: InputRequest) -> Request:
    return base_request(ApiType.CRM, input, VERSION)


def get_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """List records of a module (one page; see :func:`stream_all`)."""
    request = _request(input).with_method("GET").with_path(module_name(input))
    return send(request, input, client)


def get_record(input: InputRequest, record_id: str, client: Optional[ZohoClient] = None) -> Any:
    """Fetch a single record by id."""
    validate_id(record_id, "record_id")
    request = _request(input).with_method("GET").with_path(f"{module_name(input)}/{record_id}")
    return send(request, input, client)


def insert_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Insert the records in ``input.body`` (up to 100 per call)."""
    request = (_request(input)
               .with_method("POST")
               .with_path(module_name(input))
               .with_body(data_body(input)))
    return send(request, input, client)


def update_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Update the records in ``input.body``; each must carry its ``id``."""
    request = (_request(input)
               .with_method("PUT")
               .with_path(module_name(input))
               .with_body(data_body(input)))
    return send(request, input, client)


def upsert_records(input: InputRequest, duplicate_check_fields: Optional[Sequence[str]] = None,
                   client: Optional[ZohoClient] = None) -> Any:
    """
    Insert or update records.

    Args:
        input: Request context with the records in ``body``
        duplicate_check_fields: Fields used to match existing records,
            e.g. ``["Email"]``
        client: Client to send with
    """
    body = data_body(input)
    if duplicate_check_fields is not None:
        body["duplicate_check_fields"] = list(duplicate_check_fields)

    request = (_request(input)
               .with_method("POST")
               .with_path(f"{module_name(input)}/upsert")
               .with_body(body))
    return send(request, input, client)


def search_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """
    Search records.

    ``input.query_params`` carries one of ``criteria``, ``email``,
    ``phone`` or ``word``.
    """
    request = _request(input).with_method("GET").with_path(f"{module_name(input)}/search")
    return send(request, input, client)


def coql_query(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """
    Run a COQL query.

    ``input.body`` is sent as-is, e.g.
    ``{"select_query": "select Last_Name from Leads where Email is not null"}``.
    """
    request = _request(input).with_method("POST").with_path("coql").with_body(input.body)
    return send(request, input, client)


def delete_records(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Delete the records whose ids are in ``input.query_params["ids"]``."""
    request = _request(input).with_method("DELETE").with_path(module_name(input))
    return send(request, input, client)


def stream_all(input: InputRequest, client: Optional[ZohoClient] = None,
               **page_opts: Any) -> Iterator[Any]:
    """
    Lazily yield every record of the module across pages.

    Accepts :class:`~zoho_client.pagination.PageOptions` fields as keyword
    arguments. A failed page yields a
    :class:`~zoho_client.pagination.PageError` and ends the stream.
    """
    module_name(input)

    def fetch(params):
        return get_records(input.with_query_params(params), client)

    return pagination.stream_all(fetch, params=input.query_params, **page_opts)


def fetch_all_records(input: InputRequest, client: Optional[ZohoClient] = None,
                      **page_opts: Any) -> List[Any]:
    """
    Fetch every record of the module.

    Raises:
        PaginationError: If a page fetch fails
    """
    module_name(input)

    def fetch(params):
        return get_records(input.with_query_params(params), client)

    return pagination.fetch_all(fetch, params=input.query_params, **page_opts)
