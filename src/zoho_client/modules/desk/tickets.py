"""
Zoho Desk Tickets API (v1).

Every call needs the Desk organization id, taken from ``input.org_id`` and
sent in the ``orgId`` header.

Desk paginates with ``from`` (1-based record index) and ``limit`` (max 100)
and returns ``{"data": [...]}`` without a more-records flag, so a full page
means another page may follow.
"""

from typing import Any, Iterator, List, Optional, Tuple

from ... import pagination
from ...client import ZohoClient
from ...input_request import InputRequest
from ...request import ApiType, Request
from ...runtime.errors import ValidationError
from ...validation import validate_id
from ..base import base_request, send

VERSION = "v1"
MAX_LIMIT = 100


def _request(input: InputRequest) -> Request:
    if not input.org_id:
        raise ValidationError("org_id is required for Zoho Desk API", details={"field": "org_id"})
    return base_request(ApiType.DESK, input, VERSION).set_org_id(input.org_id)


def list_tickets(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """
    List tickets.

    Optional query params: ``from``, ``limit`` (max 100), ``departmentId``,
    ``assignee``.
    """
    request = _request(input).with_method("GET").with_path("tickets")
    return send(request, input, client)


def get_ticket(input: InputRequest, ticket_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(ticket_id, "ticket_id")
    request = _request(input).with_method("GET").with_path(f"tickets/{ticket_id}")
    return send(request, input, client)


def create_ticket(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    """Create a ticket from ``input.body`` (``subject``, ``departmentId``, ``contactId``, ...)."""
    request = _request(input).with_method("POST").with_path("tickets").with_body(input.body)
    return send(request, input, client)


def update_ticket(input: InputRequest, ticket_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(ticket_id, "ticket_id")
    request = (_request(input)
               .with_method("PATCH")
               .with_path(f"tickets/{ticket_id}")
               .with_body(input.body))
    return send(request, input, client)


def delete_ticket(input: InputRequest, ticket_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(ticket_id, "ticket_id")
    request = _request(input).with_method("DELETE").with_path(f"tickets/{ticket_id}")
    return send(request, input, client)


def search_tickets(input: InputRequest, client: Optional[ZohoClient] = None) -> Any:
    request = _request(input).with_method("GET").with_path("tickets/search")
    return send(request, input, client)


def list_threads(input: InputRequest, ticket_id: str, client: Optional[ZohoClient] = None) -> Any:
    validate_id(ticket_id, "ticket_id")
    request = _request(input).with_method("GET").with_path(f"tickets/{ticket_id}/threads")
    return send(request, input, client)


def add_comment(input: InputRequest, ticket_id: str, client: Optional[ZohoClient] = None) -> Any:
    """Add a comment, e.g. ``{"content": "...", "isPublic": False}``."""
    validate_id(ticket_id, "ticket_id")
    request = (_request(input)
               .with_method("POST")
               .with_path(f"tickets/{ticket_id}/comments")
               .with_body(input.body))
    return send(request, input, client)


def page_interpreter(limit: int):
    """Build a page interpreter treating a full page as "more records"."""
    def interpret(body: Any) -> Tuple[List[Any], bool]:
        items, _ = pagination.default_interpret_page(body)
        return items, len(items) >= limit
    return interpret


def _page_options(limit: int, max_records: Optional[int]) -> pagination.PageOptions:
    return pagination.PageOptions(
        per_page=min(limit, MAX_LIMIT),
        max_records=max_records,
        page_param="from",
        per_page_param="limit",
        offset_based=True,
    )


def _page_fetcher(input: InputRequest, client: Optional[ZohoClient]):
    def fetch(params):
        return list_tickets(input.with_query_params(params), client)
    return fetch


def stream_all(input: InputRequest, client: Optional[ZohoClient] = None,
               limit: int = MAX_LIMIT, max_records: Optional[int] = None) -> Iterator[Any]:
    """Lazily yield every ticket across pages."""
    _request(input)
    options = _page_options(limit, max_records)
    return pagination.stream_all(_page_fetcher(input, client), options, params=input.query_params,
                                 interpret_page=page_interpreter(options.per_page))


def fetch_all_tickets(input: InputRequest, client: Optional[ZohoClient] = None,
                      limit: int = MAX_LIMIT, max_records: Optional[int] = None) -> List[Any]:
    """
    Fetch every ticket.

    Raises:
        PaginationError: If a page fetch fails
    """
    _request(input)
    options = _page_options(limit, max_records)
    return pagination.fetch_all(_page_fetcher(input, client), options, params=input.query_params,
                                interpret_page=page_interpreter(options.per_page))
