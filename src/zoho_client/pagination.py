"""
Pagination helpers for Zoho APIs.

Zoho CRM and similar APIs return paginated responses shaped like::

    {
        "data": [...],
        "info": {"per_page": 200, "count": 200, "page": 1, "more_records": true}
    }

:func:`stream_all` is a generator that fetches pages on demand as items are
consumed: only one page is held in memory, and nothing past the last item the
caller pulled is ever requested. :func:`fetch_all` drains the stream into a
list.

Each page is fetched by a caller-supplied ``fetch_page_fn(params)`` which
receives the caller's query params merged with the page params and returns
the decoded response body.

Example::

    for lead in stream_all(fetch_leads, per_page=100, max_records=5000):
        if isinstance(lead, PageError):
            raise lead.error
        process(lead)
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, Field

from .runtime.errors import PaginationError, ZohoError


logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 200

FetchPageFn = Callable[[Dict[str, Any]], Any]
InterpretPageFn = Callable[[Any], Tuple[List[Any], bool]]


class PageOptions(BaseModel):
    """Pagination options."""
    per_page: int = Field(default=DEFAULT_PER_PAGE, ge=1, description="Records per page")
    max_records: Optional[int] = Field(default=None, ge=0,
                                       description="Maximum records to yield (None = unlimited)")
    page_param: str = Field(default="page", description="Query param carrying the page")
    per_page_param: str = Field(default="per_page", description="Query param carrying the page size")
    offset_based: bool = Field(default=False,
                               description="Send the 1-based record index instead of the page number")

    model_config = {"frozen": True}

    def page_params(self, page: int) -> Dict[str, Any]:
        """Query params requesting ``page`` (1-indexed)."""
        value = (page - 1) * self.per_page + 1 if self.offset_based else page
        return {self.page_param: value, self.per_page_param: self.per_page}


@dataclass(frozen=True)
class PageError:
    """Terminal marker yielded by :func:`stream_all` when a page fetch fails."""
    page: int
    error: Exception


def default_interpret_page(body: Any) -> Tuple[List[Any], bool]:
    """
    Split a response body into ``(items, more_records)``.

    ``{"data": [...], "info": {"more_records": ...}}`` uses the flag;
    ``{"data": [...]}`` and bare lists are a single page; anything else is
    an empty final page.
    """
    if isinstance(body, list):
        return body, False

    if isinstance(body, Mapping):
        data = body.get("data")
        if not isinstance(data, list):
            return [], False
        info = body.get("info")
        more = bool(info.get("more_records", False)) if isinstance(info, Mapping) else False
        return data, more

    return [], False


def _resolve_options(options: Optional[PageOptions], overrides: Dict[str, Any]) -> PageOptions:
    if options is None:
        return PageOptions(**overrides)
    if not overrides:
        return options
    return PageOptions(**{**options.model_dump(), **overrides})


def fetch_page(
    fetch_page_fn: FetchPageFn,
    page: int,
    per_page: int = DEFAULT_PER_PAGE,
    params: Optional[Mapping[str, Any]] = None,
    interpret_page: InterpretPageFn = default_interpret_page,
    **overrides: Any,
) -> Tuple[List[Any], bool]:
    """
    Fetch a single page.

    Args:
        fetch_page_fn: Performs the request for the given params
        page: Page number (1-indexed)
        per_page: Records per page
        params: Base query params
        interpret_page: Splits the body into items and the more-records flag
        **overrides: Other :class:`PageOptions` fields

    Returns:
        ``(items, more_records)``

    Raises:
        ZohoError: Whatever the fetch raised
    """
    options = PageOptions(per_page=per_page, **overrides)
    body = fetch_page_fn({**dict(params or {}), **options.page_params(page)})
    return interpret_page(body)


def stream_all(
    fetch_page_fn: FetchPageFn,
    options: Optional[PageOptions] = None,
    params: Optional[Mapping[str, Any]] = None,
    interpret_page: InterpretPageFn = default_interpret_page,
    **overrides: Any,
) -> Iterator[Union[Any, PageError]]:
    """
    Lazily yield every item across pages.

    Stops after the first of: a failed fetch (one :class:`PageError` is
    yielded), an empty page, a page without more records, or ``max_records``
    items (the last page is truncated).

    Args:
        fetch_page_fn: Performs the request for the given params
        options: Pagination options
        params: Base query params merged under the page params
        interpret_page: Splits a body into items and the more-records flag
        **overrides: :class:`PageOptions` fields, e.g. ``per_page=100``
    """
    opts = _resolve_options(options, overrides)
    base = dict(params or {})
    limit = opts.max_records
    fetched = 0
    page = 1

    while limit is None or fetched < limit:
        try:
            body = fetch_page_fn({**base, **opts.page_params(page)})
        except ZohoError as e:
            logger.warning(f"Failed to fetch page {page}: {e}")
            yield PageError(page, e)
            return

        items, more = interpret_page(body)
        if limit is not None:
            items = items[:limit - fetched]
        fetched += len(items)

        yield from items

        if not items or not more:
            return
        page += 1


def fetch_all(
    fetch_page_fn: FetchPageFn,
    options: Optional[PageOptions] = None,
    params: Optional[Mapping[str, Any]] = None,
    interpret_page: InterpretPageFn = default_interpret_page,
    **overrides: Any,
) -> List[Any]:
    """
    Fetch every page and return the combined items.

    Raises:
        PaginationError: If a page fetch fails (``cause`` holds the error)
    """
    records = []
    for item in stream_all(fetch_page_fn, options, params, interpret_page, **overrides):
        if isinstance(item, PageError):
            raise PaginationError(item.page, item.error) from item.error
        records.append(item)
    return records


__all__ = [
    "DEFAULT_PER_PAGE",
    "PageOptions",
    "PageError",
    "default_interpret_page",
    "fetch_page",
    "stream_all",
    "fetch_all",
]
