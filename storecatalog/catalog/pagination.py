"""Pagination adapter.

Turns a page request plus an already-fetched page slice and the total
record count into a ``Page`` with navigation metadata. The adapter never
touches storage; callers fetch ``[offset, offset + limit)`` under a fixed
ordering and hand the slice in.
"""

import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

import httpx

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 50


@dataclass(frozen=True)
class PageRequest:
    """Requested page, clamped to valid bounds.

    Attributes:
        page_number: Page number (1-indexed).
        page_size: Items per page.
    """

    page_number: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @classmethod
    def clamped(
        cls,
        page_number: int | None,
        page_size: int | None,
        default_page_size: int = DEFAULT_PAGE_SIZE,
        max_page_size: int = MAX_PAGE_SIZE,
    ) -> "PageRequest":
        """Build a request with page ≥ 1 and 1 ≤ size ≤ max.

        Args:
            page_number: Requested page; values below 1 become 1.
            page_size: Requested size; values below 1 become 1.
            default_page_size: Size used when none is requested.
            max_page_size: Upper bound for the size.

        Returns:
            Clamped page request.
        """
        number = page_number if page_number and page_number > 0 else 1
        size = default_page_size if page_size is None else page_size
        size = max(1, min(size, max_page_size))
        return cls(page_number=number, page_size=size)

    @property
    def offset(self) -> int:
        """Calculate offset from page number."""
        return (self.page_number - 1) * self.page_size

    @property
    def limit(self) -> int:
        """Get limit (alias for page_size)."""
        return self.page_size


@dataclass
class Page(Generic[T]):
    """One page of results with navigation metadata.

    Attributes:
        items: Items on this page.
        page_number: Current page.
        page_size: Items per page.
        total_records: Total matching records across all pages.
        previous_page: URL of the previous page, if a route was given.
        next_page: URL of the next page, if a route was given.
    """

    items: list[T]
    page_number: int
    page_size: int
    total_records: int
    previous_page: str | None = None
    next_page: str | None = None
    first_page: str | None = field(default=None, repr=False)
    last_page: str | None = field(default=None, repr=False)

    @property
    def total_pages(self) -> int:
        """Calculate total pages."""
        return math.ceil(self.total_records / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        """Check if there's a next page."""
        return self.page_number < self.total_pages

    @property
    def has_previous(self) -> bool:
        """Check if there's a previous page."""
        return self.page_number > 1 and self.total_pages > 0


def page_url(route: str, page_number: int, page_size: int) -> str:
    """Build a navigation URL for a page.

    Existing query parameters on ``route`` are preserved.

    Args:
        route: Base route or URL of the listing.
        page_number: Target page.
        page_size: Items per page.

    Returns:
        URL string with ``pageNumber`` and ``pageSize`` set.
    """
    url = httpx.URL(route).copy_merge_params({"pageNumber": page_number, "pageSize": page_size})
    return str(url)


def paginate(
    items: list[T],
    request: PageRequest,
    total_records: int,
    route: str | None = None,
) -> Page[T]:
    """Wrap a fetched page slice with metadata.

    Args:
        items: Records for the requested page (at most ``request.page_size``).
        request: Clamped page request used for the fetch.
        total_records: Total matching records.
        route: Optional route for previous/next links.

    Returns:
        Page with metadata.
    """
    page = Page(
        items=list(items)[: request.page_size],
        page_number=request.page_number,
        page_size=request.page_size,
        total_records=total_records,
    )
    if route is not None:
        if page.has_previous:
            page.previous_page = page_url(route, min(request.page_number - 1, page.total_pages), request.page_size)
        if page.has_next:
            page.next_page = page_url(route, request.page_number + 1, request.page_size)
        page.first_page = page_url(route, 1, request.page_size)
        page.last_page = page_url(route, max(page.total_pages, 1), request.page_size)
    return page


def slice_page(records: list[T], request: PageRequest, route: str | None = None) -> Page[T]:
    """Paginate a fully materialised, already-ordered list.

    Args:
        records: All records in display order.
        request: Clamped page request.
        route: Optional route for navigation links.

    Returns:
        Page cut from ``records``.
    """
    window = records[request.offset : request.offset + request.limit]
    return paginate(window, request, len(records), route)
