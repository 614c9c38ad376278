"""Pagination controller.

Two styles of paging are used by the list views:

- Numbered pages (catalog browse, admin tables): ``compute_page_window``
  derives the "Showing X-Y of Z" range and the page buttons to render,
  compressing long runs of pages behind ellipsis markers.
- Cursor pages (play history, wishlist): ``InfiniteQuery`` loads one page
  after another by forwarding the server's ``nextOffset`` and stops once
  it is None.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Awaitable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Callable, Literal, Union

from checkpointer.services.models import InfinitePages, PaginatedResponse
from checkpointer.services.query_cache import QueryCache
from checkpointer.services.query_keys import QueryKey
from checkpointer.shared.errors import InvalidParamsError

if TYPE_CHECKING:
    from checkpointer.services.queries import InfiniteQueryOptions

logger = logging.getLogger(__name__)

# Up to this many pages every page number is shown
MAX_UNCOMPRESSED_PAGES = 7


class PaginationMarker(Enum):
    """Non-numeric values produced by the page window computation."""

    ELLIPSIS = "..."
    NOTHING_TO_PAGINATE = "nothing-to-paginate"

    def __repr__(self) -> str:
        return f"<{self.name}>"


ELLIPSIS = PaginationMarker.ELLIPSIS
NOTHING_TO_PAGINATE = PaginationMarker.NOTHING_TO_PAGINATE

PageNumber = Union[int, Literal[PaginationMarker.ELLIPSIS]]


@dataclass(frozen=True)
class PageWindow:
    """What a numbered pager displays.

    Attributes:
        range_start: 1-based index of the first item on the current page
        range_end: 1-based index of the last item on the current page
        page_numbers: Page buttons in order, with ELLIPSIS for gaps
        current_page: The (clamped) current page
        total_pages: Number of pages
    """

    range_start: int
    range_end: int
    page_numbers: tuple[PageNumber, ...]
    current_page: int
    total_pages: int

    @property
    def has_previous(self) -> bool:
        return self.current_page > 1

    @property
    def has_next(self) -> bool:
        return self.current_page < self.total_pages


def _page_numbers(total_pages: int, current_page: int) -> tuple[PageNumber, ...]:
    if total_pages <= MAX_UNCOMPRESSED_PAGES:
        return tuple(range(1, total_pages + 1))

    numbers: list[PageNumber] = [1]
    if current_page > 3:
        numbers.append(ELLIPSIS)

    window_start = max(2, current_page - 1)
    window_end = min(total_pages - 1, current_page + 1)
    numbers.extend(range(window_start, window_end + 1))

    if current_page < total_pages - 2:
        numbers.append(ELLIPSIS)
    numbers.append(total_pages)
    return tuple(numbers)


def compute_page_window(
    total_count: int,
    page_size: int,
    current_page: int,
) -> PageWindow | Literal[PaginationMarker.NOTHING_TO_PAGINATE]:
    """Compute the item range and page buttons of a numbered pager.

    Args:
        total_count: Items across all pages
        page_size: Items per page
        current_page: 1-based page being displayed; pages past the end
            are clamped to the last page

    Returns:
        The PageWindow, or NOTHING_TO_PAGINATE when everything fits on a
        single page

    Raises:
        InvalidParamsError: For a negative count, a non-positive page size
            or a current page below 1

    Example:
        >>> window = compute_page_window(45, 20, 3)
        >>> window.range_start, window.range_end, window.page_numbers
        (41, 45, (1, 2, 3))
    """
    if total_count < 0:
        msg = f"total_count must not be negative, got {total_count}"
        raise InvalidParamsError(msg, field="total_count", operation="compute_page_window")
    if page_size <= 0:
        msg = f"page_size must be positive, got {page_size}"
        raise InvalidParamsError(msg, field="page_size", operation="compute_page_window")
    if current_page < 1:
        msg = f"current_page must be at least 1, got {current_page}"
        raise InvalidParamsError(msg, field="current_page", operation="compute_page_window")

    total_pages = math.ceil(total_count / page_size)
    if total_pages <= 1:
        return NOTHING_TO_PAGINATE

    current_page = min(current_page, total_pages)
    return PageWindow(
        range_start=(current_page - 1) * page_size + 1,
        range_end=min(current_page * page_size, total_count),
        page_numbers=_page_numbers(total_pages, current_page),
        current_page=current_page,
        total_pages=total_pages,
    )


def page_to_offset(page: int, page_size: int) -> int:
    """Offset of the first item of 1-based ``page``."""
    if page < 1:
        msg = f"page must be at least 1, got {page}"
        raise InvalidParamsError(msg, field="page", operation="page_to_offset")
    return (page - 1) * page_size


def offset_to_page(offset: int, page_size: int) -> int:
    """1-based page containing ``offset``."""
    if offset < 0:
        msg = f"offset must not be negative, got {offset}"
        raise InvalidParamsError(msg, field="offset", operation="offset_to_page")
    return offset // page_size + 1


PageFetcher = Callable[[int], Awaitable[PaginatedResponse]]


class InfiniteQuery:
    """Cursor-paginated query whose pages accumulate under one cache key.

    The key identifies the result set (filters, page size) but not the
    offset; all loaded pages are stored together as InfinitePages. The
    offset of each next page is whatever the previous page reported as
    ``next_page_offset``; None means the server has nothing more and is
    not an error.

    Args:
        cache: Query cache holding the pages
        key: Key of the result set
        fetch_page: Coroutine function loading the page at an offset
        stale_time: Seconds the loaded pages stay fresh
    """

    def __init__(
        self,
        cache: QueryCache,
        key: QueryKey,
        fetch_page: PageFetcher,
        *,
        stale_time: float | None = None,
    ) -> None:
        self.cache = cache
        self.key = key
        self._fetch_page = fetch_page
        self.stale_time = stale_time

    @classmethod
    def from_options(cls, cache: QueryCache, options: InfiniteQueryOptions) -> InfiniteQuery:
        return cls(cache, options.key, options.fetch_page, stale_time=options.stale_time)

    @property
    def data(self) -> InfinitePages | None:
        return self.cache.get_data(self.key)

    @property
    def has_next_page(self) -> bool:
        data = self.data
        return data is None or data.next_offset is not None

    async def fetch_first_page(self) -> InfinitePages:
        """Load the result set, or serve it from the cache while fresh.

        A stale result is reloaded page by page so that everything the
        caller has already scrolled through stays visible.
        """
        return await self.cache.fetch(self.key, self._reload, stale_time=self.stale_time)

    async def refetch(self) -> InfinitePages:
        return await self.cache.fetch(
            self.key, self._reload, stale_time=self.stale_time, force=True
        )

    async def fetch_next_page(self) -> InfinitePages:
        """Append the next page.

        Once the last page reported no next offset this returns the
        loaded pages without any request.
        """
        data = self.data
        if data is None:
            return await self.fetch_first_page()
        if data.exhausted:
            logger.debug("No further pages for %s", self.key)
            return data
        return await self.cache.fetch(
            self.key, self._append, stale_time=self.stale_time, force=True
        )

    async def _append(self) -> InfinitePages:
        # pages may have been patched since the request was triggered
        data = self.data or InfinitePages()
        offset = data.next_offset
        if offset is None:
            return data
        page = await self._fetch_page(offset)
        return InfinitePages(
            pages=(*data.pages, page),
            page_offsets=(*data.page_offsets, offset),
        )

    async def _reload(self) -> InfinitePages:
        loaded = self.data
        page_count = max(1, len(loaded.pages) if loaded else 0)

        pages: list[PaginatedResponse] = []
        offsets: list[int] = []
        offset: int | None = 0
        while offset is not None and len(pages) < page_count:
            page = await self._fetch_page(offset)
            pages.append(page)
            offsets.append(offset)
            offset = page.next_page_offset
        return InfinitePages(pages=tuple(pages), page_offsets=tuple(offsets))


__all__ = [
    "ELLIPSIS",
    "MAX_UNCOMPRESSED_PAGES",
    "NOTHING_TO_PAGINATE",
    "InfiniteQuery",
    "PageFetcher",
    "PageNumber",
    "PageWindow",
    "PaginationMarker",
    "compute_page_window",
    "offset_to_page",
    "page_to_offset",
]
