"""State machine of one paginated list view.

A ListView drives a numbered-page list (catalog browse, admin tables)
through ``Idle -> Loading -> Ready | Errored``. Page changes, filter
changes and explicit refetches go back to Loading; a retry leaves
Errored for Loading.

While loading, the previously displayed result stays visible
(stale-while-revalidate), except after a filter change, which drops the
old items at once. A failed load keeps the last good result next to the
error. A ForbiddenError is reported through ``access_denied`` so that
admin views can show an access-denied state rather than a failure.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable

from checkpointer.services.models import ItemCollection
from checkpointer.services.pagination import (
    NOTHING_TO_PAGINATE,
    PageWindow,
    PaginationMarker,
    compute_page_window,
)
from checkpointer.services.queries import QueryOptions
from checkpointer.services.query_cache import QueryCache
from checkpointer.services.query_keys import QueryKey
from checkpointer.shared.errors import (
    CheckpointerError,
    DomainError,
    ErrorCode,
    ErrorContext,
    ForbiddenError,
    InvalidParamsError,
)

logger = logging.getLogger(__name__)

OptionsBuilder = Callable[[Mapping[str, Any], int], QueryOptions]


class ViewState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERRORED = "errored"


# Loading -> Loading happens when the user navigates again before a load ends
TRANSITIONS: dict[ViewState, frozenset[ViewState]] = {
    ViewState.IDLE: frozenset({ViewState.LOADING}),
    ViewState.LOADING: frozenset({ViewState.LOADING, ViewState.READY, ViewState.ERRORED}),
    ViewState.READY: frozenset({ViewState.LOADING}),
    ViewState.ERRORED: frozenset({ViewState.LOADING}),
}


class ListView:
    """One list view bound to a query cache.

    Args:
        cache: Query cache of the session
        options_for: Builds the query of a filter set and 1-based page
        page_size: Items per page, for the page window
        filters: Initial filters
        page: Initial page

    Example:
        >>> view = ListView(cache, lambda filters, page: queries.admin_users(20, (page - 1) * 20), page_size=20)
        >>> await view.load()
        >>> view.state, view.page_window
    """

    def __init__(
        self,
        cache: QueryCache,
        options_for: OptionsBuilder,
        *,
        page_size: int,
        filters: Mapping[str, Any] | None = None,
        page: int = 1,
    ) -> None:
        if page < 1:
            msg = f"page must be at least 1, got {page}"
            raise InvalidParamsError(msg, field="page", operation="list_view")
        self.cache = cache
        self._options_for = options_for
        self.page_size = page_size
        self.filters: dict[str, Any] = dict(filters or {})
        self.page = page
        self.state = ViewState.IDLE
        self.error: CheckpointerError | None = None
        self._current_key: QueryKey | None = None
        self._shown: Any = None
        self._latest_load = 0

    # ------------------------------------------------------------------
    # Derived state
    # ------------------------------------------------------------------

    @property
    def current_key(self) -> QueryKey | None:
        return self._current_key

    @property
    def data(self) -> Any:
        """Result to display: the current key's cached data, else what was shown last."""
        if self._current_key is not None:
            cached = self.cache.get_data(self._current_key)
            if cached is not None:
                return cached
        return self._shown

    @property
    def items(self) -> list[Any]:
        data = self.data
        if isinstance(data, ItemCollection):
            return data.items
        if isinstance(data, list):
            return list(data)
        return []

    @property
    def total_count(self) -> int | None:
        data = self.data
        return data.count if isinstance(data, ItemCollection) else None

    @property
    def page_window(self) -> PageWindow | PaginationMarker:
        total = self.total_count
        if total is None:
            return NOTHING_TO_PAGINATE
        return compute_page_window(total, self.page_size, self.page)

    @property
    def access_denied(self) -> bool:
        return isinstance(self.error, ForbiddenError)

    @property
    def is_loading(self) -> bool:
        return self.state is ViewState.LOADING

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def _transition(self, target: ViewState) -> None:
        if target not in TRANSITIONS[self.state]:
            raise DomainError(
                ErrorCode.INVALID_STATE_TRANSITION,
                f"Cannot go from {self.state.value} to {target.value}",
                ErrorContext(
                    operation="list_view_transition",
                    additional_data={"from": self.state.value, "to": target.value},
                ),
            )
        logger.debug("List view %s -> %s", self.state.value, target.value)
        self.state = target

    async def load(self, *, force: bool = False) -> ViewState:
        """Load the current page and filters.

        Errors are not raised; they leave the view Errored with ``error``
        set and the last good result still displayed.

        Returns:
            The state after the load, or the current state when the load
            was superseded by newer navigation meanwhile
        """
        options = self._options_for(self.filters, self.page)
        self._transition(ViewState.LOADING)
        self._current_key = options.key
        self._latest_load += 1
        token = self._latest_load

        try:
            data = await self.cache.fetch_query(options, force=force)
        except CheckpointerError as e:
            if token != self._latest_load:
                return self.state
            self.error = e
            if isinstance(e, ForbiddenError):
                logger.info("Access denied for %s", options.key)
            self._transition(ViewState.ERRORED)
            return self.state

        # only the most recent load moves the view; overlapping loads of the
        # same key share one fetch and all end up here
        if token != self._latest_load:
            logger.debug("Ignoring result of superseded load of %s", options.key)
            return self.state

        self.error = None
        self._shown = data
        self._transition(ViewState.READY)
        return self.state

    async def set_page(self, page: int) -> ViewState:
        """Show another page, keeping the current items visible meanwhile."""
        if page < 1:
            msg = f"page must be at least 1, got {page}"
            raise InvalidParamsError(msg, field="page", operation="list_view")
        self.page = page
        return await self.load()

    async def set_filters(self, filters: Mapping[str, Any]) -> ViewState:
        """Apply a new filter set, starting over at page 1.

        The items of the previous filter set are dropped immediately.
        """
        self.filters = dict(filters)
        self.page = 1
        self._shown = None
        self._current_key = None
        return await self.load()

    async def refetch(self) -> ViewState:
        """Reload the current page even if its cached result is fresh."""
        return await self.load(force=True)

    async def retry(self) -> ViewState:
        """Reload after a failure."""
        if self.state is not ViewState.ERRORED:
            raise DomainError(
                ErrorCode.INVALID_STATE_TRANSITION,
                f"Only a failed view can be retried (state is {self.state.value})",
                ErrorContext(operation="list_view_retry"),
            )
        return await self.load(force=True)


__all__ = ["TRANSITIONS", "ListView", "OptionsBuilder", "ViewState"]
