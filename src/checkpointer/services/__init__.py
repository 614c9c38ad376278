"""Checkpointer services: HTTP client, adapters, query cache and views."""

from .cache_sync import MutationIntent, MutationKind, RequiresRefetch, apply_mutation
from .http_client import ApiClient
from .list_view import ListView, ViewState
from .pagination import (
    ELLIPSIS,
    NOTHING_TO_PAGINATE,
    InfiniteQuery,
    PageWindow,
    compute_page_window,
    offset_to_page,
    page_to_offset,
)
from .queries import InfiniteQueryOptions, QueryFactory, QueryOptions
from .query_cache import CacheEntry, CacheStatus, QueryCache
from .query_keys import QueryKey, derive_key
from .session import CheckpointerSession

__all__ = [
    "ELLIPSIS",
    "NOTHING_TO_PAGINATE",
    "ApiClient",
    "CacheEntry",
    "CacheStatus",
    "CheckpointerSession",
    "InfiniteQuery",
    "InfiniteQueryOptions",
    "ListView",
    "MutationIntent",
    "MutationKind",
    "PageWindow",
    "QueryCache",
    "QueryFactory",
    "QueryKey",
    "QueryOptions",
    "RequiresRefetch",
    "ViewState",
    "apply_mutation",
    "compute_page_window",
    "derive_key",
    "offset_to_page",
    "page_to_offset",
]
