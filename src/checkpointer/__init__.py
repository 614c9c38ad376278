"""
Checkpointer - Client data layer for the Checkpointer game-tracking API

Typed REST adapters, a per-session query cache with request coalescing,
local cache synchronization for mutations, and pagination helpers for the
catalog, play-history, wishlist and admin views.
"""

__version__ = "0.1.0"
__author__ = "Checkpointer Team"

from .services.pagination import ELLIPSIS, NOTHING_TO_PAGINATE, compute_page_window
from .services.query_cache import QueryCache
from .services.query_keys import QueryKey, derive_key
from .services.session import CheckpointerSession

__all__ = [
    "ELLIPSIS",
    "NOTHING_TO_PAGINATE",
    "CheckpointerSession",
    "QueryCache",
    "QueryKey",
    "compute_page_window",
    "derive_key",
]
