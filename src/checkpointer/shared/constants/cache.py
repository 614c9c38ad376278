"""
Query Cache Constants

Stale times for each cached entity, in seconds. An entry older than its
stale time is refetched on next access; until then it is served as-is.
"""

import math

# Base time units for stale time calculations
BASE_SECOND = 1
BASE_MINUTE = 60 * BASE_SECOND

NEVER_STALE = math.inf


class StaleTime:
    """Per-entity stale times."""

    DEFAULT = 0
    SEARCH = 30 * BASE_SECOND
    BROWSE = 2 * BASE_MINUTE
    ALL_GAMES = 5 * BASE_MINUTE
    GAME_DETAIL = 5 * BASE_MINUTE
    FEATURED = 5 * BASE_MINUTE
    CURRENTLY_PLAYING = BASE_MINUTE
    PLAY_HISTORY = 5 * BASE_MINUTE
    ACTIVE_PLAYERS = 30 * BASE_SECOND
    WISHLIST = 5 * BASE_MINUTE
    WISHLIST_CHECK = BASE_MINUTE
    WISHLIST_COUNT = 30 * BASE_SECOND
    REVIEWS = 5 * BASE_MINUTE
    GAME_LISTS = 5 * BASE_MINUTE
    GAME_LIST = 2 * BASE_MINUTE
    LISTS_FOR_GAME = BASE_MINUTE
    LIST_SAVED = 2 * BASE_MINUTE
    ADMIN_STATS = BASE_MINUTE
    ADMIN_LISTS = 30 * BASE_SECOND
    APP_SETTINGS = 5 * BASE_MINUTE
    CURRENT_USER = NEVER_STALE


class OptimisticIds:
    """Placeholder identities for optimistic creates."""

    PREFIX = "optimistic-"
