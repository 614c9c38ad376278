"""REST API constants.

Endpoint paths of the Checkpointer API and the enumerations shared by
request parameters. Paths must match the server byte for byte.
"""

from __future__ import annotations

from enum import Enum


class ApiPaths:
    """Endpoint paths, relative to the configured base URL."""

    ME = "/api/me"

    # Games catalog
    GAMES = "/api/games"
    GAMES_BROWSE = "/api/games/browse"
    GAMES_SEARCH = "/api/games/search"
    GAMES_TOP_RATED = "/api/games/top-rated"
    GAMES_TRENDING = "/api/games/trending"
    GAME_DETAIL = "/api/games/{game_id}"
    GAME_RATING = "/api/games/rating/{game_id}"

    # Play sessions
    SESSIONS_CURRENT = "/api/game-sessions/current"
    SESSIONS_USER = "/api/game-sessions/user/{user_id}"
    SESSIONS_USER_HISTORY = "/api/game-sessions/user/{user_id}/history"
    SESSIONS_HISTORY = "/api/game-sessions/history"
    SESSIONS_ACTIVE_PLAYERS = "/api/game-sessions/game/{game_id}/active-players"

    # Wishlist
    WISHLIST = "/api/want-to-play"
    WISHLIST_USER = "/api/want-to-play/user/{user_id}"
    WISHLIST_CHECK = "/api/want-to-play/check/{game_id}"
    WISHLIST_COUNT = "/api/want-to-play/game/{game_id}/count"
    WISHLIST_ITEM = "/api/want-to-play/{game_id}"

    # Reviews
    REVIEWS = "/api/reviews"
    REVIEW = "/api/reviews/{review_id}"
    REVIEWS_BY_GAME = "/api/reviews/game/{game_id}"
    REVIEWS_BY_USER = "/api/reviews/user/{user_id}"
    REVIEWS_BY_GAME_AND_USER = "/api/reviews/game/{game_id}/user/{user_id}"
    REVIEW_STATS = "/api/reviews/games/{game_id}/stats"

    # Game lists
    GAME_LISTS = "/api/game-lists"
    GAME_LISTS_SAVED = "/api/game-lists/saved"
    GAME_LISTS_USER = "/api/game-lists/user/{user_id}"
    GAME_LIST = "/api/game-lists/{list_id}"
    GAME_LISTS_FOR_GAME = "/api/game-lists/game/{game_id}/lists"
    GAME_LIST_GAME = "/api/game-lists/{list_id}/games/{game_id}"
    GAME_LIST_AUTH = "/api/game-lists/{list_id}/auth"
    GAME_LIST_REORDER = "/api/game-lists/{list_id}/reorder"
    GAME_LIST_SAVE = "/api/game-lists/{list_id}/save"
    GAME_LIST_COVER = "/api/game-lists/{list_id}/cover"

    # App settings
    SETTINGS = "/api/settings"

    # Admin back office
    ADMIN_STATS = "/api/admin/stats"
    ADMIN_USERS = "/api/admin/users"
    ADMIN_USER_ROLE = "/api/admin/users/{user_id}/role"
    ADMIN_USER_SUSPEND = "/api/admin/users/{user_id}/suspend"
    ADMIN_REVIEWS = "/api/admin/reviews"
    ADMIN_REVIEW = "/api/admin/reviews/{review_id}"
    ADMIN_AUDIT_LOGS = "/api/admin/audit-logs"
    ADMIN_SETTINGS = "/api/admin/settings"


class QueryEntity:
    """Entity names used as the first component of every cache key."""

    CURRENT_USER = "current-user"
    ALL_GAMES = "games"
    BROWSE_GAMES = "browse-games"
    SEARCH_GAMES = "search-games"
    GAME = "game"
    GAME_RATING = "game-rating"
    TOP_RATED = "top-rated-games"
    TRENDING = "trending-games"
    CURRENTLY_PLAYING = "currently-playing"
    USER_CURRENTLY_PLAYING = "user-currently-playing"
    PLAY_HISTORY = "play-history"
    ACTIVE_PLAYERS = "game-active-players"
    WISHLIST = "want-to-play"
    USER_WISHLIST = "user-want-to-play"
    WISHLIST_CHECK = "want-to-play-check"
    WISHLIST_COUNT = "want-to-play-count"
    REVIEWS_BY_GAME = "reviews-game"
    REVIEWS_BY_USER = "reviews-user"
    REVIEW_BY_GAME_AND_USER = "reviews-game-user"
    REVIEW_STATS = "review-stats"
    MY_LISTS = "my-game-lists"
    SAVED_LISTS = "my-saved-lists"
    USER_LISTS = "user-game-lists"
    GAME_LIST = "game-list"
    LISTS_FOR_GAME = "lists-for-game"
    LIST_SAVED = "list-saved"
    ADMIN_STATS = "admin/stats"
    ADMIN_USERS = "admin/users"
    ADMIN_REVIEWS = "admin/reviews"
    ADMIN_AUDIT_LOGS = "admin/audit-logs"
    APP_SETTINGS = "app-settings"


class SortBy(str, Enum):
    """Catalog browse sort fields."""

    RATING = "rating"
    YEAR = "year"
    NAME = "name"


class SortOrder(str, Enum):
    """Catalog browse sort directions."""

    ASC = "asc"
    DESC = "desc"


class SessionStatus(str, Enum):
    """How a play session ended."""

    FINISHED = "finished"
    STASHED = "stashed"


class UserRole(str, Enum):
    """Account roles. Only ``ADMIN`` may use the admin endpoints."""

    FREE = "free"
    PRO = "pro"
    ADMIN = "admin"


class ListVisibility(str, Enum):
    """Game list visibility."""

    PUBLIC = "public"
    PRIVATE = "private"


class PageSize:
    """Default page sizes used by the list views."""

    BROWSE = 24
    HISTORY = 20
    WISHLIST = 20
    ADMIN = 20
    FEATURED = 10


class CoverImage:
    """Compression applied to list covers before upload."""

    FORM_FIELD = "cover"
    CONTENT_TYPE = "image/jpeg"
    MAX_SIZE_KB = 100
    MAX_DIMENSION = 512
    START_QUALITY = 90
    MIN_QUALITY = 10
    QUALITY_STEP = 10
