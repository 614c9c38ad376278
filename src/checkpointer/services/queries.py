"""Query definitions: cache key, fetcher and stale time of every read.

Each builder returns the options of one query so that every caller that
asks for the same resource uses the same key, and so shares its cache
entry and its in-flight request.

Cursor-paginated reads (play history, wishlists) return
InfiniteQueryOptions instead: their key omits the offset because all
pages accumulate under one entry.
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import partial
from typing import Any

from checkpointer.config.models.settings import Settings
from checkpointer.services.adapters.games import BrowseParams
from checkpointer.services.adapters.registry import AdapterRegistry
from checkpointer.services.pagination import PageFetcher
from checkpointer.services.query_cache import Fetcher
from checkpointer.services.query_keys import QueryKey, derive_key
from checkpointer.shared.constants import QueryEntity, StaleTime


@dataclass(frozen=True)
class QueryOptions:
    """Everything the query cache needs to serve one read."""

    key: QueryKey
    fetcher: Fetcher
    stale_time: float


@dataclass(frozen=True)
class InfiniteQueryOptions:
    """A cursor-paginated read; ``fetch_page`` takes the page offset."""

    key: QueryKey
    fetch_page: PageFetcher
    stale_time: float
    page_size: int


class QueryFactory:
    """Builds QueryOptions for the adapters of one session."""

    def __init__(self, adapters: AdapterRegistry, settings: Settings | None = None) -> None:
        self.adapters = adapters
        self.settings = settings or Settings()

    def _options(
        self,
        entity: str,
        params: dict[str, Any] | None,
        fetcher: Fetcher,
        stale_time: float,
    ) -> QueryOptions:
        return QueryOptions(
            key=derive_key(entity, params),
            fetcher=fetcher,
            stale_time=self.settings.stale_time_for(entity, stale_time),
        )

    # Games

    def browse(self, params: BrowseParams) -> QueryOptions:
        """One page of the catalog; filters and page window are all in the key."""
        return self._options(
            QueryEntity.BROWSE_GAMES,
            params.query_params(),
            partial(self.adapters.games.browse, params),
            StaleTime.BROWSE,
        )

    def search(self, q: str | None) -> QueryOptions:
        return self._options(
            QueryEntity.SEARCH_GAMES,
            {"q": (q or "").strip()},
            partial(self.adapters.games.search, q),
            StaleTime.SEARCH,
        )

    def game(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.GAME,
            {"id": str(game_id)},
            partial(self.adapters.games.get, game_id),
            StaleTime.GAME_DETAIL,
        )

    def game_rating(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.GAME_RATING,
            {"id": str(game_id)},
            partial(self.adapters.games.rating, game_id),
            StaleTime.REVIEWS,
        )

    def top_rated(self, limit: int | None = None) -> QueryOptions:
        limit = limit or self.settings.pagination.featured_limit
        return self._options(
            QueryEntity.TOP_RATED,
            {"limit": limit},
            partial(self.adapters.games.top_rated, limit),
            StaleTime.FEATURED,
        )

    def trending(self, limit: int | None = None) -> QueryOptions:
        limit = limit or self.settings.pagination.featured_limit
        return self._options(
            QueryEntity.TRENDING,
            {"limit": limit},
            partial(self.adapters.games.trending, limit),
            StaleTime.FEATURED,
        )

    def all_games(self) -> QueryOptions:
        return self._options(
            QueryEntity.ALL_GAMES, None, self.adapters.games.all_games, StaleTime.ALL_GAMES
        )

    # Play sessions

    def currently_playing(self) -> QueryOptions:
        return self._options(
            QueryEntity.CURRENTLY_PLAYING,
            None,
            self.adapters.sessions.current,
            StaleTime.CURRENTLY_PLAYING,
        )

    def user_currently_playing(self, user_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.USER_CURRENTLY_PLAYING,
            {"userId": str(user_id)},
            partial(self.adapters.sessions.user_current, user_id),
            StaleTime.CURRENTLY_PLAYING,
        )

    def play_history(self, user_id: str | int, limit: int | None = None) -> InfiniteQueryOptions:
        limit = limit or self.settings.pagination.history_page_size
        entity = QueryEntity.PLAY_HISTORY

        async def fetch_page(offset: int):
            return await self.adapters.sessions.history(user_id, offset=offset, limit=limit)

        return InfiniteQueryOptions(
            key=derive_key(entity, {"userId": str(user_id), "limit": limit}),
            fetch_page=fetch_page,
            stale_time=self.settings.stale_time_for(entity, StaleTime.PLAY_HISTORY),
            page_size=limit,
        )

    def active_players(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.ACTIVE_PLAYERS,
            {"gameId": str(game_id)},
            partial(self.adapters.sessions.active_players, game_id),
            StaleTime.ACTIVE_PLAYERS,
        )

    # Wishlist

    def wishlist(self, limit: int | None = None) -> InfiniteQueryOptions:
        limit = limit or self.settings.pagination.wishlist_page_size
        entity = QueryEntity.WISHLIST

        async def fetch_page(offset: int):
            return await self.adapters.wishlist.mine(offset=offset, limit=limit)

        return InfiniteQueryOptions(
            key=derive_key(entity, {"limit": limit}),
            fetch_page=fetch_page,
            stale_time=self.settings.stale_time_for(entity, StaleTime.WISHLIST),
            page_size=limit,
        )

    def user_wishlist(self, user_id: str | int, limit: int | None = None) -> InfiniteQueryOptions:
        limit = limit or self.settings.pagination.wishlist_page_size
        entity = QueryEntity.USER_WISHLIST

        async def fetch_page(offset: int):
            return await self.adapters.wishlist.for_user(user_id, offset=offset, limit=limit)

        return InfiniteQueryOptions(
            key=derive_key(entity, {"userId": str(user_id), "limit": limit}),
            fetch_page=fetch_page,
            stale_time=self.settings.stale_time_for(entity, StaleTime.WISHLIST),
            page_size=limit,
        )

    def wishlist_check(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.WISHLIST_CHECK,
            {"gameId": str(game_id)},
            partial(self.adapters.wishlist.check, game_id),
            StaleTime.WISHLIST_CHECK,
        )

    def wishlist_count(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.WISHLIST_COUNT,
            {"gameId": str(game_id)},
            partial(self.adapters.wishlist.count, game_id),
            StaleTime.WISHLIST_COUNT,
        )

    # Reviews

    def reviews_by_game(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.REVIEWS_BY_GAME,
            {"gameId": str(game_id)},
            partial(self.adapters.reviews.by_game, game_id),
            StaleTime.REVIEWS,
        )

    def reviews_by_user(self, user_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.REVIEWS_BY_USER,
            {"userId": str(user_id)},
            partial(self.adapters.reviews.by_user, user_id),
            StaleTime.REVIEWS,
        )

    def review_by_game_and_user(self, game_id: str | int, user_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.REVIEW_BY_GAME_AND_USER,
            {"gameId": str(game_id), "userId": str(user_id)},
            partial(self.adapters.reviews.by_game_and_user, game_id, user_id),
            StaleTime.REVIEWS,
        )

    def review_stats(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.REVIEW_STATS,
            {"gameId": str(game_id)},
            partial(self.adapters.reviews.stats, game_id),
            StaleTime.REVIEWS,
        )

    # Game lists

    def my_lists(self) -> QueryOptions:
        return self._options(
            QueryEntity.MY_LISTS, None, self.adapters.game_lists.mine, StaleTime.GAME_LISTS
        )

    def saved_lists(self) -> QueryOptions:
        return self._options(
            QueryEntity.SAVED_LISTS, None, self.adapters.game_lists.saved, StaleTime.GAME_LISTS
        )

    def user_lists(self, user_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.USER_LISTS,
            {"userId": str(user_id)},
            partial(self.adapters.game_lists.by_user, user_id),
            StaleTime.GAME_LISTS,
        )

    def game_list(self, list_id: str | int, *, authenticated: bool = False) -> QueryOptions:
        return self._options(
            QueryEntity.GAME_LIST,
            {"id": str(list_id), "auth": authenticated},
            partial(self.adapters.game_lists.get, list_id, authenticated=authenticated),
            StaleTime.GAME_LIST,
        )

    def lists_for_game(self, game_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.LISTS_FOR_GAME,
            {"gameId": str(game_id)},
            partial(self.adapters.game_lists.for_game, game_id),
            StaleTime.LISTS_FOR_GAME,
        )

    def list_save_status(self, list_id: str | int) -> QueryOptions:
        return self._options(
            QueryEntity.LIST_SAVED,
            {"id": str(list_id)},
            partial(self.adapters.game_lists.save_status, list_id),
            StaleTime.LIST_SAVED,
        )

    # Users

    def current_user(self) -> QueryOptions:
        return self._options(
            QueryEntity.CURRENT_USER, None, self.adapters.users.me, StaleTime.CURRENT_USER
        )

    # App settings

    def app_settings(self) -> QueryOptions:
        return self._options(
            QueryEntity.APP_SETTINGS, None, self.adapters.settings.get, StaleTime.APP_SETTINGS
        )

    # Admin

    def admin_stats(self) -> QueryOptions:
        return self._options(
            QueryEntity.ADMIN_STATS, None, self.adapters.admin.stats, StaleTime.ADMIN_STATS
        )

    def admin_users(self, limit: int, offset: int) -> QueryOptions:
        return self._options(
            QueryEntity.ADMIN_USERS,
            {"limit": limit, "offset": offset},
            partial(self.adapters.admin.users, limit=limit, offset=offset),
            StaleTime.ADMIN_LISTS,
        )

    def admin_reviews(self, limit: int, offset: int) -> QueryOptions:
        return self._options(
            QueryEntity.ADMIN_REVIEWS,
            {"limit": limit, "offset": offset},
            partial(self.adapters.admin.reviews, limit=limit, offset=offset),
            StaleTime.ADMIN_LISTS,
        )

    def audit_logs(self, limit: int, offset: int) -> QueryOptions:
        return self._options(
            QueryEntity.ADMIN_AUDIT_LOGS,
            {"limit": limit, "offset": offset},
            partial(self.adapters.admin.audit_logs, limit=limit, offset=offset),
            StaleTime.ADMIN_LISTS,
        )


__all__ = ["InfiniteQueryOptions", "QueryFactory", "QueryOptions"]
