"""Client session: the API client, query cache, adapters and queries of
one signed-in user, created together and torn down together on logout.

Reads go through the query cache. Mutations call the adapter and then
bring the cached results up to date, either by patching them locally
through the cache synchronizer (optimistically where a failure can be
rolled back) or by invalidating the entries they make stale.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable

from checkpointer.config.loader import get_config
from checkpointer.config.models.settings import Settings
from checkpointer.services.adapters.games import BrowseParams
from checkpointer.services.adapters.registry import AdapterRegistry
from checkpointer.services.cache_sync import MutationIntent, new_placeholder_id
from checkpointer.services.http_client import ApiClient
from checkpointer.services.images import compress_cover, jpeg_filename
from checkpointer.services.list_view import ListView
from checkpointer.services.models import (
    Acknowledgement,
    AdminUser,
    CoverUpload,
    CurrentlyPlaying,
    GameListCreate,
    GameListDetail,
    GameListUpdate,
    GameSession,
    GameSessionGame,
    HistoryEntry,
    Review,
    ReviewCreate,
    SettingUpdateResult,
    StopPlayingResponse,
    SuspensionResult,
)
from checkpointer.services.pagination import InfiniteQuery, page_to_offset
from checkpointer.services.queries import QueryFactory, QueryOptions
from checkpointer.services.query_cache import QueryCache
from checkpointer.shared.constants import QueryEntity, SessionStatus, UserRole
from checkpointer.shared.errors import CheckpointerError, InvalidParamsError

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class CheckpointerSession:
    """Everything one signed-in user needs to read and change data.

    Args:
        settings: Settings; defaults to the global configuration
        client: API client; built from ``settings.api`` when omitted
        cache: Query cache; a fresh one is created when omitted
        clock: Clock of a freshly created cache

    Example:
        >>> async with CheckpointerSession.from_settings() as session:
        ...     page = await session.fetch(session.queries.top_rated())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        client: ApiClient | None = None,
        cache: QueryCache | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings or get_config()
        self.client = client or ApiClient(self.settings.api)
        self.cache = cache or QueryCache(
            clock=clock,
            default_stale_time=self.settings.cache.default_stale_time,
        )
        self.adapters = AdapterRegistry.from_client(self.client)
        self.queries = QueryFactory(self.adapters, self.settings)

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CheckpointerSession:
        return cls(settings)

    async def fetch(self, options: QueryOptions, *, force: bool = False) -> Any:
        """Serve a query from the cache, fetching it when absent or stale."""
        return await self.cache.fetch_query(options, force=force)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def browse_view(self, filters: dict[str, Any] | None = None, page: int = 1) -> ListView:
        """Catalog browse view. ``filters`` are BrowseParams fields."""
        page_size = self.settings.pagination.browse_page_size

        def options_for(view_filters: Any, view_page: int) -> QueryOptions:
            params = BrowseParams.build(
                **view_filters,
                limit=page_size,
                offset=page_to_offset(view_page, page_size),
            )
            return self.queries.browse(params)

        return ListView(self.cache, options_for, page_size=page_size, filters=filters, page=page)

    def _admin_view(self, build: Callable[[int, int], QueryOptions], page: int) -> ListView:
        page_size = self.settings.pagination.admin_page_size

        def options_for(_filters: Any, view_page: int) -> QueryOptions:
            return build(page_size, page_to_offset(view_page, page_size))

        return ListView(self.cache, options_for, page_size=page_size, page=page)

    def admin_users_view(self, page: int = 1) -> ListView:
        return self._admin_view(self.queries.admin_users, page)

    def admin_reviews_view(self, page: int = 1) -> ListView:
        return self._admin_view(self.queries.admin_reviews, page)

    def audit_logs_view(self, page: int = 1) -> ListView:
        return self._admin_view(self.queries.audit_logs, page)

    def play_history(self, user_id: str | int, limit: int | None = None) -> InfiniteQuery:
        return InfiniteQuery.from_options(self.cache, self.queries.play_history(user_id, limit))

    def wishlist(self, limit: int | None = None) -> InfiniteQuery:
        return InfiniteQuery.from_options(self.cache, self.queries.wishlist(limit))

    def user_wishlist(self, user_id: str | int, limit: int | None = None) -> InfiniteQuery:
        return InfiniteQuery.from_options(self.cache, self.queries.user_wishlist(user_id, limit))

    # ------------------------------------------------------------------
    # Wishlist
    # ------------------------------------------------------------------

    async def add_to_wishlist(self, game_id: str | int) -> Acknowledgement:
        result = await self.adapters.wishlist.add(game_id)
        self.cache.invalidate(QueryEntity.WISHLIST)
        self._after_wishlist_change(game_id)
        return result

    async def remove_from_wishlist(self, game_id: str | int) -> Acknowledgement:
        """Remove a game, dropping it from the cached wishlist pages right away."""
        keys = self.cache.match(QueryEntity.WISHLIST)
        try:
            return await self.cache.optimistic(
                keys,
                MutationIntent.delete(game_id, entity=QueryEntity.WISHLIST),
                partial(self.adapters.wishlist.remove, game_id),
            )
        finally:
            self._after_wishlist_change(game_id)

    def _after_wishlist_change(self, game_id: str | int) -> None:
        self.cache.invalidate(QueryEntity.WISHLIST_CHECK, gameId=str(game_id))
        self.cache.invalidate(QueryEntity.WISHLIST_COUNT, gameId=str(game_id))
        self.cache.invalidate(QueryEntity.USER_WISHLIST)

    # ------------------------------------------------------------------
    # Play sessions
    # ------------------------------------------------------------------

    async def set_currently_playing(self, game_id: str | int) -> CurrentlyPlaying:
        result = await self.adapters.sessions.set_current(game_id)
        current = self.queries.currently_playing()
        self.cache.set_data(current.key, result, stale_time=current.stale_time)
        self.cache.invalidate(QueryEntity.USER_CURRENTLY_PLAYING)
        self.cache.invalidate(QueryEntity.ACTIVE_PLAYERS, gameId=str(game_id))
        return result

    async def stop_playing(self, status: SessionStatus | None = None) -> StopPlayingResponse:
        result = await self.adapters.sessions.stop(status)
        self.cache.invalidate(QueryEntity.CURRENTLY_PLAYING)
        self.cache.invalidate(QueryEntity.USER_CURRENTLY_PLAYING)
        self.cache.invalidate(QueryEntity.ACTIVE_PLAYERS, gameId=str(result.session.game_id))
        self.cache.invalidate(QueryEntity.PLAY_HISTORY, userId=str(result.session.user_id))
        return result

    async def log_past_game(
        self,
        user_id: str | int,
        game: GameSessionGame,
        status: SessionStatus = SessionStatus.FINISHED,
    ) -> CurrentlyPlaying:
        """Record a finished game, showing it in the play history at once.

        A placeholder entry is prepended to every cached history of
        ``user_id`` and replaced by the server's record when it arrives; on
        failure the histories are restored.
        """
        now = _utc_now()
        placeholder_id = new_placeholder_id()
        placeholder = HistoryEntry(
            session=GameSession(
                id=placeholder_id,
                user_id=user_id,
                game_id=game.id,
                started_at=now,
                ended_at=now,
                status=status,
            ),
            game=game,
        )

        def reconcile(result: CurrentlyPlaying) -> MutationIntent | None:
            if result.session is None:
                return None
            record = HistoryEntry(session=result.session, game=result.game or game)
            return MutationIntent.reconcile(placeholder_id, record, entity=QueryEntity.PLAY_HISTORY)

        result = await self.cache.optimistic(
            self.cache.match(QueryEntity.PLAY_HISTORY, userId=str(user_id)),
            MutationIntent.create(placeholder, entity=QueryEntity.PLAY_HISTORY),
            partial(self.adapters.sessions.log_past, game.id, status),
            reconcile=reconcile,
        )
        self.cache.invalidate(QueryEntity.ACTIVE_PLAYERS, gameId=str(game.id))
        return result

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def create_review(self, payload: ReviewCreate) -> Review:
        """Post a review and prepend it to the cached review lists."""
        review = await self.adapters.reviews.create(payload)
        intent = MutationIntent.create(review, entity=QueryEntity.REVIEWS_BY_GAME)
        self.cache.apply_matching(QueryEntity.REVIEWS_BY_GAME, intent, gameId=str(review.game_id))
        self.cache.apply_matching(QueryEntity.REVIEWS_BY_USER, intent, userId=str(review.user_id))
        self.cache.set_data(
            self.queries.review_by_game_and_user(review.game_id, review.user_id).key, review
        )
        self.cache.invalidate(QueryEntity.REVIEW_STATS, gameId=str(review.game_id))
        self.cache.invalidate(QueryEntity.GAME_RATING, id=str(review.game_id))
        return review

    # ------------------------------------------------------------------
    # Game lists
    # ------------------------------------------------------------------

    async def create_list(self, payload: GameListCreate) -> GameListDetail:
        created = await self.adapters.game_lists.create(payload)
        self.cache.apply_matching(
            QueryEntity.MY_LISTS, MutationIntent.create(created, entity=QueryEntity.MY_LISTS)
        )
        self.cache.invalidate(QueryEntity.USER_LISTS)
        return created

    async def update_list(self, list_id: str | int, payload: GameListUpdate) -> GameListDetail:
        updated = await self.adapters.game_lists.update(list_id, payload)
        self.cache.apply_matching(
            QueryEntity.MY_LISTS,
            MutationIntent.update(list_id, payload, entity=QueryEntity.MY_LISTS),
        )
        self.cache.invalidate(QueryEntity.GAME_LIST, id=str(list_id))
        self.cache.invalidate(QueryEntity.USER_LISTS)
        return updated

    async def delete_list(self, list_id: str | int) -> Acknowledgement:
        result = await self.cache.optimistic(
            self.cache.match(QueryEntity.MY_LISTS),
            MutationIntent.delete(list_id, entity=QueryEntity.MY_LISTS),
            partial(self.adapters.game_lists.delete, list_id),
        )
        self.cache.remove_matching(QueryEntity.GAME_LIST, id=str(list_id))
        self.cache.invalidate(QueryEntity.USER_LISTS)
        self.cache.invalidate(QueryEntity.LISTS_FOR_GAME)
        return result

    async def add_game_to_list(self, list_id: str | int, game_id: str | int) -> Acknowledgement:
        result = await self.adapters.game_lists.add_game(list_id, game_id)
        self._after_list_games_change(list_id, game_id)
        return result

    async def remove_game_from_list(self, list_id: str | int, game_id: str | int) -> Acknowledgement:
        result = await self.adapters.game_lists.remove_game(list_id, game_id)
        self._after_list_games_change(list_id, game_id)
        return result

    def _after_list_games_change(self, list_id: str | int, game_id: str | int) -> None:
        self.cache.invalidate(QueryEntity.GAME_LIST, id=str(list_id))
        self.cache.invalidate(QueryEntity.LISTS_FOR_GAME, gameId=str(game_id))
        self.cache.invalidate(QueryEntity.MY_LISTS)

    async def upload_list_cover(
        self,
        list_id: str | int,
        image: bytes,
        *,
        filename: str = "cover.jpg",
        compress: bool = True,
    ) -> CoverUpload:
        """Upload a list cover, compressed to a small JPEG unless ``compress`` is off."""
        if compress:
            image = await asyncio.to_thread(compress_cover, image)
            filename = jpeg_filename(filename)
        result = await self.adapters.game_lists.upload_cover(list_id, image, filename=filename)
        self._after_list_cover_change(list_id)
        return result

    async def remove_list_cover(self, list_id: str | int) -> Acknowledgement:
        result = await self.adapters.game_lists.remove_cover(list_id)
        self._after_list_cover_change(list_id)
        return result

    def _after_list_cover_change(self, list_id: str | int) -> None:
        self.cache.invalidate(QueryEntity.GAME_LIST, id=str(list_id))
        for entity in (QueryEntity.MY_LISTS, QueryEntity.SAVED_LISTS, QueryEntity.USER_LISTS):
            self.cache.invalidate(entity)

    async def save_list(self, list_id: str | int) -> Acknowledgement:
        result = await self.adapters.game_lists.save(list_id)
        self.cache.invalidate(QueryEntity.LIST_SAVED, id=str(list_id))
        self.cache.invalidate(QueryEntity.SAVED_LISTS)
        return result

    async def unsave_list(self, list_id: str | int) -> Acknowledgement:
        result = await self.cache.optimistic(
            self.cache.match(QueryEntity.SAVED_LISTS),
            MutationIntent.delete(list_id, entity=QueryEntity.SAVED_LISTS),
            partial(self.adapters.game_lists.unsave, list_id),
        )
        self.cache.invalidate(QueryEntity.LIST_SAVED, id=str(list_id))
        return result

    # ------------------------------------------------------------------
    # Admin
    # ------------------------------------------------------------------

    async def admin_delete_review(self, review_id: str | int) -> Acknowledgement:
        """Delete a review from the moderation table, optimistically."""
        result = await self.cache.optimistic(
            self.cache.match(QueryEntity.ADMIN_REVIEWS),
            MutationIntent.delete(review_id, entity=QueryEntity.ADMIN_REVIEWS),
            partial(self.adapters.admin.delete_review, review_id),
        )
        self.cache.invalidate(QueryEntity.ADMIN_STATS)
        self.cache.invalidate(QueryEntity.ADMIN_AUDIT_LOGS)
        return result

    async def set_user_role(self, user_id: str | int, role: UserRole | str) -> AdminUser:
        user = await self.adapters.admin.set_role(user_id, role)
        self._after_user_change(user)
        return user

    async def toggle_user_suspension(self, user_id: str | int) -> SuspensionResult:
        result = await self.adapters.admin.toggle_suspension(user_id)
        self._after_user_change(result.user)
        return result

    def _after_user_change(self, user: AdminUser) -> None:
        self.cache.apply_matching(
            QueryEntity.ADMIN_USERS,
            MutationIntent.update(user.id, user, entity=QueryEntity.ADMIN_USERS),
        )
        self.cache.invalidate(QueryEntity.ADMIN_STATS)
        self.cache.invalidate(QueryEntity.ADMIN_AUDIT_LOGS)

    async def update_app_settings(self, changes: Mapping[str, Any]) -> list[SettingUpdateResult]:
        """Change app settings, showing the new values before the server confirms.

        Settings are sent one PATCH per key. If one fails the cached
        settings go back to what they were and are marked stale, since the
        keys sent before the failure did change on the server.
        """
        if not changes:
            raise InvalidParamsError(
                "No settings to update", field="changes", operation="update_app_settings"
            )
        key = self.queries.app_settings().key

        async def send() -> list[SettingUpdateResult]:
            return [
                await self.adapters.admin.update_setting(name, value)
                for name, value in changes.items()
            ]

        try:
            results = await self.cache.optimistic(
                key, MutationIntent.merge(dict(changes), entity=QueryEntity.APP_SETTINGS), send
            )
        except CheckpointerError:
            self.cache.invalidate(key)
            raise
        self.cache.invalidate(QueryEntity.ADMIN_AUDIT_LOGS)
        return results

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close(self) -> None:
        """Tear down the cache and the HTTP session (logout)."""
        await self.cache.close()
        await self.client.close()
        logger.debug("Checkpointer session closed")

    async def __aenter__(self) -> CheckpointerSession:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()


__all__ = ["CheckpointerSession"]
