"""Play sessions adapter (currently playing, history, logging past games)."""

from __future__ import annotations

from checkpointer.services.adapters.base import BaseAdapter, path_id, require_id, require_page
from checkpointer.services.models import (
    CountResponse,
    CurrentlyPlaying,
    PlayHistoryPage,
    StopPlayingResponse,
)
from checkpointer.shared.constants import ApiPaths, PageSize, SessionStatus


class SessionsAdapter(BaseAdapter):
    """Game session reads and writes."""

    async def current(self) -> CurrentlyPlaying:
        """The signed-in user's running session."""
        return await self._fetch(
            "current_session", CurrentlyPlaying, "GET", ApiPaths.SESSIONS_CURRENT
        )

    async def set_current(self, game_id: str | int) -> CurrentlyPlaying:
        """Start playing ``game_id``, ending any running session."""
        game_id = require_id(game_id, "game_id", "set_current_session")
        return await self._fetch(
            "set_current_session",
            CurrentlyPlaying,
            "POST",
            ApiPaths.SESSIONS_CURRENT,
            json={"gameId": game_id},
        )

    async def stop(self, status: SessionStatus | None = None) -> StopPlayingResponse:
        """End the running session, optionally recording how it ended."""
        body = {"status": SessionStatus(status).value} if status is not None else {}
        return await self._fetch(
            "stop_session",
            StopPlayingResponse,
            "DELETE",
            ApiPaths.SESSIONS_CURRENT,
            json=body,
        )

    async def user_current(self, user_id: str | int) -> CurrentlyPlaying:
        path = ApiPaths.SESSIONS_USER.format(
            user_id=path_id(user_id, "user_id", "user_current_session")
        )
        return await self._fetch("user_current_session", CurrentlyPlaying, "GET", path)

    async def history(
        self,
        user_id: str | int,
        offset: int = 0,
        limit: int = PageSize.HISTORY,
    ) -> PlayHistoryPage:
        """One cursor page of a user's finished and stashed sessions."""
        require_page(offset, limit, "play_history")
        path = ApiPaths.SESSIONS_USER_HISTORY.format(
            user_id=path_id(user_id, "user_id", "play_history")
        )
        return await self._fetch(
            "play_history",
            PlayHistoryPage,
            "GET",
            path,
            params={"offset": offset, "limit": limit},
        )

    async def log_past(
        self,
        game_id: str | int,
        status: SessionStatus = SessionStatus.FINISHED,
    ) -> CurrentlyPlaying:
        """Record an already completed session for ``game_id``."""
        game_id = require_id(game_id, "game_id", "log_past_game")
        return await self._fetch(
            "log_past_game",
            CurrentlyPlaying,
            "POST",
            ApiPaths.SESSIONS_HISTORY,
            json={"gameId": game_id, "status": SessionStatus(status).value},
        )

    async def active_players(self, game_id: str | int) -> CountResponse:
        """Number of users currently playing ``game_id``."""
        path = ApiPaths.SESSIONS_ACTIVE_PLAYERS.format(
            game_id=path_id(game_id, "game_id", "active_players")
        )
        return await self._fetch("active_players", CountResponse, "GET", path)


__all__ = ["SessionsAdapter"]
