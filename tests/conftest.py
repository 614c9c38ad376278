"""
Pytest configuration and shared fixtures for Checkpointer tests.

This module provides fake aiohttp sessions, a controllable clock and
payload builders shared by the test modules.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from checkpointer.config.loader import SettingsLoader
from checkpointer.config.models import ApiSettings, Settings
from checkpointer.services.http_client import ApiClient
from checkpointer.services.query_cache import QueryCache
from checkpointer.services.session import CheckpointerSession

# Keep developer machines' environment out of the settings under test
for _name in list(os.environ):
    if _name.startswith("CHECKPOINTER_"):
        del os.environ[_name]


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock: FakeClock) -> QueryCache:
    """Query cache driven by the fake clock."""
    return QueryCache(clock=clock)


@pytest.fixture
def settings() -> Settings:
    """Settings independent of config files and environment."""
    return Settings(api=ApiSettings(base_url="http://api.test", session_cookie="sid=abc"))


@pytest.fixture(autouse=True)
def _reset_settings_singleton():
    SettingsLoader.reset()
    yield
    SettingsLoader.reset()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    # the CLI callback installs handlers and stops propagation
    logger = logging.getLogger("checkpointer")
    yield
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


def make_response(status: int = 200, body: Any = None, *, json_error: Exception | None = None) -> AsyncMock:
    """Fake aiohttp response usable inside ``async with session.request(...)``."""
    response = AsyncMock()
    response.status = status
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def response_factory() -> Callable[..., AsyncMock]:
    return make_response


@pytest.fixture
def mock_session() -> MagicMock:
    """Fake aiohttp.ClientSession answering 200 ``{}`` until told otherwise."""
    session = MagicMock()
    session.closed = False
    session.request.return_value.__aenter__.return_value = make_response(200, {})
    session.request.return_value.__aexit__.return_value = False
    return session


def respond_with(session: MagicMock, *responses: AsyncMock) -> None:
    """Queue responses on a fake session, one per request."""
    contexts = []
    for response in responses:
        context = MagicMock()
        context.__aenter__.return_value = response
        context.__aexit__.return_value = False
        contexts.append(context)
    session.request.side_effect = contexts


@pytest.fixture
def queue_responses() -> Callable[..., None]:
    return respond_with


@pytest.fixture
def api_client(settings: Settings, mock_session: MagicMock) -> ApiClient:
    return ApiClient(settings.api, session=mock_session)


@pytest.fixture
def session(settings: Settings, api_client: ApiClient, clock: FakeClock) -> CheckpointerSession:
    """Client session over the fake HTTP session."""
    return CheckpointerSession(settings, client=api_client, clock=clock)


class Gate:
    """Fetcher whose completion the test controls.

    Every call is counted; each call waits until ``release`` (or ``fail``)
    is invoked for it.
    """

    def __init__(self) -> None:
        self.calls = 0
        self._futures: list[asyncio.Future] = []

    async def __call__(self) -> Any:
        self.calls += 1
        future = asyncio.get_running_loop().create_future()
        self._futures.append(future)
        return await future

    def release(self, value: Any, index: int = -1) -> None:
        self._futures[index].set_result(value)

    def fail(self, error: BaseException, index: int = -1) -> None:
        self._futures[index].set_exception(error)


@pytest.fixture
def gate() -> Gate:
    return Gate()


# ---------------------------------------------------------------------------
# Payload builders (wire format, camelCase)
# ---------------------------------------------------------------------------


def game_payload(game_id: str = "g1", name: str = "Hades", **extra: Any) -> dict[str, Any]:
    payload = {
        "id": game_id,
        "name": name,
        "slug": name.lower().replace(" ", "-"),
        "releaseDate": "2020-09-17T00:00:00.000Z",
        "igdbRating": "92.50",
    }
    payload.update(extra)
    return payload


def history_entry_payload(session_id: str, game_id: str = "g1", user_id: str = "u1") -> dict[str, Any]:
    return {
        "session": {
            "id": session_id,
            "userId": user_id,
            "gameId": game_id,
            "startedAt": "2024-01-01T10:00:00Z",
            "endedAt": "2024-01-01T12:00:00Z",
            "status": "finished",
        },
        "game": {"id": game_id, "name": f"Game {game_id}", "coverUrl": None},
    }


def history_page_payload(
    session_ids: list[str],
    *,
    total: int,
    next_offset: int | None,
) -> dict[str, Any]:
    return {
        "sessions": [history_entry_payload(session_id) for session_id in session_ids],
        "hasMore": next_offset is not None,
        "nextOffset": next_offset,
        "totalCount": total,
    }


def wishlist_item_payload(game_id: str) -> dict[str, Any]:
    return {
        "gameId": game_id,
        "createdAt": "2024-02-01T00:00:00Z",
        "gameName": f"Game {game_id}",
        "gameCoverUrl": None,
        "gameSlug": f"game-{game_id}",
    }


def wishlist_page_payload(game_ids: list[str], *, total: int, next_offset: int | None) -> dict[str, Any]:
    return {
        "wishlist": [wishlist_item_payload(game_id) for game_id in game_ids],
        "hasMore": next_offset is not None,
        "nextOffset": next_offset,
        "totalCount": total,
    }


def admin_user_payload(user_id: str, role: str = "free", suspended_at: str | None = None) -> dict[str, Any]:
    return {
        "id": user_id,
        "username": f"user-{user_id}",
        "displayName": None,
        "avatarUrl": None,
        "role": role,
        "suspendedAt": suspended_at,
        "createdAt": "2024-01-01T00:00:00Z",
    }


def browse_payload(
    game_ids: list[str],
    *,
    total: int,
    limit: int = 24,
    offset: int = 0,
) -> dict[str, Any]:
    return {
        "games": [game_payload(game_id, f"Game {game_id}") for game_id in game_ids],
        "totalCount": total,
        "years": [2020, 2021],
        "genres": [{"id": 1, "name": "RPG"}],
        "platforms": [{"id": 6, "name": "PC"}],
        "pagination": {"limit": limit, "offset": offset, "hasMore": offset + limit < total},
    }


@pytest.fixture
def payloads():
    """Namespace of the payload builders."""

    class Payloads:
        game = staticmethod(game_payload)
        history_entry = staticmethod(history_entry_payload)
        history_page = staticmethod(history_page_payload)
        wishlist_item = staticmethod(wishlist_item_payload)
        wishlist_page = staticmethod(wishlist_page_payload)
        admin_user = staticmethod(admin_user_payload)
        browse = staticmethod(browse_payload)

    return Payloads
