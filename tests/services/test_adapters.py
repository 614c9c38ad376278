"""Tests for the fetch adapters."""

import logging

import aiohttp
import pytest

from checkpointer.services.adapters import AdapterRegistry, BrowseParams
from checkpointer.services.adapters.reviews import ALREADY_REVIEWED
from checkpointer.services.models import (
    BrowseResponse,
    GameListCreate,
    GameListUpdate,
    GamesResponse,
    ReviewCreate,
)
from checkpointer.shared.constants import SessionStatus, SortBy, SortOrder, UserRole
from checkpointer.shared.errors import (
    InvalidParamsError,
    MalformedResponseError,
    NotFoundError,
    ServerError,
)


@pytest.fixture
def adapters(api_client) -> AdapterRegistry:
    return AdapterRegistry.from_client(api_client)


def _respond(mock_session, response_factory, status, body) -> None:
    mock_session.request.return_value.__aenter__.return_value = response_factory(status, body)


def _called_url(mock_session) -> str:
    return mock_session.request.call_args.args[1]


class TestGamesAdapter:
    """Test catalog reads."""

    @pytest.mark.parametrize("query", [None, "", "   ", "\t\n"])
    async def test_blank_search_skips_network(self, adapters, mock_session, query) -> None:
        result = await adapters.games.search(query)

        assert isinstance(result, GamesResponse)
        assert result.games == []
        mock_session.request.assert_not_called()

    async def test_search_trims_query(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(mock_session, response_factory, 200, {"games": [payloads.game()]})

        result = await adapters.games.search("  hades ")

        assert result.games[0].name == "Hades"
        assert mock_session.request.call_args.kwargs["params"] == {"q": "hades"}

    async def test_browse_sends_filters(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(mock_session, response_factory, 200, payloads.browse(["g1", "g2"], total=2))

        result = await adapters.games.browse(
            sort_by=SortBy.RATING, sort_order=SortOrder.DESC, genre="RPG", limit=24, offset=0
        )

        assert isinstance(result, BrowseResponse)
        assert result.total_count == 2
        assert [game.item_id for game in result.games] == ["g1", "g2"]
        assert mock_session.request.call_args.kwargs["params"] == {
            "sortBy": "rating",
            "sortOrder": "desc",
            "genre": "RPG",
            "limit": "24",
            "offset": "0",
        }

    def test_browse_params_reject_bad_sort(self) -> None:
        with pytest.raises(InvalidParamsError) as exc_info:
            BrowseParams.build(sort_by="popularity")

        assert exc_info.value.field == "sort_by"

    def test_browse_params_reject_negative_offset(self) -> None:
        with pytest.raises(InvalidParamsError):
            BrowseParams.build(offset=-1)

    def test_browse_params_blank_text_is_absent(self) -> None:
        assert BrowseParams.build(q="  ", genre="").filter_params()["q"] is None

    async def test_get_quotes_id(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(mock_session, response_factory, 200, {"game": payloads.game("a/b")})

        detail = await adapters.games.get("a/b")

        assert detail.game.id == "a/b"
        assert _called_url(mock_session) == "http://api.test/api/games/a%2Fb"

    async def test_get_unknown_game(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 404, {"error": "Game not found"})

        with pytest.raises(NotFoundError) as exc_info:
            await adapters.games.get("missing")

        assert exc_info.value.message == "Game not found"

    @pytest.mark.parametrize("game_id", ["", "  ", None])
    async def test_blank_id_rejected_before_request(self, adapters, mock_session, game_id) -> None:
        with pytest.raises(InvalidParamsError):
            await adapters.games.get(game_id)

        mock_session.request.assert_not_called()

    async def test_malformed_payload(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"games": [{"id": "g1"}]})

        with pytest.raises(MalformedResponseError) as exc_info:
            await adapters.games.top_rated(10)

        assert exc_info.value.endpoint == "/api/games/top-rated"
        assert exc_info.value.validation_errors

    async def test_rating_parses_decimal_string(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"total": "4.25"})

        rating = await adapters.games.rating("g1")

        assert rating.average == 4.25
        assert _called_url(mock_session) == "http://api.test/api/games/rating/g1"


class TestSessionsAdapter:
    async def test_history_page(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(
            mock_session,
            response_factory,
            200,
            payloads.history_page(["s1", "s2"], total=5, next_offset=2),
        )

        page = await adapters.sessions.history("u1", offset=0, limit=2)

        assert [entry.item_id for entry in page.sessions] == ["s1", "s2"]
        assert page.next_page_offset == 2
        assert _called_url(mock_session) == "http://api.test/api/game-sessions/user/u1/history"

    async def test_history_rejects_bad_window(self, adapters, mock_session) -> None:
        with pytest.raises(InvalidParamsError):
            await adapters.sessions.history("u1", offset=-5, limit=20)
        with pytest.raises(InvalidParamsError):
            await adapters.sessions.history("u1", offset=0, limit=0)

        mock_session.request.assert_not_called()

    async def test_stop_sends_status(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(
            mock_session,
            response_factory,
            200,
            {"session": payloads.history_entry("s1")["session"]},
        )

        await adapters.sessions.stop(SessionStatus.STASHED)

        assert mock_session.request.call_args.args[0] == "DELETE"
        assert mock_session.request.call_args.kwargs["json"] == {"status": "stashed"}

    async def test_idle_current_session(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"session": None, "game": None})

        current = await adapters.sessions.current()

        assert current.session is None
        assert current.game is None


class TestWishlistAdapter:
    async def test_mine(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(mock_session, response_factory, 200, payloads.wishlist_page(["g1"], total=1, next_offset=None))

        page = await adapters.wishlist.mine(offset=0, limit=20)

        assert page.items[0].item_id == "g1"
        assert page.next_page_offset is None
        assert _called_url(mock_session) == "http://api.test/api/want-to-play"

    async def test_check(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"inWishlist": True})

        assert (await adapters.wishlist.check("g1")).in_wishlist is True
        assert _called_url(mock_session) == "http://api.test/api/want-to-play/check/g1"


class TestReviewsAdapter:
    async def test_duplicate_review_message(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 409, {"error": "duplicate key"})

        with pytest.raises(ServerError) as exc_info:
            await adapters.reviews.create(ReviewCreate(game_id="g1", user_id="u1", rating=4))

        assert exc_info.value.status == 409
        assert exc_info.value.message == ALREADY_REVIEWED

    async def test_create_sends_wire_names(self, adapters, mock_session, response_factory) -> None:
        _respond(
            mock_session,
            response_factory,
            201,
            {"id": "r1", "userId": "u1", "gameId": "g1", "rating": "4.0", "createdAt": "2024-01-01"},
        )

        review = await adapters.reviews.create(
            ReviewCreate(game_id="g1", user_id="u1", rating=4, review_text="Great")
        )

        assert review.rating_value == 4.0
        assert mock_session.request.call_args.kwargs["json"] == {
            "gameId": "g1",
            "userId": "u1",
            "rating": 4.0,
            "reviewText": "Great",
        }

    async def test_no_review_by_user(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, [])

        assert await adapters.reviews.by_game_and_user("g1", "u1") is None


class TestGameListsAdapter:
    async def test_get_unwraps_list(self, adapters, mock_session, response_factory) -> None:
        _respond(
            mock_session,
            response_factory,
            200,
            {"list": {"id": "l1", "name": "Backlog", "visibility": "private", "isOwner": True, "games": []}},
        )

        detail = await adapters.game_lists.get("l1", authenticated=True)

        assert detail.name == "Backlog"
        assert detail.is_owner is True
        assert _called_url(mock_session) == "http://api.test/api/game-lists/l1/auth"

    async def test_create(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 201, {"list": {"id": "l2", "name": "Co-op"}})

        created = await adapters.game_lists.create(GameListCreate(name="Co-op"))

        assert created.item_id == "l2"
        assert mock_session.request.call_args.kwargs["json"] == {"name": "Co-op", "visibility": "public"}

    async def test_empty_update_rejected(self, adapters, mock_session) -> None:
        with pytest.raises(InvalidParamsError):
            await adapters.game_lists.update("l1", GameListUpdate())

        mock_session.request.assert_not_called()

    async def test_reorder(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"reordered": True})

        await adapters.game_lists.reorder("l1", ["g2", "g1"])

        assert mock_session.request.call_args.kwargs["json"] == {"gameIds": ["g2", "g1"]}
        assert _called_url(mock_session) == "http://api.test/api/game-lists/l1/reorder"


class TestAdminAdapter:
    async def test_users_page(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(
            mock_session,
            response_factory,
            200,
            {"users": [payloads.admin_user("u1", suspended_at="2024-03-01")], "totalCount": 1, "hasMore": False},
        )

        page = await adapters.admin.users(limit=20, offset=0)

        assert page.total_count == 1
        assert page.users[0].is_suspended is True

    async def test_set_role_normalizes_case(self, adapters, mock_session, response_factory, payloads) -> None:
        _respond(mock_session, response_factory, 200, payloads.admin_user("u1", role="admin"))

        user = await adapters.admin.set_role("u1", "ADMIN")

        assert user.role is UserRole.ADMIN
        assert mock_session.request.call_args.kwargs["json"] == {"role": "admin"}

    async def test_unknown_role(self, adapters, mock_session) -> None:
        with pytest.raises(InvalidParamsError):
            await adapters.admin.set_role("u1", "owner")

        mock_session.request.assert_not_called()


class TestListCovers:
    async def test_upload_sends_multipart_form(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"coverUrl": "/covers/l1.jpg", "key": "covers/l1.jpg"})

        result = await adapters.game_lists.upload_cover("l1", b"jpeg-bytes", filename="mine.jpg")

        assert result.cover_url == "/covers/l1.jpg"
        assert mock_session.request.call_args.args[0] == "POST"
        assert _called_url(mock_session) == "http://api.test/api/game-lists/l1/cover"
        form = mock_session.request.call_args.kwargs["data"]
        assert isinstance(form, aiohttp.FormData)
        type_options, headers, value = form._fields[0]
        assert type_options["name"] == "cover"
        assert type_options["filename"] == "mine.jpg"
        assert headers[aiohttp.hdrs.CONTENT_TYPE] == "image/jpeg"
        assert value == b"jpeg-bytes"

    async def test_empty_upload_rejected(self, adapters, mock_session) -> None:
        with pytest.raises(InvalidParamsError):
            await adapters.game_lists.upload_cover("l1", b"")

        mock_session.request.assert_not_called()

    async def test_remove(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"removed": True})

        result = await adapters.game_lists.remove_cover("l1")

        assert result.removed is True
        assert mock_session.request.call_args.args[0] == "DELETE"
        assert _called_url(mock_session) == "http://api.test/api/game-lists/l1/cover"

    async def test_remove_logs_start_of_operation(self, adapters, mock_session, response_factory, caplog) -> None:
        _respond(mock_session, response_factory, 200, {"removed": True})
        name = "checkpointer.services.adapters.game_lists"

        with caplog.at_level(logging.DEBUG, logger=name):
            await adapters.game_lists.remove_cover("l1")

        started = [r for r in caplog.records if r.name == name and r.getMessage().startswith("Starting")]
        assert started[0].operation == "remove_list_cover"
        assert started[0].context == {"endpoint": "/api/game-lists/l1/cover", "method": "DELETE"}


class TestAppSettings:
    async def test_get_keeps_unknown_keys(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {"darkModeEnabled": False, "signupsOpen": True})

        settings = await adapters.settings.get()

        assert settings.dark_mode_enabled is False
        assert settings.model_dump(by_alias=True)["signupsOpen"] is True
        assert _called_url(mock_session) == "http://api.test/api/settings"

    async def test_defaults_fill_missing_keys(self, adapters, mock_session, response_factory) -> None:
        _respond(mock_session, response_factory, 200, {})

        assert (await adapters.settings.get()).dark_mode_enabled is True

    async def test_admin_update(self, adapters, mock_session, response_factory) -> None:
        _respond(
            mock_session,
            response_factory,
            200,
            {"success": True, "key": "darkModeEnabled", "value": False},
        )

        result = await adapters.admin.update_setting("darkModeEnabled", False)

        assert result.success is True
        assert result.value is False
        assert mock_session.request.call_args.args[0] == "PATCH"
        assert _called_url(mock_session) == "http://api.test/api/admin/settings"
        assert mock_session.request.call_args.kwargs["json"] == {"key": "darkModeEnabled", "value": False}

    async def test_blank_key_rejected(self, adapters, mock_session) -> None:
        with pytest.raises(InvalidParamsError):
            await adapters.admin.update_setting("", True)

        mock_session.request.assert_not_called()
