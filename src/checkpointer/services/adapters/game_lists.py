"""Game lists adapter (user-curated collections of games)."""

from __future__ import annotations

from collections.abc import Sequence

import aiohttp

from checkpointer.services.adapters.base import BaseAdapter, path_id, require_id
from checkpointer.services.models import (
    Acknowledgement,
    CoverUpload,
    GameListCreate,
    GameListDetail,
    GameListResponse,
    GameListsResponse,
    GameListUpdate,
    ListSaveStatus,
    ListsForGameResponse,
)
from checkpointer.shared.constants import ApiPaths, CoverImage
from checkpointer.shared.errors import InvalidParamsError


class GameListsAdapter(BaseAdapter):
    """Game list reads and writes."""

    async def mine(self) -> GameListsResponse:
        """The signed-in user's lists, most recently updated first."""
        return await self._fetch("my_game_lists", GameListsResponse, "GET", ApiPaths.GAME_LISTS)

    async def saved(self) -> GameListsResponse:
        """Lists the signed-in user has saved."""
        return await self._fetch(
            "saved_game_lists", GameListsResponse, "GET", ApiPaths.GAME_LISTS_SAVED
        )

    async def by_user(self, user_id: str | int) -> GameListsResponse:
        """Public lists of a user."""
        path = ApiPaths.GAME_LISTS_USER.format(user_id=path_id(user_id, "user_id", "user_game_lists"))
        return await self._fetch("user_game_lists", GameListsResponse, "GET", path)

    async def get(self, list_id: str | int, *, authenticated: bool = False) -> GameListDetail:
        """A list with its games.

        ``authenticated`` reads through the owner-aware endpoint, which also
        returns private lists to their owner and sets ``is_owner``.
        """
        template = ApiPaths.GAME_LIST_AUTH if authenticated else ApiPaths.GAME_LIST
        path = template.format(list_id=path_id(list_id, "list_id", "get_game_list"))
        response = await self._fetch("get_game_list", GameListResponse, "GET", path)
        return response.game_list

    async def for_game(self, game_id: str | int) -> ListsForGameResponse:
        """The signed-in user's lists, each flagged with whether it holds ``game_id``."""
        path = ApiPaths.GAME_LISTS_FOR_GAME.format(
            game_id=path_id(game_id, "game_id", "lists_for_game")
        )
        return await self._fetch("lists_for_game", ListsForGameResponse, "GET", path)

    async def create(self, payload: GameListCreate) -> GameListDetail:
        response = await self._fetch(
            "create_game_list",
            GameListResponse,
            "POST",
            ApiPaths.GAME_LISTS,
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
        )
        return response.game_list

    async def update(self, list_id: str | int, payload: GameListUpdate) -> GameListDetail:
        body = payload.model_dump(mode="json", by_alias=True, exclude_unset=True)
        if not body:
            raise InvalidParamsError(
                "Nothing to update",
                field="payload",
                operation="update_game_list",
            )
        path = ApiPaths.GAME_LIST.format(list_id=path_id(list_id, "list_id", "update_game_list"))
        response = await self._fetch("update_game_list", GameListResponse, "PATCH", path, json=body)
        return response.game_list

    async def delete(self, list_id: str | int) -> Acknowledgement:
        path = ApiPaths.GAME_LIST.format(list_id=path_id(list_id, "list_id", "delete_game_list"))
        return await self._fetch("delete_game_list", Acknowledgement, "DELETE", path)

    async def add_game(self, list_id: str | int, game_id: str | int) -> Acknowledgement:
        """Append a game to a list. A duplicate answers ServerError (409)."""
        path = ApiPaths.GAME_LIST_GAME.format(
            list_id=path_id(list_id, "list_id", "add_game_to_list"),
            game_id=path_id(game_id, "game_id", "add_game_to_list"),
        )
        return await self._fetch("add_game_to_list", Acknowledgement, "POST", path)

    async def remove_game(self, list_id: str | int, game_id: str | int) -> Acknowledgement:
        path = ApiPaths.GAME_LIST_GAME.format(
            list_id=path_id(list_id, "list_id", "remove_game_from_list"),
            game_id=path_id(game_id, "game_id", "remove_game_from_list"),
        )
        return await self._fetch("remove_game_from_list", Acknowledgement, "DELETE", path)

    async def reorder(self, list_id: str | int, game_ids: Sequence[str | int]) -> Acknowledgement:
        """Set the order of a list's games."""
        ids = [require_id(game_id, "game_ids", "reorder_game_list") for game_id in game_ids]
        path = ApiPaths.GAME_LIST_REORDER.format(
            list_id=path_id(list_id, "list_id", "reorder_game_list")
        )
        return await self._fetch(
            "reorder_game_list", Acknowledgement, "PATCH", path, json={"gameIds": ids}
        )

    async def save_status(self, list_id: str | int) -> ListSaveStatus:
        path = ApiPaths.GAME_LIST_SAVE.format(list_id=path_id(list_id, "list_id", "list_save_status"))
        return await self._fetch("list_save_status", ListSaveStatus, "GET", path)

    async def save(self, list_id: str | int) -> Acknowledgement:
        path = ApiPaths.GAME_LIST_SAVE.format(list_id=path_id(list_id, "list_id", "save_game_list"))
        return await self._fetch("save_game_list", Acknowledgement, "POST", path)

    async def unsave(self, list_id: str | int) -> Acknowledgement:
        path = ApiPaths.GAME_LIST_SAVE.format(list_id=path_id(list_id, "list_id", "unsave_game_list"))
        return await self._fetch("unsave_game_list", Acknowledgement, "DELETE", path)

    async def upload_cover(
        self,
        list_id: str | int,
        image: bytes,
        *,
        filename: str = "cover.jpg",
        content_type: str = CoverImage.CONTENT_TYPE,
    ) -> CoverUpload:
        """Upload a cover image as multipart form data.

        The bytes are sent as given; see ``compress_cover`` for shrinking
        them first.
        """
        if not image:
            raise InvalidParamsError(
                "Cover image is empty", field="image", operation="upload_list_cover"
            )
        path = ApiPaths.GAME_LIST_COVER.format(
            list_id=path_id(list_id, "list_id", "upload_list_cover")
        )
        form = aiohttp.FormData()
        form.add_field(CoverImage.FORM_FIELD, image, filename=filename, content_type=content_type)
        return await self._fetch("upload_list_cover", CoverUpload, "POST", path, form=form)

    async def remove_cover(self, list_id: str | int) -> Acknowledgement:
        path = ApiPaths.GAME_LIST_COVER.format(
            list_id=path_id(list_id, "list_id", "remove_list_cover")
        )
        return await self._fetch("remove_list_cover", Acknowledgement, "DELETE", path)


__all__ = ["GameListsAdapter"]
