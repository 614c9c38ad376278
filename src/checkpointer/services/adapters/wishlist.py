"""Wishlist ("want to play") adapter."""

from __future__ import annotations

from checkpointer.services.adapters.base import BaseAdapter, path_id, require_page
from checkpointer.services.models import (
    Acknowledgement,
    CountResponse,
    WishlistCheck,
    WishlistPage,
)
from checkpointer.shared.constants import ApiPaths, PageSize


class WishlistAdapter(BaseAdapter):
    """Wishlist reads and writes. Items are identified by game id."""

    async def mine(self, offset: int = 0, limit: int = PageSize.WISHLIST) -> WishlistPage:
        """One cursor page of the signed-in user's wishlist."""
        require_page(offset, limit, "wishlist")
        return await self._fetch(
            "wishlist",
            WishlistPage,
            "GET",
            ApiPaths.WISHLIST,
            params={"offset": offset, "limit": limit},
        )

    async def for_user(
        self,
        user_id: str | int,
        offset: int = 0,
        limit: int = PageSize.WISHLIST,
    ) -> WishlistPage:
        """One cursor page of another user's public wishlist."""
        require_page(offset, limit, "user_wishlist")
        path = ApiPaths.WISHLIST_USER.format(user_id=path_id(user_id, "user_id", "user_wishlist"))
        return await self._fetch(
            "user_wishlist",
            WishlistPage,
            "GET",
            path,
            params={"offset": offset, "limit": limit},
        )

    async def check(self, game_id: str | int) -> WishlistCheck:
        path = ApiPaths.WISHLIST_CHECK.format(game_id=path_id(game_id, "game_id", "wishlist_check"))
        return await self._fetch("wishlist_check", WishlistCheck, "GET", path)

    async def count(self, game_id: str | int) -> CountResponse:
        """How many users want to play ``game_id``."""
        path = ApiPaths.WISHLIST_COUNT.format(game_id=path_id(game_id, "game_id", "wishlist_count"))
        return await self._fetch("wishlist_count", CountResponse, "GET", path)

    async def add(self, game_id: str | int) -> Acknowledgement:
        path = ApiPaths.WISHLIST_ITEM.format(game_id=path_id(game_id, "game_id", "wishlist_add"))
        return await self._fetch("wishlist_add", Acknowledgement, "POST", path)

    async def remove(self, game_id: str | int) -> Acknowledgement:
        path = ApiPaths.WISHLIST_ITEM.format(game_id=path_id(game_id, "game_id", "wishlist_remove"))
        return await self._fetch("wishlist_remove", Acknowledgement, "DELETE", path)


__all__ = ["WishlistAdapter"]
