"""All resource adapters bound to one ApiClient."""

from __future__ import annotations

from dataclasses import dataclass

from checkpointer.services.adapters.admin import AdminAdapter
from checkpointer.services.adapters.game_lists import GameListsAdapter
from checkpointer.services.adapters.games import GamesAdapter
from checkpointer.services.adapters.reviews import ReviewsAdapter
from checkpointer.services.adapters.sessions import SessionsAdapter
from checkpointer.services.adapters.settings import SettingsAdapter
from checkpointer.services.adapters.users import UsersAdapter
from checkpointer.services.adapters.wishlist import WishlistAdapter
from checkpointer.services.http_client import ApiClient


@dataclass(frozen=True)
class AdapterRegistry:
    games: GamesAdapter
    sessions: SessionsAdapter
    wishlist: WishlistAdapter
    reviews: ReviewsAdapter
    game_lists: GameListsAdapter
    users: UsersAdapter
    admin: AdminAdapter
    settings: SettingsAdapter

    @classmethod
    def from_client(cls, client: ApiClient) -> AdapterRegistry:
        return cls(
            games=GamesAdapter(client),
            sessions=SessionsAdapter(client),
            wishlist=WishlistAdapter(client),
            reviews=ReviewsAdapter(client),
            game_lists=GameListsAdapter(client),
            users=UsersAdapter(client),
            admin=AdminAdapter(client),
            settings=SettingsAdapter(client),
        )


__all__ = ["AdapterRegistry"]
