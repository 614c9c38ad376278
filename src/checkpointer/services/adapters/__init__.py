"""Fetch adapters, one per REST resource."""

from .admin import AdminAdapter
from .base import BaseAdapter
from .game_lists import GameListsAdapter
from .games import BrowseParams, GamesAdapter
from .registry import AdapterRegistry
from .reviews import ReviewsAdapter
from .sessions import SessionsAdapter
from .settings import SettingsAdapter
from .users import UsersAdapter
from .wishlist import WishlistAdapter

__all__ = [
    "AdapterRegistry",
    "AdminAdapter",
    "BaseAdapter",
    "BrowseParams",
    "GameListsAdapter",
    "GamesAdapter",
    "ReviewsAdapter",
    "SessionsAdapter",
    "SettingsAdapter",
    "UsersAdapter",
    "WishlistAdapter",
]
