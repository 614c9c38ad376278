"""Checkpointer API Response Models.

This module defines Pydantic models for Checkpointer API responses so that
payloads are structurally validated at the adapter boundary. Wire names
are camelCase; attributes are snake_case (see BaseTypeModel).

List-shaped responses derive from ItemCollection, which gives the cache
synchronizer one way to read and replace their items whatever the
response calls its list field (``games``, ``sessions``, ``wishlist``...).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar, Union

from pydantic import ConfigDict, Field, field_validator
from typing_extensions import Self

from checkpointer.shared.constants import ListVisibility, SessionStatus, UserRole
from checkpointer.shared.types import BaseTypeModel

# Ids are uuids on the server but older rows and fixtures use integers
Identifier = Union[str, int]


def _as_float(value: Any) -> float | None:
    # numeric columns arrive as decimal strings ("8.50")
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


class ItemCollection(BaseTypeModel):
    """Response holding an ordered list of items under ``items_field``."""

    items_field: ClassVar[str] = "items"

    @property
    def items(self) -> list[Any]:
        return list(getattr(self, self.items_field))

    @property
    def count(self) -> int | None:
        """Server-side total, when the response carries one."""
        return None

    @property
    def page_limit(self) -> int | None:
        """Page size the response was requested with, when known."""
        return None

    def replace_items(self, items: list[Any], count_delta: int = 0) -> Self:
        """Copy of this response with ``items`` and the total adjusted."""
        return self.model_copy(update={self.items_field: list(items)})


class PaginatedResponse(ItemCollection):
    """Collection that also reports the total size of the result set."""

    total_count: int = Field(0, ge=0, description="Items across all pages")

    @property
    def count(self) -> int | None:
        return self.total_count

    @property
    def next_page_offset(self) -> int | None:
        """Offset of the following page; None when exhausted."""
        return None

    def replace_items(self, items: list[Any], count_delta: int = 0) -> Self:
        return self.model_copy(
            update={
                self.items_field: list(items),
                "total_count": max(0, self.total_count + count_delta),
            },
        )


class CursorPage(PaginatedResponse):
    """Cursor-paginated response (``hasMore`` / ``nextOffset`` / ``totalCount``).

    ``next_offset`` is None once the server has nothing more to give.
    """

    has_more: bool = False
    next_offset: int | None = Field(None, ge=0)

    @property
    def next_page_offset(self) -> int | None:
        return self.next_offset


# ---------------------------------------------------------------------------
# Games
# ---------------------------------------------------------------------------


class Game(BaseTypeModel):
    """Catalog game.

    Attributes:
        id: Game id
        name: Display name
        slug: URL slug
        summary: Short description
        cover_url: Cover image URL
        release_date: ISO timestamp of the first release
        rating: Community rating (decimal string)
        igdb_rating: IGDB rating (decimal string)

    Example:
        >>> game = Game.model_validate(
        ...     {"id": "g1", "name": "Hades", "releaseDate": "2020-09-17T00:00:00Z"}
        ... )
        >>> game.release_year
        2020
    """

    id: Identifier = Field(..., description="Game id")
    name: str = Field(..., description="Display name")
    slug: str | None = None
    summary: str | None = None
    cover_url: str | None = None
    release_date: str | None = None
    rating: str | float | None = None
    igdb_rating: str | float | None = None

    @property
    def item_id(self) -> str:
        return str(self.id)

    @property
    def release_year(self) -> int | None:
        if not self.release_date or len(self.release_date) < 4:
            return None
        year = self.release_date[:4]
        return int(year) if year.isdigit() else None

    @property
    def rating_value(self) -> float | None:
        """IGDB rating as a number, falling back to the community rating."""
        value = _as_float(self.igdb_rating)
        return value if value is not None else _as_float(self.rating)


class GamesResponse(ItemCollection):
    """``{games}`` envelope of search, top-rated, trending and all-games."""

    items_field: ClassVar[str] = "games"

    games: list[Game] = Field(default_factory=list)


class BrowsePaginationInfo(BaseTypeModel):
    """Offset pagination block of a browse response."""

    limit: int = Field(..., gt=0)
    offset: int = Field(..., ge=0)
    has_more: bool = False


class BrowseResponse(PaginatedResponse):
    """One page of catalog browse results plus the available filter values."""

    items_field: ClassVar[str] = "games"

    games: list[Game] = Field(default_factory=list)
    years: list[Any] = Field(default_factory=list)
    genres: list[Any] = Field(default_factory=list)
    platforms: list[Any] = Field(default_factory=list)
    pagination: BrowsePaginationInfo

    @property
    def page_limit(self) -> int | None:
        return self.pagination.limit

    @property
    def next_page_offset(self) -> int | None:
        if not self.pagination.has_more:
            return None
        return self.pagination.offset + self.pagination.limit


class GameDetail(BaseTypeModel):
    """Single game with its related metadata."""

    game: Game
    genres: list[Any] = Field(default_factory=list)
    platforms: list[Any] = Field(default_factory=list)
    keywords: list[Any] = Field(default_factory=list)
    images: list[Any] = Field(default_factory=list)
    links: list[Any] = Field(default_factory=list)


class GameRating(BaseTypeModel):
    """Average review rating of a game (``total`` is None without reviews)."""

    total: str | float | None = None

    @property
    def average(self) -> float | None:
        return _as_float(self.total)


# ---------------------------------------------------------------------------
# Play sessions
# ---------------------------------------------------------------------------


class GameSession(BaseTypeModel):
    """One play session. ``ended_at`` is None while the game is being played."""

    id: Identifier
    user_id: Identifier
    game_id: Identifier
    started_at: str
    ended_at: str | None = None
    status: SessionStatus | None = None

    @property
    def item_id(self) -> str:
        return str(self.id)


class GameSessionGame(BaseTypeModel):
    id: Identifier
    name: str
    cover_url: str | None = None


class CurrentlyPlaying(BaseTypeModel):
    """What a user is playing right now; both fields are None when idle."""

    session: GameSession | None = None
    game: GameSessionGame | None = None


class StopPlayingResponse(BaseTypeModel):
    session: GameSession


class HistoryEntry(BaseTypeModel):
    """A finished or stashed session together with its game."""

    session: GameSession
    game: GameSessionGame

    @property
    def item_id(self) -> str:
        return self.session.item_id


class PlayHistoryPage(CursorPage):
    items_field: ClassVar[str] = "sessions"

    sessions: list[HistoryEntry] = Field(default_factory=list)


class CountResponse(BaseTypeModel):
    """``{count}`` answer of the active-player and wishlist counters."""

    count: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Wishlist
# ---------------------------------------------------------------------------


class WishlistItem(BaseTypeModel):
    """Wishlisted game. Identity is the game id."""

    game_id: Identifier
    created_at: str
    game_name: str
    game_cover_url: str | None = None
    game_slug: str | None = None

    @property
    def item_id(self) -> str:
        return str(self.game_id)


class WishlistPage(CursorPage):
    items_field: ClassVar[str] = "wishlist"

    wishlist: list[WishlistItem] = Field(default_factory=list)


class WishlistCheck(BaseTypeModel):
    in_wishlist: bool


class Acknowledgement(BaseTypeModel):
    """Body of mutations that answer with a flag or ``{message}``."""

    message: str | None = None
    added: bool | None = None
    removed: bool | None = None
    deleted: bool | None = None
    saved: bool | None = None
    unsaved: bool | None = None
    reordered: bool | None = None


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class Review(BaseTypeModel):
    id: Identifier
    user_id: Identifier
    game_id: Identifier
    rating: str | float | None = None
    review_text: str | None = None
    created_at: str
    updated_at: str | None = None

    @property
    def item_id(self) -> str:
        return str(self.id)

    @property
    def rating_value(self) -> float | None:
        return _as_float(self.rating)


class ReviewStats(BaseTypeModel):
    """Aggregate review statistics of a game.

    The server may add fields freely; they are kept as extras.
    """

    model_config = ConfigDict(extra="allow")

    average_rating: str | float | None = None
    review_count: int | None = None


class ReviewCreate(BaseTypeModel):
    """Payload of ``POST /api/reviews``."""

    game_id: Identifier
    user_id: Identifier
    rating: float = Field(..., ge=0, le=5)
    review_text: str | None = Field(None, max_length=5000)


# ---------------------------------------------------------------------------
# Game lists
# ---------------------------------------------------------------------------


class GameListSummary(BaseTypeModel):
    """List as shown in list overviews (first covers only)."""

    id: Identifier
    name: str
    description: str | None = None
    visibility: ListVisibility = ListVisibility.PUBLIC
    created_at: str | None = None
    updated_at: str | None = None
    game_count: int = Field(0, ge=0)
    cover_urls: list[str] = Field(default_factory=list)

    @property
    def item_id(self) -> str:
        return str(self.id)


class GameListsResponse(ItemCollection):
    items_field: ClassVar[str] = "lists"

    lists: list[GameListSummary] = Field(default_factory=list)


class GameListItem(BaseTypeModel):
    game_id: Identifier
    position: int = 0
    added_at: str | None = None
    game_name: str
    game_cover_url: str | None = None
    game_slug: str | None = None
    game_release_date: str | None = None

    @property
    def item_id(self) -> str:
        return str(self.game_id)


class GameListDetail(GameListSummary):
    """A full list with its games and owner."""

    user_id: Identifier | None = None
    owner_username: str | None = None
    owner_display_name: str | None = None
    owner_avatar_url: str | None = None
    games: list[GameListItem] = Field(default_factory=list)
    is_owner: bool | None = None


class GameListResponse(BaseTypeModel):
    """``{list}`` envelope of single-list reads and writes."""

    game_list: GameListDetail = Field(..., alias="list")


class GameListWithStatus(BaseTypeModel):
    """One of the caller's lists, flagged with whether it holds a game."""

    id: Identifier
    name: str
    visibility: ListVisibility = ListVisibility.PUBLIC
    game_count: int = Field(0, ge=0)
    has_game: bool = False

    @property
    def item_id(self) -> str:
        return str(self.id)


class ListsForGameResponse(ItemCollection):
    items_field: ClassVar[str] = "lists"

    lists: list[GameListWithStatus] = Field(default_factory=list)


class ListSaveStatus(BaseTypeModel):
    is_saved: bool
    save_count: int = Field(0, ge=0)


class GameListCreate(BaseTypeModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    visibility: ListVisibility = ListVisibility.PUBLIC


class GameListUpdate(BaseTypeModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    visibility: ListVisibility | None = None


class CoverUpload(BaseTypeModel):
    """Answer to a cover upload: where the stored image is served from."""

    cover_url: str
    key: str


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class CurrentUser(BaseTypeModel):
    """The signed-in account."""

    id: Identifier
    username: str
    display_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    role: UserRole | None = None
    created_at: str | None = None


class MeResponse(BaseTypeModel):
    account: CurrentUser


# ---------------------------------------------------------------------------
# App settings
# ---------------------------------------------------------------------------


class AppSettings(BaseTypeModel):
    """Site-wide settings, a flat key/value map.

    Keys the server does not default are kept as extra fields under their
    wire names.
    """

    model_config = ConfigDict(extra="allow")

    dark_mode_enabled: bool = True


class SettingUpdate(BaseTypeModel):
    key: str = Field(..., min_length=1)
    value: Any = None


class SettingUpdateResult(SettingUpdate):
    success: bool = True


# ---------------------------------------------------------------------------
# Admin
# ---------------------------------------------------------------------------


class AdminUser(BaseTypeModel):
    id: Identifier
    username: str
    display_name: str | None = None
    avatar_url: str | None = None
    role: UserRole
    suspended_at: str | None = None
    created_at: str

    @property
    def item_id(self) -> str:
        return str(self.id)

    @property
    def is_suspended(self) -> bool:
        return self.suspended_at is not None


class AdminReview(BaseTypeModel):
    id: Identifier
    user_id: Identifier
    game_id: Identifier
    rating: str | float | None = None
    review_text: str | None = None
    created_at: str
    username: str
    display_name: str | None = None
    game_name: str

    @property
    def item_id(self) -> str:
        return str(self.id)


class AuditLog(BaseTypeModel):
    id: Identifier
    action: str
    resource_type: str
    resource_id: Identifier
    details: dict[str, Any] | None = None
    created_at: str
    admin_username: str
    admin_display_name: str | None = None

    @property
    def item_id(self) -> str:
        return str(self.id)


class AdminUsersPage(CursorPage):
    items_field: ClassVar[str] = "users"

    users: list[AdminUser] = Field(default_factory=list)


class AdminReviewsPage(CursorPage):
    items_field: ClassVar[str] = "reviews"

    reviews: list[AdminReview] = Field(default_factory=list)


class AuditLogPage(CursorPage):
    items_field: ClassVar[str] = "logs"

    logs: list[AuditLog] = Field(default_factory=list)


class UserStats(BaseTypeModel):
    total: int = 0
    suspended: int = 0
    new_last_7_days: int = Field(0, alias="newLast7Days")
    by_role: dict[str, int] = Field(default_factory=dict)


class ReviewTotals(BaseTypeModel):
    total: int = 0
    average_rating: str | float | None = None


class GameTotals(BaseTypeModel):
    total: int = 0


class AdminStats(BaseTypeModel):
    """Back-office dashboard counters."""

    users: UserStats
    reviews: ReviewTotals
    games: GameTotals


class SuspensionResult(BaseTypeModel):
    user: AdminUser
    message: str


class RoleUpdate(BaseTypeModel):
    role: UserRole

    @field_validator("role", mode="before")
    @classmethod
    def _normalize_role(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value


# ---------------------------------------------------------------------------
# Client-side containers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class InfinitePages:
    """Pages of one cursor-paginated query, in load order.

    ``page_offsets[i]`` is the offset page ``i`` was requested with.
    """

    pages: tuple[PaginatedResponse, ...] = ()
    page_offsets: tuple[int, ...] = field(default_factory=tuple)

    @property
    def items(self) -> list[Any]:
        return [item for page in self.pages for item in page.items]

    @property
    def total_count(self) -> int:
        return self.pages[0].total_count if self.pages else 0

    @property
    def next_offset(self) -> int | None:
        """Offset of the page after the last loaded one; None when exhausted."""
        if not self.pages:
            return 0
        return self.pages[-1].next_page_offset

    @property
    def exhausted(self) -> bool:
        return bool(self.pages) and self.next_offset is None


__all__ = [
    "Acknowledgement",
    "AdminReview",
    "AdminReviewsPage",
    "AdminStats",
    "AdminUser",
    "AdminUsersPage",
    "AppSettings",
    "AuditLog",
    "AuditLogPage",
    "BrowsePaginationInfo",
    "BrowseResponse",
    "CountResponse",
    "CoverUpload",
    "CurrentUser",
    "CurrentlyPlaying",
    "CursorPage",
    "Game",
    "GameDetail",
    "GameListCreate",
    "GameListDetail",
    "GameListItem",
    "GameListResponse",
    "GameListSummary",
    "GameListUpdate",
    "GameListWithStatus",
    "GameListsResponse",
    "GameRating",
    "GameSession",
    "GameSessionGame",
    "GameTotals",
    "GamesResponse",
    "HistoryEntry",
    "Identifier",
    "InfinitePages",
    "ItemCollection",
    "ListSaveStatus",
    "ListsForGameResponse",
    "MeResponse",
    "PaginatedResponse",
    "PlayHistoryPage",
    "Review",
    "ReviewCreate",
    "ReviewStats",
    "ReviewTotals",
    "RoleUpdate",
    "SettingUpdate",
    "SettingUpdateResult",
    "StopPlayingResponse",
    "SuspensionResult",
    "UserStats",
    "WishlistCheck",
    "WishlistItem",
    "WishlistPage",
]
