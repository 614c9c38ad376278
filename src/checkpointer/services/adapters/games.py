"""Games catalog adapter."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from checkpointer.services.adapters.base import BaseAdapter, path_id
from checkpointer.services.models import (
    BrowseResponse,
    GameDetail,
    GameRating,
    GamesResponse,
)
from checkpointer.shared.constants import ApiPaths, PageSize, SortBy, SortOrder
from checkpointer.shared.errors import InvalidParamsError


class BrowseParams(BaseModel):
    """Filters and page window of a catalog browse request.

    Sort fields are checked here so that a bad value never reaches the
    server. Use ``BrowseParams.build`` to get InvalidParamsError instead
    of a pydantic ValidationError.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    q: str | None = None
    sort_by: SortBy | None = None
    sort_order: SortOrder | None = None
    year: int | None = Field(None, ge=1900, le=2100)
    genre: str | None = None
    platform: str | None = None
    limit: int = Field(PageSize.BROWSE, gt=0, le=100)
    offset: int = Field(0, ge=0)

    @field_validator("q", "genre", "platform")
    @classmethod
    def _blank_to_none(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip()
        return value or None

    @classmethod
    def build(cls, **filters: Any) -> BrowseParams:
        """Create params from keyword filters.

        Raises:
            InvalidParamsError: If a filter has an unsupported value
        """
        try:
            return cls(**filters)
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first["loc"]) or None
            raise InvalidParamsError(
                f"Invalid browse parameter {field}: {first['msg']}",
                field=field,
                operation="browse_games",
                original_error=e,
            ) from e

    def filter_params(self) -> dict[str, Any]:
        """Everything but the page window, as sent on the wire."""
        return {
            "q": self.q,
            "sortBy": self.sort_by.value if self.sort_by else None,
            "sortOrder": self.sort_order.value if self.sort_order else None,
            "year": self.year,
            "genre": self.genre,
            "platform": self.platform,
        }

    def query_params(self) -> dict[str, Any]:
        return {**self.filter_params(), "limit": self.limit, "offset": self.offset}


class GamesAdapter(BaseAdapter):
    """Catalog reads: browse, search, detail and featured lists."""

    async def browse(self, params: BrowseParams | None = None, **filters: Any) -> BrowseResponse:
        """Fetch one page of the catalog.

        Args:
            params: Prepared params; when omitted they are built from ``filters``
            **filters: BrowseParams fields (q, sort_by, sort_order, year, ...)
        """
        if params is None:
            params = BrowseParams.build(**filters)
        elif filters:
            params = BrowseParams.build(**{**params.model_dump(), **filters})

        return await self._fetch(
            "browse_games",
            BrowseResponse,
            "GET",
            ApiPaths.GAMES_BROWSE,
            params=params.query_params(),
        )

    async def search(self, q: str | None) -> GamesResponse:
        """Search games by title.

        A missing or blank query answers an empty result without touching
        the network; otherwise the trimmed query is sent.
        """
        if not q or not q.strip():
            return GamesResponse(games=[])

        return await self._fetch(
            "search_games",
            GamesResponse,
            "GET",
            ApiPaths.GAMES_SEARCH,
            params={"q": q.strip()},
        )

    async def get(self, game_id: str | int) -> GameDetail:
        """Fetch a single game. Raises NotFoundError for unknown ids."""
        path = ApiPaths.GAME_DETAIL.format(game_id=path_id(game_id, "game_id", "get_game"))
        return await self._fetch("get_game", GameDetail, "GET", path)

    async def top_rated(self, limit: int = PageSize.FEATURED) -> GamesResponse:
        return await self._fetch(
            "top_rated_games",
            GamesResponse,
            "GET",
            ApiPaths.GAMES_TOP_RATED,
            params={"limit": limit},
        )

    async def trending(self, limit: int = PageSize.FEATURED) -> GamesResponse:
        return await self._fetch(
            "trending_games",
            GamesResponse,
            "GET",
            ApiPaths.GAMES_TRENDING,
            params={"limit": limit},
        )

    async def all_games(self) -> GamesResponse:
        return await self._fetch("all_games", GamesResponse, "GET", ApiPaths.GAMES)

    async def rating(self, game_id: str | int) -> GameRating:
        """Average review rating of a game."""
        path = ApiPaths.GAME_RATING.format(game_id=path_id(game_id, "game_id", "game_rating"))
        return await self._fetch("game_rating", GameRating, "GET", path)


__all__ = ["BrowseParams", "GamesAdapter"]
