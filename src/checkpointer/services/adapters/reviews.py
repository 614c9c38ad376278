"""Reviews adapter."""

from __future__ import annotations

from pydantic import TypeAdapter

from checkpointer.services.adapters.base import BaseAdapter, path_id
from checkpointer.services.models import Review, ReviewCreate, ReviewStats
from checkpointer.shared.constants import ApiPaths, HTTPStatusCodes

_REVIEW_LIST = TypeAdapter(list[Review])

ALREADY_REVIEWED = "You have already reviewed this game"


class ReviewsAdapter(BaseAdapter):
    """Review reads and review creation."""

    async def by_game(self, game_id: str | int) -> list[Review]:
        """All reviews of a game, newest first."""
        path = ApiPaths.REVIEWS_BY_GAME.format(game_id=path_id(game_id, "game_id", "reviews_by_game"))
        return await self._fetch("reviews_by_game", _REVIEW_LIST, "GET", path)

    async def by_user(self, user_id: str | int) -> list[Review]:
        path = ApiPaths.REVIEWS_BY_USER.format(user_id=path_id(user_id, "user_id", "reviews_by_user"))
        return await self._fetch("reviews_by_user", _REVIEW_LIST, "GET", path)

    async def by_game_and_user(self, game_id: str | int, user_id: str | int) -> Review | None:
        """The user's review of a game, or None when they have not written one."""
        path = ApiPaths.REVIEWS_BY_GAME_AND_USER.format(
            game_id=path_id(game_id, "game_id", "review_by_game_and_user"),
            user_id=path_id(user_id, "user_id", "review_by_game_and_user"),
        )
        reviews = await self._fetch("review_by_game_and_user", _REVIEW_LIST, "GET", path)
        return reviews[0] if reviews else None

    async def get(self, review_id: str | int) -> Review:
        path = ApiPaths.REVIEW.format(review_id=path_id(review_id, "review_id", "get_review"))
        return await self._fetch("get_review", Review, "GET", path)

    async def stats(self, game_id: str | int) -> ReviewStats:
        path = ApiPaths.REVIEW_STATS.format(game_id=path_id(game_id, "game_id", "review_stats"))
        return await self._fetch("review_stats", ReviewStats, "GET", path)

    async def create(self, payload: ReviewCreate) -> Review:
        """Post a review.

        Raises:
            ServerError: With ALREADY_REVIEWED as message when the user has
                reviewed this game before (HTTP 409)
        """
        return await self._fetch(
            "create_review",
            Review,
            "POST",
            ApiPaths.REVIEWS,
            json=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
            status_messages={HTTPStatusCodes.CONFLICT: ALREADY_REVIEWED},
        )


__all__ = ["ALREADY_REVIEWED", "ReviewsAdapter"]
