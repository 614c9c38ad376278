"""Query cache and pagination configuration models."""

from __future__ import annotations

from pydantic import BaseModel, Field

from checkpointer.shared.constants import PageSize, StaleTime


class CacheSettings(BaseModel):
    """Query cache configuration.

    ``stale_times`` overrides the built-in stale time of individual
    entities, keyed by entity name (e.g. ``{"browse-games": 60}``).
    """

    default_stale_time: float = Field(
        default=StaleTime.DEFAULT,
        ge=0,
        description="Stale time in seconds for entities without their own",
    )
    stale_times: dict[str, float] = Field(
        default_factory=dict,
        description="Per-entity stale time overrides in seconds",
    )


class PaginationSettings(BaseModel):
    """Page sizes of the list views."""

    browse_page_size: int = Field(default=PageSize.BROWSE, gt=0)
    history_page_size: int = Field(default=PageSize.HISTORY, gt=0)
    wishlist_page_size: int = Field(default=PageSize.WISHLIST, gt=0)
    admin_page_size: int = Field(default=PageSize.ADMIN, gt=0)
    featured_limit: int = Field(default=PageSize.FEATURED, gt=0)


__all__ = ["CacheSettings", "PaginationSettings"]
