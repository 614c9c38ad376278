"""Configuration models for Checkpointer."""

from __future__ import annotations

from .api_settings import ApiSettings
from .app_settings import LoggingSettings
from .cache_settings import CacheSettings, PaginationSettings
from .settings import Settings

__all__ = [
    "ApiSettings",
    "CacheSettings",
    "LoggingSettings",
    "PaginationSettings",
    "Settings",
]
