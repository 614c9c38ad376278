"""Checkpointer Configuration Module

Unified access to configuration models and settings loading:
- Settings: Main configuration facade
- Loader functions: get_config, load_settings, reload_config
- Domain models: API, cache, pagination and logging settings
"""

from __future__ import annotations

from .loader import get_config, load_settings, reload_config
from .models import (
    ApiSettings,
    CacheSettings,
    LoggingSettings,
    PaginationSettings,
    Settings,
)

__all__ = [
    "ApiSettings",
    "CacheSettings",
    "LoggingSettings",
    "PaginationSettings",
    "Settings",
    "get_config",
    "load_settings",
    "reload_config",
]
