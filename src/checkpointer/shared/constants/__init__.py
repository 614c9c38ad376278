"""
Checkpointer Constants Module

Re-exports the constant groups used across the package.
"""

from .api import (
    ApiPaths,
    CoverImage,
    ListVisibility,
    PageSize,
    QueryEntity,
    SessionStatus,
    SortBy,
    SortOrder,
    UserRole,
)
from .cache import NEVER_STALE, OptimisticIds, StaleTime
from .cli import CLICommands, CLIDefaults, CLIHelp
from .http_codes import ContentTypes, HTTPHeaders, HTTPStatusCodes

__all__ = [
    "NEVER_STALE",
    "ApiPaths",
    "CLICommands",
    "CLIDefaults",
    "CLIHelp",
    "CoverImage",
    "ContentTypes",
    "HTTPHeaders",
    "HTTPStatusCodes",
    "ListVisibility",
    "OptimisticIds",
    "PageSize",
    "QueryEntity",
    "SessionStatus",
    "SortBy",
    "SortOrder",
    "StaleTime",
    "UserRole",
]
