"""Admin back-office adapter.

Every endpoint requires the admin role; callers without it get a
ForbiddenError, which list views turn into an access-denied state.
"""

from __future__ import annotations

from typing import Any

from checkpointer.services.adapters.base import BaseAdapter, path_id, require_page
from checkpointer.services.models import (
    Acknowledgement,
    AdminReviewsPage,
    AdminStats,
    AdminUser,
    AdminUsersPage,
    AuditLogPage,
    RoleUpdate,
    SettingUpdate,
    SettingUpdateResult,
    SuspensionResult,
)
from checkpointer.shared.constants import ApiPaths, PageSize, UserRole
from checkpointer.shared.errors import InvalidParamsError


class AdminAdapter(BaseAdapter):
    """Admin dashboard, moderation and audit log."""

    async def stats(self) -> AdminStats:
        return await self._fetch("admin_stats", AdminStats, "GET", ApiPaths.ADMIN_STATS)

    async def users(self, limit: int = PageSize.ADMIN, offset: int = 0) -> AdminUsersPage:
        require_page(offset, limit, "admin_users")
        return await self._fetch(
            "admin_users",
            AdminUsersPage,
            "GET",
            ApiPaths.ADMIN_USERS,
            params={"limit": limit, "offset": offset},
        )

    async def set_role(self, user_id: str | int, role: UserRole | str) -> AdminUser:
        """Change a user's role and return the updated user."""
        try:
            update = RoleUpdate(role=role)
        except ValueError as e:
            raise InvalidParamsError(
                f"Unknown role {role!r}",
                field="role",
                operation="set_user_role",
                original_error=e,
            ) from e
        path = ApiPaths.ADMIN_USER_ROLE.format(user_id=path_id(user_id, "user_id", "set_user_role"))
        return await self._fetch(
            "set_user_role",
            AdminUser,
            "PATCH",
            path,
            json=update.model_dump(mode="json", by_alias=True),
        )

    async def toggle_suspension(self, user_id: str | int) -> SuspensionResult:
        """Suspend an active user or lift an existing suspension."""
        path = ApiPaths.ADMIN_USER_SUSPEND.format(
            user_id=path_id(user_id, "user_id", "toggle_user_suspension")
        )
        return await self._fetch("toggle_user_suspension", SuspensionResult, "PATCH", path)

    async def reviews(self, limit: int = PageSize.ADMIN, offset: int = 0) -> AdminReviewsPage:
        require_page(offset, limit, "admin_reviews")
        return await self._fetch(
            "admin_reviews",
            AdminReviewsPage,
            "GET",
            ApiPaths.ADMIN_REVIEWS,
            params={"limit": limit, "offset": offset},
        )

    async def delete_review(self, review_id: str | int) -> Acknowledgement:
        path = ApiPaths.ADMIN_REVIEW.format(
            review_id=path_id(review_id, "review_id", "admin_delete_review")
        )
        return await self._fetch("admin_delete_review", Acknowledgement, "DELETE", path)

    async def update_setting(self, key: str, value: Any) -> SettingUpdateResult:
        """Set one app setting. The server records the change in the audit log."""
        try:
            update = SettingUpdate(key=key, value=value)
        except ValueError as e:
            raise InvalidParamsError(
                f"Invalid setting key {key!r}",
                field="key",
                operation="update_app_setting",
                original_error=e,
            ) from e
        return await self._fetch(
            "update_app_setting",
            SettingUpdateResult,
            "PATCH",
            ApiPaths.ADMIN_SETTINGS,
            json=update.model_dump(mode="json", by_alias=True),
        )

    async def audit_logs(self, limit: int = PageSize.ADMIN, offset: int = 0) -> AuditLogPage:
        require_page(offset, limit, "audit_logs")
        return await self._fetch(
            "audit_logs",
            AuditLogPage,
            "GET",
            ApiPaths.ADMIN_AUDIT_LOGS,
            params={"limit": limit, "offset": offset},
        )


__all__ = ["AdminAdapter"]
