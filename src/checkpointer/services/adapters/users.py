"""Current user adapter."""

from __future__ import annotations

from checkpointer.services.adapters.base import BaseAdapter
from checkpointer.services.models import CurrentUser, MeResponse
from checkpointer.shared.constants import ApiPaths


class UsersAdapter(BaseAdapter):
    async def me(self) -> CurrentUser:
        """Profile of the signed-in account. Raises NotFoundError when unknown."""
        response = await self._fetch("current_user", MeResponse, "GET", ApiPaths.ME)
        return response.account


__all__ = ["UsersAdapter"]
