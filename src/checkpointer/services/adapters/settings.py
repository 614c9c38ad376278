"""App settings adapter (public, site-wide flags)."""

from __future__ import annotations

from checkpointer.services.adapters.base import BaseAdapter
from checkpointer.services.models import AppSettings
from checkpointer.shared.constants import ApiPaths


class SettingsAdapter(BaseAdapter):
    async def get(self) -> AppSettings:
        """Current settings, server defaults filled in. Needs no sign-in."""
        return await self._fetch("app_settings", AppSettings, "GET", ApiPaths.SETTINGS)


__all__ = ["SettingsAdapter"]
