"""Checkpointer Settings Configuration Model.

Main Settings class that consolidates all configuration domains.
"""

from __future__ import annotations

import logging
from pathlib import Path

import toml
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from checkpointer.config.models.api_settings import ApiSettings
from checkpointer.config.models.app_settings import LoggingSettings
from checkpointer.config.models.cache_settings import CacheSettings, PaginationSettings
from checkpointer.shared.errors import create_config_error

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    """Settings facade providing unified configuration access.

    Values come from defaults, ``CHECKPOINTER_*`` environment variables
    (``__`` separates nested fields, e.g. ``CHECKPOINTER_API__BASE_URL``)
    and, when loaded through ``from_toml_file``, a TOML file whose values
    win over the environment.
    """

    model_config = SettingsConfigDict(
        env_prefix="CHECKPOINTER_",
        env_nested_delimiter="__",
        env_ignore_empty=True,
        extra="ignore",
    )

    api: ApiSettings = Field(default_factory=ApiSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @classmethod
    def from_toml_file(cls, config_path: str | Path) -> Settings:
        """Load settings from a TOML file.

        Raises:
            FileNotFoundError: If the file does not exist
            ApplicationError: If the file is not valid TOML
        """
        config_path = Path(config_path)
        if not config_path.exists():
            msg = f"Configuration file not found: {config_path}"
            raise FileNotFoundError(msg)

        try:
            data = toml.load(config_path)
        except toml.TomlDecodeError as e:
            raise create_config_error(
                f"Invalid TOML in {config_path}: {e}",
                config_key=str(config_path),
                operation="load_toml",
                original_error=e,
            ) from e

        logger.debug("Loaded configuration from %s", config_path)
        return cls(**data)

    def to_toml_file(self, config_path: str | Path) -> None:
        """Write the settings to a TOML file (the session cookie is left out)."""
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)
        data = self.model_dump(mode="json", exclude_none=True)
        data["api"].pop("session_cookie", None)
        with config_path.open("w", encoding="utf-8") as f:
            toml.dump(data, f)

    def stale_time_for(self, entity: str, default: float) -> float:
        """Stale time of ``entity``: the configured override, else ``default``."""
        return self.cache.stale_times.get(entity, default)


__all__ = ["Settings"]
