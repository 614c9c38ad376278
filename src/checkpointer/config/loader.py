"""Settings loader and singleton manager.

This module handles:
- Environment variable loading from .env files
- Configuration file loading from TOML
- Thread-safe singleton pattern for the Settings instance
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from dotenv import load_dotenv

from checkpointer.config.models.settings import Settings

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATHS: tuple[Path, ...] = (
    Path("config/config.toml"),
    Path("config.toml"),
    Path.home() / ".checkpointer" / "config.toml",
)


class SettingsLoader:
    """Thread-safe singleton manager for Settings.

    Uses double-checked locking to keep the common path lock-free.
    """

    _instance: Settings | None = None
    _lock: threading.RLock = threading.RLock()

    @classmethod
    def get_config(cls) -> Settings:
        """Get the global settings instance, loading it on first use."""
        if cls._instance is None:
            with cls._lock:
                if cls._instance is None:
                    cls._instance = load_settings()

        return cls._instance

    @classmethod
    def reload_config(cls) -> Settings:
        """Reload the global settings instance from configuration files."""
        with cls._lock:
            cls._instance = load_settings()

        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Forget the cached instance (next get_config reloads)."""
        with cls._lock:
            cls._instance = None


def _load_env_file(env_file: Path = Path(".env")) -> None:
    """Load a .env file into the environment when one exists.

    Variables already set in the environment are left untouched.
    """
    if env_file.exists():
        load_dotenv(env_file, override=False)
        logger.debug("Loaded environment from %s", env_file)


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from a TOML configuration file or the environment.

    Args:
        config_path: Optional TOML file. When None, the default locations
            are tried in order and environment variables are used if none
            exists.

    Returns:
        Settings instance loaded from the first available source
    """
    _load_env_file()

    if config_path:
        return Settings.from_toml_file(config_path)

    for default_path in DEFAULT_CONFIG_PATHS:
        if default_path.exists():
            return Settings.from_toml_file(default_path)

    return Settings()


_loader = SettingsLoader()


def get_config() -> Settings:
    """Get the global settings instance (thread-safe)."""
    return _loader.get_config()


def reload_config() -> Settings:
    """Reload the global settings instance from configuration files."""
    return _loader.reload_config()


__all__ = [
    "SettingsLoader",
    "get_config",
    "load_settings",
    "reload_config",
]
