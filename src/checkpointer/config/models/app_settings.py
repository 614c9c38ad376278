"""Logging configuration model."""

from __future__ import annotations

from pydantic import BaseModel, Field


class LoggingSettings(BaseModel):
    """Logging configuration.

    Console output goes through rich; ``file`` (when set) receives JSON
    lines.
    """

    level: str = Field(default="WARNING", description="Logging level")
    file: str | None = Field(default=None, description="Log file path")
    console_output: bool = Field(default=True, description="Enable rich console logging")


__all__ = ["LoggingSettings"]
