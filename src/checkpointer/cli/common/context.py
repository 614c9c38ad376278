"""
CLI state shared between the main callback and the commands.

The callback parses ``--verbose``, ``--log-level`` and ``--json`` once and
stores the result here; commands read it to decide how to render.
"""

from __future__ import annotations

import contextvars
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CliContext(BaseModel):
    """Options of the current invocation.

    Attributes:
        verbose: Number of ``-v`` flags; any forces DEBUG logging
        log_level: Requested log level
        json_output: Print the JSON envelope instead of tables
    """

    model_config = ConfigDict(frozen=True)

    verbose: int = Field(default=0, ge=0)
    log_level: LogLevel = LogLevel.WARNING
    json_output: bool = False

    @property
    def effective_log_level(self) -> str:
        return LogLevel.DEBUG.value if self.verbose else self.log_level.value


_current: contextvars.ContextVar[CliContext | None] = contextvars.ContextVar(
    "checkpointer_cli_context", default=None
)


def get_cli_context() -> CliContext:
    """Context of the running command; defaults when the callback did not run."""
    return _current.get() or CliContext()


def set_cli_context(context: CliContext) -> None:
    _current.set(context)
