"""
JSON Output Formatter for the Checkpointer CLI

Envelope used by every command when ``--json`` is given:
``{success, timestamp, command, data, errors, warnings}``.
"""

from __future__ import annotations

import sys
from dataclasses import asdict, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

import orjson
from pydantic import BaseModel


def format_json_output(
    success: bool,
    command: str,
    data: Any | None = None,
    errors: list[str] | None = None,
    warnings: list[str] | None = None,
) -> bytes:
    """
    Format command output as JSON.

    Args:
        success: Whether the command executed successfully
        command: The command name (e.g., "browse", "history")
        data: The command's output data
        errors: List of error messages
        warnings: List of warning messages

    Returns:
        JSON-encoded bytes ready for output

    Example:
        >>> output = format_json_output(success=True, command="top", data={"games": []})
        >>> orjson.loads(output)["data"]
        {'games': []}
    """
    if errors is None:
        errors = []
    if warnings is None:
        warnings = []

    # If there are errors, success should be False
    if errors:
        success = False

    json_data = {
        "success": success,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "command": command,
        "data": safe_json_serialize(data),
        "errors": errors,
        "warnings": warnings,
    }

    try:
        return orjson.dumps(
            json_data,
            option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2,
        )
    except TypeError as e:
        error_data = {
            "success": False,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "command": command,
            "data": None,
            "errors": [f"JSON serialization failed: {e!s}"],
            "warnings": [],
        }
        return orjson.dumps(
            error_data,
            option=orjson.OPT_SORT_KEYS | orjson.OPT_INDENT_2,
        )


def safe_json_serialize(obj: Any) -> Any:
    """Convert models, dataclasses and enums to JSON-compatible values.

    Pydantic models are dumped with their wire (camelCase) names.
    """
    if isinstance(obj, Enum):
        return obj.value
    if obj is None or isinstance(obj, (str, int, float, bool)):
        return obj
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json", by_alias=True)
    if isinstance(obj, (list, tuple)):
        return [safe_json_serialize(item) for item in obj]
    if isinstance(obj, dict):
        return {str(k): safe_json_serialize(v) for k, v in obj.items()}
    if is_dataclass(obj) and not isinstance(obj, type):
        return safe_json_serialize(asdict(obj))
    return str(obj)


def write_json(output: bytes) -> None:
    """Write JSON bytes to stdout followed by a newline."""
    sys.stdout.buffer.write(output)
    sys.stdout.buffer.write(b"\n")
    sys.stdout.buffer.flush()


def format_success_output(command: str, data: Any) -> bytes:
    return format_json_output(success=True, command=command, data=data)
