"""
CLI Error Handling Utilities

Maps exceptions raised by commands onto CliError (message plus exit
code), logs them and writes them to stderr or, with ``--json``, as a JSON
envelope to stdout.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

from checkpointer.cli.json_formatter import format_json_output, write_json
from checkpointer.shared.constants import CLIDefaults, CLIHelp
from checkpointer.shared.errors import (
    ApplicationError,
    CliError,
    DomainError,
    ErrorCode,
    ForbiddenError,
    InfrastructureError,
    NotFoundError,
    create_cli_error,
)

logger = logging.getLogger(__name__)


def handle_cli_error(
    error: BaseException,
    command: str,
    *,
    json_output: bool = False,
) -> int:
    """Handle CLI errors with consistent formatting and logging.

    Args:
        error: The exception that occurred
        command: The CLI command being executed
        json_output: Whether to output JSON format

    Returns:
        Exit code for the CLI command
    """
    error_context: dict[str, Any] = {
        "command": command,
        "error_type": type(error).__name__,
        "json_output": json_output,
    }
    cli_error = _map_error_to_cli_error(error, command, error_context)
    _log_error(error, command, cli_error, error_context)
    _output_error(cli_error, error, command, error_context, json_output=json_output)

    return cli_error.exit_code


def _map_error_to_cli_error(  # noqa: PLR0911
    error: BaseException,
    command: str,
    error_context: dict[str, Any],
) -> CliError:
    """Map specific exception types to CLI errors."""
    if isinstance(error, CliError):
        error_context["error_code"] = error.code.value
        return error

    # Admin commands render access denied instead of a generic failure
    if isinstance(error, ForbiddenError):
        error_context["error_code"] = error.code.value
        return create_cli_error(
            message=CLIHelp.ACCESS_DENIED,
            command=command,
            original_error=error,
            exit_code=CLIDefaults.EXIT_ACCESS_DENIED,
            code=ErrorCode.CLI_ACCESS_DENIED,
        )

    if isinstance(error, NotFoundError):
        error_context["error_code"] = error.code.value
        return create_cli_error(
            message=CLIHelp.NOT_FOUND.format(message=error.message),
            command=command,
            original_error=error,
            exit_code=CLIDefaults.EXIT_NOT_FOUND,
        )

    if isinstance(error, DomainError):
        error_context["error_code"] = error.code.value
        return create_cli_error(
            message=CLIHelp.INVALID_INPUT.format(message=error.message),
            command=command,
            original_error=error,
            exit_code=CLIDefaults.EXIT_INVALID_INPUT,
        )

    if isinstance(error, InfrastructureError):
        error_context["error_code"] = error.code.value
        return create_cli_error(
            message=CLIHelp.API_ERROR.format(message=error.message),
            command=command,
            original_error=error,
        )

    if isinstance(error, ApplicationError):
        error_context["error_code"] = error.code.value
        return create_cli_error(
            message=f"Application error: {error.message}",
            command=command,
            original_error=error,
        )

    if isinstance(error, KeyboardInterrupt):
        error_context["interrupt_type"] = "user_interrupt"
        return create_cli_error(
            message=CLIHelp.INTERRUPTED,
            command=command,
            exit_code=CLIDefaults.EXIT_INTERRUPTED,
        )

    error_context["error_category"] = "unexpected"
    return create_cli_error(
        message=f"Unexpected error: {error}",
        command=command,
        original_error=error if isinstance(error, Exception) else None,
    )


def _log_error(
    error: BaseException,
    command: str,
    cli_error: CliError,
    error_context: dict[str, Any],
) -> None:
    if isinstance(error, KeyboardInterrupt):
        logger.warning("Command interrupted: %s", cli_error.message, extra={"context": error_context})
    elif error_context.get("error_category") == "unexpected":
        logger.error(
            "CLI error in %s: %s",
            command,
            cli_error.message,
            exc_info=error,
            extra={"context": error_context},
        )
    else:
        logger.info(
            "CLI error in %s: %s",
            command,
            cli_error.message,
            extra={"context": error_context},
        )


def _output_error(
    cli_error: CliError,
    error: BaseException,
    command: str,
    error_context: dict[str, Any],
    *,
    json_output: bool,
) -> None:
    if json_output:
        write_json(
            format_json_output(
                success=False,
                command=command,
                errors=[cli_error.message],
                data={
                    "error_code": cli_error.code.value,
                    "error_type": type(error).__name__,
                    "exit_code": cli_error.exit_code,
                    "context": error_context,
                },
            )
        )
    else:
        sys.stderr.write(f"Error: {cli_error.message}\n")


__all__ = ["handle_cli_error"]
