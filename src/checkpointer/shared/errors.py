"""Checkpointer Error Handling Module

This module defines the error handling system for Checkpointer, providing
structured error classes with context information.

The error hierarchy follows these principles:
- One Source of Truth: All error codes are defined in ErrorCode enum
- Structured Context: ErrorContext provides additional information
- Status Mapping: HTTP failures map onto a fixed set of API error types
- Proper Exception Chaining: Original exceptions are preserved
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

# Type alias for primitive context values (str, int, float, bool only)
PrimitiveContextValue = Union[str, int, float, bool]

# Default keys to mask in safe_dict for PII protection
SAFE_DICT_MASK_KEYS: tuple[str, ...] = ("user_id",)


class ErrorCode(str, Enum):
    """Error codes for the Checkpointer client.

    This enum serves as the single source of truth for all error codes
    used throughout the package.
    """

    # API status errors
    API_NOT_FOUND = "API_NOT_FOUND"
    API_FORBIDDEN = "API_FORBIDDEN"
    API_SERVER_ERROR = "API_SERVER_ERROR"
    API_MALFORMED_RESPONSE = "API_MALFORMED_RESPONSE"

    # Transport errors
    NETWORK_ERROR = "NETWORK_ERROR"
    API_TIMEOUT = "API_TIMEOUT"

    # Request construction errors
    INVALID_PARAMS = "INVALID_PARAMS"

    # Cache and view errors
    CACHE_ERROR = "CACHE_ERROR"
    INVALID_STATE_TRANSITION = "INVALID_STATE_TRANSITION"

    # Configuration errors
    CONFIG_ERROR = "CONFIG_ERROR"
    INVALID_CONFIG = "INVALID_CONFIG"

    # CLI errors
    CLI_UNEXPECTED_ERROR = "CLI_UNEXPECTED_ERROR"
    CLI_ACCESS_DENIED = "CLI_ACCESS_DENIED"
    CLI_OUTPUT_ERROR = "CLI_OUTPUT_ERROR"


def _coerce_primitives(value: Any | None) -> dict[str, PrimitiveContextValue] | None:
    """Coerce additional_data values to primitives.

    Args:
        value: Input dictionary or None

    Returns:
        Dictionary with primitive values only, or None

    Raises:
        TypeError: If value is not a dict or contains unconvertible types
    """
    if value is None:
        return None

    if not isinstance(value, dict):
        error_msg = f"additional_data must be dict, got {type(value).__name__}"
        raise TypeError(error_msg)

    coerced: dict[str, PrimitiveContextValue] = {}
    for key, val in value.items():
        if isinstance(val, (str, int, float, bool)):
            coerced[key] = val
        elif isinstance(val, Enum):
            coerced[key] = val.value
        elif val is None:
            continue
        else:
            error_msg = (
                f"Cannot coerce {type(val).__name__} to primitive type. "
                f"Only str, int, float, bool and Enum are allowed."
            )
            raise TypeError(error_msg)

    return coerced


@dataclass(frozen=True)
class ErrorContextModel:
    """Context information for errors.

    Only primitive types (str, int, float, bool) are allowed in
    additional_data to keep it safe to serialize into logs.

    Attributes:
        operation: Optional operation name that caused the error
        endpoint: Optional API path involved in the error
        user_id: Optional user ID (masked in logs)
        additional_data: Optional dict with primitive values only
    """

    operation: str | None = None
    endpoint: str | None = None
    user_id: str | None = None
    additional_data: dict[str, PrimitiveContextValue] | None = None

    def __post_init__(self) -> None:
        """Post-initialization validation and coercion."""
        if self.additional_data is not None:
            coerced = _coerce_primitives(self.additional_data)
            object.__setattr__(self, "additional_data", coerced)

    def safe_dict(self, *, mask_keys: tuple[str, ...] | None = None) -> dict[str, Any]:
        """Export context as dict with PII masking.

        Args:
            mask_keys: Fields to exclude from output. Defaults to SAFE_DICT_MASK_KEYS.

        Returns:
            Dictionary with masked sensitive fields and guaranteed additional_data key.

        Example:
            >>> context = ErrorContextModel(user_id="12345", endpoint="/api/me")
            >>> context.safe_dict()
            {'endpoint': '/api/me', 'additional_data': {}}
        """
        if mask_keys is None:
            mask_keys = SAFE_DICT_MASK_KEYS

        data: dict[str, Any] = {}
        if self.operation is not None and "operation" not in mask_keys:
            data["operation"] = self.operation
        if self.endpoint is not None and "endpoint" not in mask_keys:
            data["endpoint"] = self.endpoint
        if self.user_id is not None and "user_id" not in mask_keys:
            data["user_id"] = self.user_id

        if self.additional_data is not None and "additional_data" not in mask_keys:
            data["additional_data"] = self.additional_data
        else:
            data["additional_data"] = {}

        return data


ErrorContext = ErrorContextModel


class CheckpointerError(Exception):
    """Base exception class for all Checkpointer errors."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """Initialize CheckpointerError.

        Args:
            code: Error code from ErrorCode enum
            message: Human-readable error message
            context: Additional context information
            original_error: Original exception that caused this error
        """
        self.code = code
        self.message = message
        self.context = context or ErrorContext()
        self.original_error = original_error

        super().__init__(f"{code.value}: {message}")

    def __str__(self) -> str:
        """Return string representation of the error."""
        return f"{self.code.value}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging with PII masking."""
        return {
            "code": self.code.value,
            "message": self.message,
            "context": self.context.safe_dict(),
            "original_error": str(self.original_error) if self.original_error else None,
        }


class DomainError(CheckpointerError):
    """Domain-specific errors.

    Raised when a request is built wrongly on the client side or a local
    invariant (cache entry shape, view state) is violated.
    """


class InfrastructureError(CheckpointerError):
    """Errors talking to the Checkpointer API or its transport."""


class ApplicationError(CheckpointerError):
    """Application-level errors (configuration, command handling)."""


class ApiError(InfrastructureError):
    """The API answered with a non-2xx status or an unusable body.

    Attributes:
        status: HTTP status code, or None when the body was the problem
        endpoint: Request path
    """

    default_code = ErrorCode.API_SERVER_ERROR

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        endpoint: str | None = None,
        code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.status = status
        self.endpoint = endpoint
        super().__init__(
            code or self.default_code,
            message,
            context or ErrorContext(endpoint=endpoint),
            original_error,
        )

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["status"] = self.status
        return data


class NotFoundError(ApiError):
    """The requested resource does not exist (HTTP 404)."""

    default_code = ErrorCode.API_NOT_FOUND


class ForbiddenError(ApiError):
    """The caller lacks the privilege for this resource (HTTP 403).

    Admin views catch this to render an access-denied state instead of a
    generic failure.
    """

    default_code = ErrorCode.API_FORBIDDEN


class ServerError(ApiError):
    """Any other non-2xx response."""

    default_code = ErrorCode.API_SERVER_ERROR


class MalformedResponseError(ServerError):
    """A 2xx response whose body failed structural validation."""

    default_code = ErrorCode.API_MALFORMED_RESPONSE

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        model_name: str | None = None,
        validation_errors: list[dict[str, Any]] | None = None,
        status: int | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.model_name = model_name
        self.validation_errors = validation_errors or []
        super().__init__(
            message,
            status=status,
            endpoint=endpoint,
            context=ErrorContext(
                operation="validate_response",
                endpoint=endpoint,
                additional_data={
                    "model_name": model_name or "",
                    "validation_error_count": len(self.validation_errors),
                },
            ),
            original_error=original_error,
        )


class NetworkError(InfrastructureError):
    """The request never produced an HTTP response (connection, timeout)."""

    def __init__(
        self,
        message: str,
        *,
        endpoint: str | None = None,
        code: ErrorCode = ErrorCode.NETWORK_ERROR,
        original_error: Exception | None = None,
    ) -> None:
        self.endpoint = endpoint
        super().__init__(
            code,
            message,
            ErrorContext(operation="http_request", endpoint=endpoint),
            original_error,
        )


class InvalidParamsError(DomainError):
    """A request or cache key was built from unusable parameters."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        operation: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        self.field = field
        super().__init__(
            ErrorCode.INVALID_PARAMS,
            message,
            ErrorContext(
                operation=operation,
                additional_data={"field": field} if field else None,
            ),
            original_error,
        )


class CliError(ApplicationError):
    """CLI-specific error with an exit code."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        context: ErrorContext | None = None,
        original_error: Exception | None = None,
        command: str | None = None,
        exit_code: int = 1,
    ):
        super().__init__(code, message, context, original_error)
        self.command = command
        self.exit_code = exit_code


def error_for_status(
    status: int,
    message: str,
    *,
    endpoint: str | None = None,
) -> ApiError:
    """Map an HTTP error status onto the API error taxonomy.

    Args:
        status: Non-2xx HTTP status code
        message: Message to carry (the server's ``error`` string when present)
        endpoint: Request path

    Returns:
        NotFoundError for 404, ForbiddenError for 403, ServerError otherwise
    """
    if status == 404:
        return NotFoundError(message, status=status, endpoint=endpoint)
    if status == 403:
        return ForbiddenError(message, status=status, endpoint=endpoint)
    return ServerError(message, status=status, endpoint=endpoint)


def create_config_error(
    message: str,
    config_key: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
) -> ApplicationError:
    """Create a configuration error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"config_key": config_key} if config_key else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return ApplicationError(
        ErrorCode.CONFIG_ERROR,
        message,
        context,
        original_error,
    )


def create_cli_error(
    message: str,
    command: str | None = None,
    operation: str | None = None,
    original_error: Exception | None = None,
    exit_code: int = 1,
    code: ErrorCode = ErrorCode.CLI_UNEXPECTED_ERROR,
) -> CliError:
    """Create a CLI error with context."""
    additional_data: dict[str, PrimitiveContextValue] | None = (
        {"command": command} if command else None
    )
    context = ErrorContext(
        operation=operation,
        additional_data=additional_data,
    )
    return CliError(
        code,
        message,
        context,
        original_error,
        command,
        exit_code,
    )
