"""Tests for the error hierarchy and status mapping."""

from __future__ import annotations

import pytest

from checkpointer.shared.errors import (
    ApiError,
    ApplicationError,
    CheckpointerError,
    CliError,
    DomainError,
    ErrorCode,
    ErrorContext,
    ForbiddenError,
    InfrastructureError,
    InvalidParamsError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    ServerError,
    create_cli_error,
    create_config_error,
    error_for_status,
)


class TestErrorForStatus:
    """Test HTTP status to error type mapping."""

    def test_not_found(self):
        error = error_for_status(404, "Game not found", endpoint="/api/games/x")

        assert isinstance(error, NotFoundError)
        assert error.code is ErrorCode.API_NOT_FOUND
        assert error.status == 404
        assert error.endpoint == "/api/games/x"
        assert error.message == "Game not found"

    def test_forbidden(self):
        error = error_for_status(403, "Admin access required")

        assert isinstance(error, ForbiddenError)
        assert error.code is ErrorCode.API_FORBIDDEN

    @pytest.mark.parametrize("status", [400, 401, 409, 422, 500, 502])
    def test_everything_else_is_server_error(self, status):
        error = error_for_status(status, "boom")

        assert type(error) is ServerError
        assert error.status == status

    def test_all_are_api_errors(self):
        for status in (403, 404, 500):
            error = error_for_status(status, "x")
            assert isinstance(error, ApiError)
            assert isinstance(error, InfrastructureError)
            assert isinstance(error, CheckpointerError)


class TestErrorTypes:
    """Test the individual error classes."""

    def test_str_contains_code_and_message(self):
        error = DomainError(ErrorCode.CACHE_ERROR, "bad entry")

        assert str(error) == "CACHE_ERROR: bad entry"

    def test_malformed_response_is_server_error(self):
        error = MalformedResponseError(
            "Invalid payload",
            endpoint="/api/me",
            model_name="MeResponse",
            validation_errors=[{"loc": ("account",), "msg": "missing"}],
            status=200,
        )

        assert isinstance(error, ServerError)
        assert error.code is ErrorCode.API_MALFORMED_RESPONSE
        assert error.context.additional_data == {
            "model_name": "MeResponse",
            "validation_error_count": 1,
        }

    def test_network_error(self):
        cause = OSError("connection refused")
        error = NetworkError("offline", endpoint="/api/me", original_error=cause)

        assert error.code is ErrorCode.NETWORK_ERROR
        assert error.context.operation == "http_request"
        assert error.original_error is cause

    def test_timeout_code(self):
        error = NetworkError("timed out", code=ErrorCode.API_TIMEOUT)

        assert error.code is ErrorCode.API_TIMEOUT

    def test_invalid_params(self):
        error = InvalidParamsError("limit must be positive", field="limit", operation="browse_games")

        assert isinstance(error, DomainError)
        assert error.field == "limit"
        assert error.context.additional_data == {"field": "limit"}

    def test_api_error_to_dict(self):
        error = ServerError("boom", status=500, endpoint="/api/x")

        data = error.to_dict()

        assert data["code"] == "API_SERVER_ERROR"
        assert data["status"] == 500
        assert data["context"]["endpoint"] == "/api/x"
        assert data["original_error"] is None


class TestErrorContext:
    """Test ErrorContext coercion and masking."""

    def test_user_id_is_masked(self):
        context = ErrorContext(user_id="u1", endpoint="/api/me")

        assert context.safe_dict() == {"endpoint": "/api/me", "additional_data": {}}

    def test_enum_values_are_coerced(self):
        context = ErrorContext(additional_data={"code": ErrorCode.CACHE_ERROR, "skip": None})

        assert context.additional_data == {"code": "CACHE_ERROR"}

    def test_non_primitive_rejected(self):
        with pytest.raises(TypeError):
            ErrorContext(additional_data={"items": [1, 2]})


class TestErrorFactories:
    """Test error creation helpers."""

    def test_config_error(self):
        error = create_config_error("bad toml", config_key="config.toml", operation="load_toml")

        assert isinstance(error, ApplicationError)
        assert error.code is ErrorCode.CONFIG_ERROR
        assert error.context.additional_data == {"config_key": "config.toml"}

    def test_cli_error(self):
        error = create_cli_error(
            "denied",
            command="admin-users",
            exit_code=3,
            code=ErrorCode.CLI_ACCESS_DENIED,
        )

        assert isinstance(error, CliError)
        assert error.exit_code == 3
        assert error.command == "admin-users"
        assert error.code is ErrorCode.CLI_ACCESS_DENIED
