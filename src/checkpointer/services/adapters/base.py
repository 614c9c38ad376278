"""Shared plumbing of the fetch adapters.

Every adapter method performs exactly one HTTP call through the
ApiClient, validates the payload against a pydantic model and returns
the model. Failures are logged once here and re-raised unchanged.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping
from typing import Any, Union
from urllib.parse import quote

import aiohttp
from pydantic import BaseModel, TypeAdapter, ValidationError

from checkpointer.services.http_client import ApiClient
from checkpointer.shared.errors import (
    ApiError,
    CheckpointerError,
    InvalidParamsError,
    MalformedResponseError,
    error_for_status,
)
from checkpointer.shared.logging import (
    log_operation_error,
    log_operation_start,
    log_operation_success,
)

Schema = Union[type[BaseModel], TypeAdapter]


def require_id(value: Any, field: str, operation: str) -> str:
    """String form of an identifier; empty identifiers are rejected."""
    if value is None or isinstance(value, bool) or not str(value).strip():
        msg = f"{field} must be a non-empty id, got {value!r}"
        raise InvalidParamsError(msg, field=field, operation=operation)
    return str(value).strip()


def path_id(value: Any, field: str, operation: str) -> str:
    """Identifier quoted for use as a path segment."""
    return quote(require_id(value, field, operation), safe="")


def require_page(offset: int, limit: int, operation: str) -> None:
    """Reject negative offsets and non-positive limits before any request."""
    if not isinstance(offset, int) or isinstance(offset, bool) or offset < 0:
        msg = f"offset must be a non-negative integer, got {offset!r}"
        raise InvalidParamsError(msg, field="offset", operation=operation)
    if not isinstance(limit, int) or isinstance(limit, bool) or limit <= 0:
        msg = f"limit must be a positive integer, got {limit!r}"
        raise InvalidParamsError(msg, field="limit", operation=operation)


class BaseAdapter:
    """Base class of the resource adapters."""

    def __init__(self, client: ApiClient) -> None:
        self._client = client
        self._logger = logging.getLogger(type(self).__module__)

    @staticmethod
    def _validate(schema: Schema, data: Any, endpoint: str) -> Any:
        """Validate ``data`` against a model class or a TypeAdapter.

        Raises:
            MalformedResponseError: If the payload does not have the expected shape
        """
        try:
            if isinstance(schema, TypeAdapter):
                return schema.validate_python(data)
            return schema.model_validate(data)
        except ValidationError as e:
            model_name = getattr(schema, "__name__", None) or str(
                getattr(schema, "_type", "payload")
            )
            raise MalformedResponseError(
                f"Unexpected response shape from {endpoint}: {e.error_count()} validation error(s)",
                endpoint=endpoint,
                model_name=model_name,
                validation_errors=[dict(err) for err in e.errors(include_url=False)],
                original_error=e,
            ) from e

    async def _fetch(
        self,
        operation: str,
        schema: Schema,
        method: str,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
        form: aiohttp.FormData | None = None,
        status_messages: Mapping[int, str] | None = None,
    ) -> Any:
        """Run one request and validate its body.

        Args:
            operation: Operation name used in logs
            schema: Model class or TypeAdapter describing the payload
            method: HTTP method
            path: API path
            params: Query parameters
            json: JSON body
            form: Multipart body (uploads)
            status_messages: Messages replacing the server's for given statuses

        Returns:
            The validated payload
        """
        log_operation_start(self._logger, operation, {"endpoint": path, "method": method})
        start_time = time.perf_counter()
        try:
            try:
                data = await self._client.request(
                    method, path, params=params, json=json, data=form
                )
            except ApiError as e:
                if status_messages and e.status in status_messages:
                    raise error_for_status(
                        e.status,
                        status_messages[e.status],
                        endpoint=path,
                    ) from e
                raise
            result = self._validate(schema, data, path)
        except CheckpointerError as e:
            log_operation_error(self._logger, e, operation=operation)
            raise

        log_operation_success(
            self._logger,
            operation,
            (time.perf_counter() - start_time) * 1000,
            context={"endpoint": path, "method": method},
        )
        return result


__all__ = ["BaseAdapter", "Schema", "path_id", "require_id", "require_page"]
