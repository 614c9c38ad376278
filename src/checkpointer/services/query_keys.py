"""Deterministic cache key derivation.

Every cached request is identified by an entity name plus its parameters.
Keys are canonical: parameters are sorted by name, ``None`` values are
dropped so that an absent optional parameter and an omitted one coincide,
and each value carries a type tag so that ``True`` and ``1`` (equal and
hash-equal in Python) still produce different keys.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from checkpointer.shared.errors import InvalidParamsError

logger = logging.getLogger(__name__)

Primitive = Union[str, int, float, bool]
ParamValue = Union[Primitive, list[Primitive], tuple[Primitive, ...]]

# (type tag, value) pairs; lists become tuples of pairs
_EncodedValue = tuple[str, Any]


def _encode_primitive(name: str, value: Any) -> _EncodedValue:
    if isinstance(value, bool):
        return ("bool", value)
    if isinstance(value, Enum):
        value = value.value
    if isinstance(value, str):
        return ("str", value)
    if isinstance(value, (int, float)):
        if isinstance(value, float) and not math.isfinite(value):
            msg = f"Parameter '{name}' must be a finite number, got {value!r}"
            raise InvalidParamsError(msg, field=name, operation="derive_key")
        return ("num", value)
    msg = (
        f"Parameter '{name}' must be a str, int, float or bool "
        f"(or a list of them), got {type(value).__name__}"
    )
    raise InvalidParamsError(msg, field=name, operation="derive_key")


def _encode_value(name: str, value: Any) -> _EncodedValue:
    if isinstance(value, (list, tuple)):
        return ("list", tuple(_encode_primitive(name, item) for item in value))
    return _encode_primitive(name, value)


def _render_value(encoded: _EncodedValue) -> str:
    tag, value = encoded
    if tag == "list":
        return ",".join(_render_value(item) for item in value)
    if tag == "bool":
        return "true" if value else "false"
    return str(value)


@dataclass(frozen=True)
class QueryKey:
    """Canonical identity of a cached request.

    Attributes:
        entity: Entity name, optionally namespaced with ``/`` (``admin/users``)
        params: Name-sorted ``(name, (type_tag, value))`` pairs
    """

    entity: str
    params: tuple[tuple[str, _EncodedValue], ...] = ()

    def __str__(self) -> str:
        if not self.params:
            return self.entity
        query = "&".join(f"{name}={_render_value(value)}" for name, value in self.params)
        return f"{self.entity}?{query}"

    def param(self, name: str, default: Any = None) -> Any:
        """Decoded value of one parameter (lists come back as tuples)."""
        for param_name, (tag, value) in self.params:
            if param_name == name:
                if tag == "list":
                    return tuple(item for _, item in value)
                return value
        return default

    def matches(self, prefix: str | QueryKey, **params: ParamValue) -> bool:
        """Whether this key falls under ``prefix``.

        ``prefix`` is an entity name (matching the entity itself and any
        ``prefix/...`` namespace below it) or another key, which matches
        when its entity and every one of its parameters agree. Extra
        ``params`` narrow the match further.

        Example:
            >>> key = derive_key("admin/users", {"limit": 20, "offset": 0})
            >>> key.matches("admin"), key.matches("admin/users", offset=0)
            (True, True)
        """
        if isinstance(prefix, QueryKey):
            if prefix.entity != self.entity:
                return False
            wanted = dict(prefix.params)
        else:
            if self.entity != prefix and not self.entity.startswith(f"{prefix}/"):
                return False
            wanted = {}

        for name, value in params.items():
            if value is not None:
                wanted[name] = _encode_value(name, value)

        own = dict(self.params)
        return all(own.get(name) == value for name, value in wanted.items())


def derive_key(entity: str, params: Mapping[str, ParamValue | None] | None = None) -> QueryKey:
    """Derive the cache key of a request.

    Pure function of its inputs: the same entity and parameters always
    give an equal key regardless of the parameters' insertion order.

    Args:
        entity: Entity name, e.g. ``"browse-games"``
        params: Request parameters; ``None`` values are treated as absent

    Returns:
        The canonical QueryKey

    Raises:
        InvalidParamsError: If the entity is empty or a value is not a
            primitive or a list of primitives
    """
    if not isinstance(entity, str) or not entity.strip():
        raise InvalidParamsError(
            "Entity name must be a non-empty string",
            field="entity",
            operation="derive_key",
        )

    if params is None:
        return QueryKey(entity=entity)

    if not isinstance(params, Mapping):
        msg = f"Parameters must be a mapping, got {type(params).__name__}"
        raise InvalidParamsError(msg, field="params", operation="derive_key")

    encoded = []
    for name in sorted(params):
        if not isinstance(name, str):
            msg = f"Parameter names must be strings, got {name!r}"
            raise InvalidParamsError(msg, field=str(name), operation="derive_key")
        value = params[name]
        if value is None:
            continue
        encoded.append((name, _encode_value(name, value)))

    return QueryKey(entity=entity, params=tuple(encoded))


__all__ = ["ParamValue", "Primitive", "QueryKey", "derive_key"]
