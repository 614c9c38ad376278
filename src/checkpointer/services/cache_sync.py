"""Cache synchronizer: apply local mutations to cached results.

A mutation (create, update or delete of one item) is patched into the
cached result of a query instead of refetching it. Patching never
fabricates an entry: when the key has nothing cached the mutation is a
no-op, unless the caller asked for a fresh view, in which case
RequiresRefetch is returned. Entries of other keys that the mutation
also affects are corrected lazily once their stale time expires.

Supported results are ItemCollection models (flat pages and ``{games}``
style envelopes), plain lists of items, and InfinitePages. Items are
matched by identity: their ``item_id`` property, or ``id`` for dicts.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

from pydantic import BaseModel

from checkpointer.services.models import InfinitePages, ItemCollection, PaginatedResponse
from checkpointer.services.query_keys import QueryKey
from checkpointer.shared.constants import OptimisticIds
from checkpointer.shared.errors import InvalidParamsError

if TYPE_CHECKING:
    from checkpointer.services.query_cache import CacheEntry

logger = logging.getLogger(__name__)


class MutationKind(str, Enum):
    """Kinds of local mutation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class MutationIntent:
    """One mutation to apply to cached results.

    Attributes:
        kind: create, update or delete
        target_id: Identity of the item (for creates, of ``payload``); an
            update without one changes the cached resource itself
        payload: The new item (create) or the changed fields (update)
        entity: Entity name of the mutated resource, for logging
        placeholder_id: For a create that echoes an optimistic insert, the
            identity of the placeholder to replace
    """

    kind: MutationKind
    target_id: str | None = None
    payload: Any = None
    entity: str | None = None
    placeholder_id: str | None = None

    @classmethod
    def create(cls, item: Any, *, entity: str | None = None) -> MutationIntent:
        return cls(MutationKind.CREATE, identity_of(item), item, entity)

    @classmethod
    def reconcile(
        cls,
        placeholder_id: str,
        record: Any,
        *,
        entity: str | None = None,
    ) -> MutationIntent:
        """Replace the optimistic ``placeholder_id`` with the server's record."""
        return cls(MutationKind.CREATE, identity_of(record), record, entity, str(placeholder_id))

    @classmethod
    def update(
        cls,
        target_id: Any,
        changes: Mapping[str, Any] | BaseModel,
        *,
        entity: str | None = None,
    ) -> MutationIntent:
        return cls(MutationKind.UPDATE, str(target_id), changes, entity)

    @classmethod
    def merge(cls, changes: Mapping[str, Any] | BaseModel, *, entity: str | None = None) -> MutationIntent:
        """Update of a single cached resource (not an item of a list)."""
        return cls(MutationKind.UPDATE, None, changes, entity)

    @classmethod
    def delete(cls, target_id: Any, *, entity: str | None = None) -> MutationIntent:
        return cls(MutationKind.DELETE, str(target_id), None, entity)


@dataclass(frozen=True)
class RequiresRefetch:
    """The mutation could not be applied locally; ``key`` must be refetched."""

    key: QueryKey
    reason: str


SyncResult = Union["CacheEntry", RequiresRefetch, None]


def new_placeholder_id() -> str:
    """Identity for an optimistically created item."""
    return f"{OptimisticIds.PREFIX}{uuid.uuid4().hex}"


def is_placeholder_id(value: Any) -> bool:
    return isinstance(value, str) and value.startswith(OptimisticIds.PREFIX)


def identity_of(item: Any) -> str | None:
    """Identity of a cached item, or None when it has none."""
    item_id = getattr(item, "item_id", None)
    if item_id is not None:
        return str(item_id)
    if isinstance(item, Mapping) and item.get("id") is not None:
        return str(item["id"])
    return None


def _index_of(items: list[Any], target_id: str | None) -> int | None:
    if target_id is None:
        return None
    for index, item in enumerate(items):
        if identity_of(item) == target_id:
            return index
    return None


def _field_names(model: BaseModel, changes: Mapping[str, Any]) -> dict[str, Any]:
    # accept both attribute names and wire aliases
    by_alias = {
        (info.alias or name): name for name, info in type(model).model_fields.items()
    }
    normalized: dict[str, Any] = {}
    for name, value in changes.items():
        normalized[by_alias.get(name, name)] = value
    return normalized


def merge_item(item: Any, changes: Mapping[str, Any] | BaseModel) -> Any:
    """Item with ``changes`` merged over its fields."""
    if isinstance(changes, BaseModel):
        changes = changes.model_dump(exclude_unset=True)

    if isinstance(item, BaseModel):
        data = item.model_dump()
        data.update(_field_names(item, changes))
        return type(item).model_validate(data)

    if isinstance(item, Mapping):
        return {**item, **changes}

    msg = f"Cannot merge fields into {type(item).__name__}"
    raise InvalidParamsError(msg, field="payload", operation="apply_mutation")


def _patch_items(
    items: list[Any],
    intent: MutationIntent,
    limit: int | None = None,
) -> tuple[list[Any], int] | None:
    """Apply ``intent`` to one list of items.

    Returns:
        The new items and the change of the total count, or None when the
        mutation does not touch this list
    """
    if intent.kind is MutationKind.DELETE:
        index = _index_of(items, intent.target_id)
        if index is None:
            return None
        return items[:index] + items[index + 1 :], -1

    if intent.kind is MutationKind.UPDATE:
        index = _index_of(items, intent.target_id)
        if index is None:
            return None
        patched = list(items)
        patched[index] = merge_item(items[index], intent.payload)
        return patched, 0

    # create, possibly reconciling an optimistic placeholder
    record_index = _index_of(items, intent.target_id)
    placeholder_index = (
        _index_of(items, intent.placeholder_id)
        if intent.placeholder_id and intent.placeholder_id != intent.target_id
        else None
    )

    if placeholder_index is not None and record_index is not None:
        patched = list(items)
        patched[record_index] = intent.payload
        del patched[placeholder_index]
        return patched, -1

    if placeholder_index is not None:
        patched = list(items)
        patched[placeholder_index] = intent.payload
        return patched, 0

    if record_index is not None:
        patched = list(items)
        patched[record_index] = intent.payload
        return patched, 0

    patched = [intent.payload, *items]
    if limit is not None and len(patched) > limit:
        patched = patched[:limit]
    return patched, 1


def _patch_collection(data: ItemCollection, intent: MutationIntent) -> ItemCollection | None:
    result = _patch_items(data.items, intent, data.page_limit)
    if result is None:
        return None
    items, delta = result
    return data.replace_items(items, delta)


def _locate(pages: list[PaginatedResponse], target_id: str | None) -> tuple[int, int] | None:
    for page_index, page in enumerate(pages):
        item_index = _index_of(page.items, target_id)
        if item_index is not None:
            return page_index, item_index
    return None


def _replace_at(pages: list[PaginatedResponse], page_index: int, items: list[Any]) -> None:
    pages[page_index] = pages[page_index].replace_items(items, 0)


def _patch_infinite(data: InfinitePages, intent: MutationIntent) -> InfinitePages | None:
    if not data.pages:
        return None

    pages = list(data.pages)

    if intent.kind is MutationKind.CREATE:
        record = _locate(pages, intent.target_id)
        placeholder = (
            _locate(pages, intent.placeholder_id)
            if intent.placeholder_id and intent.placeholder_id != intent.target_id
            else None
        )

        if record is not None and placeholder is not None and record[0] == placeholder[0]:
            page_index = record[0]
            new_items, delta = _patch_items(pages[page_index].items, intent)
            _replace_at(pages, page_index, new_items)
        elif record is not None and placeholder is not None:
            record_items = pages[record[0]].items
            record_items[record[1]] = intent.payload
            _replace_at(pages, record[0], record_items)
            placeholder_items = pages[placeholder[0]].items
            del placeholder_items[placeholder[1]]
            _replace_at(pages, placeholder[0], placeholder_items)
            delta = -1
        elif placeholder is not None or record is not None:
            page_index, item_index = placeholder or record
            new_items = pages[page_index].items
            new_items[item_index] = intent.payload
            _replace_at(pages, page_index, new_items)
            delta = 0
        else:
            # fresh creates land on the first page
            _replace_at(pages, 0, [intent.payload, *pages[0].items])
            delta = 1
    else:
        location = _locate(pages, intent.target_id)
        if location is None:
            return None
        new_items, delta = _patch_items(pages[location[0]].items, intent)
        _replace_at(pages, location[0], new_items)

    if delta:
        # every page carries the total of the whole result
        pages = [page.replace_items(page.items, delta) for page in pages]
    return dataclasses.replace(data, pages=tuple(pages))


def apply_mutation(
    key: QueryKey,
    intent: MutationIntent,
    current_entry: CacheEntry | None,
    *,
    require_fresh_view: bool = False,
) -> SyncResult:
    """Apply ``intent`` to the cached entry of ``key``.

    Args:
        key: Key of the cached result
        intent: The mutation
        current_entry: The entry currently stored under ``key``
        require_fresh_view: The caller needs this key's view updated now

    Returns:
        A new CacheEntry when the mutation changed the result, the current
        entry when it did not apply (e.g. deleting an absent id),
        RequiresRefetch when the result cannot be patched locally (or is
        missing and ``require_fresh_view`` is set), else None
    """
    if current_entry is None or current_entry.data is None:
        if require_fresh_view:
            return RequiresRefetch(key, "nothing cached for this key")
        logger.debug("No cached result for %s, mutation skipped", key)
        return None

    data = current_entry.data
    if isinstance(data, InfinitePages):
        patched: Any = _patch_infinite(data, intent)
    elif isinstance(data, ItemCollection):
        patched = _patch_collection(data, intent)
    elif isinstance(data, list):
        result = _patch_items(data, intent)
        patched = None if result is None else result[0]
    elif intent.kind is MutationKind.UPDATE and intent.target_id is None:
        patched = merge_item(data, intent.payload)
    else:
        return RequiresRefetch(key, f"{type(data).__name__} results cannot be patched locally")

    if patched is None:
        logger.debug("%s of %s does not affect %s", intent.kind.value, intent.target_id, key)
        return current_entry

    logger.debug("Applied %s of %s to %s", intent.kind.value, intent.target_id, key)
    return dataclasses.replace(current_entry, data=patched)


__all__ = [
    "MutationIntent",
    "MutationKind",
    "RequiresRefetch",
    "apply_mutation",
    "identity_of",
    "is_placeholder_id",
    "merge_item",
    "new_placeholder_id",
]
