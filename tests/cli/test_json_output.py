"""Tests for the JSON output envelope."""

from __future__ import annotations

import orjson

from checkpointer.cli.json_formatter import (
    format_json_output,
    format_success_output,
    safe_json_serialize,
)
from checkpointer.services.models import InfinitePages, WishlistItem, WishlistPage
from checkpointer.shared.constants import UserRole


class TestFormatJsonOutput:
    def test_envelope_fields(self):
        output = orjson.loads(format_success_output("top", {"games": []}))

        assert set(output) == {"command", "data", "errors", "success", "timestamp", "warnings"}
        assert output["success"] is True
        assert output["data"] == {"games": []}

    def test_errors_force_failure(self):
        output = orjson.loads(format_json_output(success=True, command="x", errors=["bad"]))

        assert output["success"] is False
        assert output["errors"] == ["bad"]


class TestSafeJsonSerialize:
    def test_models_use_wire_names(self, payloads):
        item = WishlistItem.model_validate(payloads.wishlist_item("g1"))

        data = safe_json_serialize([item])

        assert data[0]["gameId"] == "g1"
        assert data[0]["gameName"] == "Game g1"

    def test_enums(self):
        assert safe_json_serialize({"role": UserRole.ADMIN}) == {"role": "admin"}

    def test_dataclasses(self, payloads):
        page = WishlistPage.model_validate(payloads.wishlist_page(["g1"], total=1, next_offset=None))
        pages = InfinitePages(pages=(page,), page_offsets=(0,))

        data = safe_json_serialize(pages)

        assert data["page_offsets"] == [0]
        assert data["pages"][0]["totalCount"] == 1

    def test_unknown_objects_become_strings(self):
        class Opaque:
            def __str__(self) -> str:
                return "opaque"

        assert safe_json_serialize({"x": Opaque()}) == {"x": "opaque"}
