"""Tests for cache key derivation."""

import itertools

import pytest

from checkpointer.services.query_keys import QueryKey, derive_key
from checkpointer.shared.constants import SortBy
from checkpointer.shared.errors import InvalidParamsError


class TestDeriveKey:
    """Test derive_key canonicalization."""

    def test_insertion_order_does_not_matter(self) -> None:
        params = {"q": "zelda", "sortBy": "rating", "limit": 24, "offset": 48, "year": 2017}
        keys = {
            derive_key("browse-games", dict(permutation))
            for permutation in itertools.permutations(params.items())
        }

        assert len(keys) == 1

    def test_same_inputs_give_equal_keys(self) -> None:
        first = derive_key("game", {"id": "g1"})
        second = derive_key("game", {"id": "g1"})

        assert first == second
        assert hash(first) == hash(second)

    def test_none_values_are_dropped(self) -> None:
        assert derive_key("browse-games", {"q": None, "limit": 24}) == derive_key(
            "browse-games", {"limit": 24}
        )

    def test_no_params_equals_empty_params(self) -> None:
        assert derive_key("admin/stats") == derive_key("admin/stats", {})
        assert str(derive_key("admin/stats")) == "admin/stats"

    def test_bool_and_int_are_distinct(self) -> None:
        assert derive_key("game-list", {"auth": True}) != derive_key("game-list", {"auth": 1})

    def test_string_and_number_are_distinct(self) -> None:
        assert derive_key("game", {"id": "1"}) != derive_key("game", {"id": 1})

    def test_different_entities_are_distinct(self) -> None:
        assert derive_key("reviews-game", {"gameId": "g1"}) != derive_key(
            "reviews-user", {"gameId": "g1"}
        )

    def test_enum_values_use_their_value(self) -> None:
        assert derive_key("browse-games", {"sortBy": SortBy.RATING}) == derive_key(
            "browse-games", {"sortBy": "rating"}
        )

    def test_list_values(self) -> None:
        key = derive_key("lists", {"ids": ["a", "b"]})

        assert key.param("ids") == ("a", "b")
        assert key != derive_key("lists", {"ids": ["b", "a"]})

    def test_string_form_is_sorted(self) -> None:
        key = derive_key("admin/users", {"offset": 20, "limit": 20})

        assert str(key) == "admin/users?limit=20&offset=20"

    @pytest.mark.parametrize("entity", ["", "   ", None])
    def test_empty_entity_rejected(self, entity) -> None:
        with pytest.raises(InvalidParamsError):
            derive_key(entity)

    def test_non_primitive_value_rejected(self) -> None:
        with pytest.raises(InvalidParamsError) as exc_info:
            derive_key("game", {"id": {"nested": 1}})

        assert exc_info.value.field == "id"

    def test_non_finite_number_rejected(self) -> None:
        with pytest.raises(InvalidParamsError):
            derive_key("game", {"rating": float("nan")})

    def test_non_mapping_params_rejected(self) -> None:
        with pytest.raises(InvalidParamsError):
            derive_key("game", [("id", 1)])


class TestQueryKeyMatching:
    """Test prefix matching used by invalidation."""

    def test_entity_prefix(self) -> None:
        key = derive_key("admin/users", {"limit": 20, "offset": 0})

        assert key.matches("admin")
        assert key.matches("admin/users")
        assert not key.matches("admin/user")

    def test_hyphenated_entities_are_not_prefixes(self) -> None:
        key = derive_key("want-to-play-check", {"gameId": "g1"})

        assert not key.matches("want-to-play")

    def test_params_narrow_the_match(self) -> None:
        key = derive_key("play-history", {"userId": "u1", "limit": 20})

        assert key.matches("play-history", userId="u1")
        assert not key.matches("play-history", userId="u2")

    def test_key_prefix_matches_on_its_params(self) -> None:
        key = derive_key("play-history", {"userId": "u1", "limit": 20})
        prefix = QueryKey("play-history", derive_key("x", {"userId": "u1"}).params)

        assert key.matches(prefix)
        assert not key.matches(derive_key("wishlist", {"userId": "u1"}))

    def test_param_default(self) -> None:
        assert derive_key("game", {"id": "g1"}).param("missing", "fallback") == "fallback"
