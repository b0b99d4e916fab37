"""Tests for query-string filter coercion."""

from __future__ import annotations

import pytest

from twstats.core.errors import FilterError
from twstats.core.filters import PLAYER_FIELDS, SERVER_FIELDS, build_predicate, to_bool


def test_typed_server_fields_are_coerced():
    predicate, options = build_predicate(
        [("num_players", "3"), ("passworded", "1"), ("game_type", "CTF")],
        SERVER_FIELDS,
    )
    assert predicate == {"num_players": 3, "passworded": True, "game_type": "CTF"}
    assert options == {}


def test_detail_is_an_option_not_a_filter():
    predicate, options = build_predicate([("detail", "true")], SERVER_FIELDS)
    assert predicate == {}
    assert options == {"detail": True}


def test_unknown_keys_pass_through_verbatim():
    predicate, _ = build_predicate([("Whatever", " 42 ")], PLAYER_FIELDS)
    assert predicate == {"Whatever": " 42 "}


def test_last_value_wins():
    predicate, _ = build_predicate([("flag", "1"), ("flag", "2")], PLAYER_FIELDS)
    assert predicate == {"flag": 2}


@pytest.mark.parametrize("raw,expected", [
    ("true", True), ("1", True), ("TRUE", True),
    ("false", False), ("0", False),
])
def test_to_bool(raw, expected):
    assert to_bool(raw) is expected


def test_bad_integer_raises_filter_error():
    with pytest.raises(FilterError) as excinfo:
        build_predicate([("flag", "de")], PLAYER_FIELDS)
    assert excinfo.value.field == "flag"
    assert excinfo.value.value == "de"


def test_bad_boolean_raises_filter_error():
    with pytest.raises(FilterError) as excinfo:
        build_predicate([("detail", "yes please")], SERVER_FIELDS)
    assert excinfo.value.field == "detail"
