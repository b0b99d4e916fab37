"""Query-string filter coercion.

Each endpoint declares which fields are typed. Values for those fields are
coerced before matching; any other key is compared as the raw string.
A value that does not parse raises FilterError instead of silently
falling back to string comparison.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable, Mapping

from twstats.core.errors import FilterError

Coercer = Callable[[str], Any]

_TRUE = frozenset({"true", "1"})
_FALSE = frozenset({"false", "0"})


def to_int(value: str) -> int:
    try:
        return int(value)
    except ValueError:
        raise ValueError("expected an integer") from None


def to_bool(value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError("expected one of true, false, 1, 0")


SERVER_FIELDS: dict[str, Coercer] = {
    "port": to_int,
    "max_clients": to_int,
    "max_players": to_int,
    "num_clients": to_int,
    "num_players": to_int,
    "num_spectators": to_int,
    "passworded": to_bool,
}

PLAYER_FIELDS: dict[str, Coercer] = {
    "flag": to_int,
    "score": to_int,
    "is_player": to_bool,
}

# Query keys that steer the response instead of filtering records.
CONTROL_FIELDS: dict[str, Coercer] = {
    "detail": to_bool,
}


def build_predicate(
    params: Iterable[tuple[str, str]],
    fields: Mapping[str, Coercer],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """Split query params into ``(predicate, options)``.

    ``options`` holds coerced control fields such as ``detail``. A repeated
    key keeps its last value.
    """
    predicate: dict[str, Any] = {}
    options: dict[str, Any] = {}
    for key, raw in params:
        if key in CONTROL_FIELDS:
            target, coerce = options, CONTROL_FIELDS[key]
        else:
            target, coerce = predicate, fields.get(key)
        if coerce is None:
            target[key] = raw
            continue
        try:
            target[key] = coerce(raw)
        except ValueError as exc:
            raise FilterError(key, raw, str(exc)) from None
    return predicate, options
