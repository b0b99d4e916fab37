"""Builders for raw scanner records used across the tests."""

from __future__ import annotations


def make_record(
    address: str = "1.2.3.4:8303",
    *,
    scheme: str = "tw-0.6+udp",
    extra_schemes: tuple[str, ...] = (),
    game_type: str = "DM",
    name: str = "Server A",
    map_name: str = "dm1",
    passworded: bool = False,
    clients: list[dict] | None = None,
    location: str | None = None,
) -> dict:
    """Build a raw scanner record the way the scanner writes it."""
    record = {
        "addresses": [f"{s}://{address}" for s in (scheme, *extra_schemes)],
        "info": {
            "max_clients": 16,
            "max_players": 16,
            "passworded": passworded,
            "game_type": game_type,
            "name": name,
            "map": {"name": map_name},
            "version": "0.6.4",
            "clients": clients if clients is not None else [],
        },
    }
    if location is not None:
        record["location"] = location
    return record


def make_client(
    name: str = "Foo",
    *,
    clan: str = "",
    country: int = 16,
    score: int = 5,
    is_player: bool = True,
) -> dict:
    return {"name": name, "clan": clan, "country": country, "score": score, "is_player": is_player}
