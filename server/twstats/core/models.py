"""twstats — core internal data models.

These are plain dataclasses with no framework dependencies.
Raw snapshot dicts are converted to these at the registry boundary.
"""

from __future__ import annotations

from dataclasses import dataclass

# Placeholder name the scanner reports for a slot whose player has not joined yet.
CONNECTING_NAME = "(connecting)"

# Locale of a server that never reported one.
UNKNOWN_LOCALE = "unknown"


@dataclass(frozen=True)
class PlayerState:
    name: str
    clan: str
    score: int
    is_player: bool
    flag: int

    @property
    def is_connecting(self) -> bool:
        return self.name == CONNECTING_NAME and (
            not self.is_player or (self.clan == "" and self.score == 0)
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "clan": self.clan,
            "score": self.score,
            "is_player": self.is_player,
            "flag": self.flag,
        }


@dataclass(frozen=True)
class ServerState:
    address: str
    host: str
    port: int
    protocols: tuple[str, ...]
    max_clients: int
    max_players: int
    passworded: bool
    game_type: str
    name: str
    map: str
    version: str
    locale: str
    clients: tuple[PlayerState, ...] = ()
    num_clients: int = 0
    num_players: int = 0
    num_spectators: int = 0
    reachable: bool = True
    last_seen: float = 0.0

    def summary(self) -> dict:
        """Public fields without the client list and liveness bookkeeping."""
        return {
            "address": self.address,
            "host": self.host,
            "port": self.port,
            "protocols": list(self.protocols),
            "max_clients": self.max_clients,
            "max_players": self.max_players,
            "passworded": self.passworded,
            "game_type": self.game_type,
            "name": self.name,
            "map": self.map,
            "version": self.version,
            "locale": self.locale,
            "num_clients": self.num_clients,
            "num_players": self.num_players,
            "num_spectators": self.num_spectators,
        }

    def to_dict(self, include_clients: bool = True) -> dict:
        data = self.summary()
        if include_clients:
            data["clients"] = [c.to_dict() for c in self.clients]
        return data


@dataclass(frozen=True)
class ReconcileResult:
    added: int = 0
    updated: int = 0
    unreachable: int = 0
    evicted: int = 0
    skipped: int = 0
