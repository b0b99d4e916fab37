"""Server registry: reconciles scanner snapshots into queryable state.

Every reconcile builds a complete new address -> ServerState mapping out of
frozen records and publishes it with a single reference swap. Readers grab
the current mapping once and never see a half-applied snapshot.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from typing import Any, Iterable, Mapping

import structlog

from twstats.core.errors import MalformedRecordError
from twstats.core.models import (
    UNKNOWN_LOCALE,
    PlayerState,
    ReconcileResult,
    ServerState,
)

log = structlog.get_logger()

# Servers unreachable for longer than this are dropped (seconds).
DEFAULT_EVICTION_SECONDS = 600.0


def split_uri(uri: str) -> tuple[str, str]:
    """Split ``scheme://host:port`` into ``(scheme, "host:port")``."""
    if not isinstance(uri, str) or "://" not in uri:
        raise MalformedRecordError(f"not an advertised address: {uri!r}")
    scheme, _, rest = uri.partition("://")
    if not scheme or not rest:
        raise MalformedRecordError(f"not an advertised address: {uri!r}")
    return scheme, rest


def parse_host_port(address: str) -> tuple[str, int]:
    """Split ``host:port`` on the last colon. IPv6 brackets are removed."""
    host, sep, port = address.rpartition(":")
    if not sep or not host:
        raise MalformedRecordError(f"address has no port: {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    try:
        return host, int(port)
    except ValueError:
        raise MalformedRecordError(f"bad port in address: {address!r}") from None


def primary_address(raw: Mapping[str, Any]) -> str:
    addresses = raw.get("addresses") if isinstance(raw, Mapping) else None
    if not addresses or not isinstance(addresses, list):
        raise MalformedRecordError("record has no addresses")
    return split_uri(addresses[0])[1]


def _player_from_raw(raw: Mapping[str, Any]) -> PlayerState:
    name = raw["name"]
    clan = raw.get("clan", "")
    if not isinstance(name, str) or not isinstance(clan, str):
        raise MalformedRecordError(f"client name/clan is not a string: {name!r}, {clan!r}")
    return PlayerState(
        name=name,
        clan=clan,
        score=int(raw.get("score", 0)),
        is_player=bool(raw.get("is_player", False)),
        flag=int(raw.get("country", -1)),
    )


def _matches(record: Mapping[str, Any], predicate: Mapping[str, Any]) -> bool:
    for key, expected in predicate.items():
        if key not in record:
            return False
        value = record[key]
        # bool is an int subclass; True must not match 1.
        if type(value) is not type(expected) or value != expected:
            return False
    return True


class ServerRegistry:
    """In-memory registry of game servers keyed by ``host:port``.

    ``reconcile`` is the only mutating operation and is expected to be called
    from a single task. ``find_server`` and ``find_player`` are safe to call
    from any thread at any time.
    """

    def __init__(
        self,
        eviction_seconds: float = DEFAULT_EVICTION_SECONDS,
        locations: Mapping[str, str] | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._eviction_seconds = eviction_seconds
        self._locations = dict(locations or {})
        self._servers: dict[str, ServerState] = {}

    def __len__(self) -> int:
        return len(self._servers)

    def get(self, address: str) -> ServerState | None:
        return self._servers.get(address)

    def addresses(self) -> list[str]:
        return list(self._servers)

    def _locale_for(self, address: str, raw: Mapping[str, Any], prior: ServerState | None) -> str:
        override = self._locations.get(address)
        if override:
            return override
        if prior is not None and prior.locale != UNKNOWN_LOCALE:
            return prior.locale
        location = raw.get("location")
        if isinstance(location, str) and location:
            return location
        return UNKNOWN_LOCALE

    def _build_state(
        self,
        address: str,
        raw: Mapping[str, Any],
        prior: ServerState | None,
        now: float,
    ) -> ServerState:
        """Assemble a fresh ServerState. Raises MalformedRecordError."""
        try:
            info = raw["info"]
            protocols = tuple(split_uri(uri)[0] for uri in raw["addresses"])
            if prior is not None:
                host, port = prior.host, prior.port
            else:
                host, port = parse_host_port(address)

            clients = tuple(_player_from_raw(c) for c in info.get("clients") or ())
            connecting = sum(1 for c in clients if c.is_connecting)
            players = sum(1 for c in clients if not c.is_connecting and c.is_player)

            map_info = info.get("map") or {}
            return ServerState(
                address=address,
                host=host,
                port=port,
                protocols=protocols,
                max_clients=int(info.get("max_clients", 0)),
                max_players=int(info.get("max_players", 0)),
                passworded=bool(info.get("passworded", False)),
                game_type=str(info.get("game_type", "")),
                name=str(info.get("name", "")),
                map=str(map_info.get("name", "")),
                version=str(info.get("version", "")),
                locale=self._locale_for(address, raw, prior),
                clients=clients,
                num_clients=len(clients),
                num_players=players,
                num_spectators=len(clients) - players - connecting,
                reachable=True,
                last_seen=now,
            )
        except MalformedRecordError:
            raise
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise MalformedRecordError(f"{type(exc).__name__}: {exc}") from exc

    def reconcile(self, snapshot: Iterable[Mapping[str, Any]], now: float) -> ReconcileResult:
        """Merge one scanner snapshot taken at ``now`` into the registry."""
        skipped = 0
        with self._lock:
            current = self._servers
            fresh: dict[str, ServerState] = {}
            for raw in snapshot:
                try:
                    address = primary_address(raw)
                    fresh[address] = self._build_state(address, raw, current.get(address), now)
                except MalformedRecordError as exc:
                    skipped += 1
                    log.warning("record_skipped", reason=str(exc))

            published: dict[str, ServerState] = {}
            updated = unreachable = evicted = 0
            cutoff = now - self._eviction_seconds
            for address, state in current.items():
                if address in fresh:
                    published[address] = fresh[address]
                    updated += 1
                    continue
                if state.reachable:
                    state = replace(state, reachable=False)
                    unreachable += 1
                    log.info("server_unreachable", address=address)
                if state.last_seen < cutoff:
                    evicted += 1
                    log.info("server_evicted", address=address, last_seen=state.last_seen)
                    continue
                published[address] = state

            added = 0
            for address, state in fresh.items():
                if address not in published:
                    published[address] = state
                    added += 1

            self._servers = published

        return ReconcileResult(
            added=added,
            updated=updated,
            unreachable=unreachable,
            evicted=evicted,
            skipped=skipped,
        )

    def find_server(
        self,
        predicate: Mapping[str, Any] | None = None,
        include_clients: bool = False,
    ) -> dict[str, dict]:
        """Return ``{address: server}`` for servers whose fields equal every predicate value."""
        predicate = predicate or {}
        servers = self._servers
        result = {}
        for address, state in servers.items():
            if _matches(state.summary(), predicate):
                result[address] = state.to_dict(include_clients=include_clients)
        return result

    def find_player(
        self,
        predicate: Mapping[str, Any] | None = None,
        include_server: bool = False,
    ) -> list[dict]:
        """Flatten players across all servers and filter them by ``predicate``."""
        predicate = predicate or {}
        servers = self._servers
        result = []
        for state in servers.values():
            summary = None
            for player in state.clients:
                record = player.to_dict()
                if not _matches(record, predicate):
                    continue
                if include_server:
                    if summary is None:
                        summary = state.summary()
                    record["server"] = summary
                result.append(record)
        return result
