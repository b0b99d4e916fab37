"""Tests for the HTTP query API."""

from __future__ import annotations

import pytest

from helpers import make_client, make_record
from twstats.main import get_registry


@pytest.fixture
def populated():
    get_registry().reconcile([
        make_record("1.1.1.1:8303", game_type="CTF", location="DE",
                    clients=[make_client("Foo", country=276), make_client("Bar", is_player=False)]),
        make_record("2.2.2.2:8303", game_type="DM", passworded=True,
                    clients=[make_client("(connecting)", is_player=False)]),
        make_record("3.3.3.3:8304", game_type="ctf"),
    ], now=1000)


@pytest.mark.asyncio
async def test_health(client):
    resp = await client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "ok"
    assert "uptime_seconds" in data
    assert data["snapshot_file_present"] is False


@pytest.mark.asyncio
async def test_stats_empty(client):
    resp = await client.get("/stats")
    assert resp.status_code == 200
    data = resp.json()
    assert data["snapshots_applied"] == 0
    assert data["servers_known"] == 0
    assert data["watcher_state"] == "idle"


@pytest.mark.asyncio
async def test_servers_empty(client):
    resp = await client.get("/")
    assert resp.status_code == 200
    assert resp.json() == {"num_servers": 0, "servers": {}}


@pytest.mark.asyncio
async def test_servers_all(client, populated):
    resp = await client.get("/")
    assert resp.status_code == 200
    data = resp.json()
    assert data["num_servers"] == 3
    server = data["servers"]["1.1.1.1:8303"]
    assert server["locale"] == "DE"
    assert server["num_clients"] == 2
    assert server["num_players"] == 1
    assert server["num_spectators"] == 1
    assert "clients" not in server
    assert "reachable" not in server
    assert "last_seen" not in server


@pytest.mark.asyncio
async def test_servers_detail(client, populated):
    resp = await client.get("/", params={"detail": "1", "game_type": "CTF"})
    data = resp.json()
    assert list(data["servers"]) == ["1.1.1.1:8303"]
    clients = data["servers"]["1.1.1.1:8303"]["clients"]
    assert [c["name"] for c in clients] == ["Foo", "Bar"]
    assert clients[0]["flag"] == 276


@pytest.mark.asyncio
async def test_servers_typed_filters(client, populated):
    resp = await client.get("/", params={"passworded": "true"})
    assert list(resp.json()["servers"]) == ["2.2.2.2:8303"]

    resp = await client.get("/", params={"port": "8304"})
    assert list(resp.json()["servers"]) == ["3.3.3.3:8304"]

    resp = await client.get("/", params={"num_players": "0", "passworded": "false"})
    assert list(resp.json()["servers"]) == ["3.3.3.3:8304"]


@pytest.mark.asyncio
async def test_servers_filter_is_case_sensitive(client, populated):
    resp = await client.get("/", params={"game_type": "ctf"})
    assert list(resp.json()["servers"]) == ["3.3.3.3:8304"]


@pytest.mark.asyncio
async def test_servers_unknown_key_matches_nothing(client, populated):
    resp = await client.get("/", params={"mod": "vanilla"})
    assert resp.status_code == 200
    assert resp.json()["num_servers"] == 0


@pytest.mark.asyncio
async def test_servers_invalid_filter(client, populated):
    resp = await client.get("/", params={"num_players": "many"})
    assert resp.status_code == 400
    data = resp.json()
    assert data["error"] == "invalid_filter"
    assert data["field"] == "num_players"


@pytest.mark.asyncio
async def test_list(client, populated):
    resp = await client.get("/list", params={"game_type": "DM"})
    assert resp.status_code == 200
    servers = resp.json()["servers"]
    assert isinstance(servers, list)
    assert len(servers) == 1
    assert servers[0]["address"] == "2.2.2.2:8303"
    assert servers[0]["num_clients"] == 1
    assert servers[0]["num_players"] == 0
    assert servers[0]["num_spectators"] == 0
    assert "clients" not in servers[0]


@pytest.mark.asyncio
async def test_list_invalid_detail(client):
    resp = await client.get("/list", params={"detail": "maybe"})
    assert resp.status_code == 400
    assert resp.json()["field"] == "detail"


@pytest.mark.asyncio
async def test_players(client, populated):
    resp = await client.get("/players")
    assert resp.status_code == 200
    players = resp.json()["players"]
    assert len(players) == 3
    assert all("server" not in p for p in players)


@pytest.mark.asyncio
async def test_players_typed_filters(client, populated):
    resp = await client.get("/players", params={"flag": "276"})
    players = resp.json()["players"]
    assert [p["name"] for p in players] == ["Foo"]

    resp = await client.get("/players", params={"is_player": "0"})
    names = sorted(p["name"] for p in resp.json()["players"])
    assert names == ["(connecting)", "Bar"]


@pytest.mark.asyncio
async def test_players_detail(client, populated):
    resp = await client.get("/players", params={"name": "Foo", "detail": "true"})
    players = resp.json()["players"]
    assert len(players) == 1
    server = players[0]["server"]
    assert server["address"] == "1.1.1.1:8303"
    assert server["game_type"] == "CTF"
    assert "clients" not in server


@pytest.mark.asyncio
async def test_players_invalid_flag(client, populated):
    resp = await client.get("/players", params={"flag": "de"})
    assert resp.status_code == 400
    assert resp.json() == {"error": "invalid_filter", "field": "flag", "detail": "expected an integer"}


@pytest.mark.asyncio
async def test_unreachable_servers_still_listed(client, populated):
    get_registry().reconcile([make_record("1.1.1.1:8303")], now=1010)
    resp = await client.get("/")
    assert resp.json()["num_servers"] == 3
