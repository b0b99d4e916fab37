#!/usr/bin/env python3
"""twstats scanner simulator.

Stands in for the external scanner during development: accepts the same
flags and keeps overwriting the snapshot file with a drifting population of
fake servers and players.

Usage:
    # 20 servers, new snapshot every 2 seconds, forever
    python tools/simulator/simulate.py -f json --filename servers.json --servers 20 --interval 2

    # As the scanner launched by twstats itself
    TWSTATS_EXEC="python tools/simulator/simulate.py --servers 50" uvicorn twstats.main:app

    # Write three snapshots, then print what the service sees
    python tools/simulator/simulate.py -f json --filename servers.json --iterations 3 \\
        --server http://localhost:3001
"""

from __future__ import annotations

import argparse
import json
import os
import random
import sys
import time
from dataclasses import dataclass, field

import httpx

GAME_TYPES = ["DM", "TDM", "CTF", "DDraceNetwork", "gores", "zCatch"]
MAPS = ["dm1", "dm2", "dm6", "ctf1", "ctf5", "Kobra", "Multeasymap"]
LOCATIONS = ["eu:de", "eu:fr", "na:us", "as:cn", "sa:br", ""]
NAMES = ["nameless tee", "brainless tee", "Foo", "Bar", "Zeta", "Kiwi", "Ghost"]
CLANS = ["", "", "Team", "DDNet", "Ninjas"]


@dataclass
class SimServer:
    host: str
    port: int
    game_type: str
    map: str
    location: str
    max_clients: int
    passworded: bool
    clients: list[dict] = field(default_factory=list)
    online: bool = True


def make_client() -> dict:
    """Create a random client record, sometimes still connecting."""
    if random.random() < 0.1:
        return {"name": "(connecting)", "clan": "", "country": -1, "score": 0, "is_player": False}
    return {
        "name": random.choice(NAMES),
        "clan": random.choice(CLANS),
        "country": random.choice([-1, 0, 250, 276, 840]),
        "score": random.randint(-5, 40),
        "is_player": random.random() < 0.8,
    }


def make_server(i: int) -> SimServer:
    max_clients = random.choice([8, 16, 64])
    server = SimServer(
        host=f"10.0.{i // 250}.{i % 250 + 1}",
        port=8303 + random.randint(0, 5),
        game_type=random.choice(GAME_TYPES),
        map=random.choice(MAPS),
        location=random.choice(LOCATIONS),
        max_clients=max_clients,
        passworded=random.random() < 0.1,
    )
    server.clients = [make_client() for _ in range(random.randint(0, max_clients // 2))]
    return server


def step(server: SimServer) -> None:
    """Let a server drift: players join and leave, it may go offline."""
    if random.random() < 0.05:
        server.online = not server.online
    if server.clients and random.random() < 0.3:
        server.clients.pop(random.randrange(len(server.clients)))
    if len(server.clients) < server.max_clients and random.random() < 0.3:
        server.clients.append(make_client())
    for client in server.clients:
        client["score"] += random.randint(0, 2)


def to_record(server: SimServer) -> dict:
    record = {
        "addresses": [
            f"tw-0.6+udp://{server.host}:{server.port}",
            f"tw-0.7+udp://{server.host}:{server.port}",
        ],
        "info": {
            "max_clients": server.max_clients,
            "max_players": server.max_clients,
            "passworded": server.passworded,
            "game_type": server.game_type,
            "name": f"Sim {server.game_type} {server.host}",
            "map": {"name": server.map},
            "version": "0.6.4",
            "clients": server.clients,
        },
    }
    if server.location:
        record["location"] = server.location
    return record


def write_snapshot(path: str, servers: list[SimServer]) -> int:
    """Atomically replace the snapshot file. Returns the number of servers written."""
    records = [to_record(s) for s in servers if s.online]
    tmp_path = f"{path}.tmp"
    with open(tmp_path, "w", encoding="utf-8") as f:
        json.dump({"servers": records}, f)
    os.replace(tmp_path, path)
    return len(records)


def print_server_stats(server_url: str) -> None:
    try:
        resp = httpx.get(f"{server_url}/stats", timeout=10.0)
    except httpx.RequestError as exc:
        print(f"Could not reach {server_url}: {exc}", file=sys.stderr)
        return
    if resp.status_code == 200:
        stats = resp.json()
        print("\nServer stats:")
        print(f"  Snapshots applied: {stats['snapshots_applied']}")
        print(f"  Servers known: {stats['servers_known']}")
        print(f"  Watcher state: {stats['watcher_state']}")


def main():
    parser = argparse.ArgumentParser(description="twstats scanner simulator")
    parser.add_argument("-f", "--format", default="json", choices=["json"], help="Output format")
    parser.add_argument("--filename", required=True, help="Snapshot file to overwrite")
    parser.add_argument("--geoip", default="", help="Ignored; accepted for compatibility")
    parser.add_argument("--servers", type=int, default=20, help="Number of simulated servers")
    parser.add_argument("--interval", type=float, default=2.0, help="Seconds between snapshots")
    parser.add_argument("--iterations", type=int, default=0,
                        help="Stop after this many snapshots (default: run forever)")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    parser.add_argument("--server", default="", help="twstats URL to query for stats when done")

    args = parser.parse_args()
    random.seed(args.seed)

    servers = [make_server(i) for i in range(args.servers)]
    written = 0
    try:
        while not args.iterations or written < args.iterations:
            online = write_snapshot(args.filename, servers)
            written += 1
            print(f"snapshot {written}: {online}/{len(servers)} servers online", flush=True)
            for server in servers:
                step(server)
            if not args.iterations or written < args.iterations:
                time.sleep(args.interval)
    except KeyboardInterrupt:
        pass

    if args.server:
        print_server_stats(args.server)


if __name__ == "__main__":
    main()
