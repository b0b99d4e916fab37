"""Health check and monitoring endpoints."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter

router = APIRouter()

VERSION = "0.1.0"


@router.get("/health")
async def health() -> dict:
    """Basic health check."""
    from twstats.main import get_config, get_stats

    stats = get_stats()
    config = get_config()

    snapshot = stats.snapshot()
    return {
        "status": "ok",
        "version": VERSION,
        "uptime_seconds": snapshot["uptime_seconds"],
        "snapshot_file_present": Path(config.scanner.json_path).exists(),
    }


@router.get("/stats")
async def stats() -> dict:
    """Ingestion counters, scanner restarts and the current watcher state."""
    from twstats.main import get_registry, get_stats

    return get_stats().snapshot(servers_known=len(get_registry()))
