"""Service statistics.

In-memory counters for snapshot ingestion and the scanner process.
No framework dependencies.
"""

from __future__ import annotations

import threading
import time
from enum import Enum

from twstats.core.models import ReconcileResult


class WatcherState(str, Enum):
    IDLE = "idle"
    LAUNCHING = "launching"
    WATCHING = "watching"
    RELAUNCH_PENDING = "relaunch_pending"


class ServiceStats:
    """Thread-safe counters shared by the watcher, the scanner supervisor and the API."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._started_at = time.time()

        # Counters
        self.snapshots_applied: int = 0
        self.snapshots_failed: int = 0
        self.records_skipped: int = 0
        self.servers_evicted: int = 0
        self.scanner_launches: int = 0
        self.scanner_restarts: int = 0
        self.last_snapshot_at: float | None = None
        self.watcher_state: WatcherState = WatcherState.IDLE

    def record_snapshot(self, result: ReconcileResult, at: float) -> None:
        with self._lock:
            self.snapshots_applied += 1
            self.records_skipped += result.skipped
            self.servers_evicted += result.evicted
            self.last_snapshot_at = at

    def record_snapshot_failure(self) -> None:
        with self._lock:
            self.snapshots_failed += 1

    def record_scanner_launch(self) -> None:
        with self._lock:
            self.scanner_launches += 1

    def record_scanner_restart(self) -> None:
        with self._lock:
            self.scanner_restarts += 1

    def set_watcher_state(self, state: WatcherState) -> None:
        with self._lock:
            self.watcher_state = state

    def snapshot(self, servers_known: int = 0) -> dict:
        """Return a JSON-serializable snapshot of all stats."""
        with self._lock:
            return {
                "uptime_seconds": round(time.time() - self._started_at, 1),
                "snapshots_applied": self.snapshots_applied,
                "snapshots_failed": self.snapshots_failed,
                "records_skipped": self.records_skipped,
                "servers_evicted": self.servers_evicted,
                "scanner_launches": self.scanner_launches,
                "scanner_restarts": self.scanner_restarts,
                "last_snapshot_at": self.last_snapshot_at,
                "watcher_state": self.watcher_state.value,
                "servers_known": servers_known,
            }
