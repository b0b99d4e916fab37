"""Snapshot watcher: polls the scanner output and reconciles the registry.

This is the only writer of the registry. It depends on the SnapshotSource
protocol, not on a concrete file implementation.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, Callable

import structlog

from twstats.core.errors import SnapshotError
from twstats.core.stats import WatcherState

if TYPE_CHECKING:
    from twstats.core.models import ReconcileResult
    from twstats.core.registry import ServerRegistry
    from twstats.core.stats import ServiceStats
    from twstats.source.base import SnapshotSource

log = structlog.get_logger()


class SnapshotWatcher:
    """Feeds every new snapshot from a source into the registry."""

    def __init__(
        self,
        source: SnapshotSource,
        registry: ServerRegistry,
        stats: ServiceStats,
        poll_interval: float = 1.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._source = source
        self._registry = registry
        self._stats = stats
        self._poll_interval = poll_interval
        self._clock = clock

    def poll_once(self) -> ReconcileResult | None:
        """Apply the snapshot if it changed. Returns None when nothing was applied."""
        if not self._source.changed():
            return None

        try:
            records = self._source.read()
        except SnapshotError as exc:
            self._stats.record_snapshot_failure()
            log.warning("snapshot_read_failed", error=str(exc))
            return None

        now = self._clock()
        result = self._registry.reconcile(records, now=now)
        self._stats.record_snapshot(result, at=now)
        log.info("snapshot_applied",
                 servers=len(self._registry),
                 added=result.added,
                 updated=result.updated,
                 unreachable=result.unreachable,
                 evicted=result.evicted,
                 skipped=result.skipped)
        return result

    async def run(self) -> None:
        """Poll forever. Runs as a background task."""
        log.info("snapshot_watcher_started", interval=self._poll_interval)
        if self._stats.watcher_state is WatcherState.IDLE:
            self._stats.set_watcher_state(WatcherState.WATCHING)
        while True:
            try:
                self.poll_once()
            except Exception:
                self._stats.record_snapshot_failure()
                log.error("snapshot_poll_failed", exc_info=True)
            await asyncio.sleep(self._poll_interval)
