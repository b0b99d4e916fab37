"""External scanner supervisor.

Launches the scanner that writes the snapshot file and relaunches it
whenever it exits. Runs as an asyncio background task.
"""

from __future__ import annotations

import asyncio
import shlex
from typing import TYPE_CHECKING

import structlog

from twstats.core.stats import WatcherState

if TYPE_CHECKING:
    from twstats.core.stats import ServiceStats
    from twstats.source.base import SnapshotSource

log = structlog.get_logger()

# Grace period between SIGTERM and SIGKILL on shutdown (seconds).
TERMINATE_TIMEOUT = 5.0


class ScannerProcess:
    """Keeps one scanner process alive for the lifetime of the service."""

    def __init__(
        self,
        executable: str,
        json_path: str,
        source: SnapshotSource,
        stats: ServiceStats,
        geoip_path: str = "",
        restart_delay: float = 5.0,
    ) -> None:
        self._executable = executable
        self._json_path = json_path
        self._geoip_path = geoip_path
        self._source = source
        self._stats = stats
        self._restart_delay = restart_delay
        self._proc: asyncio.subprocess.Process | None = None

    def command(self) -> list[str]:
        cmd = shlex.split(self._executable)
        cmd += ["-f", "json", "--filename", self._json_path]
        if self._geoip_path:
            cmd += ["--geoip", self._geoip_path]
        return cmd

    async def _terminate(self, proc: asyncio.subprocess.Process) -> None:
        if proc.returncode is not None:
            return
        try:
            proc.terminate()
            await asyncio.wait_for(proc.wait(), TERMINATE_TIMEOUT)
        except ProcessLookupError:
            return
        except asyncio.TimeoutError:
            log.warning("scanner_kill", pid=proc.pid)
            proc.kill()
            await proc.wait()

    async def run_once(self) -> int | None:
        """Launch the scanner and wait for it to exit.

        Returns the exit code, or None when the process could not be spawned.
        """
        self._stats.set_watcher_state(WatcherState.LAUNCHING)
        cmd = None
        try:
            cmd = self.command()
            self._proc = await asyncio.create_subprocess_exec(*cmd)
        except (OSError, ValueError):
            # ValueError: unbalanced quotes in the executable, NUL bytes in an argument
            log.error("scanner_spawn_failed", executable=self._executable,
                      command=cmd, exc_info=True)
            return None

        self._stats.record_scanner_launch()
        self._stats.set_watcher_state(WatcherState.WATCHING)
        log.info("scanner_started", pid=self._proc.pid, command=cmd)

        try:
            return await self._proc.wait()
        except asyncio.CancelledError:
            await self._terminate(self._proc)
            raise

    async def run(self) -> None:
        """Launch, wait, relaunch. Only cancellation stops the loop."""
        while True:
            returncode = await self.run_once()
            log.warning("scanner_exited", returncode=returncode,
                        restart_in=self._restart_delay)

            self._stats.set_watcher_state(WatcherState.RELAUNCH_PENDING)
            await asyncio.sleep(self._restart_delay)
            self._source.discard()
            self._stats.record_scanner_restart()
