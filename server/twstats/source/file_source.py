"""File-based snapshot source.

The scanner overwrites a single JSON document of the form
``{"servers": [ ...raw server records... ]}``. A change is detected by
comparing the file's (mtime_ns, size) signature between polls.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import structlog

from twstats.core.errors import SnapshotError

log = structlog.get_logger()


class FileSnapshotSource:
    """SnapshotSource backed by the JSON file the scanner writes."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._signature: tuple[int, int] | None = None

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.exists()

    def changed(self) -> bool:
        """True when the file exists and differs from the last one seen.

        The new signature is remembered right away, so a file that fails to
        parse is not retried until the scanner writes it again.
        """
        try:
            st = self._path.stat()
        except FileNotFoundError:
            return False
        signature = (st.st_mtime_ns, st.st_size)
        if signature == self._signature:
            return False
        self._signature = signature
        return True

    def read(self) -> list[dict[str, Any]]:
        """Read and decode the snapshot. Raises SnapshotError."""
        try:
            text = self._path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise SnapshotError(f"cannot read {self._path}: {exc}") from exc

        try:
            document = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SnapshotError(f"invalid JSON in {self._path}: {exc}") from exc

        if not isinstance(document, dict):
            raise SnapshotError(f"{self._path}: expected a JSON object")
        servers = document.get("servers") or []
        if not isinstance(servers, list):
            raise SnapshotError(f"{self._path}: 'servers' is not an array")
        return servers

    def discard(self) -> None:
        """Remove a stale snapshot left behind by a dead scanner."""
        try:
            self._path.unlink()
            log.info("snapshot_discarded", path=str(self._path))
        except FileNotFoundError:
            pass
        self._signature = None
