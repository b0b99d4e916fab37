"""Snapshot source interface (port) for reading scanner output."""

from __future__ import annotations

from typing import Any, Protocol


class SnapshotSource(Protocol):
    """Port: yields the latest scanner snapshot when it has changed."""

    def changed(self) -> bool: ...

    def read(self) -> list[dict[str, Any]]: ...

    def discard(self) -> None: ...
