"""Exceptions raised by the core and caught at its boundaries."""

from __future__ import annotations


class MalformedRecordError(ValueError):
    """A raw server record from a snapshot cannot be turned into a ServerState."""


class SnapshotError(Exception):
    """The snapshot file could not be read or decoded."""


class FilterError(ValueError):
    """A query filter value does not parse as the type its field expects."""

    def __init__(self, field: str, value: str, detail: str) -> None:
        super().__init__(f"{field}={value!r}: {detail}")
        self.field = field
        self.value = value
        self.detail = detail
