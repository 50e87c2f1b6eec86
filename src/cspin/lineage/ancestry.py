"""Process metadata lookups used to walk a process's ancestry."""

from __future__ import annotations

from typing import Mapping, Protocol

import psutil


class AncestryLookup(Protocol):
    """Minimal view of the OS process table needed by the lineage resolver."""

    def parent_of(self, pid: int) -> int | None:
        ...

    def command_name_of(self, pid: int) -> str | None:
        ...

    def is_running(self, pid: int) -> bool:
        ...


class PsutilAncestry:
    """Read live process metadata through psutil.

    Any process that vanishes or cannot be inspected is reported as unknown
    (``None``) so callers can end their walk instead of failing.
    """

    def parent_of(self, pid: int) -> int | None:
        try:
            return psutil.Process(pid).ppid()
        except (psutil.Error, ValueError):
            return None

    def command_name_of(self, pid: int) -> str | None:
        try:
            return psutil.Process(pid).name()
        except (psutil.Error, ValueError):
            return None

    def is_running(self, pid: int) -> bool:
        try:
            return psutil.pid_exists(pid)
        except (psutil.Error, ValueError):
            return False


class FakeAncestry:
    """Test double backed by an in-memory ``pid -> (ppid, name)`` table."""

    def __init__(self, table: Mapping[int, tuple[int, str]] | None = None) -> None:
        self._table: dict[int, tuple[int, str]] = dict(table or {})
        self._lookups: list[int] = []

    def add(self, pid: int, ppid: int, name: str) -> None:
        self._table[pid] = (ppid, name)

    def parent_of(self, pid: int) -> int | None:
        self._lookups.append(pid)
        entry = self._table.get(pid)
        return entry[0] if entry else None

    def command_name_of(self, pid: int) -> str | None:
        entry = self._table.get(pid)
        return entry[1] if entry else None

    def is_running(self, pid: int) -> bool:
        return pid in self._table

    @property
    def lookups(self) -> list[int]:
        return self._lookups


__all__ = ["AncestryLookup", "FakeAncestry", "PsutilAncestry"]
