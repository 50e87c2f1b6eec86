"""Bounded walks up the process tree."""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Iterator

from .ancestry import AncestryLookup

DEFAULT_MAX_HOPS = 5
DEFAULT_HOST_NAMES = frozenset({"node", "claude"})

logger = logging.getLogger(__name__)


class LineageResolver:
    """Correlate a short-lived hook invocation with its long-lived ancestors."""

    def __init__(
        self,
        lookup: AncestryLookup,
        *,
        host_names: Iterable[str] = DEFAULT_HOST_NAMES,
        max_hops: int = DEFAULT_MAX_HOPS,
    ) -> None:
        self._lookup = lookup
        self._host_names = frozenset(host_names)
        self._max_hops = max_hops

    def ancestors(self, start_pid: int, *, max_hops: int | None = None) -> Iterator[int]:
        """Yield ancestors of ``start_pid``, nearest first.

        The walk ends at pid 0 or 1, at a process that is its own parent, at a
        process that can no longer be queried, or after ``max_hops`` steps.
        """

        limit = self._max_hops if max_hops is None else max_hops
        current = start_pid
        for _ in range(limit):
            parent = self._lookup.parent_of(current)
            if parent is None or parent in (0, 1) or parent == current:
                return
            yield parent
            current = parent

    def resolve_stable_host(self, start_pid: int) -> int:
        """Return the pid of the long-lived host process above ``start_pid``.

        Falls back to the last ancestor reached when no host process name
        matches, or to ``start_pid`` itself when not a single hop resolved.
        """

        resolved = start_pid
        for ancestor in self.ancestors(start_pid):
            name = self._lookup.command_name_of(ancestor)
            if name is None:
                break
            resolved = ancestor
            if name in self._host_names:
                return ancestor
        logger.debug(
            "No host process matched in lineage",
            extra={"start_pid": start_pid, "resolved_pid": resolved},
        )
        return resolved

    def find_marked_ancestor(
        self,
        start_pid: int,
        has_marker: Callable[[int], bool],
        *,
        max_hops: int | None = None,
    ) -> int | None:
        """Return the nearest ancestor of ``start_pid`` for which ``has_marker`` holds."""

        for ancestor in self.ancestors(start_pid, max_hops=max_hops):
            if has_marker(ancestor):
                return ancestor
        return None


__all__ = ["DEFAULT_HOST_NAMES", "DEFAULT_MAX_HOPS", "LineageResolver"]
