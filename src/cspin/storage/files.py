"""Flat-file persistence layer.

One file per key, grouped into four namespaces under the store root::

    <root>/<alias>                   identifier, tracked directory
    <root>/<alias>~<N>               archived identifier, directory
    <root>/.tracking/<identifier>    alias name
    <root>/.tracking/.pid-<pid>      alias name, last-seen identifier
    <root>/.tracking/.pending-<pid>  alias name, directory, created (epoch)

Every write lands in a temporary sibling first and is renamed into place, so
a reader sees either the old or the new record, never half of one.
"""

from __future__ import annotations

import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterator

from .models import AliasRecord, LivenessRecord, PendingMarker

ARCHIVE_SEPARATOR = "~"
TRACKING_DIRNAME = ".tracking"
LIVENESS_PREFIX = ".pid-"
PENDING_PREFIX = ".pending-"


class StoreError(RuntimeError):
    """Raised when the store cannot satisfy a request."""


class InvalidAliasNameError(StoreError):
    """Raised when an alias name cannot be used as a store key."""


def validate_alias_name(name: str, *, allow_archive: bool = False) -> str:
    """Return ``name`` if it is usable as an alias key, else raise."""

    if not name or not name.strip():
        raise InvalidAliasNameError("Alias name must not be empty")
    if name != name.strip() or any(ch.isspace() or not ch.isprintable() for ch in name):
        raise InvalidAliasNameError(f"Alias name '{name}' must not contain whitespace")
    if "/" in name or (os.sep != "/" and os.sep in name) or name in {".", ".."}:
        raise InvalidAliasNameError(f"Alias name '{name}' must not contain a path separator")
    if name.startswith("."):
        raise InvalidAliasNameError(f"Alias name '{name}' must not start with '.'")
    if ARCHIVE_SEPARATOR in name:
        base, _, slot = name.partition(ARCHIVE_SEPARATOR)
        if not (allow_archive and base and slot.isdigit() and ARCHIVE_SEPARATOR not in slot):
            raise InvalidAliasNameError(
                f"Alias name '{name}' must not contain '{ARCHIVE_SEPARATOR}'"
            )
    return name


def archive_name(alias: str, slot: int) -> str:
    return f"{alias}{ARCHIVE_SEPARATOR}{slot}"


def is_archive_name(name: str) -> bool:
    return ARCHIVE_SEPARATOR in name


def _safe_key(key: str) -> str:
    if not key or "/" in key or key in {".", ".."} or key.startswith("."):
        raise StoreError(f"Unusable store key: {key!r}")
    return key


class AliasStore:
    """Read and write alias, tracking, liveness and pending-marker records.

    The store holds no policy: it never decides whether a write is allowed.
    That belongs to the transition engine and the CLI.
    """

    def __init__(
        self,
        root: Path,
        *,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._root = Path(root)
        self._tracking = self._root / TRACKING_DIRNAME
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    @property
    def root(self) -> Path:
        return self._root

    @property
    def tracking_dir(self) -> Path:
        return self._tracking

    def is_initialized(self) -> bool:
        return self._tracking.is_dir()

    def ensure_layout(self) -> None:
        self._tracking.mkdir(parents=True, exist_ok=True)

    # -- low level -----------------------------------------------------

    @staticmethod
    def _read_lines(path: Path) -> list[str] | None:
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return text.splitlines()

    @staticmethod
    def _write_lines(path: Path, *lines: str) -> None:
        for line in lines:
            if "\n" in line or "\r" in line:
                raise StoreError(f"Record field for {path.name} contains a newline")
        payload = "".join(f"{line}\n" for line in lines)
        fd, tmp_name = tempfile.mkstemp(prefix=".tmp-", dir=str(path.parent))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(payload)
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise

    @staticmethod
    def _delete(path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        return True

    @staticmethod
    def _field(lines: list[str], index: int) -> str:
        return lines[index].strip() if len(lines) > index else ""

    # -- aliases -------------------------------------------------------

    def alias_path(self, name: str) -> Path:
        return self._root / _safe_key(name)

    def alias_exists(self, name: str) -> bool:
        return self.alias_path(name).is_file()

    def read_alias(self, name: str) -> AliasRecord | None:
        lines = self._read_lines(self.alias_path(name))
        if lines is None:
            return None
        return AliasRecord(identifier=self._field(lines, 0), directory=self._field(lines, 1))

    def write_alias(self, name: str, record: AliasRecord) -> None:
        self._root.mkdir(parents=True, exist_ok=True)
        self._write_lines(self.alias_path(name), record.identifier, record.directory)

    def iter_aliases(self, *, include_archived: bool = False) -> Iterator[tuple[str, AliasRecord]]:
        """Yield ``(name, record)`` pairs in name order, skipping hidden files."""

        if not self._root.is_dir():
            return
        for path in sorted(self._root.iterdir(), key=lambda item: item.name):
            name = path.name
            if name.startswith(".") or not path.is_file():
                continue
            if is_archive_name(name) and not include_archived:
                continue
            record = self.read_alias(name)
            if record is not None:
                yield name, record

    def next_archive_slot(self, name: str) -> int:
        slot = 1
        while self.alias_exists(archive_name(name, slot)):
            slot += 1
        return slot

    def archive_count(self, name: str) -> int:
        prefix = f"{name}{ARCHIVE_SEPARATOR}"
        if not self._root.is_dir():
            return 0
        return sum(
            1
            for path in self._root.iterdir()
            if path.name.startswith(prefix) and path.name[len(prefix):].isdigit()
        )

    # -- tracking index ------------------------------------------------

    def _tracking_path(self, identifier: str) -> Path:
        return self._tracking / _safe_key(identifier)

    def read_tracking(self, identifier: str) -> str | None:
        lines = self._read_lines(self._tracking_path(identifier))
        if lines is None:
            return None
        return self._field(lines, 0)

    def has_tracking(self, identifier: str) -> bool:
        return self._tracking_path(identifier).is_file()

    def write_tracking(self, identifier: str, alias: str) -> None:
        self._write_lines(self._tracking_path(identifier), alias)

    def delete_tracking(self, identifier: str) -> bool:
        return self._delete(self._tracking_path(identifier))

    def list_tracking(self) -> dict[str, str]:
        entries: dict[str, str] = {}
        if not self._tracking.is_dir():
            return entries
        for path in sorted(self._tracking.iterdir(), key=lambda item: item.name):
            if path.name.startswith(".") or not path.is_file():
                continue
            alias = self.read_tracking(path.name)
            if alias is not None:
                entries[path.name] = alias
        return entries

    # -- liveness ------------------------------------------------------

    def _liveness_path(self, pid: int) -> Path:
        return self._tracking / f"{LIVENESS_PREFIX}{int(pid)}"

    def read_liveness(self, pid: int) -> LivenessRecord | None:
        lines = self._read_lines(self._liveness_path(pid))
        if lines is None:
            return None
        return LivenessRecord(alias=self._field(lines, 0), identifier=self._field(lines, 1))

    def write_liveness(self, pid: int, alias: str, identifier: str) -> None:
        self._write_lines(self._liveness_path(pid), alias, identifier)

    def delete_liveness(self, pid: int) -> bool:
        return self._delete(self._liveness_path(pid))

    def list_liveness(self) -> dict[int, LivenessRecord]:
        records: dict[int, LivenessRecord] = {}
        for pid in self._scan_pids(LIVENESS_PREFIX):
            record = self.read_liveness(pid)
            if record is not None:
                records[pid] = record
        return records

    # -- pending markers -----------------------------------------------

    def _pending_path(self, pid: int) -> Path:
        return self._tracking / f"{PENDING_PREFIX}{int(pid)}"

    def has_pending(self, pid: int) -> bool:
        return self._pending_path(pid).is_file()

    def write_pending(self, pid: int, alias: str, directory: str) -> None:
        created = self._clock().timestamp()
        self._write_lines(self._pending_path(pid), alias, directory, f"{created:.3f}")

    def read_pending(self, pid: int) -> PendingMarker | None:
        path = self._pending_path(pid)
        lines = self._read_lines(path)
        if lines is None:
            return None
        created_at = self._pending_created_at(path, self._field(lines, 2))
        age = (self._clock() - created_at).total_seconds()
        return PendingMarker(
            pid=int(pid),
            alias=self._field(lines, 0),
            directory=self._field(lines, 1),
            created_at=created_at,
            age_seconds=age,
        )

    def delete_pending(self, pid: int) -> bool:
        return self._delete(self._pending_path(pid))

    def list_pending(self) -> list[PendingMarker]:
        markers: list[PendingMarker] = []
        for pid in self._scan_pids(PENDING_PREFIX):
            marker = self.read_pending(pid)
            if marker is not None:
                markers.append(marker)
        return markers

    @staticmethod
    def _pending_created_at(path: Path, stamp: str) -> datetime:
        # Markers written by older launchers have no stamp line; use the mtime.
        try:
            return datetime.fromtimestamp(float(stamp), tz=timezone.utc)
        except (ValueError, OverflowError, OSError):
            return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    def _scan_pids(self, prefix: str) -> list[int]:
        if not self._tracking.is_dir():
            return []
        pids: list[int] = []
        for path in self._tracking.iterdir():
            if not path.name.startswith(prefix):
                continue
            suffix = path.name[len(prefix):]
            if suffix.isdigit():
                pids.append(int(suffix))
        return sorted(pids)


__all__ = [
    "ARCHIVE_SEPARATOR",
    "AliasStore",
    "InvalidAliasNameError",
    "StoreError",
    "archive_name",
    "is_archive_name",
    "validate_alias_name",
]
