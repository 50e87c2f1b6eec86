"""Event-driven tracking of session identifier rotations."""

from __future__ import annotations

import logging
from typing import Any, Callable, TypeVar

from ..lineage import LineageResolver
from ..storage import AliasRecord, AliasStore, StoreError, validate_alias_name
from ..storage.files import archive_name
from .models import EventKind, HookEvent, Migration, TransitionOutcome

DEFAULT_PENDING_MAX_AGE = 120.0

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransitionEngine:
    """Apply one lifecycle event to the alias store.

    Each event runs up to four steps: resolve the stable host pid, turn a
    pending marker into a new alias, refresh the liveness record, and migrate
    an alias whose identifier rotated. Steps fail independently; an error in
    one is logged and the remaining steps still run.
    """

    def __init__(
        self,
        store: AliasStore,
        resolver: LineageResolver,
        *,
        pending_max_age: float = DEFAULT_PENDING_MAX_AGE,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._pending_max_age = pending_max_age

    def handle(self, event: HookEvent, caller_pid: int) -> TransitionOutcome:
        host_pid = self._step(
            "resolve_host", event, self._resolver.resolve_stable_host, caller_pid
        )
        if host_pid is None:
            host_pid = caller_pid
        outcome = TransitionOutcome(host_pid=host_pid, kind=event.kind)

        if not self._step("check_tracking", event, self._store.has_tracking, event.session_id):
            outcome.registered_alias = self._step(
                "resolve_pending", event, self._resolve_pending, event, host_pid
            )

        outcome.liveness_refreshed = bool(
            self._step("refresh_liveness", event, self._refresh_liveness, event, host_pid)
        )

        if event.kind is EventKind.PRE_SNAPSHOT or not event.kind.detects_transitions:
            return outcome

        outcome.migration = self._step(
            "detect_transition", event, self._detect_transition, event, host_pid
        )
        return outcome

    def _step(
        self,
        step: str,
        event: HookEvent,
        func: Callable[..., T],
        *args: Any,
    ) -> T | None:
        try:
            return func(*args)
        except (OSError, ValueError, StoreError) as exc:
            logger.warning(
                "Hook step failed",
                extra={
                    "step": step,
                    "session_id": event.session_id,
                    "hook_event_name": event.hook_event_name,
                    "error": str(exc),
                },
            )
            return None

    def _resolve_pending(self, event: HookEvent, host_pid: int) -> str | None:
        marker_pid = self._resolver.find_marked_ancestor(host_pid, self._store.has_pending)
        if marker_pid is None:
            return None

        marker = self._store.read_pending(marker_pid)
        if marker is None:
            return None

        if marker.age_seconds > self._pending_max_age:
            self._store.delete_pending(marker_pid)
            logger.info(
                "Discarded stale pending marker",
                extra={"marker_pid": marker_pid, "age_seconds": marker.age_seconds},
            )
            return None

        if not marker.alias:
            return None

        try:
            validate_alias_name(marker.alias)
        except StoreError:
            self._store.delete_pending(marker_pid)
            raise

        if self._store.alias_exists(marker.alias):
            # Created through another path first; leave that record alone.
            self._store.delete_pending(marker_pid)
            return None

        self._store.write_alias(
            marker.alias,
            AliasRecord(identifier=event.session_id, directory=marker.directory or event.cwd),
        )
        self._store.write_tracking(event.session_id, marker.alias)
        self._store.delete_pending(marker_pid)
        logger.info(
            "Registered pending alias",
            extra={"alias": marker.alias, "session_id": event.session_id, "marker_pid": marker_pid},
        )
        return marker.alias

    def _refresh_liveness(self, event: HookEvent, host_pid: int) -> bool:
        alias = self._store.read_tracking(event.session_id)
        if alias is None:
            return False
        self._store.write_liveness(host_pid, alias, event.session_id)
        return True

    def _detect_transition(self, event: HookEvent, host_pid: int) -> Migration | None:
        new_identifier = event.session_id
        if self._store.has_tracking(new_identifier):
            return None

        liveness = self._store.read_liveness(host_pid)
        if liveness is None:
            return None

        alias, old_identifier = liveness.alias, liveness.identifier
        if not alias or not old_identifier or old_identifier == new_identifier:
            return None

        if not self._store.has_tracking(old_identifier):
            if self._recover_tracking(old_identifier) is None:
                logger.warning(
                    "Abandoning transition: no alias references the previous identifier",
                    extra={"alias": alias, "old_identifier": old_identifier},
                )
                return None

        record = self._store.read_alias(alias)
        if record is None or record.identifier != old_identifier:
            return None

        directory = record.directory or event.cwd
        slot = self._store.next_archive_slot(alias)
        self._store.write_alias(
            archive_name(alias, slot), AliasRecord(identifier=old_identifier, directory=directory)
        )
        self._store.write_alias(alias, AliasRecord(identifier=new_identifier, directory=directory))
        self._store.delete_tracking(old_identifier)
        self._store.write_tracking(new_identifier, alias)
        self._store.write_liveness(host_pid, alias, new_identifier)

        logger.info(
            "Migrated alias to new session",
            extra={
                "alias": alias,
                "old_identifier": old_identifier,
                "new_identifier": new_identifier,
                "archive_slot": slot,
                "hook_event_name": event.hook_event_name,
            },
        )
        return Migration(
            alias=alias,
            old_identifier=old_identifier,
            new_identifier=new_identifier,
            archive_slot=slot,
        )

    def _recover_tracking(self, identifier: str) -> str | None:
        for name, record in self._store.iter_aliases():
            if record.identifier == identifier:
                self._store.write_tracking(identifier, name)
                logger.info(
                    "Rebuilt missing tracking entry",
                    extra={"alias": name, "session_id": identifier},
                )
                return name
        return None


__all__ = ["DEFAULT_PENDING_MAX_AGE", "TransitionEngine"]
