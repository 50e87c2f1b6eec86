"""Lifecycle event payloads delivered to the hook."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventKind(str, Enum):
    """Lifecycle points the transition engine distinguishes."""

    START = "start"
    STOP = "stop"
    PRE_SNAPSHOT = "pre_snapshot"
    OTHER = "other"

    @property
    def detects_transitions(self) -> bool:
        return self in (EventKind.START, EventKind.STOP)


HOOK_EVENT_KINDS: dict[str, EventKind] = {
    "SessionStart": EventKind.START,
    "Stop": EventKind.STOP,
    "PreCompact": EventKind.PRE_SNAPSHOT,
}


class HookEvent(BaseModel):
    """JSON payload the host runtime writes to the hook's stdin."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    session_id: str = Field(..., description="Current session identifier.")
    cwd: str = Field(..., description="Working directory of the session.")
    hook_event_name: str = Field(default="", description="Host lifecycle event name.")

    @field_validator("session_id")
    @classmethod
    def _validate_session_id(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("session_id must not be empty")
        if "/" in normalized or "\\" in normalized or normalized.startswith("."):
            raise ValueError("session_id must be usable as a file name")
        return normalized

    @field_validator("cwd")
    @classmethod
    def _validate_cwd(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("cwd must not be empty")
        return value.strip()

    @field_validator("hook_event_name", mode="before")
    @classmethod
    def _default_event_name(cls, value):
        return "" if value is None else value

    @property
    def kind(self) -> EventKind:
        return HOOK_EVENT_KINDS.get(self.hook_event_name, EventKind.OTHER)


@dataclass(slots=True)
class Migration:
    """A completed identifier rotation for one alias."""

    alias: str
    old_identifier: str
    new_identifier: str
    archive_slot: int


@dataclass(slots=True)
class TransitionOutcome:
    """What a single hook invocation changed in the store."""

    host_pid: int
    kind: EventKind
    registered_alias: str | None = None
    liveness_refreshed: bool = False
    migration: Migration | None = None

    @property
    def migrated(self) -> bool:
        return self.migration is not None


__all__ = ["EventKind", "HOOK_EVENT_KINDS", "HookEvent", "Migration", "TransitionOutcome"]
