"""Record types kept in the alias store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class AliasRecord:
    identifier: str
    directory: str


@dataclass(slots=True)
class LivenessRecord:
    alias: str
    identifier: str


@dataclass(slots=True)
class PendingMarker:
    pid: int
    alias: str
    directory: str
    created_at: datetime
    age_seconds: float


__all__ = ["AliasRecord", "LivenessRecord", "PendingMarker"]
