"""Storage abstractions for cspin."""

from .files import (
    ARCHIVE_SEPARATOR,
    AliasStore,
    InvalidAliasNameError,
    StoreError,
    validate_alias_name,
)
from .models import AliasRecord, LivenessRecord, PendingMarker

__all__ = [
    "ARCHIVE_SEPARATOR",
    "AliasRecord",
    "AliasStore",
    "InvalidAliasNameError",
    "LivenessRecord",
    "PendingMarker",
    "StoreError",
    "validate_alias_name",
]
