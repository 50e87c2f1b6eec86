"""Lifecycle hook handling for cspin."""

from .dispatch import build_engine, run_hook
from .engine import DEFAULT_PENDING_MAX_AGE, TransitionEngine
from .models import EventKind, HOOK_EVENT_KINDS, HookEvent, Migration, TransitionOutcome

__all__ = [
    "DEFAULT_PENDING_MAX_AGE",
    "EventKind",
    "HOOK_EVENT_KINDS",
    "HookEvent",
    "Migration",
    "TransitionEngine",
    "TransitionOutcome",
    "build_engine",
    "run_hook",
]
