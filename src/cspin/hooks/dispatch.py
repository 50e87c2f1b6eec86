"""Hook entry point: payload in, store updated, never an error out."""

from __future__ import annotations

import logging

from pydantic import ValidationError

from ..config import CspinSettings, get_settings
from ..lineage import AncestryLookup, LineageResolver, PsutilAncestry
from ..storage import AliasStore
from .engine import TransitionEngine
from .models import HookEvent, TransitionOutcome

logger = logging.getLogger(__name__)


def build_engine(
    settings: CspinSettings,
    *,
    store: AliasStore | None = None,
    lookup: AncestryLookup | None = None,
) -> TransitionEngine:
    """Wire a transition engine from settings."""

    resolver = LineageResolver(
        lookup or PsutilAncestry(),
        host_names=settings.host_names,
        max_hops=settings.max_hops,
    )
    return TransitionEngine(
        store or AliasStore(settings.cspin_dir),
        resolver,
        pending_max_age=settings.pending_max_age,
    )


def run_hook(
    raw_payload: str,
    *,
    caller_pid: int,
    settings: CspinSettings | None = None,
    store: AliasStore | None = None,
    lookup: AncestryLookup | None = None,
) -> TransitionOutcome | None:
    """Handle one lifecycle event.

    Returns ``None`` when nothing was attempted: the store is not installed,
    the payload is unusable, or an unexpected error occurred. The host
    runtime must never see the hook fail, so no exception escapes.
    """

    try:
        settings = settings or get_settings()
        store = store or AliasStore(settings.cspin_dir)
        if not store.is_initialized():
            return None

        try:
            event = HookEvent.model_validate_json(raw_payload or "{}")
        except ValidationError as exc:
            logger.debug("Ignoring unusable hook payload", extra={"error": str(exc)})
            return None

        engine = build_engine(settings, store=store, lookup=lookup)
        return engine.handle(event, caller_pid)
    except Exception:  # the host runtime must not see a failing hook
        logger.exception("cspin hook failed")
        return None


__all__ = ["build_engine", "run_hook"]
