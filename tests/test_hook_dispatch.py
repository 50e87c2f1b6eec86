from __future__ import annotations

import json
from pathlib import Path

import pytest

from cspin.config import CspinSettings
from cspin.hooks import HookEvent, TransitionEngine, run_hook
from cspin.lineage import FakeAncestry
from cspin.storage import AliasRecord, AliasStore

# hook(900, sh) -> node(800) -> claude(700) -> launcher(500)
TREE = {900: (800, "sh"), 800: (700, "node"), 700: (500, "claude"), 500: (1, "cspin")}


def payload(**fields: object) -> str:
    return json.dumps(fields)


@pytest.fixture
def settings(tmp_path: Path) -> CspinSettings:
    return CspinSettings(cspin_dir=tmp_path / "cspin")


@pytest.fixture
def store(settings: CspinSettings) -> AliasStore:
    store = AliasStore(settings.cspin_dir)
    store.ensure_layout()
    return store


def test_run_hook_migrates_tracked_session(settings: CspinSettings, store: AliasStore) -> None:
    store.write_alias("debug-api", AliasRecord(identifier="old", directory="/proj"))
    store.write_tracking("old", "debug-api")
    store.write_liveness(800, "debug-api", "old")

    outcome = run_hook(
        payload(session_id="new", cwd="/proj", hook_event_name="SessionStart"),
        caller_pid=900,
        settings=settings,
        lookup=FakeAncestry(TREE),
    )

    assert outcome is not None
    assert outcome.host_pid == 800
    assert outcome.migrated
    assert store.read_alias("debug-api").identifier == "new"


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "not json",
        "[]",
        payload(cwd="/proj", hook_event_name="Stop"),
        payload(session_id="", cwd="/proj", hook_event_name="Stop"),
        payload(session_id="abc", cwd="", hook_event_name="Stop"),
        payload(session_id="../etc", cwd="/proj", hook_event_name="Stop"),
    ],
)
def test_unusable_payload_does_nothing(raw: str, settings: CspinSettings, store: AliasStore) -> None:
    store.write_pending(500, "new-session", "/proj")

    outcome = run_hook(raw, caller_pid=900, settings=settings, lookup=FakeAncestry(TREE))

    assert outcome is None
    assert store.has_pending(500)
    assert not store.alias_exists("new-session")
    assert store.list_liveness() == {}


def test_uninstalled_store_is_left_alone(settings: CspinSettings) -> None:
    outcome = run_hook(
        payload(session_id="abc", cwd="/proj", hook_event_name="Stop"),
        caller_pid=900,
        settings=settings,
        lookup=FakeAncestry(TREE),
    )

    assert outcome is None
    assert not settings.cspin_dir.exists()


def test_unexpected_error_is_swallowed(
    monkeypatch: pytest.MonkeyPatch, settings: CspinSettings, store: AliasStore
) -> None:
    def explode(self, event, caller_pid):
        raise RuntimeError("boom")

    monkeypatch.setattr(TransitionEngine, "handle", explode)

    outcome = run_hook(
        payload(session_id="abc", cwd="/proj", hook_event_name="Stop"),
        caller_pid=900,
        settings=settings,
        lookup=FakeAncestry(TREE),
    )

    assert outcome is None


def test_hook_event_ignores_extra_fields() -> None:
    event = HookEvent.model_validate_json(
        payload(
            session_id=" abc ",
            cwd="/proj",
            hook_event_name="PreCompact",
            transcript_path="/tmp/t.jsonl",
            trigger="auto",
        )
    )

    assert event.session_id == "abc"
    assert event.kind.value == "pre_snapshot"


def test_missing_event_name_defaults_to_other() -> None:
    event = HookEvent.model_validate_json(payload(session_id="abc", cwd="/proj"))
    assert event.hook_event_name == ""
    assert not event.kind.detects_transitions
