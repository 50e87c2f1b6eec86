from __future__ import annotations

import json
from pathlib import Path

import pytest

from cspin.claude import (
    HOOK_COMMAND,
    SettingsFileError,
    register_hooks,
    unregister_hooks,
)


def read(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


def test_register_creates_settings(tmp_path: Path) -> None:
    path = tmp_path / ".claude" / "settings.json"

    added = register_hooks(path)

    assert added == ["Stop", "PreCompact", "SessionStart"]
    hooks = read(path)["hooks"]
    for event in added:
        assert hooks[event] == [
            {"matcher": "", "hooks": [{"type": "command", "command": HOOK_COMMAND, "timeout": 5}]}
        ]


def test_register_is_idempotent_and_preserves_other_hooks(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps(
            {
                "model": "opus",
                "hooks": {
                    "Stop": [{"matcher": "", "hooks": [{"type": "command", "command": "notify"}]}]
                },
            }
        ),
        encoding="utf-8",
    )

    register_hooks(path)
    assert register_hooks(path) == []

    document = read(path)
    assert document["model"] == "opus"
    stop_commands = [hook["command"] for hook in document["hooks"]["Stop"][0]["hooks"]]
    assert stop_commands == ["notify", HOOK_COMMAND]


def test_register_statusline_only_when_absent(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(json.dumps({"statusLine": {"type": "command", "command": "mine"}}), encoding="utf-8")

    added = register_hooks(path, statusline=True)

    assert "statusLine" not in added
    assert read(path)["statusLine"]["command"] == "mine"


def test_unregister_removes_only_cspin_entries(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text(
        json.dumps({"hooks": {"Stop": [{"matcher": "", "hooks": [{"type": "command", "command": "notify"}]}]}}),
        encoding="utf-8",
    )
    register_hooks(path, statusline=True)

    assert unregister_hooks(path) is True

    document = read(path)
    assert document["hooks"] == {
        "Stop": [{"matcher": "", "hooks": [{"type": "command", "command": "notify"}]}]
    }
    assert "statusLine" not in document
    assert unregister_hooks(path) is False


def test_unregister_missing_file(tmp_path: Path) -> None:
    assert unregister_hooks(tmp_path / "absent.json") is False


def test_invalid_json_is_reported(tmp_path: Path) -> None:
    path = tmp_path / "settings.json"
    path.write_text("{broken", encoding="utf-8")

    with pytest.raises(SettingsFileError):
        register_hooks(path)
