"""Register and remove cspin hooks in Claude Code's settings.json."""

from __future__ import annotations

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Mapping

HOOK_COMMAND = "cspin hook"
STATUSLINE_COMMAND = "cspin statusline"
HOOK_TIMEOUT = 5

# Stop refreshes liveness and catches missed rotations, PreCompact records the
# identifier about to be replaced, SessionStart handles compact and /clear.
DEFAULT_HOOK_EVENTS: dict[str, str] = {
    "Stop": "",
    "PreCompact": "",
    "SessionStart": "",
}


class SettingsFileError(RuntimeError):
    """Raised when the settings document cannot be read or written."""


def _load(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        document = json.loads(path.read_text(encoding="utf-8") or "{}")
    except json.JSONDecodeError as exc:
        raise SettingsFileError(f"Failed to parse JSON in {path}: {exc}") from exc
    if not isinstance(document, dict):
        raise SettingsFileError(f"Expected a JSON object in {path}")
    return document


def _save(path: Path, document: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=".settings-", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(document, handle, indent=2)
            handle.write("\n")
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise


def _is_registered(groups: list[dict[str, Any]], command: str) -> bool:
    return any(
        hook.get("command", "") == command
        for group in groups
        for hook in group.get("hooks", [])
    )


def register_hooks(
    settings_path: Path,
    *,
    command: str = HOOK_COMMAND,
    events: Mapping[str, str] | None = None,
    statusline: bool = False,
) -> list[str]:
    """Add ``command`` to each lifecycle event, returning the events that changed.

    Existing registrations are left alone. A new hook joins the first group
    whose matcher matches; otherwise a new group is appended.
    """

    settings_path = Path(settings_path)
    document = _load(settings_path)
    hooks = document.setdefault("hooks", {})
    if not isinstance(hooks, dict):
        raise SettingsFileError(f"'hooks' in {settings_path} is not an object")

    added: list[str] = []
    for event, matcher in (events or DEFAULT_HOOK_EVENTS).items():
        groups = hooks.setdefault(event, [])
        if _is_registered(groups, command):
            continue

        entry = {"type": "command", "command": command, "timeout": HOOK_TIMEOUT}
        target = next((group for group in groups if group.get("matcher", "") == matcher), None)
        if target is not None:
            target.setdefault("hooks", []).append(entry)
        else:
            groups.append({"matcher": matcher, "hooks": [entry]})
        added.append(event)

    if statusline and "statusLine" not in document:
        document["statusLine"] = {"type": "command", "command": STATUSLINE_COMMAND}
        added.append("statusLine")

    if added or not settings_path.exists():
        _save(settings_path, document)
    return added


def unregister_hooks(settings_path: Path, *, command: str = HOOK_COMMAND) -> bool:
    """Remove every registration of ``command``; empty groups and events go too."""

    settings_path = Path(settings_path)
    if not settings_path.exists():
        return False

    document = _load(settings_path)
    hooks = document.get("hooks", {})
    changed = False

    if isinstance(hooks, dict):
        for event in list(hooks.keys()):
            groups = hooks[event]
            for group in groups:
                original = group.get("hooks", [])
                filtered = [hook for hook in original if hook.get("command", "") != command]
                if len(filtered) != len(original):
                    group["hooks"] = filtered
                    changed = True
            remaining = [group for group in groups if group.get("hooks", [])]
            if len(remaining) != len(groups):
                changed = True
            if remaining:
                hooks[event] = remaining
            else:
                del hooks[event]
                changed = True

    statusline = document.get("statusLine")
    if isinstance(statusline, dict) and statusline.get("command") == STATUSLINE_COMMAND:
        del document["statusLine"]
        changed = True

    if changed:
        _save(settings_path, document)
    return changed


__all__ = [
    "DEFAULT_HOOK_EVENTS",
    "HOOK_COMMAND",
    "STATUSLINE_COMMAND",
    "SettingsFileError",
    "register_hooks",
    "unregister_hooks",
]
