"""Utility helpers for launching Claude Code."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Mapping

_SANITIZED_VARS = {
    "PYTHONHOME",
    "PYTHONPATH",
    "VIRTUAL_ENV",
    "PIP_RESPECT_VIRTUALENV",
}


def sanitize_environment(additional: Mapping[str, str] | None = None) -> dict[str, str]:
    """Return the environment for the host runtime without cspin's own Python settings."""

    env = dict(os.environ)
    for key in _SANITIZED_VARS:
        env.pop(key, None)
    if additional:
        env.update(additional)
    return env


def project_slug(directory: str | Path) -> str:
    """Name of the transcript folder Claude Code keeps for ``directory``.

    Example: ``/home/me/my.app`` -> ``-home-me-my-app``
    """

    return re.sub(r"[^A-Za-z0-9-]", "-", str(directory).rstrip("/") or "/")


def discover_latest_session(
    projects_dir: Path,
    directory: str | Path,
    *,
    since: float,
) -> str | None:
    """Return the id of the newest transcript for ``directory`` touched at or after ``since``."""

    transcripts = Path(projects_dir) / project_slug(directory)
    if not transcripts.is_dir():
        return None

    newest: tuple[float, str] | None = None
    for path in transcripts.glob("*.jsonl"):
        try:
            mtime = path.stat().st_mtime
        except OSError:
            continue
        if mtime < since:
            continue
        if newest is None or mtime > newest[0]:
            newest = (mtime, path.stem)
    return newest[1] if newest else None
