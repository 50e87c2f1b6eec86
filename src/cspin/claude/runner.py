"""Async launcher for the Claude Code CLI."""

from __future__ import annotations

import asyncio
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Sequence

from .utils import sanitize_environment


class ClaudeRunnerError(RuntimeError):
    """Base class for Claude runner errors."""


class ClaudeNotFoundError(ClaudeRunnerError):
    """Raised when the Claude Code executable cannot be located."""


@dataclass(slots=True)
class LaunchResult:
    """Holds the outcome of an interactive Claude Code session."""

    args: tuple[str, ...]
    returncode: int
    cwd: str | None = None

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class ClaudeRunner:
    """Run Claude Code in the foreground, attached to the current terminal."""

    def __init__(self, executable: Path | None = None) -> None:
        self._executable_path = self._resolve_executable(executable)

    @staticmethod
    def _resolve_executable(explicit: Path | None) -> Path:
        if explicit is not None:
            candidate = Path(explicit)
            if candidate.exists() and candidate.is_file():
                return candidate
            raise ClaudeNotFoundError(f"Claude executable not found at {candidate}")

        binary = shutil.which("claude")
        if binary is None:
            raise ClaudeNotFoundError("Claude CLI executable not found on PATH")
        return Path(binary)

    @property
    def executable(self) -> Path:
        return self._executable_path

    async def start(
        self, *, flags: Sequence[str] | None = None, cwd: str | None = None
    ) -> LaunchResult:
        return await self._invoke(*(flags or []), cwd=cwd)

    async def resume(
        self,
        session_id: str,
        *,
        flags: Sequence[str] | None = None,
        cwd: str | None = None,
    ) -> LaunchResult:
        return await self._invoke("--resume", session_id, *(flags or []), cwd=cwd)

    async def _invoke(self, *args: str, cwd: str | None = None) -> LaunchResult:
        cmd = [str(self._executable_path), *args]
        process = await asyncio.create_subprocess_exec(
            *cmd,
            cwd=cwd,
            env=sanitize_environment(),
        )
        returncode = await process.wait()
        return LaunchResult(args=tuple(cmd), returncode=returncode, cwd=cwd)


class FakeClaudeRunner(ClaudeRunner):
    """Test double that records launches instead of starting Claude Code.

    ``on_launch`` runs while the fake session is "open", which lets tests
    simulate hook events firing during the session.
    """

    def __init__(  # type: ignore[override]
        self,
        returncodes: Iterable[int] | None = None,
        *,
        on_launch: Callable[[tuple[str, ...], str | None], None] | None = None,
    ) -> None:
        self._returncodes = list(returncodes or [])
        self._invocations: list[tuple[str, ...]] = []
        self._cwds: list[str | None] = []
        self._on_launch = on_launch
        self._executable_path = Path("/tmp/fake-claude")

    async def _invoke(self, *args: str, cwd: str | None = None) -> LaunchResult:  # type: ignore[override]
        self._invocations.append(tuple(args))
        self._cwds.append(cwd)
        if self._on_launch is not None:
            self._on_launch(tuple(args), cwd)
        returncode = self._returncodes.pop(0) if self._returncodes else 0
        return LaunchResult(args=tuple(args), returncode=returncode, cwd=cwd)

    @property
    def invocations(self) -> list[tuple[str, ...]]:
        return self._invocations

    @property
    def cwds(self) -> list[str | None]:
        return self._cwds
