"""Claude Code launcher and settings integration."""

from .runner import (
    ClaudeNotFoundError,
    ClaudeRunner,
    ClaudeRunnerError,
    FakeClaudeRunner,
    LaunchResult,
)
from .settings_file import (
    DEFAULT_HOOK_EVENTS,
    HOOK_COMMAND,
    STATUSLINE_COMMAND,
    SettingsFileError,
    register_hooks,
    unregister_hooks,
)
from .utils import discover_latest_session, project_slug, sanitize_environment

__all__ = [
    "ClaudeNotFoundError",
    "ClaudeRunner",
    "ClaudeRunnerError",
    "DEFAULT_HOOK_EVENTS",
    "FakeClaudeRunner",
    "HOOK_COMMAND",
    "LaunchResult",
    "STATUSLINE_COMMAND",
    "SettingsFileError",
    "discover_latest_session",
    "project_slug",
    "register_hooks",
    "sanitize_environment",
    "unregister_hooks",
]
