"""Command line interface for cspin."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import shutil
import sys
import time
from pathlib import Path
from typing import Sequence

from pydantic import ValidationError

from . import __version__
from .claude import (
    ClaudeNotFoundError,
    ClaudeRunner,
    SettingsFileError,
    discover_latest_session,
    register_hooks,
    unregister_hooks,
)
from .config import CspinSettings, get_settings
from .hooks import run_hook
from .lineage import AncestryLookup, PsutilAncestry
from .storage import (
    AliasRecord,
    AliasStore,
    InvalidAliasNameError,
    StoreError,
    validate_alias_name,
)
from .storage.files import is_archive_name

COMMANDS = {"new", "resume", "list", "hook", "statusline", "install", "uninstall", "prune"}

USAGE_EXAMPLES = """\
examples:
  cspin new my-session             start Claude Code and pin it as 'my-session'
  cspin new my-session -- --model opus
  cspin resume my-session          resume the session pinned as 'my-session'
  cspin my-session                 same as 'cspin resume my-session'
  cspin list                       show all pins (also: bare 'cspin')
"""

logger = logging.getLogger(__name__)


def configure_logging(level: str, log_file: Path | None = None) -> None:
    """Configure root logging; stdout stays reserved for command output."""

    logging.basicConfig(
        level=getattr(logging, level, logging.WARNING),
        format="[%(asctime)s] [%(levelname)s] %(name)s: %(message)s",
        filename=str(log_file) if log_file else None,
    )


def load_store(settings: CspinSettings) -> AliasStore:
    return AliasStore(settings.cspin_dir)


def load_runner(settings: CspinSettings) -> ClaudeRunner:
    return ClaudeRunner(Path(settings.claude_path) if settings.claude_path else None)


def load_lookup() -> AncestryLookup:
    return PsutilAncestry()


def _fail(message: str) -> int:
    print(f"cspin: {message}", file=sys.stderr)
    return 1


def _extra_args(values: Sequence[str] | None) -> list[str]:
    extra = list(values or [])
    if extra and extra[0] == "--":
        extra = extra[1:]
    return extra


def _register_after_exit(
    store: AliasStore,
    settings: CspinSettings,
    name: str,
    cwd: str,
    launched_at: float,
) -> None:
    """Pin the session when it ended before any hook event could do it."""

    if store.alias_exists(name):
        return
    session_id = discover_latest_session(settings.claude_projects_dir, cwd, since=launched_at)
    if session_id is None:
        print(f"cspin: no session was recorded for '{name}'", file=sys.stderr)
        return
    if store.has_tracking(session_id):
        return
    store.write_alias(name, AliasRecord(identifier=session_id, directory=cwd))
    store.write_tracking(session_id, name)
    logger.info("Registered alias after exit", extra={"alias": name, "session_id": session_id})


def cmd_new(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = load_store(settings)
    try:
        name = validate_alias_name(args.name)
    except InvalidAliasNameError as exc:
        return _fail(str(exc))
    if store.alias_exists(name):
        return _fail(f"Session '{name}' already exists. Use 'cspin resume {name}'.")

    try:
        runner = load_runner(settings)
    except ClaudeNotFoundError as exc:
        return _fail(str(exc))

    store.ensure_layout()
    cwd = os.getcwd()
    launcher_pid = os.getpid()
    launched_at = time.time()
    store.write_pending(launcher_pid, name, cwd)
    try:
        result = asyncio.run(runner.start(flags=_extra_args(args.claude_args), cwd=cwd))
    except OSError as exc:
        return _fail(f"failed to launch {runner.executable}: {exc}")
    finally:
        store.delete_pending(launcher_pid)
    _register_after_exit(store, settings, name, cwd, launched_at)
    return result.returncode


def cmd_resume(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = load_store(settings)
    name = args.name
    try:
        validate_alias_name(name, allow_archive=True)
    except InvalidAliasNameError as exc:
        return _fail(str(exc))

    record = store.read_alias(name)
    if record is None or not record.identifier:
        return _fail(f"No session named '{name}'. Run 'cspin list' to see pins.")

    try:
        runner = load_runner(settings)
    except ClaudeNotFoundError as exc:
        return _fail(str(exc))

    # Archived sessions are resumable but never tracked: they must not move.
    if not is_archive_name(name):
        store.ensure_layout()
        for identifier, alias in store.list_tracking().items():
            if alias == name and identifier != record.identifier:
                store.delete_tracking(identifier)
        store.write_tracking(record.identifier, name)

    cwd = record.directory if record.directory and os.path.isdir(record.directory) else os.getcwd()
    try:
        result = asyncio.run(
            runner.resume(record.identifier, flags=_extra_args(args.claude_args), cwd=cwd)
        )
    except OSError as exc:
        return _fail(f"failed to launch {runner.executable}: {exc}")
    return result.returncode


def cmd_list(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = load_store(settings)
    rows = [
        (name, record.identifier, record.directory, store.archive_count(name))
        for name, record in store.iter_aliases()
    ]
    if not rows:
        print("No pinned sessions. Use 'cspin new <name>' to pin one.")
        return 0

    name_width = max(len("NAME"), *(len(row[0]) for row in rows))
    id_width = max(len("SESSION"), *(len(row[1]) for row in rows))
    print(f"{'NAME':<{name_width}}  {'SESSION':<{id_width}}  DIRECTORY")
    for name, identifier, directory, archived in rows:
        suffix = f"  ({archived} archived)" if archived else ""
        print(f"{name:<{name_width}}  {identifier:<{id_width}}  {directory}{suffix}")
    return 0


def cmd_hook(args: argparse.Namespace) -> int:
    try:
        raw = sys.stdin.read()
    except (OSError, UnicodeDecodeError):
        return 0
    run_hook(raw, caller_pid=os.getpid())
    return 0


def cmd_statusline(args: argparse.Namespace) -> int:
    try:
        payload = json.loads(sys.stdin.read() or "{}")
        session_id = payload.get("session_id", "") if isinstance(payload, dict) else ""
        if not isinstance(session_id, str) or not session_id or "/" in session_id:
            return 0
        store = load_store(get_settings())
        if session_id.startswith(".") or not store.has_tracking(session_id):
            return 0
        alias = store.read_tracking(session_id)
    except (OSError, ValueError, ValidationError, StoreError) as exc:
        logger.debug("Statusline lookup failed", extra={"error": str(exc)})
        return 0
    if alias:
        sys.stdout.write(f"\N{PUSHPIN} {alias}")
    return 0


def cmd_install(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = load_store(settings)
    store.ensure_layout()
    print(f"  Created:   {store.root}/")
    try:
        added = register_hooks(settings.claude_settings_path, statusline=args.statusline)
    except SettingsFileError as exc:
        return _fail(str(exc))
    if added:
        print(f"  Added cspin hook to: {', '.join(added)}")
    print(f"  Registered hooks in: {settings.claude_settings_path}")
    if shutil.which("cspin") is None:
        print("")
        print("  NOTE: 'cspin' is not on your PATH; Claude Code will not find the hook.")
    return 0


def cmd_uninstall(args: argparse.Namespace) -> int:
    settings = get_settings()
    try:
        changed = unregister_hooks(settings.claude_settings_path)
    except SettingsFileError as exc:
        return _fail(str(exc))
    if changed:
        print(f"  Removed hook entries from: {settings.claude_settings_path}")
    else:
        print(f"  No hook entries found in: {settings.claude_settings_path}")
    print(f"Your session data in {settings.cspin_dir}/ is preserved.")
    return 0


def cmd_prune(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = load_store(settings)
    lookup = load_lookup()

    removed_liveness = 0
    for pid in store.list_liveness():
        if not lookup.is_running(pid):
            store.delete_liveness(pid)
            removed_liveness += 1

    removed_pending = 0
    for marker in store.list_pending():
        if marker.age_seconds > settings.pending_max_age:
            store.delete_pending(marker.pid)
            removed_pending += 1

    print(f"Removed {removed_liveness} liveness record(s) and {removed_pending} stale marker(s).")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cspin",
        description="Pin stable names on Claude Code sessions.",
        epilog=USAGE_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"cspin {__version__}")
    sub = parser.add_subparsers(dest="cmd")

    p_new = sub.add_parser("new", help="Start a new session pinned to NAME")
    p_new.add_argument("name")
    p_new.add_argument("claude_args", nargs=argparse.REMAINDER, help="Arguments after -- go to claude")
    p_new.set_defaults(func=cmd_new)

    p_resume = sub.add_parser("resume", help="Resume the session pinned to NAME")
    p_resume.add_argument("name")
    p_resume.add_argument("claude_args", nargs=argparse.REMAINDER, help="Arguments after -- go to claude")
    p_resume.set_defaults(func=cmd_resume)

    p_list = sub.add_parser("list", help="Show all pinned sessions")
    p_list.set_defaults(func=cmd_list)

    p_hook = sub.add_parser("hook", help="Handle a Claude Code lifecycle event (reads stdin)")
    p_hook.set_defaults(func=cmd_hook)

    p_status = sub.add_parser("statusline", help="Print the alias of the current session")
    p_status.set_defaults(func=cmd_statusline)

    p_install = sub.add_parser("install", help="Create the store and register hooks")
    p_install.add_argument(
        "--statusline",
        action="store_true",
        help="Also show the pinned name in the Claude Code status line",
    )
    p_install.set_defaults(func=cmd_install)

    p_uninstall = sub.add_parser("uninstall", help="Remove hook registrations")
    p_uninstall.set_defaults(func=cmd_uninstall)

    p_prune = sub.add_parser("prune", help="Remove records of exited sessions")
    p_prune.set_defaults(func=cmd_prune)

    return parser


def _normalize_argv(argv: Sequence[str]) -> list[str]:
    argv = list(argv)
    if not argv:
        return ["list"]
    if argv[0] not in COMMANDS and not argv[0].startswith("-"):
        return ["resume", *argv]
    return argv


def main(argv: list[str] | None = None) -> None:
    argv = _normalize_argv(sys.argv[1:] if argv is None else argv)
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return

    try:
        settings = get_settings()
    except ValidationError as exc:
        if args.cmd in {"hook", "statusline"}:
            return
        raise SystemExit(_fail(f"invalid configuration: {exc}"))

    try:
        configure_logging(settings.log_level, settings.log_file)
    except OSError as exc:
        if args.cmd not in {"hook", "statusline"}:
            raise SystemExit(_fail(f"cannot open log file {settings.log_file}: {exc}"))
        configure_logging(settings.log_level)
    exit_code = args.func(args)
    if exit_code:
        raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
