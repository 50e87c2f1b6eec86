"""cspin store diagnostics CLI."""

from __future__ import annotations

import argparse
import json

from cspin.config import CspinSettings, get_settings
from cspin.lineage import AncestryLookup, PsutilAncestry
from cspin.storage import AliasStore


def load_store(settings: CspinSettings) -> AliasStore:
    store = AliasStore(settings.cspin_dir)
    if not store.is_initialized():
        print(f"cspin store not initialized at {settings.cspin_dir}")
        raise SystemExit(1)
    return store


def load_lookup() -> AncestryLookup:
    return PsutilAncestry()


def cmd_aliases(args: argparse.Namespace) -> None:
    settings = get_settings()
    store = load_store(settings)
    records = [
        {
            "name": name,
            "session_id": record.identifier,
            "directory": record.directory,
            "archived": "~" in name,
        }
        for name, record in store.iter_aliases(include_archived=not args.live_only)
    ]
    print(json.dumps(records, indent=2))


def cmd_tracking(args: argparse.Namespace) -> None:
    settings = get_settings()
    store = load_store(settings)
    entries = store.list_tracking()
    if args.json:
        print(json.dumps(entries, indent=2))
    else:
        for session_id, alias in entries.items():
            print(f"{session_id} -> {alias}")


def cmd_liveness(args: argparse.Namespace) -> None:
    settings = get_settings()
    store = load_store(settings)
    lookup = load_lookup()
    payload = [
        {
            "pid": pid,
            "alias": record.alias,
            "session_id": record.identifier,
            "alive": lookup.is_running(pid),
        }
        for pid, record in store.list_liveness().items()
    ]
    print(json.dumps(payload, indent=2))


def cmd_pending(args: argparse.Namespace) -> None:
    settings = get_settings()
    store = load_store(settings)
    payload = [
        {
            "pid": marker.pid,
            "alias": marker.alias,
            "directory": marker.directory,
            "created_at": marker.created_at.isoformat(),
            "age_seconds": round(marker.age_seconds, 1),
            "stale": marker.age_seconds > settings.pending_max_age,
        }
        for marker in store.list_pending()
    ]
    print(json.dumps(payload, indent=2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="cspin store diagnostics")
    sub = parser.add_subparsers(dest="cmd")

    p_aliases = sub.add_parser("aliases", help="List alias records, archives included")
    p_aliases.add_argument("--live-only", action="store_true", help="Skip archived records")
    p_aliases.set_defaults(func=cmd_aliases)

    p_tracking = sub.add_parser("tracking", help="List tracked session ids")
    p_tracking.add_argument("--json", action="store_true", help="Output JSON")
    p_tracking.set_defaults(func=cmd_tracking)

    p_liveness = sub.add_parser("liveness", help="List liveness records and whether the host still runs")
    p_liveness.set_defaults(func=cmd_liveness)

    p_pending = sub.add_parser("pending", help="List pending registration markers")
    p_pending.set_defaults(func=cmd_pending)

    return parser


def main(argv: list[str] | None = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    if not hasattr(args, "func"):
        parser.print_help()
        return
    args.func(args)


if __name__ == "__main__":
    main()
