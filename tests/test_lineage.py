from __future__ import annotations

import os

from cspin.lineage import FakeAncestry, LineageResolver, PsutilAncestry

# hook(900) -> sh(800) -> node(700) -> claude(600) -> cspin launcher(500) -> bash(400) -> init
TREE = {
    900: (800, "cspin"),
    800: (700, "sh"),
    700: (600, "node"),
    600: (500, "claude"),
    500: (400, "cspin"),
    400: (1, "bash"),
}


def test_resolves_nearest_host_process() -> None:
    resolver = LineageResolver(FakeAncestry(TREE))
    assert resolver.resolve_stable_host(900) == 700


def test_host_names_are_configurable() -> None:
    resolver = LineageResolver(FakeAncestry(TREE), host_names={"claude"})
    assert resolver.resolve_stable_host(900) == 600


def test_falls_back_to_last_resolved_ancestor_at_init() -> None:
    lookup = FakeAncestry({900: (800, "sh"), 800: (400, "bash"), 400: (1, "login")})
    resolver = LineageResolver(lookup)
    assert resolver.resolve_stable_host(900) == 400


def test_falls_back_to_start_when_nothing_resolves() -> None:
    resolver = LineageResolver(FakeAncestry({}))
    assert resolver.resolve_stable_host(900) == 900


def test_vanished_ancestor_ends_walk() -> None:
    lookup = FakeAncestry({900: (800, "sh"), 800: (700, "sh")})
    resolver = LineageResolver(lookup)
    assert resolver.resolve_stable_host(900) == 800


def test_self_parent_ends_walk() -> None:
    resolver = LineageResolver(FakeAncestry({900: (900, "weird")}))
    assert resolver.resolve_stable_host(900) == 900
    assert list(resolver.ancestors(900)) == []


def test_walk_is_bounded() -> None:
    chain = {pid: (pid + 1, "sh") for pid in range(100, 120)}
    lookup = FakeAncestry(chain)
    resolver = LineageResolver(lookup, max_hops=5)

    assert list(resolver.ancestors(100)) == [101, 102, 103, 104, 105]
    assert resolver.resolve_stable_host(100) == 105
    assert len(lookup.lookups) <= 10


def test_find_marked_ancestor() -> None:
    resolver = LineageResolver(FakeAncestry(TREE))
    marked = {500, 400}

    assert resolver.find_marked_ancestor(700, marked.__contains__) == 500
    assert resolver.find_marked_ancestor(700, lambda pid: False) is None
    assert resolver.find_marked_ancestor(700, marked.__contains__, max_hops=1) is None


def test_marker_on_start_pid_is_not_matched() -> None:
    resolver = LineageResolver(FakeAncestry(TREE))
    assert resolver.find_marked_ancestor(500, {500}.__contains__) is None


def test_psutil_ancestry_reads_current_process() -> None:
    lookup = PsutilAncestry()
    assert lookup.parent_of(os.getpid()) == os.getppid()
    assert lookup.command_name_of(os.getpid())
    assert lookup.is_running(os.getpid())


def test_psutil_ancestry_tolerates_missing_process() -> None:
    lookup = PsutilAncestry()
    missing = 2**22 + 12345
    assert lookup.parent_of(missing) is None
    assert lookup.command_name_of(missing) is None
    assert lookup.is_running(missing) is False
