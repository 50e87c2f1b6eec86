"""Process-lineage resolution for hook invocations."""

from .ancestry import AncestryLookup, FakeAncestry, PsutilAncestry
from .resolver import DEFAULT_HOST_NAMES, DEFAULT_MAX_HOPS, LineageResolver

__all__ = [
    "AncestryLookup",
    "DEFAULT_HOST_NAMES",
    "DEFAULT_MAX_HOPS",
    "FakeAncestry",
    "LineageResolver",
    "PsutilAncestry",
]
