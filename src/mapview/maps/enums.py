"""Enumerations used by attribute map declarations."""

from __future__ import annotations

from enum import StrEnum


class AccessMode(StrEnum):
    """Access allowed to a mapped field or relation."""

    READ_WRITE = "rw"
    READ_ONLY = "ro"
    WRITE_ONLY = "w"
    EXCLUDED = "none"

    @property
    def readable(self) -> bool:
        return self in (AccessMode.READ_WRITE, AccessMode.READ_ONLY)

    @property
    def writable(self) -> bool:
        return self in (AccessMode.READ_WRITE, AccessMode.WRITE_ONLY)


class OverrideMode(StrEnum):
    """How a declared map combines with the map it overrides."""

    MERGE = "merge"
    REPLACE = "replace"


class ResolutionState(StrEnum):
    """Resolution state machine of a single map."""

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    FAILED = "failed"


class SchemaAccess(StrEnum):
    """Access filter applied when exporting a map schema."""

    READ = "read"
    WRITE = "write"


__all__ = ["AccessMode", "OverrideMode", "ResolutionState", "SchemaAccess"]
