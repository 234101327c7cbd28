"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class RefKind(StrEnum):
    """Identifier space a member reference lives in."""

    NAME = "name"
    IDENTIFIER = "identifier"


class LifecycleState(StrEnum):
    ABSENT = "absent"
    CREATING = "creating"
    CONVERGED = "converged"
    UPDATING = "updating"
    DELETING = "deleting"
