"""Public domain model surface."""

from __future__ import annotations

from membersync.domain.model.enums import LifecycleState, RefKind
from membersync.domain.model.membership import (
    ActualMembership,
    DesiredMembership,
    LocalRecord,
    MemberIdentifier,
    MemberName,
    MemberRef,
    MembershipSnapshot,
    member_ref,
    sorted_values,
)
from membersync.domain.model.primitives import GroupHandle, Identifier

__all__ = [
    "ActualMembership",
    "DesiredMembership",
    "GroupHandle",
    "Identifier",
    "LifecycleState",
    "LocalRecord",
    "MemberIdentifier",
    "MemberName",
    "MemberRef",
    "MembershipSnapshot",
    "RefKind",
    "member_ref",
    "sorted_values",
]
