"""Membership value objects.

A reconciliation session works in exactly one identifier space. Desired state
may be declared by member name or by authority identifier, while the authority
always reports actual membership as identifiers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar, Literal

from membersync.domain.errors import AmbiguousDeclarationError

from .enums import LifecycleState, RefKind

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .primitives import GroupHandle, Identifier


@dataclass(frozen=True, slots=True)
class MemberName:
    """Human-readable member reference, unique in the authority namespace."""

    kind: ClassVar[Literal[RefKind.NAME]] = RefKind.NAME
    value: str

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("member name must be a non-empty string")

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True, slots=True)
class MemberIdentifier:
    """Opaque authority-assigned member reference."""

    kind: ClassVar[Literal[RefKind.IDENTIFIER]] = RefKind.IDENTIFIER
    value: Identifier

    def __post_init__(self) -> None:
        if not self.value or not self.value.strip():
            raise ValueError("member identifier must be a non-empty string")

    def __str__(self) -> str:
        return self.value


type MemberRef = MemberName | MemberIdentifier


def member_ref(kind: RefKind, value: str) -> MemberRef:
    if kind is RefKind.NAME:
        return MemberName(value)
    return MemberIdentifier(value)


def sorted_values(refs: Iterable[MemberRef]) -> list[str]:
    return sorted(ref.value for ref in refs)


@dataclass(frozen=True, slots=True)
class LocalRecord:
    """Previously recorded membership, as persisted by the caller."""

    kind: RefKind
    members: frozenset[str] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not self.members

    def refs(self) -> frozenset[MemberRef]:
        return frozenset(member_ref(self.kind, value) for value in self.members)


@dataclass(frozen=True, slots=True)
class DesiredMembership:
    """Target membership of one group, all members in a single identifier space."""

    group: GroupHandle
    kind: RefKind
    members: frozenset[MemberRef] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        mismatched = sorted_values(ref for ref in self.members if ref.kind is not self.kind)
        if mismatched:
            raise AmbiguousDeclarationError(
                f"Members {', '.join(mismatched)} are not declared by {self.kind}; "
                "mixing names and identifiers is not supported"
            )

    @classmethod
    def declare(
        cls,
        group: GroupHandle,
        *,
        names: Iterable[str] | None = None,
        identifiers: Iterable[str] | None = None,
    ) -> DesiredMembership:
        """Build a declaration from exactly one of ``names`` or ``identifiers``."""

        if names is None and identifiers is None:
            raise AmbiguousDeclarationError("Declare either member names or member identifiers")
        if names is not None and identifiers is not None:
            raise AmbiguousDeclarationError(
                "Declare either member names or member identifiers, not both"
            )
        if names is not None:
            return cls(group, RefKind.NAME, frozenset(MemberName(name) for name in names))
        assert identifiers is not None
        return cls(
            group,
            RefKind.IDENTIFIER,
            frozenset(MemberIdentifier(value) for value in identifiers),
        )

    @classmethod
    def from_record(cls, group: GroupHandle, record: LocalRecord) -> DesiredMembership:
        return cls(group, record.kind, record.refs())

    @property
    def values(self) -> frozenset[str]:
        return frozenset(ref.value for ref in self.members)


@dataclass(frozen=True, slots=True)
class ActualMembership:
    """Authority-reported membership. Never cached beyond one pass."""

    group: GroupHandle
    identifiers: frozenset[Identifier] = field(default_factory=frozenset)

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.identifiers

    def __len__(self) -> int:
        return len(self.identifiers)

    @property
    def is_empty(self) -> bool:
        return not self.identifiers


@dataclass(frozen=True, slots=True)
class MembershipSnapshot:
    """Membership reported back to the caller after an operation.

    ``stale`` is set when the confirmatory read still lagged behind the
    mutations that were just applied.
    """

    group: GroupHandle
    kind: RefKind
    members: frozenset[MemberRef]
    state: LifecycleState
    stale: bool = False

    @property
    def values(self) -> list[str]:
        return sorted_values(self.members)

    def to_record(self) -> LocalRecord:
        """Record the caller should persist for the next ``read``/``update``."""

        return LocalRecord(kind=self.kind, members=frozenset(ref.value for ref in self.members))

    def as_dict(self) -> dict[str, object]:
        return {
            "group": str(self.group),
            "kind": str(self.kind),
            "members": self.values,
            "state": str(self.state),
            "stale": self.stale,
        }
