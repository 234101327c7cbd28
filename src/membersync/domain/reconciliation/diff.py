"""Membership diff computation.

The diff is computed purely on identifier equality. ``to_add`` only ever holds
refs whose identifier is absent from actual membership and ``to_remove`` only
identifiers that are present, so the two sets are disjoint by construction.
Refs that failed resolution are kept apart in ``unresolved`` so they can be
surfaced instead of silently ignored.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from membersync.domain.model import MemberIdentifier

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping, Set

    from membersync.domain.model import DesiredMembership, Identifier, MemberRef


@dataclass(frozen=True, slots=True)
class MembershipDiff:
    to_add: frozenset[MemberRef] = field(default_factory=frozenset)
    to_remove: frozenset[MemberRef] = field(default_factory=frozenset)
    unresolved: frozenset[MemberRef] = field(default_factory=frozenset)

    @property
    def is_empty(self) -> bool:
        return not (self.to_add or self.to_remove or self.unresolved)


def compute_diff(
    desired: Iterable[MemberRef],
    actual: Set[Identifier],
    resolved: Mapping[MemberRef, Identifier | None],
) -> MembershipDiff:
    """Diff desired refs against actual identifiers.

    Every actual identifier not claimed by a resolved desired ref ends up in
    ``to_remove`` (as a ``MemberIdentifier``). An empty ``desired`` therefore
    removes everything.
    """

    present: set[Identifier] = set()
    to_add: set[MemberRef] = set()
    unresolved: set[MemberRef] = set()
    for ref in desired:
        identifier = resolved[ref]
        if identifier is None:
            unresolved.add(ref)
        elif identifier in actual:
            present.add(identifier)
        else:
            to_add.add(ref)

    to_remove = frozenset(MemberIdentifier(value) for value in actual - present)
    return MembershipDiff(
        to_add=frozenset(to_add),
        to_remove=to_remove,
        unresolved=frozenset(unresolved),
    )


def diff_declarations(
    old: DesiredMembership,
    new: DesiredMembership,
    resolved: Mapping[MemberRef, Identifier | None] | None = None,
) -> MembershipDiff:
    """Diff two declarations of the same group (the update "from"/"to" pair).

    Declarations in the same identifier space are compared directly. When the
    space changes, members are matched on their resolved identifiers so that
    a member present in both is not removed and re-added.
    """

    if old.kind is new.kind:
        return MembershipDiff(
            to_add=new.members - old.members,
            to_remove=old.members - new.members,
        )

    if resolved is None:
        raise ValueError("resolved identifiers are required to diff across identifier spaces")
    old_ids = {resolved[ref] for ref in old.members} - {None}
    new_ids = {resolved[ref] for ref in new.members} - {None}
    return MembershipDiff(
        to_add=frozenset(
            ref for ref in new.members if resolved[ref] is None or resolved[ref] not in old_ids
        ),
        to_remove=frozenset(
            ref for ref in old.members if resolved[ref] is None or resolved[ref] not in new_ids
        ),
    )


def narrow_to_actual(
    diff: MembershipDiff,
    actual: Set[Identifier],
    resolved: Mapping[MemberRef, Identifier | None],
) -> MembershipDiff:
    """Drop the parts of ``diff`` the authority already satisfies.

    Additions already present and removals already absent are idempotent
    no-ops. Unresolvable additions move to ``unresolved``; unresolvable
    removals are vacuously satisfied and disappear.
    """

    to_add: set[MemberRef] = set()
    unresolved: set[MemberRef] = set(diff.unresolved)
    for ref in diff.to_add:
        identifier = resolved[ref]
        if identifier is None:
            unresolved.add(ref)
        elif identifier not in actual:
            to_add.add(ref)

    to_remove = frozenset(
        ref
        for ref in diff.to_remove
        if (identifier := resolved[ref]) is not None and identifier in actual
    )
    return MembershipDiff(
        to_add=frozenset(to_add),
        to_remove=to_remove,
        unresolved=frozenset(unresolved),
    )
