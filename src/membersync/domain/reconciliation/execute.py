"""Mutation executor.

Responsibilities of this stage:
- resolve every ref before any batch is built
- issue at most one remove call and one add call, removals first
- drop unresolvable removals silently (the entity no longer exists, so it
  cannot be a member) but keep unresolvable additions for the caller to report

Out of scope for this stage:
- deciding what to add or remove (see ``diff``)
- confirming the result (see ``controller``)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.domain.errors import UnresolvedMembersError
from membersync.domain.ports.observer import EventKind, ReconcileEvent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from membersync.domain.model import GroupHandle, Identifier, MembershipSnapshot, MemberRef
    from membersync.domain.ports.authority import AuthorityClient
    from membersync.domain.ports.observer import Observer

    from .resolve import IdentifierResolver
    from .retry import RetryBudget, RetryRunner

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ApplyResult:
    """What the executor actually sent to the authority."""

    added: frozenset[Identifier] = field(default_factory=frozenset)
    removed: frozenset[Identifier] = field(default_factory=frozenset)
    dropped: frozenset[MemberRef] = field(default_factory=frozenset)
    unresolved: frozenset[MemberRef] = field(default_factory=frozenset)

    @property
    def mutated(self) -> bool:
        return bool(self.added or self.removed)

    def raise_for_unresolved(self, snapshot: MembershipSnapshot | None = None) -> None:
        """Raise one aggregate error naming every addition that could not be resolved."""

        if self.unresolved:
            raise UnresolvedMembersError(
                (ref.value for ref in self.unresolved),
                snapshot=snapshot,
            )


@dataclass(slots=True)
class MutationExecutor:
    client: AuthorityClient
    resolver: IdentifierResolver
    runner: RetryRunner
    budget: RetryBudget
    observer: Observer

    def apply(
        self,
        group: GroupHandle,
        *,
        to_add: Iterable[MemberRef] = (),
        to_remove: Iterable[MemberRef] = (),
    ) -> ApplyResult:
        removals, dropped = self._resolve_batch(to_remove)
        additions, unresolved = self._resolve_batch(to_add)

        for ref in sorted(dropped, key=lambda ref: ref.value):
            self.observer(
                ReconcileEvent(
                    EventKind.MEMBER_DROPPED,
                    group,
                    {"member": ref.value, "reason": "not_found"},
                )
            )
        for ref in sorted(unresolved, key=lambda ref: ref.value):
            self.observer(
                ReconcileEvent(
                    EventKind.MEMBER_UNRESOLVED,
                    group,
                    {"member": ref.value, "reason": "not_found"},
                )
            )

        if removals:
            self.runner.call(
                "remove_members",
                lambda: self.client.remove_members(group, removals),
                budget=self.budget,
            )
            log.info("Removed %s member(s) from %s", len(removals), group)
        else:
            log.debug("Nothing to remove from %s; skipping remove call", group)

        if additions:
            self.runner.call(
                "add_members",
                lambda: self.client.add_members(group, additions),
                budget=self.budget,
            )
            log.info("Added %s member(s) to %s", len(additions), group)

        return ApplyResult(
            added=additions,
            removed=removals,
            dropped=dropped,
            unresolved=unresolved,
        )

    def _resolve_batch(
        self, refs: Iterable[MemberRef]
    ) -> tuple[frozenset[Identifier], frozenset[MemberRef]]:
        identifiers: set[Identifier] = set()
        missing: set[MemberRef] = set()
        for ref, identifier in self.resolver.resolve_all(refs).items():
            if identifier is None:
                missing.add(ref)
            else:
                identifiers.add(identifier)
        return frozenset(identifiers), frozenset(missing)
