"""Convergence controller: create/read/update/delete over one group.

Every operation opens a fresh session bound to one ``GroupHandle``. The session
owns the deadline, the retry runner and a lookup cache; nothing survives it.
Membership is re-read at the start of every operation, so re-running any
operation after a failure only acts on the remaining delta.

Lifecycle::

    ABSENT -> CREATING -> CONVERGED -> UPDATING -> CONVERGED -> DELETING -> ABSENT

``CONVERGED`` is the only rest state; the others exist inside one call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.domain.errors import PartialApplyError
from membersync.domain.model import (
    LifecycleState,
    MemberIdentifier,
    MembershipSnapshot,
    RefKind,
    sorted_values,
)
from membersync.domain.ports.observer import EventKind, ReconcileEvent, log_event

from .diff import MembershipDiff, compute_diff, diff_declarations, narrow_to_actual
from .execute import MutationExecutor
from .policy import ReconcilePolicy
from .read import MembershipReader
from .resolve import IdentifierResolver
from .retry import Clock, Deadline, RetryRunner

if TYPE_CHECKING:
    from collections.abc import Mapping

    from membersync.domain.model import (
        ActualMembership,
        DesiredMembership,
        GroupHandle,
        Identifier,
        LocalRecord,
        MemberRef,
    )
    from membersync.domain.ports.authority import AuthorityClient
    from membersync.domain.ports.observer import Observer

    from .execute import ApplyResult

log = getLogger(__name__)

_TRANSITIONS: Mapping[LifecycleState, frozenset[LifecycleState]] = {
    LifecycleState.ABSENT: frozenset({LifecycleState.CREATING}),
    LifecycleState.CREATING: frozenset({LifecycleState.CONVERGED}),
    LifecycleState.CONVERGED: frozenset({LifecycleState.UPDATING, LifecycleState.DELETING}),
    LifecycleState.UPDATING: frozenset({LifecycleState.CONVERGED}),
    LifecycleState.DELETING: frozenset({LifecycleState.ABSENT}),
}


@dataclass(slots=True)
class ReconcileSession:
    """Collaborators bound to one group for the duration of one operation."""

    group: GroupHandle
    state: LifecycleState
    deadline: Deadline
    resolver: IdentifierResolver
    reader: MembershipReader
    executor: MutationExecutor
    observer: Observer

    def transition(self, target: LifecycleState) -> None:
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Invalid lifecycle transition {self.state} -> {target}")
        self.observer(
            ReconcileEvent(
                EventKind.STATE_CHANGED,
                self.group,
                {"from": self.state, "to": target},
            )
        )
        self.state = target

    def settle(self, seconds: float) -> None:
        """Wait out the authority's read-after-write lag before confirming."""

        if seconds <= 0:
            return
        self.observer(ReconcileEvent(EventKind.SETTLING, self.group, {"seconds": seconds}))
        self.deadline.sleep(seconds, operation="settle")


@dataclass(slots=True)
class ConvergenceController:
    client: AuthorityClient
    policy: ReconcilePolicy = field(default_factory=ReconcilePolicy)
    observer: Observer = log_event
    clock: Clock = field(default_factory=Clock)

    def open_session(
        self,
        group: GroupHandle,
        *,
        state: LifecycleState = LifecycleState.CONVERGED,
    ) -> ReconcileSession:
        deadline = Deadline(self.policy.session_timeout_seconds, clock=self.clock)
        runner = RetryRunner(
            group=group, deadline=deadline, observer=self.observer, clock=self.clock
        )
        resolver = IdentifierResolver(
            client=self.client, runner=runner, budget=self.policy.read_budget
        )
        return ReconcileSession(
            group=group,
            state=state,
            deadline=deadline,
            resolver=resolver,
            reader=MembershipReader(
                client=self.client, runner=runner, budget=self.policy.read_budget
            ),
            executor=MutationExecutor(
                client=self.client,
                resolver=resolver,
                runner=runner,
                budget=self.policy.write_budget,
                observer=self.observer,
            ),
            observer=self.observer,
        )

    def create(self, desired: DesiredMembership) -> MembershipSnapshot:
        """Add the declared members; never removes anything.

        Safe to call again after partial success: members already present are
        left alone and only the remainder is added.
        """

        session = self.open_session(desired.group, state=LifecycleState.ABSENT)
        session.transition(LifecycleState.CREATING)

        actual = session.reader.read(desired.group)
        resolved = session.resolver.resolve_all(desired.members)
        diff = compute_diff(desired.members, actual.identifiers, resolved)
        if diff.to_remove:
            log.info(
                "Group %s has %s member(s) not declared here; leaving them in place",
                desired.group,
                len(diff.to_remove),
            )

        result = session.executor.apply(desired.group, to_add=diff.to_add | diff.unresolved)
        return self._confirm(session, desired, resolved, actual, result)

    def read(
        self,
        group: GroupHandle,
        local_record: LocalRecord | None = None,
    ) -> MembershipSnapshot:
        """Report current membership.

        With a non-empty ``local_record`` only the members it lists are
        reported, in its identifier space; other members of the group are
        assumed to belong to someone else. Without one, every member is
        reported by identifier. An empty group reads as ``ABSENT``.
        """

        session = self.open_session(group)
        actual = session.reader.read(group)
        state = LifecycleState.ABSENT if actual.is_empty else LifecycleState.CONVERGED

        if local_record is None or local_record.is_empty:
            return MembershipSnapshot(
                group=group,
                kind=RefKind.IDENTIFIER,
                members=frozenset(MemberIdentifier(value) for value in actual.identifiers),
                state=state,
            )

        refs = local_record.refs()
        resolved = session.resolver.resolve_all(refs)
        return MembershipSnapshot(
            group=group,
            kind=local_record.kind,
            members=_members_in(refs, resolved, actual.identifiers),
            state=state,
        )

    def update(
        self,
        group: GroupHandle,
        old: DesiredMembership,
        new: DesiredMembership,
    ) -> MembershipSnapshot:
        """Move from the ``old`` declaration to ``new``, removals first."""

        _require_group(group, old, new)
        session = self.open_session(group)
        session.transition(LifecycleState.UPDATING)

        actual = session.reader.read(group)
        resolved = session.resolver.resolve_all(old.members | new.members)
        declared = diff_declarations(old, new, resolved)
        diff = narrow_to_actual(declared, actual.identifiers, resolved)
        log.debug(
            "Update %s: add=%s remove=%s unresolved=%s",
            group,
            sorted_values(diff.to_add),
            sorted_values(diff.to_remove),
            sorted_values(diff.unresolved),
        )

        result = session.executor.apply(
            group,
            to_add=diff.to_add | diff.unresolved,
            to_remove=diff.to_remove,
        )
        return self._confirm(session, new, resolved, actual, result)

    def delete(self, group: GroupHandle, desired: DesiredMembership) -> MembershipSnapshot:
        """Remove the declared members. Members already gone are not an error."""

        _require_group(group, desired)
        session = self.open_session(group)
        session.transition(LifecycleState.DELETING)

        actual = session.reader.read(group)
        resolved = session.resolver.resolve_all(desired.members)
        diff = narrow_to_actual(
            MembershipDiff(to_remove=desired.members), actual.identifiers, resolved
        )
        session.executor.apply(group, to_remove=diff.to_remove)

        session.transition(LifecycleState.ABSENT)
        return MembershipSnapshot(
            group=group,
            kind=desired.kind,
            members=frozenset(),
            state=LifecycleState.ABSENT,
        )

    def _confirm(
        self,
        session: ReconcileSession,
        desired: DesiredMembership,
        resolved: Mapping[MemberRef, Identifier | None],
        before: ActualMembership,
        result: ApplyResult,
    ) -> MembershipSnapshot:
        confirmed = before
        if result.mutated:
            session.settle(self.policy.settle_delay_seconds)
            confirmed = session.reader.read(session.group)

        expected = {
            identifier
            for ref in desired.members
            if (identifier := resolved[ref]) is not None
            and (identifier in before or identifier in result.added)
        }
        missing = expected - confirmed.identifiers

        session.transition(LifecycleState.CONVERGED)
        snapshot = MembershipSnapshot(
            group=session.group,
            kind=desired.kind,
            members=_members_in(desired.members, resolved, confirmed.identifiers),
            state=LifecycleState.CONVERGED,
            stale=bool(missing),
        )
        if missing:
            if self.policy.strict_confirmation:
                unresolved = sorted(ref.value for ref in result.unresolved)
                message = (
                    f"Confirmatory read of {session.group} is missing {len(missing)} member(s)"
                )
                if unresolved:
                    message += f"; unresolved: {', '.join(unresolved)}"
                raise PartialApplyError(
                    message,
                    missing=missing,
                    unresolved=unresolved,
                    snapshot=snapshot,
                )
            session.observer(
                ReconcileEvent(
                    EventKind.STALE_SNAPSHOT,
                    session.group,
                    {"missing": ",".join(sorted(missing))},
                )
            )

        result.raise_for_unresolved(snapshot)
        return snapshot


def _members_in(
    refs: frozenset[MemberRef],
    resolved: Mapping[MemberRef, Identifier | None],
    identifiers: frozenset[Identifier],
) -> frozenset[MemberRef]:
    return frozenset(
        ref
        for ref in refs
        if (identifier := resolved[ref]) is not None and identifier in identifiers
    )


def _require_group(group: GroupHandle, *declarations: DesiredMembership) -> None:
    for declaration in declarations:
        if declaration.group != group:
            raise ValueError(
                f"Declaration targets {declaration.group} but the session is bound to {group}; "
                "a different group needs a new session"
            )
