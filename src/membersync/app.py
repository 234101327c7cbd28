"""Application orchestration entry points."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from membersync.adapters.authority import HttpAuthorityClient
from membersync.common.logging import log_elapsed
from membersync.config import get_authority_config, get_reconcile_policy
from membersync.domain.errors import AmbiguousDeclarationError
from membersync.domain.model import DesiredMembership, GroupHandle, LocalRecord, RefKind
from membersync.domain.ports.observer import log_event
from membersync.domain.reconciliation import Clock, ConvergenceController

if TYPE_CHECKING:
    from collections.abc import Iterable

    from membersync.domain.model import MembershipSnapshot
    from membersync.domain.ports.authority import AuthorityClient
    from membersync.domain.ports.observer import Observer
    from membersync.domain.reconciliation import ReconcilePolicy


log = getLogger(__name__)


def build_controller(
    *,
    client: AuthorityClient | None = None,
    policy: ReconcilePolicy | None = None,
    observer: Observer | None = None,
    clock: Clock | None = None,
) -> ConvergenceController:
    """Wire a controller, defaulting to the HTTP authority and env settings."""

    return ConvergenceController(
        client=client or HttpAuthorityClient(config=get_authority_config()),
        policy=policy or get_reconcile_policy(),
        observer=observer or log_event,
        clock=clock or Clock(),
    )


def create_membership(
    group: str,
    *,
    names: Iterable[str] | None = None,
    identifiers: Iterable[str] | None = None,
    controller: ConvergenceController | None = None,
) -> MembershipSnapshot:
    desired = DesiredMembership.declare(GroupHandle(group), names=names, identifiers=identifiers)
    active = controller or build_controller()
    log.info("Creating membership of %s with %s member(s)", group, len(desired.members))
    with log_elapsed("membership.create", logger=log):
        return active.create(desired)


def read_membership(
    group: str,
    *,
    record_names: Iterable[str] | None = None,
    record_identifiers: Iterable[str] | None = None,
    controller: ConvergenceController | None = None,
) -> MembershipSnapshot:
    record = _local_record(record_names, record_identifiers)
    active = controller or build_controller()
    with log_elapsed("membership.read", logger=log):
        return active.read(GroupHandle(group), record)


def update_membership(
    group: str,
    *,
    old_names: Iterable[str] | None = None,
    old_identifiers: Iterable[str] | None = None,
    names: Iterable[str] | None = None,
    identifiers: Iterable[str] | None = None,
    controller: ConvergenceController | None = None,
) -> MembershipSnapshot:
    handle = GroupHandle(group)
    record = _local_record(old_names, old_identifiers)
    if record is None:
        raise AmbiguousDeclarationError("Update needs the previously recorded members")
    old = DesiredMembership.from_record(handle, record)
    new = DesiredMembership.declare(handle, names=names, identifiers=identifiers)
    active = controller or build_controller()
    with log_elapsed("membership.update", logger=log):
        return active.update(handle, old, new)


def delete_membership(
    group: str,
    *,
    names: Iterable[str] | None = None,
    identifiers: Iterable[str] | None = None,
    controller: ConvergenceController | None = None,
) -> MembershipSnapshot:
    handle = GroupHandle(group)
    desired = DesiredMembership.declare(handle, names=names, identifiers=identifiers)
    active = controller or build_controller()
    with log_elapsed("membership.delete", logger=log):
        return active.delete(handle, desired)


def _local_record(
    names: Iterable[str] | None,
    identifiers: Iterable[str] | None,
) -> LocalRecord | None:
    if names is not None and identifiers is not None:
        raise AmbiguousDeclarationError("A local record holds either names or identifiers")
    if names is not None:
        return LocalRecord(kind=RefKind.NAME, members=frozenset(names))
    if identifiers is not None:
        return LocalRecord(kind=RefKind.IDENTIFIER, members=frozenset(identifiers))
    return None
