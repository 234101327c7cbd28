from __future__ import annotations

import pytest

from membersync.domain.errors import AmbiguousDeclarationError
from membersync.domain.model import (
    ActualMembership,
    DesiredMembership,
    GroupHandle,
    LifecycleState,
    LocalRecord,
    MemberIdentifier,
    MemberName,
    MembershipSnapshot,
    RefKind,
    member_ref,
)


def test_group_handle_rejects_blank_values() -> None:
    with pytest.raises(ValueError, match="group handle"):
        GroupHandle("  ")


def test_member_refs_compare_by_kind_and_value() -> None:
    assert MemberName("alice") == MemberName("alice")
    assert MemberName("u-1") != MemberIdentifier("u-1")
    assert member_ref(RefKind.NAME, "alice") == MemberName("alice")
    assert member_ref(RefKind.IDENTIFIER, "u-1") == MemberIdentifier("u-1")


def test_member_name_rejects_empty_value() -> None:
    with pytest.raises(ValueError, match="member name"):
        MemberName("")


def test_declare_by_names() -> None:
    desired = DesiredMembership.declare(GroupHandle("ops"), names=["alice", "bob", "alice"])

    assert desired.kind is RefKind.NAME
    assert desired.members == {MemberName("alice"), MemberName("bob")}
    assert desired.values == {"alice", "bob"}


def test_declare_requires_exactly_one_identifier_space() -> None:
    with pytest.raises(AmbiguousDeclarationError):
        DesiredMembership.declare(GroupHandle("ops"))

    with pytest.raises(AmbiguousDeclarationError, match="not both"):
        DesiredMembership.declare(GroupHandle("ops"), names=["alice"], identifiers=["u-1"])


def test_declare_accepts_empty_member_set() -> None:
    desired = DesiredMembership.declare(GroupHandle("ops"), identifiers=[])

    assert desired.kind is RefKind.IDENTIFIER
    assert desired.members == frozenset()


def test_mixed_identifier_spaces_are_rejected() -> None:
    with pytest.raises(AmbiguousDeclarationError, match="u-1"):
        DesiredMembership(
            GroupHandle("ops"),
            RefKind.NAME,
            frozenset({MemberName("alice"), MemberIdentifier("u-1")}),
        )


def test_from_record_keeps_record_identifier_space() -> None:
    record = LocalRecord(kind=RefKind.NAME, members=frozenset({"alice"}))

    desired = DesiredMembership.from_record(GroupHandle("ops"), record)

    assert desired.kind is RefKind.NAME
    assert desired.members == {MemberName("alice")}


def test_actual_membership_behaves_like_a_set() -> None:
    actual = ActualMembership(GroupHandle("ops"), frozenset({"u-1", "u-2"}))

    assert "u-1" in actual
    assert "u-9" not in actual
    assert len(actual) == 2
    assert not actual.is_empty
    assert ActualMembership(GroupHandle("ops")).is_empty


def test_snapshot_round_trips_to_local_record() -> None:
    snapshot = MembershipSnapshot(
        group=GroupHandle("ops"),
        kind=RefKind.NAME,
        members=frozenset({MemberName("bob"), MemberName("alice")}),
        state=LifecycleState.CONVERGED,
    )

    assert snapshot.values == ["alice", "bob"]
    assert snapshot.to_record() == LocalRecord(
        kind=RefKind.NAME, members=frozenset({"alice", "bob"})
    )
    assert snapshot.as_dict() == {
        "group": "ops",
        "kind": "name",
        "members": ["alice", "bob"],
        "state": "converged",
        "stale": False,
    }
