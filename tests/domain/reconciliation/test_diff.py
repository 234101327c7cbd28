from __future__ import annotations

import pytest

from membersync.domain.model import DesiredMembership, GroupHandle, MemberIdentifier, MemberName
from membersync.domain.reconciliation import (
    MembershipDiff,
    compute_diff,
    diff_declarations,
    narrow_to_actual,
)

GROUP = GroupHandle("ops")


def test_compute_diff_splits_present_missing_and_extra() -> None:
    desired = {MemberName("alice"), MemberName("bob")}
    resolved = {MemberName("alice"): "u-1", MemberName("bob"): "u-2"}

    diff = compute_diff(desired, {"u-1", "u-9"}, resolved)

    assert diff.to_add == {MemberName("bob")}
    assert diff.to_remove == {MemberIdentifier("u-9")}
    assert diff.unresolved == frozenset()


def test_compute_diff_of_converged_state_is_empty() -> None:
    desired = {MemberIdentifier("u-1"), MemberIdentifier("u-2")}
    resolved = {ref: ref.value for ref in desired}

    diff = compute_diff(desired, {"u-1", "u-2"}, resolved)

    assert diff.is_empty


def test_compute_diff_keeps_unresolved_refs_apart() -> None:
    resolved = {MemberName("ghost"): None, MemberName("alice"): "u-1"}

    diff = compute_diff(resolved.keys(), set(), resolved)

    assert diff.to_add == {MemberName("alice")}
    assert diff.unresolved == {MemberName("ghost")}


def test_compute_diff_with_empty_desired_removes_everything() -> None:
    diff = compute_diff(set(), {"u-1", "u-2"}, {})

    assert diff.to_add == frozenset()
    assert diff.to_remove == {MemberIdentifier("u-1"), MemberIdentifier("u-2")}


def test_compute_diff_sets_are_disjoint_on_identifiers() -> None:
    desired = {MemberName("alice"), MemberName("bob"), MemberName("carol")}
    resolved = {MemberName("alice"): "u-1", MemberName("bob"): "u-2", MemberName("carol"): "u-3"}

    diff = compute_diff(desired, {"u-2", "u-4"}, resolved)

    added_ids = {resolved[ref] for ref in diff.to_add}
    removed_ids = {ref.value for ref in diff.to_remove}
    assert added_ids.isdisjoint(removed_ids)
    assert added_ids == {"u-1", "u-3"}
    assert removed_ids == {"u-4"}


def test_diff_declarations_same_space_uses_set_difference() -> None:
    old = DesiredMembership.declare(GROUP, names=["alice", "bob"])
    new = DesiredMembership.declare(GROUP, names=["bob", "carol"])

    diff = diff_declarations(old, new)

    assert diff.to_add == {MemberName("carol")}
    assert diff.to_remove == {MemberName("alice")}


def test_diff_declarations_across_spaces_matches_on_identifiers() -> None:
    old = DesiredMembership.declare(GROUP, names=["alice", "bob"])
    new = DesiredMembership.declare(GROUP, identifiers=["u-1", "u-3"])
    resolved = {
        MemberName("alice"): "u-1",
        MemberName("bob"): "u-2",
        MemberIdentifier("u-1"): "u-1",
        MemberIdentifier("u-3"): "u-3",
    }

    diff = diff_declarations(old, new, resolved)

    assert diff.to_add == {MemberIdentifier("u-3")}
    assert diff.to_remove == {MemberName("bob")}


def test_diff_declarations_across_spaces_needs_resolutions() -> None:
    old = DesiredMembership.declare(GROUP, names=["alice"])
    new = DesiredMembership.declare(GROUP, identifiers=["u-1"])

    with pytest.raises(ValueError, match="resolved identifiers"):
        diff_declarations(old, new)


def test_narrow_to_actual_drops_satisfied_work() -> None:
    diff = MembershipDiff(
        to_add=frozenset({MemberName("alice"), MemberName("bob"), MemberName("ghost")}),
        to_remove=frozenset({MemberName("carol"), MemberName("dave"), MemberName("gone")}),
    )
    resolved = {
        MemberName("alice"): "u-1",
        MemberName("bob"): "u-2",
        MemberName("ghost"): None,
        MemberName("carol"): "u-3",
        MemberName("dave"): "u-4",
        MemberName("gone"): None,
    }

    narrowed = narrow_to_actual(diff, {"u-1", "u-3"}, resolved)

    assert narrowed.to_add == {MemberName("bob")}
    assert narrowed.to_remove == {MemberName("carol")}
    assert narrowed.unresolved == {MemberName("ghost")}
