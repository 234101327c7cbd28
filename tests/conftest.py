from __future__ import annotations

import pytest

from membersync.domain.model import GroupHandle
from membersync.domain.reconciliation import (
    Clock,
    ConvergenceController,
    ReconcilePolicy,
    RetryBudget,
)
from tests.helpers.authority import DIRECTORY, FakeClock, InMemoryAuthority, RecordingObserver


@pytest.fixture
def group() -> GroupHandle:
    return GroupHandle("engineering")


@pytest.fixture
def authority() -> InMemoryAuthority:
    return InMemoryAuthority(directory=DIRECTORY)


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()


@pytest.fixture
def policy() -> ReconcilePolicy:
    return ReconcilePolicy(
        read_budget=RetryBudget(seconds=30.0),
        write_budget=RetryBudget(seconds=60.0),
        settle_delay_seconds=10.0,
        session_timeout_seconds=600.0,
    )


@pytest.fixture
def controller(
    authority: InMemoryAuthority,
    policy: ReconcilePolicy,
    observer: RecordingObserver,
    fake_clock: FakeClock,
) -> ConvergenceController:
    return ConvergenceController(
        client=authority,
        policy=policy,
        observer=observer,
        clock=Clock(now=fake_clock.now, sleep=fake_clock.sleep),
    )
