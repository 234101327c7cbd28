"""Bounded retries and the session-wide deadline.

Every remote call made by a session goes through ``RetryRunner.call``. Only
``TransientRemoteError`` is retried; anything else propagates on the first
failure. A retry budget bounds how long one call may keep retrying, and the
session ``Deadline`` bounds the sum of all calls, backoffs and settling delays.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.domain.errors import SessionTimeoutError, TransientRemoteError
from membersync.domain.ports.observer import EventKind, ReconcileEvent

if TYPE_CHECKING:
    from collections.abc import Callable

    from membersync.domain.model import GroupHandle
    from membersync.domain.ports.observer import Observer

log = getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RetryBudget:
    """How long a single remote call may keep retrying transient failures."""

    seconds: float
    initial_backoff: float = 1.0
    max_backoff: float = 10.0
    multiplier: float = 2.0

    def __post_init__(self) -> None:
        if self.seconds < 0:
            raise ValueError("retry budget must be non-negative")
        if self.initial_backoff <= 0 or self.max_backoff <= 0:
            raise ValueError("backoff intervals must be positive")

    def backoff(self, attempt: int) -> float:
        """Wait before retry number ``attempt`` (1-based)."""

        return min(self.max_backoff, self.initial_backoff * self.multiplier ** (attempt - 1))


@dataclass(frozen=True, slots=True)
class Clock:
    """Injectable time source."""

    now: Callable[[], float] = field(default=time.monotonic)
    sleep: Callable[[float], None] = field(default=time.sleep)


class Deadline:
    """Absolute expiry for one reconciliation session. ``None`` means unbounded."""

    def __init__(self, timeout_seconds: float | None, *, clock: Clock) -> None:
        self._clock = clock
        self._timeout = timeout_seconds
        self._expires_at = None if timeout_seconds is None else clock.now() + timeout_seconds

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return self._expires_at - self._clock.now()

    def check(self, operation: str) -> None:
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise SessionTimeoutError(
                f"Session deadline of {self._timeout}s exceeded before {operation}",
                operation=operation,
            )

    def sleep(self, seconds: float, *, operation: str) -> None:
        """Sleep for ``seconds`` or raise once the deadline would be crossed."""

        remaining = self.remaining()
        if remaining is not None and seconds > remaining:
            self._clock.sleep(max(remaining, 0.0))
            raise SessionTimeoutError(
                f"Session deadline of {self._timeout}s exceeded while waiting on {operation}",
                operation=operation,
            )
        self._clock.sleep(seconds)


@dataclass(slots=True)
class RetryRunner:
    """Run remote calls for one group under a budget and the session deadline."""

    group: GroupHandle
    deadline: Deadline
    observer: Observer
    clock: Clock = field(default_factory=Clock)

    def call[T](self, operation: str, func: Callable[[], T], *, budget: RetryBudget) -> T:
        started = self.clock.now()
        attempt = 0
        while True:
            self.deadline.check(operation)
            attempt += 1
            self.observer(
                ReconcileEvent(
                    EventKind.REMOTE_CALL,
                    self.group,
                    {"operation": operation, "attempt": attempt},
                )
            )
            try:
                return func()
            except TransientRemoteError as exc:
                wait = budget.backoff(attempt)
                elapsed = self.clock.now() - started
                if elapsed + wait > budget.seconds:
                    log.error(
                        "%s on %s gave up after %s attempts (%.1fs): %s",
                        operation,
                        self.group,
                        attempt,
                        elapsed,
                        exc,
                    )
                    raise
                self.observer(
                    ReconcileEvent(
                        EventKind.RETRY_SCHEDULED,
                        self.group,
                        {
                            "operation": operation,
                            "attempt": attempt,
                            "wait": wait,
                            "error": str(exc),
                        },
                    )
                )
                self.deadline.sleep(wait, operation=operation)
