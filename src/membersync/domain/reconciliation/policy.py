"""Tunables for one reconciliation session.

The settling delay is a heuristic: if the authority's consistency window is
longer, the confirmatory read can still be stale. It is never turned into an
unbounded poll.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from .retry import RetryBudget

DEFAULT_READ_RETRY_SECONDS = 180.0
DEFAULT_WRITE_RETRY_SECONDS = 300.0
DEFAULT_SETTLE_DELAY_SECONDS = 10.0
DEFAULT_SESSION_TIMEOUT_SECONDS = 1200.0


@dataclass(frozen=True, slots=True)
class ReconcilePolicy:
    read_budget: RetryBudget = field(
        default_factory=lambda: RetryBudget(seconds=DEFAULT_READ_RETRY_SECONDS)
    )
    write_budget: RetryBudget = field(
        default_factory=lambda: RetryBudget(seconds=DEFAULT_WRITE_RETRY_SECONDS)
    )
    settle_delay_seconds: float = DEFAULT_SETTLE_DELAY_SECONDS
    session_timeout_seconds: float | None = DEFAULT_SESSION_TIMEOUT_SECONDS
    # Raise PartialApplyError instead of flagging the snapshot as stale.
    strict_confirmation: bool = False

    def __post_init__(self) -> None:
        if self.settle_delay_seconds < 0:
            raise ValueError("settle delay must be non-negative")
        if self.session_timeout_seconds is not None and self.session_timeout_seconds <= 0:
            raise ValueError("session timeout must be positive")
