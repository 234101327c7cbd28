"""Reconciliation tunables, overridable from the environment."""

from __future__ import annotations

from membersync.domain.reconciliation.policy import (
    DEFAULT_READ_RETRY_SECONDS,
    DEFAULT_SESSION_TIMEOUT_SECONDS,
    DEFAULT_SETTLE_DELAY_SECONDS,
    DEFAULT_WRITE_RETRY_SECONDS,
    ReconcilePolicy,
)
from membersync.domain.reconciliation.retry import RetryBudget

from .env import optional_bool, optional_float
from .errors import ConfigurationError


def get_reconcile_policy() -> ReconcilePolicy:
    read_seconds = optional_float("MEMBERSYNC_READ_RETRY_SECONDS", DEFAULT_READ_RETRY_SECONDS)
    write_seconds = optional_float("MEMBERSYNC_WRITE_RETRY_SECONDS", DEFAULT_WRITE_RETRY_SECONDS)
    settle = optional_float("MEMBERSYNC_SETTLE_DELAY_SECONDS", DEFAULT_SETTLE_DELAY_SECONDS)
    timeout = optional_float(
        "MEMBERSYNC_SESSION_TIMEOUT_SECONDS", DEFAULT_SESSION_TIMEOUT_SECONDS
    )
    strict = optional_bool("MEMBERSYNC_STRICT_CONFIRMATION", False)  # noqa: FBT003

    try:
        return ReconcilePolicy(
            read_budget=RetryBudget(seconds=read_seconds),
            write_budget=RetryBudget(seconds=write_seconds),
            settle_delay_seconds=settle,
            session_timeout_seconds=timeout,
            strict_confirmation=strict,
        )
    except ValueError as exc:
        raise ConfigurationError(f"Invalid reconciliation settings: {exc}") from exc
