"""Group-membership reconciliation core.

Layered flow of one operation:
1) read actual membership from the authority
2) resolve member names to authority identifiers
3) diff desired against actual (or old against new declarations)
4) apply one remove batch and one add batch
5) settle, re-read and report the confirmed membership
"""

from __future__ import annotations

from .controller import ConvergenceController, ReconcileSession
from .diff import MembershipDiff, compute_diff, diff_declarations, narrow_to_actual
from .execute import ApplyResult, MutationExecutor
from .policy import ReconcilePolicy
from .read import MembershipReader
from .resolve import IdentifierResolver
from .retry import Clock, Deadline, RetryBudget, RetryRunner

__all__ = [
    "ApplyResult",
    "Clock",
    "ConvergenceController",
    "Deadline",
    "IdentifierResolver",
    "MembershipDiff",
    "MembershipReader",
    "MutationExecutor",
    "ReconcilePolicy",
    "ReconcileSession",
    "RetryBudget",
    "RetryRunner",
    "compute_diff",
    "diff_declarations",
    "narrow_to_actual",
]
