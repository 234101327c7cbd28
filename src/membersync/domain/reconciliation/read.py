"""Fetch authoritative membership. No caching across reads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from membersync.domain.model import ActualMembership

if TYPE_CHECKING:
    from membersync.domain.model import GroupHandle
    from membersync.domain.ports.authority import AuthorityClient

    from .retry import RetryBudget, RetryRunner


@dataclass(slots=True)
class MembershipReader:
    client: AuthorityClient
    runner: RetryRunner
    budget: RetryBudget

    def read(self, group: GroupHandle) -> ActualMembership:
        identifiers = self.runner.call(
            "list_members",
            lambda: self.client.list_members(group),
            budget=self.budget,
        )
        return ActualMembership(group=group, identifiers=frozenset(identifiers))
