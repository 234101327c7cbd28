"""Identifier resolution.

Responsibilities of this stage:
- map member names to authority identifiers (read-only remote lookups)
- report a definitive "no such entity" as ``None`` rather than an error
- cache lookups for the lifetime of one session only

Identifier refs resolve to themselves without a remote call.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from membersync.domain.model import MemberIdentifier, MemberName

if TYPE_CHECKING:
    from collections.abc import Iterable

    from membersync.domain.model import Identifier, MemberRef
    from membersync.domain.ports.authority import AuthorityClient

    from .retry import RetryBudget, RetryRunner

log = getLogger(__name__)

type Resolutions = dict[MemberRef, Identifier | None]


@dataclass(slots=True)
class IdentifierResolver:
    client: AuthorityClient
    runner: RetryRunner
    budget: RetryBudget
    _cache: dict[str, Identifier | None] = field(
        default_factory=dict, init=False, repr=False
    )

    def resolve(self, ref: MemberRef) -> Identifier | None:
        """Return the identifier for ``ref`` or ``None`` when it does not exist."""

        match ref:
            case MemberIdentifier(value=value):
                return value
            case MemberName(value=name):
                return self._lookup(name)

    def resolve_all(self, refs: Iterable[MemberRef]) -> Resolutions:
        return {ref: self.resolve(ref) for ref in sorted(refs, key=lambda ref: ref.value)}

    def _lookup(self, name: str) -> Identifier | None:
        if name in self._cache:
            return self._cache[name]
        identifier = self.runner.call(
            "lookup_identifier",
            lambda: self.client.lookup_identifier(name),
            budget=self.budget,
        )
        if identifier is None:
            log.debug("No authority entity named %r", name)
        self._cache[name] = identifier
        return identifier
