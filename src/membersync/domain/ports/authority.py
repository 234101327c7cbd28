"""Port for the remote authority that owns group membership."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Set

    from membersync.domain.model import GroupHandle, Identifier


@runtime_checkable
class AuthorityClient(Protocol):
    """Narrow capability interface over the authority's membership API.

    Implementations raise ``TransientRemoteError`` for failures worth retrying
    and ``PermanentRemoteError`` for everything else. Retrying is the caller's
    job.
    """

    def lookup_identifier(self, name: str) -> Identifier | None:
        """Return the identifier for ``name``, or ``None`` if no such entity exists."""
        ...

    def list_members(self, group: GroupHandle) -> frozenset[Identifier]:
        """Return the complete current membership of ``group``."""
        ...

    def add_members(self, group: GroupHandle, identifiers: Set[Identifier]) -> None: ...

    def remove_members(self, group: GroupHandle, identifiers: Set[Identifier]) -> None: ...


__all__ = ["AuthorityClient"]
