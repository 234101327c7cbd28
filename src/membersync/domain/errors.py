"""Error taxonomy for membership reconciliation.

Only ``TransientRemoteError`` is ever retried. Everything else either aborts the
operation immediately or, for ``UnresolvedMembersError``, is raised once all
members have been processed so callers can fix every problem in one pass.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

    from membersync.domain.model import MembershipSnapshot


class MembershipError(RuntimeError):
    """Base class for reconciliation failures."""


class TransientRemoteError(MembershipError):
    """Remote call failed in a way that may succeed when retried."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class PermanentRemoteError(MembershipError):
    """Remote call was rejected and retrying will not help."""

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        code: str | None = None,
    ) -> None:
        super().__init__(message)
        self.operation = operation
        self.code = code


class AmbiguousDeclarationError(MembershipError):
    """Desired membership declares neither or both identifier spaces."""


class UnresolvedMembersError(MembershipError):
    """One or more members to add could not be resolved to an identifier."""

    def __init__(
        self,
        names: Iterable[str],
        *,
        snapshot: MembershipSnapshot | None = None,
    ) -> None:
        self.names = tuple(sorted(names))
        self.snapshot = snapshot
        super().__init__(f"Could not resolve members: {', '.join(self.names)}")


class PartialApplyError(MembershipError):
    """Mutations were accepted but the confirmatory read disagrees.

    ``unresolved`` carries any declared names that could not be resolved in the
    same session, since this error is raised in place of
    ``UnresolvedMembersError``.
    """

    def __init__(
        self,
        message: str,
        *,
        missing: Iterable[str] = (),
        unresolved: Iterable[str] = (),
        snapshot: MembershipSnapshot | None = None,
    ) -> None:
        super().__init__(message)
        self.missing = tuple(sorted(missing))
        self.unresolved = tuple(sorted(unresolved))
        self.snapshot = snapshot


class SessionTimeoutError(MembershipError):
    """The session deadline elapsed; remote state is left as-is."""

    def __init__(self, message: str, *, operation: str | None = None) -> None:
        super().__init__(message)
        self.operation = operation
