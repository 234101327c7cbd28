"""Remote authority adapter."""

from __future__ import annotations

from .client import (
    GROUP_NOT_FOUND,
    TRANSIENT_ERROR_CODES,
    USER_NOT_FOUND,
    HttpAuthorityClient,
)
from .schema import ErrorResponse, GroupMembersPage, UserPayload

__all__ = [
    "GROUP_NOT_FOUND",
    "TRANSIENT_ERROR_CODES",
    "USER_NOT_FOUND",
    "ErrorResponse",
    "GroupMembersPage",
    "HttpAuthorityClient",
    "UserPayload",
]
