"""Pydantic models describing the authority API payloads."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _coerce_identifier(value: object) -> object:
    # The authority serialises numeric uids as JSON numbers.
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


class AuthorityBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ErrorDetail(AuthorityBaseModel):
    code: str
    message: str = ""


class ErrorResponse(AuthorityBaseModel):
    error: ErrorDetail


class UserPayload(AuthorityBaseModel):
    uid: str
    name: str | None = None

    _normalize_uid = field_validator("uid", mode="before")(_coerce_identifier)


class GroupMembersPage(AuthorityBaseModel):
    members: list[UserPayload] = Field(default_factory=list)
    total: int = 0


class MembershipChangeRequest(AuthorityBaseModel):
    uids: list[str]


class MembershipChangeResponse(AuthorityBaseModel):
    ok: bool = True
