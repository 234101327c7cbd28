"""HTTP client for the remote authority's membership API."""

from __future__ import annotations

import asyncio
from logging import getLogger
from typing import TYPE_CHECKING, Final
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from membersync.adapters.http_resilience import ResilientClient, build_limiter
from membersync.domain.errors import PermanentRemoteError, TransientRemoteError

from .schema import (
    AuthorityBaseModel,
    ErrorResponse,
    GroupMembersPage,
    MembershipChangeRequest,
    MembershipChangeResponse,
    UserPayload,
)

if TYPE_CHECKING:
    from collections.abc import Set

    from membersync.adapters.http_resilience import ClientFactory
    from membersync.config.authority import AuthorityConfig
    from membersync.domain.model import GroupHandle, Identifier
    from membersync.domain.ports.authority import AuthorityClient

log = getLogger(__name__)

USER_NOT_FOUND: Final = "ResourceNotFound.UserNotExist"
GROUP_NOT_FOUND: Final = "ResourceNotFound.GroupNotExist"
TRANSIENT_ERROR_CODES: Final = frozenset(
    {
        "RequestLimitExceeded",
        "InternalError",
        "ResourceUnavailable",
        "RequestTimeout",
        "FailedOperation.NotConsistent",
    }
)
_TRANSIENT_STATUS: Final = frozenset({408, 429, 500, 502, 503, 504})


class HttpAuthorityClient:
    """``AuthorityClient`` backed by the authority's JSON API.

    Each call runs its own event loop and HTTP client, which keeps the port
    synchronous and blocking as the reconciliation core expects. One rate
    limiter spans every call made through the instance.
    """

    def __init__(
        self,
        *,
        config: AuthorityConfig,
        client_factory: ClientFactory | None = None,
    ) -> None:
        self._config = config
        self._resilience = config.resilience
        self._client_factory = client_factory or ResilientClient
        self._limiter = build_limiter(self._resilience.ratelimit)

    def lookup_identifier(self, name: str) -> Identifier | None:
        return asyncio.run(self._lookup_identifier_async(name))

    def list_members(self, group: GroupHandle) -> frozenset[Identifier]:
        return asyncio.run(self._list_members_async(group))

    def add_members(self, group: GroupHandle, identifiers: Set[Identifier]) -> None:
        asyncio.run(self._change_members_async(group, identifiers, action="add"))

    def remove_members(self, group: GroupHandle, identifiers: Set[Identifier]) -> None:
        asyncio.run(self._change_members_async(group, identifiers, action="remove"))

    async def _lookup_identifier_async(self, name: str) -> Identifier | None:
        operation = "lookup_identifier"
        async with self._client_factory(self._resilience, limiter=self._limiter) as client:
            response = await _send(client, "GET", f"users/{quote(name, safe='')}", operation)

        error = _error_response(response)
        not_found = error is not None and error.error.code == USER_NOT_FOUND
        if response.status_code == 404 or not_found:
            return None
        payload = _checked_payload(response, operation, error)
        return _validate(UserPayload, payload, operation).uid

    async def _list_members_async(self, group: GroupHandle) -> frozenset[Identifier]:
        operation = "list_members"
        path = f"groups/{quote(str(group), safe='')}/members"
        page_size = self._config.page_size
        identifiers: set[Identifier] = set()
        page = 1
        async with self._client_factory(self._resilience, limiter=self._limiter) as client:
            while True:
                response = await _send(
                    client,
                    "GET",
                    path,
                    operation,
                    params={"page": page, "limit": page_size},
                )
                error = _error_response(response)
                if error is not None and error.error.code == GROUP_NOT_FOUND:
                    log.info("Authority reports group %s does not exist", group)
                    return frozenset()
                payload = _checked_payload(response, operation, error)
                members_page = _validate(GroupMembersPage, payload, operation)
                identifiers.update(member.uid for member in members_page.members)
                if not members_page.members or page * page_size >= members_page.total:
                    break
                page += 1
        return frozenset(identifiers)

    async def _change_members_async(
        self,
        group: GroupHandle,
        identifiers: Set[Identifier],
        *,
        action: str,
    ) -> None:
        operation = f"{action}_members"
        body = MembershipChangeRequest(uids=sorted(identifiers))
        path = f"groups/{quote(str(group), safe='')}/members/{action}"
        async with self._client_factory(self._resilience, limiter=self._limiter) as client:
            response = await _send(
                client, "POST", path, operation, json=body.model_dump(mode="json")
            )

        payload = _checked_payload(response, operation, _error_response(response))
        result = _validate(MembershipChangeResponse, payload, operation)
        if not result.ok:
            raise PermanentRemoteError(
                f"Authority rejected {operation} for {group}", operation=operation
            )
        log.debug("%s %s on %s accepted", operation, body.uids, group)


async def _send(
    client: ResilientClient,
    method: str,
    path: str,
    operation: str,
    *,
    params: dict[str, int] | None = None,
    json: object = None,
) -> httpx.Response:
    try:
        if method == "GET":
            return await client.get(path, params=params)
        return await client.post(path, params=params, json=json)
    except (httpx.TimeoutException, httpx.NetworkError, httpx.RemoteProtocolError) as exc:
        raise TransientRemoteError(
            f"{operation} failed: {exc.__class__.__name__}: {exc}", operation=operation
        ) from exc
    except httpx.HTTPError as exc:
        raise PermanentRemoteError(f"{operation} failed: {exc}", operation=operation) from exc


def _json(response: httpx.Response) -> object:
    try:
        return response.json()
    except ValueError:
        return None


def _error_response(response: httpx.Response) -> ErrorResponse | None:
    payload = _json(response)
    if not isinstance(payload, dict) or "error" not in payload:
        return None
    try:
        return ErrorResponse.model_validate(payload)
    except ValidationError:
        return None


def _checked_payload(
    response: httpx.Response,
    operation: str,
    error: ErrorResponse | None,
) -> object:
    """Return the JSON payload or raise the error class the failure maps to."""

    if error is None and response.is_success:
        payload = _json(response)
        if payload is None:
            raise PermanentRemoteError(
                f"{operation} returned a non-JSON response", operation=operation
            )
        return payload

    code = error.error.code if error is not None else None
    message = error.error.message if error is not None else response.reason_phrase
    detail = f"{operation} failed with HTTP {response.status_code}"
    if code:
        detail = f"{detail} [{code}]"
    if message:
        detail = f"{detail}: {message}"

    if response.status_code in _TRANSIENT_STATUS or code in TRANSIENT_ERROR_CODES:
        raise TransientRemoteError(detail, operation=operation, code=code)
    raise PermanentRemoteError(detail, operation=operation, code=code)


def _validate[M: AuthorityBaseModel](
    model: type[M],
    payload: object,
    operation: str,
) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise PermanentRemoteError(
            f"Unexpected {operation} response payload", operation=operation
        ) from exc


if TYPE_CHECKING:
    _client_check: type[AuthorityClient] = HttpAuthorityClient
