from __future__ import annotations

import asyncio
from dataclasses import fields

import httpx
from aiolimiter import AsyncLimiter

from membersync.adapters.http_resilience import (
    RateLimit,
    ResilienceConfig,
    ResilientClient,
    RetryPolicy,
    build_limiter,
    build_retry,
)


def test_build_retry_uses_policy_total() -> None:
    retry = build_retry(RetryPolicy(total=4))

    assert retry.total == 4


def test_client_applies_base_url_and_default_headers() -> None:
    config = ResilienceConfig(
        name="authority",
        base_url="https://authority.test/api",
        timeout_seconds=3.0,
        default_headers={"Authorization": "Bearer token"},
    )

    client = ResilientClient(config)

    inner = client._client  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert str(inner.base_url) == "https://authority.test/api/"
    assert inner.headers["Authorization"] == "Bearer token"
    assert inner.timeout.read == 3.0
    asyncio.run(client.aclose())


def test_rate_limited_client_still_sends_requests() -> None:
    calls: list[str] = []

    async def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request.url.path)
        return httpx.Response(200, json={"ok": True})

    async def run() -> list[int]:
        config = ResilienceConfig(name="limited", ratelimit=RateLimit(max_calls=5, per_seconds=1.0))
        async with ResilientClient(config) as client:
            client._client = httpx.AsyncClient(  # noqa: SLF001  # type: ignore[reportPrivateUsage]
                base_url="https://authority.test",
                transport=httpx.MockTransport(handler),
            )
            responses = [await client.get(f"/ping/{index}") for index in range(3)]
        return [response.status_code for response in responses]

    assert asyncio.run(run()) == [200, 200, 200]
    assert calls == ["/ping/0", "/ping/1", "/ping/2"]


def test_build_limiter_is_optional() -> None:
    assert build_limiter(None) is None
    limiter = build_limiter(RateLimit(max_calls=3, per_seconds=2.0))
    assert limiter is not None
    assert limiter.max_rate == 3
    assert limiter.time_period == 2.0


def test_client_uses_injected_limiter() -> None:
    shared = AsyncLimiter(1, 1.0)
    config = ResilienceConfig(name="limited", ratelimit=RateLimit(max_calls=50, per_seconds=1.0))

    first = ResilientClient(config, limiter=shared)
    second = ResilientClient(config, limiter=shared)

    assert first._limiter is shared  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert second._limiter is shared  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    asyncio.run(first.aclose())
    asyncio.run(second.aclose())


def test_client_registers_no_event_hooks() -> None:
    assert "response_hooks" not in {field.name for field in fields(ResilienceConfig)}

    client = ResilientClient(ResilienceConfig(name="plain"))

    inner = client._client  # noqa: SLF001  # type: ignore[reportPrivateUsage]
    assert inner.event_hooks == {"request": [], "response": []}
    asyncio.run(client.aclose())
