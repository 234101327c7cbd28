"""Remote authority connection settings."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_int, require_env_vars
from .errors import ConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

AUTHORITY_TIMEOUT_SECONDS = 10.0
DEFAULT_PAGE_SIZE = 50


@dataclass(frozen=True, slots=True)
class AuthorityConfig:
    """Holds authority API configuration values."""

    base_url: str
    page_size: int
    resilience: ResilienceConfig


def get_authority_config(*, resilience: ResilienceConfig | None = None) -> AuthorityConfig:
    values = require_env_vars(("MEMBERSYNC_AUTHORITY_URL", "MEMBERSYNC_AUTHORITY_TOKEN"))
    base_url = values["MEMBERSYNC_AUTHORITY_URL"].rstrip("/")
    token = values["MEMBERSYNC_AUTHORITY_TOKEN"]
    page_size = optional_int("MEMBERSYNC_AUTHORITY_PAGE_SIZE", DEFAULT_PAGE_SIZE)
    if page_size <= 0:
        raise ConfigurationError("MEMBERSYNC_AUTHORITY_PAGE_SIZE must be positive")

    return AuthorityConfig(
        base_url=base_url,
        page_size=page_size,
        resilience=resilience
        or ResilienceConfig(
            name="authority",
            base_url=base_url,
            timeout_seconds=AUTHORITY_TIMEOUT_SECONDS,
            retry=RetryPolicy(total=2),
            ratelimit=RateLimit(max_calls=10, per_seconds=1.0),
            default_headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
        ),
    )
