"""Application configuration helpers."""

from __future__ import annotations

from membersync.common.logging import configure_logging

from .authority import AuthorityConfig, get_authority_config
from .env import optional_bool, optional_float, optional_int, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .reconcile import get_reconcile_policy

__all__ = [
    "AuthorityConfig",
    "ConfigurationError",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "configure_logging",
    "get_authority_config",
    "get_reconcile_policy",
    "optional_bool",
    "optional_float",
    "optional_int",
    "require_env_vars",
]
