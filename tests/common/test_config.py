from __future__ import annotations

import pytest

from membersync.config import (
    ConfigurationError,
    MissingConfigurationError,
    get_authority_config,
    get_reconcile_policy,
    optional_bool,
    optional_float,
    require_env_vars,
)

_POLICY_VARS = (
    "MEMBERSYNC_READ_RETRY_SECONDS",
    "MEMBERSYNC_WRITE_RETRY_SECONDS",
    "MEMBERSYNC_SETTLE_DELAY_SECONDS",
    "MEMBERSYNC_SESSION_TIMEOUT_SECONDS",
    "MEMBERSYNC_STRICT_CONFIRMATION",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (
        *_POLICY_VARS,
        "MEMBERSYNC_AUTHORITY_URL",
        "MEMBERSYNC_AUTHORITY_TOKEN",
        "MEMBERSYNC_AUTHORITY_PAGE_SIZE",
    ):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_names_every_missing_variable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_VAR", raising=False)
    monkeypatch.setenv("BLANK_VAR", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_VAR", "BLANK_VAR"])

    assert "BLANK_VAR, MISSING_VAR" in str(exc.value)


def test_optional_loaders_parse_and_validate(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", "2.5")
    monkeypatch.setenv("EXAMPLE_FLAG", "Yes")
    monkeypatch.setenv("EXAMPLE_BAD", "soon")

    assert optional_float("EXAMPLE_FLOAT", 1.0) == 2.5
    assert optional_float("EXAMPLE_UNSET_FLOAT", 1.0) == 1.0
    assert optional_bool("EXAMPLE_FLAG", False) is True  # noqa: FBT003
    with pytest.raises(ConfigurationError, match="EXAMPLE_BAD"):
        optional_float("EXAMPLE_BAD", 1.0)
    with pytest.raises(ConfigurationError, match="EXAMPLE_BAD"):
        optional_bool("EXAMPLE_BAD", False)  # noqa: FBT003


def test_reconcile_policy_defaults(clean_env: pytest.MonkeyPatch) -> None:
    policy = get_reconcile_policy()

    assert policy.read_budget.seconds == 180
    assert policy.write_budget.seconds == 300
    assert policy.settle_delay_seconds == 10
    assert policy.session_timeout_seconds == 1200
    assert policy.strict_confirmation is False


def test_reconcile_policy_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("MEMBERSYNC_READ_RETRY_SECONDS", "5")
    clean_env.setenv("MEMBERSYNC_WRITE_RETRY_SECONDS", "15")
    clean_env.setenv("MEMBERSYNC_SETTLE_DELAY_SECONDS", "0")
    clean_env.setenv("MEMBERSYNC_STRICT_CONFIRMATION", "true")

    policy = get_reconcile_policy()

    assert policy.read_budget.seconds == 5
    assert policy.write_budget.seconds == 15
    assert policy.settle_delay_seconds == 0
    assert policy.strict_confirmation is True


def test_reconcile_policy_rejects_invalid_values(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("MEMBERSYNC_SETTLE_DELAY_SECONDS", "-1")

    with pytest.raises(ConfigurationError, match="settle delay"):
        get_reconcile_policy()


def test_authority_config_requires_url_and_token(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("MEMBERSYNC_AUTHORITY_URL", "https://authority.test/api")

    with pytest.raises(MissingConfigurationError, match="MEMBERSYNC_AUTHORITY_TOKEN"):
        get_authority_config()


def test_authority_config_builds_resilience(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("MEMBERSYNC_AUTHORITY_URL", "https://authority.test/api/")
    clean_env.setenv("MEMBERSYNC_AUTHORITY_TOKEN", "secret")
    clean_env.setenv("MEMBERSYNC_AUTHORITY_PAGE_SIZE", "20")

    config = get_authority_config()

    assert config.base_url == "https://authority.test/api"
    assert config.page_size == 20
    assert config.resilience.base_url == "https://authority.test/api"
    assert config.resilience.default_headers is not None
    assert config.resilience.default_headers["Authorization"] == "Bearer secret"
    assert config.resilience.ratelimit is not None


def test_authority_config_rejects_non_positive_page_size(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("MEMBERSYNC_AUTHORITY_URL", "https://authority.test/api")
    clean_env.setenv("MEMBERSYNC_AUTHORITY_TOKEN", "secret")
    clean_env.setenv("MEMBERSYNC_AUTHORITY_PAGE_SIZE", "0")

    with pytest.raises(ConfigurationError, match="PAGE_SIZE"):
        get_authority_config()
