from __future__ import annotations

import pytest

from reconcilekit.config import (
    ConfigurationError,
    ControllerConfig,
    MissingConfigurationError,
    env_float,
    env_int,
    get_controller_config,
    get_store_config,
    optional_env_var,
    require_env_vars,
)

CONTROLLER_VARS = (
    "RECONCILEKIT_WORKERS",
    "RECONCILEKIT_MAX_RETRIES",
    "RECONCILEKIT_BASE_DELAY_SECONDS",
    "RECONCILEKIT_MAX_DELAY_SECONDS",
    "RECONCILEKIT_QPS",
    "RECONCILEKIT_BURST",
    "RECONCILEKIT_RESYNC_SECONDS",
    "RECONCILEKIT_RELIST_BACKOFF_SECONDS",
)

STORE_VARS = (
    "RECONCILEKIT_STORE_URL",
    "RECONCILEKIT_STORE_TOKEN",
    "RECONCILEKIT_WATCH_TIMEOUT_SECONDS",
)


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for name in (*CONTROLLER_VARS, *STORE_VARS):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    result = require_env_vars(["EXAMPLE_VAR"])

    assert result["EXAMPLE_VAR"] == "value"


def test_require_env_vars_lists_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_B", raising=False)
    monkeypatch.setenv("MISSING_A", "  ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_optional_env_var_treats_blank_as_unset(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "   ")
    assert optional_env_var("EXAMPLE_VAR") is None

    monkeypatch.setenv("EXAMPLE_VAR", " value ")
    assert optional_env_var("EXAMPLE_VAR") == "value"


def test_env_int_parses_and_validates(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXAMPLE_INT", raising=False)
    assert env_int("EXAMPLE_INT", 7) == 7

    monkeypatch.setenv("EXAMPLE_INT", "3")
    assert env_int("EXAMPLE_INT", 7, minimum=1) == 3

    monkeypatch.setenv("EXAMPLE_INT", "0")
    with pytest.raises(ConfigurationError, match=">= 1"):
        env_int("EXAMPLE_INT", 7, minimum=1)

    monkeypatch.setenv("EXAMPLE_INT", "three")
    with pytest.raises(ConfigurationError, match="integer"):
        env_int("EXAMPLE_INT", 7)


def test_env_float_rejects_garbage(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", "fast")

    with pytest.raises(ConfigurationError, match="number"):
        env_float("EXAMPLE_FLOAT", 1.0)


def test_controller_config_defaults(clean_env: pytest.MonkeyPatch) -> None:
    config = get_controller_config()

    assert config == ControllerConfig()
    assert config.max_retries == 5
    assert config.base_delay_seconds == 0.005
    assert config.max_delay_seconds == 1000.0


def test_controller_config_from_env(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RECONCILEKIT_WORKERS", "8")
    clean_env.setenv("RECONCILEKIT_MAX_RETRIES", "2")
    clean_env.setenv("RECONCILEKIT_QPS", "2.5")

    config = get_controller_config()

    assert config.workers == 8
    assert config.max_retries == 2
    assert config.qps == 2.5


def test_controller_config_rejects_zero_workers(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RECONCILEKIT_WORKERS", "0")

    with pytest.raises(ConfigurationError):
        get_controller_config()


def test_store_config_requires_url(clean_env: pytest.MonkeyPatch) -> None:
    with pytest.raises(MissingConfigurationError, match="RECONCILEKIT_STORE_URL"):
        get_store_config()


def test_store_config_reads_url_and_token(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RECONCILEKIT_STORE_URL", "http://store.test/api/")
    clean_env.setenv("RECONCILEKIT_STORE_TOKEN", "secret")

    config = get_store_config()

    assert config.base_url == "http://store.test/api"
    assert config.token == "secret"
    assert config.resilience.default_headers["Authorization"] == "Bearer secret"


def test_store_config_explicit_url_wins(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("RECONCILEKIT_STORE_URL", "http://ignored.test")

    config = get_store_config(base_url="http://explicit.test")

    assert config.base_url == "http://explicit.test"
    assert config.token is None
    assert "Authorization" not in config.resilience.default_headers


@pytest.mark.parametrize("value", ["0", "-1"])
def test_controller_config_requires_positive_relist_backoff(
    clean_env: pytest.MonkeyPatch, value: str
) -> None:
    clean_env.setenv("RECONCILEKIT_RELIST_BACKOFF_SECONDS", value)

    with pytest.raises(ConfigurationError, match="> 0.0"):
        get_controller_config()


def test_env_float_exclusive_bound(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_FLOAT", "0.5")
    assert env_float("EXAMPLE_FLOAT", 1.0, above=0.0) == 0.5

    monkeypatch.setenv("EXAMPLE_FLOAT", "0")
    with pytest.raises(ConfigurationError, match="> 0.0"):
        env_float("EXAMPLE_FLOAT", 1.0, above=0.0)


def test_store_config_watch_timeout(clean_env: pytest.MonkeyPatch) -> None:
    assert get_store_config(base_url="http://s").watch_timeout_seconds == 4.0

    clean_env.setenv("RECONCILEKIT_WATCH_TIMEOUT_SECONDS", "1.5")
    assert get_store_config(base_url="http://s").watch_timeout_seconds == 1.5

    clean_env.setenv("RECONCILEKIT_WATCH_TIMEOUT_SECONDS", "0")
    with pytest.raises(ConfigurationError):
        get_store_config(base_url="http://s")
