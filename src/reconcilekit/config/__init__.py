"""Application configuration helpers."""

from __future__ import annotations

from .controller import ControllerConfig, get_controller_config
from .env import env_float, env_int, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .store import StoreConfig, get_store_config

__all__ = [
    "ConfigurationError",
    "ControllerConfig",
    "MissingConfigurationError",
    "ResilienceConfig",
    "RetryPolicy",
    "StoreConfig",
    "configure_logging",
    "env_float",
    "env_int",
    "get_controller_config",
    "get_store_config",
    "optional_env_var",
    "require_env_vars",
]
