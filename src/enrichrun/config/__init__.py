"""Application configuration helpers."""

from __future__ import annotations

from .backend import BackendConfig, build_backend_config, get_backend_config
from .env import float_env_var, optional_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .http_resilience import RateLimit, ResilienceConfig, ResponseCache, RetryPolicy
from .logging import configure_logging
from .polling import PollingConfig, get_polling_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)

__all__ = [
    "BackendConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "PollingConfig",
    "RateLimit",
    "ResilienceConfig",
    "ResponseCache",
    "RetryPolicy",
    "StorageConfig",
    "build_backend_config",
    "configure_logging",
    "float_env_var",
    "get_backend_config",
    "get_database_config",
    "get_http_cache_path",
    "get_polling_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_vars",
]
