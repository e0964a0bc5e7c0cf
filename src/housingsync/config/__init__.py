"""Application configuration helpers."""

from __future__ import annotations

from .airtable import AirtableConfig, get_airtable_config
from .env import ConfigurationError, MissingConfigurationError, env_choice, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .storage import (
    Backend,
    DatabaseConfig,
    StorageConfig,
    get_backend,
    get_database_config,
    get_storage_config,
)

__all__ = [
    "AirtableConfig",
    "Backend",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_choice",
    "get_airtable_config",
    "get_backend",
    "get_database_config",
    "get_storage_config",
    "require_env_vars",
]
