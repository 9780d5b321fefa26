"""Application configuration helpers."""

from __future__ import annotations

from .catalog import CatalogConfig, get_catalog_config
from .env import env_float, env_list, optional_env_var, require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .overpass import OverpassConfig, get_overpass_config
from .pixabay import PixabayConfig, get_pixabay_config
from .presence import PresenceConfig, get_presence_config
from .storage import (
    DatabaseConfig,
    StorageConfig,
    get_database_config,
    get_http_cache_path,
    get_storage_config,
)

__all__ = [
    "CacheConfig",
    "CatalogConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationError",
    "MissingConfigurationError",
    "OverpassConfig",
    "PixabayConfig",
    "PresenceConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "env_float",
    "env_list",
    "get_catalog_config",
    "get_database_config",
    "get_http_cache_path",
    "get_overpass_config",
    "get_pixabay_config",
    "get_presence_config",
    "get_storage_config",
    "optional_env_var",
    "require_env_vars",
]
