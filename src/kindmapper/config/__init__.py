"""Application configuration helpers."""

from __future__ import annotations

from .datastore import DatastoreConfig, get_datastore_config
from .env import choice_env_var, optional_env_var, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config
from .store import STORE_BACKENDS, StoreBackend, StoreConfig, get_store_config

__all__ = [
    "STORE_BACKENDS",
    "ConfigurationError",
    "DatabaseConfig",
    "DatastoreConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "StoreBackend",
    "StoreConfig",
    "choice_env_var",
    "get_database_config",
    "get_datastore_config",
    "get_storage_config",
    "get_store_config",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
