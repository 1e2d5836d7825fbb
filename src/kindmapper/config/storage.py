"""Where the default SQLite store lives and how to reach a SQL database."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Final

from .env import optional_env_var

APP_DIR_NAME: Final[str] = "kindmapper"
DEFAULT_DB_FILENAME: Final[str] = "kindmapper.db"
_TRUTHY: Final[frozenset[str]] = frozenset({"1", "true", "yes", "on"})


@dataclass(frozen=True, slots=True)
class StorageConfig:
    """Data directory holding the SQLite file of the default store."""

    data_dir: Path
    database_filename: str = DEFAULT_DB_FILENAME

    @property
    def database_path(self) -> Path:
        return self.data_dir.expanduser().resolve() / self.database_filename

    def sqlite_uri(self) -> str:
        """Return the SQLite URI, creating the data directory on the way."""
        path = self.database_path
        path.parent.mkdir(parents=True, exist_ok=True)
        return f"sqlite+pysqlite:///{path}"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    uri: str
    echo: bool = False


def platform_data_dir() -> Path:
    if os.name == "nt":
        root = optional_env_var("LOCALAPPDATA")
        fallback = Path.home() / "AppData" / "Local"
    else:
        root = optional_env_var("XDG_DATA_HOME")
        fallback = Path.home() / ".local" / "share"
    return (Path(root) if root else fallback) / APP_DIR_NAME


def get_storage_config() -> StorageConfig:
    override = optional_env_var("KINDMAPPER_DATA_DIR")
    return StorageConfig(data_dir=Path(override) if override else platform_data_dir())


def get_database_config(*, storage: StorageConfig | None = None) -> DatabaseConfig:
    """Read ``DATABASE_URI``, falling back to the SQLite file in the data directory."""

    echo = (optional_env_var("KINDMAPPER_SQL_ECHO") or "").lower() in _TRUTHY
    uri = optional_env_var("DATABASE_URI")
    if uri is None:
        uri = (storage or get_storage_config()).sqlite_uri()
    return DatabaseConfig(uri=uri, echo=echo)
