"""Selection of the store backing the adapter."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Literal, cast

from .datastore import DatastoreConfig, get_datastore_config
from .env import choice_env_var
from .storage import DatabaseConfig, get_database_config

type StoreBackend = Literal["sqlalchemy", "gcloud"]

STORE_BACKENDS: Final[tuple[StoreBackend, ...]] = ("sqlalchemy", "gcloud")


@dataclass(frozen=True, slots=True)
class StoreConfig:
    backend: StoreBackend
    database: DatabaseConfig | None = None
    datastore: DatastoreConfig | None = None


def get_store_config() -> StoreConfig:
    backend = cast(
        "StoreBackend",
        choice_env_var("KINDMAPPER_STORE", STORE_BACKENDS, default="sqlalchemy"),
    )
    if backend == "gcloud":
        return StoreConfig(backend=backend, datastore=get_datastore_config())
    return StoreConfig(backend=backend, database=get_database_config())
