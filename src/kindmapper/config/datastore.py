"""Google Cloud Datastore configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import optional_env_var, require_env_var


@dataclass(frozen=True, slots=True)
class DatastoreConfig:
    project: str
    namespace: str | None = None
    database: str | None = None


def get_datastore_config() -> DatastoreConfig:
    # DATASTORE_EMULATOR_HOST is honoured by the client library itself
    return DatastoreConfig(
        project=require_env_var("GOOGLE_CLOUD_PROJECT"),
        namespace=optional_env_var("DATASTORE_NAMESPACE"),
        database=optional_env_var("DATASTORE_DATABASE"),
    )
