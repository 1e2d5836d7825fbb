"""Turn configuration into a store client and an adapter."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from kindmapper.adapters.sqlalchemy import SqlAlchemyStore
from kindmapper.config import ConfigurationError, StoreConfig, get_store_config
from kindmapper.core.adapter import Adapter

if TYPE_CHECKING:
    from kindmapper.domain.ports.mapping import CollectionResolver
    from kindmapper.domain.ports.store import StoreClient

log = getLogger(__name__)


def open_store(config: StoreConfig | None = None) -> StoreClient:
    """Open the configured store; the caller owns the returned handle."""

    effective = config or get_store_config()
    if effective.backend == "gcloud":
        if effective.datastore is None:
            raise ConfigurationError("gcloud store selected without datastore configuration")
        from kindmapper.adapters.gcloud import DatastoreStore  # noqa: PLC0415

        log.info("Opening Datastore store for project %s", effective.datastore.project)
        return DatastoreStore.from_config(effective.datastore)

    if effective.database is None:
        raise ConfigurationError("sqlalchemy store selected without database configuration")
    log.info("Opening SQL store at %s", effective.database.uri)
    return SqlAlchemyStore.from_config(effective.database)


def build_adapter(mapper: CollectionResolver, config: StoreConfig | None = None) -> Adapter:
    """Open the configured store and wrap it in an adapter owning it."""

    return Adapter(mapper, open_store(config))
