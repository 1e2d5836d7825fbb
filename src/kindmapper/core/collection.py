"""Maps one collection onto the store's key space and performs writes on it."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kindmapper.errors import IdentityRequiredError, MappingError

if TYPE_CHECKING:
    from kindmapper.domain.ports.mapping import MappedCollection
    from kindmapper.domain.ports.store import NativeKey, PropertyBag, Row, StoreClient

log = logging.getLogger(__name__)


def coerce_identity(value: object) -> int:
    """Return ``value`` as a store id or raise if it cannot address a record.

    Integers and strings of digits are accepted; ids have to be positive.
    """

    if isinstance(value, bool) or value is None:
        raise IdentityRequiredError(f"An id is required, got {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value)
    if not isinstance(value, int) or value <= 0:
        raise IdentityRequiredError(f"Unusable id: {value!r}")
    return value


def load_entity[TEntity](mapped_collection: MappedCollection[TEntity], row: Row) -> TEntity:
    """Deserialize a stored row, restoring the id from its key."""

    properties: dict[str, object] = dict(row.properties)
    properties[mapped_collection.identity] = row.key.id
    try:
        return mapped_collection.deserialize(properties)
    except MappingError:
        raise
    except (TypeError, ValueError, KeyError) as exc:
        raise MappingError(f"Cannot deserialize {row.key}: {exc}") from exc


class Collection[TEntity]:
    def __init__(self, store: StoreClient, mapped_collection: MappedCollection[TEntity]) -> None:
        self.store = store
        self.mapped_collection = mapped_collection

    @property
    def kind(self) -> str:
        return self.mapped_collection.kind

    def key_for(self, identity: int | None) -> NativeKey:
        return self.store.key(self.kind, identity)

    def insert(self, entity: TEntity) -> TEntity:
        """Save a new record for ``entity`` and assign the store-allocated id to it.

        The entity passed in is mutated: its identity attribute holds the id of the
        new record afterwards. An id already set on the entity is kept and used as key.
        """

        identity = self.identity_of(entity)
        key = self.key_for(None if identity is None else coerce_identity(identity))
        saved = self.store.save(key, self._serialize(entity))
        setattr(entity, self.mapped_collection.identity, saved.id)
        log.debug("Inserted %s", saved)
        return entity

    def update(self, entity: TEntity) -> TEntity:
        key = self.key_for(self.require_identity(entity))
        self.store.save(key, self._serialize(entity))
        log.debug("Overwrote %s", key)
        return entity

    def delete(self, entity: TEntity) -> None:
        key = self.key_for(self.require_identity(entity))
        self.store.delete(key)
        log.debug("Deleted %s", key)

    def lookup(self, identity: int) -> Row | None:
        return self.store.get(self.key_for(identity))

    def identity_of(self, entity: TEntity) -> object:
        return getattr(entity, self.mapped_collection.identity, None)

    def require_identity(self, entity: TEntity) -> int:
        return coerce_identity(self.identity_of(entity))

    def _serialize(self, entity: TEntity) -> PropertyBag:
        try:
            return self.mapped_collection.serialize(entity)
        except MappingError:
            raise
        except (TypeError, ValueError, AttributeError) as exc:
            raise MappingError(
                f"Cannot serialize {type(entity).__name__} for {self.kind!r}: {exc}"
            ) from exc
