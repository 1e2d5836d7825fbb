"""Record operations for a single collection."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from kindmapper.core.collection import coerce_identity, load_entity
from kindmapper.core.query import Query

if TYPE_CHECKING:
    from kindmapper.core.collection import Collection

log = logging.getLogger(__name__)


class Command[TEntity]:
    """Executes create/update/persist/find/first/last/delete for one collection.

    Writes go through the ``Collection``; ``first`` and ``last`` build a ``Query``.
    A command holds no state besides its collection.
    """

    def __init__(self, collection: Collection[TEntity]) -> None:
        self.collection = collection

    def create(self, entity: TEntity) -> TEntity:
        return self.collection.insert(entity)

    def update(self, entity: TEntity) -> TEntity:
        """Overwrite the record stored under the entity's id.

        Both bundled stores overwrite unconditionally, so updating an id that does
        not exist yet creates the record under that id.
        """
        return self.collection.update(entity)

    def persist(self, entity: TEntity) -> TEntity:
        if self.collection.identity_of(entity) is None:
            return self.create(entity)
        return self.update(entity)

    def find(self, identity: object) -> TEntity | None:
        row = self.collection.lookup(coerce_identity(identity))
        if row is None:
            log.debug("No %s record with id %s", self.collection.kind, identity)
            return None
        return load_entity(self.collection.mapped_collection, row)

    def first(self) -> TEntity | None:
        return self._query().first()

    def last(self) -> TEntity | None:
        return self._query().last()

    def delete(self, entity: TEntity) -> None:
        self.collection.delete(entity)

    def _query(self) -> Query[TEntity]:
        return Query(
            self.collection.store,
            self.collection.kind,
            self.collection.mapped_collection,
        )
