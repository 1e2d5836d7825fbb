"""Adapter facade tying mapped collections to a store."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Literal, NoReturn

from kindmapper.core.collection import Collection
from kindmapper.core.command import Command
from kindmapper.core.query import Query
from kindmapper.errors import UnmappedCollectionError, UnsupportedOperationError

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator
    from types import TracebackType

    from kindmapper.domain.ports.mapping import CollectionResolver, MappedCollection
    from kindmapper.domain.ports.store import StoreClient

log = logging.getLogger(__name__)


class Adapter:
    """Single entry point for record operations, queries and transactions.

    The collections known to ``mapper`` are captured when the adapter is built, so
    a name that is not mapped fails on first lookup instead of deep inside a write.
    The adapter owns ``store`` and closes it in ``close``.

    Transactions cannot be nested: both bundled stores raise
    ``NestedTransactionError`` when a transaction is opened inside another one.
    """

    def __init__(self, mapper: CollectionResolver, store: StoreClient) -> None:
        self._store = store
        self._collections: dict[str, MappedCollection[Any]] = dict(mapper.collections())
        self._closed = False
        log.info(
            "Adapter ready for collections: %s", ", ".join(sorted(self._collections)) or "-"
        )

    @property
    def store(self) -> StoreClient:
        return self._store

    @property
    def closed(self) -> bool:
        return self._closed

    def create[TEntity](self, collection: str, entity: TEntity) -> TEntity:
        """Create a record for ``entity`` and assign its ``id``."""
        return self.command(collection).create(entity)

    def update[TEntity](self, collection: str, entity: TEntity) -> TEntity:
        return self.command(collection).update(entity)

    def persist[TEntity](self, collection: str, entity: TEntity) -> TEntity:
        """Create the entity when it has no id yet, update it otherwise."""
        return self.command(collection).persist(entity)

    def find(self, collection: str, identity: object) -> Any | None:
        return self.command(collection).find(identity)

    def first(self, collection: str) -> Any | None:
        return self.command(collection).first()

    def last(self, collection: str) -> Any | None:
        return self.command(collection).last()

    def delete(self, collection: str, entity: object) -> None:
        self.command(collection).delete(entity)

    def clear(self, collection: str) -> NoReturn:
        _ = collection
        raise UnsupportedOperationError("clear")

    def fetch(self, query: object) -> NoReturn:
        _ = query
        raise UnsupportedOperationError("fetch")

    def execute(self, query: object) -> NoReturn:
        _ = query
        raise UnsupportedOperationError("execute")

    def command(self, collection: str) -> Command[Any]:
        return Command(Collection(self._store, self.mapped_collection(collection)))

    def query(
        self,
        collection: str,
        configure: Callable[[Query[Any]], object] | None = None,
    ) -> Query[Any]:
        mapped_collection = self.mapped_collection(collection)
        return Query(self._store, mapped_collection.kind, mapped_collection, configure)

    @contextmanager
    def transaction(self, *, read_only: bool = False) -> Iterator[Adapter]:
        """Run the body inside a store transaction.

        Writes made in the body are committed together when it returns. Any
        exception aborts the transaction and is re-raised.
        """

        with self._store.commit(read_only=read_only):
            yield self

    def mapped_collection(self, collection: str) -> MappedCollection[Any]:
        try:
            return self._collections[collection]
        except KeyError:
            raise UnmappedCollectionError(collection) from None

    def close(self) -> None:
        if self._closed:
            return
        self._store.close()
        self._closed = True
        log.info("Adapter closed")

    def __enter__(self) -> Adapter:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> Literal[False]:
        self.close()
        return False
