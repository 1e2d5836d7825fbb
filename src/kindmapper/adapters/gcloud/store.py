"""Store client backed by Google Cloud Datastore."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Final

from google.api_core.exceptions import GoogleAPICallError
from google.cloud import datastore
from google.cloud.datastore.query import PropertyFilter

from kindmapper.core.clauses import Filter, Limit, Offset, Operator, Order
from kindmapper.domain.ports.store import NativeKey, Row
from kindmapper.errors import NestedTransactionError, StoreReadError, StoreWriteError

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from kindmapper.config.datastore import DatastoreConfig
    from kindmapper.core.clauses import Clause

log = logging.getLogger(__name__)

NATIVE_OPERATORS: Final[dict[Operator, str]] = {
    Operator.EQ: "=",
    Operator.NE: "!=",
    Operator.LT: "<",
    Operator.LE: "<=",
    Operator.GT: ">",
    Operator.GE: ">=",
    Operator.IN: "IN",
    Operator.NOT_IN: "NOT_IN",
}

_COUNT_ALIAS: Final[str] = "total"


class DatastoreStore:
    """Store client for Google Cloud Datastore.

    ``put`` overwrites whatever is stored at a key, so saving to a missing key
    creates the record. Datastore sorts on ``__key__`` in both directions, which
    makes descending key queries (``last``) a native operation.

    Incomplete keys saved inside a transaction only get their id on commit, so
    the id is allocated up front there and the entity is identity-complete right
    after ``save``. Datastore transactions do not nest.
    """

    def __init__(self, client: datastore.Client) -> None:
        self._client = client

    @classmethod
    def from_config(cls, config: DatastoreConfig) -> DatastoreStore:
        client = datastore.Client(
            project=config.project,
            namespace=config.namespace,
            database=config.database,
        )
        return cls(client)

    @property
    def client(self) -> datastore.Client:
        return self._client

    def key(self, kind: str, id: int | None = None) -> NativeKey:  # noqa: A002
        return NativeKey(kind, id)

    def save(self, key: NativeKey, properties: Mapping[str, object]) -> NativeKey:
        try:
            native_key = self._native_key(key)
            if key.id is None and self._client.current_transaction is not None:
                native_key = self._client.allocate_ids(native_key, 1)[0]
            entity = datastore.Entity(key=native_key)
            entity.update(properties)
            self._client.put(entity)
        except GoogleAPICallError as exc:
            raise StoreWriteError(f"Saving {key} failed: {exc}") from exc
        return key.completed(entity.key.id)

    def get(self, key: NativeKey) -> Row | None:
        if key.id is None:
            return None
        try:
            entity = self._client.get(self._native_key(key))
        except GoogleAPICallError as exc:
            raise StoreReadError(f"Reading {key} failed: {exc}") from exc
        if entity is None:
            return None
        return Row(key, dict(entity))

    def delete(self, key: NativeKey) -> None:
        if key.id is None:
            return
        try:
            self._client.delete(self._native_key(key))
        except GoogleAPICallError as exc:
            raise StoreWriteError(f"Deleting {key} failed: {exc}") from exc

    @contextmanager
    def run_query(self, kind: str, clauses: Sequence[Clause]) -> Iterator[Iterator[Row]]:
        query, limit, offset = self._build_query(kind, clauses)
        try:
            results = query.fetch(limit=limit, offset=offset)
        except GoogleAPICallError as exc:
            raise StoreReadError(f"Querying {kind!r} failed: {exc}") from exc
        yield _rows(kind, results)

    def count(self, kind: str, clauses: Sequence[Clause]) -> int:
        """Count matches server side; limit and offset are applied to the total."""

        query, limit, offset = self._build_query(kind, clauses)
        aggregation = self._client.aggregation_query(query).count(alias=_COUNT_ALIAS)
        try:
            total = sum(
                result.value
                for batch in aggregation.fetch()
                for result in batch
                if result.alias == _COUNT_ALIAS
            )
        except GoogleAPICallError as exc:
            raise StoreReadError(f"Counting {kind!r} failed: {exc}") from exc
        remaining = max(total - (offset or 0), 0)
        return remaining if limit is None else min(remaining, limit)

    def kinds(self) -> list[str]:
        query = self._client.query(kind="__kind__")
        query.keys_only()
        try:
            names = [entity.key.id_or_name for entity in query.fetch()]
        except GoogleAPICallError as exc:
            raise StoreReadError(f"Listing kinds failed: {exc}") from exc
        # statistics kinds are reported with a double underscore prefix
        return sorted(name for name in names if not str(name).startswith("__"))

    @contextmanager
    def commit(self, *, read_only: bool = False) -> Iterator[None]:
        if self._client.current_transaction is not None:
            raise NestedTransactionError("Datastore transactions cannot be nested")
        try:
            with self._client.transaction(read_only=read_only):
                yield
        except GoogleAPICallError as exc:
            raise StoreWriteError(f"Commit failed: {exc}") from exc
        log.debug("Transaction committed")

    def close(self) -> None:
        self._client.close()

    def _native_key(self, key: NativeKey) -> datastore.Key:
        if key.id is None:
            return self._client.key(key.kind)
        return self._client.key(key.kind, key.id)

    def _native_value(self, value: object) -> object:
        if isinstance(value, NativeKey):
            return self._native_key(value)
        if isinstance(value, tuple | list):
            return [self._native_value(item) for item in value]
        return value

    def _build_query(
        self, kind: str, clauses: Sequence[Clause]
    ) -> tuple[Any, int | None, int | None]:
        query = self._client.query(kind=kind)
        orders: list[str] = []
        limit: int | None = None
        offset: int | None = None
        for clause in clauses:
            if isinstance(clause, Filter):
                query.add_filter(
                    filter=PropertyFilter(
                        clause.property,
                        NATIVE_OPERATORS[clause.operator],
                        self._native_value(clause.value),
                    )
                )
            elif isinstance(clause, Order):
                orders.append(f"-{clause.property}" if clause.descending else clause.property)
            elif isinstance(clause, Limit):
                limit = clause.count
            elif isinstance(clause, Offset):
                offset = clause.count
        if orders:
            query.order = orders
        return query, limit, offset


def _rows(kind: str, results: Any) -> Iterator[Row]:
    try:
        for entity in results:
            yield Row(NativeKey(kind, entity.key.id), dict(entity))
    except GoogleAPICallError as exc:
        raise StoreReadError(f"Reading {kind!r} rows failed: {exc}") from exc
