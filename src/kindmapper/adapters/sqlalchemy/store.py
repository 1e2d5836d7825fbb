"""Store client backed by SQLAlchemy."""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from sqlalchemy import create_engine, delete, func, insert, make_url, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from kindmapper.adapters.sqlalchemy.mappings import (
    create_all_tables,
    entity_table,
    kind_sequence_table,
)
from kindmapper.config.errors import ConfigurationError
from kindmapper.core.clauses import KEY_PROPERTY, Filter, Limit, Offset, Operator, Order
from kindmapper.domain.ports.store import NativeKey, Row
from kindmapper.errors import NestedTransactionError, StoreReadError, StoreWriteError

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from sqlalchemy import ColumnElement, Select
    from sqlalchemy.engine import Engine, Result

    from kindmapper.config.storage import DatabaseConfig
    from kindmapper.core.clauses import Clause

log = logging.getLogger(__name__)


class SqlAlchemyStore:
    """Kind/id key-value store on top of a relational database.

    Records live in a single table keyed by ``(kind, id)`` with the property bag
    stored as JSON. Ids are allocated per kind from a counter table, grow
    monotonically and are never reused, so key order is insertion order.

    Saving to an existing key overwrites the record; saving to a key that does not
    exist creates it. Property filters and orderings use SQLite's ``json_extract``,
    so only SQLite engines are supported; ``from_config`` rejects other dialects.

    The active transaction is tracked per thread. Opening a transaction while one
    is active on the same thread raises ``NestedTransactionError``.
    """

    def __init__(self, engine: Engine, *, owns_engine: bool = True) -> None:
        self._engine = engine
        self._owns_engine = owns_engine
        self._session_factory: sessionmaker[Session] = sessionmaker(
            bind=engine, expire_on_commit=False
        )
        self._local = threading.local()

    @classmethod
    def from_config(cls, config: DatabaseConfig, *, create_schema: bool = True) -> SqlAlchemyStore:
        backend = make_url(config.uri).get_backend_name()
        if backend != "sqlite":
            raise ConfigurationError(
                f"The SQL store needs a SQLite database, got {backend!r} from {config.uri!r}"
            )
        engine = create_engine(config.uri, future=True)
        if create_schema:
            try:
                create_all_tables(engine)
            except SQLAlchemyError as exc:
                engine.dispose()
                raise StoreWriteError(f"Creating the schema failed: {exc}") from exc
        return cls(engine)

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def in_transaction(self) -> bool:
        return self._active_session is not None

    def key(self, kind: str, id: int | None = None) -> NativeKey:  # noqa: A002
        return NativeKey(kind, id)

    def save(self, key: NativeKey, properties: Mapping[str, object]) -> NativeKey:
        payload = dict(properties)
        now = datetime.now(tz=UTC)
        try:
            with self._write_scope() as session:
                if key.id is None:
                    key = key.completed(self._allocate_id(session, key.kind))
                    self._insert(session, key, payload, now)
                else:
                    result = session.execute(
                        update(entity_table)
                        .where(entity_table.c.kind == key.kind)
                        .where(entity_table.c.id == key.id)
                        .values(properties=payload, updated_at=now)
                    )
                    if result.rowcount == 0:  # type: ignore[attr-defined]
                        self._insert(session, key, payload, now)
                    self._reserve_id(session, key.kind, key.id)
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Saving {key} failed: {exc}") from exc
        return key

    def get(self, key: NativeKey) -> Row | None:
        if key.id is None:
            return None
        statement = (
            select(entity_table.c.properties)
            .where(entity_table.c.kind == key.kind)
            .where(entity_table.c.id == key.id)
        )
        try:
            with self._read_scope() as session:
                properties = session.execute(statement).scalar_one_or_none()
        except SQLAlchemyError as exc:
            raise StoreReadError(f"Reading {key} failed: {exc}") from exc
        if properties is None:
            return None
        return Row(key, dict(properties))

    def delete(self, key: NativeKey) -> None:
        if key.id is None:
            return
        try:
            with self._write_scope() as session:
                session.execute(
                    delete(entity_table)
                    .where(entity_table.c.kind == key.kind)
                    .where(entity_table.c.id == key.id)
                )
        except SQLAlchemyError as exc:
            raise StoreWriteError(f"Deleting {key} failed: {exc}") from exc

    @contextmanager
    def run_query(self, kind: str, clauses: Sequence[Clause]) -> Iterator[Iterator[Row]]:
        statement = self._select(kind, clauses)
        with self._read_scope() as session:
            try:
                result = session.execute(statement)
            except SQLAlchemyError as exc:
                raise StoreReadError(f"Querying {kind!r} failed: {exc}") from exc
            try:
                yield _rows(kind, result)
            finally:
                result.close()

    def count(self, kind: str, clauses: Sequence[Clause]) -> int:
        statement = select(func.count()).select_from(self._select(kind, clauses).subquery())
        try:
            with self._read_scope() as session:
                return session.execute(statement).scalar_one()
        except SQLAlchemyError as exc:
            raise StoreReadError(f"Counting {kind!r} failed: {exc}") from exc

    @contextmanager
    def commit(self, *, read_only: bool = False) -> Iterator[None]:
        if self._active_session is not None:
            raise NestedTransactionError("A transaction is already active on this thread")
        session = self._session_factory()
        self._local.session = session
        self._local.read_only = read_only
        try:
            yield
        except BaseException:
            session.rollback()
            log.debug("Transaction rolled back")
            raise
        else:
            if read_only:
                session.rollback()
            else:
                try:
                    session.commit()
                except SQLAlchemyError as exc:
                    session.rollback()
                    raise StoreWriteError(f"Commit failed: {exc}") from exc
                log.debug("Transaction committed")
        finally:
            self._local.session = None
            self._local.read_only = False
            session.close()

    def kinds(self) -> list[str]:
        statement = select(entity_table.c.kind).distinct().order_by(entity_table.c.kind)
        try:
            with self._read_scope() as session:
                return list(session.execute(statement).scalars())
        except SQLAlchemyError as exc:
            raise StoreReadError(f"Listing kinds failed: {exc}") from exc

    def close(self) -> None:
        if self._owns_engine:
            self._engine.dispose()

    # Sessions ------------------------------------------------------------------

    @property
    def _active_session(self) -> Session | None:
        return getattr(self._local, "session", None)

    @contextmanager
    def _read_scope(self) -> Iterator[Session]:
        active = self._active_session
        if active is not None:
            yield active
            return
        with self._session_factory() as session:
            yield session

    @contextmanager
    def _write_scope(self) -> Iterator[Session]:
        active = self._active_session
        if active is not None:
            if getattr(self._local, "read_only", False):
                raise StoreWriteError("Cannot write inside a read-only transaction")
            yield active
            return
        with self._session_factory.begin() as session:
            yield session

    # Ids -----------------------------------------------------------------------

    def _allocate_id(self, session: Session, kind: str) -> int:
        last_id = self._last_id(session, kind)
        new_id = 1 if last_id is None else last_id + 1
        self._store_last_id(session, kind, new_id, exists=last_id is not None)
        return new_id

    def _reserve_id(self, session: Session, kind: str, identity: int) -> None:
        last_id = self._last_id(session, kind)
        if last_id is None or identity > last_id:
            self._store_last_id(session, kind, identity, exists=last_id is not None)

    @staticmethod
    def _last_id(session: Session, kind: str) -> int | None:
        return session.execute(
            select(kind_sequence_table.c.last_id).where(kind_sequence_table.c.kind == kind)
        ).scalar_one_or_none()

    @staticmethod
    def _store_last_id(session: Session, kind: str, value: int, *, exists: bool) -> None:
        if exists:
            session.execute(
                update(kind_sequence_table)
                .where(kind_sequence_table.c.kind == kind)
                .values(last_id=value)
            )
        else:
            session.execute(insert(kind_sequence_table).values(kind=kind, last_id=value))

    @staticmethod
    def _insert(session: Session, key: NativeKey, payload: dict[str, Any], now: datetime) -> None:
        session.execute(
            insert(entity_table).values(
                kind=key.kind, id=key.id, properties=payload, updated_at=now
            )
        )

    # Queries -------------------------------------------------------------------

    def _select(self, kind: str, clauses: Sequence[Clause]) -> Select[Any]:
        statement = select(entity_table.c.id, entity_table.c.properties).where(
            entity_table.c.kind == kind
        )
        for clause in clauses:
            if isinstance(clause, Filter):
                statement = statement.where(_condition(clause))
            elif isinstance(clause, Order):
                column = _column(clause.property)
                statement = statement.order_by(column.desc() if clause.descending else column)
            elif isinstance(clause, Limit):
                statement = statement.limit(clause.count)
            elif isinstance(clause, Offset):
                statement = statement.offset(clause.count)
        # key order breaks ties and is the order of unordered queries
        return statement.order_by(entity_table.c.id)


def _rows(kind: str, result: Result[Any]) -> Iterator[Row]:
    try:
        for record in result:
            yield Row(NativeKey(kind, record.id), dict(record.properties))
    except SQLAlchemyError as exc:
        raise StoreReadError(f"Reading {kind!r} rows failed: {exc}") from exc


def _json_path(name: str) -> str:
    escaped = name.replace('"', '\\"')
    return f'$."{escaped}"'


def _column(name: str) -> ColumnElement[Any]:
    if name == KEY_PROPERTY:
        return entity_table.c.id
    return func.json_extract(entity_table.c.properties, _json_path(name))


def _key_value(value: object) -> object:
    return value.id if isinstance(value, NativeKey) else value


def _condition(clause: Filter) -> ColumnElement[bool]:
    column = _column(clause.property)
    value = clause.value
    if clause.property == KEY_PROPERTY:
        if clause.operator in {Operator.IN, Operator.NOT_IN}:
            value = tuple(_key_value(item) for item in _members(value))
        else:
            value = _key_value(value)

    operator = clause.operator
    if operator is Operator.EQ:
        return column.is_(None) if value is None else column == value
    if operator is Operator.NE:
        return column.is_not(None) if value is None else column != value
    if operator is Operator.LT:
        return column < value
    if operator is Operator.LE:
        return column <= value
    if operator is Operator.GT:
        return column > value
    if operator is Operator.GE:
        return column >= value
    if operator is Operator.IN:
        return column.in_(list(_members(value)))
    return column.not_in(list(_members(value)))


def _members(value: object) -> Iterable[object]:
    if isinstance(value, tuple | list | set | frozenset):
        return value  # type: ignore[return-value]
    return (value,)
