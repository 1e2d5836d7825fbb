from __future__ import annotations

from typing import TYPE_CHECKING

import pytest
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine  # noqa: TC002

from kindmapper.adapters.sqlalchemy import SqlAlchemyStore, create_all_tables
from kindmapper.core.adapter import Adapter
from kindmapper.mapping import Mapper
from tests.helpers.entities import Blob, Gadget, Widget
from tests.helpers.stores import RecordingStore

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    engine = create_engine(f"sqlite+pysqlite:///{tmp_path / 'store.db'}", future=True)
    create_all_tables(engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture
def store(sqlite_engine: Engine) -> SqlAlchemyStore:
    return SqlAlchemyStore(sqlite_engine, owns_engine=False)


@pytest.fixture
def recording_store(store: SqlAlchemyStore) -> RecordingStore:
    return RecordingStore(store)


@pytest.fixture
def mapper() -> Mapper:
    mapper = Mapper()
    mapper.collection("widgets", Widget)
    mapper.collection("gadgets", Gadget, kind="Gadget", properties={"label": "title"})
    mapper.collection("blobs", Blob)
    return mapper


@pytest.fixture
def adapter(mapper: Mapper, store: SqlAlchemyStore) -> Iterator[Adapter]:
    adapter = Adapter(mapper, store)
    try:
        yield adapter
    finally:
        adapter.close()
