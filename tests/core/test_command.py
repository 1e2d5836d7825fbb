from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from kindmapper.core.collection import Collection
from kindmapper.core.command import Command
from kindmapper.errors import IdentityRequiredError
from tests.helpers.entities import Widget
from tests.helpers.stores import RecordingStore

if TYPE_CHECKING:
    from kindmapper.adapters.sqlalchemy import SqlAlchemyStore
    from kindmapper.domain.ports.store import StoreClient
    from kindmapper.mapping import Mapper


def _widgets(store: StoreClient, mapper: Mapper) -> Command[Widget]:
    return Command(Collection(store, mapper.resolve("widgets")))


def test_widget_lifecycle(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)

    widget = command.create(Widget(name="A"))
    assert widget.id == 1

    command.update(Widget(name="B", id=1))
    found = command.find(1)
    assert found is not None
    assert found.name == "B"

    command.delete(Widget(name="B", id=1))
    assert command.find(1) is None


def test_create_then_find_round_trips_attributes(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)
    widget = command.create(Widget(name="Sprocket", colour="red", size=7))

    found = command.find(widget.id)

    assert found == widget
    assert found is not widget


def test_persist_creates_when_id_is_missing(store: SqlAlchemyStore, mapper: Mapper) -> None:
    recorder = RecordingStore(store)
    command = _widgets(recorder, mapper)

    widget = command.persist(Widget(name="A"))

    assert widget.id == 1
    assert recorder.calls == ["save"]
    assert command.find(1) == widget


def test_persist_updates_when_id_is_present(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)
    widget = command.create(Widget(name="A"))

    widget.name = "A2"
    persisted = command.persist(widget)

    assert persisted.id == widget.id
    assert store.count("widgets", ()) == 1
    found = command.find(widget.id)
    assert found is not None
    assert found.name == "A2"


def test_update_of_missing_id_creates_the_record(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)

    command.update(Widget(name="Ghost", id=17))

    found = command.find(17)
    assert found is not None
    assert found.name == "Ghost"


def test_update_overwrites_the_whole_record(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)
    widget = command.create(Widget(name="A", colour="red", size=3))

    command.update(Widget(name="A", id=widget.id))

    found = command.find(widget.id)
    assert found == Widget(name="A", colour="grey", size=0, id=widget.id)


def test_delete_of_missing_record_is_not_an_error(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)

    command.delete(Widget(name="nobody", id=404))
    command.delete(Widget(name="nobody", id=404))

    assert command.find(404) is None


def test_find_accepts_numeric_strings(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)
    command.create(Widget(name="A"))

    found = command.find("1")

    assert found is not None
    assert found.id == 1


@pytest.mark.parametrize("identity", [None, 0, "abc"])
def test_find_requires_usable_id(
    store: SqlAlchemyStore, mapper: Mapper, identity: object
) -> None:
    with pytest.raises(IdentityRequiredError):
        _widgets(store, mapper).find(identity)


def test_first_and_last_of_empty_collection(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)

    assert command.first() is None
    assert command.last() is None


def test_first_and_last_follow_key_order(store: SqlAlchemyStore, mapper: Mapper) -> None:
    command = _widgets(store, mapper)
    a = command.create(Widget(name="A"))
    command.create(Widget(name="B"))
    c = command.create(Widget(name="C"))

    assert command.first() == a
    assert command.last() == c


def test_first_and_last_coincide_for_single_record(
    store: SqlAlchemyStore, mapper: Mapper
) -> None:
    command = _widgets(store, mapper)
    only = command.create(Widget(name="Solo"))

    assert command.first() == only
    assert command.last() == only


def test_command_keeps_no_state_between_calls(store: SqlAlchemyStore, mapper: Mapper) -> None:
    recorder = RecordingStore(store)
    command = _widgets(recorder, mapper)
    command.create(Widget(name="A"))

    command.find(1)
    command.find(1)

    assert recorder.calls == ["save", "get", "get"]
