from __future__ import annotations

from dataclasses import dataclass
from datetime import date

import pytest

from kindmapper.domain.ports.mapping import CollectionResolver, MappedCollection
from kindmapper.errors import MappingError, UnmappedCollectionError
from kindmapper.mapping import DataclassCollection, Mapper
from tests.helpers.entities import Blob, Gadget, Widget


def test_mapper_satisfies_the_resolver_port(mapper: Mapper) -> None:
    assert isinstance(mapper, CollectionResolver)
    assert isinstance(mapper.resolve("widgets"), MappedCollection)
    assert set(mapper.collections()) == {"widgets", "gadgets", "blobs"}
    assert "widgets" in mapper
    assert "sprockets" not in mapper


def test_kind_defaults_to_collection_name(mapper: Mapper) -> None:
    assert mapper.resolve("widgets").kind == "widgets"
    assert mapper.resolve("gadgets").kind == "Gadget"


def test_serialize_renames_properties_and_drops_identity(mapper: Mapper) -> None:
    gadgets = mapper.resolve("gadgets")

    properties = gadgets.serialize(
        Gadget(label="Phone", tags=["mobile"], released_on=date(2024, 2, 1), id=9)
    )

    assert properties == {"title": "Phone", "tags": ["mobile"], "released_on": "2024-02-01"}


def test_deserialize_restores_attribute_names(mapper: Mapper) -> None:
    gadgets = mapper.resolve("gadgets")

    gadget = gadgets.deserialize(
        {"title": "Phone", "tags": ["mobile"], "released_on": "2024-02-01", "id": 9}
    )

    assert gadget == Gadget(label="Phone", tags=["mobile"], released_on=date(2024, 2, 1), id=9)


def test_deserialize_ignores_unknown_properties(mapper: Mapper) -> None:
    widget = mapper.resolve("widgets").deserialize({"name": "A", "legacy_flag": True, "id": 1})

    assert widget == Widget(name="A", id=1)


def test_deserialize_rejects_mismatched_properties(mapper: Mapper) -> None:
    with pytest.raises(MappingError, match="Widget"):
        mapper.resolve("widgets").deserialize({"name": {"nested": "value"}, "id": 1})


def test_serialize_rejects_other_entity_types(mapper: Mapper) -> None:
    with pytest.raises(MappingError, match="expects Widget"):
        mapper.resolve("widgets").serialize(Gadget(label="Phone"))


def test_serialize_rejects_unsupported_values(mapper: Mapper) -> None:
    with pytest.raises(MappingError):
        mapper.resolve("blobs").serialize(Blob(payload=object()))


def test_property_name_checks_attributes(mapper: Mapper) -> None:
    gadgets = mapper.resolve("gadgets")

    assert gadgets.property_name("label") == "title"
    assert gadgets.property_name("tags") == "tags"
    assert gadgets.property_name("id") == "id"
    with pytest.raises(MappingError):
        gadgets.property_name("colour")


def test_dump_value_matches_serialized_form(mapper: Mapper) -> None:
    gadgets = mapper.resolve("gadgets")

    assert gadgets.dump_value(date(2024, 2, 1)) == "2024-02-01"
    assert gadgets.dump_value(3) == 3
    with pytest.raises(MappingError):
        gadgets.dump_value(object())


def test_collection_names_are_unique(mapper: Mapper) -> None:
    with pytest.raises(MappingError, match="already mapped"):
        mapper.collection("widgets", Widget)


def test_resolve_unknown_collection(mapper: Mapper) -> None:
    with pytest.raises(UnmappedCollectionError) as exc:
        mapper.resolve("sprockets")

    assert exc.value.name == "sprockets"


class NotADataclass:
    id: int | None = None


@dataclass
class Anonymous:
    name: str


@pytest.mark.parametrize(
    ("entity", "options", "message"),
    [
        (NotADataclass, {}, "needs a dataclass"),
        (Anonymous, {}, "no identity attribute"),
        (Widget, {"properties": {"weight": "w"}}, "unknown attributes"),
        (Widget, {"properties": {"id": "key"}}, "cannot be renamed"),
        (Widget, {"properties": {"colour": "name"}}, "collide"),
    ],
)
def test_invalid_mappings_fail_at_registration(
    entity: type, options: dict[str, object], message: str
) -> None:
    with pytest.raises(MappingError, match=message):
        DataclassCollection(name="things", entity=entity, kind="Thing", **options)  # type: ignore[arg-type]
