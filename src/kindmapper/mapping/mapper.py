"""Dataclass mapper: serializes entities to property bags with pydantic."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from kindmapper.errors import MappingError, UnmappedCollectionError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from kindmapper.domain.ports.store import PropertyBag

log = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class DataclassCollection[TEntity]:
    """Maps a (non-frozen) dataclass onto a store kind.

    ``properties`` renames attributes on their way to the store
    (``{"attribute": "property"}``); attributes not listed keep their name.
    Values are serialized in pydantic's JSON mode, so the property bag only
    holds JSON-compatible values.
    """

    name: str
    entity: type[TEntity]
    kind: str
    identity: str = "id"
    properties: Mapping[str, str] = field(default_factory=dict)
    _adapter: TypeAdapter[TEntity] = field(init=False, repr=False, compare=False)
    _attributes: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not (isinstance(self.entity, type) and dataclasses.is_dataclass(self.entity)):
            raise MappingError(f"Collection {self.name!r} needs a dataclass, got {self.entity!r}")
        attributes = {entity_field.name for entity_field in dataclasses.fields(self.entity)}
        if self.identity not in attributes:
            raise MappingError(
                f"{self.entity.__name__} has no identity attribute {self.identity!r}"
            )
        unknown = set(self.properties) - attributes
        if unknown:
            raise MappingError(
                f"Cannot rename unknown attributes of {self.entity.__name__}: "
                f"{', '.join(sorted(unknown))}"
            )
        if self.identity in self.properties:
            raise MappingError(f"Identity attribute {self.identity!r} cannot be renamed")
        renamed = {attribute: self.properties.get(attribute, attribute) for attribute in attributes}
        if len(set(renamed.values())) != len(renamed):
            raise MappingError(f"Property names of {self.name!r} collide: {renamed}")

        object.__setattr__(self, "properties", MappingProxyType(dict(self.properties)))
        object.__setattr__(
            self,
            "_attributes",
            MappingProxyType({prop: attribute for attribute, prop in renamed.items()}),
        )
        object.__setattr__(self, "_adapter", TypeAdapter(self.entity))

    def serialize(self, entity: TEntity) -> PropertyBag:
        if not isinstance(entity, self.entity):
            raise MappingError(
                f"Collection {self.name!r} expects {self.entity.__name__}, "
                f"got {type(entity).__name__}"
            )
        try:
            dumped: dict[str, Any] = self._adapter.dump_python(entity, mode="json")
        except PydanticSerializationError as exc:
            raise MappingError(f"Cannot serialize {entity!r}: {exc}") from exc
        dumped.pop(self.identity, None)
        return {self.property_name(attribute): value for attribute, value in dumped.items()}

    def deserialize(self, properties: Mapping[str, object]) -> TEntity:
        values = {self._attributes.get(prop, prop): value for prop, value in properties.items()}
        try:
            return self._adapter.validate_python(values)
        except ValidationError as exc:
            raise MappingError(
                f"Cannot load {self.entity.__name__} from {self.kind!r}: {exc}"
            ) from exc

    def property_name(self, attribute: str) -> str:
        if attribute == self.identity:
            return attribute
        prop = self.properties.get(attribute, attribute)
        if prop not in self._attributes:
            raise MappingError(f"{self.entity.__name__} has no attribute {attribute!r}")
        return prop

    def dump_value(self, value: object) -> object:
        try:
            return to_jsonable_python(value)
        except PydanticSerializationError as exc:
            raise MappingError(f"Cannot use {value!r} as a filter value: {exc}") from exc


class Mapper:
    """Registry of mapped collections keyed by collection name."""

    def __init__(self) -> None:
        self._collections: dict[str, DataclassCollection[Any]] = {}

    def collection[TEntity](
        self,
        name: str,
        entity: type[TEntity],
        *,
        kind: str | None = None,
        identity: str = "id",
        properties: Mapping[str, str] | None = None,
    ) -> DataclassCollection[TEntity]:
        if name in self._collections:
            raise MappingError(f"Collection {name!r} is already mapped")
        mapped = DataclassCollection(
            name=name,
            entity=entity,
            kind=kind or name,
            identity=identity,
            properties=properties or {},
        )
        self._collections[name] = mapped
        log.info("Mapped collection %s to kind %s", name, mapped.kind)
        return mapped

    def resolve(self, name: str) -> DataclassCollection[Any]:
        try:
            return self._collections[name]
        except KeyError:
            raise UnmappedCollectionError(name) from None

    def collections(self) -> Mapping[str, DataclassCollection[Any]]:
        return MappingProxyType(self._collections)

    def __contains__(self, name: object) -> bool:
        return name in self._collections
