"""Port describing how entity types are mapped onto store kinds."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from kindmapper.domain.ports.store import PropertyBag


@runtime_checkable
class MappedCollection[TEntity](Protocol):
    """Mapping metadata for one collection."""

    @property
    def name(self) -> str: ...

    @property
    def kind(self) -> str:
        """Native store name the collection is written under."""
        ...

    @property
    def identity(self) -> str:
        """Entity attribute holding the id; never part of the property bag."""
        ...

    def serialize(self, entity: TEntity) -> PropertyBag: ...

    def deserialize(self, properties: Mapping[str, object]) -> TEntity: ...

    def property_name(self, attribute: str) -> str: ...

    def dump_value(self, value: object) -> object:
        """Convert a filter value the same way attribute values are serialized."""
        ...


@runtime_checkable
class CollectionResolver(Protocol):
    """Looks up mapped collections by name."""

    def resolve(self, name: str) -> MappedCollection[object]: ...

    def collections(self) -> Mapping[str, MappedCollection[object]]: ...
