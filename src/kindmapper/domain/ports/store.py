"""Port describing the key-value store the adapter writes to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence
    from contextlib import AbstractContextManager

    from kindmapper.core.clauses import Clause

type PropertyBag = dict[str, object]


@dataclass(frozen=True, slots=True)
class NativeKey:
    """Location of one record: the kind plus an id, or no id yet."""

    kind: str
    id: int | None = None

    @property
    def is_complete(self) -> bool:
        return self.id is not None

    def completed(self, new_id: int) -> NativeKey:
        return NativeKey(self.kind, new_id)


@dataclass(frozen=True, slots=True)
class Row:
    """A stored record as returned by lookups and queries."""

    key: NativeKey
    properties: PropertyBag


@runtime_checkable
class StoreClient(Protocol):
    """Minimal contract a store binding has to fulfil."""

    def key(self, kind: str, id: int | None = None) -> NativeKey: ...  # noqa: A002

    def save(self, key: NativeKey, properties: Mapping[str, object]) -> NativeKey:
        """Write the properties at ``key`` and return the completed key."""
        ...

    def get(self, key: NativeKey) -> Row | None: ...

    def delete(self, key: NativeKey) -> None: ...

    def run_query(
        self, kind: str, clauses: Sequence[Clause]
    ) -> AbstractContextManager[Iterator[Row]]:
        """Open a cursor over the rows matching ``clauses``; closed when the context exits."""
        ...

    def count(self, kind: str, clauses: Sequence[Clause]) -> int: ...

    def kinds(self) -> list[str]:
        """Names of the kinds holding at least one record, sorted."""
        ...

    def commit(self, *, read_only: bool = False) -> AbstractContextManager[None]:
        """Scope in which every write is committed atomically or rolled back."""
        ...

    def close(self) -> None: ...
