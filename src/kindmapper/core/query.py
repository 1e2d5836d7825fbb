"""Lazy, chainable queries over one collection."""

from __future__ import annotations

import logging
from contextlib import closing
from typing import TYPE_CHECKING, Self

from kindmapper.core.clauses import KEY_PROPERTY, Filter, Limit, Offset, Operator, Order
from kindmapper.core.collection import coerce_identity, load_entity

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Iterator, Sequence

    from kindmapper.core.clauses import Clause
    from kindmapper.domain.ports.mapping import MappedCollection
    from kindmapper.domain.ports.store import StoreClient

log = logging.getLogger(__name__)

_MEMBERSHIP = frozenset({Operator.IN, Operator.NOT_IN})


class Query[TEntity]:
    """Accumulates clauses and runs them against the store on demand.

    Builder methods only record clauses; the store is contacted by iteration and
    by the terminal methods (``all``, ``first``, ``last``, ``count``, ``exists``).
    Every terminal call issues a fresh store call, results are never cached.

    ``configure`` is called once with the new query so callers can declare the
    clauses up front::

        query = adapter.query("widgets", lambda q: q.where(colour="red").desc("name"))
    """

    def __init__(
        self,
        store: StoreClient,
        kind: str,
        mapped_collection: MappedCollection[TEntity],
        configure: Callable[[Query[TEntity]], object] | None = None,
    ) -> None:
        self._store = store
        self._kind = kind
        self._mapped_collection = mapped_collection
        self._clauses: list[Clause] = []
        if configure is not None:
            configure(self)

    @property
    def kind(self) -> str:
        return self._kind

    @property
    def clauses(self) -> tuple[Clause, ...]:
        return tuple(self._clauses)

    # Builder -------------------------------------------------------------------

    def where(self, **conditions: object) -> Self:
        for attribute, value in conditions.items():
            self._add_filter(attribute, Operator.EQ, value)
        return self

    def exclude(self, **conditions: object) -> Self:
        for attribute, value in conditions.items():
            self._add_filter(attribute, Operator.NE, value)
        return self

    def filter(self, attribute: str, operator: Operator | str, value: object) -> Self:
        self._add_filter(attribute, Operator(operator), value)
        return self

    def order(self, *attributes: str) -> Self:
        self._clauses.extend(Order(self._property(attribute)) for attribute in attributes)
        return self

    def desc(self, *attributes: str) -> Self:
        self._clauses.extend(
            Order(self._property(attribute), descending=True) for attribute in attributes
        )
        return self

    def limit(self, count: int) -> Self:
        if count < 0:
            raise ValueError(f"Limit must be non-negative, got {count}")
        self._clauses.append(Limit(count))
        return self

    def offset(self, count: int) -> Self:
        if count < 0:
            raise ValueError(f"Offset must be non-negative, got {count}")
        self._clauses.append(Offset(count))
        return self

    # Execution -----------------------------------------------------------------

    def __iter__(self) -> Iterator[TEntity]:
        return self._execute(self.clauses)

    def all(self) -> list[TEntity]:
        return list(self)

    def first(self) -> TEntity | None:
        return self._first(self.clauses)

    def last(self) -> TEntity | None:
        """Return the final match in the query's order, or by key when unordered."""

        if any(isinstance(clause, Limit | Offset) for clause in self._clauses):
            # the window has to be applied in the declared order first
            entities = self.all()
            return entities[-1] if entities else None

        clauses = list(self._clauses)
        if not any(
            isinstance(clause, Order) and clause.property == KEY_PROPERTY for clause in clauses
        ):
            # stores break ties by ascending key, which has to flip as well
            clauses.append(Order(KEY_PROPERTY))
        return self._first(
            [clause.reversed() if isinstance(clause, Order) else clause for clause in clauses]
        )

    def count(self) -> int:
        return self._store.count(self._kind, self.clauses)

    def exists(self) -> bool:
        return self.first() is not None

    def _first(self, clauses: Sequence[Clause]) -> TEntity | None:
        limits = [clause.count for clause in clauses if isinstance(clause, Limit)]
        window = min(limits[-1], 1) if limits else 1
        with closing(self._execute([*clauses, Limit(window)])) as entities:
            return next(entities, None)

    def _execute(self, clauses: Sequence[Clause]) -> Iterator[TEntity]:
        log.debug("Querying %s with %s", self._kind, clauses)
        with self._store.run_query(self._kind, clauses) as rows:
            for row in rows:
                yield load_entity(self._mapped_collection, row)

    # Translation ---------------------------------------------------------------

    def _add_filter(self, attribute: str, operator: Operator, value: object) -> None:
        if operator in _MEMBERSHIP:
            converted: object = tuple(
                self._convert(attribute, item) for item in _as_iterable(value)
            )
        else:
            converted = self._convert(attribute, value)
        self._clauses.append(Filter(self._property(attribute), operator, converted))

    def _property(self, attribute: str) -> str:
        if attribute == self._mapped_collection.identity:
            return KEY_PROPERTY
        return self._mapped_collection.property_name(attribute)

    def _convert(self, attribute: str, value: object) -> object:
        if attribute == self._mapped_collection.identity:
            return self._store.key(self._kind, coerce_identity(value))
        return self._mapped_collection.dump_value(value)


def _as_iterable(value: object) -> Iterable[object]:
    if isinstance(value, str | bytes) or not hasattr(value, "__iter__"):
        raise TypeError(f"Membership filters need a collection of values, got {value!r}")
    return value  # type: ignore[return-value]
