"""Store-neutral query clauses.

Queries hand these to the store binding untouched, in the order they were
declared. Bindings translate them to their native query primitives.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Final

KEY_PROPERTY: Final[str] = "__key__"


class Operator(StrEnum):
    EQ = "="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    IN = "in"
    NOT_IN = "not_in"


@dataclass(frozen=True, slots=True)
class Filter:
    property: str
    operator: Operator
    value: object


@dataclass(frozen=True, slots=True)
class Order:
    property: str
    descending: bool = False

    def reversed(self) -> Order:
        return Order(self.property, descending=not self.descending)


@dataclass(frozen=True, slots=True)
class Limit:
    count: int


@dataclass(frozen=True, slots=True)
class Offset:
    count: int


type Clause = Filter | Order | Limit | Offset
