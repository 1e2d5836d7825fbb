"""Store-agnostic adapter core: collections, commands, queries and the facade."""

from __future__ import annotations

from .adapter import Adapter
from .clauses import KEY_PROPERTY, Clause, Filter, Limit, Offset, Operator, Order
from .collection import Collection
from .command import Command
from .query import Query

__all__ = [
    "KEY_PROPERTY",
    "Adapter",
    "Clause",
    "Collection",
    "Command",
    "Filter",
    "Limit",
    "Offset",
    "Operator",
    "Order",
    "Query",
]
