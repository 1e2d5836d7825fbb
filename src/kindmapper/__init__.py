"""Data-mapper adapter for schemaless kind/id key-value stores."""

from __future__ import annotations

from .core import Adapter, Collection, Command, Operator, Query
from .domain.ports import NativeKey, Row, StoreClient
from .errors import (
    AdapterError,
    IdentityRequiredError,
    MappingError,
    NestedTransactionError,
    StoreError,
    StoreReadError,
    StoreWriteError,
    TransactionError,
    UnmappedCollectionError,
    UnsupportedOperationError,
)
from .mapping import DataclassCollection, Mapper

__all__ = [
    "Adapter",
    "AdapterError",
    "Collection",
    "Command",
    "DataclassCollection",
    "IdentityRequiredError",
    "Mapper",
    "MappingError",
    "NativeKey",
    "NestedTransactionError",
    "Operator",
    "Query",
    "Row",
    "StoreClient",
    "StoreError",
    "StoreReadError",
    "StoreWriteError",
    "TransactionError",
    "UnmappedCollectionError",
    "UnsupportedOperationError",
]
