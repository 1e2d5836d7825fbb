"""Domain port definitions for adapters."""

from __future__ import annotations

from .mapping import CollectionResolver, MappedCollection
from .store import NativeKey, PropertyBag, Row, StoreClient

__all__ = [
    "CollectionResolver",
    "MappedCollection",
    "NativeKey",
    "PropertyBag",
    "Row",
    "StoreClient",
]
