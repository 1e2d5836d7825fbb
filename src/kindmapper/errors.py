"""Error types raised by the adapter and its store bindings."""

from __future__ import annotations


class AdapterError(Exception):
    """Base class for every error raised by kindmapper."""


class MappingError(AdapterError):
    """Raised when an entity cannot be serialized or a property bag deserialized."""


class UnmappedCollectionError(MappingError):
    """Raised when a collection name has no mapping registered."""

    def __init__(self, name: str) -> None:
        super().__init__(f"Collection {name!r} is not mapped")
        self.name = name


class StoreError(AdapterError):
    """Raised when the underlying store reports a failure."""


class StoreReadError(StoreError):
    """Raised when a lookup or query against the store fails."""


class StoreWriteError(StoreError):
    """Raised when a save, delete or commit against the store fails."""


class IdentityRequiredError(AdapterError, ValueError):
    """Raised when an operation needs an entity id and none is usable."""


class UnsupportedOperationError(AdapterError, NotImplementedError):
    """Raised by operations this store binding does not implement."""

    def __init__(self, operation: str) -> None:
        super().__init__(f"{operation} is not supported by this adapter")
        self.operation = operation


class TransactionError(AdapterError):
    """Raised when a transaction scope is misused."""


class NestedTransactionError(TransactionError):
    """Raised when a transaction is opened while another one is active."""
