"""Google Cloud Datastore store binding (needs the ``gcloud`` extra)."""

from __future__ import annotations

from .store import NATIVE_OPERATORS, DatastoreStore

__all__ = ["NATIVE_OPERATORS", "DatastoreStore"]
