"""SQLAlchemy store binding for kindmapper."""

from __future__ import annotations

from .mappings import create_all_tables, entity_table, kind_sequence_table, metadata
from .store import SqlAlchemyStore

__all__ = [
    "SqlAlchemyStore",
    "create_all_tables",
    "entity_table",
    "kind_sequence_table",
    "metadata",
]
