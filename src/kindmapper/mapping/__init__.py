"""Entity mapping for kindmapper."""

from __future__ import annotations

from .mapper import DataclassCollection, Mapper

__all__ = ["DataclassCollection", "Mapper"]
