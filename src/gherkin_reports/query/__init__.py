"""Queries over an indexed message stream."""

from .index import EventIndex, Lineage


__all__ = ["EventIndex", "Lineage"]
