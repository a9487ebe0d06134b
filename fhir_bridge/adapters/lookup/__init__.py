"""Lookup adapters for FHIR-Bridge.

This module contains the entity stores that implement the EntityLookupPort /
EntityStorePort interfaces the reference translators resolve through.
"""

from fhir_bridge.adapters.lookup.duckdb_store import DuckDBEntityStore
from fhir_bridge.adapters.lookup.in_memory import InMemoryEntityStore

__all__ = ["DuckDBEntityStore", "InMemoryEntityStore"]
