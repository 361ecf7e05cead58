"""
Database-backed message stores.

These satisfy the same MessageStore contract as the file store but leave
durability and indexing to the database engine.
"""

from .duckdb import DuckDBStore, DuckDBStoreFactory

__all__ = ["DuckDBStore", "DuckDBStoreFactory"]
