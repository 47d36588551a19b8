"""
SQLite Storage Package

Modular SQLite-backed query record store.

Public API:
- SQLiteQueryStore: Main facade for storage operations

Internal Modules:
- schema: Table definitions and initialization
- persistence: Connection management, transactions, metadata
- records: Query record CRUD and aggregation
- config: Configuration constants
"""

from querytrail.storage.sqlite.facade import SQLiteQueryStore

__all__ = ['SQLiteQueryStore']
