"""Database layer for draftledger application."""

from draftledger.database.base import Database
from draftledger.database.factories import create_sqlite_database, create_memory_database

__all__ = ["Database", "create_sqlite_database", "create_memory_database"]
