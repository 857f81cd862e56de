"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from draftledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks DRAFTLEDGER_DB_PATH
            environment variable, then defaults to ~/.draftledger/draftledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("DRAFTLEDGER_DB_PATH")

    if database_path is None:
        db_dir = Path.home() / ".draftledger"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "draftledger.db")

    return SQLAlchemyDatabase(f"sqlite:///{database_path}")


def create_memory_database() -> SQLAlchemyDatabase:
    """Create an in-memory SQLite database, mainly for scripting and tests."""
    return SQLAlchemyDatabase("sqlite://")
