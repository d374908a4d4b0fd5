"""Database factory functions for creating database instances."""

import os
from typing import Optional

from fintrack.config import default_db_path
from fintrack.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks FINTRACK_DB_PATH
            environment variable, then defaults to ~/.fintrack/fintrack.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        database_path = os.environ.get("FINTRACK_DB_PATH")

    if database_path is None:
        database_path = str(default_db_path())

    return create_database(f"sqlite:///{database_path}")


def create_database(database_url: str) -> SQLAlchemyDatabase:
    """Create a database instance for any SQLAlchemy URL."""
    return SQLAlchemyDatabase(database_url)
