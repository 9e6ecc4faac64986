"""Database factory functions for creating database instances."""

from typing import Optional

from finovate.config import get_settings
from finovate.database.memory import InMemoryDatabase
from finovate.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(
    database_path: Optional[str] = None, query_timeout_secs: Optional[float] = None
) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, uses FINOVATE_DB_PATH
            or ~/.finovate/finovate.db
        query_timeout_secs: Seconds to wait on a locked database before failing.
            If None, uses FINOVATE_QUERY_TIMEOUT

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None or query_timeout_secs is None:
        settings = get_settings()
        if database_path is None:
            database_path = settings.database_path
        if query_timeout_secs is None:
            query_timeout_secs = settings.query_timeout_secs

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url, query_timeout_secs=query_timeout_secs)


def create_memory_database() -> InMemoryDatabase:
    """Create an empty in-memory database instance."""
    return InMemoryDatabase()
