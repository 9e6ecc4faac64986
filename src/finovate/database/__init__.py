"""Database layer for finovate application."""

from finovate.database.base import Database
from finovate.database.factories import create_memory_database, create_sqlite_database

__all__ = ["Database", "create_memory_database", "create_sqlite_database"]
