"""SQLite storage for clients and their logs."""

from prepcoach.db.connection import DatabaseConnection, get_db, set_db
from prepcoach.db.schema import get_schema_sql

__all__ = ["DatabaseConnection", "get_db", "get_schema_sql", "set_db"]
