"""SQLite database layer: connection management and repository implementations."""

from accounts.db.connection import Database
from accounts.db.user_repository import SqliteUserStore

__all__ = [
    "Database",
    "SqliteUserStore",
]
