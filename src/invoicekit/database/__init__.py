"""Database layer for invoicekit."""

from invoicekit.database.base import Database
from invoicekit.database.factories import create_database, create_sqlite_database

__all__ = ["Database", "create_database", "create_sqlite_database"]
