"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Mapping, Optional

from invoicekit.database.sqlalchemy_db import SQLAlchemyDatabase

DATABASE_URL_ENV = "INVOICEKIT_DATABASE_URL"
DATABASE_PATH_ENV = "INVOICEKIT_DB_PATH"


def default_database_path(environ: Optional[Mapping[str, str]] = None) -> str:
    """Resolve the SQLite file used when no path is given.

    ``INVOICEKIT_DB_PATH`` wins; otherwise ``~/.invoicekit/invoicekit.db`` is
    used and its directory created.
    """
    environ = os.environ if environ is None else environ
    path = environ.get(DATABASE_PATH_ENV)
    if path:
        return path
    db_dir = Path.home() / ".invoicekit"
    db_dir.mkdir(exist_ok=True)
    return str(db_dir / "invoicekit.db")


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. Falls back to
            ``default_database_path()``.

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    return SQLAlchemyDatabase(f"sqlite:///{database_path or default_database_path()}")


def create_database(
    database_url: Optional[str] = None, environ: Optional[Mapping[str, str]] = None
) -> SQLAlchemyDatabase:
    """Create a database from a SQLAlchemy URL.

    Several processes serving the same tenants must share one database, so a
    server URL (for example PostgreSQL) can be supplied here or through
    ``INVOICEKIT_DATABASE_URL``. Without either, the local SQLite file is used.
    """
    environ = os.environ if environ is None else environ
    url = database_url or environ.get(DATABASE_URL_ENV)
    if url:
        return SQLAlchemyDatabase(url)
    return create_sqlite_database(default_database_path(environ))
