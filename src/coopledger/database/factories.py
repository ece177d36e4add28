"""Database factory functions for creating database instances."""

import os
from pathlib import Path
from typing import Optional

from coopledger.config import DB_PATH_ENV_VAR
from coopledger.database.sqlalchemy_db import SQLAlchemyDatabase


def create_sqlite_database(database_path: Optional[str] = None) -> SQLAlchemyDatabase:
    """Create a SQLite database instance.

    Args:
        database_path: Path to SQLite database file. If None, checks COOPLEDGER_DB_PATH
            environment variable, then defaults to ~/.coopledger/coopledger.db

    Returns:
        SQLAlchemyDatabase instance configured for SQLite
    """
    if database_path is None:
        # Check environment variable
        database_path = os.environ.get(DB_PATH_ENV_VAR)

    if database_path is None:
        # Default to ~/.coopledger/coopledger.db
        home = Path.home()
        db_dir = home / ".coopledger"
        db_dir.mkdir(exist_ok=True)
        database_path = str(db_dir / "coopledger.db")

    database_url = f"sqlite:///{database_path}"
    return SQLAlchemyDatabase(database_url)
