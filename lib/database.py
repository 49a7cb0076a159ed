# =============================================================================
# lib/database.py - Storage Initialization
# =============================================================================
# Prepares the SQLite database the handler groups use. It runs once, from
# the application lifespan, before the server accepts connections.
#
# Table creation belongs to the handler groups; this module only makes sure
# the database file can be opened and sets connection-wide pragmas.
#
# Failures are not caught: a database that cannot be opened aborts startup.
# =============================================================================

import logging
import sqlite3
from contextlib import closing
from pathlib import Path

logger = logging.getLogger(__name__)


class DatabaseInitError(RuntimeError):
    """Raised when the database file cannot be created or opened."""

    def __init__(self, path: Path, error: str):
        super().__init__(f"Failed to initialize database at {path}: {error}")
        self.path = path
        self.error = error


def initialize_database(database_path: Path) -> Path:
    """
    Create the database file (and its directory) if needed.

    Args:
        database_path: Location of the SQLite file

    Returns:
        The resolved database path

    Raises:
        DatabaseInitError: If the file cannot be created or opened
    """
    path = Path(database_path).resolve()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with closing(sqlite3.connect(path)) as connection:
            connection.execute("PRAGMA journal_mode=WAL")
            connection.execute("PRAGMA foreign_keys=ON")
            connection.commit()
    except (OSError, sqlite3.Error) as e:
        raise DatabaseInitError(path, str(e)) from e

    logger.info(f"Database ready at {path}")
    return path
