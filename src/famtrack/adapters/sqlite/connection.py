"""Connection management and transactions for the famtrack SQLite store.

A single connection is shared per process. It runs in WAL mode with foreign
keys enforced, and pending migrations are applied when it is opened.
"""

from __future__ import annotations

import atexit
import os
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from typing import TypeVar

from famtrack.adapters.sqlite.migrations import ALL_MIGRATIONS, MigrationRunner
from famtrack.models.exceptions import FatalStoreError, TransientStoreError
from famtrack.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_TRANSIENT_MARKERS = ("database is locked", "database is busy", "database table is locked")


def is_transient_error(error: sqlite3.Error) -> bool:
    """True for lock/busy contention that is worth retrying."""
    return isinstance(error, sqlite3.OperationalError) and any(
        marker in str(error).lower() for marker in _TRANSIENT_MARKERS
    )


def _backoff(attempt: int) -> None:
    # 0.1s, 0.2s, 0.4s, ...
    time.sleep(0.1 * (2**attempt))


def prepare_connection(connection: sqlite3.Connection) -> sqlite3.Connection:
    """Configure a fresh connection and bring its schema up to date."""
    connection.row_factory = sqlite3.Row
    connection.execute("PRAGMA foreign_keys = ON")
    MigrationRunner(connection).run_migrations(ALL_MIGRATIONS)
    return connection


class DatabaseConnection:
    """Process-wide owner of the SQLite connection."""

    _instance: DatabaseConnection | None = None
    _connection: sqlite3.Connection | None = None
    _db_path: Path | None = None

    def __new__(cls) -> DatabaseConnection:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def get_connection(cls, db_path: str | Path | None = None) -> sqlite3.Connection:
        """Get or create the shared connection.

        Args:
            db_path: Database file. If None, the configured path is used.

        Returns:
            Configured sqlite3.Connection
        """
        from famtrack.config import get_config_manager

        instance = cls()
        manager = get_config_manager()
        db_path = Path(db_path) if db_path is not None else manager.database_path

        if instance._connection is not None and instance._db_path == db_path:
            return instance._connection

        if instance._connection is not None:
            instance._connection.close()

        db_path.parent.mkdir(parents=True, exist_ok=True)
        is_new_database = not db_path.exists()

        connection = sqlite3.connect(
            str(db_path),
            check_same_thread=False,
            timeout=manager.config.database.timeout,
        )
        connection.execute("PRAGMA journal_mode = WAL")
        if is_new_database:
            os.chmod(db_path, 0o600)
            logger.info("created database at %s", db_path)

        prepare_connection(connection)

        instance._connection = connection
        instance._db_path = db_path
        atexit.register(cls.close_connection)
        return connection

    @classmethod
    def close_connection(cls) -> None:
        """Commit and close the shared connection, if open."""
        instance = cls()
        if instance._connection is None:
            return
        try:
            instance._connection.commit()
            instance._connection.close()
        except sqlite3.Error as e:
            logger.warning("error while closing database: %s", e)
        finally:
            instance._connection = None
            instance._db_path = None


def run_in_transaction(
    connection: sqlite3.Connection,
    work: Callable[[sqlite3.Connection], T],
    max_retries: int = 3,
) -> T:
    """Run ``work(connection)`` atomically, retrying on lock contention.

    The write lock is taken up front (``BEGIN IMMEDIATE``) so a conflicting
    writer fails at the start and the whole unit is retried. Exceptions other
    than store errors (domain errors raised by *work*) roll back and
    propagate unchanged.

    Raises:
        TransientStoreError: Contention persisted through every retry
        FatalStoreError: Constraint violation or other non-retryable failure
    """
    for attempt in range(max_retries):
        try:
            if not connection.in_transaction:
                connection.execute("BEGIN IMMEDIATE")
            result = work(connection)
            connection.commit()
            return result
        except sqlite3.Error as e:
            connection.rollback()
            if not is_transient_error(e):
                logger.error("transaction failed: %s", e)
                raise FatalStoreError(str(e)) from e
            if attempt == max_retries - 1:
                logger.error("transaction gave up after %d attempts: %s", max_retries, e)
                raise TransientStoreError(str(e)) from e
            logger.debug("transaction attempt %d hit contention, retrying", attempt + 1)
            _backoff(attempt)
        except BaseException:
            connection.rollback()
            raise
    raise TransientStoreError("Max retries exceeded")


def get_connection(db_path: str | Path | None = None) -> sqlite3.Connection:
    """Helper function to get the shared database connection."""
    return DatabaseConnection.get_connection(db_path)
