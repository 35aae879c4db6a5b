"""Database connection manager for SQLite with WAL mode and proper configuration."""

import sqlite3
import logging
from pathlib import Path
from typing import Iterator, Optional
from contextlib import contextmanager

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Manages SQLite database connection with proper configuration.

    Features:
    - WAL mode so readers never block on a writer
    - Autocommit by default; explicit transactions via transaction()
    - Busy timeout on lock contention between processes
    """

    def __init__(self, db_path: Path, timeout: float = 30.0):
        """
        Initialize database connection manager.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait for a lock held by another connection
        """
        self.db_path = db_path
        self.timeout = timeout
        self._connection: Optional[sqlite3.Connection] = None

    @property
    def in_transaction(self) -> bool:
        return self._connection is not None and self._connection.in_transaction

    def connect(self) -> sqlite3.Connection:
        """
        Establish database connection with proper configuration.

        Returns:
            SQLite connection object

        Raises:
            sqlite3.Error: If connection fails
        """
        if self._connection is not None:
            return self._connection

        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        logger.debug(f"Connecting to database: {{'path': {str(self.db_path)!r}}}")
        self._connection = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
            timeout=self.timeout,
            isolation_level=None,  # statements autocommit outside explicit BEGIN
        )
        self._connection.row_factory = sqlite3.Row

        self._apply_pragmas()
        return self._connection

    def _apply_pragmas(self):
        """Apply SQLite PRAGMAs for concurrency between processes."""
        cursor = self._connection.cursor()

        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute(f"PRAGMA busy_timeout={int(self.timeout * 1000)}")
        cursor.execute("PRAGMA synchronous=NORMAL")

        cursor.close()

    @contextmanager
    def transaction(self, mode: str = "DEFERRED") -> Iterator[sqlite3.Cursor]:
        """
        Context manager for explicit transactions.

        Usage:
            with db.transaction("EXCLUSIVE") as cursor:
                cursor.execute(...)
            # Commits on success, rolls back on exception

        Args:
            mode: DEFERRED, IMMEDIATE or EXCLUSIVE
        """
        if mode not in ("DEFERRED", "IMMEDIATE", "EXCLUSIVE"):
            raise ValueError(f"Unknown transaction mode: {mode}")

        connection = self.connect()
        cursor = connection.cursor()
        try:
            cursor.execute(f"BEGIN {mode}")
            yield cursor
            connection.execute("COMMIT")
        except BaseException:
            if connection.in_transaction:
                connection.execute("ROLLBACK")
            raise
        finally:
            cursor.close()

    def execute(self, sql: str, parameters=None) -> sqlite3.Cursor:
        """
        Execute a single SQL statement.

        Args:
            sql: SQL statement
            parameters: Optional parameters for parameterized query

        Returns:
            Cursor object
        """
        connection = self.connect()
        cursor = connection.cursor()
        if parameters:
            cursor.execute(sql, parameters)
        else:
            cursor.execute(sql)
        return cursor

    def close(self):
        """Close database connection."""
        if self._connection is not None:
            try:
                cursor = self._connection.cursor()
                cursor.execute("PRAGMA wal_checkpoint(TRUNCATE)")
                cursor.close()
            except sqlite3.Error as e:
                logger.warning(f"Failed to checkpoint WAL: {{'path': {str(self.db_path)!r}, 'error': {str(e)!r}}}")

            self._connection.close()
            self._connection = None
            logger.debug(f"Database connection closed: {{'path': {str(self.db_path)!r}}}")

    def __enter__(self):
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
