"""Thread-safe SQLite connection pool used by the SQLite store backend."""

import sqlite3
import threading
from queue import Queue, Empty
from contextlib import contextmanager
import logging
from typing import Generator

from advisor.errors import StoreConnectionError

logger = logging.getLogger(__name__)


class ConnectionPool:
    """Thread-safe pool of autocommit SQLite connections.

    Index metadata reads for several tables run concurrently on a thread
    pool, so each worker borrows its own connection instead of sharing one.
    """

    def __init__(self, db_path: str, max_connections: int = 5, timeout: int = 10):
        """Initialize connection pool.

        Args:
            db_path: Path to the SQLite database file
            max_connections: Maximum number of connections to maintain
            timeout: Timeout in seconds when waiting for a connection
        """
        self.db_path = db_path
        self.max_connections = max_connections
        self.timeout = timeout
        self._pool: Queue = Queue(maxsize=max_connections)
        self._lock = threading.Lock()
        self._created = 0
        self._closed = False

    def _create_connection(self) -> sqlite3.Connection:
        """Open a configured connection.

        Raises:
            StoreConnectionError: If the database file cannot be opened
        """
        try:
            conn = sqlite3.connect(self.db_path, check_same_thread=False,
                                   isolation_level=None, timeout=self.timeout)
            conn.row_factory = sqlite3.Row
            conn.execute("PRAGMA journal_mode = WAL")
            conn.execute("PRAGMA busy_timeout = 5000")
        except sqlite3.Error as e:
            raise StoreConnectionError(f"Cannot open SQLite database {self.db_path}: {e}") from e
        return conn

    @contextmanager
    def get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Borrow a connection; it returns to the pool when the block exits.

        Raises:
            StoreConnectionError: If the pool is closed or a connection cannot be opened
            TimeoutError: If no connection frees up within the timeout
        """
        if self._closed:
            raise StoreConnectionError("Connection pool is closed")

        conn = None
        try:
            try:
                conn = self._pool.get_nowait()
            except Empty:
                with self._lock:
                    can_create = self._created < self.max_connections
                    if can_create:
                        self._created += 1
                if can_create:
                    try:
                        conn = self._create_connection()
                    except StoreConnectionError:
                        with self._lock:
                            self._created -= 1
                        raise
                    logger.debug(f"Created new connection ({self._created}/{self.max_connections})")
                else:
                    logger.debug(f"Connection pool exhausted. Waiting up to {self.timeout}s...")
                    try:
                        conn = self._pool.get(timeout=self.timeout)
                    except Empty:
                        raise TimeoutError(
                            f"No connection available after {self.timeout}s "
                            f"(max_connections={self.max_connections})"
                        )

            yield conn

        except sqlite3.Error:
            # Connection may be unusable after a driver error; replace it next time
            if conn is not None:
                conn.close()
                with self._lock:
                    self._created -= 1
                conn = None
            raise
        finally:
            if conn is not None:
                if self._closed:
                    conn.close()
                else:
                    self._pool.put(conn)

    def close(self):
        """Close all idle connections in the pool."""
        self._closed = True

        while not self._pool.empty():
            try:
                conn = self._pool.get_nowait()
                conn.close()
            except Empty:
                break
            except sqlite3.Error as e:
                logger.error(f"Error closing connection: {e}")

        logger.info(f"Connection pool closed. Had {self._created} connections.")

    def get_pool_stats(self) -> dict:
        """Get statistics about the connection pool."""
        return {
            'max_connections': self.max_connections,
            'created_connections': self._created,
            'available_connections': self._pool.qsize(),
            'in_use_connections': self._created - self._pool.qsize(),
            'is_closed': self._closed
        }

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
