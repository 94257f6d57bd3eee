"""SQLite implementation of the store interface.

Tables play the role of collections and columns the role of document
fields. Index directions come from ``PRAGMA index_xinfo``.
"""

import os
import re
import sqlite3
import logging
from typing import Dict, List

from advisor.errors import CollectionReadError, IndexCreateError, StoreConnectionError
from advisor.models import IndexSpec
from .backend import StoreBackend
from .connection_pool import ConnectionPool

logger = logging.getLogger(__name__)

_NAME_SANITIZER = re.compile(r'[^A-Za-z0-9_]+')


def quote_identifier(name: str) -> str:
    """Quote a table, column or index name for use in SQL."""
    return '"' + name.replace('"', '""') + '"'


class SqliteStore(StoreBackend):
    """SQLite store backend."""

    def __init__(self, db_path: str, max_connections: int = 5, timeout: int = 10):
        """Initialize SQLite store.

        Args:
            db_path: Path to the SQLite database file
            max_connections: Maximum number of connections in pool
            timeout: Seconds to wait for a free connection or a database lock
        """
        self.db_path = db_path
        self.connection_pool = ConnectionPool(db_path, max_connections=max_connections,
                                              timeout=timeout)
        self._dbstat_available = None

    def ping(self) -> None:
        if self.db_path != ':memory:' and not self.db_path.startswith('file:'):
            db_dir = os.path.dirname(os.path.abspath(self.db_path))
            if not os.path.isdir(db_dir):
                raise StoreConnectionError(f"Database directory does not exist: {db_dir}")
        try:
            with self.connection_pool.get_connection() as conn:
                conn.execute("SELECT 1").fetchone()
        except sqlite3.Error as e:
            raise StoreConnectionError(f"SQLite store unreachable: {e}") from e
        except TimeoutError as e:
            raise StoreConnectionError(str(e)) from e

    def list_collections(self) -> List[str]:
        with self.connection_pool.get_connection() as conn:
            rows = conn.execute(
                "SELECT name FROM sqlite_master "
                "WHERE type = 'table' AND name NOT LIKE 'sqlite_%' ORDER BY name"
            ).fetchall()
        return [row['name'] for row in rows]

    def _ensure_table(self, conn: sqlite3.Connection, collection: str) -> None:
        row = conn.execute(
            "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?",
            (collection,)
        ).fetchone()
        if row is None:
            raise CollectionReadError(collection, "no such collection")

    def list_indexes(self, collection: str) -> List[IndexSpec]:
        try:
            with self.connection_pool.get_connection() as conn:
                self._ensure_table(conn, collection)
                index_rows = conn.execute(
                    f"PRAGMA index_list({quote_identifier(collection)})"
                ).fetchall()

                indexes = []
                for index_row in index_rows:
                    name = index_row['name']
                    columns = conn.execute(
                        f"PRAGMA index_xinfo({quote_identifier(name)})"
                    ).fetchall()
                    fields = [
                        (col['name'], -1 if col['desc'] else 1)
                        for col in sorted(columns, key=lambda c: c['seqno'])
                        if col['key'] and col['name'] is not None
                    ]
                    if not fields:
                        # Expression-only index; nothing comparable by field name
                        continue
                    indexes.append(IndexSpec(fields=tuple(fields), name=name))
                return indexes
        except (sqlite3.Error, TimeoutError) as e:
            raise CollectionReadError(collection, str(e)) from e

    def collection_stats(self, collection: str) -> Dict[str, int]:
        try:
            with self.connection_pool.get_connection() as conn:
                self._ensure_table(conn, collection)
                count = conn.execute(
                    f"SELECT COUNT(*) AS n FROM {quote_identifier(collection)}"
                ).fetchone()['n']
                index_names = [
                    row['name'] for row in conn.execute(
                        f"PRAGMA index_list({quote_identifier(collection)})"
                    ).fetchall()
                ]
                storage_bytes = self._object_size(conn, [collection])
                index_bytes = self._object_size(conn, index_names)
        except (sqlite3.Error, TimeoutError) as e:
            raise CollectionReadError(collection, str(e)) from e

        return {
            'count': count,
            'storage_bytes': storage_bytes,
            'index_bytes': index_bytes
        }

    def _object_size(self, conn: sqlite3.Connection, names: List[str]) -> int:
        """Bytes used by the named b-trees, or 0 without the dbstat table."""
        if not names or self._dbstat_available is False:
            return 0
        placeholders = ', '.join('?' for _ in names)
        try:
            row = conn.execute(
                f"SELECT COALESCE(SUM(pgsize), 0) AS size FROM dbstat WHERE name IN ({placeholders})",
                tuple(names)
            ).fetchone()
        except sqlite3.OperationalError as e:
            logger.debug(f"dbstat unavailable, storage sizes reported as 0: {e}")
            self._dbstat_available = False
            return 0
        self._dbstat_available = True
        return int(row['size'])

    def index_name_for(self, collection: str, index: IndexSpec) -> str:
        """Database-unique index name; SQLite index names are not per table."""
        if index.name:
            return index.name
        suffix = '_'.join(
            f"{field}_{'desc' if direction == -1 else 'asc'}" for field, direction in index.fields
        )
        return _NAME_SANITIZER.sub('_', f"idx_{collection}_{suffix}")

    def create_index(self, collection: str, index: IndexSpec, background: bool = True) -> str:
        name = self.index_name_for(collection, index)
        columns = []
        for field, direction in index.fields:
            if direction not in (1, -1):
                raise IndexCreateError(collection, f"Unsupported index direction {direction!r} for {field}",
                                       index_name=name)
            columns.append(f"{quote_identifier(field)} {'DESC' if direction == -1 else 'ASC'}")

        # SQLite has no background builds
        sql = (f"CREATE INDEX {quote_identifier(name)} "
               f"ON {quote_identifier(collection)} ({', '.join(columns)})")
        try:
            with self.connection_pool.get_connection() as conn:
                conn.execute(sql)
        except (sqlite3.Error, TimeoutError) as e:
            raise IndexCreateError(collection, str(e), index_name=name) from e

        logger.info(f"Created index {name} on {collection}")
        return name

    def close(self) -> None:
        self.connection_pool.close()
