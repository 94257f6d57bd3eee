"""Tests for connection pool functionality."""

import unittest
import tempfile
import shutil
import sqlite3
import os
import time
from concurrent.futures import ThreadPoolExecutor

from advisor.errors import StoreConnectionError
from storage.connection_pool import ConnectionPool


class TestConnectionPool(unittest.TestCase):
    """Test ConnectionPool functionality."""

    def setUp(self):
        """Set up test environment."""
        self.temp_dir = tempfile.mkdtemp()
        self.db_path = f"{self.temp_dir}/test.db"

    def tearDown(self):
        """Clean up test environment."""
        shutil.rmtree(self.temp_dir, ignore_errors=True)

    def test_get_connection(self):
        """Test getting a connection from pool."""
        pool = ConnectionPool(self.db_path, max_connections=2)

        with pool.get_connection() as conn:
            self.assertIsInstance(conn, sqlite3.Connection)
            self.assertEqual(conn.execute("SELECT 1").fetchone()[0], 1)

        pool.close()

    def test_connection_reuse(self):
        """Test that connections are reused."""
        pool = ConnectionPool(self.db_path, max_connections=1)

        with pool.get_connection() as conn1:
            conn1_id = id(conn1)
        with pool.get_connection() as conn2:
            conn2_id = id(conn2)

        self.assertEqual(conn1_id, conn2_id)
        pool.close()

    def test_autocommit(self):
        """Test DDL is visible to other connections without an explicit commit."""
        pool = ConnectionPool(self.db_path, max_connections=2)
        with pool.get_connection() as conn:
            conn.execute("CREATE TABLE t (x INTEGER)")
            conn.execute("CREATE INDEX idx_t_x ON t (x)")

        other = sqlite3.connect(self.db_path)
        names = [r[0] for r in other.execute("SELECT name FROM sqlite_master WHERE type = 'index'")]
        other.close()
        self.assertIn('idx_t_x', names)
        pool.close()

    def test_max_connections_limit(self):
        """Test that pool respects max connections limit."""
        pool = ConnectionPool(self.db_path, max_connections=2, timeout=1)

        ctx1 = pool.get_connection()
        ctx1.__enter__()
        ctx2 = pool.get_connection()
        ctx2.__enter__()

        start_time = time.time()
        with self.assertRaises(TimeoutError):
            with pool.get_connection():
                pass
        self.assertGreaterEqual(time.time() - start_time, 1.0)

        ctx1.__exit__(None, None, None)
        ctx2.__exit__(None, None, None)
        pool.close()

    def test_concurrent_access(self):
        """Test thread-safe concurrent access."""
        pool = ConnectionPool(self.db_path, max_connections=5)

        with pool.get_connection() as conn:
            conn.execute("CREATE TABLE test (id INTEGER PRIMARY KEY, value TEXT)")

        def worker(worker_id):
            """Worker function that uses the pool."""
            for i in range(5):
                with pool.get_connection() as conn:
                    conn.execute(
                        "INSERT INTO test (value) VALUES (?)",
                        (f"worker_{worker_id}_item_{i}",)
                    )

        with ThreadPoolExecutor(max_workers=10) as executor:
            futures = [executor.submit(worker, i) for i in range(10)]
            for future in futures:
                future.result()

        with pool.get_connection() as conn:
            count = conn.execute("SELECT COUNT(*) FROM test").fetchone()[0]
            self.assertEqual(count, 50)

        pool.close()

    def test_driver_error_discards_connection(self):
        """Test a connection that raised is closed instead of pooled."""
        pool = ConnectionPool(self.db_path, max_connections=1)

        with self.assertRaises(sqlite3.OperationalError):
            with pool.get_connection() as conn:
                conn.execute("INVALID SQL")

        stats = pool.get_pool_stats()
        self.assertEqual(stats['created_connections'], 0)
        self.assertEqual(stats['available_connections'], 0)

        with pool.get_connection() as conn:
            self.assertEqual(conn.execute("SELECT 1").fetchone()[0], 1)
        pool.close()

    def test_pool_stats(self):
        """Test connection pool statistics."""
        pool = ConnectionPool(self.db_path, max_connections=3)

        stats = pool.get_pool_stats()
        self.assertEqual(stats['max_connections'], 3)
        self.assertEqual(stats['created_connections'], 0)
        self.assertFalse(stats['is_closed'])

        ctx1 = pool.get_connection()
        ctx1.__enter__()
        stats = pool.get_pool_stats()
        self.assertEqual(stats['created_connections'], 1)
        self.assertEqual(stats['in_use_connections'], 1)

        ctx1.__exit__(None, None, None)
        stats = pool.get_pool_stats()
        self.assertEqual(stats['available_connections'], 1)
        self.assertEqual(stats['in_use_connections'], 0)

        pool.close()
        self.assertTrue(pool.get_pool_stats()['is_closed'])

    def test_unopenable_database(self):
        """Test open failures surface as StoreConnectionError."""
        pool = ConnectionPool(os.path.join(self.temp_dir, 'nope', 'x.db'))
        with self.assertRaises(StoreConnectionError):
            with pool.get_connection():
                pass
        self.assertEqual(pool.get_pool_stats()['created_connections'], 0)

    def test_context_manager_support(self):
        """Test using pool as context manager."""
        with ConnectionPool(self.db_path) as pool:
            with pool.get_connection() as conn:
                self.assertEqual(conn.execute("SELECT 1").fetchone()[0], 1)

        self.assertTrue(pool._closed)

    def test_closed_pool_error(self):
        """Test that closed pool raises error."""
        pool = ConnectionPool(self.db_path)
        pool.close()

        with self.assertRaises(StoreConnectionError) as ctx:
            with pool.get_connection():
                pass

        self.assertIn("closed", str(ctx.exception))


if __name__ == '__main__':
    unittest.main()
