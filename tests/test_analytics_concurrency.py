"""Concurrency tests for analytics module."""

import unittest
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed

from analytics.analytics_models import QueryStatKey
from analytics.query_recorder import QueryStatRecorder


class TestRecorderConcurrency(unittest.TestCase):
    """Test concurrent access to the query stat recorder."""

    def setUp(self):
        """Set up test environment."""
        self.recorder = QueryStatRecorder()

    def test_concurrent_record_loses_nothing(self):
        """Test concurrent record() calls from many threads."""
        num_threads = 16
        records_per_thread = 250

        def record_queries(thread_id):
            """Record queries from a single thread."""
            for i in range(records_per_thread):
                self.recorder.record('orders', 'find', {'t': thread_id, 'i': i}, 1.0)
                if i % 10 == 0:
                    self.recorder.record('orders', 'update', {'t': thread_id}, 150.0)
            return thread_id

        with ThreadPoolExecutor(max_workers=num_threads) as executor:
            futures = [executor.submit(record_queries, i) for i in range(num_threads)]
            for future in as_completed(futures):
                future.result()

        stats = self.recorder.get_stats()
        find_stats = stats[QueryStatKey('orders', 'find')]
        update_stats = stats[QueryStatKey('orders', 'update')]

        self.assertEqual(find_stats.count, num_threads * records_per_thread)
        self.assertAlmostEqual(find_stats.total_time_ms, num_threads * records_per_thread * 1.0)
        self.assertEqual(len(find_stats.recent_samples), 100)
        self.assertEqual(update_stats.count, num_threads * 25)
        self.assertEqual(update_stats.slow_count, num_threads * 25)
        self.assertEqual(len(self.recorder.get_slow_queries()), 50)

    def test_snapshots_during_writes(self):
        """Test get_stats() stays consistent while writers run."""
        stop = threading.Event()
        errors = []

        def writer():
            while not stop.is_set():
                self.recorder.record('products', 'find', {'status': 'active'}, 3.0)

        def reader():
            try:
                for _ in range(200):
                    for stats in self.recorder.get_stats().values():
                        self.assertLessEqual(len(stats.recent_samples), 100)
                        self.assertAlmostEqual(stats.avg_time_ms, stats.total_time_ms / stats.count)
            except Exception as e:
                errors.append(e)

        writers = [threading.Thread(target=writer) for _ in range(4)]
        for thread in writers:
            thread.start()
        try:
            reader()
        finally:
            stop.set()
            for thread in writers:
                thread.join()

        self.assertEqual(errors, [])

    def test_clear_during_writes(self):
        """Test clear() racing record() leaves a valid state."""
        def writer(n):
            for _ in range(500):
                self.recorder.record('users', 'find', {'n': n}, 120.0)

        with ThreadPoolExecutor(max_workers=4) as executor:
            futures = [executor.submit(writer, n) for n in range(4)]
            for _ in range(20):
                self.recorder.clear()
            for future in futures:
                future.result()

        for stats in self.recorder.get_stats().values():
            self.assertGreater(stats.count, 0)
            self.assertLessEqual(len(self.recorder.get_slow_queries()), 50)


if __name__ == '__main__':
    unittest.main()
