"""Tests for the MongoDB store backend and command listener with mocked pymongo."""

import unittest
from unittest.mock import MagicMock, Mock

from pymongo.errors import OperationFailure, ServerSelectionTimeoutError

from advisor.errors import CollectionReadError, IndexCreateError, StoreConnectionError
from advisor.models import IndexSpec
from analytics.query_recorder import QueryStatRecorder
from storage.mongo_backend import MongoStore
from storage.mongo_monitoring import QueryStatsCommandListener, extract_query


class TestMongoStore(unittest.TestCase):
    """Test MongoStore with a mocked client."""

    def setUp(self):
        """Set up test fixtures."""
        self.client = MagicMock()
        self.db = self.client.__getitem__.return_value
        self.store = MongoStore(client=self.client, database_name='shop')

    def test_ping(self):
        """Test ping uses the admin command."""
        self.store.ping()
        self.client.admin.command.assert_called_once_with('ping')

    def test_ping_failure(self):
        """Test driver errors become StoreConnectionError."""
        self.client.admin.command.side_effect = ServerSelectionTimeoutError("no servers")
        with self.assertRaises(StoreConnectionError):
            self.store.ping()

    def test_list_collections_skips_system(self):
        """Test system collections are hidden."""
        self.db.list_collection_names.return_value = ['users', 'system.views', 'orders']
        self.assertEqual(self.store.list_collections(), ['orders', 'users'])

    def test_list_indexes(self):
        """Test raw index documents become IndexSpecs."""
        collection = self.db.__getitem__.return_value
        collection.list_indexes.return_value = [
            {'name': '_id_', 'key': {'_id': 1}},
            {'name': 'status_1_createdAt_-1', 'key': {'status': 1, 'createdAt': -1}},
        ]

        indexes = self.store.list_indexes('orders')
        self.assertEqual(indexes[1].fields, (('status', 1), ('createdAt', -1)))
        self.assertEqual(indexes[1].name, 'status_1_createdAt_-1')

    def test_list_indexes_failure(self):
        """Test read failures are per collection."""
        self.db.__getitem__.return_value.list_indexes.side_effect = OperationFailure("unauthorized")
        with self.assertRaises(CollectionReadError):
            self.store.list_indexes('orders')

    def test_collection_stats(self):
        """Test collStats fields are mapped."""
        self.db.command.return_value = {'count': 12, 'storageSize': 8192, 'totalIndexSize': 4096}
        stats = self.store.collection_stats('orders')

        self.db.command.assert_called_once_with('collStats', 'orders')
        self.assertEqual(stats, {'count': 12, 'storage_bytes': 8192, 'index_bytes': 4096})

    def test_create_index_background(self):
        """Test background builds are requested."""
        collection = self.db.__getitem__.return_value
        collection.create_index.return_value = 'user_1_status_1'

        name = self.store.create_index('orders', IndexSpec.of('user', 'status'))

        self.assertEqual(name, 'user_1_status_1')
        collection.create_index.assert_called_once_with([('user', 1), ('status', 1)], background=True)

    def test_create_index_failure(self):
        """Test driver errors become IndexCreateError."""
        self.db.__getitem__.return_value.create_index.side_effect = OperationFailure("too many indexes")
        with self.assertRaises(IndexCreateError):
            self.store.create_index('orders', IndexSpec.of('user'))


class TestQueryStatsCommandListener(unittest.TestCase):
    """Test the pymongo command listener."""

    def setUp(self):
        """Set up test fixtures."""
        self.recorder = QueryStatRecorder()
        self.listener = QueryStatsCommandListener(self.recorder)

    def event(self, command_name, command=None, request_id=1, duration_micros=2500):
        return Mock(command_name=command_name, command=command or {},
                    connection_id=('localhost', 27017), request_id=request_id,
                    duration_micros=duration_micros, failure={'errmsg': 'x'})

    def test_find_recorded(self):
        """Test a completed find is recorded with its filter and duration."""
        self.listener.started(self.event('find', {'find': 'products', 'filter': {'status': 'active'}}))
        self.listener.succeeded(self.event('find'))

        stats = self.recorder.get_stats_for('products', 'find')
        self.assertEqual(stats.count, 1)
        self.assertEqual(stats.max_time_ms, 2.5)
        self.assertEqual(stats.recent_samples[0].query, {'status': 'active'})

    def test_failed_command_recorded(self):
        """Test failed commands are recorded too."""
        self.listener.started(self.event('update', {'update': 'orders', 'updates': [{'q': {'_id': 1}}]}))
        self.listener.failed(self.event('update', duration_micros=150000))

        self.assertEqual(self.recorder.slow_query_count(), 1)

    def test_unmonitored_commands_ignored(self):
        """Test admin commands are not recorded."""
        self.listener.started(self.event('ping', {'ping': 1}))
        self.listener.succeeded(self.event('ping'))
        self.assertEqual(self.recorder.get_stats(), {})

    def test_unmatched_completion_ignored(self):
        """Test a completion without a start is dropped."""
        self.listener.succeeded(self.event('find', request_id=99))
        self.assertEqual(self.recorder.get_stats(), {})

    def test_extract_query(self):
        """Test query extraction per command."""
        self.assertEqual(extract_query('aggregate', {'pipeline': [{'$match': {}}]}), [{'$match': {}}])
        self.assertEqual(extract_query('insert', {'documents': [{}, {}]}), {'documents': 2})
        self.assertEqual(extract_query('delete', {'deletes': [{'q': {'a': 1}}]}), [{'a': 1}])


if __name__ == '__main__':
    unittest.main()
