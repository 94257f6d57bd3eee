"""MongoDB implementation of the store interface."""

import logging
from typing import Any, Dict, List, Optional

from pymongo import MongoClient
from pymongo.errors import ConfigurationError, ConnectionFailure, PyMongoError

from advisor.errors import CollectionReadError, IndexCreateError, StoreConnectionError
from advisor.models import IndexSpec
from .backend import StoreBackend

logger = logging.getLogger(__name__)


class MongoStore(StoreBackend):
    """MongoDB store backend built on pymongo."""

    def __init__(self, uri: Optional[str] = None, database_name: Optional[str] = None,
                 client: Optional[MongoClient] = None,
                 server_selection_timeout_ms: int = 5000,
                 event_listeners: Optional[List[Any]] = None):
        """Initialize MongoDB store.

        Args:
            uri: Connection string, used when no client is given
            database_name: Database to inspect; defaults to the URI's database
            client: Pre-built client (takes precedence over uri)
            server_selection_timeout_ms: How long to wait for a reachable server
            event_listeners: pymongo monitoring listeners, e.g. QueryStatsCommandListener
        """
        if client is None:
            client = MongoClient(uri,
                                 serverSelectionTimeoutMS=server_selection_timeout_ms,
                                 event_listeners=event_listeners or [])
        self.client = client
        if database_name:
            self.db = client[database_name]
        else:
            try:
                self.db = client.get_default_database()
            except ConfigurationError as e:
                raise ValueError("No database name given and none in the connection URI") from e

    def ping(self) -> None:
        try:
            self.client.admin.command('ping')
        except PyMongoError as e:
            raise StoreConnectionError(f"MongoDB unreachable: {e}") from e

    def list_collections(self) -> List[str]:
        try:
            return sorted(n for n in self.db.list_collection_names() if not n.startswith('system.'))
        except ConnectionFailure as e:
            raise StoreConnectionError(f"MongoDB unreachable: {e}") from e

    def list_indexes(self, collection: str) -> List[IndexSpec]:
        try:
            raw_indexes = list(self.db[collection].list_indexes())
        except PyMongoError as e:
            raise CollectionReadError(collection, str(e)) from e

        indexes = []
        for raw in raw_indexes:
            try:
                indexes.append(IndexSpec.from_mapping(raw['key'], name=raw.get('name')))
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping unreadable index on {collection}: {e}")
        return indexes

    def collection_stats(self, collection: str) -> Dict[str, int]:
        try:
            stats = self.db.command('collStats', collection)
        except PyMongoError as e:
            raise CollectionReadError(collection, str(e)) from e

        return {
            'count': int(stats.get('count', 0)),
            'storage_bytes': int(stats.get('storageSize', 0)),
            'index_bytes': int(stats.get('totalIndexSize', 0))
        }

    def create_index(self, collection: str, index: IndexSpec, background: bool = True) -> str:
        options: Dict[str, Any] = {'background': background}
        if index.name:
            options['name'] = index.name
        try:
            name = self.db[collection].create_index(list(index.fields), **options)
        except PyMongoError as e:
            raise IndexCreateError(collection, str(e), index_name=index.name) from e

        logger.info(f"Created index {name} on {collection}")
        return name

    def close(self) -> None:
        self.client.close()
