"""Build a store backend from a connection URL."""

from typing import Any, List, Optional

from .backend import StoreBackend
from .sqlite_backend import SqliteStore

SQLITE_PREFIX = 'sqlite:///'


def create_store(store_url: str, database_name: Optional[str] = None,
                 event_listeners: Optional[List[Any]] = None) -> StoreBackend:
    """Return the backend matching *store_url*.

    ``mongodb://`` and ``mongodb+srv://`` URLs select MongoStore;
    ``sqlite:///path`` or a bare file path selects SqliteStore.
    """
    if not store_url:
        raise ValueError("store_url is required")

    if store_url.startswith(('mongodb://', 'mongodb+srv://')):
        # pymongo is only imported for MongoDB URLs
        from .mongo_backend import MongoStore
        return MongoStore(uri=store_url, database_name=database_name,
                          event_listeners=event_listeners)

    if store_url.startswith(SQLITE_PREFIX):
        return SqliteStore(store_url[len(SQLITE_PREFIX):])

    if '://' in store_url:
        raise ValueError(f"Unsupported store URL scheme: {store_url.split('://', 1)[0]}")

    return SqliteStore(store_url)
