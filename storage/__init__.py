"""Store backends inspected by the performance advisor.

This module provides the store interface and its SQLite implementation.
The MongoDB backend lives in :mod:`storage.mongo_backend` and is imported
on demand so pymongo is only loaded when a MongoDB URL is configured.
"""

from .backend import StoreBackend
from .sqlite_backend import SqliteStore
from .connection_pool import ConnectionPool
from .factory import create_store

__all__ = [
    # Store interface
    'StoreBackend',

    # Implementations
    'SqliteStore',

    # Utilities
    'ConnectionPool',
    'create_store'
]
