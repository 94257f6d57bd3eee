"""Exception taxonomy for the performance advisor."""

from typing import Optional


class AdvisorError(Exception):
    """Base class for advisor failures."""


class StoreConnectionError(AdvisorError, ConnectionError):
    """The store cannot be reached. Fatal to report generation."""


class CollectionReadError(AdvisorError):
    """Index metadata or statistics for one collection could not be read."""

    def __init__(self, collection: str, message: str):
        self.collection = collection
        self.message = message
        super().__init__(f"{collection}: {message}")


class IndexCreateError(AdvisorError):
    """A single index could not be created."""

    def __init__(self, collection: str, message: str, index_name: Optional[str] = None):
        self.collection = collection
        self.message = message
        self.index_name = index_name
        super().__init__(f"{collection}: {message}")


class MonitoringStateError(AdvisorError):
    """Shared monitoring state is corrupted. Indicates a programming defect."""
