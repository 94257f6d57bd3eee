"""Abstract store interface consumed by the performance advisor."""

from abc import ABC, abstractmethod
from typing import Dict, List

from advisor.models import IndexSpec


class StoreBackend(ABC):
    """Store operations the advisor needs.

    Implementations wrap driver exceptions in the advisor error taxonomy:
    StoreConnectionError for connectivity, CollectionReadError for
    per-collection reads and IndexCreateError for index builds.
    """

    @abstractmethod
    def ping(self) -> None:
        """Verify the store is reachable.

        Raises:
            StoreConnectionError: If the store cannot be reached
        """
        pass

    @abstractmethod
    def list_collections(self) -> List[str]:
        """Names of all user collections in the store."""
        pass

    @abstractmethod
    def list_indexes(self, collection: str) -> List[IndexSpec]:
        """Current indexes of a collection.

        Args:
            collection: Collection name

        Returns:
            List of IndexSpec objects, each carrying the index name

        Raises:
            CollectionReadError: If the collection is missing or unreadable
        """
        pass

    @abstractmethod
    def collection_stats(self, collection: str) -> Dict[str, int]:
        """Document count and storage footprint of a collection.

        Returns:
            Dictionary with ``count``, ``storage_bytes`` and ``index_bytes``

        Raises:
            CollectionReadError: If the collection is missing or unreadable
        """
        pass

    @abstractmethod
    def create_index(self, collection: str, index: IndexSpec, background: bool = True) -> str:
        """Build an index.

        Args:
            collection: Collection to index
            index: Fields and directions; ``index.name`` is used when set
            background: Request a build that does not block reads and writes
                where the store supports it

        Returns:
            Name of the created index

        Raises:
            IndexCreateError: If the build fails
        """
        pass

    def close(self) -> None:
        """Release connections held by the backend."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
