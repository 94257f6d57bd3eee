"""Concurrent reader of per-collection index metadata and storage statistics."""

import logging
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Dict, Iterable, Optional

from .errors import CollectionReadError, StoreConnectionError
from .models import CollectionIndexInfo

logger = logging.getLogger(__name__)


class IndexMetadataReader:
    """Reads indexes and collection statistics from a store backend.

    A failing collection is reported in its own entry; the rest of the
    batch is unaffected.
    """

    def __init__(self, store, max_workers: int = 4):
        self.store = store
        self.max_workers = max_workers

    def read_collection(self, collection: str,
                        cancel_event: Optional[threading.Event] = None) -> CollectionIndexInfo:
        if cancel_event is not None and cancel_event.is_set():
            return CollectionIndexInfo(collection=collection, error="cancelled")
        try:
            indexes = self.store.list_indexes(collection)
            stats = self.store.collection_stats(collection)
        except CollectionReadError as e:
            logger.warning(f"Could not read index metadata for {collection}: {e.message}")
            return CollectionIndexInfo(collection=collection, error=e.message)
        except StoreConnectionError as e:
            logger.warning(f"Store connection lost while reading {collection}: {e}")
            return CollectionIndexInfo(collection=collection, error=str(e))
        except Exception as e:
            logger.error(f"Unexpected error reading index metadata for {collection}: {e}")
            return CollectionIndexInfo(collection=collection, error=str(e))

        return CollectionIndexInfo(
            collection=collection,
            indexes=tuple(indexes),
            document_count=stats.get('count', 0),
            storage_bytes=stats.get('storage_bytes', 0),
            index_bytes=stats.get('index_bytes', 0)
        )

    def read_indexes(self, collection_names: Iterable[str],
                     timeout: Optional[float] = None,
                     cancel_event: Optional[threading.Event] = None) -> Dict[str, CollectionIndexInfo]:
        """Read metadata for several collections concurrently.

        Args:
            collection_names: Collections to inspect
            timeout: Seconds to wait for the whole batch; unfinished reads
                are reported as timed out
            cancel_event: When set, reads that have not started are skipped

        Returns:
            Ordered mapping of collection name to CollectionIndexInfo
        """
        names = list(OrderedDict.fromkeys(collection_names))
        if not names:
            return {}

        results: Dict[str, CollectionIndexInfo] = OrderedDict()
        executor = ThreadPoolExecutor(max_workers=min(self.max_workers, len(names)),
                                      thread_name_prefix="db-advisor")
        try:
            futures = {
                name: executor.submit(self.read_collection, name, cancel_event)
                for name in names
            }
            done, _ = wait(futures.values(), timeout=timeout)
            for name, future in futures.items():
                if future in done:
                    results[name] = future.result()
                else:
                    future.cancel()
                    logger.warning(f"Index metadata read for {name} timed out after {timeout}s")
                    results[name] = CollectionIndexInfo(
                        collection=name, error=f"timed out after {timeout}s"
                    )
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

        return results
