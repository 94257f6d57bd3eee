"""Thread-safe query statistics recorder with a bounded slow query log."""

import copy
import logging
import threading
from collections import deque
from datetime import datetime
from typing import Any, Callable, Deque, Dict, List, Optional

from advisor.errors import MonitoringStateError
from .analytics_models import (
    QueryStatKey, QuerySample, QueryStats, RecorderSnapshot, SlowQueryRecord
)

logger = logging.getLogger(__name__)

DEFAULT_SLOW_QUERY_THRESHOLD_MS = 100
DEFAULT_SAMPLE_CAPACITY = 100
DEFAULT_SLOW_LOG_CAPACITY = 50


def freeze_query(query: Any) -> Any:
    """Detached copy of a recorded query, or its repr if it cannot be copied."""
    try:
        return copy.deepcopy(query)
    except Exception:
        return repr(query)


class SlowQueryLog:
    """Bounded FIFO of slow executions.

    Not synchronized on its own; QueryStatRecorder mutates it under its lock.
    """

    def __init__(self, capacity: int = DEFAULT_SLOW_LOG_CAPACITY,
                 threshold_ms: float = DEFAULT_SLOW_QUERY_THRESHOLD_MS):
        self.capacity = capacity
        self.threshold_ms = threshold_ms
        self._records: Deque[SlowQueryRecord] = deque(maxlen=capacity)

    def is_slow(self, execution_time_ms: float) -> bool:
        return execution_time_ms > self.threshold_ms

    def append(self, record: SlowQueryRecord) -> None:
        self._records.append(record)

    def clear(self) -> None:
        self._records.clear()

    def snapshot(self) -> List[SlowQueryRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)


class QueryStatRecorder:
    """Accumulates execution-time statistics keyed by (collection, operation).

    Every mutation runs under a single recorder-wide lock. The work done
    under the lock is constant time: dict lookup, arithmetic and two
    bounded deque appends.
    """

    def __init__(self,
                 slow_query_threshold_ms: float = DEFAULT_SLOW_QUERY_THRESHOLD_MS,
                 sample_capacity: int = DEFAULT_SAMPLE_CAPACITY,
                 slow_log_capacity: int = DEFAULT_SLOW_LOG_CAPACITY,
                 clock: Callable[[], datetime] = datetime.now):
        """Initialize the recorder.

        Args:
            slow_query_threshold_ms: Executions strictly above this are slow
            sample_capacity: Recent samples kept per key
            slow_log_capacity: Slow records kept globally
            clock: Source of sample timestamps
        """
        self.sample_capacity = sample_capacity
        self.clock = clock
        self.slow_log = SlowQueryLog(capacity=slow_log_capacity,
                                     threshold_ms=slow_query_threshold_ms)
        self._stats: Dict[QueryStatKey, QueryStats] = {}
        self._lock = threading.Lock()
        self.enabled = True

    def record(self, collection: str, operation: str, query: Any,
               execution_time_ms: float) -> None:
        """Record one completed store operation. Never raises."""
        if not self.enabled:
            return

        try:
            execution_time_ms = float(execution_time_ms)
            query = freeze_query(query)
            key = QueryStatKey(collection=collection, operation=operation)
            is_slow = self.slow_log.is_slow(execution_time_ms)

            with self._lock:
                # ring order follows timestamp order
                sample = QuerySample(query=query,
                                     execution_time_ms=execution_time_ms,
                                     timestamp=self.clock())
                stats = self._stats.get(key)
                if stats is None:
                    stats = QueryStats.with_capacity(self.sample_capacity)
                    self._stats[key] = stats
                stats.observe(sample, is_slow)
                if is_slow:
                    self.slow_log.append(SlowQueryRecord(
                        collection=collection,
                        operation=operation,
                        query=query,
                        execution_time_ms=execution_time_ms,
                        timestamp=sample.timestamp
                    ))

            if is_slow:
                logger.warning(f"Slow query on {key}: {execution_time_ms:.1f}ms")
        except Exception as e:
            # record() never raises
            logger.debug(f"Dropped query stat for {collection}.{operation}: {e}")

    def get_stats(self) -> Dict[QueryStatKey, QueryStats]:
        """Return a deep copy of all statistics.

        Raises:
            MonitoringStateError: If an entry violates its invariants
        """
        with self._lock:
            snapshot = copy.deepcopy(self._stats)
        for key, stats in snapshot.items():
            self._check_invariants(key, stats)
        return snapshot

    def get_stats_for(self, collection: str, operation: str) -> Optional[QueryStats]:
        key = QueryStatKey(collection=collection, operation=operation)
        with self._lock:
            stats = self._stats.get(key)
            return copy.deepcopy(stats) if stats is not None else None

    def get_slow_queries(self) -> List[SlowQueryRecord]:
        with self._lock:
            return self.slow_log.snapshot()

    def slow_query_count(self) -> int:
        with self._lock:
            return len(self.slow_log)

    def snapshot_samples(self) -> Dict[QueryStatKey, tuple]:
        """Immutable per-key view of recent samples for offline analysis."""
        with self._lock:
            return {key: tuple(stats.recent_samples) for key, stats in self._stats.items()}

    def snapshot(self) -> RecorderSnapshot:
        """Stats, slow log and samples captured under one lock acquisition."""
        with self._lock:
            stats = copy.deepcopy(self._stats)
            slow_queries = self.slow_log.snapshot()
        for key, entry in stats.items():
            self._check_invariants(key, entry)
        samples = {key: tuple(entry.recent_samples) for key, entry in stats.items()}
        return RecorderSnapshot(stats=stats, slow_queries=slow_queries, samples=samples)

    def clear(self) -> None:
        """Reset all statistics and the slow query log."""
        with self._lock:
            self._stats.clear()
            self.slow_log.clear()
        logger.info("Query statistics reset")

    def _check_invariants(self, key: QueryStatKey, stats: QueryStats) -> None:
        if stats.count <= 0:
            raise MonitoringStateError(f"Stats entry {key} exists with count {stats.count}")
        if len(stats.recent_samples) > self.sample_capacity:
            raise MonitoringStateError(
                f"Stats entry {key} holds {len(stats.recent_samples)} samples "
                f"(capacity {self.sample_capacity})"
            )
        if abs(stats.avg_time_ms * stats.count - stats.total_time_ms) > 1e-6 * max(1.0, stats.total_time_ms):
            raise MonitoringStateError(f"Stats entry {key} has inconsistent average")
