"""The performance advisor engine: one object owning all monitoring state."""

import logging
from typing import Any, Dict, Optional

from analytics.analytics_models import DuplicateDetectionResult, QueryStatKey, QueryStats
from analytics.duplicate_detector import DuplicateRequestDetector
from analytics.instrumentation import track_operation
from analytics.query_recorder import QueryStatRecorder
from storage.factory import create_store
from .index_rules import DEFAULT_INDEX_RULES, load_rules
from .models import AutoOptimizeResult, PerformanceReport
from .report import ReportCompiler

logger = logging.getLogger(__name__)


class PerformanceAdvisor:
    """Construct once at process start and pass by handle.

    Application code feeds it through :meth:`record` (or :meth:`track`);
    operators pull reports through :meth:`generate_report` and
    :meth:`auto_optimize`.
    """

    def __init__(self, store, recorder: Optional[QueryStatRecorder] = None,
                 rules=None, monitored_collections=None,
                 duplicate_window_ms: float = 60000,
                 duplicate_threshold_ms: float = 1000,
                 read_timeout: Optional[float] = None,
                 max_workers: int = 4,
                 background_index_build: bool = True,
                 image_dir: Optional[str] = None):
        self.store = store
        self.recorder = recorder or QueryStatRecorder()
        self.duplicate_window_ms = duplicate_window_ms
        self.duplicate_threshold_ms = duplicate_threshold_ms
        self.compiler = ReportCompiler(
            store, self.recorder,
            rules=rules,
            monitored_collections=monitored_collections,
            duplicate_window_ms=duplicate_window_ms,
            duplicate_threshold_ms=duplicate_threshold_ms,
            read_timeout=read_timeout,
            max_workers=max_workers,
            background_index_build=background_index_build,
            image_dir=image_dir
        )
        self.remediator = self.compiler.remediator
        self.duplicate_detector = DuplicateRequestDetector(self.recorder)

    @classmethod
    def from_config(cls, config) -> 'PerformanceAdvisor':
        """Build the store and engine described by an AdvisorConfig.

        MongoDB stores get a command listener so every driver command is
        recorded without further wiring.
        """
        recorder = QueryStatRecorder(
            slow_query_threshold_ms=config.slow_query_threshold_ms,
            sample_capacity=config.sample_capacity,
            slow_log_capacity=config.slow_log_capacity
        )

        listeners = None
        if config.store_url.startswith(('mongodb://', 'mongodb+srv://')):
            from storage.mongo_monitoring import QueryStatsCommandListener
            listeners = [QueryStatsCommandListener(recorder)]

        store = create_store(config.store_url, config.database_name, event_listeners=listeners)
        rules = list(DEFAULT_INDEX_RULES) + load_rules(config.index_rules)

        return cls(
            store, recorder,
            rules=rules,
            monitored_collections=config.monitored_collections or None,
            duplicate_window_ms=config.duplicate_window_ms,
            duplicate_threshold_ms=config.duplicate_threshold_ms,
            read_timeout=config.read_timeout_seconds,
            max_workers=config.max_workers,
            background_index_build=config.background_index_build,
            image_dir=config.image_dir
        )

    def record(self, collection: str, operation: str, query: Any,
               execution_time_ms: float) -> None:
        self.recorder.record(collection, operation, query, execution_time_ms)

    def track(self, collection: str, operation: str, query: Any = None):
        """Context manager timing one store call into this advisor."""
        return track_operation(self.recorder, collection, operation, query)

    def get_stats(self) -> Dict[QueryStatKey, QueryStats]:
        return self.recorder.get_stats()

    def clear(self) -> None:
        self.recorder.clear()

    def detect_duplicates(self) -> DuplicateDetectionResult:
        return self.duplicate_detector.detect(window_ms=self.duplicate_window_ms,
                                              threshold_ms=self.duplicate_threshold_ms)

    def generate_report(self, cancel_event=None) -> PerformanceReport:
        return self.compiler.generate_report(cancel_event=cancel_event)

    def auto_optimize(self, create_indexes: bool = True, log_only: bool = False,
                      cancel_event=None) -> AutoOptimizeResult:
        return self.compiler.auto_optimize(create_indexes=create_indexes,
                                           log_only=log_only,
                                           cancel_event=cancel_event)

    def close(self) -> None:
        self.store.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
