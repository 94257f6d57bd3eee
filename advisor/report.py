"""Report compilation, scoring and auto-optimization."""

import logging
import threading
from datetime import datetime
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from analytics.duplicate_detector import (
    DEFAULT_THRESHOLD_MS, DEFAULT_WINDOW_MS, detect_duplicates
)
from analytics.analytics_models import DuplicateDetectionResult, RecorderSnapshot
from .errors import MonitoringStateError, StoreConnectionError
from .gap_analyzer import IndexGapAnalyzer
from .image_scan import scan_images
from .index_reader import IndexMetadataReader
from .index_rules import IndexRule
from .models import (
    AutoOptimizeResult, CollectionIndexInfo, PerformanceReport,
    QueryPerformanceSummary, ReportSummary, PRIORITY_HIGH,
)
from .remediator import IndexRemediator
from .system_stats import process_memory_snapshot

logger = logging.getLogger(__name__)

MAX_SLOW_QUERY_DEDUCTION = 30
MAX_MISSING_INDEX_DEDUCTION = 20
MAX_DUPLICATE_DEDUCTION = 15

SCORE_BANDS = (
    (90, 'excellent', 'Excellent - well optimized'),
    (75, 'good', 'Good - minor optimizations recommended'),
    (60, 'fair', 'Fair - several optimizations needed'),
    (0, 'poor', 'Poor - significant optimizations required'),
)


def compute_score(slow_query_count: int, missing_index_count: int,
                  duplicate_issue_count: int) -> int:
    """Weighted health score in [0, 100]."""
    score = 100
    score -= min(slow_query_count * 5, MAX_SLOW_QUERY_DEDUCTION)
    score -= min(missing_index_count * 3, MAX_MISSING_INDEX_DEDUCTION)
    score -= min(duplicate_issue_count * 2, MAX_DUPLICATE_DEDUCTION)
    return max(0, min(100, score))


def score_rating(score: int) -> Tuple[str, str]:
    """Return the (rating, description) band for a score."""
    for floor, rating, description in SCORE_BANDS:
        if score >= floor:
            return rating, description
    return SCORE_BANDS[-1][1], SCORE_BANDS[-1][2]


def summarize_query_performance(snapshot: RecorderSnapshot) -> QueryPerformanceSummary:
    return QueryPerformanceSummary(
        total_queries=snapshot.total_queries,
        slow_query_count=len(snapshot.slow_queries),
        avg_execution_time_ms=round(snapshot.weighted_avg_time_ms, 2),
        per_key_breakdown=tuple({**key.to_dict(), **stats.to_dict()}
                                for key, stats in snapshot.stats.items())
    )


class ReportCompiler:
    """Aggregates index analysis and query statistics into a scored report."""

    def __init__(self, store, recorder,
                 rules: Optional[Iterable[IndexRule]] = None,
                 monitored_collections: Optional[Iterable[str]] = None,
                 duplicate_window_ms: float = DEFAULT_WINDOW_MS,
                 duplicate_threshold_ms: float = DEFAULT_THRESHOLD_MS,
                 read_timeout: Optional[float] = None,
                 max_workers: int = 4,
                 background_index_build: bool = True,
                 image_dir: Optional[str] = None,
                 clock: Callable[[], datetime] = datetime.now):
        self.store = store
        self.recorder = recorder
        self.gap_analyzer = IndexGapAnalyzer(rules)
        self.monitored_collections = (list(monitored_collections) if monitored_collections
                                      else self.gap_analyzer.collections)
        self.reader = IndexMetadataReader(store, max_workers=max_workers)
        self.remediator = IndexRemediator(store)
        self.duplicate_window_ms = duplicate_window_ms
        self.duplicate_threshold_ms = duplicate_threshold_ms
        self.read_timeout = read_timeout
        self.background_index_build = background_index_build
        self.image_dir = image_dir
        self.clock = clock

    def read_metadata(self, cancel_event: Optional[threading.Event] = None) -> Dict[str, CollectionIndexInfo]:
        return self.reader.read_indexes(self.monitored_collections,
                                        timeout=self.read_timeout,
                                        cancel_event=cancel_event)

    def generate_report(self, cancel_event: Optional[threading.Event] = None) -> PerformanceReport:
        """Build a complete report.

        Only an unreachable store aborts the report; every other failure
        degrades its own section and is listed in ``report.errors``.

        Raises:
            StoreConnectionError: If the store cannot be reached
        """
        self.store.ping()
        errors: List[str] = []

        metadata = self._guarded('index metadata', errors, lambda: self.read_metadata(cancel_event), {})
        for name, info in metadata.items():
            if not info.ok:
                errors.append(f"index metadata for {name}: {info.error}")

        missing = self.gap_analyzer.analyze(metadata)

        snapshot = self.recorder.snapshot()
        query_performance = summarize_query_performance(snapshot)

        duplicates = self._guarded(
            'duplicate detection', errors,
            lambda: detect_duplicates(snapshot.samples, self.clock(),
                                      window_ms=self.duplicate_window_ms,
                                      threshold_ms=self.duplicate_threshold_ms),
            DuplicateDetectionResult()
        )
        images = self._guarded('image scan', errors, lambda: scan_images(self.image_dir), [])
        system = self._guarded('system snapshot', errors, process_memory_snapshot, {})

        slow_count = query_performance.slow_query_count
        summary = ReportSummary(
            performance_score=compute_score(slow_count, len(missing), len(duplicates.issues)),
            critical_issues=slow_count + len(duplicates.issues),
            recommendation_count=len(missing) + len(duplicates.suggestions) + len(images)
        )

        report = PerformanceReport(
            timestamp=self.clock(),
            index_metadata=metadata,
            missing_indexes=tuple(missing),
            query_performance=query_performance,
            duplicate_issues=tuple(duplicates.issues),
            duplicate_suggestions=tuple(duplicates.suggestions),
            image_recommendations=tuple(images),
            summary=summary,
            system=system,
            errors=tuple(errors)
        )
        logger.info(f"Performance report generated: score {summary.performance_score}/100, "
                    f"{summary.critical_issues} critical issues, "
                    f"{summary.recommendation_count} recommendations")
        return report

    def auto_optimize(self, create_indexes: bool = True, log_only: bool = False,
                      cancel_event: Optional[threading.Event] = None) -> AutoOptimizeResult:
        """Create missing high-priority indexes.

        Individual index failures are collected in ``result.errors``.

        Raises:
            StoreConnectionError: If the store cannot be reached
        """
        self.store.ping()
        result = AutoOptimizeResult()

        metadata = self.read_metadata(cancel_event)
        high_priority = [rec for rec in self.gap_analyzer.analyze(metadata)
                         if rec.priority == PRIORITY_HIGH]
        result.planned = high_priority

        if not create_indexes or log_only:
            for rec in high_priority:
                logger.info(f"[log only] would create index ({rec.index_spec.describe()}) "
                            f"on {rec.collection}: {rec.reason}")
        elif high_priority:
            result.add_results(
                self.remediator.create_recommended(high_priority,
                                                   background=self.background_index_build)
            )
            logger.info(f"Auto-optimize: {result.created_count} created, "
                        f"{result.skipped_count} already present, {result.error_count} failed")

        for rec in self._guarded('image scan', result.errors, lambda: scan_images(self.image_dir), []):
            result.image_suggestions.extend(rec.suggestions)
        return result

    def _guarded(self, section: str, errors: List[str], func, default):
        try:
            return func()
        except (StoreConnectionError, MonitoringStateError):
            raise
        except Exception as e:
            logger.exception(f"Report section '{section}' failed")
            errors.append(f"{section}: {e}")
            return default
