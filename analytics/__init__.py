"""Query statistics, slow query log and duplicate request detection."""

from .analytics_models import (
    QueryStatKey,
    QuerySample,
    QueryStats,
    SlowQueryRecord,
    DuplicateRequestIssue,
    DuplicateDetectionResult,
    RecorderSnapshot
)
from .query_recorder import QueryStatRecorder, SlowQueryLog
from .duplicate_detector import DuplicateRequestDetector, detect_duplicates
from .instrumentation import track_operation, monitored

__all__ = [
    'QueryStatKey',
    'QuerySample',
    'QueryStats',
    'SlowQueryRecord',
    'DuplicateRequestIssue',
    'DuplicateDetectionResult',
    'RecorderSnapshot',
    'QueryStatRecorder',
    'SlowQueryLog',
    'DuplicateRequestDetector',
    'detect_duplicates',
    'track_operation',
    'monitored'
]
