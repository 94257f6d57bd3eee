"""Detection of near-duplicate queries issued in quick succession."""

import json
from collections import defaultdict
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .analytics_models import (
    QueryStatKey, QuerySample, DuplicateRequestIssue, DuplicateDetectionResult
)

DEFAULT_WINDOW_MS = 60000
DEFAULT_THRESHOLD_MS = 1000

DUPLICATE_REQUEST_SUGGESTIONS = [
    "Deduplicate identical in-flight requests on the client before they reach the API",
    "Cache read-heavy query results with a short TTL",
    "Debounce search and filter inputs that fire on every keystroke",
    "Batch related lookups into a single query where the caller allows it",
]


def serialize_query(query: Any) -> str:
    """Canonical string form used to group identical queries.

    Queries JSON cannot sort or encode (mixed key types, cycles) fall
    back to their repr.
    """
    try:
        return json.dumps(query, sort_keys=True, default=str, separators=(',', ':'))
    except (TypeError, ValueError):
        return repr(query)


def _elapsed_ms(earlier: datetime, later: datetime) -> float:
    return (later - earlier).total_seconds() * 1000


def detect_duplicates(samples_by_key: Mapping[QueryStatKey, Iterable[QuerySample]],
                      now: datetime,
                      window_ms: float = DEFAULT_WINDOW_MS,
                      threshold_ms: float = DEFAULT_THRESHOLD_MS) -> DuplicateDetectionResult:
    """Find identical queries on the same key observed less than *threshold_ms* apart.

    Only samples younger than *window_ms* are considered. Each group of
    identical queries produces at most one issue: the first consecutive
    pair closer than the threshold.

    Args:
        samples_by_key: Snapshot of recent samples per key
        now: Reference time for the window
        window_ms: How far back to look
        threshold_ms: Maximum gap between two calls to count as duplicates

    Returns:
        DuplicateDetectionResult with issues and, when any exist, the
        standard mitigation suggestions
    """
    issues: List[DuplicateRequestIssue] = []

    for key, samples in samples_by_key.items():
        groups: Dict[str, List[QuerySample]] = defaultdict(list)
        for sample in samples:
            if _elapsed_ms(sample.timestamp, now) < window_ms:
                groups[serialize_query(sample.query)].append(sample)

        for serialized, group in groups.items():
            if len(group) < 2:
                continue
            group.sort(key=lambda s: s.timestamp)
            for previous, current in zip(group, group[1:]):
                delta = _elapsed_ms(previous.timestamp, current.timestamp)
                if delta < threshold_ms:
                    issues.append(DuplicateRequestIssue(
                        query_key=str(key),
                        serialized_query=serialized,
                        instance_count=len(group),
                        time_difference_ms=delta,
                        suggestion=_suggestion_for(key, len(group))
                    ))
                    break

    suggestions = list(DUPLICATE_REQUEST_SUGGESTIONS) if issues else []
    return DuplicateDetectionResult(issues=issues, suggestions=suggestions)


def _suggestion_for(key: QueryStatKey, instance_count: int) -> str:
    if key.operation in ('find', 'findOne', 'count', 'aggregate', 'select', 'distinct'):
        return (f"{instance_count} identical reads on {key.collection}; "
                f"cache or deduplicate the request")
    return (f"{instance_count} identical {key.operation} calls on {key.collection}; "
            f"check for double submission")


class DuplicateRequestDetector:
    """Runs duplicate detection against a live recorder's sample snapshot."""

    def __init__(self, recorder, clock=None):
        self.recorder = recorder
        self.clock = clock or recorder.clock

    def detect(self, window_ms: float = DEFAULT_WINDOW_MS,
               threshold_ms: float = DEFAULT_THRESHOLD_MS,
               now: Optional[datetime] = None) -> DuplicateDetectionResult:
        samples = self.recorder.snapshot_samples()
        return detect_duplicates(samples, now or self.clock(),
                                 window_ms=window_ms, threshold_ms=threshold_ms)
