"""Data Transfer Objects (DTOs) for index analysis and performance reports."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

from analytics.analytics_models import DuplicateRequestIssue

Direction = Union[int, str]

PRIORITY_HIGH = 'high'
PRIORITY_MEDIUM = 'medium'
PRIORITY_LOW = 'low'
PRIORITIES = (PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW)

STATUS_CREATED = 'created'
STATUS_EXISTS = 'exists'
STATUS_ERROR = 'error'


def _normalize_direction(direction: Any) -> Direction:
    if isinstance(direction, bool):
        raise ValueError(f"Invalid index direction: {direction!r}")
    if isinstance(direction, float) and direction.is_integer():
        return int(direction)
    if isinstance(direction, (int, str)):
        return direction
    raise ValueError(f"Invalid index direction: {direction!r}")


@dataclass(frozen=True)
class IndexSpec:
    """Ordered (field, direction) pairs describing an index key.

    Two notions of equivalence exist and are used in different places:
    name-equivalence compares field names in order and ignores direction,
    exact-equivalence compares names and directions in order.
    """
    fields: Tuple[Tuple[str, Direction], ...]
    name: Optional[str] = None

    def __post_init__(self):
        normalized = tuple((str(f), _normalize_direction(d)) for f, d in self.fields)
        if not normalized:
            raise ValueError("IndexSpec requires at least one field")
        object.__setattr__(self, 'fields', normalized)

    @classmethod
    def of(cls, *fields: Union[str, Tuple[str, Direction]], name: Optional[str] = None) -> 'IndexSpec':
        """Build from bare field names (ascending) or (field, direction) pairs."""
        pairs = [(f, 1) if isinstance(f, str) else tuple(f) for f in fields]
        return cls(fields=tuple(pairs), name=name)

    @classmethod
    def from_mapping(cls, key: Mapping[str, Any], name: Optional[str] = None) -> 'IndexSpec':
        return cls(fields=tuple(key.items()), name=name)

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f for f, _ in self.fields)

    def name_key(self) -> Tuple[str, ...]:
        return self.field_names

    def exact_key(self) -> Tuple[Tuple[str, Direction], ...]:
        return self.fields

    def is_name_equivalent(self, other: 'IndexSpec') -> bool:
        return self.name_key() == other.name_key()

    def is_exact_equivalent(self, other: 'IndexSpec') -> bool:
        return self.exact_key() == other.exact_key()

    def default_name(self) -> str:
        return '_'.join(f"{f}_{d}" for f, d in self.fields)

    def describe(self) -> str:
        return ', '.join(f"{f}: {d}" for f, d in self.fields)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'fields': [[f, d] for f, d in self.fields],
            'name': self.name
        }


@dataclass(frozen=True)
class IndexRecommendation:
    """An expected index the collection does not have."""
    collection: str
    index_spec: IndexSpec
    reason: str
    priority: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'collection': self.collection,
            'index': self.index_spec.to_dict(),
            'reason': self.reason,
            'priority': self.priority
        }


@dataclass(frozen=True)
class CollectionIndexInfo:
    """Indexes and storage statistics for one collection, or the read error."""
    collection: str
    indexes: Tuple[IndexSpec, ...] = ()
    document_count: int = 0
    storage_bytes: int = 0
    index_bytes: int = 0
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> Dict[str, Any]:
        if self.error is not None:
            return {'collection': self.collection, 'error': self.error}
        return {
            'collection': self.collection,
            'indexes': [idx.to_dict() for idx in self.indexes],
            'document_count': self.document_count,
            'storage_bytes': self.storage_bytes,
            'index_bytes': self.index_bytes
        }


@dataclass(frozen=True)
class IndexCreationResult:
    """Outcome of remediating one recommendation."""
    collection: str
    index_spec: IndexSpec
    status: str
    index_name: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'collection': self.collection,
            'index': self.index_spec.to_dict(),
            'status': self.status,
            'index_name': self.index_name,
            'error': self.error
        }


@dataclass(frozen=True)
class ImageRecommendation:
    """Informational asset-serving advice."""
    type: str
    issue: Optional[str]
    suggestions: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            'type': self.type,
            'issue': self.issue,
            'suggestions': list(self.suggestions)
        }


@dataclass(frozen=True)
class QueryPerformanceSummary:
    """Aggregate view of the recorder at report time."""
    total_queries: int
    slow_query_count: int
    avg_execution_time_ms: float
    per_key_breakdown: Tuple[Dict[str, Any], ...] = ()

    def sorted_breakdown(self) -> List[Dict[str, Any]]:
        """Per-key entries ordered by descending average latency.

        Each entry carries its ``collection`` and ``operation`` alongside
        the statistics, so dotted collection names never collide.
        """
        return sorted(self.per_key_breakdown,
                      key=lambda entry: entry['avg_time_ms'], reverse=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'total_queries': self.total_queries,
            'slow_query_count': self.slow_query_count,
            'avg_execution_time_ms': self.avg_execution_time_ms,
            'per_key_breakdown': [dict(entry) for entry in self.per_key_breakdown]
        }


@dataclass(frozen=True)
class ReportSummary:
    performance_score: int
    critical_issues: int
    recommendation_count: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            'performance_score': self.performance_score,
            'critical_issues': self.critical_issues,
            'recommendation_count': self.recommendation_count
        }


@dataclass(frozen=True)
class PerformanceReport:
    """Complete advisory report. Immutable once returned."""
    timestamp: datetime
    index_metadata: Dict[str, CollectionIndexInfo]
    missing_indexes: Tuple[IndexRecommendation, ...]
    query_performance: QueryPerformanceSummary
    duplicate_issues: Tuple[DuplicateRequestIssue, ...]
    duplicate_suggestions: Tuple[str, ...]
    image_recommendations: Tuple[ImageRecommendation, ...]
    summary: ReportSummary
    system: Dict[str, Any] = field(default_factory=dict)
    errors: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'timestamp': self.timestamp.isoformat(),
            'index_metadata': {name: info.to_dict() for name, info in self.index_metadata.items()},
            'missing_indexes': [rec.to_dict() for rec in self.missing_indexes],
            'query_performance': self.query_performance.to_dict(),
            'duplicate_issues': [issue.to_dict() for issue in self.duplicate_issues],
            'duplicate_suggestions': list(self.duplicate_suggestions),
            'image_recommendations': [rec.to_dict() for rec in self.image_recommendations],
            'system': dict(self.system),
            'errors': list(self.errors),
            'summary': self.summary.to_dict()
        }


@dataclass
class AutoOptimizeResult:
    """Outcome of an auto-optimization pass."""
    created: List[IndexCreationResult] = field(default_factory=list)
    skipped: List[IndexCreationResult] = field(default_factory=list)
    failed: List[IndexCreationResult] = field(default_factory=list)
    planned: List[IndexRecommendation] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    image_suggestions: List[str] = field(default_factory=list)

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def error_count(self) -> int:
        return len(self.failed)

    def add_results(self, results: Sequence[IndexCreationResult]) -> None:
        for result in results:
            if result.status == STATUS_CREATED:
                self.created.append(result)
            elif result.status == STATUS_EXISTS:
                self.skipped.append(result)
            else:
                self.failed.append(result)
                self.errors.append(
                    f"{result.collection} ({result.index_spec.describe()}): {result.error}"
                )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'created': [r.to_dict() for r in self.created],
            'skipped': [r.to_dict() for r in self.skipped],
            'failed': [r.to_dict() for r in self.failed],
            'planned': [r.to_dict() for r in self.planned],
            'errors': list(self.errors),
            'image_suggestions': list(self.image_suggestions),
            'created_count': self.created_count,
            'skipped_count': self.skipped_count,
            'error_count': self.error_count
        }
