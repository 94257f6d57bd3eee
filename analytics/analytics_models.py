"""Query statistics data models and DTOs."""

from collections import deque
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, List, Optional
from datetime import datetime


@dataclass(frozen=True)
class QueryStatKey:
    """Identity of a statistics bucket: one collection and one operation."""
    collection: str
    operation: str

    def __str__(self) -> str:
        return f"{self.collection}.{self.operation}"

    def to_dict(self) -> Dict[str, str]:
        return {'collection': self.collection, 'operation': self.operation}


@dataclass(frozen=True)
class QuerySample:
    """Single observed execution kept in a key's recent history."""
    query: Any
    execution_time_ms: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'query': self.query,
            'execution_time_ms': self.execution_time_ms,
            'timestamp': self.timestamp.isoformat()
        }


@dataclass
class QueryStats:
    """Aggregated execution statistics for one QueryStatKey.

    ``recent_samples`` is a bounded deque; appending past its ``maxlen``
    drops the oldest sample.
    """
    count: int = 0
    total_time_ms: float = 0.0
    avg_time_ms: float = 0.0
    max_time_ms: float = 0.0
    slow_count: int = 0
    recent_samples: Deque[QuerySample] = field(default_factory=lambda: deque(maxlen=100))

    @classmethod
    def with_capacity(cls, capacity: int) -> 'QueryStats':
        return cls(recent_samples=deque(maxlen=capacity))

    def observe(self, sample: QuerySample, is_slow: bool) -> None:
        """Fold one execution into the aggregate."""
        self.count += 1
        self.total_time_ms += sample.execution_time_ms
        self.avg_time_ms = self.total_time_ms / self.count
        self.max_time_ms = max(self.max_time_ms, sample.execution_time_ms)
        if is_slow:
            self.slow_count += 1
        self.recent_samples.append(sample)

    @property
    def slow_query_percentage(self) -> float:
        if self.count == 0:
            return 0.0
        return (self.slow_count / self.count) * 100

    def to_dict(self, include_samples: bool = False) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        data = {
            'count': self.count,
            'total_time_ms': round(self.total_time_ms, 2),
            'avg_time_ms': round(self.avg_time_ms, 2),
            'max_time_ms': round(self.max_time_ms, 2),
            'slow_count': self.slow_count,
            'slow_query_percentage': round(self.slow_query_percentage, 2)
        }
        if include_samples:
            data['recent_samples'] = [s.to_dict() for s in self.recent_samples]
        return data


@dataclass(frozen=True)
class SlowQueryRecord:
    """Individual execution that exceeded the slow query threshold."""
    collection: str
    operation: str
    query: Any
    execution_time_ms: float
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'collection': self.collection,
            'operation': self.operation,
            'query': self.query,
            'execution_time_ms': self.execution_time_ms,
            'timestamp': self.timestamp.isoformat()
        }


@dataclass(frozen=True)
class DuplicateRequestIssue:
    """Identical queries on one key observed close together in time."""
    query_key: str
    serialized_query: str
    instance_count: int
    time_difference_ms: float
    suggestion: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            'query_key': self.query_key,
            'serialized_query': self.serialized_query,
            'instance_count': self.instance_count,
            'time_difference_ms': self.time_difference_ms,
            'suggestion': self.suggestion
        }


@dataclass(frozen=True)
class DuplicateDetectionResult:
    """Issues found by one detection pass plus mitigation advice."""
    issues: List[DuplicateRequestIssue] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'issues': [issue.to_dict() for issue in self.issues],
            'suggestions': list(self.suggestions)
        }


@dataclass(frozen=True)
class RecorderSnapshot:
    """Consistent copy of the recorder's state taken under one lock."""
    stats: Dict[QueryStatKey, QueryStats]
    slow_queries: List[SlowQueryRecord]
    samples: Dict[QueryStatKey, tuple]

    @property
    def total_queries(self) -> int:
        return sum(s.count for s in self.stats.values())

    @property
    def total_time_ms(self) -> float:
        return sum(s.total_time_ms for s in self.stats.values())

    @property
    def weighted_avg_time_ms(self) -> float:
        total = self.total_queries
        return self.total_time_ms / total if total else 0.0
