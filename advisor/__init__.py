"""Database performance advisory engine.

The engine and report compiler live in :mod:`advisor.engine` and
:mod:`advisor.report`; this package root only exposes the light-weight
types so the analytics layer can import the error taxonomy freely.
"""

from .errors import (
    AdvisorError,
    StoreConnectionError,
    CollectionReadError,
    IndexCreateError,
    MonitoringStateError
)
from .models import (
    IndexSpec,
    IndexRecommendation,
    CollectionIndexInfo,
    IndexCreationResult,
    PerformanceReport,
    AutoOptimizeResult
)
from .index_rules import IndexRule, DEFAULT_INDEX_RULES

__all__ = [
    'AdvisorError',
    'StoreConnectionError',
    'CollectionReadError',
    'IndexCreateError',
    'MonitoringStateError',
    'IndexSpec',
    'IndexRecommendation',
    'CollectionIndexInfo',
    'IndexCreationResult',
    'PerformanceReport',
    'AutoOptimizeResult',
    'IndexRule',
    'DEFAULT_INDEX_RULES'
]
