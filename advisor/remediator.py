"""Idempotent creation of recommended indexes."""

import logging
from typing import Iterable, List

from .errors import CollectionReadError, IndexCreateError
from .models import (
    IndexCreationResult, IndexRecommendation,
    STATUS_CREATED, STATUS_ERROR, STATUS_EXISTS,
)

logger = logging.getLogger(__name__)


class IndexRemediator:
    """Creates recommended indexes that do not already exist.

    Existence is decided by exact-equivalence: the same fields with the
    same directions in the same order. This is stricter than the
    name-equivalence used by the gap analyzer, so an index that differs
    only in direction satisfies the analyzer but not the remediator.
    """

    def __init__(self, store):
        self.store = store

    def create_recommended(self, recommendations: Iterable[IndexRecommendation],
                           background: bool = True) -> List[IndexCreationResult]:
        """Create each recommended index unless an exact match exists.

        Failures are recorded per recommendation and never stop the batch.

        Args:
            recommendations: Indexes to create
            background: Request non-blocking builds where the store supports them

        Returns:
            One IndexCreationResult per recommendation, in input order
        """
        results = []
        for rec in recommendations:
            results.append(self._remediate(rec, background))
        return results

    def _remediate(self, rec: IndexRecommendation, background: bool) -> IndexCreationResult:
        try:
            current = self.store.list_indexes(rec.collection)
        except CollectionReadError as e:
            logger.error(f"Cannot list indexes on {rec.collection}: {e.message}")
            return self._failed(rec, e.message)
        except Exception as e:
            logger.error(f"Cannot list indexes on {rec.collection}: {e}")
            return self._failed(rec, str(e))

        for existing in current:
            if existing.is_exact_equivalent(rec.index_spec):
                logger.info(f"Index ({rec.index_spec.describe()}) already exists on "
                            f"{rec.collection} as {existing.name}")
                return IndexCreationResult(collection=rec.collection, index_spec=rec.index_spec,
                                           status=STATUS_EXISTS, index_name=existing.name)

        try:
            name = self.store.create_index(rec.collection, rec.index_spec, background=background)
        except IndexCreateError as e:
            logger.error(f"Failed to create index ({rec.index_spec.describe()}) on "
                         f"{rec.collection}: {e.message}")
            return self._failed(rec, e.message, index_name=e.index_name)
        except Exception as e:
            logger.error(f"Failed to create index ({rec.index_spec.describe()}) on "
                         f"{rec.collection}: {e}")
            return self._failed(rec, str(e))

        return IndexCreationResult(collection=rec.collection, index_spec=rec.index_spec,
                                   status=STATUS_CREATED, index_name=name)

    @staticmethod
    def _failed(rec: IndexRecommendation, message: str, index_name=None) -> IndexCreationResult:
        return IndexCreationResult(collection=rec.collection, index_spec=rec.index_spec,
                                   status=STATUS_ERROR, index_name=index_name, error=message)
