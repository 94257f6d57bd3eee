"""Compares the expected index rule table against indexes that actually exist."""

from typing import Iterable, List, Mapping, Optional, Set, Tuple

from .index_rules import DEFAULT_INDEX_RULES, IndexRule, rules_by_collection
from .models import CollectionIndexInfo, IndexRecommendation, IndexSpec


def existing_name_keys(indexes: Iterable[IndexSpec]) -> Set[Tuple[str, ...]]:
    """Name-equivalence keys (ordered field names, direction ignored)."""
    return {index.name_key() for index in indexes}


def analyze(metadata: Mapping[str, CollectionIndexInfo],
            rules: Iterable[IndexRule] = DEFAULT_INDEX_RULES) -> List[IndexRecommendation]:
    """Return a recommendation for every rule with no name-equivalent index.

    Collections missing from *metadata*, or whose read failed, produce no
    recommendations since their current indexes are unknown.
    """
    recommendations: List[IndexRecommendation] = []

    for collection, collection_rules in rules_by_collection(rules).items():
        info = metadata.get(collection)
        if info is None or not info.ok:
            continue

        present = existing_name_keys(info.indexes)
        for rule in collection_rules:
            if rule.index.name_key() not in present:
                recommendations.append(IndexRecommendation(
                    collection=collection,
                    index_spec=rule.index,
                    reason=rule.reason,
                    priority=rule.priority
                ))

    return recommendations


class IndexGapAnalyzer:
    """Holds a rule table and analyzes metadata against it."""

    def __init__(self, rules: Optional[Iterable[IndexRule]] = None):
        self.rules = tuple(rules) if rules is not None else DEFAULT_INDEX_RULES

    @property
    def collections(self) -> List[str]:
        return list(rules_by_collection(self.rules).keys())

    def analyze(self, metadata: Mapping[str, CollectionIndexInfo]) -> List[IndexRecommendation]:
        return analyze(metadata, self.rules)
