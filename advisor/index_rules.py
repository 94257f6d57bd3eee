"""Declarative table of indexes every monitored collection is expected to have.

Each rule names the compound index that serves one common query-filter
shape. Extend the table (or pass extra rules through the advisor
configuration) instead of changing the analysis code.
"""

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Sequence, Tuple

from .models import IndexSpec, PRIORITIES, PRIORITY_HIGH, PRIORITY_MEDIUM, PRIORITY_LOW


@dataclass(frozen=True)
class IndexRule:
    """One expected index and why it matters."""
    collection: str
    index: IndexSpec
    reason: str
    priority: str

    def __post_init__(self):
        if self.priority not in PRIORITIES:
            raise ValueError(f"Invalid priority '{self.priority}' for {self.collection} rule")

    @property
    def expected_fields(self) -> Tuple[str, ...]:
        return self.index.field_names

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> 'IndexRule':
        """Create from ``{"collection", "fields", "reason", "priority"}``.

        ``fields`` is a list of names or ``[name, direction]`` pairs.
        """
        return cls(
            collection=data['collection'],
            index=IndexSpec.of(*data['fields']),
            reason=data.get('reason', ''),
            priority=data.get('priority', PRIORITY_MEDIUM)
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'collection': self.collection,
            'fields': [[f, d] for f, d in self.index.fields],
            'reason': self.reason,
            'priority': self.priority
        }


DEFAULT_INDEX_RULES: Tuple[IndexRule, ...] = (
    # products
    IndexRule('products', IndexSpec.of('status', 'visibility', 'category'),
              'Storefront listings filter on status, visibility and category', PRIORITY_HIGH),
    IndexRule('products', IndexSpec.of('category', 'price', 'status', 'visibility'),
              'Category pages filter visible products by price range', PRIORITY_MEDIUM),
    IndexRule('products', IndexSpec.of('brand', 'status'),
              'Brand filter on active products', PRIORITY_MEDIUM),
    IndexRule('products', IndexSpec.of('featured', 'status'),
              'Homepage featured product lookup', PRIORITY_MEDIUM),
    IndexRule('products', IndexSpec.of(('createdAt', -1), 'status'),
              'Newest-first product listings', PRIORITY_LOW),
    IndexRule('products', IndexSpec.of(('rating.average', -1), 'status'),
              'Top-rated product sorting', PRIORITY_LOW),
    # orders
    IndexRule('orders', IndexSpec.of('user', 'status', ('createdAt', -1)),
              'Customer order history filtered by status', PRIORITY_HIGH),
    IndexRule('orders', IndexSpec.of('status', ('createdAt', -1)),
              'Admin order queue sorted by date', PRIORITY_HIGH),
    IndexRule('orders', IndexSpec.of('items.product'),
              'Order lookup by purchased product', PRIORITY_LOW),
    # reviews
    IndexRule('reviews', IndexSpec.of('product', 'status', ('createdAt', -1)),
              'Approved reviews for a product page', PRIORITY_HIGH),
    IndexRule('reviews', IndexSpec.of('user', ('createdAt', -1)),
              'Reviews written by a customer', PRIORITY_MEDIUM),
    # users
    IndexRule('users', IndexSpec.of('email'),
              'Login and account lookup by email', PRIORITY_HIGH),
    IndexRule('users', IndexSpec.of('role', 'isActive'),
              'Admin user management filters', PRIORITY_MEDIUM),
    # categories
    IndexRule('categories', IndexSpec.of('slug'),
              'Category page lookup by slug', PRIORITY_HIGH),
    IndexRule('categories', IndexSpec.of('parent', 'isActive'),
              'Category tree navigation', PRIORITY_MEDIUM),
)


def rules_by_collection(rules: Iterable[IndexRule]) -> Dict[str, List[IndexRule]]:
    """Group rules per collection, keeping declaration order."""
    grouped: Dict[str, List[IndexRule]] = OrderedDict()
    for rule in rules:
        grouped.setdefault(rule.collection, []).append(rule)
    return grouped


def load_rules(entries: Sequence[Mapping[str, Any]]) -> List[IndexRule]:
    return [IndexRule.from_dict(entry) for entry in entries]
