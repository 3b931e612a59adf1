"""
Category Registry

The fixed set of spending categories and their monthly limits.

DESIGN DECISION: Categories are seeded once and never added or removed
at runtime. Only the limit of an existing category can change. This is
what lets the log keep plain category ids without an orphan policy.
"""

from decimal import Decimal
from typing import Iterable, Iterator, Optional

import structlog

from dzbudget.models.budget import Category


logger = structlog.get_logger(__name__)


DEFAULT_CATEGORIES: tuple[Category, ...] = (
    Category(id="1", name_fr="Alimentation", name_ar="تغذية",
             limit=Decimal("30000"), icon="🍎", color="#EF4444"),
    Category(id="2", name_fr="Loyer & Charges", name_ar="كراء ومصاريف",
             limit=Decimal("40000"), icon="🏠", color="#3B82F6"),
    Category(id="3", name_fr="Transport", name_ar="نقل",
             limit=Decimal("10000"), icon="🚗", color="#F59E0B"),
    Category(id="4", name_fr="Santé", name_ar="صحة",
             limit=Decimal("5000"), icon="💊", color="#10B981"),
    Category(id="5", name_fr="Loisirs", name_ar="ترفيه",
             limit=Decimal("10000"), icon="🎮", color="#8B5CF6"),
    Category(id="7", name_fr="Économie", name_ar="ادخار",
             limit=Decimal("20000"), icon="💰", color="#10B981",
             is_savings_category=True),
    Category(id="6", name_fr="Divers", name_ar="أخرى",
             limit=Decimal("5000"), icon="✨", color="#6B7280"),
)


def seed_defaults() -> list[Category]:
    """The initial category set for a fresh install."""
    return list(DEFAULT_CATEGORIES)


class CategoryRegistry:
    """
    Ordered mapping from category id to Category.

    Iteration follows the seeded (display) order.
    """

    def __init__(self, categories: Optional[Iterable[Category]] = None):
        self._categories: dict[str, Category] = {}
        for category in (seed_defaults() if categories is None else categories):
            if category.id in self._categories:
                raise ValueError(f"Duplicate category id: {category.id}")
            self._categories[category.id] = category

    def __contains__(self, category_id: object) -> bool:
        return category_id in self._categories

    def __iter__(self) -> Iterator[Category]:
        return iter(self._categories.values())

    def __len__(self) -> int:
        return len(self._categories)

    def get(self, category_id: str) -> Optional[Category]:
        return self._categories.get(category_id)

    def to_list(self) -> list[Category]:
        return list(self._categories.values())

    @property
    def total_limit(self) -> Decimal:
        return sum((c.limit for c in self), Decimal("0"))

    def update_limit(self, category_id: str, new_limit: Decimal) -> Optional[Category]:
        """
        Set the monthly limit of a category.

        Negative limits are clamped to 0. An unknown id is a soft
        not-found: nothing changes and None is returned.

        Returns:
            The updated category, or None if the id is unknown
        """
        current = self._categories.get(category_id)
        if current is None:
            logger.warning("category_not_found", category_id=category_id)
            return None

        limit = max(Decimal(str(new_limit)), Decimal("0"))
        updated = current.model_copy(update={"limit": limit})
        self._categories[category_id] = updated
        return updated
