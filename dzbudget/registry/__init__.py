"""Category registry package."""

from dzbudget.registry.categories import (
    DEFAULT_CATEGORIES,
    CategoryRegistry,
    seed_defaults,
)

__all__ = ["DEFAULT_CATEGORIES", "CategoryRegistry", "seed_defaults"]
