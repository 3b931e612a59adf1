"""
Tests for the category registry.
"""

import pytest
from decimal import Decimal

from dzbudget.models.budget import Category
from dzbudget.registry import DEFAULT_CATEGORIES, CategoryRegistry, seed_defaults


class TestSeedDefaults:
    """Tests for the fresh-install category set."""

    def test_seven_categories_in_display_order(self):
        """Test ids and order of the default set."""
        ids = [c.id for c in seed_defaults()]
        assert ids == ["1", "2", "3", "4", "5", "7", "6"]

    def test_default_limits(self):
        """Test the default monthly limits."""
        limits = {c.id: c.limit for c in seed_defaults()}
        assert limits["1"] == Decimal("30000")
        assert limits["2"] == Decimal("40000")
        assert limits["7"] == Decimal("20000")
        assert sum(limits.values()) == Decimal("120000")

    def test_only_economie_is_savings(self):
        """Test that exactly one default category is a savings category."""
        savings = [c for c in seed_defaults() if c.is_savings_category]
        assert [c.id for c in savings] == ["7"]

    def test_returns_fresh_list(self):
        """Test that callers cannot alter the defaults through the returned list."""
        first = seed_defaults()
        first.clear()
        assert len(seed_defaults()) == len(DEFAULT_CATEGORIES)


class TestCategoryRegistry:
    """Tests for CategoryRegistry."""

    def test_defaults_when_empty(self):
        """Test that a registry without arguments is seeded."""
        registry = CategoryRegistry()
        assert len(registry) == 7
        assert "1" in registry
        assert "99" not in registry

    def test_rejects_duplicate_ids(self):
        """Test that ids must be unique."""
        cat = Category(id="1", name_fr="A", name_ar="B")
        with pytest.raises(ValueError, match="Duplicate"):
            CategoryRegistry([cat, cat])

    def test_update_limit(self):
        """Test changing a limit."""
        registry = CategoryRegistry()
        updated = registry.update_limit("3", Decimal("12500"))
        assert updated.limit == Decimal("12500")
        assert registry.get("3").limit == Decimal("12500")

    def test_update_limit_keeps_other_fields_and_order(self):
        """Test that only the limit changes."""
        registry = CategoryRegistry()
        before = registry.get("4")
        registry.update_limit("4", Decimal("7000"))
        after = registry.get("4")
        assert after.name_fr == before.name_fr
        assert after.icon == before.icon
        assert [c.id for c in registry] == [c.id for c in seed_defaults()]

    def test_negative_limit_is_clamped(self):
        """Test that a negative limit becomes zero."""
        registry = CategoryRegistry()
        updated = registry.update_limit("1", Decimal("-500"))
        assert updated.limit == Decimal("0")

    def test_float_limit_is_exact(self):
        """Test that float input does not leak binary noise into the limit."""
        registry = CategoryRegistry()
        updated = registry.update_limit("1", 1500.1)
        assert updated.limit == Decimal("1500.1")

    def test_unknown_id_is_soft_not_found(self):
        """Test that an unknown id changes nothing."""
        registry = CategoryRegistry()
        before = registry.to_list()
        assert registry.update_limit("99", Decimal("100")) is None
        assert registry.to_list() == before

    def test_total_limit(self):
        """Test the sum of all limits."""
        registry = CategoryRegistry()
        assert registry.total_limit == Decimal("120000")
        registry.update_limit("6", Decimal("0"))
        assert registry.total_limit == Decimal("115000")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
