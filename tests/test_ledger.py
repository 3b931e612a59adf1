"""
Tests for the transaction log and its validation.
"""

import pytest
from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from dzbudget.config import AppSettings
from dzbudget.models.budget import (
    AccountType,
    Language,
    TransactionInput,
    TransactionType,
)
from dzbudget.ledger import TransactionLog
from dzbudget.registry import CategoryRegistry
from dzbudget.validation import (
    TransactionValidator,
    ValidationError,
    get_user_friendly_summary,
)


NOW = datetime(2024, 3, 15, 12, 0, tzinfo=timezone.utc)


def expense(description="Courses", amount="1200", category_id="1", account=AccountType.CASH):
    return TransactionInput(
        description=description,
        amount=Decimal(amount),
        category_id=category_id,
        account_type=account,
        type=TransactionType.EXPENSE,
    )


def income(description="Salaire", amount="50000", account=AccountType.SALARY):
    return TransactionInput(
        description=description,
        amount=Decimal(amount),
        account_type=account,
        type=TransactionType.INCOME,
    )


@pytest.fixture
def log():
    return TransactionLog(CategoryRegistry(), clock=lambda: NOW)


class TestTransactionValidator:
    """Tests for the two-stage validation pipeline."""

    def setup_method(self):
        self.validator = TransactionValidator(
            CategoryRegistry(),
            settings=AppSettings(max_transaction_amount=Decimal("1000000")),
        )

    def test_valid_expense(self):
        """Test that a complete expense passes."""
        result = self.validator.validate(expense())
        assert result.is_valid is True
        assert result.issues == []

    def test_valid_income_without_category(self):
        """Test that income needs no category."""
        result = self.validator.validate(income())
        assert result.is_valid is True

    def test_missing_description(self):
        """Test that a blank description is refused."""
        result = self.validator.validate(expense(description="   "))
        assert result.is_valid is False
        assert result.schema_valid is False
        assert result.issues[0].field == "description"
        assert result.issues[0].issue_type == "missing"

    @pytest.mark.parametrize("amount", ["0", "-10"])
    def test_non_positive_amount(self, amount):
        """Test that zero and negative amounts are refused."""
        result = self.validator.validate(expense(amount=amount))
        assert result.is_valid is False
        assert any(i.issue_type == "non_positive" for i in result.issues)

    def test_expense_without_category(self):
        """Test that an expense must name a category."""
        result = self.validator.validate(expense(category_id=None))
        assert result.is_valid is False
        assert any(
            i.field == "category_id" and i.issue_type == "missing"
            for i in result.issues
        )

    def test_unknown_category(self):
        """Test that an expense cannot reference a missing category."""
        result = self.validator.validate(expense(category_id="99"))
        assert result.schema_valid is True
        assert result.semantic_valid is False
        assert result.issues[0].issue_type == "unknown_category"

    def test_semantic_stage_skipped_on_schema_failure(self):
        """Test that an unknown category is not reported when the amount is bad."""
        result = self.validator.validate(expense(amount="0", category_id="99"))
        assert all(i.issue_type != "unknown_category" for i in result.issues)

    def test_large_amount_is_warning_only(self):
        """Test that implausible amounts are flagged but accepted."""
        result = self.validator.validate(expense(amount="5000000"))
        assert result.is_valid is True
        assert result.issues[0].severity == "warning"

    def test_ensure_valid_raises(self):
        """Test that ensure_valid raises with the full result."""
        with pytest.raises(ValidationError) as exc_info:
            self.validator.ensure_valid(expense(description=""))
        assert exc_info.value.result.is_valid is False
        assert exc_info.value.issues[0].field == "description"

    def test_user_friendly_summary_is_localized(self):
        """Test that the summary uses the interface language."""
        result = self.validator.validate(expense(description="", amount="0"))
        fr = get_user_friendly_summary(result, Language.FR)
        ar = get_user_friendly_summary(result, Language.AR)
        assert "La description est obligatoire." in fr
        assert "الوصف إجباري." in ar
        assert fr.count("❌") == 2


class TestTransactionLog:
    """Tests for TransactionLog."""

    def test_append_stamps_date_and_id(self, log):
        """Test that append records the clock time and a fresh id."""
        tx = log.append(expense())
        assert tx.date == NOW
        assert tx.id is not None
        assert len(log) == 1

    def test_newest_first(self, log):
        """Test that the newest entry is at the head."""
        first = log.append(expense(description="A"))
        second = log.append(expense(description="B"))
        assert [t.id for t in log.list()] == [second.id, first.id]

    def test_description_is_trimmed(self, log):
        """Test that surrounding whitespace is not stored."""
        tx = log.append(expense(description="  Pain  "))
        assert tx.description == "Pain"

    def test_refused_input_records_nothing(self, log):
        """Test that a refused entry leaves the log unchanged."""
        with pytest.raises(ValidationError):
            log.append(expense(amount="0"))
        assert len(log) == 0

    def test_remove(self, log):
        """Test deleting by id."""
        keep = log.append(expense(description="Keep"))
        drop = log.append(expense(description="Drop"))
        assert log.remove(drop.id) is True
        assert [t.id for t in log.list()] == [keep.id]

    def test_remove_accepts_string_id(self, log):
        """Test that a string id works as well as a UUID."""
        tx = log.append(income())
        assert log.remove(str(tx.id)) is True
        assert len(log) == 0

    def test_remove_unknown_is_idempotent(self, log):
        """Test that removing an unknown id is a no-op."""
        log.append(expense())
        assert log.remove(uuid4()) is False
        assert log.remove("not-a-uuid") is False
        assert len(log) == 1

    def test_list_is_a_copy(self, log):
        """Test that callers cannot mutate the log through list()."""
        log.append(expense())
        log.list().clear()
        assert len(log) == 1

    def test_get(self, log):
        """Test lookup by id."""
        tx = log.append(income())
        assert log.get(tx.id) == tx
        assert log.get(uuid4()) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
