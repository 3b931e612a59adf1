"""
Core Data Models for DzBudget

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and logging
4. Load data written by the browser version of the app unchanged

DESIGN DECISION: Money is Decimal everywhere. Sums over a long log must not
drift, and two snapshots of the same log must compare equal.

DESIGN DECISION: Python code uses snake_case field names, persisted JSON uses
the camelCase names of the original browser storage (nameFr, categoryId, ...).
Both are accepted on input.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Literal, Optional, Union
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """
    The money "bucket" a transaction moves through.

    Independent of the spending category: a grocery expense can be paid
    in cash or from the salary account.
    """
    CASH = "CASH"
    SALARY = "SALARY"
    SAVINGS = "SAVINGS"


class TransactionType(str, Enum):
    """Direction of a transaction. Amounts are always stored positive."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Language(str, Enum):
    """Supported interface languages."""
    FR = "fr"
    AR = "ar"


# Legacy data has no savings flag, the browser app guessed it from the label
SAVINGS_NAME_MARKERS = ("economie", "économie")


def looks_like_savings_name(name_fr: str) -> bool:
    """Old heuristic: a French label mentioning 'économie' is a savings category."""
    lowered = name_fr.lower()
    return any(marker in lowered for marker in SAVINGS_NAME_MARKERS)


_PERSISTED_MODEL_CONFIG = dict(
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
)


# =============================================================================
# CATEGORY & TRANSACTION
# =============================================================================

class Category(BaseModel):
    """
    A spending classification with a monthly limit.

    Only `limit` ever changes after creation, and only through
    CategoryRegistry.update_limit (which builds a new instance).
    """
    model_config = ConfigDict(frozen=True, **_PERSISTED_MODEL_CONFIG)

    id: str = Field(
        ...,
        min_length=1,
        description="Stable identifier, unique within the registry"
    )
    name_fr: str = Field(..., min_length=1, description="French display name")
    name_ar: str = Field(..., min_length=1, description="Arabic display name")
    limit: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Monthly spending ceiling in DZD"
    )
    icon: str = Field(default="", description="Glyph shown next to the name")
    color: str = Field(default="#6B7280", description="Display color")
    is_savings_category: bool = Field(
        default=False,
        description="Money put aside: reaching the limit is a goal, not an overrun"
    )

    @model_validator(mode="before")
    @classmethod
    def infer_savings_flag(cls, data):
        """Fill the savings flag for categories saved before it existed."""
        if isinstance(data, dict) and not (
            "is_savings_category" in data or "isSavingsCategory" in data
        ):
            name = data.get("name_fr", data.get("nameFr", ""))
            data = {**data, "is_savings_category": looks_like_savings_name(str(name))}
        return data

    def display_name(self, language: Language) -> str:
        return self.name_ar if Language(language) == Language.AR else self.name_fr


class TransactionInput(BaseModel):
    """
    What the user submits when recording a transaction.

    Deliberately loose: business rules (positive amount, known category)
    are checked by TransactionValidator so that the user gets a list of
    issues instead of a raw schema error.
    """
    model_config = ConfigDict(**_PERSISTED_MODEL_CONFIG)

    description: str = ""
    amount: Decimal
    category_id: Optional[str] = None
    account_type: AccountType = AccountType.CASH
    type: TransactionType = TransactionType.EXPENSE


class Transaction(BaseModel):
    """
    A recorded transaction.

    CRITICAL: Transactions are never edited. They are created by
    TransactionLog.append and removed by TransactionLog.remove.
    """
    model_config = ConfigDict(frozen=True, **_PERSISTED_MODEL_CONFIG)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    date: datetime = Field(
        ...,
        description="When the transaction was recorded"
    )
    description: str = Field(..., min_length=1)
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Magnitude in DZD, the sign is carried by `type`"
    )
    category_id: Optional[str] = Field(
        default=None,
        description="Spending category, meaningful for expenses only"
    )
    account_type: AccountType
    type: TransactionType

    @property
    def is_income(self) -> bool:
        return self.type == TransactionType.INCOME

    @property
    def is_expense(self) -> bool:
        return self.type == TransactionType.EXPENSE

    @property
    def signed_amount(self) -> Decimal:
        """+amount for income, -amount for expense."""
        return self.amount if self.is_income else -self.amount


# =============================================================================
# DERIVED METRICS (never persisted)
# =============================================================================

class CategoryMetric(BaseModel):
    """Current-month spending of one category against its limit."""
    model_config = ConfigDict(frozen=True)

    category_id: str
    name_fr: str
    name_ar: str
    icon: str
    color: str
    is_savings_category: bool
    spent: Decimal
    limit: Decimal
    # Not clamped: 150 means 50% over the limit
    percent: Decimal

    @property
    def is_over_limit(self) -> bool:
        """Overspent a regular category."""
        return not self.is_savings_category and self.percent > 100

    @property
    def goal_reached(self) -> bool:
        """Put aside at least the planned amount this month."""
        return self.is_savings_category and self.percent >= 100

    def display_name(self, language: Language) -> str:
        return self.name_ar if Language(language) == Language.AR else self.name_fr


class BudgetSnapshot(BaseModel):
    """
    Everything the dashboard shows, computed in one pass.

    Produced by dzbudget.engine.compute_snapshot. All-time figures ignore
    month boundaries, `monthly_*` figures and category `spent` cover the
    calendar month of `computed_at` only.
    """
    model_config = ConfigDict(frozen=True)

    computed_at: datetime

    # All-time
    total_income: Decimal
    total_expense: Decimal
    total_balance: Decimal
    account_balances: dict[AccountType, Decimal]

    # Current calendar month
    monthly_income: Decimal
    monthly_expense: Decimal
    category_metrics: list[CategoryMetric] = Field(default_factory=list)
    total_limit: Decimal = Decimal("0")
    limit_usage_percent: Decimal = Decimal("0")

    # Scores
    health_score: Decimal = Field(..., ge=0, le=100)
    savings_goal: Decimal
    savings_progress_percent: Decimal

    def account_balance(self, account_type: AccountType) -> Decimal:
        return self.account_balances.get(AccountType(account_type), Decimal("0"))

    @property
    def cash_balance(self) -> Decimal:
        return self.account_balance(AccountType.CASH)

    @property
    def salary_balance(self) -> Decimal:
        return self.account_balance(AccountType.SALARY)

    @property
    def savings_balance(self) -> Decimal:
        return self.account_balance(AccountType.SAVINGS)

    def category_metric(self, category_id: str) -> Optional[CategoryMetric]:
        for metric in self.category_metrics:
            if metric.category_id == category_id:
                return metric
        return None

    @property
    def spending_breakdown(self) -> list[CategoryMetric]:
        """Categories with spending this month (pie chart data)."""
        return [m for m in self.category_metrics if m.spent > 0]

    @property
    def over_limit_categories(self) -> list[CategoryMetric]:
        return [m for m in self.category_metrics if m.is_over_limit]


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_value', 'unknown_category')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required fields, ranges)
    Stage 2: Semantic validation (references, plausibility)
    """

    validated_at: datetime = Field(
        default_factory=datetime.now
    )
    schema_valid: bool
    semantic_valid: bool
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def warnings(self) -> list[str]:
        return [issue.message for issue in self.issues if issue.severity == "warning"]


# =============================================================================
# STORE STATE & COMMANDS
# =============================================================================

class BudgetState(BaseModel):
    """
    The persisted state of the app at one point in time.

    Returned by BudgetStore.mutate; a new value after every change.
    """
    model_config = ConfigDict(frozen=True)

    categories: list[Category] = Field(default_factory=list)
    # Newest first
    transactions: list[Transaction] = Field(default_factory=list)
    savings_goal: Decimal = Field(default=Decimal("0"), ge=0)


class AddTransaction(BaseModel):
    """Record a new transaction at the head of the log."""
    kind: Literal["add_transaction"] = "add_transaction"
    transaction: TransactionInput


class DeleteTransaction(BaseModel):
    """Remove a transaction; unknown ids are ignored."""
    kind: Literal["delete_transaction"] = "delete_transaction"
    transaction_id: UUID


class UpdateCategoryLimit(BaseModel):
    """Change the monthly limit of a category; negative values become 0."""
    kind: Literal["update_category_limit"] = "update_category_limit"
    category_id: str
    limit: Decimal


class UpdateSavingsGoal(BaseModel):
    """Change the savings goal; negative values become 0."""
    kind: Literal["update_savings_goal"] = "update_savings_goal"
    goal: Decimal


BudgetCommand = Union[
    AddTransaction,
    DeleteTransaction,
    UpdateCategoryLimit,
    UpdateSavingsGoal,
]
