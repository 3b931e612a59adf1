"""
Two-Stage Transaction Validation

STAGE 1 - SCHEMA VALIDATION:
- Required field presence (description, category for expenses)
- Value ranges (amount strictly positive and finite)

STAGE 2 - SEMANTIC VALIDATION:
- The expense category exists in the registry
- Implausible amounts (flagged, not blocked)

Stage 2 is skipped when stage 1 fails: there is no point looking up the
category of an entry that has no amount.

IMPORTANT: Validation NEVER silently fixes issues. A rejected entry is
refused as a whole and nothing is recorded.
"""

from collections.abc import Container
from typing import Optional

from dzbudget.config import AppSettings, get_settings
from dzbudget.i18n import translate
from dzbudget.models.budget import (
    Language,
    TransactionInput,
    TransactionType,
    ValidationIssue,
    ValidationResult,
)


class ValidationError(Exception):
    """A transaction was refused. Carries the full validation result."""

    def __init__(self, result: ValidationResult):
        self.result = result
        messages = "; ".join(
            issue.message for issue in result.issues if issue.severity == "error"
        )
        super().__init__(f"Transaction rejected: {messages}")

    @property
    def issues(self) -> list[ValidationIssue]:
        return self.result.issues


class TransactionValidator:
    """
    Validates transaction input through a two-stage pipeline.

    Stage 1: Schema validation (input alone)
    Stage 2: Semantic validation (needs the known category ids)
    """

    def __init__(
        self,
        known_category_ids: Optional[Container[str]] = None,
        settings: Optional[AppSettings] = None,
    ):
        """
        Initialize validator.

        Args:
            known_category_ids: Anything supporting `in` (a CategoryRegistry,
                               a set of ids). If None, the category
                               reference check is skipped.
            settings: Thresholds; defaults to the application settings.
        """
        self._known_category_ids = known_category_ids
        self._settings = settings or get_settings().app

    def _validate_schema(
        self,
        tx: TransactionInput,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        description = (tx.description or "").strip()
        if not description:
            issues.append(ValidationIssue(
                field="description",
                issue_type="missing",
                message="Description is required",
                severity="error",
            ))
        elif len(description) > self._settings.max_description_length:
            issues.append(ValidationIssue(
                field="description",
                issue_type="too_long",
                message=(
                    f"Description is longer than "
                    f"{self._settings.max_description_length} characters"
                ),
                severity="error",
            ))

        if not tx.amount.is_finite():
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be a number",
                severity="error",
            ))
        elif tx.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="non_positive",
                message="Amount must be greater than zero",
                severity="error",
            ))

        if tx.type == TransactionType.EXPENSE and not tx.category_id:
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="missing",
                message="An expense needs a category",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def _validate_semantic(
        self,
        tx: TransactionInput,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if (
            tx.type == TransactionType.EXPENSE
            and self._known_category_ids is not None
            and tx.category_id not in self._known_category_ids
        ):
            issues.append(ValidationIssue(
                field="category_id",
                issue_type="unknown_category",
                message=f"Category '{tx.category_id}' does not exist",
                severity="error",
            ))

        if tx.amount > self._settings.max_transaction_amount:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="suspicious_value",
                message=f"Amount ({tx.amount:,} DZD) seems unusually high",
                severity="warning",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)
        return is_valid, issues

    def validate(self, tx: TransactionInput) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.

        Returns:
            ValidationResult with all issues found
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(tx)
        all_issues.extend(schema_issues)

        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(tx)
            all_issues.extend(semantic_issues)

        return ValidationResult(
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
        )

    def ensure_valid(self, tx: TransactionInput) -> ValidationResult:
        """Validate and raise ValidationError if the entry must be refused."""
        result = self.validate(tx)
        if not result.is_valid:
            raise ValidationError(result)
        return result


def get_user_friendly_summary(
    result: ValidationResult,
    language: Language = Language.FR,
) -> str:
    """
    Localized summary of validation results for the input form.
    """
    lines = []
    for issue in result.issues:
        prefix = "❌" if issue.severity == "error" else "⚠️"
        text = translate(f"issue_{issue.field}_{issue.issue_type}", language)
        lines.append(f"{prefix} {text}")
    return "\n".join(lines)
