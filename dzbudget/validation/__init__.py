"""Transaction validation package."""

from dzbudget.validation.validator import (
    TransactionValidator,
    ValidationError,
    get_user_friendly_summary,
)

__all__ = ["TransactionValidator", "ValidationError", "get_user_friendly_summary"]
