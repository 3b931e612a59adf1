"""
Data Models Package

This package contains all Pydantic models used in DzBudget.
All data flowing through the system must conform to these schemas.
"""

from dzbudget.models.budget import (
    AccountType,
    AddTransaction,
    BudgetCommand,
    BudgetSnapshot,
    BudgetState,
    Category,
    CategoryMetric,
    DeleteTransaction,
    Language,
    Transaction,
    TransactionInput,
    TransactionType,
    UpdateCategoryLimit,
    UpdateSavingsGoal,
    ValidationIssue,
    ValidationResult,
    looks_like_savings_name,
)
from dzbudget.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Budget models
    "AccountType",
    "AddTransaction",
    "BudgetCommand",
    "BudgetSnapshot",
    "BudgetState",
    "Category",
    "CategoryMetric",
    "DeleteTransaction",
    "Language",
    "Transaction",
    "TransactionInput",
    "TransactionType",
    "UpdateCategoryLimit",
    "UpdateSavingsGoal",
    "ValidationIssue",
    "ValidationResult",
    "looks_like_savings_name",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
