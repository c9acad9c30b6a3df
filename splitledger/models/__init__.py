"""
Data Models Package

This package contains all Pydantic models used in Split Ledger.
All data flowing through the system must conform to these schemas.
"""

from splitledger.models.ledger import (
    SPLIT_TOKEN_SYNONYMS,
    BalanceReport,
    BalanceSummary,
    Category,
    Expense,
    ExpenseCreate,
    SkippedExpense,
    SkipReason,
    SplitType,
    User,
    ValidationIssue,
    ValidationResult,
)
from splitledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "SPLIT_TOKEN_SYNONYMS",
    "BalanceReport",
    "BalanceSummary",
    "Category",
    "Expense",
    "ExpenseCreate",
    "SkippedExpense",
    "SkipReason",
    "SplitType",
    "User",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
