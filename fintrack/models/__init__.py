"""
Data Models Package

This package contains all Pydantic models used in FinTrack.
Every persisted record and every derived view conforms to these schemas.
"""

from fintrack.models.ledger import (
    CategoryKind,
    DashboardScope,
    ExpenseTag,
    Goal,
    Transaction,
    TransactionDraft,
    TransactionType,
    User,
    UserSettings,
    ValidationIssue,
    ValidationResult,
)
from fintrack.models.exchange import (
    Currency,
    ExchangeCard,
    SUPPORTED_CURRENCIES,
    find_currency,
)
from fintrack.models.profile import (
    ProfileContext,
    ProfileNamespace,
    RecordKey,
    SharedKey,
)
from fintrack.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "CategoryKind",
    "DashboardScope",
    "ExpenseTag",
    "Goal",
    "Transaction",
    "TransactionDraft",
    "TransactionType",
    "User",
    "UserSettings",
    "ValidationIssue",
    "ValidationResult",
    # Exchange models
    "Currency",
    "ExchangeCard",
    "SUPPORTED_CURRENCIES",
    "find_currency",
    # Profile context
    "ProfileContext",
    "ProfileNamespace",
    "RecordKey",
    "SharedKey",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
