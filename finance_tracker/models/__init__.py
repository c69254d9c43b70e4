"""
Data Models Package

This package contains all Pydantic models used in the finance tracker core.
All data read from or written to storage must conform to these schemas.
"""

from finance_tracker.models.entities import (
    Account,
    AccountType,
    AccountWithBalance,
    Budget,
    BudgetAlert,
    BudgetPeriod,
    BudgetProgress,
    BudgetStatus,
    ExportData,
    FinanceData,
    Frequency,
    Goal,
    GoalProgress,
    GoalStatus,
    RecurringPattern,
    Transaction,
    TransactionType,
    as_utc,
    new_id,
    parse_iso,
    to_iso,
    try_parse_iso,
    utc_now,
)
from finance_tracker.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Entity models
    "Account",
    "AccountType",
    "AccountWithBalance",
    "Budget",
    "BudgetAlert",
    "BudgetPeriod",
    "BudgetProgress",
    "BudgetStatus",
    "ExportData",
    "FinanceData",
    "Frequency",
    "Goal",
    "GoalProgress",
    "GoalStatus",
    "RecurringPattern",
    "Transaction",
    "TransactionType",
    # Id and timestamp helpers
    "as_utc",
    "new_id",
    "parse_iso",
    "to_iso",
    "try_parse_iso",
    "utc_now",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
