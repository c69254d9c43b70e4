"""Schema validation package."""

from finance_tracker.validation.validator import (
    ACCOUNT_VALIDATOR,
    BUDGET_VALIDATOR,
    GOAL_VALIDATOR,
    RECURRING_PATTERN_VALIDATOR,
    TRANSACTION_VALIDATOR,
    CollectionValidator,
    ValidationError,
    validate_accounts,
    validate_budgets,
    validate_goals,
    validate_recurring_patterns,
    validate_transactions,
)

__all__ = [
    "ACCOUNT_VALIDATOR",
    "BUDGET_VALIDATOR",
    "GOAL_VALIDATOR",
    "RECURRING_PATTERN_VALIDATOR",
    "TRANSACTION_VALIDATOR",
    "CollectionValidator",
    "ValidationError",
    "validate_accounts",
    "validate_budgets",
    "validate_goals",
    "validate_recurring_patterns",
    "validate_transactions",
]
