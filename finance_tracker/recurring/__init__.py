"""Recurring transaction scheduling package."""

from finance_tracker.recurring.scheduler import (
    RecurringScheduler,
    due_occurrences,
    first_due,
    next_occurrence,
)

__all__ = [
    "RecurringScheduler",
    "due_occurrences",
    "first_due",
    "next_occurrence",
]
