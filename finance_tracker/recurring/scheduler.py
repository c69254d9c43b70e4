"""
Recurring Transaction Scheduler

DESIGN DECISION: Scheduling is a pure function of the pattern and a
caller-supplied "as of" instant. The scheduler never reads the wall clock,
which keeps catch-up generation deterministic and testable.

Per pattern:
- First due instant: start_date when last_occurrence is unset (inclusive),
  otherwise the occurrence after last_occurrence
- Every due instant <= now produces one transaction, oldest first
- last_occurrence is then set ONCE, to the last instant produced

GUARANTEES:
- Inactive patterns never produce transactions
- Patterns whose dates are not ISO-8601 are never due
- Running generation twice with the same `now` produces nothing the second
  time, because the watermark is already past `now`
"""

import calendar
from datetime import datetime, timedelta
from typing import TYPE_CHECKING, Optional

from finance_tracker.models.audit import AuditEventBuilder
from finance_tracker.models.entities import (
    Frequency,
    RecurringPattern,
    Transaction,
    as_utc,
    to_iso,
    try_parse_iso,
)

if TYPE_CHECKING:
    from finance_tracker.store import FinanceStore


def _add_months(moment: datetime, months: int) -> datetime:
    """Calendar month arithmetic; the day is clamped to the target month's length."""
    total = moment.year * 12 + (moment.month - 1) + months
    year, month = total // 12, total % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return moment.replace(year=year, month=month, day=min(moment.day, last_day))


def next_occurrence(moment: datetime, frequency: Frequency) -> datetime:
    """
    The occurrence following `moment`.

    daily +1 day, weekly +7 days, monthly +1 calendar month,
    yearly +1 calendar year (Feb 29 falls back to Feb 28).
    """
    frequency = Frequency(frequency)
    if frequency == Frequency.DAILY:
        return moment + timedelta(days=1)
    if frequency == Frequency.WEEKLY:
        return moment + timedelta(days=7)
    if frequency == Frequency.MONTHLY:
        return _add_months(moment, 1)
    return _add_months(moment, 12)


def first_due(pattern: RecurringPattern) -> Optional[datetime]:
    """
    The earliest instant not yet generated for this pattern.

    None when the stored date is not ISO-8601; such a pattern is never due.
    """
    if not pattern.last_occurrence:
        return try_parse_iso(pattern.start_date)
    last = try_parse_iso(pattern.last_occurrence)
    if last is None:
        return None
    return next_occurrence(last, pattern.frequency)


def due_occurrences(pattern: RecurringPattern, now: datetime) -> list[datetime]:
    """All instants due as of `now`, in chronological order."""
    if not pattern.is_active:
        return []

    due = first_due(pattern)
    if due is None:
        return []

    now = as_utc(now)
    occurrences = []
    while due <= now:
        occurrences.append(due)
        due = next_occurrence(due, pattern.frequency)
    return occurrences


class RecurringScheduler:
    """
    Generates due transactions from recurring patterns into a FinanceStore.

    The store is the source of truth for the pattern watermark: generation
    always re-reads the pattern by id before computing what is due.
    """

    def __init__(self, store: "FinanceStore"):
        self._store = store

    def get_active_patterns(self) -> list[RecurringPattern]:
        return [p for p in self._store.recurring_patterns if p.is_active]

    def is_due(self, pattern: RecurringPattern, now: datetime) -> bool:
        """True when the pattern is active and its first due instant is <= now."""
        if not pattern.is_active:
            return False
        due = first_due(pattern)
        return due is not None and due <= as_utc(now)

    def get_due_patterns(self, now: datetime) -> list[RecurringPattern]:
        return [p for p in self.get_active_patterns() if self.is_due(p, now)]

    def get_due_pattern_count(self, now: datetime) -> int:
        return len(self.get_due_patterns(now))

    def get_next_scheduled_date(self, pattern: RecurringPattern) -> Optional[datetime]:
        """
        Next occurrence after last_occurrence (or after start_date when
        nothing has been generated). None for inactive patterns and for
        patterns whose dates do not parse.
        """
        if not pattern.is_active:
            return None
        reference = try_parse_iso(pattern.last_occurrence or pattern.start_date)
        if reference is None:
            return None
        return next_occurrence(reference, pattern.frequency)

    def get_transactions_for_pattern(self, pattern_id: str) -> list[Transaction]:
        return [t for t in self._store.transactions if t.recurring_id == pattern_id]

    def generate_due(self, pattern: RecurringPattern, now: datetime) -> list[Transaction]:
        """
        Generate every transaction due for one pattern as of `now`.

        Transactions are persisted as one batch, then the pattern's
        last_occurrence is advanced in a single update.

        Returns:
            The created transactions, oldest first (empty when nothing is due)

        Raises:
            NotFoundError: If the pattern is not in the store
        """
        current = self._store.require_recurring_pattern(pattern.id)
        occurrences = due_occurrences(current, now)
        if not occurrences:
            return []

        created = self._store.add_transactions([
            dict(
                account_id=current.account_id,
                amount=current.amount,
                description=current.description,
                category=current.category,
                date=to_iso(occurrence),
                type=current.type,
                is_recurring=True,
                recurring_id=current.id,
            )
            for occurrence in occurrences
        ])

        last_occurrence = to_iso(occurrences[-1])
        self._store.update_recurring_pattern(current.id, last_occurrence=last_occurrence)
        self._store.audit(
            AuditEventBuilder.recurring_generated(current.id, len(created), last_occurrence)
        )
        return created

    def generate_due_all(self, now: datetime) -> dict[str, list[Transaction]]:
        """
        Run generate_due for every active, due pattern.

        Returns:
            Created transactions keyed by pattern id (due patterns only)
        """
        results = {}
        for pattern in self.get_due_patterns(now):
            results[pattern.id] = self.generate_due(pattern, now)
        return results
