"""
Tests for recurring transaction generation

Test strategy:
1. Pure date arithmetic (next_occurrence, due_occurrences)
2. Generation through a FinanceStore backed by an InMemoryMedium
"""

import pytest
from datetime import datetime, timezone

from finance_tracker.models.entities import Frequency, RecurringPattern
from finance_tracker.recurring import (
    RecurringScheduler,
    due_occurrences,
    first_due,
    next_occurrence,
)
from finance_tracker.services.storage import NotFoundError
from finance_tracker.store import FinanceStore


def utc(*args) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


@pytest.fixture
def account(store):
    return store.add_account("Checking", "checking", initial_balance=1000)


@pytest.fixture
def add_pattern(store, account):
    def build(**overrides):
        fields = dict(
            account_id=account.id,
            amount=1200,
            description="Rent",
            category="Housing",
            type="expense",
            frequency="monthly",
            start_date="2024-01-01T00:00:00.000Z",
        )
        fields.update(overrides)
        return store.add_recurring_pattern(**fields)
    return build


@pytest.fixture
def scheduler(store):
    return RecurringScheduler(store)


class TestNextOccurrence:
    """Tests for frequency arithmetic."""

    def test_daily(self):
        assert next_occurrence(utc(2024, 2, 28), Frequency.DAILY) == utc(2024, 2, 29)

    def test_weekly(self):
        assert next_occurrence(utc(2024, 1, 1), Frequency.WEEKLY) == utc(2024, 1, 8)

    def test_monthly(self):
        assert next_occurrence(utc(2024, 1, 15), Frequency.MONTHLY) == utc(2024, 2, 15)

    def test_monthly_clamps_to_month_end(self):
        """Test Jan 31 moves to the last day of February."""
        assert next_occurrence(utc(2024, 1, 31), Frequency.MONTHLY) == utc(2024, 2, 29)
        assert next_occurrence(utc(2023, 1, 31), Frequency.MONTHLY) == utc(2023, 2, 28)

    def test_monthly_crosses_year(self):
        assert next_occurrence(utc(2024, 12, 10), Frequency.MONTHLY) == utc(2025, 1, 10)

    def test_yearly_leap_day(self):
        """Test Feb 29 falls back to Feb 28 in a common year."""
        assert next_occurrence(utc(2024, 2, 29), Frequency.YEARLY) == utc(2025, 2, 28)

    def test_accepts_string_frequency(self):
        assert next_occurrence(utc(2024, 1, 1), "weekly") == utc(2024, 1, 8)

    def test_time_of_day_preserved(self):
        moment = utc(2024, 1, 1, 9, 30)
        assert next_occurrence(moment, Frequency.MONTHLY) == utc(2024, 2, 1, 9, 30)


class TestDueOccurrences:
    """Tests for the pure due-date computation."""

    def test_start_date_is_inclusive(self, pattern_record):
        """Test a pattern starting exactly at now is due once."""
        pattern = RecurringPattern.model_validate(pattern_record())
        assert due_occurrences(pattern, utc(2024, 1, 1)) == [utc(2024, 1, 1)]

    def test_future_start_not_due(self, pattern_record):
        pattern = RecurringPattern.model_validate(
            pattern_record(startDate="2024-06-01T00:00:00.000Z")
        )
        assert due_occurrences(pattern, utc(2024, 3, 1)) == []

    def test_after_last_occurrence(self, pattern_record):
        """Test generation resumes after the watermark."""
        pattern = RecurringPattern.model_validate(
            pattern_record(lastOccurrence="2024-02-01T00:00:00.000Z")
        )
        assert first_due(pattern) == utc(2024, 3, 1)
        assert due_occurrences(pattern, utc(2024, 3, 15)) == [utc(2024, 3, 1)]

    def test_inactive_never_due(self, pattern_record):
        pattern = RecurringPattern.model_validate(pattern_record(isActive=False))
        assert due_occurrences(pattern, utc(2025, 1, 1)) == []

    def test_daily_catch_up(self, pattern_record):
        pattern = RecurringPattern.model_validate(pattern_record(frequency="daily"))
        assert len(due_occurrences(pattern, utc(2024, 1, 3))) == 3

    def test_month_end_drift(self, pattern_record):
        """Test clamped days carry forward to later months."""
        pattern = RecurringPattern.model_validate(
            pattern_record(startDate="2024-01-31T00:00:00.000Z")
        )
        assert due_occurrences(pattern, utc(2024, 4, 30)) == [
            utc(2024, 1, 31),
            utc(2024, 2, 29),
            utc(2024, 3, 29),
            utc(2024, 4, 29),
        ]

    def test_naive_now_read_as_utc(self, pattern_record):
        pattern = RecurringPattern.model_validate(pattern_record())
        assert len(due_occurrences(pattern, datetime(2024, 2, 15))) == 2

    def test_non_iso_dates_never_due(self, pattern_record):
        """Test dates that are strings but not ISO-8601 produce nothing."""
        bad_start = RecurringPattern.model_validate(pattern_record(startDate="01/15/2024"))
        bad_last = RecurringPattern.model_validate(pattern_record(lastOccurrence="last month"))

        assert first_due(bad_start) is None
        assert first_due(bad_last) is None
        assert due_occurrences(bad_start, utc(2025, 1, 1)) == []
        assert due_occurrences(bad_last, utc(2025, 1, 1)) == []


class TestRecurringScheduler:
    """Tests for generation through the store."""

    def test_monthly_catch_up(self, store, scheduler, add_pattern):
        """Test every missed month is generated and the watermark advances once."""
        pattern = add_pattern()

        created = scheduler.generate_due(pattern, utc(2024, 2, 15))

        assert [t.date for t in created] == [
            "2024-01-01T00:00:00.000Z",
            "2024-02-01T00:00:00.000Z",
        ]
        assert all(t.is_recurring and t.recurring_id == pattern.id for t in created)
        assert all(t.amount == 1200 and t.description == "Rent" for t in created)
        refreshed = store.get_recurring_pattern(pattern.id)
        assert refreshed.last_occurrence == "2024-02-01T00:00:00.000Z"

    def test_weekly_catch_up(self, scheduler, add_pattern):
        pattern = add_pattern(frequency="weekly")
        created = scheduler.generate_due(pattern, utc(2024, 1, 8))
        assert [t.date for t in created] == [
            "2024-01-01T00:00:00.000Z",
            "2024-01-08T00:00:00.000Z",
        ]

    def test_idempotent(self, store, scheduler, add_pattern):
        """Test a second run with the same now creates nothing."""
        pattern = add_pattern()
        scheduler.generate_due(pattern, utc(2024, 2, 15))

        # stale pattern object on purpose: the store copy is authoritative
        assert scheduler.generate_due(pattern, utc(2024, 2, 15)) == []
        assert len(store.transactions) == 2

    def test_inactive_pattern(self, store, scheduler, add_pattern):
        pattern = add_pattern(is_active=False)
        assert scheduler.generate_due(pattern, utc(2024, 6, 1)) == []
        assert store.transactions == []
        assert store.get_recurring_pattern(pattern.id).last_occurrence is None

    def test_generated_transactions_persisted(self, store, persistence, scheduler, add_pattern):
        """Test generated transactions and the watermark survive a reload."""
        pattern = add_pattern()
        scheduler.generate_due(pattern, utc(2024, 2, 15))

        reloaded = FinanceStore(persistence)
        assert reloaded.load() is True
        assert len(reloaded.transactions) == 2
        assert reloaded.get_recurring_pattern(pattern.id).last_occurrence == (
            "2024-02-01T00:00:00.000Z"
        )

    def test_generated_transactions_affect_balance(self, store, scheduler, account, add_pattern):
        pattern = add_pattern()
        scheduler.generate_due(pattern, utc(2024, 2, 15))
        assert store.calculate_balance(account.id) == 1000 - 2 * 1200

    def test_unknown_pattern(self, scheduler, pattern_record):
        """Test generation for a pattern not in the store fails."""
        pattern = RecurringPattern.model_validate(pattern_record(id="missing"))
        with pytest.raises(NotFoundError):
            scheduler.generate_due(pattern, utc(2024, 2, 15))

    def test_audit_event(self, scheduler, audit_logger, add_pattern):
        scheduler.generate_due(add_pattern(), utc(2024, 2, 15))
        assert "recurring_transactions_generated" in audit_logger.types()

    def test_due_queries(self, scheduler, add_pattern):
        """Test the due-pattern helpers agree with generation."""
        due = add_pattern()
        add_pattern(start_date="2024-09-01T00:00:00.000Z")
        add_pattern(is_active=False)

        now = utc(2024, 2, 15)
        assert len(scheduler.get_active_patterns()) == 2
        assert [p.id for p in scheduler.get_due_patterns(now)] == [due.id]
        assert scheduler.get_due_pattern_count(now) == 1

    def test_generate_due_all(self, store, scheduler, add_pattern):
        due = add_pattern()
        add_pattern(start_date="2024-09-01T00:00:00.000Z")

        results = scheduler.generate_due_all(utc(2024, 2, 15))

        assert list(results) == [due.id]
        assert len(results[due.id]) == 2
        assert scheduler.generate_due_all(utc(2024, 2, 15)) == {}

    def test_unparseable_pattern_does_not_block_others(self, store, scheduler, add_pattern):
        """Test one pattern with a non-ISO start date is skipped, not fatal."""
        good = add_pattern()
        bad = add_pattern(start_date="01/15/2024")
        now = utc(2024, 2, 15)

        results = scheduler.generate_due_all(now)

        assert list(results) == [good.id]
        assert len(results[good.id]) == 2
        assert scheduler.is_due(bad, now) is False
        assert scheduler.generate_due(bad, now) == []
        assert scheduler.get_next_scheduled_date(bad) is None
        assert store.get_recurring_pattern(bad.id).last_occurrence is None

    def test_next_scheduled_date(self, scheduler, add_pattern):
        pattern = add_pattern()
        assert scheduler.get_next_scheduled_date(pattern) == utc(2024, 2, 1)
        assert scheduler.get_next_scheduled_date(add_pattern(is_active=False)) is None

    def test_transactions_for_pattern(self, scheduler, add_pattern):
        pattern = add_pattern()
        other = add_pattern(description="Gym")
        scheduler.generate_due_all(utc(2024, 1, 15))
        assert len(scheduler.get_transactions_for_pattern(pattern.id)) == 1
        assert len(scheduler.get_transactions_for_pattern(other.id)) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
