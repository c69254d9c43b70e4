"""
Shared fixtures for the finance tracker tests.

All stores run against an InMemoryMedium and a fixed clock, so no test
touches the filesystem (unless it asks for tmp_path) or the wall clock.
"""

from datetime import datetime, timezone

import pytest

from finance_tracker.audit import AuditLogger
from finance_tracker.services.storage import InMemoryMedium, PersistenceStore
from finance_tracker.store import FinanceStore


FIXED_NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
STAMP = "2024-01-01T00:00:00.000Z"


class RecordingAuditLogger(AuditLogger):
    """Keeps events in memory instead of only logging them."""

    def __init__(self):
        super().__init__()
        self.events = []

    def log(self, event) -> bool:
        self.events.append(event)
        return True

    def types(self) -> list[str]:
        return [event.event_type.value for event in self.events]


@pytest.fixture
def account_record():
    def build(**overrides):
        record = {
            "id": "acc-1",
            "name": "Checking",
            "type": "checking",
            "initialBalance": 1000,
            "currency": "USD",
            "createdAt": STAMP,
            "updatedAt": STAMP,
        }
        record.update(overrides)
        return record
    return build


@pytest.fixture
def transaction_record():
    def build(**overrides):
        record = {
            "id": "txn-1",
            "accountId": "acc-1",
            "amount": 50.25,
            "description": "Groceries",
            "category": "Food",
            "date": "2024-01-05T00:00:00.000Z",
            "type": "expense",
            "isRecurring": False,
            "createdAt": STAMP,
            "updatedAt": STAMP,
        }
        record.update(overrides)
        return record
    return build


@pytest.fixture
def budget_record():
    def build(**overrides):
        record = {
            "id": "bud-1",
            "category": "Food",
            "amount": 400,
            "period": "monthly",
            "startDate": "2024-01-01",
            "createdAt": STAMP,
            "updatedAt": STAMP,
        }
        record.update(overrides)
        return record
    return build


@pytest.fixture
def goal_record():
    def build(**overrides):
        record = {
            "id": "goal-1",
            "name": "Emergency fund",
            "targetAmount": 5000,
            "currentAmount": 1000,
            "deadline": "2024-12-31T00:00:00.000Z",
            "status": "active",
            "createdAt": STAMP,
            "updatedAt": STAMP,
        }
        record.update(overrides)
        return record
    return build


@pytest.fixture
def pattern_record():
    def build(**overrides):
        record = {
            "id": "pat-1",
            "accountId": "acc-1",
            "amount": 1200,
            "description": "Rent",
            "category": "Housing",
            "type": "expense",
            "frequency": "monthly",
            "startDate": "2024-01-01T00:00:00.000Z",
            "isActive": True,
            "createdAt": STAMP,
        }
        record.update(overrides)
        return record
    return build


@pytest.fixture
def medium():
    return InMemoryMedium()


@pytest.fixture
def persistence(medium):
    return PersistenceStore(medium)


@pytest.fixture
def audit_logger():
    return RecordingAuditLogger()


@pytest.fixture
def store(persistence, audit_logger):
    return FinanceStore(persistence, audit_logger=audit_logger, clock=lambda: FIXED_NOW)
