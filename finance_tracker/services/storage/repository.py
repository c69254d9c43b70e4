"""
Persistence Store

Per-collection save/load against a KeyValueMedium, composing the
serializer and the schema validator.

GUARANTEES:
- A missing key loads as an empty collection ("no data yet" is not corruption)
- A present but corrupt key raises (StorageError or ValidationError, unchanged)
- Every save failure surfaces as StorageError
"""

from typing import Generic, TypeVar

from finance_tracker.models.entities import (
    Account,
    Budget,
    EntityModel,
    FinanceData,
    Goal,
    RecurringPattern,
    Transaction,
)
from finance_tracker.services.storage.interface import KeyValueMedium, StorageError
from finance_tracker.services.storage.serializer import deserialize, serialize
from finance_tracker.validation import (
    ACCOUNT_VALIDATOR,
    BUDGET_VALIDATOR,
    GOAL_VALIDATOR,
    RECURRING_PATTERN_VALIDATOR,
    TRANSACTION_VALIDATOR,
    CollectionValidator,
)


EntityT = TypeVar("EntityT", bound=EntityModel)

DEFAULT_KEY_PREFIX = "finance-dashboard"


class CollectionRepository(Generic[EntityT]):
    """One entity collection stored as one blob under one key."""

    def __init__(
        self,
        medium: KeyValueMedium,
        key: str,
        validator: CollectionValidator[EntityT],
    ):
        self._medium = medium
        self.key = key
        self._validator = validator

    def save(self, items: list[EntityT]) -> None:
        """
        Serialize and write the whole collection.

        Raises:
            StorageError: If serialization or the medium write fails
        """
        blob = serialize(items)
        try:
            self._medium.set(self.key, blob)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to save {self._validator.plural}", cause=e) from e

    def load(self) -> list[EntityT]:
        """
        Read, deserialize and validate the collection.

        Returns:
            The stored records, or [] when nothing has been stored yet

        Raises:
            StorageError: If the medium read or JSON decoding fails
            ValidationError: If the stored records do not match the schema
        """
        try:
            blob = self._medium.get(self.key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to load {self._validator.plural}", cause=e) from e

        if not blob:
            return []

        return self._validator.validate(deserialize(blob))

    def clear(self) -> None:
        try:
            self._medium.remove(self.key)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to clear {self._validator.plural}", cause=e) from e


class PersistenceStore:
    """
    The five collection repositories behind one object.

    Keys are "<prefix>-accounts", "<prefix>-transactions", "<prefix>-budgets",
    "<prefix>-goals" and "<prefix>-recurring-patterns".
    """

    def __init__(self, medium: KeyValueMedium, key_prefix: str = DEFAULT_KEY_PREFIX):
        self._medium = medium
        self.accounts: CollectionRepository[Account] = CollectionRepository(
            medium, f"{key_prefix}-accounts", ACCOUNT_VALIDATOR
        )
        self.transactions: CollectionRepository[Transaction] = CollectionRepository(
            medium, f"{key_prefix}-transactions", TRANSACTION_VALIDATOR
        )
        self.budgets: CollectionRepository[Budget] = CollectionRepository(
            medium, f"{key_prefix}-budgets", BUDGET_VALIDATOR
        )
        self.goals: CollectionRepository[Goal] = CollectionRepository(
            medium, f"{key_prefix}-goals", GOAL_VALIDATOR
        )
        self.recurring_patterns: CollectionRepository[RecurringPattern] = CollectionRepository(
            medium, f"{key_prefix}-recurring-patterns", RECURRING_PATTERN_VALIDATOR
        )

    @property
    def repositories(self) -> list[CollectionRepository]:
        return [
            self.accounts,
            self.transactions,
            self.budgets,
            self.goals,
            self.recurring_patterns,
        ]

    @property
    def keys(self) -> list[str]:
        return [repo.key for repo in self.repositories]

    def load_all(self) -> FinanceData:
        """Load all five collections. The first failure propagates."""
        return FinanceData(
            accounts=self.accounts.load(),
            transactions=self.transactions.load(),
            budgets=self.budgets.load(),
            goals=self.goals.load(),
            recurring_patterns=self.recurring_patterns.load(),
        )

    def save_all(self, data: FinanceData) -> None:
        self.accounts.save(data.accounts)
        self.transactions.save(data.transactions)
        self.budgets.save(data.budgets)
        self.goals.save(data.goals)
        self.recurring_patterns.save(data.recurring_patterns)

    def clear_all(self) -> None:
        """Remove all five keys. Safe to call when nothing is stored."""
        for repo in self.repositories:
            repo.clear()
