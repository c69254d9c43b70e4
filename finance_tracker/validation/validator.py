"""
Schema Validation for Persisted Collections

DESIGN DECISION: Validation happens at every boundary where raw data
enters the core - loading a collection from the medium and importing
a snapshot.

Each collection is checked in two steps:
1. SHAPE - the top-level value must be a list
2. RECORDS - every element must match its entity schema exactly
   (required fields present, strict primitive types, enum membership,
   optional fields absent or string)

IMPORTANT: Validation NEVER silently fixes issues.
The first bad element rejects the whole collection; a partially valid
collection is never returned.
"""

from typing import Any, Generic, Optional, TypeVar

from pydantic import ValidationError as PydanticValidationError

from finance_tracker.models.entities import (
    Account,
    Budget,
    EntityModel,
    Goal,
    RecurringPattern,
    Transaction,
)


EntityT = TypeVar("EntityT", bound=EntityModel)


class ValidationError(Exception):
    """
    Persisted or imported data does not match the entity schema.

    `index` is the position of the offending element (None when the
    collection itself is malformed) and `value` is the raw element.
    """

    def __init__(
        self,
        message: str,
        index: Optional[int] = None,
        value: Any = None,
    ):
        super().__init__(message)
        self.index = index
        self.value = value


def _summarize(error: PydanticValidationError, limit: int = 3) -> str:
    """Compact "field: problem" summary of a pydantic error."""
    parts = []
    for err in error.errors()[:limit]:
        location = ".".join(str(part) for part in err["loc"]) or "<record>"
        parts.append(f"{location}: {err['msg']}")
    if error.error_count() > limit:
        parts.append(f"... {error.error_count() - limit} more")
    return "; ".join(parts)


class CollectionValidator(Generic[EntityT]):
    """
    Validates one raw collection against one entity model.

    Stage 1: Shape validation (must be a list)
    Stage 2: Record validation (each element, stops at the first failure)
    """

    def __init__(self, model: type[EntityT], singular: str, plural: str):
        self.model = model
        self.singular = singular
        self.plural = plural

    def _validate_shape(self, raw: Any) -> list:
        if not isinstance(raw, list):
            raise ValidationError(
                f"{self.plural.capitalize()} data must be an array",
                value=raw,
            )
        return raw

    def _validate_record(self, index: int, item: Any) -> EntityT:
        if not isinstance(item, dict):
            raise ValidationError(
                f"Invalid {self.singular} at index {index}: expected an object",
                index=index,
                value=item,
            )
        try:
            return self.model.model_validate(item)
        except PydanticValidationError as e:
            raise ValidationError(
                f"Invalid {self.singular} at index {index}: {_summarize(e)}",
                index=index,
                value=item,
            ) from e

    def validate(self, raw: Any) -> list[EntityT]:
        """
        Run both stages.

        Returns:
            The validated records, in their original order

        Raises:
            ValidationError: On the first shape or record problem
        """
        items = self._validate_shape(raw)
        return [self._validate_record(index, item) for index, item in enumerate(items)]


ACCOUNT_VALIDATOR = CollectionValidator(Account, "account", "accounts")
TRANSACTION_VALIDATOR = CollectionValidator(Transaction, "transaction", "transactions")
BUDGET_VALIDATOR = CollectionValidator(Budget, "budget", "budgets")
GOAL_VALIDATOR = CollectionValidator(Goal, "goal", "goals")
RECURRING_PATTERN_VALIDATOR = CollectionValidator(
    RecurringPattern, "recurring pattern", "recurring patterns"
)


def validate_accounts(raw: Any) -> list[Account]:
    return ACCOUNT_VALIDATOR.validate(raw)


def validate_transactions(raw: Any) -> list[Transaction]:
    return TRANSACTION_VALIDATOR.validate(raw)


def validate_budgets(raw: Any) -> list[Budget]:
    return BUDGET_VALIDATOR.validate(raw)


def validate_goals(raw: Any) -> list[Goal]:
    return GOAL_VALIDATOR.validate(raw)


def validate_recurring_patterns(raw: Any) -> list[RecurringPattern]:
    return RECURRING_PATTERN_VALIDATOR.validate(raw)
