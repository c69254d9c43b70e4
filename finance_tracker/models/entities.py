"""
Core Data Models for the Finance Tracker

These models define the strict schemas for the five persisted collections.
They are designed to:
1. Reject malformed persisted records instead of repairing them
2. Round-trip losslessly through the JSON key-value medium
3. Keep the persisted camelCase field names while exposing snake_case in Python

DESIGN DECISION: Primitive fields are strict. A numeric string is not an
amount and 1 is not True. Loaded data is either exactly right or rejected.
Optional fields are either omitted or a string - never null.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Optional
from uuid import uuid4

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StrictBool,
    StrictStr,
    model_validator,
)
from pydantic.alias_generators import to_camel


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class AccountType(str, Enum):
    """Supported account kinds."""
    CHECKING = "checking"
    SAVINGS = "savings"
    CREDIT = "credit"
    INVESTMENT = "investment"


class TransactionType(str, Enum):
    """
    Direction of money movement.

    Amounts are stored as unsigned magnitudes; this flag carries the sign.
    """
    INCOME = "income"
    EXPENSE = "expense"


class BudgetPeriod(str, Enum):
    """Budget window length."""
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class GoalStatus(str, Enum):
    """
    Goal status.

    CRITICAL: The persisted status is a cache. It is recomputed from
    progress and deadline before anything depends on it.
    """
    ACTIVE = "active"
    ACHIEVED = "achieved"
    OVERDUE = "overdue"


class Frequency(str, Enum):
    """How often a recurring pattern fires."""
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class BudgetStatus(str, Enum):
    """How close spending is to the budget limit."""
    SAFE = "safe"
    WARNING = "warning"  # 80% or more
    EXCEEDED = "exceeded"  # 100% or more


# =============================================================================
# FIELD TYPES
# =============================================================================

def _require_number(value: Any) -> float:
    """Accept int/float only. bool is an int subclass and is not a number here."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"must be a number, got {type(value).__name__}")
    try:
        number = float(value)
    except OverflowError:
        raise ValueError("number is out of range")
    if not math.isfinite(number):
        raise ValueError("must be a finite number")
    return number


Amount = Annotated[float, BeforeValidator(_require_number)]


# =============================================================================
# BASE ENTITY
# =============================================================================

class EntityModel(BaseModel):
    """
    Common configuration for persisted entities.

    Validation reads camelCase keys (the persisted format); Python code may
    construct models with snake_case names.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    # Optional fields that may be omitted but never stored as null
    OPTIONAL_FIELDS: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode='before')
    @classmethod
    def reject_null_optionals(cls, data: Any) -> Any:
        """An optional field is absent or a string. Explicit null is malformed."""
        if isinstance(data, dict):
            for name in cls.OPTIONAL_FIELDS:
                alias = to_camel(name)
                if alias in data and data[alias] is None:
                    raise ValueError(f"{alias} must be omitted or a string, not null")
        return data

    def to_record(self) -> dict:
        """
        Convert to the persisted dictionary form.

        Absent optional fields are omitted entirely so that a reload passes
        the "absent or string" rule.
        """
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# ENTITIES
# =============================================================================

class Account(EntityModel):
    """
    A money container.

    The current balance is never stored: it is derived from
    initial_balance and the account's transactions.
    """

    id: StrictStr
    name: StrictStr
    type: AccountType
    initial_balance: Amount
    currency: StrictStr
    created_at: StrictStr
    updated_at: StrictStr


class Transaction(EntityModel):
    """A single income or expense entry on an account."""

    OPTIONAL_FIELDS: ClassVar[tuple[str, ...]] = ("recurring_id",)

    id: StrictStr
    account_id: StrictStr
    amount: Amount
    description: StrictStr
    category: StrictStr
    date: StrictStr
    type: TransactionType
    is_recurring: StrictBool
    recurring_id: Optional[StrictStr] = None
    created_at: StrictStr
    updated_at: StrictStr

    @property
    def signed_amount(self) -> float:
        """Amount with the sign implied by the transaction type."""
        if self.type == TransactionType.INCOME:
            return self.amount
        return -self.amount


class Budget(EntityModel):
    """Spending limit for a category. Spending itself is computed, not stored."""

    id: StrictStr
    category: StrictStr
    amount: Amount
    period: BudgetPeriod
    start_date: StrictStr
    created_at: StrictStr
    updated_at: StrictStr


class Goal(EntityModel):
    """A savings target with a deadline."""

    id: StrictStr
    name: StrictStr
    target_amount: Amount
    current_amount: Amount
    deadline: StrictStr
    status: GoalStatus
    created_at: StrictStr
    updated_at: StrictStr


class RecurringPattern(EntityModel):
    """
    Template for transactions that repeat on a fixed schedule.

    last_occurrence is the watermark of the most recent GENERATED occurrence.
    It only moves forward. Patterns have no updated_at.
    """

    OPTIONAL_FIELDS: ClassVar[tuple[str, ...]] = ("last_occurrence",)

    id: StrictStr
    account_id: StrictStr
    amount: Amount
    description: StrictStr
    category: StrictStr
    type: TransactionType
    frequency: Frequency
    start_date: StrictStr
    last_occurrence: Optional[StrictStr] = None
    is_active: StrictBool
    created_at: StrictStr


# =============================================================================
# COLLECTIONS
# =============================================================================

class FinanceData(EntityModel):
    """The five collections, as held in memory and persisted."""

    accounts: list[Account] = Field(default_factory=list)
    transactions: list[Transaction] = Field(default_factory=list)
    budgets: list[Budget] = Field(default_factory=list)
    goals: list[Goal] = Field(default_factory=list)
    recurring_patterns: list[RecurringPattern] = Field(default_factory=list)


class ExportData(FinanceData):
    """A whole-dataset backup snapshot."""

    export_date: StrictStr
    version: StrictStr


# =============================================================================
# DERIVED VIEWS (never persisted)
# =============================================================================

class AccountWithBalance(Account):
    """An account together with its computed balance."""

    balance: float


class GoalProgress(BaseModel):
    """Progress of a goal as of a given instant."""

    goal: Goal
    percentage: float = Field(
        ...,
        description="current / target * 100, 0 when target is not positive"
    )
    remaining: float
    days_remaining: Optional[int] = Field(
        ...,
        description=(
            "Whole days until the deadline, rounded up. Negative once overdue. "
            "None when the deadline is not ISO-8601."
        )
    )


class BudgetProgress(BaseModel):
    """Spending against a budget in the period containing a given instant."""

    budget: Budget
    spent: float
    remaining: float
    percentage: float = Field(
        ...,
        description="spent / amount * 100, 0 when amount is not positive"
    )
    status: BudgetStatus


class BudgetAlert(BaseModel):
    """A budget at or over the warning threshold."""

    budget_id: str
    category: str
    percentage: float
    type: BudgetStatus


# =============================================================================
# IDS AND TIMESTAMPS
# =============================================================================

def new_id() -> str:
    """Generate an opaque unique entity id."""
    return str(uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Naive datetimes are read as UTC; aware ones are converted to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Format as UTC ISO-8601 with millisecond precision and a Z suffix."""
    return as_utc(moment).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_iso(value: str) -> datetime:
    """
    Parse an ISO-8601 date or timestamp into an aware UTC datetime.

    Date-only values mean midnight UTC; naive timestamps are read as UTC.
    """
    return as_utc(datetime.fromisoformat(value))


def try_parse_iso(value: str) -> Optional[datetime]:
    """parse_iso, or None when the string is not ISO-8601."""
    try:
        return parse_iso(value)
    except ValueError:
        return None
