"""
Finance Store

This module holds the in-memory state of the five collections and is the
only place that mutates them. Every mutation is written through to the
PersistenceStore before the in-memory state changes, so memory never
claims something storage does not have.

DESIGN DECISION: The store enforces the data boundaries:
- Every record is validated against its schema when created or updated
- Deleting an account deletes its transactions in the same operation
- Balances and goal statuses are recomputed, never read back as truth
- load() is the ONE place where corrupt storage is tolerated: it logs the
  failure and starts from an empty state instead of crashing the app

Everything else propagates errors to the caller unchanged.
"""

import math
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional, Union

from finance_tracker.audit import AuditLogger, configure_log_level
from finance_tracker.config import Settings, get_settings
from finance_tracker.models.audit import AuditEvent, AuditEventBuilder
from finance_tracker.models.entities import (
    Account,
    AccountType,
    AccountWithBalance,
    Budget,
    BudgetAlert,
    BudgetPeriod,
    BudgetProgress,
    BudgetStatus,
    EntityModel,
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
    to_iso,
    try_parse_iso,
    utc_now,
)
from finance_tracker.portability import (
    ImportFailedError,
    ImportStrategy,
    export_snapshot,
    export_transactions_csv,
    prepare_import,
)
from finance_tracker.services.storage import (
    InMemoryMedium,
    JsonFileMedium,
    KeyValueMedium,
    NotFoundError,
    PersistenceStore,
    StorageError,
)
from finance_tracker.validation import ValidationError


# entity kind -> (FinanceData attribute, model)
COLLECTIONS: dict[str, tuple[str, type[EntityModel]]] = {
    "account": ("accounts", Account),
    "transaction": ("transactions", Transaction),
    "budget": ("budgets", Budget),
    "goal": ("goals", Goal),
    "recurring_pattern": ("recurring_patterns", RecurringPattern),
}

SECONDS_PER_DAY = 24 * 60 * 60

BUDGET_WARNING_PERCENT = 80
BUDGET_EXCEEDED_PERCENT = 100


def budget_period_window(budget: Budget, now: datetime) -> Optional[tuple[datetime, datetime]]:
    """
    The [start, end) window of the budget period containing `now`.

    Weekly windows are 7-day blocks counted from start_date. Monthly and
    yearly windows are the calendar month and year of `now` (UTC). None
    when a weekly budget's start_date does not parse.
    """
    now = as_utc(now)
    period = BudgetPeriod(budget.period)

    if period == BudgetPeriod.WEEKLY:
        start = try_parse_iso(budget.start_date)
        if start is None:
            return None
        window_start = start + timedelta(weeks=(now - start) // timedelta(weeks=1))
        return window_start, window_start + timedelta(weeks=1)

    if period == BudgetPeriod.MONTHLY:
        window_start = datetime(now.year, now.month, 1, tzinfo=timezone.utc)
        if now.month == 12:
            return window_start, datetime(now.year + 1, 1, 1, tzinfo=timezone.utc)
        return window_start, datetime(now.year, now.month + 1, 1, tzinfo=timezone.utc)

    return (
        datetime(now.year, 1, 1, tzinfo=timezone.utc),
        datetime(now.year + 1, 1, 1, tzinfo=timezone.utc),
    )


class FinanceStore:
    """
    Explicit application state with call-through persistence.

    Flow for every mutation:
    1. Build the new record(s) and validate them
    2. Write the affected collection(s) through the PersistenceStore
    3. Swap the in-memory collection
    4. Audit
    """

    def __init__(
        self,
        persistence: PersistenceStore,
        audit_logger: Optional[AuditLogger] = None,
        clock: Callable[[], datetime] = utc_now,
        default_currency: str = "USD",
    ):
        self._persistence = persistence
        self._audit_logger = audit_logger
        self._clock = clock
        self._default_currency = default_currency
        self._data = FinanceData()

    # -------------------------------------------------------------------------
    # State access
    # -------------------------------------------------------------------------

    @property
    def persistence(self) -> PersistenceStore:
        return self._persistence

    @property
    def accounts(self) -> list[Account]:
        return list(self._data.accounts)

    @property
    def transactions(self) -> list[Transaction]:
        return list(self._data.transactions)

    @property
    def budgets(self) -> list[Budget]:
        return list(self._data.budgets)

    @property
    def goals(self) -> list[Goal]:
        return list(self._data.goals)

    @property
    def recurring_patterns(self) -> list[RecurringPattern]:
        return list(self._data.recurring_patterns)

    def snapshot(self) -> FinanceData:
        """A deep copy of the current state."""
        return self._data.model_copy(deep=True)

    def audit(self, event: AuditEvent) -> None:
        if self._audit_logger:
            self._audit_logger.log(event)

    def _timestamp(self) -> str:
        return to_iso(self._clock())

    @staticmethod
    def _counts(data: FinanceData) -> dict[str, int]:
        return {attr: len(getattr(data, attr)) for attr, _ in COLLECTIONS.values()}

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    def load(self) -> bool:
        """
        Load all collections from storage.

        Returns:
            True if storage loaded cleanly. False if stored data was corrupt
            or unreadable, in which case the store starts EMPTY and the
            failure is logged.
        """
        try:
            data = self._persistence.load_all()
        except (StorageError, ValidationError) as e:
            self._data = FinanceData()
            self.audit(AuditEventBuilder.data_load_failed(e))
            return False

        self._data = data
        self.audit(AuditEventBuilder.data_loaded(self._counts(data)))
        return True

    def clear(self) -> None:
        """Remove all stored collections and empty the in-memory state."""
        self._persistence.clear_all()
        self._data = FinanceData()
        self.audit(AuditEventBuilder.data_cleared())

    # -------------------------------------------------------------------------
    # Generic CRUD
    # -------------------------------------------------------------------------

    def _find(self, kind: str, entity_id: str) -> Optional[Any]:
        attr, _ = COLLECTIONS[kind]
        for item in getattr(self._data, attr):
            if item.id == entity_id:
                return item
        return None

    def _require(self, kind: str, entity_id: str) -> Any:
        item = self._find(kind, entity_id)
        if item is None:
            raise NotFoundError(f"{kind.replace('_', ' ').capitalize()} not found: {entity_id}")
        return item

    def _commit(self, kind: str, items: list) -> None:
        attr, _ = COLLECTIONS[kind]
        getattr(self._persistence, attr).save(items)
        setattr(self._data, attr, items)

    def _build(self, kind: str, fields: dict[str, Any]) -> Any:
        _, model = COLLECTIONS[kind]
        now = self._timestamp()
        record = {key: value for key, value in fields.items() if value is not None}
        record["id"] = new_id()
        record["created_at"] = now
        if "updated_at" in model.model_fields:
            record["updated_at"] = now
        return model.model_validate(record)

    def _add_many(self, kind: str, batch: list[dict[str, Any]]) -> list:
        attr, _ = COLLECTIONS[kind]
        created = [self._build(kind, fields) for fields in batch]
        if created:
            self._commit(kind, getattr(self._data, attr) + created)
            for item in created:
                self.audit(AuditEventBuilder.entity_created(kind, item.id))
        return created

    def _update(self, kind: str, entity_id: str, updates: dict[str, Any]) -> Any:
        attr, model = COLLECTIONS[kind]
        unknown = set(updates) - set(model.model_fields)
        if unknown:
            raise ValueError(f"Unknown {kind} fields: {sorted(unknown)}")
        if "id" in updates:
            raise ValueError("Entity ids cannot be changed")

        current = self._require(kind, entity_id)
        merged = current.model_dump(exclude_none=True)
        merged.update(updates)
        if "updated_at" in model.model_fields:
            merged["updated_at"] = self._timestamp()
        updated = model.model_validate(merged)

        items = [updated if item.id == entity_id else item for item in getattr(self._data, attr)]
        self._commit(kind, items)
        self.audit(AuditEventBuilder.entity_updated(kind, entity_id, list(updates)))
        return updated

    def _delete(self, kind: str, entity_id: str) -> None:
        attr, _ = COLLECTIONS[kind]
        self._require(kind, entity_id)
        items = [item for item in getattr(self._data, attr) if item.id != entity_id]
        self._commit(kind, items)
        self.audit(AuditEventBuilder.entity_deleted(kind, entity_id))

    # -------------------------------------------------------------------------
    # Accounts
    # -------------------------------------------------------------------------

    def add_account(
        self,
        name: str,
        type: Union[AccountType, str],
        initial_balance: float = 0.0,
        currency: Optional[str] = None,
    ) -> Account:
        return self._add_many("account", [dict(
            name=name,
            type=type,
            initial_balance=initial_balance,
            currency=currency or self._default_currency,
        )])[0]

    def get_account(self, account_id: str) -> Optional[Account]:
        return self._find("account", account_id)

    def update_account(self, account_id: str, **updates: Any) -> Account:
        return self._update("account", account_id, updates)

    def delete_account(self, account_id: str) -> int:
        """
        Delete an account and every transaction that belongs to it.

        Returns:
            Number of transactions removed with the account

        Raises:
            NotFoundError: If the account does not exist
            StorageError: If either collection cannot be written. The
                accounts collection is restored if the transaction write fails.
        """
        self._require("account", account_id)
        previous_accounts = self._data.accounts
        accounts = [a for a in previous_accounts if a.id != account_id]
        transactions = [t for t in self._data.transactions if t.account_id != account_id]
        removed = len(self._data.transactions) - len(transactions)

        self._persistence.accounts.save(accounts)
        try:
            self._persistence.transactions.save(transactions)
        except StorageError:
            self._persistence.accounts.save(previous_accounts)
            raise

        self._data.accounts = accounts
        self._data.transactions = transactions
        self.audit(AuditEventBuilder.account_deleted(account_id, removed))
        return removed

    # -------------------------------------------------------------------------
    # Transactions
    # -------------------------------------------------------------------------

    def add_transaction(
        self,
        account_id: str,
        amount: float,
        description: str,
        category: str,
        date: str,
        type: Union[TransactionType, str],
        is_recurring: bool = False,
        recurring_id: Optional[str] = None,
    ) -> Transaction:
        """Add a transaction. `amount` is an unsigned magnitude; `type` carries the sign."""
        return self.add_transactions([dict(
            account_id=account_id,
            amount=amount,
            description=description,
            category=category,
            date=date,
            type=type,
            is_recurring=is_recurring,
            recurring_id=recurring_id,
        )])[0]

    def add_transactions(self, batch: list[dict[str, Any]]) -> list[Transaction]:
        """Create several transactions with a single storage write."""
        return self._add_many("transaction", batch)

    def get_transaction(self, transaction_id: str) -> Optional[Transaction]:
        return self._find("transaction", transaction_id)

    def update_transaction(self, transaction_id: str, **updates: Any) -> Transaction:
        return self._update("transaction", transaction_id, updates)

    def delete_transaction(self, transaction_id: str) -> None:
        self._delete("transaction", transaction_id)

    # -------------------------------------------------------------------------
    # Budgets
    # -------------------------------------------------------------------------

    def add_budget(
        self,
        category: str,
        amount: float,
        period: Union[BudgetPeriod, str],
        start_date: str,
    ) -> Budget:
        return self._add_many("budget", [dict(
            category=category,
            amount=amount,
            period=period,
            start_date=start_date,
        )])[0]

    def get_budget(self, budget_id: str) -> Optional[Budget]:
        return self._find("budget", budget_id)

    def update_budget(self, budget_id: str, **updates: Any) -> Budget:
        return self._update("budget", budget_id, updates)

    def delete_budget(self, budget_id: str) -> None:
        self._delete("budget", budget_id)

    # -------------------------------------------------------------------------
    # Goals
    # -------------------------------------------------------------------------

    def add_goal(
        self,
        name: str,
        target_amount: float,
        deadline: str,
        current_amount: float = 0.0,
        status: Union[GoalStatus, str] = GoalStatus.ACTIVE,
    ) -> Goal:
        return self._add_many("goal", [dict(
            name=name,
            target_amount=target_amount,
            current_amount=current_amount,
            deadline=deadline,
            status=status,
        )])[0]

    def get_goal(self, goal_id: str) -> Optional[Goal]:
        return self._find("goal", goal_id)

    def update_goal(self, goal_id: str, **updates: Any) -> Goal:
        return self._update("goal", goal_id, updates)

    def delete_goal(self, goal_id: str) -> None:
        self._delete("goal", goal_id)

    def contribute_to_goal(self, goal_id: str, amount: float) -> Goal:
        """Add to a goal's current amount. Status is left to refresh_goal_statuses."""
        goal = self._require("goal", goal_id)
        return self.update_goal(goal_id, current_amount=goal.current_amount + amount)

    # -------------------------------------------------------------------------
    # Recurring patterns
    # -------------------------------------------------------------------------

    def add_recurring_pattern(
        self,
        account_id: str,
        amount: float,
        description: str,
        category: str,
        type: Union[TransactionType, str],
        frequency: Union[Frequency, str],
        start_date: str,
        is_active: bool = True,
        last_occurrence: Optional[str] = None,
    ) -> RecurringPattern:
        return self._add_many("recurring_pattern", [dict(
            account_id=account_id,
            amount=amount,
            description=description,
            category=category,
            type=type,
            frequency=frequency,
            start_date=start_date,
            is_active=is_active,
            last_occurrence=last_occurrence,
        )])[0]

    def get_recurring_pattern(self, pattern_id: str) -> Optional[RecurringPattern]:
        return self._find("recurring_pattern", pattern_id)

    def require_recurring_pattern(self, pattern_id: str) -> RecurringPattern:
        return self._require("recurring_pattern", pattern_id)

    def update_recurring_pattern(self, pattern_id: str, **updates: Any) -> RecurringPattern:
        return self._update("recurring_pattern", pattern_id, updates)

    def delete_recurring_pattern(self, pattern_id: str) -> None:
        self._delete("recurring_pattern", pattern_id)

    # -------------------------------------------------------------------------
    # Derived values
    # -------------------------------------------------------------------------

    def calculate_balance(self, account_id: str) -> float:
        """
        initial_balance + income - expenses for one account.

        Returns 0 for an unknown account.
        """
        account = self._find("account", account_id)
        if account is None:
            return 0.0

        balance = account.initial_balance
        for txn in self._data.transactions:
            if txn.account_id == account_id:
                balance += txn.signed_amount
        return balance

    def get_total_balance(self) -> float:
        return sum(self.calculate_balance(a.id) for a in self._data.accounts)

    def get_account_with_balance(self, account_id: str) -> Optional[AccountWithBalance]:
        account = self._find("account", account_id)
        if account is None:
            return None
        return AccountWithBalance(
            **account.model_dump(),
            balance=self.calculate_balance(account_id),
        )

    def get_accounts_with_balances(self) -> list[AccountWithBalance]:
        return [
            AccountWithBalance(**a.model_dump(), balance=self.calculate_balance(a.id))
            for a in self._data.accounts
        ]

    def _budget_spending(self, budget: Budget, now: datetime) -> float:
        window = budget_period_window(budget, now)
        if window is None:
            return 0.0
        start, end = window

        spent = 0.0
        for txn in self._data.transactions:
            if txn.type != TransactionType.EXPENSE or txn.category != budget.category:
                continue
            # unparseable dates fall in no window
            date = try_parse_iso(txn.date)
            if date is not None and start <= date < end:
                spent += txn.amount
        return spent

    def calculate_budget_spending(self, budget_id: str, now: datetime) -> float:
        """
        Expenses in the budget's category during the period containing `now`.

        Returns 0 for an unknown budget.
        """
        budget = self._find("budget", budget_id)
        if budget is None:
            return 0.0
        return self._budget_spending(budget, now)

    @staticmethod
    def derive_budget_status(percentage: float) -> BudgetStatus:
        if percentage >= BUDGET_EXCEEDED_PERCENT:
            return BudgetStatus.EXCEEDED
        if percentage >= BUDGET_WARNING_PERCENT:
            return BudgetStatus.WARNING
        return BudgetStatus.SAFE

    def _budget_progress(self, budget: Budget, now: datetime) -> BudgetProgress:
        spent = self._budget_spending(budget, now)
        percentage = spent / budget.amount * 100 if budget.amount > 0 else 0.0
        return BudgetProgress(
            budget=budget,
            spent=spent,
            remaining=budget.amount - spent,
            percentage=percentage,
            status=self.derive_budget_status(percentage),
        )

    def get_budget_progress(self, budget_id: str, now: datetime) -> Optional[BudgetProgress]:
        budget = self._find("budget", budget_id)
        if budget is None:
            return None
        return self._budget_progress(budget, now)

    def get_all_budget_progress(self, now: datetime) -> list[BudgetProgress]:
        return [self._budget_progress(budget, now) for budget in self._data.budgets]

    def check_budget_alerts(self, now: datetime) -> list[BudgetAlert]:
        """One alert per budget at 80% of its limit or more."""
        return [
            BudgetAlert(
                budget_id=progress.budget.id,
                category=progress.budget.category,
                percentage=progress.percentage,
                type=progress.status,
            )
            for progress in self.get_all_budget_progress(now)
            if progress.status != BudgetStatus.SAFE
        ]

    def get_budget_by_category(self, category: str) -> Optional[Budget]:
        for budget in self._data.budgets:
            if budget.category == category:
                return budget
        return None

    def get_goal_progress(self, goal_id: str, now: datetime) -> Optional[GoalProgress]:
        goal = self._find("goal", goal_id)
        if goal is None:
            return None

        percentage = (
            goal.current_amount / goal.target_amount * 100
            if goal.target_amount > 0
            else 0.0
        )
        deadline = try_parse_iso(goal.deadline)
        days_remaining = None
        if deadline is not None:
            remaining_seconds = (deadline - as_utc(now)).total_seconds()
            days_remaining = math.ceil(remaining_seconds / SECONDS_PER_DAY)

        return GoalProgress(
            goal=goal,
            percentage=percentage,
            remaining=goal.target_amount - goal.current_amount,
            days_remaining=days_remaining,
        )

    @staticmethod
    def derive_goal_status(progress: GoalProgress) -> GoalStatus:
        """Achieved at 100% or more; otherwise overdue once the deadline has passed."""
        if progress.percentage >= 100:
            return GoalStatus.ACHIEVED
        if progress.days_remaining is not None and progress.days_remaining < 0:
            return GoalStatus.OVERDUE
        return GoalStatus.ACTIVE

    def refresh_goal_statuses(self, now: datetime) -> list[Goal]:
        """
        Recompute every goal's status and write back the ones that changed.

        Returns:
            The goals whose status changed
        """
        changed = []
        for goal in list(self._data.goals):
            progress = self.get_goal_progress(goal.id, now)
            status = self.derive_goal_status(progress)
            if status != goal.status:
                changed.append(self.update_goal(goal.id, status=status))
        return changed

    # -------------------------------------------------------------------------
    # Import / export
    # -------------------------------------------------------------------------

    def export_data(self, export_date: Optional[datetime] = None) -> str:
        """Serialize all five collections as one snapshot blob."""
        blob = export_snapshot(self._data, export_date=export_date)
        self.audit(AuditEventBuilder.data_exported("json", self._counts(self._data)))
        return blob

    def export_transactions_csv(self) -> str:
        csv_text = export_transactions_csv(self._data.transactions, self._data.accounts)
        self.audit(AuditEventBuilder.data_exported("csv", {"transactions": len(self._data.transactions)}))
        return csv_text

    def import_data(self, blob: str, strategy: ImportStrategy) -> FinanceData:
        """
        Import a snapshot using "merge" or "replace".

        The whole snapshot is validated before anything is written; a
        malformed snapshot changes neither storage nor memory.

        Returns:
            The resulting state

        Raises:
            ImportFailedError: If the snapshot is undecodable or malformed
            ValueError: If the strategy is unknown
            StorageError: If writing the result fails
        """
        try:
            result = prepare_import(self._data, blob, strategy)
        except ImportFailedError as e:
            self.audit(AuditEventBuilder.import_failed(strategy, e))
            raise

        self._persistence.save_all(result)
        self._data = result
        self.audit(AuditEventBuilder.data_imported(strategy, self._counts(result)))
        return self.snapshot()


def create_store(
    settings: Optional[Settings] = None,
    medium: Optional[KeyValueMedium] = None,
    clock: Callable[[], datetime] = utc_now,
) -> FinanceStore:
    """
    Create a loaded FinanceStore from configuration.

    The medium is a JsonFileMedium when FINANCE_STORAGE_DATA_FILE is set,
    otherwise an InMemoryMedium, unless one is passed in explicitly.
    """
    settings = settings or get_settings()
    storage_settings = settings.storage
    app_settings = settings.app

    configure_log_level(app_settings.log_level)

    if medium is None:
        if storage_settings.data_file is not None:
            medium = JsonFileMedium(storage_settings.data_file)
        else:
            medium = InMemoryMedium()

    store = FinanceStore(
        PersistenceStore(medium, key_prefix=storage_settings.key_prefix),
        audit_logger=AuditLogger(),
        clock=clock,
        default_currency=app_settings.default_currency,
    )
    store.load()
    return store
