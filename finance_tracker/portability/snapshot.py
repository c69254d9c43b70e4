"""
Snapshot Export / Import

DESIGN DECISION: A snapshot is a single JSON object holding all five
collections plus an export timestamp and a format version:

    {accounts, transactions, budgets, goals, recurringPatterns,
     exportDate, version}

Import is split in two so that nothing is written unless everything is valid:
1. parse_snapshot - decode and validate ALL collections (pure)
2. reconcile - combine with the current data using "merge" or "replace" (pure)
Only the caller (FinanceStore) writes, after both steps succeeded.

Merge semantics: union by id. Existing records are never overwritten and
an imported record whose id is already present is dropped.
"""

from datetime import datetime
from typing import Literal, Optional, TypeVar

from finance_tracker.config import get_settings
from finance_tracker.models.entities import (
    EntityModel,
    ExportData,
    FinanceData,
    to_iso,
    utc_now,
)
from finance_tracker.services.storage.interface import StorageError
from finance_tracker.services.storage.serializer import deserialize, serialize
from finance_tracker.validation import (
    ValidationError,
    validate_accounts,
    validate_budgets,
    validate_goals,
    validate_recurring_patterns,
    validate_transactions,
)


ImportStrategy = Literal["merge", "replace"]
IMPORT_STRATEGIES = ("merge", "replace")

EntityT = TypeVar("EntityT", bound=EntityModel)


class ImportFailedError(Exception):
    """A snapshot import was rejected because its data is malformed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


def export_snapshot(
    data: FinanceData,
    export_date: Optional[datetime] = None,
    version: Optional[str] = None,
) -> str:
    """
    Serialize the five collections as one backup blob.

    Args:
        data: The collections to export
        export_date: Timestamp recorded in the snapshot (defaults to now)
        version: Format version (defaults to the configured export_version)
    """
    if version is None:
        version = get_settings().app.export_version

    snapshot = ExportData(
        **dict(data),
        export_date=to_iso(export_date or utc_now()),
        version=version,
    )
    return serialize(snapshot)


def parse_snapshot(blob: str) -> FinanceData:
    """
    Decode and validate a snapshot blob.

    Raises:
        StorageError: If the blob is not valid JSON
        ValidationError: If the top level is not an object or any
            collection fails validation
    """
    raw = deserialize(blob)

    if not isinstance(raw, dict):
        raise ValidationError("Invalid export data format", value=raw)

    return FinanceData(
        accounts=validate_accounts(raw.get("accounts")),
        transactions=validate_transactions(raw.get("transactions")),
        budgets=validate_budgets(raw.get("budgets")),
        goals=validate_goals(raw.get("goals")),
        recurring_patterns=validate_recurring_patterns(raw.get("recurringPatterns")),
    )


def merge_by_id(existing: list[EntityT], incoming: list[EntityT]) -> list[EntityT]:
    """Append incoming records whose id is not present yet, keeping order."""
    seen = {item.id for item in existing}
    merged = list(existing)
    for item in incoming:
        if item.id in seen:
            continue
        seen.add(item.id)
        merged.append(item)
    return merged


def reconcile(
    current: FinanceData,
    imported: FinanceData,
    strategy: ImportStrategy,
) -> FinanceData:
    """
    Combine current and imported data.

    Raises:
        ValueError: If the strategy is not "merge" or "replace"
    """
    if strategy == "replace":
        return imported.model_copy(deep=True)

    if strategy == "merge":
        return FinanceData(
            accounts=merge_by_id(current.accounts, imported.accounts),
            transactions=merge_by_id(current.transactions, imported.transactions),
            budgets=merge_by_id(current.budgets, imported.budgets),
            goals=merge_by_id(current.goals, imported.goals),
            recurring_patterns=merge_by_id(
                current.recurring_patterns, imported.recurring_patterns
            ),
        )

    raise ValueError(
        f"Unknown import strategy: {strategy!r}. Expected one of {IMPORT_STRATEGIES}"
    )


def prepare_import(
    current: FinanceData,
    blob: str,
    strategy: ImportStrategy,
) -> FinanceData:
    """
    Parse, validate and reconcile a snapshot without writing anything.

    Raises:
        ImportFailedError: If the blob is undecodable or malformed
        ValueError: If the strategy is unknown
    """
    if strategy not in IMPORT_STRATEGIES:
        raise ValueError(
            f"Unknown import strategy: {strategy!r}. Expected one of {IMPORT_STRATEGIES}"
        )

    try:
        imported = parse_snapshot(blob)
    except (ValidationError, StorageError) as e:
        raise ImportFailedError(f"Import failed: {e}", cause=e) from e

    return reconcile(current, imported, strategy)
