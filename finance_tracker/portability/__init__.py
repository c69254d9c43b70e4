"""Snapshot import/export and CSV export package."""

from finance_tracker.portability.csv_export import (
    CSV_HEADERS,
    UNKNOWN_ACCOUNT,
    export_transactions_csv,
)
from finance_tracker.portability.snapshot import (
    IMPORT_STRATEGIES,
    ImportFailedError,
    ImportStrategy,
    export_snapshot,
    merge_by_id,
    parse_snapshot,
    prepare_import,
    reconcile,
)

__all__ = [
    "CSV_HEADERS",
    "IMPORT_STRATEGIES",
    "ImportFailedError",
    "ImportStrategy",
    "UNKNOWN_ACCOUNT",
    "export_snapshot",
    "export_transactions_csv",
    "merge_by_id",
    "parse_snapshot",
    "prepare_import",
    "reconcile",
]
