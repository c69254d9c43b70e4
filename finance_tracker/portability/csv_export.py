"""
CSV export of transactions.

Account ids are resolved to account names at export time; a transaction
whose account no longer exists (or has an empty name) is labelled
"Unknown Account".
"""

import csv
import io
from typing import Union

from finance_tracker.models.entities import Account, Transaction


CSV_HEADERS = [
    "ID",
    "Date",
    "Account",
    "Description",
    "Category",
    "Type",
    "Amount",
    "Is Recurring",
    "Recurring ID",
    "Created At",
    "Updated At",
]

UNKNOWN_ACCOUNT = "Unknown Account"


def format_csv_value(value: Union[str, float, int, bool]) -> str:
    """Render a cell: lowercase booleans, integral numbers without ".0"."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def export_transactions_csv(
    transactions: list[Transaction],
    accounts: list[Account],
) -> str:
    """
    Build the CSV document.

    Cells containing a comma, quote or newline are quoted with inner quotes
    doubled. Rows are separated by "\\n" with no trailing newline.
    """
    account_names = {account.id: account.name for account in accounts}

    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(CSV_HEADERS)

    for txn in transactions:
        writer.writerow([
            format_csv_value(txn.id),
            format_csv_value(txn.date),
            format_csv_value(account_names.get(txn.account_id) or UNKNOWN_ACCOUNT),
            format_csv_value(txn.description),
            format_csv_value(txn.category),
            format_csv_value(txn.type.value),
            format_csv_value(txn.amount),
            format_csv_value(txn.is_recurring),
            format_csv_value(txn.recurring_id or ""),
            format_csv_value(txn.created_at),
            format_csv_value(txn.updated_at),
        ])

    return buffer.getvalue().rstrip("\n")
