"""
Personal Finance Tracker - Core Package

The data core of a client-side personal finance tracker: accounts,
transactions, budgets, goals and recurring transaction patterns kept in a
plain key-value medium, with snapshot import/export for backup.

DESIGN PRINCIPLES:
1. Persisted data is validated on every load, never trusted blindly
2. Fail early, fail visibly
3. No silent corrections (no type coercion on load)
4. Derived values (balances, goal status) are recomputed, not stored truth
5. The key-value medium is swappable
"""

__version__ = "1.0.0"
__author__ = "Personal Finance Tracker Team"
