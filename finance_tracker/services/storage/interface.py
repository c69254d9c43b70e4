"""
Abstract Storage Interface

DESIGN DECISION: The persistence medium is a plain string key-value store.
This allows us to:
1. Use an in-memory medium for tests
2. Back the same core with a JSON file, a browser store or anything with get/set/remove
3. Keep validation and reconciliation logic decoupled from where bytes live

The interface is intentionally tiny - five fixed keys, one blob each.
"""

from abc import ABC, abstractmethod
from typing import Optional


class KeyValueMedium(ABC):
    """
    Abstract synchronous key-value medium.

    Any medium (in-memory dict, JSON file, ...) must implement these methods.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read the blob stored under a key.

        Returns:
            The stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a blob under a key, replacing any previous value.

        Raises:
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """
        Remove a key. Removing an absent key is not an error.
        """
        pass


class StorageError(Exception):
    """
    Base exception for storage operations.

    Always carries the underlying failure as `cause` when there is one.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass

