"""
Storage Services Package

Provides the key-value medium interface, its implementations, the JSON
serializer and the per-collection persistence store built on top of them.
"""

from finance_tracker.services.storage.interface import (
    KeyValueMedium,
    NotFoundError,
    StorageError,
)
from finance_tracker.services.storage.medium import (
    InMemoryMedium,
    JsonFileMedium,
)
from finance_tracker.services.storage.repository import (
    DEFAULT_KEY_PREFIX,
    CollectionRepository,
    PersistenceStore,
)
from finance_tracker.services.storage.serializer import (
    deserialize,
    serialize,
)

__all__ = [
    # Interfaces
    "KeyValueMedium",
    # Exceptions
    "NotFoundError",
    "StorageError",
    # Media
    "InMemoryMedium",
    "JsonFileMedium",
    # Persistence
    "DEFAULT_KEY_PREFIX",
    "CollectionRepository",
    "PersistenceStore",
    # Serialization
    "deserialize",
    "serialize",
]
