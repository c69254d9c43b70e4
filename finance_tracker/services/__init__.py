"""Services package."""

from finance_tracker.services.storage import (
    DEFAULT_KEY_PREFIX,
    CollectionRepository,
    InMemoryMedium,
    JsonFileMedium,
    KeyValueMedium,
    NotFoundError,
    PersistenceStore,
    StorageError,
    deserialize,
    serialize,
)

__all__ = [
    "DEFAULT_KEY_PREFIX",
    "CollectionRepository",
    "InMemoryMedium",
    "JsonFileMedium",
    "KeyValueMedium",
    "NotFoundError",
    "PersistenceStore",
    "StorageError",
    "deserialize",
    "serialize",
]
