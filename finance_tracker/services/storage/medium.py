"""
Key-Value Medium Implementations

DESIGN DECISION: Two media ship with the core:
1. InMemoryMedium - a dict, used by tests and ephemeral sessions
2. JsonFileMedium - one JSON document on disk mapping key -> blob

TRADEOFFS (JsonFileMedium):
- The whole document is rewritten on every set/remove (fine for personal data)
- No locking; the core is single-threaded by contract
- Writes go to a temporary file first and are moved into place
"""

import contextlib
import json
import os
from pathlib import Path
from typing import Optional, Union

from finance_tracker.services.storage.interface import KeyValueMedium, StorageError


class InMemoryMedium(KeyValueMedium):
    """Dictionary-backed medium."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._items: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove(self, key: str) -> None:
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._items)


class JsonFileMedium(KeyValueMedium):
    """
    File-backed medium.

    The file holds a single JSON object whose values are the stored blobs.
    A missing file is an empty medium.
    """

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)
        self._items: Optional[dict[str, str]] = None

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if self._items is None:
            if not self._path.exists():
                self._items = {}
            else:
                try:
                    raw = json.loads(self._path.read_text(encoding="utf-8"))
                except OSError as e:
                    raise StorageError(f"Could not read {self._path}", cause=e) from e
                except ValueError as e:
                    raise StorageError(f"Storage file {self._path} is not valid JSON", cause=e) from e

                if not isinstance(raw, dict) or not all(
                    isinstance(v, str) for v in raw.values()
                ):
                    raise StorageError(f"Storage file {self._path} is not a key-value document")
                self._items = raw
        return self._items

    def _flush(self, items: dict[str, str]) -> None:
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(items, ensure_ascii=False), encoding="utf-8")
            os.replace(tmp_path, self._path)
        except OSError as e:
            with contextlib.suppress(OSError):
                tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Could not write {self._path}", cause=e) from e

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: str) -> None:
        items = dict(self._read())
        items[key] = value
        self._flush(items)
        self._items = items

    def remove(self, key: str) -> None:
        items = self._read()
        if key not in items:
            return
        items = dict(items)
        del items[key]
        self._flush(items)
        self._items = items
