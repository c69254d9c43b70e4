"""
JSON serialization for the key-value medium.

Every encode/decode failure is raised as StorageError with the original
exception attached, so callers only ever handle one error kind here.
"""

import json
from typing import Any

from pydantic import BaseModel

from finance_tracker.services.storage.interface import StorageError


def _to_jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        # by alias, absent optionals omitted rather than written as null
        return data.model_dump(mode="json", by_alias=True, exclude_none=True)
    if isinstance(data, (list, tuple)):
        return [_to_jsonable(item) for item in data]
    if isinstance(data, dict):
        return {key: _to_jsonable(value) for key, value in data.items()}
    return data


def serialize(data: Any) -> str:
    """Encode models, lists and dicts of them to a JSON string."""
    try:
        return json.dumps(_to_jsonable(data), allow_nan=False, ensure_ascii=False)
    except (TypeError, ValueError, RecursionError) as e:
        raise StorageError("Failed to serialize data", cause=e) from e


def deserialize(text: str) -> Any:
    """Decode a JSON string. The result is unvalidated."""
    try:
        return json.loads(text)
    except (TypeError, ValueError, RecursionError) as e:
        raise StorageError("Failed to deserialize data", cause=e) from e
