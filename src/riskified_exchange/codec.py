"""JSON codec for exchange bodies.

Serialization drops every null-valued field; the bytes it returns are the exact
bytes that get signed and sent, so callers must not re-encode them.
"""
from __future__ import annotations

import json
import logging
from functools import lru_cache
from typing import Any

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .errors import DeserializationError, SerializationError

log = logging.getLogger(__name__)


def _drop_nulls(value: Any) -> Any:
    if isinstance(value, dict):
        return {key: _drop_nulls(item) for key, item in value.items() if item is not None}
    if isinstance(value, list):
        return [_drop_nulls(item) for item in value]
    return value


def dumps(payload: Any) -> str:
    """Serialize payload (model, dataclass, mapping or primitive) to compact JSON text."""
    try:
        data = to_jsonable_python(payload, by_alias=True, exclude_none=True)
        return json.dumps(_drop_nulls(data), ensure_ascii=False, separators=(",", ":"), allow_nan=False)
    except (PydanticSerializationError, TypeError, ValueError, RecursionError) as exc:
        msg = f"The payload could not be serialized to JSON: {exc}"
        log.error(msg, exc_info=exc)
        raise SerializationError(msg) from exc


def serialize(payload: Any) -> bytes:
    return dumps(payload).encode("utf-8")


@lru_cache(maxsize=128)
def _adapter(target_type: Any) -> TypeAdapter:
    return TypeAdapter(target_type)


def type_name(target_type: Any) -> str:
    return getattr(target_type, "__name__", repr(target_type))


def deserialize(body: str | bytes, target_type: Any) -> Any:
    """
    Parse body into target_type.

    Raises DeserializationError carrying the raw body and the target type name.
    """
    text = body.decode("utf-8", errors="replace") if isinstance(body, bytes) else body
    try:
        return _adapter(target_type).validate_json(text)
    except ValidationError as exc:
        name = type_name(target_type)
        msg = f"Unable to parse JSON response body to type: {name}. Body was: {text}"
        log.error(msg, exc_info=exc)
        raise DeserializationError(msg, body=text, target_type=name) from exc
