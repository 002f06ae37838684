"""
Lossless JSON helpers.

Floats are read as ``Decimal`` and integers as ``int`` so large ids and
counts never pass through a binary floating point value.

Writing is lossless for integers only. An integral ``Decimal`` is written
as an integer; any other ``Decimal`` goes through ``float``, so a value
with more significant digits than a double holds loses them on the way
out.
"""

from __future__ import annotations

import dataclasses
import json
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel

from ges.core.exceptions import EncodingError

__all__ = ["dumps", "loads", "to_plain"]


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        if value == value.to_integral_value():
            return int(value)
        return float(value)
    if isinstance(value, BaseModel):
        return value.model_dump(by_alias=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    raise TypeError(
        f"Object of type {type(value).__name__} is not JSON serializable"
    )


def dumps(value: Any) -> str:
    try:
        return json.dumps(
            value,
            default=_default,
            separators=(",", ":"),
            ensure_ascii=False,
        )
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Encode failed: {e}") from e


def loads(data: str | bytes | bytearray) -> Any:
    try:
        return json.loads(data, parse_float=Decimal)
    except ValueError as e:
        raise EncodingError(f"Decode failed: {e}") from e


def to_plain(value: Any) -> Any:
    """Converts models and dataclasses into plain JSON values."""
    return loads(dumps(value))
