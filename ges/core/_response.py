from typing import Any, Generic, TypeVar

from .data_model import DataModel

T = TypeVar("T")


class Response(DataModel, Generic[T]):
    result: T
    """Decoded result."""

    total: int = 0
    """Total hit count reported by the engine."""

    native: dict[str, Any] | None = None
    """Raw response from the engine."""
