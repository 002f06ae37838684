from __future__ import annotations

from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from ges.core import DataModel

__all__ = [
    "BulkItemResult",
    "BulkResult",
    "DestinationShape",
    "Document",
    "IdReceiver",
    "SearchHit",
    "SearchResult",
]


class Document(DataModel):
    """Document to write.

    An empty id means create semantics, a non-empty id means update or
    upsert semantics.
    """

    id: str | None = None
    """Document id."""

    doc: Any = None
    """Document payload."""

    def item(self) -> tuple[str | None, Any]:
        return self.id, self.doc


class SearchHit(DataModel):
    """Search hit."""

    id: str
    """Engine assigned id."""

    index: str | None = None
    """Index the hit comes from."""

    score: Decimal | None = None
    """Match score."""

    source: dict[str, Any] = {}
    """Raw source."""


class SearchResult(DataModel):
    """Search result."""

    hits: list[SearchHit] = []
    """Hits in engine order."""

    total: int = 0
    """Total matching documents."""

    aggregations: dict[str, Any] | None = None
    """Raw aggregations."""


class BulkItemResult(DataModel):
    action: str
    id: str | None = None
    status: int
    error: Any = None


class BulkResult(DataModel):
    took: int = 0
    errors: bool = False
    items: list[BulkItemResult] = []


class DestinationShape(str, Enum):
    SEQUENCE = "sequence"
    MAPPING = "mapping"
    RECORD = "record"


@runtime_checkable
class IdReceiver(Protocol):
    """A record that can receive the engine assigned id."""

    def __set_id__(self, id: str) -> None: ...
