"""NDJSON bulk encoding.

Every item produces exactly one action line immediately followed by
exactly one payload line. A missing or extra line shifts every later pair
and corrupts the whole batch on the server, so lines are only ever
emitted in pairs.
"""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Sequence, TypeVar

from ._json import dumps, to_plain
from ._models import Document

__all__ = ["BulkEncoder"]

T = TypeVar("T")

CREATE_ACTION = '{"index":{}}'


class BulkEncoder:
    @staticmethod
    def encode_create(items: Iterable[Any]) -> str:
        lines: list[str] = []
        for item in items:
            BulkEncoder._pair(lines, CREATE_ACTION, BulkEncoder._payload(item))
        return BulkEncoder._join(lines)

    @staticmethod
    def encode_update(docs: Iterable[Document]) -> str:
        lines: list[str] = []
        for doc in docs:
            id, data = doc.item()
            BulkEncoder._pair(
                lines,
                BulkEncoder._update_action(id or ""),
                {"doc": BulkEncoder._payload(data)},
            )
        return BulkEncoder._join(lines)

    @staticmethod
    def encode_upsert(docs: Iterable[Document]) -> str:
        lines: list[str] = []
        for doc in docs:
            id, data = doc.item()
            if not id:
                BulkEncoder._pair(
                    lines, CREATE_ACTION, BulkEncoder._payload(data)
                )
            else:
                BulkEncoder._pair(
                    lines,
                    BulkEncoder._update_action(id),
                    {"doc": BulkEncoder._payload(data), "doc_as_upsert": True},
                )
        return BulkEncoder._join(lines)

    @staticmethod
    def encode_usave(docs: Iterable[Document]) -> str:
        lines: list[str] = []
        for doc in docs:
            id, data = doc.item()
            if not id:
                BulkEncoder._pair(
                    lines, CREATE_ACTION, BulkEncoder._payload(data)
                )
            else:
                BulkEncoder._pair(
                    lines,
                    BulkEncoder._update_action(id),
                    {"doc": BulkEncoder._payload(data)},
                )
        return BulkEncoder._join(lines)

    @staticmethod
    def partition(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
        """Yields consecutive slices of at most ``size`` items, in order."""
        for start in range(0, len(items), size):
            yield items[start : start + size]

    @staticmethod
    def _update_action(id: str) -> str:
        return dumps({"update": {"_id": id}})

    @staticmethod
    def _payload(data: Any) -> Any:
        payload = to_plain(data)
        # _id is metadata and is rejected inside a source
        if isinstance(payload, dict):
            payload.pop("_id", None)
        return payload

    @staticmethod
    def _pair(lines: list[str], action: str, payload: Any) -> None:
        body = dumps(payload)
        lines.append(action)
        lines.append(body)

    @staticmethod
    def _join(lines: list[str]) -> str:
        if not lines:
            return ""
        return "\n".join(lines) + "\n"
