"""Condition clauses.

Clauses are opaque JSON-able dicts. The query builder never looks inside
them; it only appends them to the ``must``, ``filter``, ``should`` and
``must_not`` sequences of a bool query.
"""

from __future__ import annotations

from typing import Any, Iterable

from pydantic import ConfigDict

from ges.core import DataModel
from ges.core.exceptions import BadRequestError

__all__ = [
    "Condition",
    "Filter",
    "exists",
    "match",
    "match_phrase",
    "prefix",
    "range_",
    "raw",
    "term",
    "terms",
    "wildcard",
]


class Filter(DataModel):
    """One or more pre-built clauses."""

    model_config = ConfigDict(frozen=True)

    clauses: tuple[dict[str, Any], ...] = ()

    def result(self) -> list[dict[str, Any]]:
        return list(self.clauses)

    def and_(self, *filters: Filter | dict | None) -> Filter:
        """Returns a filter holding the clauses of both."""
        return Filter(clauses=self.clauses + normalize_clauses(filters))


class Condition(DataModel):
    """Bool query clause sequences. Append-only."""

    model_config = ConfigDict(frozen=True)

    must: tuple[dict[str, Any], ...] = ()
    filter: tuple[dict[str, Any], ...] = ()
    should: tuple[dict[str, Any], ...] = ()
    not_: tuple[dict[str, Any], ...] = ()

    def append(self, clause: str, filters: Iterable[Any]) -> Condition:
        current = getattr(self, clause)
        return self.model_copy(
            update={clause: current + normalize_clauses(filters)}
        )


def normalize_clauses(filters: Iterable[Any]) -> tuple[dict[str, Any], ...]:
    clauses: list[dict[str, Any]] = []
    for item in filters:
        if item is None:
            continue
        if isinstance(item, Filter):
            clauses.extend(item.result())
        elif isinstance(item, dict):
            clauses.append(item)
        elif isinstance(item, (list, tuple)):
            clauses.extend(normalize_clauses(item))
        else:
            raise BadRequestError(
                f"Filter must be a Filter or dict, got {type(item).__name__}"
            )
    return tuple(clauses)


def raw(*clauses: dict[str, Any]) -> Filter:
    return Filter(clauses=tuple(clauses))


def term(field: str, value: Any) -> Filter:
    return raw({"term": {field: value}})


def terms(field: str, values: Iterable[Any]) -> Filter:
    return raw({"terms": {field: list(values)}})


def match(field: str, query: Any, operator: str | None = None) -> Filter:
    if operator:
        return raw({"match": {field: {"query": query, "operator": operator}}})
    return raw({"match": {field: query}})


def match_phrase(field: str, query: str) -> Filter:
    return raw({"match_phrase": {field: query}})


def prefix(field: str, value: str) -> Filter:
    return raw({"prefix": {field: value}})


def wildcard(field: str, value: str) -> Filter:
    return raw({"wildcard": {field: value}})


def exists(field: str) -> Filter:
    return raw({"exists": {"field": field}})


def range_(
    field: str,
    gte: Any = None,
    gt: Any = None,
    lte: Any = None,
    lt: Any = None,
    format: str | None = None,
) -> Filter:
    body: dict[str, Any] = {}
    if gte is not None:
        body["gte"] = gte
    if gt is not None:
        body["gt"] = gt
    if lte is not None:
        body["lte"] = lte
    if lt is not None:
        body["lt"] = lt
    if format:
        body["format"] = format
    return raw({"range": {field: body}})
