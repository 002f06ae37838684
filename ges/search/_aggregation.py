"""Aggregation nodes.

A node carries a name and exactly one shape: a date histogram, a distinct
(terms) bucket, a filters bucket with one nested sub-aggregation, or a raw
body. Nodes are immutable; every builder method returns a new node.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import ConfigDict

from ges.core import DataModel
from ges.core.exceptions import AggregationShapeError

__all__ = [
    "Agg",
    "AggDateHistogram",
    "AggDistinct",
    "AggFilter",
    "AggFilters",
    "AggKind",
    "agg_date_histogram",
    "agg_date_histogram_name",
    "agg_distinct",
    "agg_filter_name",
    "agg_filters",
    "agg_raw",
]


class AggKind(str, Enum):
    DATE_HISTOGRAM = "date_histogram"
    DISTINCT = "distinct"
    FILTERS = "filters"
    RAW = "raw"


class AggDateHistogram(DataModel):
    model_config = ConfigDict(frozen=True)

    field: str = ""
    calendar_interval: str = ""  # minute, hour, day, week, month, year
    format: str = ""
    offset: str = ""
    time_zone: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {k: v for k, v in self.model_dump().items() if v}


class AggDistinct(DataModel):
    model_config = ConfigDict(frozen=True)

    field: str
    size: int

    def to_dict(self) -> dict[str, Any]:
        return {"field": self.field, "size": self.size}


class AggFilter(DataModel):
    """Named bucket of a filters aggregation."""

    model_config = ConfigDict(frozen=True)

    name: str
    conditions: dict[str, Any] | None = None

    def with_name(self, name: str) -> AggFilter:
        return self.model_copy(update={"name": name})

    def terms(self, field: str, *values: Any) -> AggFilter:
        return self.terms_array(field, list(values))

    def terms_array(self, field: str, values: Any) -> AggFilter:
        """Sets the terms of a field. ``values`` must be a list or tuple."""
        conditions = dict(self.conditions or {})
        conditions[field] = list(values)
        return self.model_copy(update={"conditions": conditions})

    def result(self) -> tuple[str, dict[str, Any]]:
        if self.conditions is None:
            return self.name, {}
        return self.name, {"terms": dict(self.conditions)}


class Agg(DataModel):
    model_config = ConfigDict(frozen=True)

    name: str = ""
    filters_body: AggFilters | None = None
    date_histogram_body: AggDateHistogram | None = None
    distinct_body: AggDistinct | None = None
    raw_value: Any = None

    @property
    def kinds(self) -> list[AggKind]:
        kinds = []
        if self.filters_body is not None:
            kinds.append(AggKind.FILTERS)
        if self.date_histogram_body is not None:
            kinds.append(AggKind.DATE_HISTOGRAM)
        if self.distinct_body is not None:
            kinds.append(AggKind.DISTINCT)
        if self.raw_value is not None:
            kinds.append(AggKind.RAW)
        return kinds

    def with_name(self, name: str) -> Agg:
        return self.model_copy(update={"name": name})

    def filter(self, agg: Agg | None, *filters: AggFilter) -> Agg:
        if agg is None:
            raise AggregationShapeError(
                f"Filters aggregation {self.name!r} requires a sub-aggregation"
            )
        return self._set(
            AggKind.FILTERS,
            "filters_body",
            AggFilters(buckets=tuple(filters), agg=agg),
        )

    def date_histogram(
        self,
        field: str,
        interval: str = "",
        format: str = "",
        offset: str = "",
        time_zone: str = "",
    ) -> Agg:
        return self._set(
            AggKind.DATE_HISTOGRAM,
            "date_histogram_body",
            AggDateHistogram(
                field=field,
                calendar_interval=interval,
                format=format,
                offset=offset,
                time_zone=time_zone,
            ),
        )

    def distinct(self, field: str, size: int) -> Agg:
        return self._set(
            AggKind.DISTINCT,
            "distinct_body",
            AggDistinct(field=field, size=size),
        )

    def raw(self, value: Any) -> Agg:
        if value is None:
            raise AggregationShapeError("Raw aggregation body must be set")
        return self._set(AggKind.RAW, "raw_value", value)

    def result(self) -> tuple[str, dict[str, Any]]:
        return self.name, self.to_dict()

    def to_dict(self) -> dict[str, Any]:
        # filters always wins over any other shape
        if self.filters_body is not None:
            return self.filters_body.to_dict()
        if self.date_histogram_body is not None:
            return {"date_histogram": self.date_histogram_body.to_dict()}
        if self.distinct_body is not None:
            return {"terms": self.distinct_body.to_dict()}
        if self.raw_value is not None:
            return self.raw_value
        return {}

    def _set(self, kind: AggKind, attr: str, value: Any) -> Agg:
        others = [k for k in self.kinds if k != kind]
        if others:
            raise AggregationShapeError(
                f"Aggregation {self.name!r} already has shape "
                f"{others[0].value}, cannot set {kind.value}"
            )
        return self.model_copy(update={attr: value})


class AggFilters(DataModel):
    model_config = ConfigDict(frozen=True)

    buckets: tuple[AggFilter, ...] = ()
    agg: Agg

    def to_dict(self) -> dict[str, Any]:
        filters: dict[str, Any] = {}
        for bucket in self.buckets:
            name, cond = bucket.result()
            filters[name] = cond
        sub_name, sub_body = self.agg.result()
        return {
            "filters": {"filters": filters},
            "aggs": {sub_name: sub_body},
        }


Agg.model_rebuild()


def agg_date_histogram(
    field: str,
    interval: str,
    format: str = "",
    offset: str = "",
    time_zone: str = "",
) -> Agg:
    return Agg(name=field).date_histogram(
        field, interval, format, offset, time_zone
    )


def agg_date_histogram_name(
    name: str,
    field: str,
    interval: str,
    format: str = "",
    offset: str = "",
    time_zone: str = "",
) -> Agg:
    return Agg(name=name).date_histogram(
        field, interval, format, offset, time_zone
    )


def agg_filters(name: str, sub_agg: Agg, *filters: AggFilter) -> Agg:
    return Agg(name=name).filter(sub_agg, *filters)


def agg_distinct(field: str, size: int) -> Agg:
    return Agg(name=field).distinct(field, size)


def agg_raw(name: str, value: dict[str, Any]) -> Agg:
    return Agg(name=name).raw(value)


def agg_filter_name(name: str) -> AggFilter:
    return AggFilter(name=name)
