"""Immutable query builder.

Every mutator returns a new ``Query`` and leaves the receiver untouched,
so a base query can be shared and branched from freely. Condition
clauses live in tuples and aggregation mappings are rebuilt on every
change, so derived queries never share mutable state.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Sequence

from pydantic import ConfigDict

from ges.core import Context, DataModel, DataModelField, Response
from ges.core.exceptions import (
    BadRequestError,
    BatchTooLargeError,
    EngineError,
    NotSupportedError,
)

from ._aggregation import Agg
from ._bulk import BulkEncoder
from ._config import BatchPolicy, SearchConfig
from ._converter import ResultConverter
from ._decoder import ResultDecoder
from ._filters import Condition, Filter, terms
from ._json import dumps, loads
from ._models import Document, SearchHit
from .providers import SearchEngine

__all__ = ["ES", "Query"]

logger = logging.getLogger(__name__)

FilterArg = Filter | dict | list | None


class Query(DataModel):
    model_config = ConfigDict(frozen=True)

    index: str = ""
    sorts: tuple[str, ...] = ()
    source_fields: tuple[str, ...] = ()
    offset: int = 0
    page_size: int = 0
    cond: Condition = Condition()
    aggregations: dict[str, Agg] = {}
    aggregation_only: bool = False
    pure_negative: bool = False

    engine: SearchEngine | None = DataModelField(default=None, exclude=True)
    search_config: SearchConfig = DataModelField(
        default_factory=SearchConfig, exclude=True
    )

    # Builder

    def index_name(self, name: str) -> Query:
        return self._replace(index=name)

    def with_engine(self, engine: SearchEngine) -> Query:
        return self._replace(engine=engine)

    def with_config(self, config: SearchConfig) -> Query:
        return self._replace(search_config=config)

    def adjust_pure_negative(self, value: bool) -> Query:
        return self._replace(pure_negative=value)

    def where(self, *filters: FilterArg) -> Query:
        """Adds ``must`` clauses. None filters are skipped."""
        return self._replace(cond=self.cond.append("must", filters))

    def filter(self, *filters: FilterArg) -> Query:
        """Adds non-scoring ``filter`` clauses."""
        return self._replace(cond=self.cond.append("filter", filters))

    def or_(self, *filters: FilterArg) -> Query:
        """Adds ``should`` clauses."""
        return self._replace(cond=self.cond.append("should", filters))

    def not_(self, *filters: FilterArg) -> Query:
        """Adds ``must_not`` clauses."""
        return self._replace(cond=self.cond.append("not_", filters))

    def order_by(self, field: str, desc: bool = False) -> Query:
        direction = "desc" if desc else "asc"
        return self._replace(sorts=self.sorts + (f"{field}:{direction}",))

    def agg(self, *aggs: Agg) -> Query:
        """Adds aggregations and makes the query aggregation only.

        A later aggregation with the same name replaces the earlier one.
        """
        aggregations = dict(self.aggregations)
        for agg in aggs:
            name, _ = agg.result()
            aggregations[name] = agg
        return self._replace(aggregations=aggregations, aggregation_only=True)

    def size(self, size: int) -> Query:
        return self._replace(page_size=_check_paging("size", size))

    def start(self, start: int) -> Query:
        return self._replace(offset=_check_paging("start", start))

    def limit(self, start: int, size: int) -> Query:
        return self._replace(
            offset=_check_paging("start", start),
            page_size=_check_paging("size", size),
        )

    def fields(self, *fields: str) -> Query:
        """Sets the source projection, replacing any previous one."""
        return self._replace(source_fields=tuple(dict.fromkeys(fields)))

    def to_dict(self) -> dict[str, Any]:
        bool_query: dict[str, Any] = {
            "must": list(self.cond.must),
            "must_not": list(self.cond.not_),
            "should": list(self.cond.should),
            "adjust_pure_negative": self.pure_negative,
        }
        if self.cond.filter:
            bool_query["filter"] = list(self.cond.filter)
        return {
            "query": {"bool": bool_query},
            "aggs": {
                name: agg.to_dict() for name, agg in self.aggregations.items()
            },
        }

    def to_json(self, indent: int | None = None) -> str:
        return dumps(self.to_dict())

    # Search

    def search(
        self,
        destination: Any,
        context: Context | None = None,
    ) -> Response[Any]:
        """Search and decode the hits into a destination.

        Aggregation only queries ask the engine for no hits and decode
        the aggregations instead.

        Args:
            destination:
                List, dict, model or dataclass, as an instance
                populated in place or a type to build.
            context:
                Call context.

        Returns:
            Response holding the populated destination, the total
            hit count and the raw engine response.
        """
        ResultDecoder.shape_of(destination)
        resp = self._search(context)
        result = ResultConverter.convert_search(resp)
        value, total = ResultDecoder.decode(
            result, destination, self.aggregation_only
        )
        return Response(result=value, total=total, native=resp)

    def search_result_hits(
        self,
        context: Context | None = None,
    ) -> tuple[list[SearchHit], int]:
        """Search and return the raw hits with the total hit count."""
        result = ResultConverter.convert_search(self._search(context))
        return result.hits, result.total

    def count(self, context: Context | None = None) -> int:
        body = {"query": self.to_dict()["query"]}
        resp = self._get_engine().count(self.index, body, context=context)
        return ResultConverter.convert_count(resp)

    def query(
        self,
        raw: dict[str, Any] | str,
        destination: Any,
        context: Context | None = None,
    ) -> Any:
        """Run a caller built request body and map the whole response."""
        ResultDecoder.shape_of(destination)
        body = loads(raw) if isinstance(raw, str) else raw
        resp = self._get_engine().search(self.index, body, context=context)
        ResultConverter.check_error(resp)
        return ResultDecoder.decode_structural(resp, destination)

    def get_by_id(
        self,
        id: str,
        destination: Any,
        context: Context | None = None,
    ) -> Any:
        """Fetch one document source by id.

        Raises:
            NotFoundError: The document does not exist.
        """
        ResultDecoder.shape_of(destination)
        source = self._get_engine().get_source(
            self.index,
            id,
            source_includes=list(self.source_fields) or None,
            context=context,
        )
        return ResultDecoder.decode_source(id, source, destination)

    def translate_sql(
        self,
        sql: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        resp = self._get_engine().sql_translate(sql, context=context)
        ResultConverter.check_error(resp)
        return resp

    def raw_sql(
        self,
        sql: str,
        destination: Any,
        context: Context | None = None,
    ) -> Any:
        """Run an SQL statement and map the tabular response."""
        ResultDecoder.shape_of(destination)
        resp = self._get_engine().sql_query(sql, context=context)
        ResultConverter.check_error(resp)
        return ResultDecoder.decode_structural(resp, destination)

    # Delete

    def delete(self, context: Context | None = None) -> int:
        """Delete every document matching the condition.

        Returns:
            Number of deleted documents.
        """
        if self.aggregations:
            raise NotSupportedError("Delete does not support aggregations")
        resp = self._get_engine().delete_by_query(
            self.index,
            self.to_dict(),
            timeout=self.search_config.delete_timeout,
            refresh=True,
            context=context,
        )
        return ResultConverter.convert_delete(resp)

    def delete_by_id(self, *ids: str, context: Context | None = None) -> int:
        return self.where(terms("_id", ids)).delete(context=context)

    # Bulk

    def save(self, *items: Any, context: Context | None = None) -> int:
        """Create documents with engine assigned ids.

        Large inputs are split into sub-batches of
        ``config.bulk_items_limit`` submitted one after another, in
        order. The first failing sub-batch stops the call; earlier
        sub-batches stay written and are not rolled back.

        Returns:
            Number of written documents.
        """
        return self._submit(
            "save",
            items,
            BulkEncoder.encode_create,
            self.search_config.save_policy,
            self.search_config.bulk_items_limit,
            self.search_config.bulk_timeout,
            context,
        )

    def usave(self, *docs: Document, context: Context | None = None) -> int:
        """Create documents without id and update documents with id."""
        return self._submit_update(
            "usave", docs, BulkEncoder.encode_usave, context
        )

    def mupdate_by_id(
        self, *docs: Document, context: Context | None = None
    ) -> int:
        return self._submit_update(
            "mupdate_by_id", docs, BulkEncoder.encode_update, context
        )

    def mupsert_by_id(
        self, *docs: Document, context: Context | None = None
    ) -> int:
        """Upsert documents with id, create documents without id."""
        return self._submit_update(
            "mupsert_by_id", docs, BulkEncoder.encode_upsert, context
        )

    def update_by_id(
        self, id: str, doc: Any, context: Context | None = None
    ) -> int:
        if not id:
            raise BadRequestError("Update requires a document id")
        return self.mupdate_by_id(Document(id=id, doc=doc), context=context)

    def upsert_by_id(
        self, id: str | None, doc: Any, context: Context | None = None
    ) -> int:
        """Upsert a document. An empty id creates a new document."""
        return self.mupsert_by_id(Document(id=id, doc=doc), context=context)

    # Helpers

    def _replace(self, **changes: Any) -> Query:
        return self.model_copy(update=changes)

    def _get_engine(self) -> SearchEngine:
        if self.engine is None:
            raise NotSupportedError("No search engine bound to the query")
        return self.engine

    def _search(self, context: Context | None) -> dict[str, Any]:
        engine = self._get_engine()
        body = self.to_dict()
        if self.aggregation_only:
            resp = engine.search(
                self.index,
                body,
                sort=list(self.sorts),
                size=0,
                context=context,
            )
        else:
            resp = engine.search(
                self.index,
                body,
                sort=list(self.sorts),
                source_includes=list(self.source_fields) or None,
                from_=self.offset or None,
                size=self.page_size or None,
                track_total_hits=True,
                context=context,
            )
        return resp

    def _submit_update(
        self,
        operation: str,
        docs: Sequence[Document],
        encode: Callable[[Iterable[Document]], str],
        context: Context | None,
    ) -> int:
        return self._submit(
            operation,
            docs,
            encode,
            self.search_config.update_policy,
            self.search_config.bulk_update_items_limit,
            self.search_config.update_timeout,
            context,
        )

    def _submit(
        self,
        operation: str,
        items: Sequence[Any],
        encode: Callable[[Iterable[Any]], str],
        policy: BatchPolicy,
        limit: int,
        timeout: str,
        context: Context | None,
    ) -> int:
        if not items:
            return 0
        if len(items) > limit and policy == BatchPolicy.REJECT:
            raise BatchTooLargeError(
                f"{operation} supports max {limit} items, got {len(items)}",
                limit=limit,
                size=len(items),
            )
        engine = self._get_engine()
        written = 0
        for number, batch in enumerate(BulkEncoder.partition(items, limit)):
            body = encode(batch)
            logger.info(
                "%s: batch %d with %d items to %s",
                operation,
                number,
                len(batch),
                self.index,
            )
            try:
                resp = engine.bulk(
                    self.index,
                    body,
                    timeout=timeout,
                    refresh=self.search_config.refresh,
                    context=context,
                )
                ResultConverter.convert_bulk(resp)
            except EngineError as e:
                if number == 0:
                    raise
                raise EngineError(
                    f"{operation} stopped at batch {number}, "
                    f"{written} items already written: {e}",
                    engine_status=e.engine_status,
                ) from e
            written += len(batch)
        return written


def _check_paging(name: str, value: int) -> int:
    if value < 0:
        raise BadRequestError(f"{name} must not be negative")
    return value


def ES(
    engine: SearchEngine | None = None,
    config: SearchConfig | None = None,
    index_name: str = "",
) -> Query:
    """Returns an empty query bound to an engine."""
    return Query(
        index=index_name,
        engine=engine,
        search_config=config or SearchConfig(),
    )
