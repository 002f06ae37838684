from ges.core.exceptions import (
    AggregationShapeError,
    BadRequestError,
    BaseError,
    BatchTooLargeError,
    EncodingError,
    EngineError,
    InvalidDestinationError,
    NotFoundError,
    NotSupportedError,
)

from ._aggregation import (
    Agg,
    AggDateHistogram,
    AggDistinct,
    AggFilter,
    AggFilters,
    AggKind,
    agg_date_histogram,
    agg_date_histogram_name,
    agg_distinct,
    agg_filter_name,
    agg_filters,
    agg_raw,
)
from ._bulk import BulkEncoder
from ._config import BatchPolicy, SearchConfig
from ._converter import ResultConverter
from ._decoder import ResultDecoder
from ._filters import (
    Condition,
    Filter,
    exists,
    match,
    match_phrase,
    prefix,
    range_,
    raw,
    term,
    terms,
    wildcard,
)
from ._models import (
    BulkItemResult,
    BulkResult,
    DestinationShape,
    Document,
    IdReceiver,
    SearchHit,
    SearchResult,
)
from ._query import ES, Query
from .providers import SearchEngine

__all__ = [
    "ES",
    "Agg",
    "AggDateHistogram",
    "AggDistinct",
    "AggFilter",
    "AggFilters",
    "AggKind",
    "AggregationShapeError",
    "BadRequestError",
    "BaseError",
    "BatchPolicy",
    "BatchTooLargeError",
    "BulkEncoder",
    "BulkItemResult",
    "BulkResult",
    "Condition",
    "DestinationShape",
    "Document",
    "EncodingError",
    "EngineError",
    "Filter",
    "IdReceiver",
    "InvalidDestinationError",
    "NotFoundError",
    "NotSupportedError",
    "Query",
    "ResultConverter",
    "ResultDecoder",
    "SearchConfig",
    "SearchEngine",
    "SearchHit",
    "SearchResult",
    "agg_date_histogram",
    "agg_date_histogram_name",
    "agg_distinct",
    "agg_filter_name",
    "agg_filters",
    "agg_raw",
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
