"""
Elasticsearch engine.
"""

from __future__ import annotations

__all__ = ["Elasticsearch", "LosslessJsonSerializer"]

import logging
from typing import Any, Callable

from elasticsearch import ApiError
from elasticsearch import Elasticsearch as SyncElasticsearch
from elasticsearch import TransportError
from elasticsearch.exceptions import NotFoundError as ESNotFoundError
from elasticsearch.serializer import JsonSerializer

from ges.core import Context, NCall
from ges.core.exceptions import EngineError, NotFoundError

from .._json import loads
from ._base import SearchEngine

logger = logging.getLogger(__name__)


class LosslessJsonSerializer(JsonSerializer):
    """Reads floats as ``Decimal`` instead of ``float``."""

    def loads(self, data: bytes) -> Any:
        return loads(data)


_BODY_ALIASES = {"from": "from_", "_source": "source"}


def _body_args(body: dict[str, Any]) -> dict[str, Any]:
    # empty aggs are dropped
    return {
        _BODY_ALIASES.get(k, k): v
        for k, v in body.items()
        if not (k in ("aggs", "aggregations") and not v)
    }


def _engine_error(error: Exception) -> EngineError:
    if isinstance(error, ApiError):
        return EngineError(
            f"{error.message}: {error.body}",
            engine_status=error.meta.status,
        )
    return EngineError(str(error))


class Elasticsearch(SearchEngine):
    hosts: str | list[str] | dict[str, str | int]
    cloud_id: str | None
    api_key: str | list[str] | None
    basic_auth: str | list[str] | None
    bearer_auth: str | None
    headers: dict[str, str] | None
    verify_certs: bool | None
    ca_certs: str | None
    request_timeout: float | None
    nparams: dict[str, Any]

    _client: SyncElasticsearch
    _init: bool

    def __init__(
        self,
        hosts: str
        | list[str]
        | dict[str, str | int] = "http://localhost:9200",
        cloud_id: str | None = None,
        api_key: str | list[str] | None = None,
        basic_auth: str | list[str] | None = None,
        bearer_auth: str | None = None,
        headers: dict[str, str] | None = None,
        verify_certs: bool | None = None,
        ca_certs: str | None = None,
        request_timeout: float | None = None,
        nparams: dict[str, Any] | None = None,
        client: SyncElasticsearch | None = None,
    ):
        """Initialize.

        Args:
            hosts:
                Elasticsearch hosts.
            cloud_id:
                Elasticsearch cloud id.
            api_key:
                Elasticsearch api key.
            basic_auth:
                Elasticsearch basic auth.
            bearer_auth:
                Elasticsearch bearer auth.
            headers:
                Elasticsearch http headers.
            verify_certs:
                Elasticsearch verify certs.
            ca_certs:
                Elasticsearch ca certs.
            request_timeout:
                Default client-side request timeout in seconds.
            nparams:
                Native parameters to Elasticsearch client.
            client:
                Pre-built native client. Connection parameters
                are ignored when set.
        """
        self.hosts = hosts
        self.cloud_id = cloud_id
        self.api_key = api_key
        self.basic_auth = basic_auth
        self.bearer_auth = bearer_auth
        self.headers = headers
        self.verify_certs = verify_certs
        self.ca_certs = ca_certs
        self.request_timeout = request_timeout
        self.nparams = nparams or dict()

        self._init = False
        if client is not None:
            self._client = client
            self._init = True

    @property
    def client(self) -> SyncElasticsearch:
        if not self._init:
            self._client = SyncElasticsearch(**self._get_client_params())
            self._init = True
        return self._client

    def _get_client_params(self) -> dict:
        def _add_if_not_none(key, value):
            return {key: value} if value is not None else {}

        def _convert_if_list(value):
            return tuple(value) if isinstance(value, list) else value

        serializer = LosslessJsonSerializer()
        args = {
            **_add_if_not_none("cloud_id", self.cloud_id),
            **_add_if_not_none("api_key", _convert_if_list(self.api_key)),
            **_add_if_not_none(
                "basic_auth", _convert_if_list(self.basic_auth)
            ),
            **_add_if_not_none("bearer_auth", self.bearer_auth),
            **_add_if_not_none("headers", self.headers),
            **_add_if_not_none("verify_certs", self.verify_certs),
            **_add_if_not_none("ca_certs", self.ca_certs),
            **_add_if_not_none("request_timeout", self.request_timeout),
            "serializers": {
                "application/json": serializer,
                "application/vnd.elasticsearch+json": serializer,
            },
        }
        if self.cloud_id is None:
            args["hosts"] = self.hosts

        if self.nparams is not None:
            args.update(self.nparams)

        return args

    def _call(
        self,
        context: Context | None,
        function: Callable[[SyncElasticsearch], Callable],
        args: dict[str, Any],
        error_map: dict[Any, Any] | None = None,
    ) -> dict[str, Any]:
        client = self.client
        if context is not None and context.timeout is not None:
            client = client.options(request_timeout=context.timeout)
        resp = NCall(
            function(client),
            args,
            error_map=error_map
            or {
                ApiError: _engine_error,
                TransportError: _engine_error,
            },
        ).invoke()
        return resp.body

    def search(
        self,
        index: str,
        body: dict[str, Any],
        sort: list[str] | None = None,
        source_includes: list[str] | None = None,
        from_: int | None = None,
        size: int | None = None,
        track_total_hits: bool | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        args: dict[str, Any] = {"index": index, **_body_args(body)}
        if sort:
            args["sort"] = sort
        if source_includes:
            args["source_includes"] = source_includes
        if from_ is not None:
            args["from_"] = from_
        if size is not None:
            args["size"] = size
        if track_total_hits is not None:
            args["track_total_hits"] = track_total_hits
        logger.debug("search %s %s", index, args)
        return self._call(context, lambda c: c.search, args)

    def count(
        self,
        index: str,
        body: dict[str, Any],
        context: Context | None = None,
    ) -> dict[str, Any]:
        args = {"index": index, "query": body.get("query")}
        return self._call(context, lambda c: c.count, args)

    def bulk(
        self,
        index: str,
        operations: str,
        timeout: str | None = None,
        refresh: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        args: dict[str, Any] = {"operations": operations}
        if index:
            args["index"] = index
        if timeout is not None:
            args["timeout"] = timeout
        if refresh is not None:
            args["refresh"] = refresh
        return self._call(context, lambda c: c.bulk, args)

    def delete_by_query(
        self,
        index: str,
        body: dict[str, Any],
        timeout: str | None = None,
        refresh: bool | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        args: dict[str, Any] = {"index": index, "query": body.get("query")}
        if timeout is not None:
            args["timeout"] = timeout
        if refresh is not None:
            args["refresh"] = refresh
        return self._call(context, lambda c: c.delete_by_query, args)

    def get_source(
        self,
        index: str,
        id: str,
        source_includes: list[str] | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        args: dict[str, Any] = {"index": index, "id": id}
        if source_includes:
            args["source_includes"] = source_includes
        return self._call(
            context,
            lambda c: c.get_source,
            args,
            error_map={
                ESNotFoundError: NotFoundError,
                ApiError: _engine_error,
                TransportError: _engine_error,
            },
        )

    def sql_translate(
        self,
        sql: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return self._call(context, lambda c: c.sql.translate, {"query": sql})

    def sql_query(
        self,
        sql: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        return self._call(
            context, lambda c: c.sql.query, {"query": sql, "format": "json"}
        )

    def close(self) -> None:
        if self._init:
            self.client.close()
            self._init = False
