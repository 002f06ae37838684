from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from ges.core import Context


class SearchEngine(ABC):
    """Search engine the query layer talks to.

    Implementations perform the network round-trip and return the raw
    JSON response bodies. Transport and engine failures are raised as
    ``EngineError``, missing documents as ``NotFoundError``.
    """

    @abstractmethod
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
        """Search.

        Args:
            index:
                Index name.
            body:
                Request body with ``query`` and ``aggs``.
            sort:
                Sort list of ``field:direction``.
            source_includes:
                Source fields to return.
            from_:
                Start offset.
            size:
                Number of hits.
            track_total_hits:
                A value indicating whether the exact total is tracked.
            context:
                Call context.

        Returns:
            Raw search response.
        """
        raise NotImplementedError

    @abstractmethod
    def count(
        self,
        index: str,
        body: dict[str, Any],
        context: Context | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def bulk(
        self,
        index: str,
        operations: str,
        timeout: str | None = None,
        refresh: str | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        """Submit an NDJSON bulk body.

        Args:
            index:
                Default index of the actions.
            operations:
                NDJSON body, action and payload lines in pairs.
            timeout:
                Server-side timeout.
            refresh:
                Refresh mode.
            context:
                Call context.

        Returns:
            Raw bulk response.
        """
        raise NotImplementedError

    @abstractmethod
    def delete_by_query(
        self,
        index: str,
        body: dict[str, Any],
        timeout: str | None = None,
        refresh: bool | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def get_source(
        self,
        index: str,
        id: str,
        source_includes: list[str] | None = None,
        context: Context | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def sql_translate(
        self,
        sql: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    def sql_query(
        self,
        sql: str,
        context: Context | None = None,
    ) -> dict[str, Any]:
        raise NotImplementedError

    def close(self) -> None:
        pass
