from __future__ import annotations

from typing import Any

from ges.core.exceptions import EncodingError, EngineError

from ._models import BulkItemResult, BulkResult, SearchHit, SearchResult


class ResultConverter:
    """Converts raw engine responses into models.

    Engine-reported errors found in a response body are raised as
    ``EngineError`` carrying the engine text.
    """

    @staticmethod
    def check_error(response: Any) -> None:
        if not isinstance(response, dict):
            return
        error = response.get("error")
        if error:
            status = response.get("status")
            raise EngineError(
                str(error),
                engine_status=status if isinstance(status, int) else None,
            )

    @staticmethod
    def convert_search(response: Any) -> SearchResult:
        ResultConverter.check_error(response)
        if not isinstance(response, dict):
            raise EncodingError("Search response must be an object")
        hits_block = response.get("hits") or {}
        hits: list[SearchHit] = []
        for hit in hits_block.get("hits", []):
            hits.append(
                SearchHit(
                    id=hit.get("_id"),
                    index=hit.get("_index"),
                    score=hit.get("_score"),
                    source=hit.get("_source") or {},
                )
            )
        return SearchResult(
            hits=hits,
            total=ResultConverter._convert_total(hits_block.get("total")),
            aggregations=response.get("aggregations"),
        )

    @staticmethod
    def convert_count(response: Any) -> int:
        ResultConverter.check_error(response)
        count = response.get("count", 0)
        return int(count)

    @staticmethod
    def convert_bulk(response: Any) -> BulkResult:
        ResultConverter.check_error(response)
        items: list[BulkItemResult] = []
        for entry in response.get("items", []):
            for action, body in entry.items():
                items.append(
                    BulkItemResult(
                        action=action,
                        id=body.get("_id"),
                        status=body.get("status", 0),
                        error=body.get("error"),
                    )
                )
        result = BulkResult(
            took=response.get("took", 0),
            errors=bool(response.get("errors", False)),
            items=items,
        )
        if result.errors:
            failed = [item for item in items if item.error is not None]
            first = failed[0] if failed else None
            if first is None:
                raise EngineError("Bulk request reported errors")
            raise EngineError(
                f"Bulk {first.action} failed for {len(failed)} of "
                f"{len(items)} items, first: id={first.id} "
                f"status={first.status} error={first.error}",
                engine_status=first.status,
            )
        return result

    @staticmethod
    def convert_delete(response: Any) -> int:
        ResultConverter.check_error(response)
        failures = response.get("failures") or []
        if failures:
            raise EngineError(f"Delete by query failed: {failures[0]}")
        return int(response.get("deleted", 0))

    @staticmethod
    def _convert_total(total: Any) -> int:
        if total is None:
            return 0
        if isinstance(total, dict):
            return int(total.get("value", 0))
        return int(total)
