"""Response decoding into caller chosen destinations.

A destination is either an instance, populated in place, or a type, in
which case a new value is built. Three shapes are supported:

- sequence: ``list`` instance, ``list`` or ``list[T]`` type. One element
  per hit, in engine order.
- mapping: ``dict`` instance, ``dict`` or ``dict[K, V]`` type. Exactly one
  hit is decoded.
- record: pydantic model or dataclass, instance or class. Exactly one hit
  is decoded.

The engine id is injected into every decoded hit: under the ``_id`` key
for mappings, through ``__set_id__`` for records that define it, and
otherwise into the first field whose name, alias or serialization alias
is ``_id`` or ``es_id``. The id is validated together with the source, so
the id field may be required. Records without such a field do not receive
the id.

The decoder mutates instance destinations and must not be used
concurrently on the same destination.
"""

from __future__ import annotations

import dataclasses
import logging
from functools import lru_cache
from typing import Any, get_args, get_origin

from pydantic import BaseModel, TypeAdapter

from ges.core.exceptions import (
    EncodingError,
    InvalidDestinationError,
    NotFoundError,
)

from ._models import DestinationShape, IdReceiver, SearchHit, SearchResult

__all__ = ["ResultDecoder"]

logger = logging.getLogger(__name__)

ID_KEY = "_id"
ID_TAGS = ("_id", "es_id")

_DECODE_ERRORS = (TypeError, ValueError, AttributeError)


@lru_cache(maxsize=256)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


class ResultDecoder:
    @staticmethod
    def shape_of(destination: Any) -> DestinationShape:
        if destination is None:
            raise InvalidDestinationError("Destination must be initialized")
        origin = get_origin(destination)
        if origin is None and isinstance(destination, type):
            origin = destination
        if origin is not None:
            if isinstance(origin, type):
                if issubclass(origin, list):
                    return DestinationShape.SEQUENCE
                if issubclass(origin, dict):
                    return DestinationShape.MAPPING
                if issubclass(origin, BaseModel) or dataclasses.is_dataclass(
                    origin
                ):
                    return DestinationShape.RECORD
        else:
            if isinstance(destination, list):
                return DestinationShape.SEQUENCE
            if isinstance(destination, dict):
                return DestinationShape.MAPPING
            if isinstance(destination, BaseModel) or dataclasses.is_dataclass(
                destination
            ):
                return DestinationShape.RECORD
        raise InvalidDestinationError(
            "Destination must be a list, a dict, a model or a dataclass, "
            f"got {destination!r}"
        )

    @staticmethod
    def decode(
        result: SearchResult,
        destination: Any,
        aggregation_only: bool = False,
    ) -> tuple[Any, int]:
        """Decodes a search result.

        Args:
            result:
                Search result.
            destination:
                Destination instance or type.
            aggregation_only:
                Map the aggregations instead of the hits.

        Returns:
            The populated destination and the engine total.
        """
        if aggregation_only:
            value = ResultDecoder.decode_structural(
                result.aggregations or {}, destination
            )
            return value, result.total

        shape = ResultDecoder.shape_of(destination)
        if shape == DestinationShape.SEQUENCE:
            value = ResultDecoder._decode_hits(result.hits, destination)
            return value, result.total

        if not result.hits:
            raise NotFoundError("No document matched")
        if len(result.hits) > 1:
            logger.warning(
                "Singular destination got %d hits, using the first",
                len(result.hits),
            )
        hit = result.hits[0]
        value = ResultDecoder.decode_source(hit.id, hit.source, destination)
        return value, result.total

    @staticmethod
    def decode_source(id: str, source: dict, destination: Any) -> Any:
        """Decodes one raw source into a mapping or record destination."""
        shape = ResultDecoder.shape_of(destination)
        if shape == DestinationShape.SEQUENCE:
            raise InvalidDestinationError(
                "Single document destination must be a dict or a record"
            )
        try:
            if isinstance(destination, dict):
                destination.update(source)
                destination[ID_KEY] = id
                value = destination
            elif shape == DestinationShape.RECORD and not _is_type(
                destination
            ):
                tp = type(destination)
                key = _id_key(tp)
                built = _adapter(tp).validate_python(_with_id(source, key, id))
                _assign(destination, built)
                if key is None:
                    _inject_id(destination, id)
                value = destination
            else:
                value = _build(destination, source, id)
        except _DECODE_ERRORS as e:
            raise EncodingError(f"Decode of document {id} failed: {e}") from e
        return value

    @staticmethod
    def decode_structural(value: Any, destination: Any) -> Any:
        """Maps a raw JSON value onto a destination by structure only."""
        ResultDecoder.shape_of(destination)
        try:
            if isinstance(destination, dict):
                if not isinstance(value, dict):
                    raise TypeError("value is not an object")
                destination.update(value)
                return destination
            if isinstance(destination, list):
                if not isinstance(value, list):
                    raise TypeError("value is not an array")
                destination[:] = value
                return destination
            if not _is_type(destination):
                built = _adapter(type(destination)).validate_python(value)
                _assign(destination, built)
                return destination
            return _adapter(destination).validate_python(value)
        except _DECODE_ERRORS as e:
            raise EncodingError(f"Structural decode failed: {e}") from e

    @staticmethod
    def _decode_hits(hits: list[SearchHit], destination: Any) -> list:
        element_type: Any = dict
        if _is_type(destination):
            args = get_args(destination)
            if args:
                element_type = args[0]
        items = []
        for hit in hits:
            try:
                item = _build(element_type, hit.source, hit.id)
            except _DECODE_ERRORS as e:
                raise EncodingError(
                    f"Decode of document {hit.id} failed: {e}"
                ) from e
            items.append(item)
        if isinstance(destination, list):
            destination[:] = items
            return destination
        return items


def _is_type(destination: Any) -> bool:
    return isinstance(destination, type) or get_origin(destination) is not None


def _build(tp: Any, source: dict, id: str) -> Any:
    if tp is dict or tp is Any:
        value = dict(source)
        value[ID_KEY] = id
        return value
    key = _id_key(tp)
    value = _adapter(tp).validate_python(_with_id(source, key, id))
    if key is None:
        _inject_id(value, id)
    return value


def _with_id(source: dict, key: str | None, id: str) -> dict:
    if key is None:
        return source
    return {**source, key: id}


def _is_id_field(name: str, *aliases: Any) -> bool:
    return name in ID_TAGS or any(alias in ID_TAGS for alias in aliases)


def _id_key(tp: Any) -> str | None:
    """Returns the input key of the id field of a record type.

    Records taking the id through ``__set_id__`` get it after
    validation, so they have no key.
    """
    if not isinstance(tp, type) or hasattr(tp, "__set_id__"):
        return None
    if issubclass(tp, BaseModel):
        for name, info in tp.model_fields.items():
            if _is_id_field(name, info.alias, info.serialization_alias):
                if isinstance(info.validation_alias, str):
                    return info.validation_alias
                return info.alias or name
    elif dataclasses.is_dataclass(tp):
        for f in dataclasses.fields(tp):
            if _is_id_field(f.name, f.metadata.get("alias")):
                return f.name
    return None


def _assign(target: Any, built: Any) -> None:
    if isinstance(target, BaseModel):
        for name in type(target).model_fields:
            setattr(target, name, getattr(built, name))
    else:
        for f in dataclasses.fields(target):
            setattr(target, f.name, getattr(built, f.name))


def _inject_id(value: Any, id: str) -> None:
    if isinstance(value, dict):
        value[ID_KEY] = id
        return
    if isinstance(value, IdReceiver):
        value.__set_id__(id)
        return
    if isinstance(value, BaseModel):
        for name, info in type(value).model_fields.items():
            if _is_id_field(name, info.alias, info.serialization_alias):
                setattr(value, name, id)
                return
    elif dataclasses.is_dataclass(value):
        for f in dataclasses.fields(value):
            if _is_id_field(f.name, f.metadata.get("alias")):
                setattr(value, f.name, id)
                return
    logger.debug("No id field on %s, id %s dropped", type(value).__name__, id)
