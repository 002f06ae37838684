# type: ignore

from dataclasses import dataclass, field
from decimal import Decimal

import pytest
from pydantic import BaseModel, Field

from ges.search import (
    ES,
    DestinationShape,
    EncodingError,
    InvalidDestinationError,
    NotFoundError,
    ResultConverter,
    ResultDecoder,
)

from ._engine import RecordingEngine, search_response


class User(BaseModel):
    id: str | None = Field(default=None, alias="_id")
    name: str = ""
    age: int = 0


class Account(BaseModel):
    es_id: str | None = None
    balance: Decimal = Decimal(0)


class Plain(BaseModel):
    name: str = ""


@dataclass
class Product:
    sku: str = ""
    ref: str | None = field(default=None, metadata={"alias": "_id"})


class Doc(BaseModel):
    id: str = Field(alias="_id")
    name: str


@dataclass
class Sku:
    code: str
    es_id: str


class Exported(BaseModel):
    key: str | None = Field(default=None, serialization_alias="_id")
    name: str = ""


class Receiver(BaseModel):
    name: str = ""
    received: str | None = None

    def __set_id__(self, id: str) -> None:
        self.received = id


def result_of(*sources, total=None):
    return ResultConverter.convert_search(
        search_response(list(sources), total=total)
    )


@pytest.mark.parametrize(
    "destination, shape",
    [
        ([], DestinationShape.SEQUENCE),
        (list, DestinationShape.SEQUENCE),
        (list[User], DestinationShape.SEQUENCE),
        ({}, DestinationShape.MAPPING),
        (dict, DestinationShape.MAPPING),
        (dict[str, int], DestinationShape.MAPPING),
        (User, DestinationShape.RECORD),
        (User(), DestinationShape.RECORD),
        (Product, DestinationShape.RECORD),
        (Product(), DestinationShape.RECORD),
    ],
)
def test_shape_of(destination, shape):
    assert ResultDecoder.shape_of(destination) == shape


@pytest.mark.parametrize("destination", [None, 1, "text", int, set()])
def test_invalid_destination(destination):
    with pytest.raises(InvalidDestinationError):
        ResultDecoder.shape_of(destination)


def test_invalid_destination_sends_nothing():
    engine = RecordingEngine()
    with pytest.raises(InvalidDestinationError):
        ES(engine).search(None)
    assert engine.calls == []


def test_sequence_keeps_order():
    result = result_of(
        {"_id": "c", "name": "c"},
        {"_id": "a", "name": "a"},
        {"_id": "b", "name": "b"},
        total=10,
    )
    users, total = ResultDecoder.decode(result, list[User])
    assert [u.id for u in users] == ["c", "a", "b"]
    assert [u.name for u in users] == ["c", "a", "b"]
    assert total == 10


def test_sequence_instance_is_filled():
    destination = [{"stale": True}]
    result = result_of({"_id": "1", "a": 1})
    value, _ = ResultDecoder.decode(result, destination)
    assert value is destination
    assert destination == [{"a": 1, "_id": "1"}]


def test_empty_sequence():
    value, total = ResultDecoder.decode(result_of(), list[User])
    assert value == []
    assert total == 0


def test_singular_not_found():
    with pytest.raises(NotFoundError):
        ResultDecoder.decode(result_of(), User)
    with pytest.raises(NotFoundError):
        ResultDecoder.decode(result_of(), {})


def test_singular_uses_first_hit():
    result = result_of({"_id": "1", "name": "x"}, {"_id": "2", "name": "y"})
    user, total = ResultDecoder.decode(result, User)
    assert user.id == "1"
    assert user.name == "x"
    assert total == 2


def test_record_instance_is_filled():
    user = User(name="old", age=3)
    value, _ = ResultDecoder.decode(
        result_of({"_id": "9", "name": "new", "age": 4}), user
    )
    assert value is user
    assert (user.id, user.name, user.age) == ("9", "new", 4)


def test_id_injection():
    account = ResultDecoder.decode_source("a1", {"balance": 5}, Account)
    assert account.es_id == "a1"

    product = ResultDecoder.decode_source("p1", {"sku": "s"}, Product)
    assert product.ref == "p1"

    receiver = ResultDecoder.decode_source("r1", {"name": "n"}, Receiver)
    assert receiver.received == "r1"

    plain = ResultDecoder.decode_source("x", {"name": "n"}, Plain)
    assert plain.name == "n"


def test_decimal_is_exact():
    engine = RecordingEngine(
        search=[
            search_response([{"_id": "1", "balance": Decimal("0.1")}])
        ]
    )
    accounts = ES(engine).search(list[Account]).result
    assert accounts[0].balance == Decimal("0.1")


def test_type_mismatch():
    with pytest.raises(EncodingError):
        ResultDecoder.decode(result_of({"_id": "1", "age": "old"}), list[User])


def test_sequence_for_single_document():
    with pytest.raises(InvalidDestinationError):
        ResultDecoder.decode_source("1", {}, [])


def test_structural():
    value = {"columns": [{"name": "a"}], "rows": [[1]]}
    assert ResultDecoder.decode_structural(value, dict) == value
    with pytest.raises(EncodingError):
        ResultDecoder.decode_structural(value, [])


def test_required_id_field():
    result = result_of({"_id": "7", "name": "x"}, {"_id": "8", "name": "y"})
    docs, _ = ResultDecoder.decode(result, list[Doc])
    assert [(d.id, d.name) for d in docs] == [("7", "x"), ("8", "y")]

    doc, _ = ResultDecoder.decode(result_of({"_id": "9", "name": "z"}), Doc)
    assert doc.id == "9"

    sku = ResultDecoder.decode_source("s1", {"code": "c"}, Sku)
    assert sku == Sku(code="c", es_id="s1")


def test_required_id_field_on_instance():
    doc = Doc(_id="old", name="old")
    ResultDecoder.decode_source("new", {"name": "fresh"}, doc)
    assert (doc.id, doc.name) == ("new", "fresh")


def test_serialization_alias_id():
    exported = ResultDecoder.decode_source("e1", {"name": "n"}, Exported)
    assert exported.key == "e1"
    assert exported.model_dump(by_alias=True) == {"_id": "e1", "name": "n"}
