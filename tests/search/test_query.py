# type: ignore

import pytest

from ges.core import Context
from ges.search import (
    ES,
    BadRequestError,
    NotSupportedError,
    SearchConfig,
    agg_distinct,
    match,
    term,
    terms,
)

from ._engine import RecordingEngine, search_response


def empty_body(**bool_query) -> dict:
    return {
        "query": {
            "bool": {
                "must": bool_query.get("must", []),
                "must_not": bool_query.get("must_not", []),
                "should": bool_query.get("should", []),
                "adjust_pure_negative": bool_query.get(
                    "adjust_pure_negative", False
                ),
            }
        },
        "aggs": {},
    }


def test_empty_query():
    assert ES().to_dict() == empty_body()
    assert ES().to_json() == (
        '{"query":{"bool":{"must":[],"must_not":[],"should":[],'
        '"adjust_pure_negative":false}},"aggs":{}}'
    )


def test_mutators_do_not_change_receiver():
    base = ES(index_name="users").where(term("status", "active"))
    by_country = base.where(term("country", "US"))
    by_role = base.where(term("role", "admin"))

    assert base.to_dict() == empty_body(must=[{"term": {"status": "active"}}])
    assert by_country.to_dict()["query"]["bool"]["must"] == [
        {"term": {"status": "active"}},
        {"term": {"country": "US"}},
    ]
    assert by_role.to_dict()["query"]["bool"]["must"] == [
        {"term": {"status": "active"}},
        {"term": {"role": "admin"}},
    ]


def test_aggregations_are_not_shared():
    base = ES()
    first = base.agg(agg_distinct("city", 5))
    second = first.agg(agg_distinct("country", 3))

    assert base.aggregations == {}
    assert base.aggregation_only is False
    assert list(first.to_dict()["aggs"]) == ["city"]
    assert list(second.to_dict()["aggs"]) == ["city", "country"]
    assert second.aggregation_only is True


def test_clauses():
    query = (
        ES()
        .where(term("a", 1), None, {"exists": {"field": "b"}})
        .or_(match("title", "hello"))
        .not_(terms("c", [1, 2]))
        .adjust_pure_negative(True)
    )
    assert query.to_dict() == empty_body(
        must=[{"term": {"a": 1}}, {"exists": {"field": "b"}}],
        should=[{"match": {"title": "hello"}}],
        must_not=[{"terms": {"c": [1, 2]}}],
        adjust_pure_negative=True,
    )


def test_filter_and():
    combined = term("a", 1).and_(
        None, {"exists": {"field": "b"}}, term("c", 2)
    )
    assert combined.result() == [
        {"term": {"a": 1}},
        {"exists": {"field": "b"}},
        {"term": {"c": 2}},
    ]
    assert term("a", 1).result() == [{"term": {"a": 1}}]
    assert ES().where(combined).to_dict()["query"]["bool"]["must"] == (
        combined.result()
    )


def test_filter_clause_only_when_set():
    assert "filter" not in ES().to_dict()["query"]["bool"]
    query = ES().filter(term("tenant", "t1"))
    assert query.to_dict()["query"]["bool"]["filter"] == [
        {"term": {"tenant": "t1"}}
    ]


def test_bad_filter():
    with pytest.raises(BadRequestError):
        ES().where(42)


@pytest.mark.parametrize(
    "mutate",
    [
        lambda q: q.size(-1),
        lambda q: q.start(-1),
        lambda q: q.limit(-1, 10),
        lambda q: q.limit(0, -10),
    ],
)
def test_negative_paging(mutate):
    with pytest.raises(BadRequestError):
        mutate(ES())


def test_fields_replace_and_dedupe():
    query = ES().fields("a", "b").fields("b", "c", "b")
    assert query.source_fields == ("b", "c")


def test_search_hits_path():
    engine = RecordingEngine(
        search=[search_response([{"_id": "1", "name": "x"}], total=7)]
    )
    context = Context(timeout=2.5)
    query = (
        ES(engine, index_name="users")
        .where(term("name", "x"))
        .order_by("created")
        .order_by("name", desc=True)
        .fields("name")
        .limit(20, 10)
    )

    response = query.search(list, context=context)

    assert response.result == [{"name": "x", "_id": "1"}]
    assert response.total == 7
    assert response.native["hits"]["total"]["value"] == 7
    assert response.native["hits"]["hits"][0]["_id"] == "1"
    call = engine.calls_of("search")[0]
    assert call["index"] == "users"
    assert call["body"] == query.to_dict()
    assert call["sort"] == ["created:asc", "name:desc"]
    assert call["source_includes"] == ["name"]
    assert call["from_"] == 20
    assert call["size"] == 10
    assert call["track_total_hits"] is True
    assert call["context"] is context


def test_search_omits_zero_paging():
    engine = RecordingEngine()
    ES(engine).search([])
    call = engine.calls_of("search")[0]
    assert call["from_"] is None
    assert call["size"] is None
    assert call["source_includes"] is None


def test_search_aggregation_path():
    aggregations = {"city": {"buckets": [{"key": "Paris", "doc_count": 3}]}}
    engine = RecordingEngine(
        search=[search_response([], total=3, aggregations=aggregations)]
    )
    query = ES(engine).fields("a").limit(5, 5).agg(agg_distinct("city", 10))

    result = {}
    response = query.search(result)

    assert response.result is result
    assert result == aggregations
    assert response.total == 3
    call = engine.calls_of("search")[0]
    assert call["size"] == 0
    assert call["from_"] is None
    assert call["source_includes"] is None
    assert call["track_total_hits"] is None
    assert call["body"]["aggs"] == {
        "city": {"terms": {"field": "city", "size": 10}}
    }


def test_search_result_hits():
    engine = RecordingEngine(
        search=[search_response([{"_id": "a", "v": 1}, {"_id": "b", "v": 2}])]
    )
    hits, total = ES(engine).search_result_hits()
    assert [hit.id for hit in hits] == ["a", "b"]
    assert hits[1].source == {"v": 2}
    assert total == 2


def test_count_sends_query_only():
    engine = RecordingEngine(count=[{"count": 42}])
    query = ES(engine, index_name="i").where(term("a", 1)).size(10)
    query = query.agg(agg_distinct("b", 2))

    assert query.count() == 42
    call = engine.calls_of("count")[0]
    assert call["body"] == {"query": query.to_dict()["query"]}


def test_delete():
    engine = RecordingEngine(delete_by_query=[{"deleted": 3, "failures": []}])
    config = SearchConfig(delete_timeout="30s")
    query = ES(engine, config, "users").where(term("status", "gone"))

    assert query.delete() == 3
    call = engine.calls_of("delete_by_query")[0]
    assert call["timeout"] == "30s"
    assert call["refresh"] is True
    assert call["body"] == query.to_dict()


def test_delete_rejects_aggregations():
    engine = RecordingEngine()
    with pytest.raises(NotSupportedError):
        ES(engine).agg(agg_distinct("a", 1)).delete()
    assert engine.calls == []


def test_delete_by_id():
    engine = RecordingEngine(delete_by_query=[{"deleted": 2}])
    assert ES(engine).delete_by_id("a", "b") == 2
    body = engine.calls_of("delete_by_query")[0]["body"]
    assert body["query"]["bool"]["must"] == [{"terms": {"_id": ["a", "b"]}}]


def test_query_raw_body():
    response = search_response([{"_id": "1", "a": 1}])
    engine = RecordingEngine(search=[response])
    result = ES(engine, index_name="i").query('{"size": 1}', dict)
    assert result["hits"]["hits"][0]["_id"] == "1"
    assert engine.calls_of("search")[0]["body"] == {"size": 1}


def test_get_by_id():
    engine = RecordingEngine(get_source=[{"name": "x"}])
    result = ES(engine, index_name="users").fields("name").get_by_id("7", {})
    assert result == {"name": "x", "_id": "7"}
    call = engine.calls_of("get_source")[0]
    assert call["id"] == "7"
    assert call["source_includes"] == ["name"]


def test_sql():
    translated = {"query": {"match_all": {}}, "size": 10}
    rows = {"columns": [{"name": "a"}], "rows": [[1], [2]]}
    engine = RecordingEngine(sql_translate=[translated], sql_query=[rows])
    query = ES(engine)

    assert query.translate_sql("SELECT * FROM t") == translated
    assert query.raw_sql("SELECT a FROM t", {}) == rows
    assert engine.calls_of("sql_query")[0]["sql"] == "SELECT a FROM t"


def test_no_engine():
    with pytest.raises(NotSupportedError):
        ES().count()
