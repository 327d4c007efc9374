import pytest

from all_posts_api.app.schemas.params import RequestParams
from all_posts_api.app.schemas.query import MetaClause, Query, TaxClause
from all_posts_api.app.services.stages import StageContractError, StageRegistry


def test_stages_run_in_registration_order():
    calls = []
    registry = StageRegistry()
    registry.add_filter("first", lambda q, p: calls.append("first") or q)
    registry.add_filter("second", lambda q, p: calls.append("second") or q)

    registry.run_filters(Query(), RequestParams())

    assert calls == ["first", "second"]
    assert registry.filter_names == ["first", "second"]


def test_duplicate_names_are_rejected():
    registry = StageRegistry()
    registry.add_enrichment("acf", lambda record: record)

    with pytest.raises(ValueError):
        registry.add_enrichment("acf", lambda record: record)


def test_frozen_registry_rejects_registration():
    registry = StageRegistry()
    registry.freeze()

    with pytest.raises(RuntimeError):
        registry.add_filter("late", lambda q, p: q)


def test_stage_removing_clauses_breaks_contract():
    registry = StageRegistry()
    registry.add_filter("add", lambda q, p: q.model_copy(update={"tax_query": [TaxClause(taxonomy="category", terms=["a"])]}))
    registry.add_filter("wipe", lambda q, p: Query())

    with pytest.raises(StageContractError):
        registry.run_filters(Query(), RequestParams())


def test_stage_must_return_query():
    registry = StageRegistry()
    registry.add_filter("broken", lambda q, p: None)

    with pytest.raises(StageContractError):
        registry.run_filters(Query(), RequestParams())


def test_stages_work_on_copies():
    original = Query()

    def mutate(query, params):
        query.meta_query.clauses.append(MetaClause(key="k", value="v"))
        return query

    registry = StageRegistry()
    registry.add_filter("mutate", mutate)
    result = registry.run_filters(original, RequestParams())

    assert original.meta_query.is_empty()
    assert result.meta_query.count() == 1


def test_enrichments_chain_records():
    registry = StageRegistry()
    registry.add_enrichment("a", lambda record: {**record, "a": 1})
    registry.add_enrichment("b", lambda record: {**record, "b": record["a"] + 1})

    assert registry.run_enrichments({"id": 1}) == {"id": 1, "a": 1, "b": 2}
