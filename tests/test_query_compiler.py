from all_posts_api.app.schemas.query import MetaClause, MetaGroup, TaxClause
from all_posts_api.app.services.param_resolver import resolve_params
from all_posts_api.app.services.query_compiler import (
    build_base_query,
    compile_query,
    register_builtin_filters,
)
from all_posts_api.app.services.stages import StageRegistry


KNOWN = ["category", "post_tag", "post_format", "event_category"]


def compile_raw(raw):
    registry = StageRegistry()
    register_builtin_filters(registry)
    registry.freeze()
    return compile_query(resolve_params(raw, KNOWN), registry)


def test_base_query_carries_pagination_and_ordering():
    query = build_base_query(resolve_params({"page": "3", "per_page": "5", "orderby": "title", "order": "DESC"}))

    assert query.page == 3
    assert query.page_size == 5
    assert query.orderby == "title"
    assert query.order == "DESC"
    assert query.meta_query.relation == "AND"
    assert query.meta_query.is_empty()
    assert query.tax_query == []


def test_type_filter_defaults_to_post():
    assert compile_raw({}).post_types == ["post"]


def test_type_filter_is_split():
    assert compile_raw({"type": "post,event"}).post_types == ["post", "event"]


def test_no_event_bounds_leaves_query_alone():
    query = compile_raw({"orderby": "title"})

    assert query.meta_query.is_empty()
    assert query.orderby == "title"
    assert query.meta_key is None


def test_event_after_adds_or_group_and_meta_ordering():
    query = compile_raw({"event_after": "100", "orderby": "title"})

    assert len(query.meta_query.clauses) == 1
    range_group = query.meta_query.clauses[0]
    assert range_group.relation == "AND"
    assert range_group.clauses == [
        MetaGroup(
            relation="OR",
            clauses=[
                MetaClause(key="date", value=100, compare=">=", type="NUMERIC"),
                MetaClause(key="end_date", value=100, compare=">=", type="NUMERIC"),
            ],
        )
    ]
    assert query.meta_key == "date"
    assert query.orderby == "meta_value_num"


def test_both_event_bounds_are_combined_with_and():
    query = compile_raw({"event_after": "100", "event_before": "200"})

    range_group = query.meta_query.clauses[0]
    assert range_group.relation == "AND"
    after_group, before_group = range_group.clauses
    assert after_group.relation == "OR"
    assert [clause.key for clause in after_group.clauses] == ["date", "end_date"]
    assert before_group.clauses == [MetaClause(key="date", value=200, compare="<=", type="NUMERIC")]


def test_tax_parameter_adds_slug_clause():
    query = compile_raw({"tax_category": "news,sports"})

    assert query.tax_query == [TaxClause(taxonomy="category", field="slug", terms=["news", "sports"])]


def test_unknown_taxonomy_adds_nothing():
    assert compile_raw({"tax_genre": "jazz"}).tax_query == []


def test_taxonomy_clauses_follow_store_order():
    query = compile_raw({"tax_event_category": "fairs", "tax_category": "news"})

    assert [clause.taxonomy for clause in query.tax_query] == ["category", "event_category"]


def test_extension_stage_runs_after_builtins():
    seen = []

    def featured_only(query, params):
        seen.append(query.orderby)
        query.meta_query.clauses.append(MetaClause(key="featured", value="1"))
        return query

    registry = StageRegistry()
    register_builtin_filters(registry)
    registry.add_filter("featured", featured_only)
    registry.freeze()

    query = compile_query(resolve_params({"event_after": "5"}, KNOWN), registry)

    assert seen == ["meta_value_num"]
    assert query.meta_query.count() == 3
    assert query.meta_query.clauses[-1].key == "featured"
