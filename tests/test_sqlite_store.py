import pytest

from all_posts_api.app.core.db import get_cursor
from all_posts_api.app.schemas.query import MetaClause, MetaGroup, Query, TaxClause
from all_posts_api.app.services.content_store import ContentStoreError
from all_posts_api.app.services.sqlite_store import (
    SQLiteContentStore,
    SQLiteCustomFieldProvider,
    SQLiteTaxonomyProvider,
    SitePermalinkResolver,
)
from conftest import make_post


def titles(result):
    return [record.post_title for record in result.records]


def event_range(after=None, before=None):
    group = MetaGroup(relation="AND")
    if after is not None:
        group.clauses.append(MetaGroup(relation="OR", clauses=[
            MetaClause(key="date", value=after, compare=">=", type="NUMERIC"),
            MetaClause(key="end_date", value=after, compare=">=", type="NUMERIC"),
        ]))
    if before is not None:
        group.clauses.append(MetaGroup(relation="OR", clauses=[
            MetaClause(key="date", value=before, compare="<=", type="NUMERIC"),
        ]))
    return MetaGroup(relation="AND", clauses=[group])


def test_pagination_and_totals(db_path, seed):
    seed([make_post(i) for i in range(1, 6)])
    store = SQLiteContentStore(db_path)

    result = store.execute(Query(page=2, page_size=2))

    assert titles(result) == ["Post 3", "Post 4"]
    assert result.total_count == 5
    assert result.total_pages == 3


def test_page_size_below_one_returns_everything(db_path, seed):
    seed([make_post(i) for i in range(1, 4)])

    result = SQLiteContentStore(db_path).execute(Query(page_size=-1))

    assert len(result.records) == 3
    assert result.total_pages == 1


def test_type_and_status_filters(db_path, seed):
    seed([
        make_post(1),
        make_post(2, post_type="event"),
        make_post(3, post_type="page"),
        make_post(4, post_status="draft"),
    ])
    store = SQLiteContentStore(db_path)

    assert titles(store.execute(Query(post_types=["post", "event"]))) == ["Post 1", "Post 2"]
    assert titles(store.execute(Query(post_types=["unknown"]))) == []


def test_ordering_by_title_descending(db_path, seed):
    seed([make_post(1, post_title="b"), make_post(2, post_title="c"), make_post(3, post_title="a")])

    result = SQLiteContentStore(db_path).execute(Query(orderby="title", order="DESC"))

    assert titles(result) == ["c", "b", "a"]


def test_unknown_orderby_falls_back_to_date(db_path, seed):
    seed([make_post(2), make_post(1)])

    result = SQLiteContentStore(db_path).execute(Query(orderby="popularity"))

    assert titles(result) == ["Post 1", "Post 2"]


def test_event_range_matches_overlapping_events(db_path, seed):
    seed([
        make_post(1, post_type="event", meta={"date": 50, "end_date": 90}),
        make_post(2, post_type="event", meta={"date": 80, "end_date": 120}),
        make_post(3, post_type="event", meta={"date": 150}),
        make_post(4, post_type="event", meta={"date": 250}),
    ])
    store = SQLiteContentStore(db_path)
    query = Query(post_types=["event"], meta_query=event_range(after=100, before=200),
                  meta_key="date", orderby="meta_value_num", order="DESC")

    assert titles(store.execute(query)) == ["Post 3", "Post 2"]


def test_meta_ordering_is_numeric(db_path, seed):
    seed([
        make_post(1, post_type="event", meta={"date": 1000}),
        make_post(2, post_type="event", meta={"date": 900}),
        make_post(3, post_type="event"),
    ])

    query = Query(post_types=["event"], meta_key="date", orderby="meta_value_num")
    result = SQLiteContentStore(db_path).execute(query)

    assert titles(result) == ["Post 2", "Post 1"]
    assert result.total_count == 2


def test_non_numeric_bound_does_not_fail(db_path, seed):
    seed([make_post(1, meta={"date": 100})])

    query = Query(meta_query=event_range(before="yesterday"))

    assert titles(SQLiteContentStore(db_path).execute(query)) == []


def test_taxonomy_clause_matches_any_slug(db_path, seed):
    seed([
        make_post(1, terms={"category": ["news"]}),
        make_post(2, terms={"category": ["sports", "local"]}),
        make_post(3, terms={"category": ["weather"]}),
    ])
    store = SQLiteContentStore(db_path)

    query = Query(tax_query=[TaxClause(taxonomy="category", terms=["news", "sports"])])

    assert titles(store.execute(query)) == ["Post 1", "Post 2"]


def test_taxonomy_clauses_are_combined(db_path, seed):
    seed([
        make_post(1, terms={"category": ["news"], "post_tag": ["hot"]}),
        make_post(2, terms={"category": ["news"]}),
    ])
    query = Query(tax_query=[
        TaxClause(taxonomy="category", terms=["news"]),
        TaxClause(taxonomy="post_tag", terms=["hot"]),
    ])

    assert titles(SQLiteContentStore(db_path).execute(query)) == ["Post 1"]


def test_missing_schema_raises_store_error(tmp_path):
    store = SQLiteContentStore(str(tmp_path / "empty.db"))

    with pytest.raises(ContentStoreError):
        store.execute(Query())


def test_taxonomy_provider_lists_and_terms(db_path, seed):
    seed(
        [make_post(1, post_type="event", terms={"event_category": [{"slug": "fairs", "name": "Fairs"}]})],
        taxonomies=[{"name": "event_category", "post_types": ["event"]}],
    )
    provider = SQLiteTaxonomyProvider(db_path)

    assert provider.list_taxonomies() == ["category", "post_tag", "post_format", "event_category"]
    assert provider.list_taxonomies_for_type("event") == ["event_category"]
    terms = provider.get_terms(1, "event_category")
    assert [(t.slug, t.name, t.taxonomy, t.count) for t in terms] == [("fairs", "Fairs", "event_category", 1)]


def test_custom_field_provider(db_path, seed):
    seed([make_post(1, fields={"venue": "Town hall", "tickets": [1, 2]}), make_post(2)])
    provider = SQLiteCustomFieldProvider(db_path)

    fields = provider.get_fields(1)

    assert fields["venue"]["value"] == "Town hall"
    assert fields["tickets"]["value"] == [1, 2]
    assert provider.get_fields(2) is None


def test_guid_defaults_to_post_id(db_path, seed):
    seed([make_post(1)])

    with get_cursor(db_path) as cursor:
        row = cursor.execute("SELECT id, guid FROM posts").fetchone()

    assert row["guid"] == f"?p={row['id']}"


def meta_filter(*clauses, relation="AND"):
    return Query(meta_query=MetaGroup(relation=relation, clauses=list(clauses)))


@pytest.fixture
def colored_posts(seed):
    seed([
        make_post(1, meta={"color": "red", "rank": "9"}),
        make_post(2, meta={"color": "blue", "rank": "10"}),
        make_post(3),
    ])


@pytest.mark.parametrize(
    "clause, expected",
    [
        (MetaClause(key="color", value="red", compare="!="), ["Post 2"]),
        (MetaClause(key="color", value="bl%", compare="LIKE"), ["Post 2"]),
        (MetaClause(key="color", compare="EXISTS"), ["Post 1", "Post 2"]),
        (MetaClause(key="color", compare="NOT EXISTS"), ["Post 3"]),
    ],
)
def test_meta_compare_operators(db_path, colored_posts, clause, expected):
    assert titles(SQLiteContentStore(db_path).execute(meta_filter(clause))) == expected


def test_char_compare_is_textual_and_numeric_compare_is_not(db_path, colored_posts):
    store = SQLiteContentStore(db_path)

    char = meta_filter(MetaClause(key="rank", value="5", compare=">"))
    numeric = meta_filter(MetaClause(key="rank", value=5, compare=">", type="NUMERIC"))

    assert titles(store.execute(char)) == ["Post 1"]
    assert titles(store.execute(numeric)) == ["Post 1", "Post 2"]


def test_numeric_bound_beyond_integer_range(db_path, colored_posts):
    store = SQLiteContentStore(db_path)

    above = meta_filter(MetaClause(key="rank", value=99999999999999999999, compare=">=", type="NUMERIC"))
    below = meta_filter(MetaClause(key="rank", value=-99999999999999999999, compare=">=", type="NUMERIC"))

    assert titles(store.execute(above)) == []
    assert titles(store.execute(below)) == ["Post 1", "Post 2"]


def test_offset_beyond_integer_range_returns_no_records(db_path, seed):
    seed([make_post(1), make_post(2)])

    result = SQLiteContentStore(db_path).execute(Query(page=10000000000000000000, page_size=10))

    assert result.records == []
    assert result.total_count == 2
    assert result.total_pages == 1


def test_taxonomy_not_in_excludes_terms(db_path, seed):
    seed([
        make_post(1, terms={"category": ["news"]}),
        make_post(2, terms={"category": ["sports"]}),
        make_post(3),
    ])

    query = Query(tax_query=[TaxClause(taxonomy="category", terms=["news"], operator="NOT IN")])

    assert titles(SQLiteContentStore(db_path).execute(query)) == ["Post 2", "Post 3"]


def test_taxonomy_clause_by_term_id(db_path, seed):
    seed([
        make_post(1, terms={"category": ["news"]}),
        make_post(2, terms={"category": ["sports"]}),
    ])
    with get_cursor(db_path) as cursor:
        sports_id = cursor.execute("SELECT term_id FROM terms WHERE slug = 'sports'").fetchone()["term_id"]

    query = Query(tax_query=[TaxClause(taxonomy="category", field="term_id", terms=[sports_id])])

    assert titles(SQLiteContentStore(db_path).execute(query)) == ["Post 2"]


@pytest.mark.parametrize("page", [0, -3])
def test_page_below_one_is_first_page(db_path, seed, page):
    seed([make_post(i) for i in range(1, 4)])

    result = SQLiteContentStore(db_path).execute(Query(page=page, page_size=2))

    assert titles(result) == ["Post 1", "Post 2"]
    assert result.total_pages == 2


def test_meta_value_ordering_is_textual(db_path, seed):
    seed([
        make_post(1, meta={"rank": "9"}),
        make_post(2, meta={"rank": "100"}),
        make_post(3, meta={"rank": "10"}),
    ])

    result = SQLiteContentStore(db_path).execute(Query(meta_key="rank", orderby="meta_value"))

    assert titles(result) == ["Post 3", "Post 2", "Post 1"]


@pytest.mark.parametrize("orderby", ["meta_value", "meta_value_num"])
def test_meta_ordering_without_meta_key_falls_back_to_date(db_path, seed, orderby):
    seed([make_post(3), make_post(1, meta={"rank": "5"}), make_post(2)])

    result = SQLiteContentStore(db_path).execute(Query(orderby=orderby))

    assert titles(result) == ["Post 1", "Post 2", "Post 3"]


def test_permalinks(db_path, seed):
    seed([make_post(1), make_post(2, post_type="event"), make_post(3, post_name="")])
    resolver = SitePermalinkResolver("https://example.org/")

    records = SQLiteContentStore(db_path).execute(Query(post_types=["post", "event"])).records
    links = [resolver.resolve(record) for record in records]

    assert links == [
        "https://example.org/post-1/",
        "https://example.org/event/post-2/",
        f"https://example.org/?p={records[2].id}",
    ]
