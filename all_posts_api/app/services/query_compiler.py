"""
Compile resolved request parameters into a content-store ``Query``.

``compile_query`` builds the base query (pagination, ordering and the
content type filter) and runs it through the registry's filter
chain.  The two built-in filter stages live here as well:

* ``event_range_stage`` turns ``event_after``/``event_before`` into a
  metadata clause group on the ``date`` and ``end_date`` fields and
  sorts results by the ``date`` field;
* ``taxonomy_stage`` adds one taxonomy clause per ``tax_<name>``
  parameter naming a taxonomy the store knows.
"""

import logging

from ..schemas.params import RequestParams
from ..schemas.query import MetaClause, MetaGroup, Query, TaxClause
from .stages import StageRegistry


logger = logging.getLogger(__name__)

EVENT_START_KEY = "date"
EVENT_END_KEY = "end_date"


def build_base_query(params: RequestParams) -> Query:
    return Query(
        page=params.page,
        page_size=params.per_page,
        orderby=params.orderby,
        order=params.order,
        post_types=list(params.types),
    )


def compile_query(params: RequestParams, registry: StageRegistry) -> Query:
    query = registry.run_filters(build_base_query(params), params)
    logger.debug("Compiled query: %s", query.model_dump())
    return query


def event_range_stage(query: Query, params: RequestParams) -> Query:
    """Restrict results to events overlapping the requested range.

    An event matches ``event_after`` when it starts or ends on or after
    the bound, and matches ``event_before`` when it starts on or before
    it.  Both bounds are compared numerically.
    """
    if not params.has_event_range:
        return query

    range_group = MetaGroup(relation="AND")
    if params.event_after is not None:
        range_group.clauses.append(
            MetaGroup(
                relation="OR",
                clauses=[
                    MetaClause(key=EVENT_START_KEY, value=params.event_after, compare=">=", type="NUMERIC"),
                    MetaClause(key=EVENT_END_KEY, value=params.event_after, compare=">=", type="NUMERIC"),
                ],
            )
        )
    if params.event_before is not None:
        range_group.clauses.append(
            MetaGroup(
                relation="OR",
                clauses=[
                    MetaClause(key=EVENT_START_KEY, value=params.event_before, compare="<=", type="NUMERIC"),
                ],
            )
        )

    query.meta_query.clauses.append(range_group)
    # Event listings are always sorted by start date, whatever the caller asked for.
    query.meta_key = EVENT_START_KEY
    query.orderby = "meta_value_num"
    return query


def taxonomy_stage(query: Query, params: RequestParams) -> Query:
    for taxonomy in params.known_taxonomies:
        terms = params.taxonomy_filters.get(taxonomy)
        if terms:
            query.tax_query.append(TaxClause(taxonomy=taxonomy, field="slug", terms=list(terms)))
    return query


def register_builtin_filters(registry: StageRegistry) -> None:
    registry.add_filter("event_range", event_range_stage)
    registry.add_filter("taxonomy", taxonomy_stage)
