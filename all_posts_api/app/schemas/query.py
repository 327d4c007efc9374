"""
Structured query handed to a content store.

The compiler builds a ``Query`` with pagination, ordering and the
content type filter, then filter stages append clauses to
``meta_query`` and ``tax_query``.  Both containers always exist; an
empty ``MetaGroup`` simply means "no metadata constraint".
"""

from __future__ import annotations

from typing import List, Literal, Optional, Union

from pydantic import BaseModel, Field


Relation = Literal["AND", "OR"]


class MetaClause(BaseModel):
    """Compare one metadata value of a record against a bound."""

    key: str
    value: Optional[Union[int, float, str]] = None
    compare: Literal["=", "!=", ">", ">=", "<", "<=", "LIKE", "EXISTS", "NOT EXISTS"] = "="
    type: Literal["NUMERIC", "CHAR"] = "CHAR"


class MetaGroup(BaseModel):
    """A set of clauses (or nested groups) joined by ``relation``."""

    relation: Relation = "AND"
    clauses: List[Union[MetaClause, MetaGroup]] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.clauses

    def count(self) -> int:
        """Total number of leaf clauses, nested groups included."""
        total = 0
        for clause in self.clauses:
            total += clause.count() if isinstance(clause, MetaGroup) else 1
        return total


class TaxClause(BaseModel):
    """Restrict results to records carrying one of ``terms`` in ``taxonomy``."""

    taxonomy: str
    field: Literal["slug", "term_id"] = "slug"
    terms: List[Union[str, int]]
    operator: Literal["IN", "NOT IN"] = "IN"


class Query(BaseModel):
    page: int = 1
    page_size: int = 10
    orderby: str = "date"
    order: Literal["ASC", "DESC"] = "ASC"
    # Metadata key used when ``orderby`` is ``meta_value``/``meta_value_num``.
    meta_key: Optional[str] = None
    post_types: List[str] = Field(default_factory=lambda: ["post"])
    post_status: List[str] = Field(default_factory=lambda: ["publish"])
    meta_query: MetaGroup = Field(default_factory=MetaGroup)
    tax_query: List[TaxClause] = Field(default_factory=list)

    def clause_count(self) -> int:
        return self.meta_query.count() + len(self.tax_query)


MetaGroup.model_rebuild()
