"""
SQLite implementations of the content store collaborators.

``SQLiteContentStore`` translates a ``Query`` into SQL over the schema
created by ``core.db``: content type and status filters, taxonomy
clauses, nested metadata groups, ordering and pagination.  The taxonomy
and custom-field providers read the same database, and
``SitePermalinkResolver`` builds links from the configured site URL.

The module also contains the small write helpers used by the seeding
script and the tests.
"""

import json
import logging
import math
import sqlite3
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from ..core.config import Settings, settings as default_settings
from ..core.db import get_connection, get_cursor
from ..schemas.post import QueryResult, RawRecord, Term
from ..schemas.query import MetaClause, MetaGroup, Query, TaxClause
from .content_store import Collaborators, ContentStoreError


logger = logging.getLogger(__name__)

POST_COLUMNS = (
    "id",
    "post_date",
    "post_date_gmt",
    "guid",
    "post_modified",
    "post_modified_gmt",
    "post_name",
    "post_status",
    "post_type",
    "post_title",
    "post_content",
    "post_author",
    "post_excerpt",
    "comment_status",
)

# Public ``orderby`` values and the column they sort on.
ORDERBY_COLUMNS: Dict[str, str] = {
    "date": "p.post_date",
    "modified": "p.post_modified",
    "title": "p.post_title",
    "name": "p.post_name",
    "slug": "p.post_name",
    "id": "p.id",
    "ID": "p.id",
    "author": "p.post_author",
    "type": "p.post_type",
    "meta_value": "om.meta_value",
    "meta_value_num": "CAST(om.meta_value AS REAL)",
}

SQL_COMPARE = {"=", "!=", ">", ">=", "<", "<=", "LIKE"}

# Largest integer sqlite3 can bind.
SQLITE_MAX_INTEGER = 2 ** 63 - 1


def _placeholders(values: Sequence[Any]) -> str:
    return ", ".join("?" for _ in values)


def _bind_value(value: Any, numeric: bool) -> Any:
    """Make ``value`` bindable: integers outside the 64-bit range become
    floats for numeric comparisons and text otherwise."""
    if isinstance(value, int) and not isinstance(value, bool) and abs(value) > SQLITE_MAX_INTEGER:
        return float(value) if numeric else str(value)
    return value


class SQLiteContentStore:
    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url

    # ------------------------------------------------------------------
    # SQL building
    # ------------------------------------------------------------------
    def _meta_clause_sql(self, clause: MetaClause) -> Tuple[str, List[Any]]:
        base = "SELECT 1 FROM postmeta m WHERE m.post_id = p.id AND m.meta_key = ?"
        if clause.compare == "EXISTS":
            return f"EXISTS ({base})", [clause.key]
        if clause.compare == "NOT EXISTS":
            return f"NOT EXISTS ({base})", [clause.key]
        if clause.compare not in SQL_COMPARE:
            raise ContentStoreError(f"Unsupported meta compare operator: {clause.compare}")
        if clause.type == "NUMERIC":
            condition = f"CAST(m.meta_value AS REAL) {clause.compare} CAST(? AS REAL)"
        else:
            condition = f"m.meta_value {clause.compare} ?"
        value = _bind_value(clause.value, clause.type == "NUMERIC")
        return f"EXISTS ({base} AND {condition})", [clause.key, value]

    def _meta_group_sql(self, group: MetaGroup) -> Tuple[str, List[Any]]:
        parts: List[str] = []
        params: List[Any] = []
        for clause in group.clauses:
            if isinstance(clause, MetaGroup):
                if clause.is_empty():
                    continue
                sql, clause_params = self._meta_group_sql(clause)
            else:
                sql, clause_params = self._meta_clause_sql(clause)
            parts.append(sql)
            params.extend(clause_params)
        if not parts:
            return "", []
        return "(" + f" {group.relation} ".join(parts) + ")", params

    def _tax_clause_sql(self, clause: TaxClause) -> Tuple[str, List[Any]]:
        if not clause.terms:
            # An empty IN list matches nothing; an empty NOT IN list excludes nothing.
            return ("1 = 0" if clause.operator == "IN" else "1 = 1"), []
        column = "t.slug" if clause.field == "slug" else "t.term_id"
        subquery = (
            "SELECT tr.object_id FROM term_relationships tr "
            "JOIN terms t ON t.term_id = tr.term_id "
            f"WHERE t.taxonomy = ? AND {column} IN ({_placeholders(clause.terms)})"
        )
        return f"p.id {clause.operator} ({subquery})", [clause.taxonomy, *clause.terms]

    def _build_where(self, query: Query) -> Tuple[str, List[Any]]:
        where: List[str] = []
        params: List[Any] = []
        # Empty type or status lists match nothing.
        where.append(f"p.post_type IN ({_placeholders(query.post_types) or 'NULL'})")
        params.extend(query.post_types)
        where.append(f"p.post_status IN ({_placeholders(query.post_status) or 'NULL'})")
        params.extend(query.post_status)
        for clause in query.tax_query:
            sql, clause_params = self._tax_clause_sql(clause)
            where.append(sql)
            params.extend(clause_params)
        meta_sql, meta_params = self._meta_group_sql(query.meta_query)
        if meta_sql:
            where.append(meta_sql)
            params.extend(meta_params)
        return " WHERE " + " AND ".join(where), params

    def _build_from(self, query: Query) -> Tuple[str, List[Any], str]:
        orderby = query.orderby if query.orderby in ORDERBY_COLUMNS else "date"
        if orderby.startswith("meta_value") and not query.meta_key:
            logger.debug("orderby=%s without meta_key, sorting by date", orderby)
            orderby = "date"
        if orderby.startswith("meta_value"):
            # Sorting by a metadata field only returns records that carry it.
            join = " JOIN postmeta om ON om.post_id = p.id AND om.meta_key = ?"
            return "FROM posts p" + join, [query.meta_key], orderby
        return "FROM posts p", [], orderby

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def execute(self, query: Query) -> QueryResult:
        from_sql, from_params, orderby = self._build_from(query)
        where_sql, where_params = self._build_where(query)
        params = from_params + where_params

        direction = "DESC" if query.order == "DESC" else "ASC"
        columns = ", ".join(f"p.{column}" for column in POST_COLUMNS)
        select_sql = (
            f"SELECT {columns}, {ORDERBY_COLUMNS[orderby]} AS sort_key {from_sql}{where_sql}"
            f" GROUP BY p.id ORDER BY sort_key {direction}, p.id {direction}"
        )
        select_params = list(params)
        if query.page_size >= 1:
            page = max(query.page, 1)
            limit = min(query.page_size, SQLITE_MAX_INTEGER)
            offset = min((page - 1) * query.page_size, SQLITE_MAX_INTEGER)
            select_sql += " LIMIT ? OFFSET ?"
            select_params.extend([limit, offset])
        count_sql = f"SELECT COUNT(DISTINCT p.id) AS total {from_sql}{where_sql}"

        try:
            conn = get_connection(self.database_url)
        except sqlite3.Error as exc:
            raise ContentStoreError(f"Cannot open content store: {exc}") from exc
        try:
            rows = conn.execute(select_sql, select_params).fetchall()
            total = conn.execute(count_sql, params).fetchone()["total"]
        except (sqlite3.Error, OverflowError) as exc:
            raise ContentStoreError(f"Query execution failed: {exc}") from exc
        finally:
            conn.close()

        if query.page_size >= 1:
            total_pages = math.ceil(total / query.page_size)
        else:
            total_pages = 1 if total else 0
        records = [RawRecord(**{column: row[column] for column in POST_COLUMNS}) for row in rows]
        return QueryResult(records=records, total_count=total, total_pages=total_pages)


class SQLiteTaxonomyProvider:
    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url

    def _fetch(self, sql: str, params: Sequence[Any] = ()) -> List[sqlite3.Row]:
        try:
            with get_cursor(self.database_url) as cursor:
                return cursor.execute(sql, tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise ContentStoreError(f"Taxonomy lookup failed: {exc}") from exc

    def list_taxonomies(self) -> List[str]:
        rows = self._fetch("SELECT name FROM taxonomies ORDER BY rowid")
        return [row["name"] for row in rows]

    def list_taxonomies_for_type(self, post_type: str) -> List[str]:
        rows = self._fetch(
            """
            SELECT tx.name FROM taxonomies tx
            JOIN taxonomy_object_types ot ON ot.taxonomy = tx.name
            WHERE ot.post_type = ?
            ORDER BY tx.rowid
            """,
            (post_type,),
        )
        return [row["name"] for row in rows]

    def get_terms(self, post_id: int, taxonomy: str) -> List[Term]:
        rows = self._fetch(
            """
            SELECT t.term_id, t.name, t.slug, t.term_group, t.taxonomy, t.description, t.parent,
                   (SELECT COUNT(*) FROM term_relationships c WHERE c.term_id = t.term_id) AS count
            FROM terms t
            JOIN term_relationships tr ON tr.term_id = t.term_id
            WHERE tr.object_id = ? AND t.taxonomy = ?
            ORDER BY t.name ASC, t.term_id ASC
            """,
            (post_id, taxonomy),
        )
        # Terms belong to exactly one taxonomy, so the term-taxonomy id is the term id.
        return [Term(term_taxonomy_id=row["term_id"], **dict(row)) for row in rows]


class SQLiteCustomFieldProvider:
    def __init__(self, database_url: Optional[str] = None) -> None:
        self.database_url = database_url

    def get_fields(self, post_id: int) -> Optional[Dict[str, Dict[str, Any]]]:
        try:
            with get_cursor(self.database_url) as cursor:
                rows = cursor.execute(
                    """
                    SELECT field_key, name, label, type, value, menu_order FROM custom_fields
                    WHERE post_id = ? ORDER BY menu_order, id
                    """,
                    (post_id,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise ContentStoreError(f"Custom field lookup failed: {exc}") from exc
        if not rows:
            return None
        fields: Dict[str, Dict[str, Any]] = {}
        for row in rows:
            fields[row["name"]] = {
                "key": row["field_key"],
                "name": row["name"],
                "label": row["label"],
                "type": row["type"],
                "value": json.loads(row["value"]) if row["value"] is not None else None,
                "menu_order": row["menu_order"],
            }
        return fields


class SitePermalinkResolver:
    def __init__(self, site_url: str) -> None:
        self.site_url = site_url.rstrip("/")

    def resolve(self, record: RawRecord) -> str:
        if not record.post_name:
            return f"{self.site_url}/?p={record.id}"
        if record.post_type == "post":
            return f"{self.site_url}/{record.post_name}/"
        return f"{self.site_url}/{record.post_type}/{record.post_name}/"


def build_collaborators(config: Settings = default_settings, database_url: Optional[str] = None) -> Collaborators:
    """Wire the SQLite collaborators according to ``config``."""
    database_url = database_url or config.database_url
    return Collaborators(
        store=SQLiteContentStore(database_url),
        taxonomies=SQLiteTaxonomyProvider(database_url),
        permalinks=SitePermalinkResolver(config.site_url),
        custom_fields=SQLiteCustomFieldProvider(database_url) if config.custom_fields_enabled else None,
    )


# ----------------------------------------------------------------------
# Write helpers
# ----------------------------------------------------------------------
def insert_post(cursor: sqlite3.Cursor, **fields: Any) -> int:
    """Insert a post and return its id.

    ``post_date`` is required; GMT and modification dates default to it
    and ``guid`` defaults to ``?p=<id>`` style once the id is known.
    """
    unknown = set(fields) - set(POST_COLUMNS)
    if unknown:
        raise ValueError(f"Unknown post columns: {sorted(unknown)}")
    post_date = fields["post_date"]
    fields.setdefault("post_date_gmt", post_date)
    fields.setdefault("post_modified", post_date)
    fields.setdefault("post_modified_gmt", fields["post_modified"])
    columns = list(fields)
    cursor.execute(
        f"INSERT INTO posts ({', '.join(columns)}) VALUES ({_placeholders(columns)})",
        [fields[column] for column in columns],
    )
    post_id = cursor.lastrowid
    if not fields.get("guid"):
        cursor.execute("UPDATE posts SET guid = ? WHERE id = ?", (f"?p={post_id}", post_id))
    return post_id


def set_meta(cursor: sqlite3.Cursor, post_id: int, meta: Mapping[str, Any]) -> None:
    for key, value in meta.items():
        cursor.execute("DELETE FROM postmeta WHERE post_id = ? AND meta_key = ?", (post_id, key))
        cursor.execute(
            "INSERT INTO postmeta (post_id, meta_key, meta_value) VALUES (?, ?, ?)",
            (post_id, key, None if value is None else str(value)),
        )


def register_taxonomy(cursor: sqlite3.Cursor, name: str, post_types: Iterable[str], label: str = "") -> None:
    cursor.execute("INSERT OR IGNORE INTO taxonomies (name, label) VALUES (?, ?)", (name, label or name))
    for post_type in post_types:
        cursor.execute(
            "INSERT OR IGNORE INTO taxonomy_object_types (taxonomy, post_type) VALUES (?, ?)",
            (name, post_type),
        )


def assign_terms(cursor: sqlite3.Cursor, post_id: int, taxonomy: str, terms: Iterable[Any]) -> None:
    """Attach terms to a post, creating missing terms on the way.

    Each term is either a slug or a mapping with ``slug`` and optional
    ``name``/``description``.  The taxonomy must already exist.
    """
    for term in terms:
        if isinstance(term, Mapping):
            slug = term["slug"]
            name = term.get("name", slug)
            description = term.get("description", "")
        else:
            slug = name = str(term)
            description = ""
        cursor.execute(
            "INSERT OR IGNORE INTO terms (taxonomy, name, slug, description) VALUES (?, ?, ?, ?)",
            (taxonomy, name, slug, description),
        )
        row = cursor.execute(
            "SELECT term_id FROM terms WHERE taxonomy = ? AND slug = ?", (taxonomy, slug)
        ).fetchone()
        cursor.execute(
            "INSERT OR IGNORE INTO term_relationships (object_id, term_id) VALUES (?, ?)",
            (post_id, row["term_id"]),
        )


def set_custom_field(
    cursor: sqlite3.Cursor,
    post_id: int,
    name: str,
    value: Any,
    *,
    label: str = "",
    field_type: str = "text",
    field_key: Optional[str] = None,
) -> None:
    cursor.execute(
        """
        INSERT INTO custom_fields (post_id, field_key, name, label, type, value)
        VALUES (?, ?, ?, ?, ?, ?)
        ON CONFLICT (post_id, name) DO UPDATE SET
            field_key = excluded.field_key, label = excluded.label,
            type = excluded.type, value = excluded.value
        """,
        (post_id, field_key or f"field_{name}", name, label or name, field_type, json.dumps(value)),
    )
