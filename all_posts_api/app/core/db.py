"""
SQLite content store schema and simple migration system.

This module provides functions for obtaining a database connection
(``get_connection``) and applying migrations on application start
(``init_db``).  The schema mirrors the usual blog layout: a ``posts``
table with the core record columns, ``postmeta`` for free-form
metadata (e.g. the ``date``/``end_date`` pair used by events),
taxonomies with their terms and term assignments, and a
``custom_fields`` table holding field definitions per post.

The migration mechanism stores applied migration versions in the
``migrations`` table and executes new migrations in order.
"""

import os
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from .config import settings


MIGRATIONS: list[tuple[int, str]] = [
    # Migration 1: posts and metadata
    (
        1,
        """
        CREATE TABLE IF NOT EXISTS posts (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            post_date TEXT NOT NULL,
            post_date_gmt TEXT NOT NULL,
            guid TEXT NOT NULL DEFAULT '',
            post_modified TEXT NOT NULL,
            post_modified_gmt TEXT NOT NULL,
            post_name TEXT NOT NULL DEFAULT '',
            post_status TEXT NOT NULL DEFAULT 'publish',
            post_type TEXT NOT NULL DEFAULT 'post',
            post_title TEXT NOT NULL DEFAULT '',
            post_content TEXT NOT NULL DEFAULT '',
            post_author INTEGER NOT NULL DEFAULT 0,
            post_excerpt TEXT NOT NULL DEFAULT '',
            comment_status TEXT NOT NULL DEFAULT 'open'
        );

        CREATE TABLE IF NOT EXISTS postmeta (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            post_id INTEGER NOT NULL,
            meta_key TEXT NOT NULL,
            meta_value TEXT,
            FOREIGN KEY(post_id) REFERENCES posts(id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_posts_type_status ON posts(post_type, post_status);
        CREATE INDEX IF NOT EXISTS idx_postmeta_post_key ON postmeta(post_id, meta_key);
        """,
    ),
    # Migration 2: taxonomies, terms and assignments
    (
        2,
        """
        CREATE TABLE IF NOT EXISTS taxonomies (
            name TEXT PRIMARY KEY,
            label TEXT
        );

        -- Which content types a taxonomy is attached to.
        CREATE TABLE IF NOT EXISTS taxonomy_object_types (
            taxonomy TEXT NOT NULL,
            post_type TEXT NOT NULL,
            PRIMARY KEY (taxonomy, post_type),
            FOREIGN KEY(taxonomy) REFERENCES taxonomies(name) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS terms (
            term_id INTEGER PRIMARY KEY AUTOINCREMENT,
            taxonomy TEXT NOT NULL,
            name TEXT NOT NULL,
            slug TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            parent INTEGER NOT NULL DEFAULT 0,
            term_group INTEGER NOT NULL DEFAULT 0,
            UNIQUE (taxonomy, slug),
            FOREIGN KEY(taxonomy) REFERENCES taxonomies(name) ON DELETE CASCADE
        );

        CREATE TABLE IF NOT EXISTS term_relationships (
            object_id INTEGER NOT NULL,
            term_id INTEGER NOT NULL,
            term_order INTEGER NOT NULL DEFAULT 0,
            PRIMARY KEY (object_id, term_id),
            FOREIGN KEY(object_id) REFERENCES posts(id) ON DELETE CASCADE,
            FOREIGN KEY(term_id) REFERENCES terms(term_id) ON DELETE CASCADE
        );

        CREATE INDEX IF NOT EXISTS idx_term_relationships_term ON term_relationships(term_id);
        """,
    ),
    # Migration 3: custom field definitions
    (
        3,
        """
        -- One row per field and post.  ``value`` holds the JSON encoded
        -- field value so lists and objects survive a round trip.
        CREATE TABLE IF NOT EXISTS custom_fields (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            post_id INTEGER NOT NULL,
            field_key TEXT NOT NULL,
            name TEXT NOT NULL,
            label TEXT NOT NULL DEFAULT '',
            type TEXT NOT NULL DEFAULT 'text',
            value TEXT,
            menu_order INTEGER NOT NULL DEFAULT 0,
            UNIQUE (post_id, name),
            FOREIGN KEY(post_id) REFERENCES posts(id) ON DELETE CASCADE
        );
        """,
    ),
]

# Taxonomies every store starts with, along with the content types they
# are attached to.
BUILTIN_TAXONOMIES: list[tuple[str, str, str]] = [
    ("category", "Categories", "post"),
    ("post_tag", "Tags", "post"),
    ("post_format", "Formats", "post"),
]


def get_database_path(database_url: Optional[str] = None) -> str:
    """Compute the path to the SQLite database file.

    If the URL (``settings.database_url`` by default) is an absolute
    path, use it directly.  Otherwise resolve it relative to the
    project root.
    """
    db_url = database_url or settings.database_url
    if os.path.isabs(db_url):
        return db_url
    base_dir = Path(__file__).resolve().parent.parent.parent.parent
    return str((base_dir / db_url).resolve())


def get_connection(database_url: Optional[str] = None) -> sqlite3.Connection:
    """Create and return a new SQLite connection.

    The connection uses a row factory to access columns by name and
    has foreign key enforcement switched on, which SQLite disables by
    default.
    """
    conn = sqlite3.connect(get_database_path(database_url))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def get_cursor(database_url: Optional[str] = None) -> Iterator[sqlite3.Cursor]:
    """Context manager that yields a cursor and closes the connection on exit."""
    conn = get_connection(database_url)
    try:
        yield conn.cursor()
        conn.commit()
    finally:
        conn.close()


def init_db(database_url: Optional[str] = None) -> None:
    """Initialise the database and apply pending migrations.

    Creates the ``migrations`` table if it does not exist, checks the
    current schema version, and applies any new migrations defined in
    ``MIGRATIONS``.  Built-in taxonomies are inserted when missing.
    If you add a new migration, append it with an incremented version
    number.
    """
    with get_cursor(database_url) as cursor:
        cursor.execute(
            "CREATE TABLE IF NOT EXISTS migrations (version INTEGER PRIMARY KEY)"
        )
        cursor.execute("SELECT MAX(version) as version FROM migrations")
        row = cursor.fetchone()
        current_version = row["version"] if row and row["version"] is not None else 0

        for version, sql in MIGRATIONS:
            if version > current_version:
                cursor.executescript(sql)
                cursor.execute(
                    "INSERT INTO migrations (version) VALUES (?)", (version,)
                )
                current_version = version

        for name, label, post_type in BUILTIN_TAXONOMIES:
            cursor.execute(
                "INSERT OR IGNORE INTO taxonomies (name, label) VALUES (?, ?)",
                (name, label),
            )
            cursor.execute(
                "INSERT OR IGNORE INTO taxonomy_object_types (taxonomy, post_type) VALUES (?, ?)",
                (name, post_type),
            )
