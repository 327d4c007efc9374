#!/usr/bin/env python3
"""
Load posts into the All-Posts SQLite content store.

The input is a JSON document of the form::

    {
      "taxonomies": [{"name": "event_category", "post_types": ["event"]}],
      "posts": [
        {
          "post_type": "event",
          "post_title": "Spring fair",
          "post_name": "spring-fair",
          "post_date": "2024-03-01 10:00:00",
          "meta": {"date": 1711274400, "end_date": 1711360800},
          "terms": {"event_category": ["fairs"]},
          "fields": {"venue": "Town hall"}
        }
      ]
    }

``taxonomies`` is optional; the built-in ``category``, ``post_tag`` and
``post_format`` taxonomies always exist.  The schema is created or
migrated before loading.

Usage:
    python seed_content.py --db ./content.db content.json
"""

import argparse
import json
import sys
from pathlib import Path

from all_posts_api.app.core.db import get_cursor, init_db
from all_posts_api.app.services.sqlite_store import (
    assign_terms,
    insert_post,
    register_taxonomy,
    set_custom_field,
    set_meta,
)


def load_document(db: str, document: dict) -> int:
    """Write ``document`` into the store at ``db`` and return the number of posts."""
    init_db(db)
    count = 0
    with get_cursor(db) as cursor:
        for taxonomy in document.get("taxonomies", []):
            register_taxonomy(cursor, taxonomy["name"], taxonomy.get("post_types", []), taxonomy.get("label", ""))
        for post in document.get("posts", []):
            post = dict(post)
            meta = post.pop("meta", {})
            terms = post.pop("terms", {})
            fields = post.pop("fields", {})
            post_id = insert_post(cursor, **post)
            set_meta(cursor, post_id, meta)
            for taxonomy, values in terms.items():
                assign_terms(cursor, post_id, taxonomy, values)
            for name, value in fields.items():
                set_custom_field(cursor, post_id, name, value)
            count += 1
    return count


def main():
    ap = argparse.ArgumentParser(description="Load posts into the All-Posts SQLite store.")
    ap.add_argument("--db", required=True, help="Path to SQLite DB file (e.g., ./content.db)")
    ap.add_argument("source", help="JSON file with posts to load")
    args = ap.parse_args()

    source = Path(args.source)
    if not source.exists():
        print(f"[!] Source not found: {source}", file=sys.stderr)
        sys.exit(1)

    document = json.loads(source.read_text(encoding="utf-8"))
    count = load_document(str(Path(args.db).resolve()), document)
    print(f"[+] Loaded {count} posts into {args.db}")


if __name__ == "__main__":
    main()
