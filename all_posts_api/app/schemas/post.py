"""
Records returned by a content store.

``RawRecord`` keeps the store's native column names (``post_title``,
``post_name`` ...) and is read-only to the rest of the application;
the result mapper projects it onto the public field names.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, Field


class RawRecord(BaseModel):
    id: int
    post_date: str
    post_date_gmt: str
    guid: str = ""
    post_modified: str
    post_modified_gmt: str
    post_name: str = ""
    post_status: str = "publish"
    post_type: str = "post"
    post_title: str = ""
    post_content: str = ""
    post_author: int = 0
    post_excerpt: str = ""
    comment_status: str = "open"

    model_config = {
        "from_attributes": True,
        "frozen": True,
    }


class Term(BaseModel):
    """A taxonomy term as attached to output records."""

    term_id: int
    name: str
    slug: str
    term_group: int = 0
    term_taxonomy_id: int
    taxonomy: str
    description: str = ""
    parent: int = 0
    count: int = 0

    model_config = {
        "from_attributes": True,
    }


class QueryResult(BaseModel):
    records: List[RawRecord] = Field(default_factory=list)
    total_count: int = 0
    total_pages: int = 0


# Output records are plain mappings so enrichment stages may add keys.
OutputRecord = Dict[str, Any]
