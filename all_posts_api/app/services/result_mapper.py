"""
Map raw store records into the records returned by the endpoint.

``project_record`` produces the fixed base projection; ``map_record``
runs it through the registry's enrichment chain.  The built-in
enrichment stages are callable classes bound to their provider when the
application registers them:

* ``CustomFieldStage`` attaches custom field values under ``acf``;
* ``TaxonomyTermsStage`` attaches the terms of every taxonomy of the
  record's type under ``tags``, ``categories`` or ``tax_<name>``.
"""

import logging
from typing import Any, Dict, Iterable, Optional

from ..schemas.post import OutputRecord, RawRecord
from .content_store import CustomFieldProvider, PermalinkResolver, TaxonomyProvider
from .stages import StageRegistry


logger = logging.getLogger(__name__)

BASE_FIELDS = (
    "date",
    "date_gmt",
    "guid",
    "id",
    "link",
    "modified",
    "modified_gmt",
    "slug",
    "status",
    "type",
    "title",
    "content",
    "author",
    "excerpt",
    "comment_status",
)

TAG_TAXONOMY = "post_tag"
CATEGORY_TAXONOMY = "category"


def project_record(record: RawRecord, permalinks: PermalinkResolver) -> OutputRecord:
    return {
        "date": record.post_date,
        "date_gmt": record.post_date_gmt,
        "guid": record.guid,
        "id": record.id,
        "link": permalinks.resolve(record),
        "modified": record.post_modified,
        "modified_gmt": record.post_modified_gmt,
        "slug": record.post_name,
        "status": record.post_status,
        "type": record.post_type,
        "title": record.post_title,
        "content": record.post_content,
        "author": record.post_author,
        "excerpt": record.post_excerpt,
        "comment_status": record.comment_status,
    }


def map_record(record: RawRecord, permalinks: PermalinkResolver, registry: StageRegistry) -> OutputRecord:
    return registry.run_enrichments(project_record(record, permalinks))


def taxonomy_output_key(taxonomy: str) -> str:
    if taxonomy == TAG_TAXONOMY:
        return "tags"
    if taxonomy == CATEGORY_TAXONOMY:
        return "categories"
    return f"tax_{taxonomy}"


class CustomFieldStage:
    """Attach custom field values as a flat ``acf`` mapping.

    Field definitions carry metadata such as the label and field type;
    only their ``value`` ends up in the response.  When no provider is
    installed, or the record has no fields, the record is returned
    unchanged.
    """

    def __init__(self, provider: Optional[CustomFieldProvider]) -> None:
        self.provider = provider

    def __call__(self, record: OutputRecord) -> OutputRecord:
        if self.provider is None:
            return record
        fields = self.provider.get_fields(record["id"])
        if not fields:
            return record
        acf: Dict[str, Any] = {}
        for name, definition in fields.items():
            acf[name] = definition.get("value") if isinstance(definition, dict) else definition
        record["acf"] = acf
        return record


ALWAYS_IGNORED_TAXONOMIES = frozenset({"post_format"})


class TaxonomyTermsStage:
    def __init__(self, provider: TaxonomyProvider, ignored: Iterable[str] = ()) -> None:
        self.provider = provider
        self.ignored = ALWAYS_IGNORED_TAXONOMIES | frozenset(ignored)

    def __call__(self, record: OutputRecord) -> OutputRecord:
        for taxonomy in self.provider.list_taxonomies_for_type(record["type"]):
            if taxonomy in self.ignored:
                continue
            terms = self.provider.get_terms(record["id"], taxonomy)
            record[taxonomy_output_key(taxonomy)] = [term.model_dump() for term in terms]
        return record


def register_builtin_enrichments(
    registry: StageRegistry,
    taxonomies: TaxonomyProvider,
    custom_fields: Optional[CustomFieldProvider],
    ignored_taxonomies: Iterable[str] = (),
) -> None:
    if custom_fields is None:
        logger.info("No custom field provider configured; responses will not include 'acf'")
    registry.add_enrichment("acf", CustomFieldStage(custom_fields))
    registry.add_enrichment("taxonomy_terms", TaxonomyTermsStage(taxonomies, ignored_taxonomies))
