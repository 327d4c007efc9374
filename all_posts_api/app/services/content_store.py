"""
Collaborator interfaces consumed by the all-posts pipeline.

The pipeline never talks to storage directly.  It executes queries
through a ``ContentStoreClient``, looks up taxonomies and terms through
a ``TaxonomyProvider``, reads custom fields through an optional
``CustomFieldProvider`` and builds links with a ``PermalinkResolver``.
``Collaborators`` bundles one instance of each; ``sqlite_store``
provides the default implementations.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence

from ..schemas.post import QueryResult, RawRecord, Term
from ..schemas.query import Query


class ContentStoreError(RuntimeError):
    """Raised when the content store cannot execute a query."""


class ContentStoreClient(Protocol):
    def execute(self, query: Query) -> QueryResult:
        ...


class TaxonomyProvider(Protocol):
    def list_taxonomies(self) -> List[str]:
        ...

    def list_taxonomies_for_type(self, post_type: str) -> List[str]:
        ...

    def get_terms(self, post_id: int, taxonomy: str) -> Sequence[Term]:
        ...


class CustomFieldProvider(Protocol):
    def get_fields(self, post_id: int) -> Optional[Mapping[str, Dict[str, Any]]]:
        """Return field definitions keyed by field name, or ``None``."""
        ...


class PermalinkResolver(Protocol):
    def resolve(self, record: RawRecord) -> str:
        ...


@dataclass
class Collaborators:
    store: ContentStoreClient
    taxonomies: TaxonomyProvider
    permalinks: PermalinkResolver
    # ``None`` means no custom-field plugin is installed.
    custom_fields: Optional[CustomFieldProvider] = None
