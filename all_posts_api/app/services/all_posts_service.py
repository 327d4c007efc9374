"""
Business logic for the all-posts endpoint.

``AllPostsService.list_posts`` runs the whole request pipeline:
resolve the raw parameters, compile them into a query, execute it
against the content store and map every returned record.  It performs
no retries; errors raised by the store propagate to the caller.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping

from ..schemas.post import OutputRecord
from .content_store import Collaborators
from .param_resolver import resolve_params
from .query_compiler import compile_query
from .result_mapper import map_record
from .stages import StageRegistry


logger = logging.getLogger(__name__)


@dataclass
class PostsPage:
    posts: List[OutputRecord]
    total: int
    total_pages: int


class AllPostsService:
    """Сервис для выдачи записей всех типов одним списком.

    Экземпляр создаётся один раз при старте приложения и хранит
    коллабораторы и замороженный реестр стадий; состояния между
    запросами он не держит.
    """

    def __init__(self, collaborators: Collaborators, registry: StageRegistry) -> None:
        self.collaborators = collaborators
        self.registry = registry

    def list_posts(self, raw_params: Mapping[str, Any]) -> PostsPage:
        known_taxonomies = self.collaborators.taxonomies.list_taxonomies()
        params = resolve_params(raw_params, known_taxonomies)
        query = compile_query(params, self.registry)
        result = self.collaborators.store.execute(query)
        posts = [
            map_record(record, self.collaborators.permalinks, self.registry)
            for record in result.records
        ]
        logger.info(
            "all-posts types=%s page=%s returned %d of %d (pages=%d)",
            ",".join(params.types),
            params.page,
            len(posts),
            result.total_count,
            result.total_pages,
        )
        return PostsPage(posts=posts, total=result.total_count, total_pages=result.total_pages)
