"""
Ordered registries of filter and enrichment stages.

Filter stages receive the compiled ``Query`` together with the resolved
``RequestParams`` and return the (possibly extended) query.  Enrichment
stages receive one output record and return it with extra keys.  Both
chains run in registration order.

Stages are registered once while the application is created; the
registry is then frozen and only read for the rest of the process
lifetime, so request handlers can share it without locking.
"""

import logging
from typing import Callable, List, Tuple

from ..schemas.params import RequestParams
from ..schemas.post import OutputRecord
from ..schemas.query import Query


logger = logging.getLogger(__name__)

FilterStage = Callable[[Query, RequestParams], Query]
EnrichmentStage = Callable[[OutputRecord], OutputRecord]


class StageContractError(RuntimeError):
    """Raised when a filter stage breaks the append-only clause contract."""


class StageRegistry:
    def __init__(self) -> None:
        self._filters: List[Tuple[str, FilterStage]] = []
        self._enrichments: List[Tuple[str, EnrichmentStage]] = []
        self._frozen = False

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add_filter(self, name: str, stage: FilterStage) -> None:
        self._register(self._filters, name, stage)

    def add_enrichment(self, name: str, stage: EnrichmentStage) -> None:
        self._register(self._enrichments, name, stage)

    def _register(self, chain: list, name: str, stage: Callable) -> None:
        if self._frozen:
            raise RuntimeError(f"Cannot register stage '{name}': registry is frozen")
        if any(existing == name for existing, _ in chain):
            raise ValueError(f"Stage '{name}' is already registered")
        chain.append((name, stage))
        logger.debug("Registered stage %s", name)

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def filter_names(self) -> List[str]:
        return [name for name, _ in self._filters]

    @property
    def enrichment_names(self) -> List[str]:
        return [name for name, _ in self._enrichments]

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------
    def run_filters(self, query: Query, params: RequestParams) -> Query:
        """Pass ``query`` through every filter stage in order.

        Each stage gets its own deep copy, so a misbehaving stage cannot
        reach back into the query an earlier stage returned.  A stage
        which returns fewer clauses than it received raises
        ``StageContractError``.
        """
        for name, stage in self._filters:
            before = query.clause_count()
            result = stage(query.model_copy(deep=True), params)
            if not isinstance(result, Query):
                raise StageContractError(f"Filter stage '{name}' did not return a Query")
            if result.clause_count() < before:
                raise StageContractError(f"Filter stage '{name}' removed query clauses")
            query = result
        return query

    def run_enrichments(self, record: OutputRecord) -> OutputRecord:
        for _, stage in self._enrichments:
            record = stage(record)
        return record
