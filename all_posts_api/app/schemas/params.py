"""
Resolved request parameters for the all-posts endpoint.

``RequestParams`` is the output of the parameter resolver: every field
carries a value, defaults included, so later stages never need to
check for absent keys.
"""

from typing import Dict, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field


# Numeric bounds stay strings when they cannot be parsed; the store's
# comparison decides what such a value matches.
EventBound = Union[int, float, str]


class RequestParams(BaseModel):
    order: Literal["ASC", "DESC"] = "ASC"
    orderby: str = "date"
    page: int = 1
    per_page: int = 10
    types: Tuple[str, ...] = ("post",)
    event_after: Optional[EventBound] = None
    event_before: Optional[EventBound] = None

    # Taxonomy names known to the store when the request was resolved, in
    # store order.  Filter stages iterate this instead of the raw request.
    known_taxonomies: Tuple[str, ...] = ()
    taxonomy_filters: Dict[str, Tuple[str, ...]] = Field(default_factory=dict)

    model_config = {
        "frozen": True,
    }

    @property
    def has_event_range(self) -> bool:
        return self.event_after is not None or self.event_before is not None
