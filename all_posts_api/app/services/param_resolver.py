"""
Resolve raw query-string parameters into ``RequestParams``.

Only type coercion happens here.  Absent or falsy values (``""``,
``"0"``, ``0``, ``False``) fall back to the documented defaults;
out-of-range pages are passed through to the store unchanged.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..schemas.params import EventBound, RequestParams


logger = logging.getLogger(__name__)

TAXONOMY_PARAM_PREFIX = "tax_"

DEFAULTS: Dict[str, Any] = {
    "order": "ASC",
    "orderby": "date",
    "page": 1,
    "per_page": 10,
    "type": "post",
}


class InvalidParameterError(ValueError):
    """Raised when a parameter cannot be coerced to its declared type."""


def _is_falsy(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value.strip() in {"", "0"}
    return value == 0


def _param(raw: Mapping[str, Any], name: str) -> Any:
    value = raw.get(name)
    return DEFAULTS.get(name) if _is_falsy(value) else value


def split_list(value: Any) -> List[str]:
    """Split a comma separated value into an ordered list without duplicates."""
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value).split(",")
    result: List[str] = []
    for item in items:
        item = item.strip()
        if item and item not in result:
            result.append(item)
    return result


def _to_int(name: str, value: Any) -> int:
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise InvalidParameterError(f"Parameter '{name}' must be an integer, got {value!r}") from exc


def _to_bound(value: Any) -> Optional[EventBound]:
    if _is_falsy(value):
        return None
    if isinstance(value, (int, float)):
        return value
    text = str(value).strip()
    for cast in (int, float):
        try:
            return cast(text)
        except ValueError:
            continue
    logger.debug("Passing non-numeric event bound %r to the store", text)
    return text


def _to_order(value: Any) -> str:
    order = str(value).strip().upper()
    if order not in {"ASC", "DESC"}:
        logger.debug("Unknown order %r, using ASC", value)
        return "ASC"
    return order


def resolve_params(raw: Mapping[str, Any], known_taxonomies: Iterable[str] = ()) -> RequestParams:
    """Build ``RequestParams`` from raw request parameters.

    ``known_taxonomies`` is the set of taxonomy names the content store
    knows about; for each of them a ``tax_<name>`` parameter is looked
    up and, when present, split into term slugs.
    """
    known = tuple(known_taxonomies)
    taxonomy_filters: Dict[str, Tuple[str, ...]] = {}
    for taxonomy in known:
        value = raw.get(TAXONOMY_PARAM_PREFIX + taxonomy)
        if _is_falsy(value):
            continue
        terms = split_list(value)
        if terms:
            taxonomy_filters[taxonomy] = tuple(terms)

    return RequestParams(
        order=_to_order(_param(raw, "order")),
        orderby=str(_param(raw, "orderby")),
        page=_to_int("page", _param(raw, "page")),
        per_page=_to_int("per_page", _param(raw, "per_page")),
        types=tuple(split_list(_param(raw, "type"))) or (DEFAULTS["type"],),
        event_after=_to_bound(raw.get("event_after")),
        event_before=_to_bound(raw.get("event_before")),
        known_taxonomies=known,
        taxonomy_filters=taxonomy_filters,
    )
