"""
Conduit Backend: List Options and Pagination
=============================================

What:  The per-request `ListOptions` value and the rules that bound its
       limit and offset.
How:   Raw query-string values are parsed leniently: anything absent,
       non-numeric or out of range falls back to a default instead of
       failing the request.
Who:   Built by the article routes from the request's query parameters and
       consumed by the article query assembler.

Bounds:
    limit   absent / non-numeric / <= 0  → default (20)
            above the ceiling             → ceiling (100)
    offset  absent / non-numeric / < 0   → 0
            above MAX_OFFSET              → MAX_OFFSET (2**63 - 1, the largest
                                            signed 64-bit integer a database
                                            driver will bind)
            otherwise unbounded: a very large offset still makes the
            database walk and discard that many rows
"""

from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple, Union

from conduit.queries.filters import ArticleFilter, FilterKind

DEFAULT_LIMIT = 20
MAX_LIMIT = 100
MAX_OFFSET = 2**63 - 1

RawNumber = Union[str, int, None]


@dataclass(frozen=True)
class ListOptions:
    """Immutable listing options for one request."""

    limit: int = DEFAULT_LIMIT
    offset: int = 0
    filters: Tuple[ArticleFilter, ...] = ()

    def populated_filters(self) -> Tuple[ArticleFilter, ...]:
        return tuple(f for f in self.filters if f.values)


def _parse_int(value: RawNumber) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def resolve_pagination(
    limit: RawNumber = None,
    offset: RawNumber = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> Tuple[int, int]:
    """
    Bound a requested limit and offset. Never raises.

    Example:
        resolve_pagination("10000", "abc")  →  (100, 0)
        resolve_pagination(0, 40)           →  (20, 40)
    """
    resolved_limit = _parse_int(limit)
    if resolved_limit is None or resolved_limit <= 0:
        resolved_limit = default_limit
    resolved_limit = min(resolved_limit, max_limit)

    resolved_offset = _parse_int(offset)
    if resolved_offset is None or resolved_offset < 0:
        resolved_offset = 0
    resolved_offset = min(resolved_offset, MAX_OFFSET)

    return resolved_limit, resolved_offset


def _values(params: Mapping[str, Any], key: str) -> List[str]:
    # Starlette's QueryParams keeps repeated keys; plain mappings may hold
    # a single string or a list.
    getlist = getattr(params, "getlist", None)
    if getlist is not None:
        return list(getlist(key))
    value = params.get(key)
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return list(value)


def _last(params: Mapping[str, Any], key: str) -> Optional[str]:
    values = _values(params, key)
    return values[-1] if values else None


def parse_list_options(
    params: Mapping[str, Any],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: int = MAX_LIMIT,
) -> ListOptions:
    """
    Build ListOptions from query parameters.

    Recognised keys are `limit`, `offset` and one repeatable key per
    FilterKind (`tag`, `author`, `favorited`). Other keys are ignored, as
    are filter keys whose values are all blank.
    """
    limit, offset = resolve_pagination(
        _last(params, "limit"),
        _last(params, "offset"),
        default_limit=default_limit,
        max_limit=max_limit,
    )

    filters = []
    for kind in FilterKind:
        article_filter = ArticleFilter.of(kind, _values(params, kind.value))
        if article_filter.values:
            filters.append(article_filter)

    return ListOptions(limit=limit, offset=offset, filters=tuple(filters))
