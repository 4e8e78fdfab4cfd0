"""
Query-string to store-query translation.

Turns the decoded query string of a list request into a QueryPlan:
- filter expression (control keys removed, comparison operators tagged)
- sort specification from ``sort``
- projection from ``fields``
- pagination from ``page`` and ``limit``

Nothing here raises; malformed values are forwarded for the store to reject.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

EXCLUDED_KEYS = frozenset({"page", "sort", "limit", "fields"})

COMPARISON_OPERATORS = frozenset({"gte", "gt", "lte", "lt"})

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100

_BRACKET_KEY = re.compile(r"^([^\[\]]+)\[([^\[\]]+)\]$")


@dataclass
class Pagination:
    """One-based page number and page size."""

    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class QueryPlan:
    """Everything the executor needs to run one list query."""

    filter_expression: Dict[str, Any] = field(default_factory=dict)
    sort_spec: Optional[List[Tuple[str, int]]] = None
    projection: Optional[List[str]] = None
    pagination: Pagination = field(default_factory=Pagination)
    excluded_keys: frozenset = EXCLUDED_KEYS


def parse_query_string(pairs: Iterable[Tuple[str, str]]) -> Dict[str, Any]:
    """
    Decode flat query-string pairs into a nested mapping.

    ``price[gte]=10`` becomes ``{"price": {"gte": "10"}}``. A plain key
    repeated later wins over an earlier one.

    Args:
        pairs: (key, value) pairs in request order

    Returns:
        Nested query mapping
    """
    query: Dict[str, Any] = {}
    for key, value in pairs:
        match = _BRACKET_KEY.match(key)
        if match:
            outer, inner = match.groups()
            nested = query.get(outer)
            if not isinstance(nested, dict):
                nested = {}
                query[outer] = nested
            nested[inner] = value
        else:
            query[key] = value
    return query


def _normalize_operators(value: Any) -> Any:
    if not isinstance(value, Mapping):
        return value
    # Unknown inner keys pass through unchanged
    return {
        (f"${key}" if key in COMPARISON_OPERATORS else key): inner
        for key, inner in value.items()
    }


def build_filter(query_params: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Build the store filter expression from query parameters.

    Control keys (page, sort, limit, fields) are removed and comparison
    operators one level deep are rewritten to their ``$`` form.

    Example:
        >>> build_filter({"price": {"gte": 10, "lte": 100}, "page": 2})
        {'price': {'$gte': 10, '$lte': 100}}
    """
    return {
        key: _normalize_operators(value)
        for key, value in query_params.items()
        if key not in EXCLUDED_KEYS
    }


def _split_list(value: Any) -> List[str]:
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value).split(",")
    return [item.strip() for item in items if item and item.strip()]


def parse_sort(value: Any) -> Optional[List[Tuple[str, int]]]:
    """``"price,-ratingsAverage"`` -> ``[("price", 1), ("ratingsAverage", -1)]``"""
    if value is None:
        return None
    spec = []
    for item in _split_list(value):
        if item.startswith("-"):
            if item[1:]:
                spec.append((item[1:], DESCENDING))
        else:
            spec.append((item, ASCENDING))
    return spec or None


def parse_fields(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    return _split_list(value) or None


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def parse_pagination(
    page: Any = None,
    limit: Any = None,
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> Pagination:
    """Page and limit as positive integers, defaults when absent or invalid."""
    size = _positive_int(limit, default_limit)
    if max_limit is not None:
        size = min(size, max_limit)
    return Pagination(page=_positive_int(page, DEFAULT_PAGE), limit=size)


def build_plan(
    query_params: Mapping[str, Any],
    default_limit: int = DEFAULT_LIMIT,
    max_limit: Optional[int] = None,
) -> QueryPlan:
    """
    Translate decoded query parameters into a QueryPlan.

    Args:
        query_params: Decoded query string, nested mappings for bracket keys
        default_limit: Page size when ``limit`` is absent or invalid
        max_limit: Upper bound on the page size, if any

    Returns:
        A fresh QueryPlan; never raises
    """
    return QueryPlan(
        filter_expression=build_filter(query_params),
        sort_spec=parse_sort(query_params.get("sort")),
        projection=parse_fields(query_params.get("fields")),
        pagination=parse_pagination(
            query_params.get("page"),
            query_params.get("limit"),
            default_limit=default_limit,
            max_limit=max_limit,
        ),
    )
