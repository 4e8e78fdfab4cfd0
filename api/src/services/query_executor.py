"""Runs a QueryPlan against a queryable handle."""

from typing import Any, List, Protocol

import structlog

from api.src.services.query_builder import QueryPlan

logger = structlog.get_logger(__name__)


class Queryable(Protocol):
    """Anything exposing ``find(filter)`` that returns an awaitable query."""

    def find(self, filter_expression: dict) -> Any: ...


async def execute(handle: Queryable, plan: QueryPlan) -> List[Any]:
    """
    Execute a list query.

    The filter is passed to ``handle.find`` exactly as planned; sort,
    projection and pagination are chained onto the returned query when the
    plan carries them. Store failures propagate unchanged.

    Args:
        handle: Collection handle, e.g. TourRepository
        plan: Plan built by ``build_plan``

    Returns:
        Whatever the store returns for the query
    """
    query = handle.find(plan.filter_expression)

    if plan.sort_spec:
        query = query.sort(plan.sort_spec)
    if plan.projection:
        query = query.select(plan.projection)
    if plan.pagination is not None:
        query = query.skip(plan.pagination.skip).limit(plan.pagination.limit)

    logger.debug(
        "query_executing",
        filter=plan.filter_expression,
        sort=plan.sort_spec,
        fields=plan.projection,
        page=plan.pagination.page if plan.pagination else None,
    )

    return await query
