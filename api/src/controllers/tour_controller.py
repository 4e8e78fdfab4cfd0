"""
Tour controller.

One coroutine per verb. Each returns a ControllerResponse and never raises:
failures are classified first, then mapped to the verb's failure status.
"""

from typing import Any, Dict, Mapping, Optional

import structlog
from fastapi import status

from api.src.errors import ErrorKind, classify_error
from api.src.models.envelope import ControllerResponse, ResponseEnvelope
from api.src.repositories.tour_repo import TourRepository
from api.src.services.query_builder import DEFAULT_LIMIT, build_plan
from api.src.services.query_executor import execute

logger = structlog.get_logger(__name__)

# Verb -> error kind -> status code. Create failures are bad input; every
# other verb reports failures as 404.
FAILURE_STATUS: Dict[str, Dict[ErrorKind, int]] = {
    "list": {
        ErrorKind.VALIDATION: status.HTTP_404_NOT_FOUND,
        ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
        ErrorKind.STORAGE: status.HTTP_404_NOT_FOUND,
        ErrorKind.UNKNOWN: status.HTTP_404_NOT_FOUND,
    },
    "get": {
        ErrorKind.VALIDATION: status.HTTP_404_NOT_FOUND,
        ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
        ErrorKind.STORAGE: status.HTTP_404_NOT_FOUND,
        ErrorKind.UNKNOWN: status.HTTP_404_NOT_FOUND,
    },
    "create": {
        ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
        ErrorKind.NOT_FOUND: status.HTTP_400_BAD_REQUEST,
        ErrorKind.STORAGE: status.HTTP_400_BAD_REQUEST,
        ErrorKind.UNKNOWN: status.HTTP_400_BAD_REQUEST,
    },
    "update": {
        ErrorKind.VALIDATION: status.HTTP_404_NOT_FOUND,
        ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
        ErrorKind.STORAGE: status.HTTP_404_NOT_FOUND,
        ErrorKind.UNKNOWN: status.HTTP_404_NOT_FOUND,
    },
    "delete": {
        ErrorKind.VALIDATION: status.HTTP_404_NOT_FOUND,
        ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
        ErrorKind.STORAGE: status.HTTP_404_NOT_FOUND,
        ErrorKind.UNKNOWN: status.HTTP_404_NOT_FOUND,
    },
}


def failure_response(verb: str, error: Exception, **context: Any) -> ControllerResponse:
    """Classify ``error`` and build the fail envelope for ``verb``."""
    kind = classify_error(error)
    status_code = FAILURE_STATUS[verb][kind]

    log = logger.warning if kind in (ErrorKind.VALIDATION, ErrorKind.NOT_FOUND) else logger.error
    log(
        f"tour_{verb}_failed",
        error=str(error),
        error_kind=kind.value,
        status_code=status_code,
        **context
    )
    return ControllerResponse(status_code, ResponseEnvelope.fail(error))


class TourController:
    """CRUD entry points for tours."""

    def __init__(
        self,
        repository: TourRepository,
        default_limit: int = DEFAULT_LIMIT,
        max_limit: Optional[int] = None,
    ):
        """
        Args:
            repository: Tour store handle
            default_limit: Page size when a list request gives none
            max_limit: Largest page size a list request may ask for
        """
        self.repository = repository
        self.default_limit = default_limit
        self.max_limit = max_limit

    async def get_all_tours(self, query_params: Mapping[str, Any]) -> ControllerResponse:
        try:
            plan = build_plan(query_params, default_limit=self.default_limit, max_limit=self.max_limit)
            tours = await execute(self.repository, plan)
        except Exception as e:
            return failure_response("list", e, query=dict(query_params))

        return ControllerResponse(
            status.HTTP_200_OK,
            ResponseEnvelope.success({"tours": tours}, results=len(tours)),
        )

    async def get_tour(self, tour_id: str) -> ControllerResponse:
        try:
            tour = await self.repository.find_by_id(tour_id)
        except Exception as e:
            return failure_response("get", e, tour_id=tour_id)

        return ControllerResponse(status.HTTP_200_OK, ResponseEnvelope.success({"tour": tour}))

    async def create_tour(self, body: Mapping[str, Any]) -> ControllerResponse:
        try:
            tour = await self.repository.create(body)
        except Exception as e:
            return failure_response("create", e)

        return ControllerResponse(status.HTTP_201_CREATED, ResponseEnvelope.success({"tour": tour}))

    async def update_tour(self, tour_id: str, body: Mapping[str, Any]) -> ControllerResponse:
        try:
            tour = await self.repository.find_by_id_and_update(tour_id, body)
        except Exception as e:
            return failure_response("update", e, tour_id=tour_id)

        return ControllerResponse(status.HTTP_200_OK, ResponseEnvelope.success({"tour": tour}))

    async def delete_tour(self, tour_id: str) -> ControllerResponse:
        try:
            await self.repository.find_by_id_and_delete(tour_id)
        except Exception as e:
            return failure_response("delete", e, tour_id=tour_id)

        return ControllerResponse(status.HTTP_204_NO_CONTENT, ResponseEnvelope.success(None))
