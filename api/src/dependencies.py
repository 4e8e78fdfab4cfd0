"""
FastAPI dependency injection for the tours API.

Provides injectable dependencies for:
- The tour controller (built during application startup)
- Decoded query-string parameters

The MongoDB client, repository and controller live on ``app.state``; they
are created by the application lifespan and reached through the request,
so tests can install their own controller without a database.
"""

from typing import Any, Dict

import structlog
from fastapi import Request

from api.src.controllers.tour_controller import TourController
from api.src.services.query_builder import parse_query_string

logger = structlog.get_logger(__name__)


def get_tour_controller(request: Request) -> TourController:
    """
    Get the tour controller for this application.

    Raises:
        RuntimeError: If the application has not been started
    """
    controller = getattr(request.app.state, "tour_controller", None)
    if controller is None:
        logger.error("tour_controller_not_initialized")
        raise RuntimeError(
            "Tour controller not initialized. Start the application lifespan first."
        )
    return controller


def get_query_params(request: Request) -> Dict[str, Any]:
    """Query string decoded with bracket keys nested (``price[gte]=10``)."""
    return parse_query_string(request.query_params.multi_items())
