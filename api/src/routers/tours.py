"""
Tours router.

Provides REST API endpoints for:
- Listing tours with filtering, sorting, field selection and pagination
- Reading, creating, updating and deleting a single tour

Every endpoint delegates to TourController and renders its envelope.
"""

from typing import Any, Dict

from fastapi import APIRouter, Body, Depends, Response, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from api.src.controllers.tour_controller import TourController
from api.src.dependencies import get_query_params, get_tour_controller
from api.src.models.envelope import ControllerResponse

router = APIRouter(
    prefix="/tours",
    tags=["Tours"],
)


def render(result: ControllerResponse) -> Response:
    """Turn a controller result into an HTTP response."""
    if result.status_code == status.HTTP_204_NO_CONTENT:
        # 204 carries no body on the wire
        return Response(status_code=result.status_code)

    return JSONResponse(
        status_code=result.status_code,
        content=jsonable_encoder(result.envelope.to_dict()),
    )


@router.get(
    "",
    summary="List Tours",
    description="""
    List tours matching the query string.

    **Filtering:** any field, e.g. `difficulty=easy`; comparisons with
    `price[gte]=500`, `duration[lt]=7` (`gte`, `gt`, `lte`, `lt`).

    **Control parameters:**
    - sort: comma-separated fields, `-` prefix for descending
    - fields: comma-separated fields to include
    - page, limit: pagination
    """,
)
async def get_all_tours(
    query_params: Dict[str, Any] = Depends(get_query_params),
    controller: TourController = Depends(get_tour_controller),
) -> Response:
    return render(await controller.get_all_tours(query_params))


@router.post("", summary="Create Tour", status_code=status.HTTP_201_CREATED)
async def create_tour(
    body: Dict[str, Any] = Body(...),
    controller: TourController = Depends(get_tour_controller),
) -> Response:
    return render(await controller.create_tour(body))


@router.get("/{tour_id}", summary="Get Tour")
async def get_tour(
    tour_id: str,
    controller: TourController = Depends(get_tour_controller),
) -> Response:
    return render(await controller.get_tour(tour_id))


@router.patch("/{tour_id}", summary="Update Tour")
async def update_tour(
    tour_id: str,
    body: Dict[str, Any] = Body(...),
    controller: TourController = Depends(get_tour_controller),
) -> Response:
    return render(await controller.update_tour(tour_id, body))


@router.delete("/{tour_id}", summary="Delete Tour", status_code=status.HTTP_204_NO_CONTENT)
async def delete_tour(
    tour_id: str,
    controller: TourController = Depends(get_tour_controller),
) -> Response:
    return render(await controller.delete_tour(tour_id))
