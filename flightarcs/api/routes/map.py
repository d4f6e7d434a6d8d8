"""
Map data endpoints
==================

GET /api/v1/map/capitals   -- capital markers (GeoJSON)
GET /api/v1/map/routes     -- arcs from the selected origin (GeoJSON)
GET /api/v1/map/categories -- distance legend for the current theme
GET /api/v1/map/state      -- what the map widget currently holds
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from flightarcs.api.dependencies import get_controller
from flightarcs.api.middleware import limiter
from flightarcs.api.schemas import (
    CategoryResponse,
    ErrorResponse,
    FeatureCollection,
    MapStateResponse,
)
from flightarcs.config import settings
from flightarcs.infrastructure.map_widget import HeadlessMapWidget
from flightarcs.services.map_sync import MapSyncController


router = APIRouter(
    prefix="/map",
    tags=["map"],
    responses={503: {"model": ErrorResponse, "description": "Map is not ready"}},
)


@router.get("/capitals", response_model=FeatureCollection, summary="Capital markers")
@limiter.limit(settings.rate_limit)
async def get_capitals(
    request: Request,
    controller: MapSyncController = Depends(get_controller),
):
    return controller.route_model.capital_feature_collection()


@router.get(
    "/routes",
    response_model=FeatureCollection,
    summary="Great-circle arcs from the selected origin",
)
@limiter.limit(settings.rate_limit)
async def get_routes(
    request: Request,
    controller: MapSyncController = Depends(get_controller),
):
    return controller.route_model.arc_feature_collection(controller.state.theme)


@router.get(
    "/categories",
    response_model=list[CategoryResponse],
    summary="Distance categories with their stroke for the current theme",
)
@limiter.limit(settings.rate_limit)
async def get_categories(
    request: Request,
    controller: MapSyncController = Depends(get_controller),
):
    highlighted = controller.state.highlighted_category
    return [
        CategoryResponse(
            id=category.id,
            label=category.label,
            min_km=category.min_km,
            max_km=category.max_km,
            width=style.width,
            color=style.color,
            opacity=style.opacity,
            highlighted=highlighted is not None and highlighted.id == category.id,
        )
        for category, style in controller.classifier.legend(controller.state.theme)
    ]


@router.get("/state", response_model=MapStateResponse, summary="Map widget state")
@limiter.limit(settings.rate_limit)
async def get_map_state(
    request: Request,
    controller: MapSyncController = Depends(get_controller),
):
    widget = controller.widget
    if not isinstance(widget, HeadlessMapWidget):
        raise HTTPException(status_code=501, detail="Map widget state is not inspectable")
    return MapStateResponse(
        **widget.snapshot(),
        theme_change_pending=controller.theme_change_pending,
    )
