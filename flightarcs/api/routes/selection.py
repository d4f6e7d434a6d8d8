"""
Selection endpoints
===================

PUT /api/v1/selection/origin    -- radiate arcs from another capital
PUT /api/v1/selection/theme     -- swap the map style
PUT /api/v1/selection/highlight -- emphasise one distance category

Unknown capitals and categories are not errors: the event is ignored and
``changed`` is false, the same as a click on a marker that went stale.
"""

import asyncio
import logging

from fastapi import APIRouter, Depends, Request

from flightarcs.api.dependencies import get_controller, get_settings
from flightarcs.api.middleware import limiter
from flightarcs.api.schemas import (
    ErrorResponse,
    HighlightRequest,
    OriginRequest,
    SelectionResponse,
    ThemeRequest,
)
from flightarcs.config import Settings, settings
from flightarcs.services.map_sync import MapSyncController

logger = logging.getLogger(__name__)


router = APIRouter(
    prefix="/selection",
    tags=["selection"],
    responses={503: {"model": ErrorResponse, "description": "Map is not ready"}},
)


def _selection(controller: MapSyncController, changed: bool, pending: bool = False) -> SelectionResponse:
    highlighted = controller.state.highlighted_category
    return SelectionResponse(
        changed=changed,
        pending=pending,
        origin=controller.route_model.selected_origin.name,
        theme=controller.state.theme,
        highlighted_category=highlighted.id if highlighted else None,
    )


def _log_background_failure(task: asyncio.Task) -> None:
    if task.cancelled():
        logger.warning("Background theme change was cancelled")
    elif task.exception() is not None:
        logger.error("Background theme change failed", exc_info=task.exception())


@router.put("/origin", response_model=SelectionResponse, summary="Select the origin capital")
@limiter.limit(settings.rate_limit)
async def select_origin(
    request: Request,
    body: OriginRequest,
    controller: MapSyncController = Depends(get_controller),
):
    changed = controller.select_origin(body.name)
    return _selection(controller, changed)


@router.put(
    "/theme",
    response_model=SelectionResponse,
    summary="Select the map theme",
    description=(
        "Waits for the map to finish restyling.  If it has not signalled "
        "readiness within the configured timeout the change keeps running "
        "in the background and the response reports ``pending``."
    ),
)
@limiter.limit(settings.rate_limit)
async def select_theme(
    request: Request,
    body: ThemeRequest,
    controller: MapSyncController = Depends(get_controller),
    app_settings: Settings = Depends(get_settings),
):
    timeout = app_settings.style_ready_timeout_seconds
    task = asyncio.ensure_future(controller.change_theme(body.theme))
    try:
        changed = await asyncio.wait_for(asyncio.shield(task), timeout=timeout)
    except asyncio.TimeoutError:
        logger.warning("Theme %s not ready after %.1fs; still waiting", body.theme.value, timeout)
        task.add_done_callback(_log_background_failure)
        return _selection(controller, changed=True, pending=True)
    return _selection(controller, changed)


@router.put("/highlight", response_model=SelectionResponse, summary="Highlight a distance category")
@limiter.limit(settings.rate_limit)
async def select_highlight(
    request: Request,
    body: HighlightRequest,
    controller: MapSyncController = Depends(get_controller),
):
    changed = controller.select_highlight(body.category)
    return _selection(controller, changed)
