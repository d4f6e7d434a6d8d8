"""
Admin / observability endpoints
===============================

GET /api/v1/admin/health -- simple health check
"""

from fastapi import APIRouter, Request

from flightarcs.api.schemas import HealthResponse

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(request: Request):
    controller = getattr(request.app.state, "map_controller", None)
    if controller is None:
        return HealthResponse(status="starting")
    return HealthResponse(capitals=len(controller.route_model.catalog))
