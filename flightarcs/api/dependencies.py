"""FastAPI dependency injection helpers."""

from fastapi import HTTPException, Request

from flightarcs.config import Settings, settings as default_settings
from flightarcs.services.map_sync import MapSyncController


def get_controller(request: Request) -> MapSyncController:
    """Return the session's map controller, created by the app lifespan."""
    controller = getattr(request.app.state, "map_controller", None)
    if controller is None:
        raise HTTPException(status_code=503, detail="Map is not ready")
    return controller


def get_settings(request: Request) -> Settings:
    """Settings the app was created with."""
    return getattr(request.app.state, "settings", default_settings)
