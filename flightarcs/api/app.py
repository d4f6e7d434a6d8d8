"""
FastAPI application factory.

* Loads the capital catalog and starts the map controller via lifespan
  events; a data or validation failure aborts startup.
* Registers routes for map data, selection and admin.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from flightarcs.api.middleware import limiter
from flightarcs.api.routes import admin, map as map_routes, selection
from flightarcs.config import Settings, settings as default_settings
from flightarcs.domain.catalog import CapitalCatalog
from flightarcs.domain.classifier import DistanceClassifier
from flightarcs.domain.entities import InteractionState
from flightarcs.domain.errors import FlightArcsError
from flightarcs.domain.routes import RouteModel
from flightarcs.infrastructure.map_widget import HeadlessMapWidget
from flightarcs.infrastructure.sources import build_source
from flightarcs.services.map_sync import MapSyncController

logger = logging.getLogger(__name__)


async def build_controller(settings: Settings) -> MapSyncController:
    """Load capitals and wire the route model, state and widget together."""
    classifier = DistanceClassifier.from_settings(settings.distance_categories)
    source = build_source(
        settings.capitals_url, settings.capitals_path, settings.http_timeout_seconds
    )
    catalog = await CapitalCatalog.load(source)
    route_model = RouteModel(
        catalog, classifier, origin=settings.default_origin, steps=settings.arc_steps
    )
    controller = MapSyncController(
        HeadlessMapWidget(
            f"{settings.style_url_prefix}{settings.default_theme.value}",
            style_reload_delay=settings.style_reload_delay_seconds,
        ),
        route_model,
        classifier,
        InteractionState(theme=settings.default_theme),
        style_url_prefix=settings.style_url_prefix,
        fly_to_speed=settings.fly_to_speed,
    )
    await controller.start()
    return controller


def create_app(settings: Settings = default_settings) -> FastAPI:
    logging.basicConfig(level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Load data and start the controller on startup; close on shutdown."""
        try:
            app.state.map_controller = await build_controller(settings)
        except FlightArcsError:
            logger.exception("Startup aborted: capital data could not be loaded")
            raise
        yield
        app.state.map_controller.close()

    app = FastAPI(
        title="Capital Flight Arcs API",
        description=(
            "Great-circle flight arcs between world capitals, bucketed by "
            "distance, with origin, theme and highlight selection kept in "
            "sync with the map."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Settings and rate limiter
    app.state.settings = settings
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(map_routes.router, prefix="/api/v1")
    app.include_router(selection.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
