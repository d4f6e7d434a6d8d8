"""
Shared test fixtures.

A three-capital catalog (Paris, Tokyo, Lima) and a headless map widget
whose ``styledata`` event is emitted by hand, so tests control exactly
when a restyle completes.
"""

import pytest
import pytest_asyncio

from flightarcs.domain.catalog import CapitalCatalog
from flightarcs.domain.classifier import DistanceClassifier
from flightarcs.domain.entities import InteractionState
from flightarcs.domain.enums import Theme
from flightarcs.domain.routes import RouteModel
from flightarcs.infrastructure.map_widget import HeadlessMapWidget
from flightarcs.services.map_sync import MapSyncController

STYLE_PREFIX = "mapbox://styles/mapbox/"

PARIS = (2.35, 48.85)
TOKYO = (139.69, 35.68)
LIMA = (-77.04, -12.05)


def style_url(theme: Theme) -> str:
    return f"{STYLE_PREFIX}{theme.value}"


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def capital_records():
    return [
        {"name": "Paris", "coordinates": list(PARIS), "description": "Capital of France"},
        {"name": "Tokyo", "coordinates": list(TOKYO), "description": "Capital of Japan"},
        {"name": "Lima", "coordinates": list(LIMA), "description": "Capital of Peru"},
    ]


@pytest.fixture
def catalog(capital_records) -> CapitalCatalog:
    return CapitalCatalog.from_records(capital_records)


@pytest.fixture
def classifier() -> DistanceClassifier:
    return DistanceClassifier()


@pytest.fixture
def route_model(catalog, classifier) -> RouteModel:
    return RouteModel(catalog, classifier, origin="Paris", steps=32)


@pytest.fixture
def widget() -> HeadlessMapWidget:
    return HeadlessMapWidget(style_url(Theme.LIGHT), auto_style_ready=False)


@pytest_asyncio.fixture
async def controller(widget, route_model, classifier):
    """Started controller on the manual-restyle widget."""
    ctrl = MapSyncController(
        widget,
        route_model,
        classifier,
        InteractionState(theme=Theme.LIGHT),
        style_url_prefix=STYLE_PREFIX,
    )
    await ctrl.start()
    yield ctrl
    ctrl.close()
