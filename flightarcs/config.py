"""Centralised application settings loaded from environment / .env file."""

from pathlib import Path
from typing import Optional

from pydantic import BaseModel
from pydantic_settings import BaseSettings

from flightarcs.domain.enums import Theme

PACKAGE_DIR = Path(__file__).resolve().parent


class DistanceCategorySetting(BaseModel):
    id: str
    label: str
    min_km: float
    max_km: Optional[float] = None
    width: float = 1.5
    opacity: float = 0.7
    color: str = "#3182bd"


class Settings(BaseSettings):
    # Capital data: HTTP endpoint if set, bundled JSON otherwise
    capitals_url: Optional[str] = None
    capitals_path: Path = PACKAGE_DIR / "data" / "capitals.json"
    http_timeout_seconds: float = 10.0

    # Initial selection
    default_origin: Optional[str] = None  # None -> first capital in the catalog
    default_theme: Theme = Theme.LIGHT

    # Map
    style_url_prefix: str = "mapbox://styles/mapbox/"
    arc_steps: int = 100  # points per great-circle arc
    fly_to_speed: float = 0.8
    style_reload_delay_seconds: float = 0.0  # headless widget only
    style_ready_timeout_seconds: float = 10.0  # applied by the HTTP layer

    # Distance buckets (must partition [0, inf))
    distance_categories: list[DistanceCategorySetting] = [
        DistanceCategorySetting(
            id="short", label="Short haul (< 1,500 km)",
            min_km=0.0, max_km=1_500.0, width=1.0, opacity=0.55, color="#3182bd",
        ),
        DistanceCategorySetting(
            id="medium", label="Medium haul (1,500 - 4,000 km)",
            min_km=1_500.0, max_km=4_000.0, width=1.5, opacity=0.65, color="#e6550d",
        ),
        DistanceCategorySetting(
            id="long", label="Long haul (>= 4,000 km)",
            min_km=4_000.0, max_km=None, width=2.0, opacity=0.75, color="#a50f15",
        ),
    ]

    # API
    rate_limit: str = "100/minute"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore"}


settings = Settings()
