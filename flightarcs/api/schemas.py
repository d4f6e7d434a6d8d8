"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field

from flightarcs.domain.enums import Theme


# ── Requests ──────────────────────────────────────────────────────────


class OriginRequest(BaseModel):
    name: str = Field(..., min_length=1, description="Name of the capital to fly from.")


class ThemeRequest(BaseModel):
    theme: Theme


class HighlightRequest(BaseModel):
    category: Optional[str] = Field(
        None, description="Distance category id to emphasise, or null to clear."
    )


# ── Responses ─────────────────────────────────────────────────────────


class SelectionResponse(BaseModel):
    changed: bool
    pending: bool = False
    origin: str
    theme: Theme
    highlighted_category: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    label: str
    min_km: float
    max_km: Optional[float] = None
    width: float
    color: str
    opacity: float
    highlighted: bool = False


class MapStateResponse(BaseModel):
    style: str
    loaded: bool
    center: Optional[list[float]] = None
    sources: list[str]
    layers: list[str]
    paint: dict[str, Any]
    theme_change_pending: bool


class FeatureCollection(BaseModel):
    type: str = "FeatureCollection"
    features: list[dict[str, Any]]


class HealthResponse(BaseModel):
    status: str = "ok"
    capitals: int = 0


class ErrorResponse(BaseModel):
    detail: str
