"""
Map Synchronisation Controller
==============================

Keeps the map widget consistent with the route model and the interaction
state.  Three independent axes, one controller so redraw ordering stays
correct:

* **Origin**    -- ``IDLE -> ORIGIN_CHANGING -> IDLE``.  Geometry-only
  update of the ``route``/``origin``/``capitals`` sources.
* **Theme**     -- ``IDLE -> THEME_CHANGING -> IDLE``.  The widget drops
  every source, layer and paint override when its style is swapped, so
  the route data is snapshotted first, the swap is awaited, per-feature
  styling is recomputed from the snapshot and everything is reattached.
* **Highlight** -- immediate paint update of ``line-opacity``.

Suspension
----------
The style-ready wait is the only suspension point.  Each theme request
gets a one-shot future plus a sequence number; a newer request resolves
the older future as superseded, and any resolution whose sequence number
is no longer the latest is dropped.  Origin and highlight changes that
arrive during a restyle update state only; the completing restyle
reattaches fresh geometry and the current highlight.

No timeouts or retries here: callers wrap ``change_theme`` if they need
them.  A cancelled or released request rolls the theme back to the last
applied one and reattaches the route data, so a retry starts clean.
"""

from __future__ import annotations

import asyncio
import html
import logging
from typing import Any, Optional

from flightarcs.domain import geojson
from flightarcs.domain.classifier import DistanceClassifier
from flightarcs.domain.entities import AxisState, InteractionState
from flightarcs.domain.enums import Axis, SyncPhase, Theme
from flightarcs.domain.errors import NotFound
from flightarcs.domain.routes import RouteModel
from flightarcs.domain.styling import (
    CAPITALS_LAYER,
    ORIGIN_LAYER,
    ROUTE_LAYER,
    capitals_layer,
    origin_layer,
    route_layer,
)
from flightarcs.infrastructure.map_widget import Event, MapWidget, Unsubscribe

logger = logging.getLogger(__name__)


class MapSyncController:
    def __init__(
        self,
        widget: MapWidget,
        route_model: RouteModel,
        classifier: Optional[DistanceClassifier] = None,
        state: Optional[InteractionState] = None,
        *,
        style_url_prefix: str = "mapbox://styles/mapbox/",
        fly_to_speed: float = 0.8,
    ):
        self.widget = widget
        self.route_model = route_model
        self.classifier = classifier or route_model.classifier
        self.state = state or InteractionState()
        self.style_url_prefix = style_url_prefix
        self.fly_to_speed = fly_to_speed

        self.origin_axis = AxisState(Axis.ORIGIN)
        self.theme_axis = AxisState(Axis.THEME)

        self._started = False
        self._subscriptions: list[Unsubscribe] = []
        self._theme_seq = 0
        self._style_waiter: Optional[asyncio.Future] = None
        self._pending_snapshot: Optional[dict[str, Any]] = None
        self._geometry_dirty = False
        # theme and style the attached data was last rendered for
        self._applied_theme = self.state.theme
        self._applied_style = self.style_url(self.state.theme)

    def style_url(self, theme: Theme) -> str:
        return f"{self.style_url_prefix}{theme.value}"

    @property
    def started(self) -> bool:
        return self._started

    @property
    def theme_change_pending(self) -> bool:
        return self.theme_axis.busy

    # ── Lifecycle ─────────────────────────────────────────────────────

    async def start(self) -> None:
        """Wait for the widget to load, render the initial map, subscribe to events."""
        if self._started:
            logger.warning("Map controller already started")
            return

        if not self.widget.loaded():
            loaded = asyncio.get_running_loop().create_future()

            def on_load(_event: Event) -> None:
                if not loaded.done():
                    loaded.set_result(None)

            self.widget.once("load", on_load)
            await loaded

        self._started = True
        self._attach(self.route_model.arc_feature_collection(self.state.theme))
        self._apply_highlight()
        self.widget.fly_to(self.route_model.selected_origin.coordinates, self.fly_to_speed)

        self._subscriptions = [
            self.widget.on("click", self._on_capital_click, CAPITALS_LAYER),
            self.widget.on("mouseenter", self._on_capital_enter, CAPITALS_LAYER),
            self.widget.on("mouseleave", self._on_leave, CAPITALS_LAYER),
            self.widget.on("mouseenter", self._on_route_enter, ROUTE_LAYER),
            self.widget.on("mouseleave", self._on_leave, ROUTE_LAYER),
        ]
        logger.info(
            "Map controller started (origin=%s, theme=%s, %d arcs)",
            self.route_model.selected_origin.name,
            self.state.theme.value,
            len(self.route_model.arc_features),
        )

    def close(self) -> None:
        """Unsubscribe from the widget and release a pending style wait."""
        for unsubscribe in self._subscriptions:
            unsubscribe()
        self._subscriptions.clear()
        if self._style_waiter is not None and not self._style_waiter.done():
            self._style_waiter.set_result(False)
        self._started = False

    # ── Origin axis ───────────────────────────────────────────────────

    def select_origin(self, name: str) -> bool:
        """Radiate arcs from *name*.  Unknown or unchanged origins are no-ops."""
        try:
            changed = self.route_model.set_origin(name)
        except NotFound:
            logger.debug("Ignoring selection of unknown capital %r", name)
            return False
        if not changed:
            return False

        self.origin_axis.transition_to(SyncPhase.ORIGIN_CHANGING)
        try:
            if self._started:
                if self.theme_axis.busy:
                    self._geometry_dirty = True
                    logger.debug("Origin %s selected during restyle; geometry deferred", name)
                else:
                    self._push_geometry()
                self.widget.fly_to(self.route_model.selected_origin.coordinates, self.fly_to_speed)
        finally:
            self.origin_axis.transition_to(SyncPhase.IDLE)
        return True

    def _push_geometry(self) -> None:
        self.widget.set_source_data(
            ROUTE_LAYER, self.route_model.arc_feature_collection(self.state.theme)
        )
        self.widget.set_source_data(ORIGIN_LAYER, self.route_model.origin_feature_collection())
        self.widget.set_source_data(CAPITALS_LAYER, self.route_model.capital_feature_collection())

    # ── Theme axis ────────────────────────────────────────────────────

    async def change_theme(self, theme: Theme) -> bool:
        """Swap the map style and restore data and highlight on top of it.

        Returns False for an unchanged theme, or when this request was
        superseded by a newer one before its style became ready.
        """
        theme = Theme(theme)
        style = self.style_url(theme)
        if theme == self.state.theme and (self.theme_axis.busy or style == self._applied_style):
            return False
        self.state.set_theme(theme)

        self._theme_seq += 1
        seq = self._theme_seq
        snapshot = self._snapshot_routes()
        self._pending_snapshot = snapshot
        self.theme_axis.transition_to(SyncPhase.THEME_CHANGING)

        previous = self._style_waiter
        if previous is not None and not previous.done():
            previous.set_result(False)
        waiter = asyncio.get_running_loop().create_future()
        self._style_waiter = waiter

        def on_style_data(event: Event) -> None:
            if waiter.done() or event.get("style", style) != style:
                return
            waiter.set_result(True)

        unsubscribe = self.widget.on("styledata", on_style_data)
        try:
            self.widget.set_style(style)
            ready = await waiter
        except asyncio.CancelledError:
            if seq == self._theme_seq:
                logger.warning("Restyle to %s cancelled; keeping %s", theme.value, self._applied_theme.value)
                self._abandon_theme_change(snapshot, style)
            raise
        finally:
            unsubscribe()

        if seq != self._theme_seq:
            logger.debug(
                "Dropping superseded restyle to %s (request %d, latest %d)",
                theme.value, seq, self._theme_seq,
            )
            return False
        if not ready:
            # released by close()
            self._abandon_theme_change(snapshot, style)
            return False

        self._render(snapshot, theme)
        self._applied_theme = theme
        self._applied_style = style
        self._finish_theme_change()
        logger.info("Theme %s applied", theme.value)
        return True

    def _abandon_theme_change(self, snapshot: dict[str, Any], style: str) -> None:
        """Roll the theme back and put the route data back on the map.

        The widget has already dropped its sources for *style*, so the data
        is reattached on top of it with the previous theme's colours.
        """
        self.state.set_theme(self._applied_theme)
        self._applied_style = style
        if self._started:
            self._render(snapshot, self._applied_theme)
        self._finish_theme_change()

    def _render(self, snapshot: dict[str, Any], theme: Theme) -> None:
        if self._geometry_dirty:
            routes = self.route_model.arc_feature_collection(theme)
        else:
            routes = self._restyle(snapshot, theme)
        self._attach(routes)
        self._apply_highlight()

    def _snapshot_routes(self) -> dict[str, Any]:
        data = self.widget.get_source_data(ROUTE_LAYER)
        if data is None or "features" not in data:
            data = self._pending_snapshot
        if data is None:
            logger.warning("Route source not attached; rebuilding from the route model")
            data = self.route_model.arc_feature_collection(self.state.theme)
        return data

    def _restyle(self, routes: dict[str, Any], theme: Theme) -> dict[str, Any]:
        features = []
        for feature in routes["features"]:
            props = feature.get("properties") or {}
            category = self.classifier.classify(props["distance"])
            style = self.classifier.style_for(category, theme)
            features.append(
                {
                    **feature,
                    "properties": {
                        **props,
                        "category": category.id,
                        "label": category.label,
                        **style.as_properties(),
                    },
                }
            )
        return geojson.feature_collection(features)

    def _finish_theme_change(self) -> None:
        self.theme_axis.transition_to(SyncPhase.IDLE)
        self._style_waiter = None
        self._pending_snapshot = None
        self._geometry_dirty = False

    # ── Highlight axis ────────────────────────────────────────────────

    def select_highlight(self, category_id: Optional[str]) -> bool:
        """Emphasise one distance category, or none when *category_id* is None."""
        if category_id is None:
            category = None
        else:
            try:
                category = self.classifier.get(category_id)
            except NotFound:
                logger.debug("Ignoring highlight of unknown category %r", category_id)
                return False

        if not self.state.set_highlight(category):
            return False
        if not self._started:
            return True
        if self.theme_axis.busy:
            logger.debug("Highlight %s deferred until restyle completes", category_id)
            return True
        self._apply_highlight()
        return True

    def _apply_highlight(self) -> None:
        paint = self.classifier.highlight_expression_for(self.state.highlighted_category)
        self.widget.set_paint_property(paint.layer, paint.name, paint.value)

    # ── Attach ────────────────────────────────────────────────────────

    def _attach(self, routes: dict[str, Any]) -> None:
        theme = self.state.theme
        self.widget.set_source_data(CAPITALS_LAYER, self.route_model.capital_feature_collection())
        self.widget.set_layer(capitals_layer(theme))
        self.widget.set_source_data(ROUTE_LAYER, routes)
        self.widget.set_layer(route_layer())
        self.widget.set_source_data(ORIGIN_LAYER, self.route_model.origin_feature_collection())
        self.widget.set_layer(origin_layer(theme))

    # ── Pointer events ────────────────────────────────────────────────

    def _on_capital_click(self, event: Event) -> None:
        features = event.get("features") or []
        if not features:
            return
        self.select_origin(features[0]["properties"]["name"])

    def _on_capital_enter(self, event: Event) -> None:
        features = event.get("features") or []
        if not features:
            self.widget.hide_popup()
            return
        feature = features[0]
        props = feature["properties"]
        message = (
            f"<h3>{html.escape(props['name'])}</h3> "
            f"<p>{html.escape(props.get('description') or '')}</p>"
        )
        self.widget.show_popup(message, tuple(feature["geometry"]["coordinates"]))

    def _on_route_enter(self, event: Event) -> None:
        features = event.get("features") or []
        position = event.get("lngLat")
        if not features or position is None:
            return
        props = features[0]["properties"]
        message = (
            f"<h3>{html.escape(props['origin'])} &rarr; {html.escape(props['destination'])}</h3> "
            f"<p>{props['distance']:,.0f} km ({html.escape(props.get('label') or props['category'])})</p>"
        )
        self.widget.show_popup(message, tuple(position))

    def _on_leave(self, _event: Event) -> None:
        self.widget.hide_popup()
