"""
Controller tests.

Covers the three interaction axes against the headless widget, including
restyle ordering:

1. Highlight survives a theme change.
2. A superseded theme change never reattaches its data.
3. Origin / highlight changes during a restyle are applied once it lands.
"""

from __future__ import annotations

import asyncio

import pytest

from flightarcs.domain.entities import InteractionState
from flightarcs.domain.enums import Theme
from flightarcs.domain.styling import DEFAULT_ROUTE_OPACITY, THEME_PALETTES
from flightarcs.infrastructure.map_widget import HeadlessMapWidget
from flightarcs.services.map_sync import MapSyncController
from tests.conftest import LIMA, PARIS, STYLE_PREFIX, TOKYO, style_url


def route_colors(widget: HeadlessMapWidget) -> set[str]:
    return {f["properties"]["color"] for f in widget.sources["route"]["features"]}


def route_destinations(widget: HeadlessMapWidget) -> set[str]:
    return {f["properties"]["destination"] for f in widget.sources["route"]["features"]}


async def begin_theme_change(controller: MapSyncController, theme: Theme) -> asyncio.Task:
    """Start a theme change and let it run up to the style-ready wait."""
    task = asyncio.create_task(controller.change_theme(theme))
    await asyncio.sleep(0)
    return task


class TestStart:
    @pytest.mark.asyncio
    async def test_initial_render(self, controller, widget):
        assert set(widget.sources) == {"capitals", "route", "origin"}
        assert set(widget.layers) == {"capitals", "route", "origin"}
        assert route_destinations(widget) == {"Tokyo", "Lima"}
        assert widget.center == PARIS
        assert widget.paint_value("route", "line-opacity") == DEFAULT_ROUTE_OPACITY.value
        assert widget.listener_count("click", "capitals") == 1

    @pytest.mark.asyncio
    async def test_start_waits_for_widget_load(self, route_model):
        widget = HeadlessMapWidget(style_url(Theme.LIGHT), loaded=False)
        ctrl = MapSyncController(widget, route_model, style_url_prefix=STYLE_PREFIX)
        task = asyncio.create_task(ctrl.start())
        await asyncio.sleep(0)
        assert not ctrl.started
        assert widget.sources == {}

        widget.mark_loaded()
        await task
        assert ctrl.started
        assert "route" in widget.sources
        ctrl.close()

    @pytest.mark.asyncio
    async def test_second_start_is_ignored(self, controller, widget):
        await controller.start()
        assert widget.listener_count("click", "capitals") == 1

    @pytest.mark.asyncio
    async def test_close_unsubscribes(self, controller, widget):
        controller.close()
        assert widget.listener_count("click", "capitals") == 0
        assert widget.listener_count("mouseenter", "route") == 0


class TestOriginAxis:
    @pytest.mark.asyncio
    async def test_select_origin_pushes_geometry(self, controller, widget):
        assert controller.select_origin("Tokyo") is True
        assert route_destinations(widget) == {"Paris", "Lima"}
        assert widget.sources["origin"]["features"][0]["properties"]["name"] == "Tokyo"
        assert widget.center == TOKYO

    @pytest.mark.asyncio
    async def test_same_origin_is_noop(self, controller, widget):
        before = widget.sources["route"]
        assert controller.select_origin("Paris") is False
        assert widget.sources["route"] is before

    @pytest.mark.asyncio
    async def test_unknown_origin_is_swallowed(self, controller):
        assert controller.select_origin("Atlantis") is False
        assert controller.route_model.selected_origin.name == "Paris"

    @pytest.mark.asyncio
    async def test_origin_change_keeps_highlight(self, controller, widget):
        controller.select_highlight("long")
        highlighted = widget.paint_value("route", "line-opacity")
        controller.select_origin("Lima")
        assert widget.paint_value("route", "line-opacity") == highlighted

    @pytest.mark.asyncio
    async def test_marker_click_selects_origin(self, controller, widget):
        widget.emit("click", {"features": [{"properties": {"name": "Lima"}}]}, layer="capitals")
        assert controller.route_model.selected_origin.name == "Lima"
        assert widget.center == LIMA

    @pytest.mark.asyncio
    async def test_click_without_features_is_ignored(self, controller, widget):
        widget.emit("click", {"features": []}, layer="capitals")
        assert controller.route_model.selected_origin.name == "Paris"


class TestHighlightAxis:
    @pytest.mark.asyncio
    async def test_highlight_category(self, controller, widget):
        assert controller.select_highlight("long") is True
        value = widget.paint_value("route", "line-opacity")
        assert value[0] == "case"
        assert value[1] == ["==", ["get", "category"], "long"]
        assert controller.select_highlight("long") is False

    @pytest.mark.asyncio
    async def test_clear_highlight(self, controller, widget):
        controller.select_highlight("short")
        assert controller.select_highlight(None) is True
        assert widget.paint_value("route", "line-opacity") == DEFAULT_ROUTE_OPACITY.value

    @pytest.mark.asyncio
    async def test_unknown_category_is_swallowed(self, controller):
        assert controller.select_highlight("ultra") is False
        assert controller.state.highlighted_category is None

    @pytest.mark.asyncio
    async def test_highlight_does_not_touch_geometry(self, controller, widget):
        before = widget.sources["route"]
        controller.select_highlight("medium")
        assert widget.sources["route"] is before


class TestThemeAxis:
    @pytest.mark.asyncio
    async def test_theme_change_restyles_and_restores_highlight(self, controller, widget):
        controller.select_highlight("long")
        task = await begin_theme_change(controller, Theme.DARK)

        assert controller.theme_change_pending
        assert widget.style == style_url(Theme.DARK)
        assert widget.sources == {}

        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        assert await task is True

        assert not controller.theme_change_pending
        assert route_colors(widget) == {THEME_PALETTES[Theme.DARK]["long"]}
        assert set(widget.layers) == {"capitals", "route", "origin"}
        assert widget.paint_value("route", "line-opacity")[1] == ["==", ["get", "category"], "long"]

    @pytest.mark.asyncio
    async def test_same_theme_is_noop(self, controller, widget):
        assert await controller.change_theme(Theme.LIGHT) is False
        assert "route" in widget.sources

    @pytest.mark.asyncio
    async def test_unrelated_styledata_is_ignored(self, controller, widget):
        task = await begin_theme_change(controller, Theme.DARK)
        widget.emit("styledata", {"style": style_url(Theme.OUTDOORS)})
        await asyncio.sleep(0)
        assert not task.done()
        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        assert await task is True

    @pytest.mark.asyncio
    async def test_superseded_change_is_dropped(self, controller, widget):
        first = await begin_theme_change(controller, Theme.DARK)
        second = await begin_theme_change(controller, Theme.SATELLITE)

        # stale resolution for the first request arrives late
        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        await asyncio.sleep(0)
        assert widget.sources == {}

        widget.emit("styledata", {"style": style_url(Theme.SATELLITE)})
        assert await first is False
        assert await second is True

        assert widget.style == style_url(Theme.SATELLITE)
        assert controller.state.theme == Theme.SATELLITE
        assert route_colors(widget) == {THEME_PALETTES[Theme.SATELLITE]["long"]}
        assert not controller.theme_change_pending

    @pytest.mark.asyncio
    async def test_stale_resolution_after_latest(self, controller, widget):
        first = await begin_theme_change(controller, Theme.DARK)
        second = await begin_theme_change(controller, Theme.SATELLITE)

        widget.emit("styledata", {"style": style_url(Theme.SATELLITE)})
        assert await second is True
        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        assert await first is False

        assert route_colors(widget) == {THEME_PALETTES[Theme.SATELLITE]["long"]}

    @pytest.mark.asyncio
    async def test_origin_change_during_restyle_is_deferred(self, controller, widget):
        task = await begin_theme_change(controller, Theme.DARK)
        assert controller.select_origin("Tokyo") is True
        assert "route" not in widget.sources

        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        assert await task is True
        assert route_destinations(widget) == {"Paris", "Lima"}
        assert widget.sources["origin"]["features"][0]["properties"]["name"] == "Tokyo"
        assert widget.center == TOKYO

    @pytest.mark.asyncio
    async def test_highlight_during_restyle_is_deferred(self, controller, widget):
        task = await begin_theme_change(controller, Theme.DARK)
        assert controller.select_highlight("medium") is True
        assert widget.paint == {}

        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        assert await task is True
        assert widget.paint_value("route", "line-opacity")[1] == ["==", ["get", "category"], "medium"]

    @pytest.mark.asyncio
    async def test_cancelled_change_returns_axis_to_idle(self, controller, widget):
        task = await begin_theme_change(controller, Theme.DARK)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not controller.theme_change_pending
        assert widget.listener_count("styledata") == 0

    @pytest.mark.asyncio
    async def test_timed_out_change_rolls_back_and_recovers(self, controller, widget):
        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(controller.change_theme(Theme.DARK), 0.01)

        assert controller.state.theme == Theme.LIGHT
        assert set(widget.layers) == {"capitals", "route", "origin"}
        assert route_colors(widget) == {THEME_PALETTES[Theme.LIGHT]["long"]}
        assert route_destinations(widget) == {"Tokyo", "Lima"}

        assert controller.select_highlight("long") is True
        assert widget.paint_value("route", "line-opacity")[1] == ["==", ["get", "category"], "long"]

        task = await begin_theme_change(controller, Theme.DARK)
        assert controller.theme_change_pending
        widget.emit("styledata", {"style": style_url(Theme.DARK)})
        assert await task is True
        assert controller.state.theme == Theme.DARK
        assert route_colors(widget) == {THEME_PALETTES[Theme.DARK]["long"]}

    @pytest.mark.asyncio
    async def test_previous_theme_can_be_restored_after_cancel(self, controller, widget):
        task = await begin_theme_change(controller, Theme.DARK)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert widget.style == style_url(Theme.DARK)

        task = await begin_theme_change(controller, Theme.LIGHT)
        assert widget.style == style_url(Theme.LIGHT)
        widget.emit("styledata", {"style": style_url(Theme.LIGHT)})
        assert await task is True
        assert await controller.change_theme(Theme.LIGHT) is False

    @pytest.mark.asyncio
    async def test_origin_change_survives_cancelled_restyle(self, controller, widget):
        task = await begin_theme_change(controller, Theme.DARK)
        controller.select_origin("Tokyo")
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert route_destinations(widget) == {"Paris", "Lima"}

    @pytest.mark.asyncio
    async def test_close_releases_pending_change(self, controller):
        task = await begin_theme_change(controller, Theme.DARK)
        controller.close()
        assert await task is False
        assert not controller.theme_change_pending
        assert controller.state.theme == Theme.LIGHT

    @pytest.mark.asyncio
    async def test_auto_style_ready_widget(self, route_model):
        widget = HeadlessMapWidget(style_url(Theme.LIGHT))
        ctrl = MapSyncController(
            widget, route_model, state=InteractionState(), style_url_prefix=STYLE_PREFIX
        )
        await ctrl.start()
        assert await ctrl.change_theme(Theme.OUTDOORS) is True
        assert route_colors(widget) == {THEME_PALETTES[Theme.OUTDOORS]["long"]}
        ctrl.close()


class TestPopups:
    @pytest.mark.asyncio
    async def test_capital_hover_shows_description(self, controller, widget):
        feature = {
            "geometry": {"type": "Point", "coordinates": list(TOKYO)},
            "properties": {"name": "Tokyo", "description": "Capital of Japan"},
        }
        widget.emit("mouseenter", {"features": [feature]}, layer="capitals")
        html, position = widget.popup
        assert "<h3>Tokyo</h3>" in html
        assert "Capital of Japan" in html
        assert position == TOKYO

        widget.emit("mouseleave", {}, layer="capitals")
        assert widget.popup is None

    @pytest.mark.asyncio
    async def test_route_hover_shows_distance(self, controller, widget):
        feature = widget.sources["route"]["features"][0]
        widget.emit("mouseenter", {"features": [feature], "lngLat": [60.0, 55.0]}, layer="route")
        html, position = widget.popup
        assert "Paris &rarr; Tokyo" in html
        assert " km " in html
        assert position == (60.0, 55.0)

    @pytest.mark.asyncio
    async def test_popup_text_is_escaped(self, controller, widget):
        feature = {
            "geometry": {"type": "Point", "coordinates": [0.0, 0.0]},
            "properties": {"name": "<b>X</b>", "description": None},
        }
        widget.emit("mouseenter", {"features": [feature]}, layer="capitals")
        assert "&lt;b&gt;X&lt;/b&gt;" in widget.popup[0]
