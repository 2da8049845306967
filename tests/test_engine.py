"""End-to-end behaviour of MapEngine."""

import threading
import time
from unittest.mock import Mock

import pytest

from snapspot.engine import MapEngine
from snapspot.errors import EngineDisposedError, ImageDecodeError
from snapspot.events import (
    ErrorOccurredEvent,
    ImageLoadedEvent,
    ImageLoadFailedEvent,
    MarkerHighlightedEvent,
    RotationChangedEvent,
    ViewportChangedEvent,
)
from snapspot.models.types import MapInfo, Marker
from snapspot.utils.scheduling import ManualScheduler
from snapspot.viewport.state import ViewState


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def engine(qapp, png_factory, scheduler):
    eng = MapEngine(scheduler=scheduler, surface_size=(500, 400))
    eng.load_image(png_factory(1000, 800), MapInfo(id="map-1", name="Ground floor"))
    yield eng
    eng.dispose()


def _collect(engine, event_type):
    seen = []
    engine.events.subscribe(event_type, seen.append)
    return seen


def test_load_fits_and_publishes(qapp, png_factory):
    engine = MapEngine(surface_size=(500, 400))
    loaded = _collect(engine, ImageLoadedEvent)
    invalidate = Mock()
    engine.set_invalidate_callback(invalidate)

    engine.load_image(png_factory(1000, 800), MapInfo(id="m"))

    assert engine.has_image
    assert (engine.state.scale, engine.state.offset_x, engine.state.offset_y) == (0.5, 0.0, 0.0)
    assert loaded[0].map_id == "m"
    assert (loaded[0].native_width, loaded[0].native_height) == (1000, 800)
    invalidate.assert_called()
    engine.dispose()


def test_concrete_rotation_scenario(engine):
    assert engine.map_to_screen(100.0, 100.0) == (50.0, 50.0)
    centre = engine.screen_to_map(250.0, 200.0)

    rotations = _collect(engine, RotationChangedEvent)
    assert engine.set_rotation(90)

    assert engine.bitmap.width == 800 and engine.bitmap.height == 1000
    assert engine.screen_to_map(250.0, 200.0) == pytest.approx(centre)
    assert engine.map_to_screen(100.0, 100.0) == (400.0, 0.0)
    assert rotations[0].previous == 0 and rotations[0].rotation == 90
    assert rotations[0].recentered


def test_invalid_rotation_is_rejected(engine, caplog):
    state = engine.state
    assert not engine.set_rotation(45)
    assert engine.state is state
    assert engine.bitmap.rotation == 0
    assert "Invalid rotation" in caplog.text


def test_cycle_rotation(engine):
    assert [engine.cycle_rotation() for _ in range(4)] == [90, 180, 270, 0]


def test_decode_failure_reports_and_keeps_previous_image(engine):
    failed = _collect(engine, ImageLoadFailedEvent)
    errors = _collect(engine, ErrorOccurredEvent)
    previous = engine.image

    with pytest.raises(ImageDecodeError):
        engine.load_image(b"garbage", MapInfo(id="broken"))

    assert engine.image is previous
    assert engine.map_info.id == "map-1"
    assert failed[0].map_id == "broken"
    assert errors[0].severity == "error"
    assert engine.zoom_in()


def test_coordinate_queries_without_image_return_none(qapp):
    engine = MapEngine(surface_size=(300, 300))
    assert engine.screen_to_map(1.0, 1.0) is None
    assert engine.map_to_screen(1.0, 1.0) is None
    assert engine.screen_vector_to_map_vector(1.0, 1.0) is None
    assert engine.new_marker_at_center() is None
    assert engine.marker_at_point(1.0, 1.0) is None
    assert not engine.zoom(2.0)
    assert not engine.pan(1.0, 1.0)


def test_zoom_about_anchor_and_pan(engine):
    viewport = _collect(engine, ViewportChangedEvent)
    before = engine.screen_to_map(100.0, 100.0)
    engine.zoom(2.0, 100.0, 100.0)
    assert engine.state.scale == 1.0
    assert engine.screen_to_map(100.0, 100.0) == pytest.approx(before)
    engine.pan(10.0, -5.0)
    assert viewport[-1].offset_x == engine.state.offset_x
    assert len(viewport) == 2


def test_pan_and_zoom_to_coordinates_centres_point(engine):
    engine.pan_and_zoom_to_coordinates(300.0, 200.0, 2.0)
    assert engine.state.scale == 2.0
    assert engine.map_to_screen(300.0, 200.0) == pytest.approx((250.0, 200.0))


def test_highlight_lifecycle(engine, scheduler):
    engine.set_markers([Marker(id="a", x=1.0, y=1.0)])
    events = _collect(engine, MarkerHighlightedEvent)

    assert engine.highlight_marker("a")
    assert engine.highlighted_marker_id == "a"
    assert not engine.highlight_marker("missing")
    assert engine.highlighted_marker_id == "a"

    scheduler.advance(5000)
    assert engine.highlighted_marker_id is None
    assert [event.marker_id for event in events] == ["a", None]


def test_focus_marker_uses_search_scale(engine):
    engine.set_markers([{"id": "a", "x": 600, "y": 100}])
    assert engine.focus_marker("a")
    assert engine.state.scale == 1.5
    assert engine.map_to_screen(600.0, 100.0) == pytest.approx((250.0, 200.0))
    assert engine.highlighted_marker_id == "a"
    assert not engine.focus_marker("nope")


def test_marker_at_point_uses_display_size(engine):
    engine.set_markers([Marker(id="a", x=100.0, y=100.0)])
    assert engine.marker_at_point(50.0, 65.0) is None
    assert engine.set_marker_display_size("large")
    assert engine.marker_at_point(50.0, 65.0).id == "a"
    assert not engine.set_marker_display_size("gigantic")
    assert engine.marker_size.key == "large"


def test_new_marker_at_center(engine):
    marker = engine.new_marker_at_center()
    assert (marker.x, marker.y) == (500.0, 400.0)
    assert marker.description == "Marker at 500, 400"
    assert marker not in engine.markers


def test_move_marker_by_respects_rotation_and_lock(engine):
    engine.set_markers([Marker(id="a", x=100.0, y=100.0)])
    engine.set_rotation(90)
    moved = engine.move_marker_by("a", 10.0, 0.0)
    # a 10px drag at scale 0.5 is 20 map units; at 90° it runs along -y
    assert (moved.x, moved.y) == pytest.approx((100.0, 80.0))

    engine.set_markers_editable(False)
    assert engine.move_marker_by("a", 10.0, 0.0) is None
    assert engine.markers[0].y == pytest.approx(80.0)


def test_move_unknown_marker(engine):
    assert engine.move_marker_by("ghost", 1.0, 1.0) is None


def test_color_rules_validation(engine, caplog):
    assert engine.set_color_rules([{"operator": "isEmpty", "color": "#000"}, None])
    assert len(engine.color_rules) == 1
    assert not engine.set_color_rules([{"operator": "contains", "color": "#000"}])
    assert len(engine.color_rules) == 1
    assert "Rejected colour rules" in caplog.text


def test_unparseable_rule_colour_is_rejected_and_render_still_works(engine):
    engine.set_markers([Marker(id="a", x=100.0, y=100.0, description="kitchen")])
    assert engine.set_color_rules([{"operator": "contains", "value": "kit", "color": "#22c55e"}])
    assert not engine.set_color_rules([{"operator": "contains", "value": "kit", "color": "notacolour"}])
    assert [rule.color for rule in engine.color_rules] == ["#22c55e"]

    from snapspot.rendering.surface import QImageSurface

    drawn = engine.render(QImageSurface(500, 400))
    assert drawn[0].style.fill_color == "#22c55e"


def test_resize_enforces_minimum_and_keeps_view(engine):
    engine.zoom(2.0)
    scale = engine.state.scale
    engine.resize(50, 800)
    assert (engine.state.surface_width, engine.state.surface_height) == (100, 800)
    assert engine.state.scale == scale


def test_overlay_toggles(engine):
    assert engine.toggle_crosshair()
    assert not engine.toggle_crosshair()
    assert engine.toggle_crosshair(True)
    assert engine.toggle_debug_info()
    options = engine.render_options()
    assert options.show_crosshair and options.show_debug_info


def test_view_state_round_trip(engine):
    engine.zoom(2.0)
    view = engine.get_view_state()
    assert view.map_id == "map-1"
    engine.reset_view()
    assert engine.state.scale == 0.5
    assert engine.set_view_state(view.to_dict())
    assert engine.state.scale == view.scale
    assert not engine.set_view_state(ViewState(scale=3.0, offset_x=0.0, offset_y=0.0, map_id="other"))


def test_placeholder_clears_image_and_markers(engine):
    engine.set_markers([Marker(id="a", x=1.0, y=1.0)])
    engine.highlight_marker("a")
    engine.load_placeholder(MapInfo(id="p", name="No data", width=10, height=10))
    assert not engine.has_image
    assert engine.markers == ()
    assert engine.highlighted_marker_id is None
    assert engine.map_to_screen(1.0, 1.0) is None


def test_rotation_before_load_is_applied_to_bitmap(qapp, png_factory):
    engine = MapEngine(surface_size=(500, 400))
    engine.set_rotation(270)
    engine.load_image(png_factory(1000, 800))
    assert (engine.bitmap.width, engine.bitmap.height) == (800, 1000)
    assert engine.state.scale == pytest.approx(0.4)
    engine.dispose()


def test_async_load_applies_through_dispatch(qapp, png_factory):
    engine = MapEngine(surface_size=(500, 400))
    dispatched = []
    lock = threading.Lock()

    def dispatch(callback):
        with lock:
            dispatched.append(callback)

    future = engine.load_image_async(png_factory(200, 100), MapInfo(id="async"), dispatch=dispatch)
    for _ in range(500):
        with lock:
            if dispatched:
                break
        time.sleep(0.01)
    assert not engine.has_image
    assert not future.done()

    dispatched[0]()
    ref = future.result(timeout=5)
    assert engine.image is ref
    assert engine.map_info.id == "async"
    engine.dispose()


def test_async_load_failure_resolves_with_error(qapp):
    engine = MapEngine(surface_size=(500, 400))
    failed = _collect(engine, ImageLoadFailedEvent)
    future = engine.load_image_async(b"nope")
    with pytest.raises(ImageDecodeError):
        future.result(timeout=5)
    assert failed
    engine.dispose()


def test_superseded_async_load_is_discarded(qapp, png_factory):
    engine = MapEngine(surface_size=(500, 400))
    pending = []
    first = engine.load_image_async(png_factory(10, 10), dispatch=pending.append)
    engine.load_image(png_factory(30, 30))
    for _ in range(500):
        if pending:
            break
        time.sleep(0.01)
    pending[0]()
    assert first.cancelled()
    assert engine.image.native_width == 30
    engine.dispose()


def test_dispose_releases_and_blocks_loading(engine, png_factory):
    image = engine.image
    engine.dispose()
    assert image.is_null
    assert engine.image is None
    assert engine.is_disposed
    engine.dispose()
    with pytest.raises(EngineDisposedError):
        engine.load_image(png_factory(2, 2))


def test_render_into_recording_surface(engine):
    from snapspot.rendering.surface import QImageSurface

    engine.set_markers([Marker(id="a", x=100.0, y=100.0), Marker(id="b", x=5000.0, y=5000.0)])
    surface = QImageSurface(500, 400)
    drawn = engine.render(surface)
    assert [m.marker_id for m in drawn] == ["a"]


def test_default_scheduler_expires_highlight_on_qt_event_loop(qapp, png_factory):
    from PySide6.QtTest import QTest

    engine = MapEngine(surface_size=(500, 400), highlight_duration_ms=20)
    engine.load_image(png_factory(100, 100))
    engine.set_markers([Marker(id="a", x=1.0, y=1.0)])
    assert engine.highlight_marker("a")

    for _ in range(100):
        if engine.highlighted_marker_id is None:
            break
        QTest.qWait(10)
    assert engine.highlighted_marker_id is None
    engine.dispose()
