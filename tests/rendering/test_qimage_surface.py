"""Offscreen QImage rendering."""

import pytest

pytest.importorskip("PySide6.QtGui", reason="Qt GUI module not available", exc_type=ImportError)

from PySide6.QtGui import QColor, QImage

from snapspot.models.types import Marker
from snapspot.rendering.pipeline import RenderOptions, RenderPipeline, RenderScene
from snapspot.rendering.surface import QImageSurface, parse_color
from snapspot.viewport.state import ViewportState


def test_parse_css_rgba():
    color = parse_color("rgba(255, 0, 0, 0.7)")
    assert (color.red(), color.green(), color.blue()) == (255, 0, 0)
    assert color.alphaF() == pytest.approx(0.7, abs=0.01)
    assert parse_color("#3b82f6").name() == "#3b82f6"
    assert parse_color("rgb(1,2,3)").getRgb()[:3] == (1, 2, 3)


def test_parse_invalid_color():
    with pytest.raises(ValueError):
        parse_color("not-a-colour")


def test_drawing_outside_frame_is_an_error(qapp):
    surface = QImageSurface(10, 10)
    with pytest.raises(RuntimeError):
        surface.fill_rect(0, 0, 5, 5, "#ffffff")


def test_frame_renders_bitmap_and_marker(qapp):
    bitmap_image = QImage(100, 80, QImage.Format.Format_ARGB32)
    bitmap_image.fill(QColor("#00ff00"))

    class _Bitmap:
        image = bitmap_image
        width = 100
        height = 80

    surface = QImageSurface(200, 160)
    scene = RenderScene(
        state=ViewportState(scale=2.0, surface_width=200, surface_height=160),
        bitmap=_Bitmap(),
        native_width=100,
        native_height=80,
        markers=(Marker(id="a", x=50.0, y=40.0, has_photos=True),),
    )
    drawn = RenderPipeline().render(surface, scene, RenderOptions(markers_editable=True))

    image = surface.image
    assert len(drawn) == 1
    assert QColor(image.pixel(5, 5)).name() == "#00ff00"
    # the marker body at the map centre uses the unlocked-with-photos fill
    centre = QColor(image.pixel(100 + 6, 80))
    assert centre.red() > 200 and centre.green() < 120


def test_resize_reallocates_image(qapp):
    surface = QImageSurface(10, 10)
    surface.resize(30, 20)
    assert (surface.image.width(), surface.image.height()) == (30, 20)
    assert (surface.width, surface.height) == (30, 20)


def test_save_png(qapp, tmp_path):
    surface = QImageSurface(20, 20)
    with surface.frame():
        surface.clear("#ff0000")
    target = tmp_path / "out.png"
    assert surface.save(target)
    assert QImage(str(target)).size().width() == 20
