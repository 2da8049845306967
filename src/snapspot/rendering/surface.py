"""Drawing surfaces consumed by :class:`~snapspot.rendering.pipeline.RenderPipeline`."""

from __future__ import annotations

from contextlib import contextmanager
from functools import lru_cache
from typing import Iterator, Optional, Protocol

from PySide6.QtCore import QPointF, QRectF, Qt
from PySide6.QtGui import QBrush, QColor, QFont, QImage, QPainter, QPen

from ..utils.colors import CSS_RGB as _CSS_RGB

_ALIGN = {
    "left": Qt.AlignmentFlag.AlignLeft,
    "center": Qt.AlignmentFlag.AlignHCenter,
    "right": Qt.AlignmentFlag.AlignRight,
}
_BASELINE = {
    "top": Qt.AlignmentFlag.AlignTop,
    "middle": Qt.AlignmentFlag.AlignVCenter,
    "bottom": Qt.AlignmentFlag.AlignBottom,
}


@lru_cache(maxsize=256)
def parse_color(value: str) -> QColor:
    """Return a :class:`QColor` for hex/named colours and CSS ``rgb()``/``rgba()``."""

    match = _CSS_RGB.match(value.strip())
    if match:
        red, green, blue, alpha = match.groups()
        color = QColor(int(red), int(green), int(blue))
        if alpha is not None:
            color.setAlphaF(max(0.0, min(1.0, float(alpha))))
        return color
    color = QColor(value)
    if not color.isValid():
        raise ValueError(f"Unrecognised colour: {value!r}")
    return color


class DrawingSurface(Protocol):
    """Narrow drawing interface the render pipeline needs."""

    @property
    def width(self) -> int: ...

    @property
    def height(self) -> int: ...

    def frame(self): ...

    def clear(self, color: Optional[str] = None) -> None: ...

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None: ...

    def stroke_rect(
        self, x: float, y: float, w: float, h: float, *, color: str, width: float = 1.0,
        dashed: bool = False,
    ) -> None: ...

    def draw_image(self, bitmap: QImage, x: float, y: float, w: float, h: float) -> None: ...

    def draw_circle(
        self, cx: float, cy: float, radius: float, *, fill: Optional[str] = None,
        stroke: Optional[str] = None, stroke_width: float = 1.0,
    ) -> None: ...

    def draw_line(
        self, x1: float, y1: float, x2: float, y2: float, *, color: str, width: float = 1.0
    ) -> None: ...

    def draw_text(
        self, x: float, y: float, text: str, *, color: str, font_size: float,
        family: str = "sans-serif", align: str = "center", baseline: str = "middle",
    ) -> None: ...


class PainterSurface:
    """Surface backed by a :class:`QPainter` that is already active.

    Widgets construct one per ``paintEvent``; :class:`QImageSurface` builds
    on it for offscreen rendering.
    """

    def __init__(self, painter: Optional[QPainter], width: int, height: int) -> None:
        self._painter = painter
        self._width = int(width)
        self._height = int(height)

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @contextmanager
    def frame(self) -> Iterator["PainterSurface"]:
        yield self

    def _active_painter(self) -> QPainter:
        if self._painter is None:
            raise RuntimeError("Drawing outside of an active frame")
        return self._painter

    def clear(self, color: Optional[str] = None) -> None:
        painter = self._active_painter()
        rect = QRectF(0.0, 0.0, float(self._width), float(self._height))
        if color is None:
            painter.save()
            painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Clear)
            painter.fillRect(rect, Qt.GlobalColor.transparent)
            painter.restore()
        else:
            painter.fillRect(rect, parse_color(color))

    def fill_rect(self, x: float, y: float, w: float, h: float, color: str) -> None:
        self._active_painter().fillRect(QRectF(x, y, w, h), parse_color(color))

    def stroke_rect(self, x, y, w, h, *, color, width=1.0, dashed=False) -> None:
        painter = self._active_painter()
        painter.save()
        pen = QPen(parse_color(color), float(width))
        if dashed:
            pen.setDashPattern([10.0 / max(width, 1.0), 10.0 / max(width, 1.0)])
        painter.setPen(pen)
        painter.setBrush(Qt.BrushStyle.NoBrush)
        painter.drawRect(QRectF(x, y, w, h))
        painter.restore()

    def draw_image(self, bitmap: QImage, x: float, y: float, w: float, h: float) -> None:
        painter = self._active_painter()
        painter.save()
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform, True)
        painter.drawImage(QRectF(x, y, w, h), bitmap)
        painter.restore()

    def draw_circle(self, cx, cy, radius, *, fill=None, stroke=None, stroke_width=1.0) -> None:
        painter = self._active_painter()
        painter.save()
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, True)
        painter.setBrush(QBrush(parse_color(fill)) if fill else Qt.BrushStyle.NoBrush)
        painter.setPen(QPen(parse_color(stroke), float(stroke_width)) if stroke else Qt.PenStyle.NoPen)
        painter.drawEllipse(QPointF(cx, cy), radius, radius)
        painter.restore()

    def draw_line(self, x1, y1, x2, y2, *, color, width=1.0) -> None:
        painter = self._active_painter()
        painter.save()
        painter.setPen(QPen(parse_color(color), float(width)))
        painter.drawLine(QPointF(x1, y1), QPointF(x2, y2))
        painter.restore()

    def draw_text(
        self, x, y, text, *, color, font_size, family="sans-serif", align="center",
        baseline="middle",
    ) -> None:
        painter = self._active_painter()
        painter.save()
        font = QFont(family)
        font.setPixelSize(max(1, int(round(font_size))))
        painter.setFont(font)
        painter.setPen(QPen(parse_color(color)))
        # Anchor a generous box on (x, y) and let Qt align inside it, which
        # mirrors canvas ``textAlign``/``textBaseline`` semantics.
        extent = 10_000.0
        left = {"left": x, "center": x - extent / 2.0, "right": x - extent}[align]
        top = {"top": y, "middle": y - extent / 2.0, "bottom": y - extent}[baseline]
        painter.drawText(QRectF(left, top, extent, extent), int(_ALIGN[align] | _BASELINE[baseline]), text)
        painter.restore()


class QImageSurface(PainterSurface):
    """Offscreen surface rendering into an ARGB :class:`QImage`."""

    def __init__(self, width: int, height: int) -> None:
        super().__init__(None, width, height)
        self._image = QImage(self._width, self._height, QImage.Format.Format_ARGB32_Premultiplied)
        self._image.fill(Qt.GlobalColor.transparent)

    @property
    def image(self) -> QImage:
        return self._image

    def resize(self, width: int, height: int) -> None:
        if (int(width), int(height)) == (self._width, self._height):
            return
        self._width = int(width)
        self._height = int(height)
        self._image = QImage(self._width, self._height, QImage.Format.Format_ARGB32_Premultiplied)
        self._image.fill(Qt.GlobalColor.transparent)

    @contextmanager
    def frame(self) -> Iterator["QImageSurface"]:
        painter = QPainter(self._image)
        self._painter = painter
        try:
            yield self
        finally:
            painter.end()
            self._painter = None

    def save(self, path) -> bool:
        return self._image.save(str(path))


__all__ = ["DrawingSurface", "PainterSurface", "QImageSurface", "parse_color"]
