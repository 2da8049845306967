"""QWidget hosting one :class:`~snapspot.engine.MapEngine`."""

from __future__ import annotations

from concurrent.futures import Future
from typing import Callable, Optional

from PySide6.QtCore import QPointF, Qt, Signal, Slot
from PySide6.QtGui import QCloseEvent, QPainter, QResizeEvent
from PySide6.QtWidgets import QWidget

from ..config import WHEEL_ZOOM_FACTOR
from ..engine import MapEngine
from ..imaging.loader import ImageSource
from ..models.types import MapInfo
from ..rendering.surface import PainterSurface
from ..utils.scheduling import QtTimerScheduler


class MapCanvas(QWidget):
    """Interactive surface: drag to pan or move markers, wheel to zoom."""

    markerClicked = Signal(str)
    """Emitted with the marker id when a marker is pressed without dragging."""

    markerMoved = Signal(str, float, float)
    """Emitted with the new map position once a marker drag completes."""

    _dispatchRequested = Signal(object)

    def __init__(self, parent: QWidget | None = None, *, engine: MapEngine | None = None) -> None:
        super().__init__(parent)
        self._engine = engine or MapEngine(scheduler=QtTimerScheduler(self))
        self._engine.set_invalidate_callback(self.update)
        # Work finished on decoder threads is marshalled back through a
        # queued signal so that the engine is only touched on the GUI thread.
        self._dispatchRequested.connect(self._run_dispatched, Qt.ConnectionType.QueuedConnection)

        self._last_pos = QPointF()
        self._dragging = False
        self._drag_marker_id: Optional[str] = None
        self._drag_moved = False

        self.setMouseTracking(True)
        self.setMinimumSize(100, 100)

    # ------------------------------------------------------------------
    @property
    def engine(self) -> MapEngine:
        return self._engine

    def dispatch(self, callback: Callable[[], None]) -> None:
        """Run *callback* on the GUI thread."""

        self._dispatchRequested.emit(callback)

    def load_image_async(self, source: ImageSource, map_info: MapInfo | None = None) -> Future:
        return self._engine.load_image_async(source, map_info, dispatch=self.dispatch)

    @Slot(object)
    def _run_dispatched(self, callback: Callable[[], None]) -> None:
        callback()

    # ------------------------------------------------------------------
    def paintEvent(self, event) -> None:  # type: ignore[override]
        """Render the engine's current frame with ``QPainter``."""

        painter = QPainter(self)
        try:
            self._engine.render(PainterSurface(painter, self.width(), self.height()))
        finally:
            painter.end()

    def resizeEvent(self, event: QResizeEvent) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self._engine.resize(event.size().width(), event.size().height())

    def closeEvent(self, event: QCloseEvent) -> None:  # type: ignore[override]
        self._engine.dispose()
        super().closeEvent(event)

    # ------------------------------------------------------------------
    def mousePressEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._dragging = True
            self._drag_moved = False
            self._last_pos = pos
            marker = self._engine.marker_at_point(pos.x(), pos.y())
            self._drag_marker_id = marker.id if marker is not None else None
            if self._drag_marker_id is None or not self._engine.markers_editable:
                self.setCursor(Qt.CursorShape.ClosedHandCursor)
        super().mousePressEvent(event)

    def mouseMoveEvent(self, event) -> None:  # type: ignore[override]
        if self._dragging and event.buttons() & Qt.MouseButton.LeftButton:
            pos = event.position()
            delta = pos - self._last_pos
            self._last_pos = pos
            if delta.isNull():
                return
            self._drag_moved = True
            if self._drag_marker_id is not None and self._engine.markers_editable:
                self._engine.move_marker_by(self._drag_marker_id, delta.x(), delta.y())
            else:
                self._engine.pan(delta.x(), delta.y())
        super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.MouseButton.LeftButton and self._dragging:
            marker_id = self._drag_marker_id
            self._dragging = False
            self._drag_marker_id = None
            self.unsetCursor()
            if marker_id is not None:
                if not self._drag_moved:
                    self.markerClicked.emit(marker_id)
                elif self._engine.markers_editable:
                    marker = next((m for m in self._engine.markers if m.id == marker_id), None)
                    if marker is not None:
                        self.markerMoved.emit(marker_id, marker.x, marker.y)
        super().mouseReleaseEvent(event)

    def wheelEvent(self, event) -> None:  # type: ignore[override]
        delta = event.angleDelta().y()
        if delta == 0:
            return
        factor = WHEEL_ZOOM_FACTOR if delta > 0 else 1.0 / WHEEL_ZOOM_FACTOR
        pos = event.position()
        self._engine.zoom(factor, pos.x(), pos.y())
        event.accept()


__all__ = ["MapCanvas"]
