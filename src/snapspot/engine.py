"""Public facade for one interactive map viewport.

:class:`MapEngine` owns exactly one image, one viewport state and one marker
working set.  Hosts (the Qt widget, the CLI, tests) drive it through the
operations below and repaint whenever it invalidates.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Iterable, Mapping, Optional, Union

from .config import (
    DEFAULT_MARKER_SIZE,
    DEFAULT_MAX_SCALE,
    DEFAULT_MIN_SCALE,
    FOCUS_MARKER_SCALE,
    HIGHLIGHT_DURATION_MS,
    MARKER_SIZE_PRESETS,
    MIN_SURFACE_SIZE,
)
from .errors import EngineDisposedError, ImageDecodeError, RuleValidationError
from .errors.handler import ErrorHandler, ErrorSeverity
from .events import (
    EventBus,
    ImageLoadFailedEvent,
    ImageLoadedEvent,
    MarkerHighlightedEvent,
    RotationChangedEvent,
    ViewportChangedEvent,
)
from .imaging.loader import ImageDecoder, ImageRef, ImageSource, RotatedBitmap, rotate_image
from .markers.highlight import HighlightController
from .markers.hit_testing import default_marker_description, marker_at_point
from .markers.style import MarkerStyleEngine
from .models.types import ColorRule, MapInfo, Marker, MarkerSize
from .rendering.pipeline import RenderOptions, RenderPipeline, RenderScene, RenderedMarker
from .rendering.surface import DrawingSurface
from .utils.scheduling import QtTimerScheduler, TimerScheduler
from .viewport.controller import ViewportController
from .viewport.geometry import is_valid_rotation, next_rotation
from .viewport.state import ViewportState, ViewState
from .viewport.transformer import Point

_LOGGER = logging.getLogger(__name__)

Dispatch = Callable[[Callable[[], None]], None]


def _call_now(callback: Callable[[], None]) -> None:
    callback()


class MapEngine:
    """Viewport engine: image, pan/zoom/rotation, markers and rendering.

    Routine calls made before an image is loaded return ``None``/``False``
    instead of raising.  Decode failures are reported through the
    :class:`ErrorHandler` and re-raised, leaving the previous image in place.

    Highlights expire on the Qt event loop of the calling thread unless a
    *scheduler* is injected; headless hosts pass a
    :class:`~snapspot.utils.scheduling.ManualScheduler`.
    """

    def __init__(
        self,
        *,
        scheduler: Optional[TimerScheduler] = None,
        event_bus: Optional[EventBus] = None,
        error_handler: Optional[ErrorHandler] = None,
        decoder: Optional[ImageDecoder] = None,
        style_engine: Optional[MarkerStyleEngine] = None,
        surface_size: tuple[int, int] = (0, 0),
        min_scale: float = DEFAULT_MIN_SCALE,
        max_scale: float = DEFAULT_MAX_SCALE,
        highlight_duration_ms: int = HIGHLIGHT_DURATION_MS,
        on_invalidate: Optional[Callable[[], None]] = None,
    ) -> None:
        self._events = event_bus or EventBus()
        self._errors = error_handler or ErrorHandler(_LOGGER, self._events)
        self._decoder = decoder or ImageDecoder()
        self._pipeline = RenderPipeline(style_engine or MarkerStyleEngine())
        self._controller = ViewportController(
            ViewportState(
                min_scale=min_scale,
                max_scale=max_scale,
                surface_width=int(surface_size[0]),
                surface_height=int(surface_size[1]),
            ),
            on_changed=self._on_viewport_changed,
        )
        self._highlight = HighlightController(
            scheduler or QtTimerScheduler(),
            marker_exists=self._has_marker,
            on_changed=self._on_highlight_changed,
            duration_ms=highlight_duration_ms,
        )
        self._on_invalidate = on_invalidate

        self._image: Optional[ImageRef] = None
        self._bitmap: Optional[RotatedBitmap] = None
        self._map_info: Optional[MapInfo] = None
        self._markers: list[Marker] = []
        self._markers_editable = True
        self._marker_size = MarkerSize.preset(DEFAULT_MARKER_SIZE)
        self._show_crosshair = False
        self._show_debug_info = False

        self._executor: Optional[ThreadPoolExecutor] = None
        self._load_lock = threading.Lock()
        self._load_generation = 0
        self._disposed = False

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def state(self) -> ViewportState:
        return self._controller.state

    @property
    def rotation(self) -> int:
        return self._controller.state.rotation

    @property
    def has_image(self) -> bool:
        return self._bitmap is not None

    @property
    def image(self) -> Optional[ImageRef]:
        return self._image

    @property
    def bitmap(self) -> Optional[RotatedBitmap]:
        return self._bitmap

    @property
    def map_info(self) -> Optional[MapInfo]:
        return self._map_info

    @property
    def markers(self) -> tuple[Marker, ...]:
        return tuple(self._markers)

    @property
    def markers_editable(self) -> bool:
        return self._markers_editable

    @property
    def marker_size(self) -> MarkerSize:
        return self._marker_size

    @property
    def highlighted_marker_id(self) -> Optional[str]:
        return self._highlight.highlighted_id

    @property
    def show_crosshair(self) -> bool:
        return self._show_crosshair

    @property
    def show_debug_info(self) -> bool:
        return self._show_debug_info

    @property
    def color_rules(self) -> tuple[ColorRule, ...]:
        return self._pipeline.style_engine.rules

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def set_invalidate_callback(self, callback: Optional[Callable[[], None]]) -> None:
        self._on_invalidate = callback

    # ------------------------------------------------------------------
    # Image lifecycle
    # ------------------------------------------------------------------
    def load_image(self, source: ImageSource, map_info: Optional[MapInfo] = None) -> ImageRef:
        """Decode *source* synchronously and make it the current image."""

        self._ensure_alive("load_image")
        with self._load_lock:
            self._load_generation += 1
        try:
            ref = self._decoder.decode(source)
        except ImageDecodeError as exc:
            self._report_load_failure(exc, map_info)
            raise
        self._apply_image(ref, map_info)
        return ref

    def load_image_async(
        self,
        source: ImageSource,
        map_info: Optional[MapInfo] = None,
        dispatch: Optional[Dispatch] = None,
    ) -> Future:
        """Decode on a worker thread and apply the result through *dispatch*.

        The returned future resolves to the :class:`ImageRef` once it has been
        applied, or to :class:`ImageDecodeError`.  Until then the previous
        image keeps rendering.  A result overtaken by a newer load is dropped.
        """

        self._ensure_alive("load_image_async")
        dispatch = dispatch or _call_now
        with self._load_lock:
            self._load_generation += 1
            generation = self._load_generation
        result: Future = Future()
        decode_future = self._decoder.decode_async(source, self._pool())

        def _apply_on_owner(ref: Optional[ImageRef], error: Optional[BaseException]) -> None:
            if error is not None:
                if isinstance(error, ImageDecodeError):
                    self._report_load_failure(error, map_info)
                if not result.cancelled():
                    result.set_exception(error)
                return
            if result.cancelled() or self._disposed or generation != self._load_generation:
                _LOGGER.debug("Discarding stale image load (generation %s)", generation)
                ref.release()
                result.cancel()
                return
            self._apply_image(ref, map_info)
            result.set_result(ref)

        def _decoded(fut: Future) -> None:
            if fut.cancelled():
                result.cancel()
                return
            error = fut.exception()
            ref = None if error is not None else fut.result()
            dispatch(lambda: _apply_on_owner(ref, error))

        decode_future.add_done_callback(_decoded)
        return result

    def load_placeholder(self, map_info: MapInfo) -> None:
        """Show a map without pixel data; the marker set is cleared."""

        with self._load_lock:
            self._load_generation += 1
        self._release_image()
        self._map_info = map_info
        self._markers = []
        self._highlight.clear()
        self._controller.detach_image()
        self._invalidate()

    def _apply_image(self, ref: ImageRef, map_info: Optional[MapInfo]) -> None:
        self._release_image()
        rotation = self._controller.state.rotation
        self._image = ref
        self._bitmap = rotate_image(ref, rotation)
        if map_info is None:
            map_info = MapInfo(
                width=ref.native_width, height=ref.native_height, file_type=ref.source_format
            )
        self._map_info = map_info
        self._controller.attach_image(ref.native_width, ref.native_height)
        _LOGGER.info(
            "Loaded map %s (%dx%d, rotation %d)",
            map_info.id or map_info.name or "<unnamed>",
            ref.native_width,
            ref.native_height,
            rotation,
        )
        self._events.publish(
            ImageLoadedEvent(
                map_id=map_info.id,
                native_width=ref.native_width,
                native_height=ref.native_height,
            )
        )
        self._invalidate()

    def _report_load_failure(self, exc: ImageDecodeError, map_info: Optional[MapInfo]) -> None:
        map_id = map_info.id if map_info is not None else None
        self._errors.handle(exc, ErrorSeverity.ERROR, context={"operation": "load_image", "map_id": map_id})
        self._events.publish(ImageLoadFailedEvent(map_id=map_id, reason=str(exc)))

    def _release_image(self) -> None:
        if self._image is not None:
            self._image.release()
        self._image = None
        self._bitmap = None

    # ------------------------------------------------------------------
    # Rotation
    # ------------------------------------------------------------------
    def set_rotation(self, rotation: int) -> bool:
        """Turn the map to *rotation* keeping the centred map point in place."""

        if not is_valid_rotation(rotation):
            _LOGGER.warning(
                "Invalid rotation %r; must be 0, 90, 180 or 270. Keeping %s.",
                rotation,
                self.rotation,
            )
            return False
        rotation = int(rotation)
        previous = self.rotation
        if rotation == previous:
            return False
        if self._image is not None:
            try:
                bitmap = rotate_image(self._image, rotation)
            except ImageDecodeError as exc:
                self._errors.handle(exc, ErrorSeverity.WARNING, context={"operation": "set_rotation"})
                return False
            self._bitmap = bitmap
        self._controller.set_rotation(rotation)
        recentered = self.has_image and self._controller.last_rotation_recentered
        self._events.publish(
            RotationChangedEvent(previous=previous, rotation=rotation, recentered=recentered)
        )
        self._invalidate()
        return True

    def cycle_rotation(self) -> int:
        self.set_rotation(next_rotation(self.rotation))
        return self.rotation

    # ------------------------------------------------------------------
    # Pan / zoom
    # ------------------------------------------------------------------
    def zoom(
        self,
        factor: float,
        anchor_x: Optional[float] = None,
        anchor_y: Optional[float] = None,
    ) -> bool:
        return self._controller.zoom(factor, anchor_x, anchor_y)

    def zoom_to(self, scale: float, anchor_x: Optional[float] = None, anchor_y: Optional[float] = None) -> bool:
        return self._controller.zoom(None, anchor_x, anchor_y, absolute=scale)

    def zoom_in(self) -> bool:
        return self._controller.zoom_in()

    def zoom_out(self) -> bool:
        return self._controller.zoom_out()

    def pan(self, dx: float, dy: float) -> bool:
        if not self.has_image:
            return False
        return self._controller.pan(dx, dy)

    def reset_view(self) -> bool:
        return self._controller.reset()

    def pan_and_zoom_to_coordinates(
        self, map_x: float, map_y: float, target_scale: Optional[float] = None
    ) -> bool:
        return self._controller.pan_and_zoom_to_coordinates(map_x, map_y, target_scale)

    def focus_marker(self, marker_id: str, scale: float = FOCUS_MARKER_SCALE) -> bool:
        """Centre *marker_id* at *scale* and highlight it."""

        marker = self._find_marker(marker_id)
        if marker is None:
            _LOGGER.warning("Marker %s not found, cannot focus.", marker_id)
            return False
        self.pan_and_zoom_to_coordinates(marker.x, marker.y, scale)
        return self.highlight_marker(marker_id)

    def resize(self, width: int, height: int) -> bool:
        """Set the surface size (at least 100 px per axis); the view is kept."""

        width = max(int(width), MIN_SURFACE_SIZE)
        height = max(int(height), MIN_SURFACE_SIZE)
        changed = self._controller.resize(width, height)
        if changed:
            self._invalidate()
        return changed

    def _on_viewport_changed(self, old: ViewportState, new: ViewportState) -> None:
        self._events.publish(
            ViewportChangedEvent(
                scale=new.scale,
                offset_x=new.offset_x,
                offset_y=new.offset_y,
                rotation=new.rotation,
            )
        )
        self._invalidate()

    # ------------------------------------------------------------------
    # Coordinates
    # ------------------------------------------------------------------
    def screen_to_map(self, screen_x: float, screen_y: float) -> Optional[Point]:
        transformer = self._transformer()
        return None if transformer is None else transformer.screen_to_map(screen_x, screen_y)

    def map_to_screen(self, map_x: float, map_y: float) -> Optional[Point]:
        transformer = self._transformer()
        return None if transformer is None else transformer.map_to_screen(map_x, map_y)

    def screen_vector_to_map_vector(self, dx: float, dy: float) -> Optional[Point]:
        transformer = self._transformer()
        return None if transformer is None else transformer.screen_vector_to_map_vector(dx, dy)

    def _transformer(self):
        if self._bitmap is None:
            _LOGGER.debug("Coordinate conversion requested without an image")
            return None
        return self._controller.transformer()

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------
    def set_markers(self, markers: Iterable[Union[Marker, Mapping[str, Any]]]) -> None:
        """Replace the marker working set wholesale."""

        self._markers = [m if isinstance(m, Marker) else Marker.from_mapping(m) for m in markers or ()]
        self._invalidate()

    def set_markers_editable(self, editable: bool) -> None:
        editable = bool(editable)
        if editable == self._markers_editable:
            return
        self._markers_editable = editable
        self._invalidate()

    def set_color_rules(self, rules: Iterable[Union[ColorRule, Mapping[str, Any], None]]) -> bool:
        try:
            parsed = [
                rule if rule is None or isinstance(rule, ColorRule) else ColorRule.from_mapping(rule)
                for rule in rules or ()
            ]
        except RuleValidationError as exc:
            _LOGGER.warning("Rejected colour rules: %s", exc)
            return False
        self._pipeline.style_engine.set_rules(parsed)
        self._invalidate()
        return True

    def set_marker_display_size(self, key: str) -> bool:
        if key not in MARKER_SIZE_PRESETS:
            _LOGGER.warning("Invalid marker size key: %r. Keeping %s.", key, self._marker_size.key)
            return False
        self._marker_size = MarkerSize.preset(key)
        self._invalidate()
        return True

    def highlight_marker(self, marker_id: str) -> bool:
        return self._highlight.highlight(marker_id)

    def clear_highlight(self) -> None:
        self._highlight.clear()

    def marker_at_point(self, screen_x: float, screen_y: float) -> Optional[Marker]:
        return marker_at_point(
            self._markers, self._transformer(), screen_x, screen_y, self._marker_size.radius
        )

    def new_marker_at_center(self) -> Optional[Marker]:
        """Create (but do not store) a marker under the viewport centre."""

        point = self.screen_to_map(*self.state.viewport_center)
        if point is None:
            return None
        x, y = point
        return Marker.create(x, y, default_marker_description(x, y))

    def move_marker_by(self, marker_id: str, screen_dx: float, screen_dy: float) -> Optional[Marker]:
        if not self._markers_editable:
            _LOGGER.debug("Markers are locked; ignoring move of %s", marker_id)
            return None
        marker = self._find_marker(marker_id)
        if marker is None:
            _LOGGER.warning("Marker %s not found, cannot move.", marker_id)
            return None
        delta = self.screen_vector_to_map_vector(screen_dx, screen_dy)
        if delta is None:
            return None
        marker.x += delta[0]
        marker.y += delta[1]
        self._invalidate()
        return marker

    def _find_marker(self, marker_id: str) -> Optional[Marker]:
        for marker in self._markers:
            if marker.id == marker_id:
                return marker
        return None

    def _has_marker(self, marker_id: str) -> bool:
        return self._find_marker(marker_id) is not None

    def _on_highlight_changed(self, marker_id: Optional[str]) -> None:
        self._events.publish(MarkerHighlightedEvent(marker_id=marker_id))
        self._invalidate()

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------
    def toggle_crosshair(self, visible: Optional[bool] = None) -> bool:
        self._show_crosshair = (not self._show_crosshair) if visible is None else bool(visible)
        self._invalidate()
        return self._show_crosshair

    def toggle_debug_info(self) -> bool:
        self._show_debug_info = not self._show_debug_info
        self._invalidate()
        return self._show_debug_info

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    def scene(self) -> RenderScene:
        native_w, native_h = self._controller.native_size or (0, 0)
        return RenderScene(
            state=self._controller.state,
            bitmap=self._bitmap,
            native_width=native_w,
            native_height=native_h,
            map_info=self._map_info,
            markers=tuple(self._markers),
            highlighted_id=self._highlight.highlighted_id,
        )

    def render_options(self) -> RenderOptions:
        return RenderOptions(
            marker_size=self._marker_size,
            markers_editable=self._markers_editable,
            show_crosshair=self._show_crosshair,
            show_debug_info=self._show_debug_info,
        )

    def render(self, surface: DrawingSurface) -> list[RenderedMarker]:
        return self._pipeline.render(surface, self.scene(), self.render_options())

    def _invalidate(self) -> None:
        if self._on_invalidate is not None:
            self._on_invalidate()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def get_view_state(self) -> ViewState:
        return self._controller.snapshot(self._map_info.id if self._map_info else None)

    def set_view_state(self, view: Union[ViewState, Mapping[str, Any]]) -> bool:
        if not isinstance(view, ViewState):
            view = ViewState.from_mapping(view)
        current_id = self._map_info.id if self._map_info else None
        if view.map_id is not None and view.map_id != current_id:
            _LOGGER.warning("View state for map %s does not match current map %s", view.map_id, current_id)
            return False
        return self._controller.restore(view)

    # ------------------------------------------------------------------
    # Teardown
    # ------------------------------------------------------------------
    def dispose(self) -> None:
        """Release the image and stop background work; safe to call twice."""

        if self._disposed:
            return
        self._disposed = True
        self._highlight.clear()
        self._release_image()
        self._controller.detach_image()
        self._markers = []
        self._map_info = None
        executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=False, cancel_futures=True)
        _LOGGER.debug("Engine disposed")

    def _ensure_alive(self, operation: str) -> None:
        if self._disposed:
            raise EngineDisposedError(f"{operation}() called on a disposed engine")

    def _pool(self) -> ThreadPoolExecutor:
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="snapspot-decode")
        return self._executor


__all__ = ["Dispatch", "MapEngine"]
