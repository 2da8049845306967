# -*- coding: utf-8 -*-
"""Zoom, pan, fit and rotation handling for the map viewport.

The module is split in two layers.  The free functions are pure transitions
``ViewportState -> ViewportState`` that can be unit tested without an image or
a drawing surface.  :class:`ViewportController` owns exactly one state value
for the currently loaded image and applies those transitions, notifying a
listener whenever the state actually changes.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import FIT_MAX_SCALE, SCALE_EPSILON, ZOOM_STEP_FACTOR
from .geometry import is_valid_rotation, rotated_dimensions
from .state import ViewportState, ViewState
from .transformer import CoordinateTransformer, Point

_LOGGER = logging.getLogger(__name__)

Size = tuple[int, int]


def compute_fit_scale(bitmap_size: Size, surface_width: float, surface_height: float) -> float:
    """Return the scale that fits *bitmap_size* inside the surface, never above 1:1."""

    bitmap_w, bitmap_h = bitmap_size
    if bitmap_w <= 0 or bitmap_h <= 0 or surface_width <= 0 or surface_height <= 0:
        return 1.0
    return min(surface_width / float(bitmap_w), surface_height / float(bitmap_h), FIT_MAX_SCALE)


def fit_to_screen(state: ViewportState, bitmap_size: Size) -> ViewportState:
    """Scale the rotated bitmap to fit the surface and centre it.

    Degenerate surfaces or bitmaps reset to scale 1 with no offset, which
    keeps the state usable until a real size is known.
    """

    bitmap_w, bitmap_h = bitmap_size
    if not state.has_surface or bitmap_w <= 0 or bitmap_h <= 0:
        _LOGGER.warning(
            "fit_to_screen: invalid dimensions surface=%sx%s bitmap=%sx%s",
            state.surface_width,
            state.surface_height,
            bitmap_w,
            bitmap_h,
        )
        return state.evolve(scale=1.0, offset_x=0.0, offset_y=0.0)

    scale = state.clamp_scale(
        compute_fit_scale(bitmap_size, state.surface_width, state.surface_height)
    )
    return state.evolve(
        scale=scale,
        offset_x=(state.surface_width - bitmap_w * scale) / 2.0,
        offset_y=(state.surface_height - bitmap_h * scale) / 2.0,
    )


def zoom(
    state: ViewportState,
    *,
    factor: Optional[float] = None,
    absolute: Optional[float] = None,
    anchor: Optional[Point] = None,
) -> ViewportState:
    """Change the scale while keeping *anchor* fixed on screen.

    Exactly one of *factor* (relative to the current scale) or *absolute*
    must be supplied.  *anchor* defaults to the viewport centre.  The same
    state object is returned when the clamped scale does not change.
    """

    if (factor is None) == (absolute is None):
        raise ValueError("zoom() requires exactly one of 'factor' or 'absolute'")
    target = state.scale * float(factor) if factor is not None else float(absolute)
    new_scale = state.clamp_scale(target)
    if abs(new_scale - state.scale) < SCALE_EPSILON:
        return state

    ax, ay = anchor if anchor is not None else state.viewport_center
    ratio = new_scale / state.scale
    return state.evolve(
        scale=new_scale,
        offset_x=ax - (ax - state.offset_x) * ratio,
        offset_y=ay - (ay - state.offset_y) * ratio,
    )


def pan(state: ViewportState, dx: float, dy: float) -> ViewportState:
    """Translate the view; panning past the image edge is allowed."""

    return state.evolve(offset_x=state.offset_x + dx, offset_y=state.offset_y + dy)


def recenter_after_rotation(
    old_state: ViewportState,
    captured_map_point: Point,
    new_rotation: int,
    native_size: Size,
) -> Optional[ViewportState]:
    """Return the state that keeps *captured_map_point* at the viewport centre.

    *captured_map_point* is the map-space point that sat under the viewport
    centre before the rotation.  The pre-rotation scale is kept (re-clamped)
    and the offsets are chosen so that the point lands back on the centre
    after the bitmap is turned to *new_rotation*.  ``None`` means the point
    could not be projected and the caller must fall back to a fit.
    """

    native_w, native_h = native_size
    rotated = old_state.evolve(rotation=new_rotation, offset_x=0.0, offset_y=0.0)
    transformer = CoordinateTransformer.for_state(rotated, native_w, native_h)
    screen_at_origin = transformer.map_to_screen(*captured_map_point)
    if screen_at_origin is None:
        return None
    center_x, center_y = old_state.viewport_center
    return rotated.evolve(
        offset_x=center_x - screen_at_origin[0],
        offset_y=center_y - screen_at_origin[1],
    )


def resolve_target_scale(current: float, target: Optional[float]) -> float:
    """Interpret a jump-to target: below 1 multiplies, 1 and above is absolute."""

    if target is None:
        return current
    if 0.0 < target < 1.0:
        return current * target
    if target >= 1.0:
        return target
    return current


def pan_and_zoom_to(
    state: ViewportState,
    map_x: float,
    map_y: float,
    native_size: Size,
    target_scale: Optional[float] = None,
) -> Optional[ViewportState]:
    """Centre the viewport on a map point at the resolved target scale."""

    native_w, native_h = native_size
    new_scale = state.clamp_scale(resolve_target_scale(state.scale, target_scale))
    transformer = CoordinateTransformer.for_state(state, native_w, native_h)
    rotated = transformer.map_to_rotated(map_x, map_y)
    if rotated is None:
        return None
    center_x, center_y = state.viewport_center
    return state.evolve(
        scale=new_scale,
        offset_x=center_x - rotated[0] * new_scale,
        offset_y=center_y - rotated[1] * new_scale,
    )


class ViewportController:
    """Own the viewport state of one engine and apply pan/zoom/rotation."""

    def __init__(
        self,
        state: Optional[ViewportState] = None,
        *,
        on_changed: Optional[Callable[[ViewportState, ViewportState], None]] = None,
    ) -> None:
        self._state = state or ViewportState()
        self._native_size: Optional[Size] = None
        self._on_changed = on_changed
        self._last_rotation_recentered = False

    # ------------------------------------------------------------------
    # State accessors
    # ------------------------------------------------------------------
    @property
    def state(self) -> ViewportState:
        return self._state

    @property
    def last_rotation_recentered(self) -> bool:
        """``False`` when the latest rotation fell back to a fit."""

        return self._last_rotation_recentered

    @property
    def has_image(self) -> bool:
        return self._native_size is not None

    @property
    def native_size(self) -> Optional[Size]:
        return self._native_size

    @property
    def bitmap_size(self) -> Optional[Size]:
        """Dimensions of the rotated bitmap for the current rotation."""

        if self._native_size is None:
            return None
        return rotated_dimensions(*self._native_size, self._state.rotation)

    def transformer(self) -> Optional[CoordinateTransformer]:
        if self._native_size is None:
            return None
        return CoordinateTransformer.for_state(self._state, *self._native_size)

    def _apply(self, new_state: ViewportState) -> bool:
        if new_state == self._state:
            return False
        old_state, self._state = self._state, new_state
        if self._on_changed is not None:
            self._on_changed(old_state, new_state)
        return True

    # ------------------------------------------------------------------
    # Image / surface lifecycle
    # ------------------------------------------------------------------
    def attach_image(self, native_width: int, native_height: int) -> None:
        """Bind the native size of a freshly loaded image and fit it."""

        self._native_size = (int(native_width), int(native_height))
        self.fit_to_screen()

    def detach_image(self) -> None:
        self._native_size = None

    def resize(self, width: int, height: int) -> bool:
        """Update the surface size; the current pan/zoom is kept."""

        return self._apply(self._state.evolve(surface_width=int(width), surface_height=int(height)))

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def fit_to_screen(self) -> bool:
        size = self.bitmap_size
        if size is None:
            _LOGGER.warning("fit_to_screen: no image loaded")
            return False
        return self._apply(fit_to_screen(self._state, size))

    def zoom(
        self,
        factor: Optional[float] = None,
        anchor_x: Optional[float] = None,
        anchor_y: Optional[float] = None,
        *,
        absolute: Optional[float] = None,
    ) -> bool:
        if not self.has_image:
            _LOGGER.debug("zoom ignored: no image loaded")
            return False
        anchor = None
        if anchor_x is not None and anchor_y is not None:
            anchor = (float(anchor_x), float(anchor_y))
        return self._apply(zoom(self._state, factor=factor, absolute=absolute, anchor=anchor))

    def zoom_in(self) -> bool:
        return self.zoom(ZOOM_STEP_FACTOR)

    def zoom_out(self) -> bool:
        return self.zoom(1.0 / ZOOM_STEP_FACTOR)

    def pan(self, dx: float, dy: float) -> bool:
        return self._apply(pan(self._state, dx, dy))

    def reset(self) -> bool:
        return self.fit_to_screen()

    def set_rotation(self, rotation: int) -> bool:
        """Rotate while preserving the map point under the viewport centre.

        Invalid values are rejected with a warning.  Without an image the
        rotation is only recorded so the next load starts from it.
        """

        if not is_valid_rotation(rotation):
            _LOGGER.warning(
                "Invalid rotation %r; must be 0, 90, 180 or 270. Keeping %s.",
                rotation,
                self._state.rotation,
            )
            return False
        rotation = int(rotation)
        if self._native_size is None:
            return self._apply(self._state.evolve(rotation=rotation))
        if rotation == self._state.rotation:
            return False

        transformer = self.transformer()
        captured = transformer.screen_to_map(*self._state.viewport_center) if transformer else None
        self._last_rotation_recentered = False
        recentered = None
        if captured is not None:
            recentered = recenter_after_rotation(self._state, captured, rotation, self._native_size)
        if recentered is None:
            _LOGGER.warning("Could not preserve the view centre across rotation; fitting to screen")
            rotated = self._state.evolve(rotation=rotation)
            return self._apply(fit_to_screen(rotated, rotated_dimensions(*self._native_size, rotation)))
        self._last_rotation_recentered = True
        return self._apply(recentered)

    def pan_and_zoom_to_coordinates(
        self, map_x: float, map_y: float, target_scale: Optional[float] = None
    ) -> bool:
        if self._native_size is None:
            _LOGGER.warning("Cannot pan and zoom: no image loaded")
            return False
        new_state = pan_and_zoom_to(self._state, map_x, map_y, self._native_size, target_scale)
        if new_state is None:
            return False
        return self._apply(new_state)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def snapshot(self, map_id: Optional[str] = None) -> ViewState:
        return ViewState(
            scale=self._state.scale,
            offset_x=self._state.offset_x,
            offset_y=self._state.offset_y,
            map_id=map_id,
        )

    def restore(self, view: ViewState) -> bool:
        return self._apply(
            self._state.evolve(scale=view.scale, offset_x=view.offset_x, offset_y=view.offset_y)
        )


__all__ = [
    "ViewportController",
    "compute_fit_scale",
    "fit_to_screen",
    "pan",
    "pan_and_zoom_to",
    "recenter_after_rotation",
    "resolve_target_scale",
    "zoom",
]
