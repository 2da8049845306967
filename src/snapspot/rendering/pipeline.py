"""Frame composition for a single map viewport.

The pipeline owns the draw order and nothing else: it reads a
:class:`RenderScene` snapshot, asks :class:`MarkerStyleEngine` for colours and
issues primitive calls on a :class:`~snapspot.rendering.surface.DrawingSurface`.
Layers are painted back to front:

1. clear the surface;
2. the rotated bitmap, or the placeholder frame when a map without pixel data
   is selected, or the empty state when no map is selected at all;
3. markers (culled against the surface bounds) with the highlight ring drawn
   beneath the highlighted marker's body;
4. the crosshair and the debug block.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from ..config import (
    CROSSHAIR_ARM_LENGTH,
    CROSSHAIR_COLOR,
    CROSSHAIR_LINE_WIDTH,
    DEBUG_FONT_SIZE,
    DEBUG_LINE_HEIGHT,
    DEBUG_PADDING,
    DEBUG_TEXT_COLOR,
    DEFAULT_MARKER_SIZE,
    EMPTY_STATE_BACKGROUND,
    HIGHLIGHT_RING_COLOR,
    HIGHLIGHT_RING_FACTOR,
    HIGHLIGHT_RING_WIDTH,
    MARKER_BORDER_WIDTH,
    MARKER_CULL_MARGIN,
    MARKER_FONT_FAMILY,
    PLACEHOLDER_BACKGROUND,
    PLACEHOLDER_FRAME_COLOR,
    PLACEHOLDER_FRAME_INSET,
    PLACEHOLDER_MUTED_COLOR,
    PLACEHOLDER_TITLE_COLOR,
)
from ..imaging.loader import RotatedBitmap
from ..markers.style import MarkerStyle, MarkerStyleEngine
from ..models.types import MapInfo, Marker, MarkerSize
from ..viewport.state import ViewportState
from ..viewport.transformer import CoordinateTransformer
from .surface import DrawingSurface

_LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RenderOptions:
    marker_size: MarkerSize = field(default_factory=lambda: MarkerSize.preset(DEFAULT_MARKER_SIZE))
    markers_editable: bool = True
    show_crosshair: bool = False
    show_debug_info: bool = False


@dataclass(frozen=True)
class RenderScene:
    """Everything one frame reads; assembled by the engine per draw."""

    state: ViewportState
    bitmap: Optional[RotatedBitmap] = None
    native_width: int = 0
    native_height: int = 0
    map_info: Optional[MapInfo] = None
    markers: Sequence[Marker] = ()
    highlighted_id: Optional[str] = None


@dataclass(frozen=True)
class RenderedMarker:
    """Where a marker ended up on screen and how it was painted."""

    marker_id: str
    number: int
    screen_x: float
    screen_y: float
    style: MarkerStyle
    highlighted: bool


class RenderPipeline:
    def __init__(self, style_engine: Optional[MarkerStyleEngine] = None) -> None:
        self._style_engine = style_engine or MarkerStyleEngine()

    @property
    def style_engine(self) -> MarkerStyleEngine:
        return self._style_engine

    def render(
        self,
        surface: DrawingSurface,
        scene: RenderScene,
        options: Optional[RenderOptions] = None,
    ) -> list[RenderedMarker]:
        """Draw one complete frame and report the markers that were painted."""

        options = options or RenderOptions()
        drawn: list[RenderedMarker] = []
        with surface.frame():
            surface.clear()
            if scene.bitmap is not None:
                self._draw_bitmap(surface, scene)
                drawn = self._draw_markers(surface, scene, options)
            elif scene.map_info is not None:
                self._draw_placeholder(surface, scene.map_info)
            else:
                self._draw_empty_state(surface)

            if options.show_crosshair:
                self._draw_crosshair(surface)
            if options.show_debug_info:
                self._draw_debug_info(surface, scene)
        return drawn

    # ------------------------------------------------------------------
    # Base layer
    # ------------------------------------------------------------------
    def _draw_bitmap(self, surface: DrawingSurface, scene: RenderScene) -> None:
        bitmap = scene.bitmap
        state = scene.state
        surface.draw_image(
            bitmap.image,
            state.offset_x,
            state.offset_y,
            bitmap.width * state.scale,
            bitmap.height * state.scale,
        )

    def _draw_placeholder(self, surface: DrawingSurface, info: MapInfo) -> None:
        width, height = surface.width, surface.height
        cx, cy = width / 2.0, height / 2.0
        inset = PLACEHOLDER_FRAME_INSET
        surface.fill_rect(0, 0, width, height, PLACEHOLDER_BACKGROUND)
        surface.stroke_rect(
            inset,
            inset,
            width - 2 * inset,
            height - 2 * inset,
            color=PLACEHOLDER_FRAME_COLOR,
            width=2.0,
            dashed=True,
        )
        surface.draw_text(cx, cy - 40, "\U0001F5FA️", color=PLACEHOLDER_MUTED_COLOR, font_size=48)
        surface.draw_text(cx, cy + 20, info.name, color=PLACEHOLDER_TITLE_COLOR, font_size=20)
        surface.draw_text(
            cx,
            cy + 45,
            f"{info.width} × {info.height} pixels",
            color=PLACEHOLDER_MUTED_COLOR,
            font_size=14,
        )

    def _draw_empty_state(self, surface: DrawingSurface) -> None:
        width, height = surface.width, surface.height
        cx, cy = width / 2.0, height / 2.0
        surface.fill_rect(0, 0, width, height, EMPTY_STATE_BACKGROUND)
        surface.draw_text(cx, cy - 10, "No map loaded", color=PLACEHOLDER_MUTED_COLOR, font_size=18)
        surface.draw_text(
            cx, cy + 15, "Upload a map to get started", color=PLACEHOLDER_MUTED_COLOR, font_size=18
        )

    # ------------------------------------------------------------------
    # Markers
    # ------------------------------------------------------------------
    def _draw_markers(
        self, surface: DrawingSurface, scene: RenderScene, options: RenderOptions
    ) -> list[RenderedMarker]:
        if not scene.markers:
            return []
        transformer = CoordinateTransformer.for_state(
            scene.state, scene.native_width, scene.native_height
        )
        coords = np.array([(m.x, m.y) for m in scene.markers], dtype=np.float64)
        screen = transformer.map_points_to_screen(coords)
        if screen is None:
            return []

        margin = MARKER_CULL_MARGIN
        visible = (
            (screen[:, 0] > -margin)
            & (screen[:, 0] < surface.width + margin)
            & (screen[:, 1] > -margin)
            & (screen[:, 1] < surface.height + margin)
        )
        size = options.marker_size
        drawn: list[RenderedMarker] = []
        for index in np.flatnonzero(visible):
            marker = scene.markers[int(index)]
            x, y = float(screen[index, 0]), float(screen[index, 1])
            style = self._style_engine.style_for(marker, editable=options.markers_editable)
            highlighted = scene.highlighted_id is not None and marker.id == scene.highlighted_id
            number = int(index) + 1
            if highlighted:
                surface.draw_circle(
                    x,
                    y,
                    size.radius * HIGHLIGHT_RING_FACTOR,
                    stroke=HIGHLIGHT_RING_COLOR,
                    stroke_width=HIGHLIGHT_RING_WIDTH,
                )
            surface.draw_circle(
                x,
                y,
                size.radius,
                fill=style.fill_color,
                stroke=style.border_color,
                stroke_width=MARKER_BORDER_WIDTH,
            )
            # Nudged down a pixel so digits look optically centred.
            surface.draw_text(
                x,
                y + 1,
                str(number),
                color=style.text_color,
                font_size=size.font_size,
                family=MARKER_FONT_FAMILY,
            )
            drawn.append(RenderedMarker(marker.id, number, x, y, style, highlighted))
        _LOGGER.debug("Rendered %d of %d markers", len(drawn), len(scene.markers))
        return drawn

    # ------------------------------------------------------------------
    # Overlays
    # ------------------------------------------------------------------
    def _draw_crosshair(self, surface: DrawingSurface) -> None:
        cx, cy = surface.width / 2.0, surface.height / 2.0
        arm = CROSSHAIR_ARM_LENGTH
        surface.draw_line(cx - arm, cy, cx + arm, cy, color=CROSSHAIR_COLOR, width=CROSSHAIR_LINE_WIDTH)
        surface.draw_line(cx, cy - arm, cx, cy + arm, color=CROSSHAIR_COLOR, width=CROSSHAIR_LINE_WIDTH)

    def _draw_debug_info(self, surface: DrawingSurface, scene: RenderScene) -> None:
        lines = debug_lines(scene, surface.width, surface.height)
        y = DEBUG_PADDING + DEBUG_LINE_HEIGHT
        for line in lines:
            surface.draw_text(
                DEBUG_PADDING,
                y,
                line,
                color=DEBUG_TEXT_COLOR,
                font_size=DEBUG_FONT_SIZE,
                family="monospace",
                align="left",
                baseline="top",
            )
            y += DEBUG_LINE_HEIGHT


def debug_lines(scene: RenderScene, surface_width: int, surface_height: int) -> list[str]:
    state = scene.state
    lines = [
        f"Scale: {state.scale:.3f}",
        f"Offset: {state.offset_x:.0f}, {state.offset_y:.0f}",
        f"Canvas: {surface_width}×{surface_height}",
    ]
    if scene.bitmap is not None:
        bitmap = scene.bitmap
        lines.extend(
            [
                f"Image: {bitmap.width}x{bitmap.height}",
                f"Rendered: {bitmap.width * state.scale:.0f}x{bitmap.height * state.scale:.0f}",
                f"Rotation: {state.rotation}°",
            ]
        )
    lines.append(f"Markers: {len(scene.markers)}")
    return lines


__all__ = ["RenderOptions", "RenderPipeline", "RenderScene", "RenderedMarker", "debug_lines"]
