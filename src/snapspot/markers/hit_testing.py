"""Locate markers under a screen position."""

from __future__ import annotations

import math
from typing import Optional, Sequence

from ..models.types import Marker
from ..viewport.transformer import CoordinateTransformer


def default_marker_description(map_x: float, map_y: float) -> str:
    """Return the placeholder description given to freshly placed markers."""

    return f"Marker at {round(map_x)}, {round(map_y)}"


def marker_at_point(
    markers: Sequence[Marker],
    transformer: Optional[CoordinateTransformer],
    screen_x: float,
    screen_y: float,
    radius: float,
) -> Optional[Marker]:
    """Return the top-most marker whose circle contains the screen point.

    Markers are drawn in list order, so the last one hit is the one the user
    sees on top.
    """

    if transformer is None or not markers:
        return None
    for marker in reversed(markers):
        position = transformer.map_to_screen(marker.x, marker.y)
        if position is None:
            return None
        if math.hypot(position[0] - screen_x, position[1] - screen_y) <= radius:
            return marker
    return None


__all__ = ["default_marker_description", "marker_at_point"]
