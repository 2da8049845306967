"""Screen ↔ map coordinate conversion for a single viewport state."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from .geometry import is_valid_rotation, rotate_point, unrotate_point, unrotate_vector
from .state import ViewportState

_LOGGER = logging.getLogger(__name__)

Point = tuple[float, float]


@dataclass(frozen=True)
class CoordinateTransformer:
    """Pure conversions between screen pixels and unrotated map space.

    Screen → map first removes scale and offset to land on the rotated
    bitmap, then undoes the rotation.  Map → screen runs the same steps in
    reverse.  Every conversion returns ``None`` when the inputs cannot
    describe a valid mapping (no image dimensions, non-positive scale)
    instead of leaking ``nan`` or ``inf`` to the caller.
    """

    scale: float
    offset_x: float
    offset_y: float
    rotation: int
    native_width: float
    native_height: float

    @classmethod
    def for_state(
        cls, state: ViewportState, native_width: float, native_height: float
    ) -> "CoordinateTransformer":
        return cls(
            scale=state.scale,
            offset_x=state.offset_x,
            offset_y=state.offset_y,
            rotation=state.rotation,
            native_width=native_width,
            native_height=native_height,
        )

    @property
    def is_valid(self) -> bool:
        return (
            math.isfinite(self.scale)
            and self.scale > 0.0
            and self.native_width > 0
            and self.native_height > 0
            and math.isfinite(self.offset_x)
            and math.isfinite(self.offset_y)
            and is_valid_rotation(self.rotation)
        )

    def _usable(self, operation: str) -> bool:
        if self.is_valid:
            return True
        _LOGGER.debug(
            "%s skipped: scale=%s native=%sx%s rotation=%s",
            operation,
            self.scale,
            self.native_width,
            self.native_height,
            self.rotation,
        )
        return False

    # ------------------------------------------------------------------
    # Points
    # ------------------------------------------------------------------
    def screen_to_map(self, screen_x: float, screen_y: float) -> Optional[Point]:
        if not self._usable("screen_to_map"):
            return None
        rx = (screen_x - self.offset_x) / self.scale
        ry = (screen_y - self.offset_y) / self.scale
        return unrotate_point(rx, ry, self.rotation, self.native_width, self.native_height)

    def map_to_screen(self, map_x: float, map_y: float) -> Optional[Point]:
        rotated = self.map_to_rotated(map_x, map_y)
        if rotated is None:
            return None
        rx, ry = rotated
        return (rx * self.scale + self.offset_x, ry * self.scale + self.offset_y)

    def map_to_rotated(self, map_x: float, map_y: float) -> Optional[Point]:
        """Return the rotated-bitmap position of a map point (no scale/offset)."""

        if not self._usable("map_to_rotated"):
            return None
        return rotate_point(map_x, map_y, self.rotation, self.native_width, self.native_height)

    # ------------------------------------------------------------------
    # Vectors
    # ------------------------------------------------------------------
    def screen_vector_to_map_vector(self, dx: float, dy: float) -> Optional[Point]:
        """Convert a screen displacement into the matching map displacement."""

        if not self._usable("screen_vector_to_map_vector"):
            return None
        return unrotate_vector(dx / self.scale, dy / self.scale, self.rotation)

    # ------------------------------------------------------------------
    # Batches
    # ------------------------------------------------------------------
    def map_points_to_screen(self, points: np.ndarray) -> Optional[np.ndarray]:
        """Project an ``(N, 2)`` array of map points to screen space in one pass."""

        if not self._usable("map_points_to_screen"):
            return None
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        x = pts[:, 0]
        y = pts[:, 1]
        w = float(self.native_width)
        h = float(self.native_height)
        if self.rotation == 0:
            rx, ry = x, y
        elif self.rotation == 90:
            rx, ry = h - y, x
        elif self.rotation == 180:
            rx, ry = w - x, h - y
        else:
            rx, ry = y, w - x
        return np.column_stack((rx * self.scale + self.offset_x, ry * self.scale + self.offset_y))


__all__ = ["CoordinateTransformer", "Point"]
