"""Immutable viewport state values."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Any, Mapping, Optional

from ..config import DEFAULT_MAX_SCALE, DEFAULT_MIN_SCALE
from ..errors import InvalidRotationError
from .geometry import is_valid_rotation


@dataclass(frozen=True)
class ViewportState:
    """Describe how the rotated bitmap is positioned on the drawing surface.

    ``offset_x``/``offset_y`` are the screen position of the rotated bitmap's
    top-left corner, so they are only meaningful for the bitmap currently
    loaded.  ``scale`` is clamped into ``[min_scale, max_scale]`` on
    construction; every transition goes through :meth:`evolve` and therefore
    keeps the invariant.
    """

    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    rotation: int = 0
    min_scale: float = DEFAULT_MIN_SCALE
    max_scale: float = DEFAULT_MAX_SCALE
    surface_width: int = 0
    surface_height: int = 0

    def __post_init__(self) -> None:
        if not is_valid_rotation(self.rotation):
            raise InvalidRotationError(f"Unsupported rotation {self.rotation!r}")
        if self.min_scale <= 0.0 or self.min_scale > self.max_scale:
            raise ValueError(
                f"Invalid scale bounds [{self.min_scale}, {self.max_scale}]"
            )
        object.__setattr__(self, "rotation", int(self.rotation))
        object.__setattr__(self, "scale", self.clamp_scale(self.scale))

    def clamp_scale(self, value: float) -> float:
        """Clamp *value* into this state's scale bounds."""

        if not math.isfinite(value):
            return self.min_scale
        return max(self.min_scale, min(self.max_scale, float(value)))

    @property
    def viewport_center(self) -> tuple[float, float]:
        return (self.surface_width / 2.0, self.surface_height / 2.0)

    @property
    def has_surface(self) -> bool:
        return self.surface_width > 0 and self.surface_height > 0

    def evolve(self, **changes: Any) -> "ViewportState":
        """Return a copy with *changes* applied and the invariants re-checked."""

        return replace(self, **changes)


@dataclass(frozen=True)
class ViewState:
    """Snapshot of the pan/zoom state persisted alongside a map."""

    scale: float
    offset_x: float
    offset_y: float
    map_id: Optional[str] = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ViewState":
        return cls(
            scale=float(data["scale"]),
            offset_x=float(data.get("offsetX", 0.0)),
            offset_y=float(data.get("offsetY", 0.0)),
            map_id=data.get("mapId"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "scale": self.scale,
            "offsetX": self.offset_x,
            "offsetY": self.offset_y,
            "mapId": self.map_id,
        }


__all__ = ["ViewState", "ViewportState"]
