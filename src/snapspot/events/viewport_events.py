"""Events published by :class:`snapspot.engine.MapEngine`."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from .bus import Event


@dataclass(kw_only=True)
class ImageLoadedEvent(Event):
    map_id: Optional[str]
    native_width: int
    native_height: int


@dataclass(kw_only=True)
class ImageLoadFailedEvent(Event):
    map_id: Optional[str]
    reason: str


@dataclass(kw_only=True)
class ViewportChangedEvent(Event):
    """Scale, offset or surface size changed."""

    scale: float
    offset_x: float
    offset_y: float
    rotation: int


@dataclass(kw_only=True)
class RotationChangedEvent(Event):
    previous: int
    rotation: int
    recentered: bool


@dataclass(kw_only=True)
class MarkerHighlightedEvent(Event):
    # ``None`` once the highlight expired or was cleared.
    marker_id: Optional[str]


@dataclass(kw_only=True)
class ErrorOccurredEvent(Event):
    error: Exception
    severity: str
    context: dict[str, Any] = field(default_factory=dict)


__all__ = [
    "ErrorOccurredEvent",
    "ImageLoadFailedEvent",
    "ImageLoadedEvent",
    "MarkerHighlightedEvent",
    "RotationChangedEvent",
    "ViewportChangedEvent",
]
