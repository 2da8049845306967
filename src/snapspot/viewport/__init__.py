"""Viewport geometry: coordinate transforms and pan/zoom/rotation state."""

from .controller import ViewportController
from .state import ViewportState, ViewState
from .transformer import CoordinateTransformer

__all__ = ["CoordinateTransformer", "ViewState", "ViewportController", "ViewportState"]
