from .highlight import HighlightController
from .hit_testing import default_marker_description, marker_at_point
from .style import MarkerStyle, MarkerStyleEngine

__all__ = [
    "HighlightController",
    "MarkerStyle",
    "MarkerStyleEngine",
    "default_marker_description",
    "marker_at_point",
]
