"""Default configuration values for SnapSpot."""

from __future__ import annotations

from typing import Final

# ---------------------------------------------------------------------------
# Viewport
# ---------------------------------------------------------------------------

# Only quarter turns are supported.  The order doubles as the cycle used by the
# rotation toggle button.
VALID_ROTATIONS: Final[tuple[int, ...]] = (0, 90, 180, 270)

DEFAULT_MIN_SCALE: Final[float] = 0.1
DEFAULT_MAX_SCALE: Final[float] = 5.0

# ``fit_to_screen`` never magnifies a small map beyond its native resolution.
FIT_MAX_SCALE: Final[float] = 1.0

ZOOM_STEP_FACTOR: Final[float] = 1.2
WHEEL_ZOOM_FACTOR: Final[float] = 1.1

# Scale used when jumping to a marker from search results.
FOCUS_MARKER_SCALE: Final[float] = 1.5

# The drawing surface never shrinks below this many pixels per axis.
MIN_SURFACE_SIZE: Final[int] = 100

# Scale comparisons within this tolerance are treated as "no change".
SCALE_EPSILON: Final[float] = 1e-6

# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------

HIGHLIGHT_DURATION_MS: Final[int] = 5000
HIGHLIGHT_RING_FACTOR: Final[float] = 1.5
HIGHLIGHT_RING_WIDTH: Final[float] = 4.0
HIGHLIGHT_RING_COLOR: Final[str] = "#3b82f6"

MARKER_BORDER_WIDTH: Final[float] = 2.0
MARKER_CULL_MARGIN: Final[float] = 20.0
MARKER_FONT_FAMILY: Final[str] = "Arial"

# ``(radius, font size factor)`` for each display size preset.
MARKER_SIZE_PRESETS: Final[dict[str, tuple[float, float]]] = {
    "normal": (12.0, 1.0),
    "large": (18.0, 1.2),
    "extraLarge": (24.0, 1.4),
}
DEFAULT_MARKER_SIZE: Final[str] = "normal"

CUSTOM_RULE_TEXT_COLOR: Final[str] = "#ffffff"

# ---------------------------------------------------------------------------
# Overlays
# ---------------------------------------------------------------------------

CROSSHAIR_ARM_LENGTH: Final[float] = 15.0
CROSSHAIR_LINE_WIDTH: Final[float] = 1.0
CROSSHAIR_COLOR: Final[str] = "rgba(255, 0, 0, 0.7)"

PLACEHOLDER_BACKGROUND: Final[str] = "#f8fafc"
PLACEHOLDER_FRAME_COLOR: Final[str] = "#e2e8f0"
PLACEHOLDER_FRAME_INSET: Final[float] = 20.0
PLACEHOLDER_TITLE_COLOR: Final[str] = "#0f172a"
PLACEHOLDER_MUTED_COLOR: Final[str] = "#64748b"

EMPTY_STATE_BACKGROUND: Final[str] = "#f0f0f0"

DEBUG_TEXT_COLOR: Final[str] = "rgba(0, 0, 0, 0.8)"
DEBUG_FONT_SIZE: Final[float] = 12.0
DEBUG_LINE_HEIGHT: Final[float] = 16.0
DEBUG_PADDING: Final[float] = 10.0

SETTINGS_SCHEMA_ID: Final[str] = "snapspot/settings@1"
