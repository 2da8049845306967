"""
Rotation mapping between map space and the rotated bitmap.

**Map space** is the coordinate system of the original, unrotated image.  It
is the canonical storage format: markers are persisted there and never change
when the user turns the map.

**Rotated space** is the coordinate system of the bitmap actually drawn on
screen, i.e. the source image turned clockwise by a quarter-turn multiple.
Its width and height swap relative to the source for 90° and 270°.

With ``W``/``H`` the native width/height of the unrotated image, the forward
mapping (map → rotated) is::

      0°: (x, y)
     90°: (H - y, x)
    180°: (W - x, H - y)
    270°: (y, W - x)

The inverse functions below are the exact algebraic inverses of those four
cases.  Displacements (drag vectors) carry no translation component, so the
vector variants only permute and negate axes.
"""

from __future__ import annotations

from ..config import VALID_ROTATIONS
from ..errors import InvalidRotationError


def is_valid_rotation(value: object) -> bool:
    """Return ``True`` when *value* is one of the four supported quarter turns."""

    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value in VALID_ROTATIONS
    if isinstance(value, float) and value.is_integer():
        return int(value) in VALID_ROTATIONS
    return False


def _checked(rotation: int) -> int:
    if not is_valid_rotation(rotation):
        raise InvalidRotationError(
            f"Unsupported rotation {rotation!r}; expected one of {VALID_ROTATIONS}"
        )
    return int(rotation)


def next_rotation(rotation: int) -> int:
    """Return the rotation that follows *rotation* in the toggle cycle."""

    current = _checked(rotation)
    index = VALID_ROTATIONS.index(current)
    return VALID_ROTATIONS[(index + 1) % len(VALID_ROTATIONS)]


def rotated_dimensions(width: int, height: int, rotation: int) -> tuple[int, int]:
    """Return the ``(width, height)`` of a bitmap turned by *rotation* degrees."""

    if _checked(rotation) in (90, 270):
        return height, width
    return width, height


def rotate_point(
    x: float, y: float, rotation: int, width: float, height: float
) -> tuple[float, float]:
    """Map an unrotated map-space point onto the rotated bitmap."""

    rotation = _checked(rotation)
    if rotation == 0:
        return (x, y)
    if rotation == 90:
        return (height - y, x)
    if rotation == 180:
        return (width - x, height - y)
    return (y, width - x)


def unrotate_point(
    rx: float, ry: float, rotation: int, width: float, height: float
) -> tuple[float, float]:
    """Inverse of :func:`rotate_point`: rotated bitmap → unrotated map space."""

    rotation = _checked(rotation)
    if rotation == 0:
        return (rx, ry)
    if rotation == 90:
        # rx = H - y, ry = x
        return (ry, height - rx)
    if rotation == 180:
        return (width - rx, height - ry)
    # rx = y, ry = W - x
    return (width - ry, rx)


def unrotate_vector(dx: float, dy: float, rotation: int) -> tuple[float, float]:
    """Turn a displacement on the rotated bitmap back into map space.

    A drag to the right on a map shown at 90° moves the marker *up* the
    original image, which is why the axes swap here.
    """

    rotation = _checked(rotation)
    if rotation == 0:
        return (dx, dy)
    if rotation == 90:
        return (dy, -dx)
    if rotation == 180:
        return (-dx, -dy)
    return (-dy, dx)


__all__ = [
    "is_valid_rotation",
    "next_rotation",
    "rotate_point",
    "rotated_dimensions",
    "unrotate_point",
    "unrotate_vector",
]
