"""Colour string validation shared by rules, settings and drawing surfaces."""

from __future__ import annotations

import re

from PySide6.QtGui import QColor

CSS_RGB = re.compile(
    r"^rgba?\(\s*(\d+)\s*,\s*(\d+)\s*,\s*(\d+)\s*(?:,\s*([0-9]*\.?[0-9]+)\s*)?\)$"
)


def is_valid_color(value: object) -> bool:
    """Return ``True`` for hex/named colours and CSS ``rgb()``/``rgba()``."""

    if not isinstance(value, str) or not value.strip():
        return False
    match = CSS_RGB.match(value.strip())
    if match:
        return all(0 <= int(channel) <= 255 for channel in match.groups()[:3])
    return QColor.isValidColorName(value.strip())


__all__ = ["CSS_RGB", "is_valid_color"]
