"""Data models used by SnapSpot."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional
import uuid

from ..config import MARKER_SIZE_PRESETS
from ..errors import RuleValidationError
from ..utils.colors import is_valid_color


class RuleOperator(str, Enum):
    IS_EMPTY = "isEmpty"
    IS_NOT_EMPTY = "isNotEmpty"
    CONTAINS = "contains"


@dataclass(frozen=True, slots=True)
class ColorRule:
    """One entry of the ordered marker colouring rule list."""

    operator: RuleOperator
    color: str
    value: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.operator, RuleOperator):
            try:
                object.__setattr__(self, "operator", RuleOperator(self.operator))
            except ValueError as exc:
                raise RuleValidationError(f"Unknown rule operator: {self.operator!r}") from exc
        if not self.color:
            raise RuleValidationError("Colour rules require a colour")
        if not is_valid_color(self.color):
            raise RuleValidationError(f"Unrecognised rule colour: {self.color!r}")
        if self.operator is RuleOperator.CONTAINS and not self.value:
            raise RuleValidationError("'contains' rules require a non-empty value")

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "ColorRule":
        try:
            operator = data["operator"]
            color = data["color"]
        except (KeyError, TypeError) as exc:
            raise RuleValidationError(f"Malformed colour rule: {data!r}") from exc
        value = data.get("value")
        return cls(operator=operator, color=str(color), value=None if value is None else str(value))

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"operator": self.operator.value, "color": self.color}
        if self.value is not None:
            payload["value"] = self.value
        return payload


@dataclass(slots=True)
class Marker:
    """Annotation pinned to the unrotated map image.

    ``x``/``y`` are expressed in map space, so markers survive rotation
    changes without rewriting.  Whether a marker may be dragged is a property
    of the whole engine (the lock toggle), not of the marker.
    """

    id: str
    x: float
    y: float
    description: str = ""
    has_photos: bool = False

    @classmethod
    def create(cls, x: float, y: float, description: str = "") -> "Marker":
        return cls(id=str(uuid.uuid4()), x=float(x), y=float(y), description=description)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "Marker":
        # Exported markers carry ``photoIds`` rather than a boolean flag.
        has_photos = data.get("hasPhotos")
        if has_photos is None:
            has_photos = bool(data.get("photoIds"))
        return cls(
            id=str(data["id"]),
            x=float(data["x"]),
            y=float(data["y"]),
            description=str(data.get("description") or ""),
            has_photos=bool(has_photos),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "description": self.description,
            "hasPhotos": self.has_photos,
        }


@dataclass(frozen=True, slots=True)
class MapInfo:
    """Metadata describing the map currently shown by an engine."""

    id: Optional[str] = None
    name: str = ""
    width: int = 0
    height: int = 0
    file_type: Optional[str] = None
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class MarkerSize:
    key: str
    radius: float
    font_size_factor: float

    @property
    def font_size(self) -> float:
        return self.radius * self.font_size_factor

    @classmethod
    def preset(cls, key: str) -> "MarkerSize":
        radius, factor = MARKER_SIZE_PRESETS[key]
        return cls(key=key, radius=radius, font_size_factor=factor)


__all__ = ["ColorRule", "MapInfo", "Marker", "MarkerSize", "RuleOperator"]
