"""Schema helpers for the SnapSpot settings file."""

from __future__ import annotations

from copy import deepcopy
from typing import Any

from jsonschema import Draft202012Validator, FormatChecker

from ..config import DEFAULT_MARKER_SIZE, MARKER_SIZE_PRESETS, SETTINGS_SCHEMA_ID, VALID_ROTATIONS
from ..utils.colors import is_valid_color

_COLOR_RULE: dict[str, Any] = {
    "type": "object",
    "required": ["operator", "color"],
    "properties": {
        "operator": {"enum": ["isEmpty", "isNotEmpty", "contains"]},
        "value": {"type": ["string", "null"]},
        "color": {"type": "string", "minLength": 1, "format": "color"},
    },
    "if": {"properties": {"operator": {"const": "contains"}}},
    "then": {
        "required": ["value"],
        "properties": {"value": {"type": "string", "minLength": 1}},
    },
    "additionalProperties": False,
}

_VIEW_STATE: dict[str, Any] = {
    "type": "object",
    "required": ["scale"],
    "properties": {
        "scale": {"type": "number", "exclusiveMinimum": 0},
        "offsetX": {"type": "number"},
        "offsetY": {"type": "number"},
    },
    "additionalProperties": True,
}

SETTINGS_SCHEMA: dict[str, Any] = {
    "$id": "snapspot/settings.schema.json",
    "type": "object",
    "required": ["schema", "markers", "view", "view_states"],
    "properties": {
        "schema": {"const": SETTINGS_SCHEMA_ID},
        "markers": {
            "type": "object",
            "properties": {
                "color_rules": {"type": "array", "items": _COLOR_RULE},
                "display_size": {"enum": list(MARKER_SIZE_PRESETS)},
                "locked": {"type": "boolean"},
            },
            "additionalProperties": True,
        },
        "view": {
            "type": "object",
            "properties": {
                "rotation": {"enum": list(VALID_ROTATIONS)},
                "show_crosshair": {"type": "boolean"},
                "show_debug_info": {"type": "boolean"},
            },
            "additionalProperties": True,
        },
        "view_states": {
            "type": "object",
            "additionalProperties": _VIEW_STATE,
        },
    },
    "additionalProperties": True,
}

DEFAULT_SETTINGS: dict[str, Any] = {
    "schema": SETTINGS_SCHEMA_ID,
    "markers": {
        "color_rules": [],
        "display_size": DEFAULT_MARKER_SIZE,
        "locked": False,
    },
    "view": {
        "rotation": 0,
        "show_crosshair": False,
        "show_debug_info": False,
    },
    "view_states": {},
}

_format_checker = FormatChecker()
_format_checker.checks("color")(is_valid_color)

_validator = Draft202012Validator(SETTINGS_SCHEMA, format_checker=_format_checker)

# Sections merged key by key instead of being replaced wholesale.
_NESTED_SECTIONS = ("markers", "view", "view_states")


def _drop_empty_rules(rules: list[Any]) -> list[Any]:
    # Rule editors pad the list with empty slots.
    return [rule for rule in rules if rule]


def merge_with_defaults(data: dict[str, Any] | None) -> dict[str, Any]:
    """Merge *data* with :data:`DEFAULT_SETTINGS` and validate the result."""

    merged = deepcopy(DEFAULT_SETTINGS)
    if data:
        for key, value in data.items():
            if key in _NESTED_SECTIONS and isinstance(value, dict):
                target = merged.setdefault(key, {})
                for sub_key, sub_value in value.items():
                    target[sub_key] = deepcopy(sub_value)
                continue
            merged[key] = deepcopy(value)
    rules = merged["markers"].get("color_rules")
    if isinstance(rules, list):
        merged["markers"]["color_rules"] = _drop_empty_rules(rules)
    _validator.validate(merged)
    return merged


def validate_settings(data: dict[str, Any]) -> None:
    """Validate *data* against the settings schema."""

    _validator.validate(data)


__all__ = ["DEFAULT_SETTINGS", "SETTINGS_SCHEMA", "merge_with_defaults", "validate_settings"]
