"""Settings file management with validation and change notifications."""

from __future__ import annotations

import json
import logging
import os
import sys
from copy import deepcopy
from pathlib import Path
from typing import TYPE_CHECKING, Any, Optional

from jsonschema import ValidationError
from PySide6.QtCore import QObject, Signal

from ..errors import RuleValidationError, SettingsLoadError, SettingsValidationError
from ..models.types import ColorRule
from ..utils.jsonio import read_json, write_json
from ..viewport.state import ViewState
from .schema import DEFAULT_SETTINGS, merge_with_defaults

if TYPE_CHECKING:
    from ..engine import MapEngine

_LOGGER = logging.getLogger(__name__)


def default_settings_path() -> Path:
    """Return the default settings.json location for the current platform."""

    if os.name == "nt":
        base = os.environ.get("APPDATA")
        if base:
            return Path(base) / "SnapSpot" / "settings.json"
        return Path.home() / "AppData" / "Roaming" / "SnapSpot" / "settings.json"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "SnapSpot" / "settings.json"
    base = os.environ.get("XDG_CONFIG_HOME")
    if base:
        return Path(base) / "SnapSpot" / "settings.json"
    return Path.home() / ".config" / "SnapSpot" / "settings.json"


class SettingsManager(QObject):
    """Load, validate and persist viewer settings."""

    settingsChanged = Signal(str, object)

    def __init__(self, path: Path | None = None) -> None:
        super().__init__()
        self._path = path
        self._data: dict[str, Any] = deepcopy(DEFAULT_SETTINGS)

    @property
    def path(self) -> Path:
        return self._path or default_settings_path()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load(self) -> None:
        """Load the settings JSON from disk, creating defaults if missing."""

        path = self.path
        self._path = path
        if path.exists():
            try:
                payload = read_json(path)
            except (OSError, json.JSONDecodeError) as exc:
                raise SettingsLoadError(f"Cannot read settings from {path}: {exc}") from exc
            if not isinstance(payload, dict):
                raise SettingsLoadError(f"Settings file {path} must contain a JSON object")
        else:
            payload = None
        try:
            self._data = merge_with_defaults(payload)
        except ValidationError as exc:
            raise SettingsValidationError(exc.message) from exc
        self._write()

    def get(self, key: str, default: Any | None = None) -> Any:
        """Return the value for *key*, supporting dotted access for nested keys."""

        target = self._data
        parts = key.split(".")
        for index, part in enumerate(parts):
            if not isinstance(target, dict) or part not in target:
                return default
            value = target[part]
            if index == len(parts) - 1:
                return value
            target = value
        return default

    def set(self, key: str, value: Any) -> None:
        """Update *key* with *value*, validate and persist the change.

        An invalid value leaves the in-memory settings untouched.
        """

        def _normalise(payload: Any) -> Any:
            if isinstance(payload, ColorRule):
                return payload.to_dict()
            if isinstance(payload, ViewState):
                return {"scale": payload.scale, "offsetX": payload.offset_x, "offsetY": payload.offset_y}
            if isinstance(payload, dict):
                return {k: _normalise(v) for k, v in payload.items()}
            if isinstance(payload, (list, tuple)):
                return [_normalise(item) for item in payload]
            if isinstance(payload, Path):
                return str(payload)
            return payload

        value = _normalise(value)

        candidate = deepcopy(self._data)
        parts = key.split(".")
        target: dict[str, Any] = candidate
        for part in parts[:-1]:
            branch = target.get(part)
            if not isinstance(branch, dict):
                branch = {}
                target[part] = branch
            target = branch
        target[parts[-1]] = value
        try:
            self._data = merge_with_defaults(candidate)
        except ValidationError as exc:
            raise SettingsValidationError(f"{key}: {exc.message}") from exc
        self._write()
        self.settingsChanged.emit(key, value)

    # ------------------------------------------------------------------
    # Typed accessors
    # ------------------------------------------------------------------
    def color_rules(self) -> list[ColorRule]:
        rules: list[ColorRule] = []
        for entry in self.get("markers.color_rules", []) or []:
            try:
                rules.append(ColorRule.from_mapping(entry))
            except RuleValidationError as exc:
                _LOGGER.warning("Skipping invalid colour rule %r: %s", entry, exc)
        return rules

    def marker_display_size(self) -> str:
        return self.get("markers.display_size", DEFAULT_SETTINGS["markers"]["display_size"])

    def markers_locked(self) -> bool:
        return bool(self.get("markers.locked", False))

    def rotation(self) -> int:
        return int(self.get("view.rotation", 0))

    def view_state(self, map_id: str) -> Optional[ViewState]:
        entry = self.get("view_states", {}).get(map_id)
        if not entry:
            return None
        return ViewState.from_mapping({**entry, "mapId": map_id})

    def save_view_state(self, view: ViewState) -> None:
        if view.map_id is None:
            raise SettingsValidationError("Cannot store a view state without a map id")
        self.set(f"view_states.{view.map_id}", view)

    def apply_to(self, engine: "MapEngine") -> None:
        """Push the stored marker and view preferences into *engine*."""

        engine.set_color_rules(self.color_rules())
        engine.set_marker_display_size(self.marker_display_size())
        engine.set_markers_editable(not self.markers_locked())
        engine.toggle_crosshair(bool(self.get("view.show_crosshair", False)))
        if bool(self.get("view.show_debug_info", False)) != engine.show_debug_info:
            engine.toggle_debug_info()
        engine.set_rotation(self.rotation())

    # ------------------------------------------------------------------
    # Internal utilities
    # ------------------------------------------------------------------
    def _write(self) -> None:
        path = self.path
        self._path = path
        write_json(path, self._data)


__all__ = ["SettingsManager", "default_settings_path"]
