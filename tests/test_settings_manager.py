from __future__ import annotations

import json
from pathlib import Path

import pytest

pytest.importorskip("PySide6", reason="PySide6 is required for settings tests", exc_type=ImportError)
pytest.importorskip("PySide6.QtTest", reason="Qt test helpers not available", exc_type=ImportError)

from PySide6.QtTest import QSignalSpy

from snapspot.engine import MapEngine
from snapspot.errors import SettingsLoadError, SettingsValidationError
from snapspot.models.types import ColorRule, RuleOperator
from snapspot.settings import SettingsManager
from snapspot.viewport.state import ViewState


def test_settings_manager_roundtrip(tmp_path: Path, qapp) -> None:
    settings_path = tmp_path / "settings.json"
    manager = SettingsManager(path=settings_path)
    manager.load()
    assert settings_path.exists()
    assert manager.marker_display_size() == "normal"
    spy = QSignalSpy(manager.settingsChanged)
    manager.set("markers.display_size", "large")
    qapp.processEvents()
    assert spy.count() == 1
    assert manager.get("markers.display_size") == "large"
    stored = json.loads(settings_path.read_text(encoding="utf-8"))
    assert stored["markers"]["display_size"] == "large"


def test_nested_updates_preserve_defaults(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.set("view.show_crosshair", True)
    assert manager.get("view.show_crosshair") is True
    assert manager.get("view.rotation") == 0
    assert manager.get("view.missing", "fallback") == "fallback"
    assert manager.get("nope.deeper") is None


def test_existing_file_is_merged_with_defaults(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"view": {"rotation": 180}}), encoding="utf-8")
    manager = SettingsManager(path=settings_path)
    manager.load()
    assert manager.rotation() == 180
    assert manager.markers_locked() is False
    assert manager.get("schema") == "snapspot/settings@1"


@pytest.mark.parametrize("content", ["{not json", "[1, 2, 3]"])
def test_unreadable_file_raises_load_error(tmp_path: Path, content: str) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(content, encoding="utf-8")
    with pytest.raises(SettingsLoadError):
        SettingsManager(path=settings_path).load()


def test_invalid_file_raises_validation_error(tmp_path: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"view": {"rotation": 45}}), encoding="utf-8")
    with pytest.raises(SettingsValidationError):
        SettingsManager(path=settings_path).load()


def test_invalid_value_leaves_settings_untouched(tmp_path: Path, qapp) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    spy = QSignalSpy(manager.settingsChanged)
    with pytest.raises(SettingsValidationError):
        manager.set("markers.display_size", "huge")
    with pytest.raises(SettingsValidationError):
        manager.set("markers.color_rules", [{"operator": "contains", "color": "#fff"}])
    assert manager.marker_display_size() == "normal"
    assert manager.color_rules() == []
    assert spy.count() == 0


def test_color_rules_are_normalised(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.set(
        "markers.color_rules",
        [ColorRule(RuleOperator.CONTAINS, "#22c55e", "done"), None, {"operator": "isEmpty", "color": "#000"}],
    )
    rules = manager.color_rules()
    assert [rule.operator for rule in rules] == [RuleOperator.CONTAINS, RuleOperator.IS_EMPTY]
    assert manager.get("markers.color_rules")[0] == {"operator": "contains", "color": "#22c55e", "value": "done"}


def test_view_states_are_stored_per_map(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.save_view_state(ViewState(scale=2.0, offset_x=-10.0, offset_y=5.0, map_id="floor-1"))
    assert manager.view_state("floor-1") == ViewState(2.0, -10.0, 5.0, "floor-1")
    assert manager.view_state("floor-2") is None
    with pytest.raises(SettingsValidationError):
        manager.save_view_state(ViewState(scale=1.0, offset_x=0.0, offset_y=0.0))

    reloaded = SettingsManager(path=tmp_path / "settings.json")
    reloaded.load()
    assert reloaded.view_state("floor-1").scale == 2.0


def test_apply_to_engine(tmp_path: Path, qapp) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    manager.set("markers.color_rules", [{"operator": "isNotEmpty", "color": "#f97316"}])
    manager.set("markers.display_size", "extraLarge")
    manager.set("markers.locked", True)
    manager.set("view.rotation", 90)
    manager.set("view.show_debug_info", True)

    engine = MapEngine(surface_size=(400, 300))
    manager.apply_to(engine)

    assert [rule.color for rule in engine.color_rules] == ["#f97316"]
    assert engine.marker_size.key == "extraLarge"
    assert not engine.markers_editable
    assert engine.rotation == 90
    assert engine.show_debug_info
    assert not engine.show_crosshair
    engine.dispose()


def test_unparseable_rule_colour_is_rejected(tmp_path: Path) -> None:
    manager = SettingsManager(path=tmp_path / "settings.json")
    manager.load()
    with pytest.raises(SettingsValidationError):
        manager.set("markers.color_rules", [{"operator": "isEmpty", "color": "notacolour"}])
    assert manager.color_rules() == []

    settings_path = tmp_path / "other.json"
    settings_path.write_text(
        json.dumps({"markers": {"color_rules": [{"operator": "isEmpty", "color": "rgb(999, 0, 0)"}]}}),
        encoding="utf-8",
    )
    with pytest.raises(SettingsValidationError):
        SettingsManager(path=settings_path).load()
