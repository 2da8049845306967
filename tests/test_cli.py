from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import make_png
from snapspot.cli import app

runner = CliRunner()


@pytest.fixture
def map_image(tmp_path: Path) -> Path:
    path = tmp_path / "floor.png"
    path.write_bytes(make_png(1000, 800))
    return path


@pytest.fixture
def markers_file(tmp_path: Path) -> Path:
    path = tmp_path / "markers.json"
    path.write_text(
        json.dumps(
            {
                "markers": [
                    {"id": "a", "x": 100, "y": 100, "description": "Door"},
                    {"id": "far", "x": 5000, "y": 5000},
                ]
            }
        ),
        encoding="utf-8",
    )
    return path


def test_render_writes_png(qapp, tmp_path: Path, map_image: Path, markers_file: Path) -> None:
    output = tmp_path / "out" / "render.png"
    result = runner.invoke(
        app,
        ["render", str(map_image), "-o", str(output), "--markers", str(markers_file), "--size", "500x400"],
    )
    assert result.exit_code == 0, result.output
    assert output.exists()
    assert "1/2" in result.output

    from PySide6.QtGui import QImage

    rendered = QImage(str(output))
    assert (rendered.width(), rendered.height()) == (500, 400)


def test_render_applies_settings_and_flags(qapp, tmp_path: Path, map_image: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"view": {"rotation": 90}}), encoding="utf-8")
    output = tmp_path / "rotated.png"

    result = runner.invoke(
        app,
        ["render", str(map_image), "-o", str(output), "--settings", str(settings_path), "--crosshair"],
    )
    assert result.exit_code == 0, result.output
    assert "90°" in result.output

    result = runner.invoke(
        app,
        [
            "render",
            str(map_image),
            "-o",
            str(output),
            "--settings",
            str(settings_path),
            "--rotation",
            "180",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "180°" in result.output


def test_render_rejects_bad_arguments(qapp, tmp_path: Path, map_image: Path) -> None:
    output = tmp_path / "out.png"
    assert runner.invoke(app, ["render", str(map_image), "-o", str(output), "--rotation", "45"]).exit_code != 0
    assert runner.invoke(app, ["render", str(map_image), "-o", str(output), "--size", "big"]).exit_code != 0
    assert (
        runner.invoke(app, ["render", str(map_image), "-o", str(output), "--marker-size", "huge"]).exit_code
        != 0
    )
    assert not output.exists()


def test_render_reports_undecodable_image(qapp, tmp_path: Path) -> None:
    broken = tmp_path / "broken.png"
    broken.write_bytes(b"this is not a png")
    result = runner.invoke(app, ["render", str(broken), "-o", str(tmp_path / "out.png")])
    assert result.exit_code == 1


def test_render_reports_invalid_settings(qapp, tmp_path: Path, map_image: Path) -> None:
    settings_path = tmp_path / "settings.json"
    settings_path.write_text(json.dumps({"markers": {"display_size": "huge"}}), encoding="utf-8")
    result = runner.invoke(
        app, ["render", str(map_image), "-o", str(tmp_path / "out.png"), "--settings", str(settings_path)]
    )
    assert result.exit_code == 1


def test_locate_screen_to_map(qapp, map_image: Path) -> None:
    result = runner.invoke(app, ["locate", str(map_image), "50", "50", "--size", "500x400"])
    assert result.exit_code == 0, result.output
    assert "0.5000" in result.output
    assert "100.00, 100.00" in result.output


def test_locate_map_to_screen_rotated(qapp, map_image: Path) -> None:
    result = runner.invoke(
        app,
        ["locate", str(map_image), "100", "100", "--size", "500x400", "--rotation", "90", "--to-screen"],
    )
    assert result.exit_code == 0, result.output
    assert "0.4000" in result.output
    assert "370.00, 40.00" in result.output


@pytest.mark.parametrize(
    "content",
    [
        "{not json",
        json.dumps({"markers": [{"id": "a", "y": 10}]}),
        json.dumps({"markers": [{"id": "a", "x": "left", "y": 10}]}),
        json.dumps({"markers": ["a"]}),
        json.dumps({"markers": "a"}),
    ],
)
def test_render_reports_malformed_markers_file(qapp, tmp_path: Path, map_image: Path, content: str) -> None:
    markers = tmp_path / "markers.json"
    markers.write_text(content, encoding="utf-8")
    output = tmp_path / "out.png"
    result = runner.invoke(app, ["render", str(map_image), "-o", str(output), "--markers", str(markers)])
    assert result.exit_code == 2
    assert isinstance(result.exception, SystemExit)
    assert not output.exists()


def test_render_reports_malformed_rules_file(qapp, tmp_path: Path, map_image: Path) -> None:
    rules = tmp_path / "rules.json"
    rules.write_text("[{", encoding="utf-8")
    result = runner.invoke(app, ["render", str(map_image), "-o", str(tmp_path / "out.png"), "--rules", str(rules)])
    assert result.exit_code == 2
    assert isinstance(result.exception, SystemExit)
