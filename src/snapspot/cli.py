"""Typer-based CLI entry point."""

from __future__ import annotations

import functools
import json
import os
from pathlib import Path
from typing import Any, Optional

import typer
from rich import print
from rich.table import Table

from .config import VALID_ROTATIONS
from .engine import MapEngine
from .errors import SettingsError, SnapSpotError
from .models.types import MapInfo, Marker
from .utils.jsonio import read_json
from .utils.logging import configure_logging
from .utils.scheduling import ManualScheduler

app = typer.Typer(help="Render and inspect annotated map viewports")

_DEFAULT_SIZE = "1024x768"


def _handle_errors(func):
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SettingsError as exc:
            typer.echo(f"Settings error: {exc}", err=True)
            raise typer.Exit(1) from exc
        except SnapSpotError as exc:
            typer.echo(f"Error: {exc}", err=True)
            raise typer.Exit(1) from exc

    return wrapper


def _ensure_qt_app(headless: bool = True):
    if headless:
        os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
    from PySide6.QtWidgets import QApplication

    return QApplication.instance() or QApplication([])


def _parse_size(value: str) -> tuple[int, int]:
    try:
        width, height = (int(part) for part in value.lower().split("x", 1))
    except ValueError as exc:
        raise typer.BadParameter(f"Expected WIDTHxHEIGHT, got {value!r}") from exc
    if width <= 0 or height <= 0:
        raise typer.BadParameter(f"Size must be positive, got {value!r}")
    return width, height


def _check_rotation(value: int) -> int:
    if value not in VALID_ROTATIONS:
        raise typer.BadParameter(f"Rotation must be one of {', '.join(map(str, VALID_ROTATIONS))}")
    return value


def _read_list(path: Path, key: str) -> list[Any]:
    try:
        payload = read_json(path)
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Cannot read {path}: {exc}") from exc
    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise typer.BadParameter(f"{path} must contain a JSON list or an object with '{key}'")
    return payload


def _read_markers(path: Path) -> list[Marker]:
    markers = []
    for index, entry in enumerate(_read_list(path, "markers")):
        try:
            markers.append(Marker.from_mapping(entry))
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise typer.BadParameter(f"Invalid marker #{index} in {path}: {exc!r}") from exc
    return markers


def _new_engine(size: tuple[int, int]) -> MapEngine:
    # Renders are one-shot, so highlights never need to expire here.
    engine = MapEngine(scheduler=ManualScheduler(), surface_size=size)
    engine.resize(*size)
    return engine


def _load(engine: MapEngine, image: Path) -> None:
    engine.load_image(image, MapInfo(id=image.stem, name=image.name))


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    configure_logging("DEBUG" if verbose else "WARNING")


@app.command()
@_handle_errors
def render(
    image: Path = typer.Argument(..., exists=True, dir_okay=False, help="Map image to render"),
    output: Path = typer.Option(..., "--output", "-o", help="PNG file to write"),
    markers: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Markers JSON"),
    rules: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Colour rules JSON"),
    settings: Optional[Path] = typer.Option(None, dir_okay=False, help="Settings file to apply"),
    rotation: Optional[int] = typer.Option(None, help="Rotation in degrees (0, 90, 180, 270)"),
    size: str = typer.Option(_DEFAULT_SIZE, help="Surface size as WIDTHxHEIGHT"),
    marker_size: Optional[str] = typer.Option(None, help="normal, large or extraLarge"),
    focus: Optional[str] = typer.Option(None, help="Centre and highlight this marker id"),
    crosshair: Optional[bool] = typer.Option(None, "--crosshair/--no-crosshair", help="Draw the centre crosshair"),
    debug: Optional[bool] = typer.Option(None, "--debug/--no-debug", help="Draw the debug overlay"),
    locked: Optional[bool] = typer.Option(None, "--locked/--unlocked", help="Render markers as locked"),
) -> None:
    """Render IMAGE with its markers to a PNG file.

    Options given on the command line override values from ``--settings``.
    """

    if rotation is not None:
        _check_rotation(rotation)
    dimensions = _parse_size(size)
    _ensure_qt_app()
    from .rendering.surface import QImageSurface
    from .settings import SettingsManager

    engine = _new_engine(dimensions)
    try:
        if settings is not None:
            manager = SettingsManager(settings)
            manager.load()
            manager.apply_to(engine)
        if rotation is not None:
            engine.set_rotation(rotation)
        _load(engine, image)

        if markers is not None:
            engine.set_markers(_read_markers(markers))
        if rules is not None and not engine.set_color_rules(_read_list(rules, "rules")):
            raise typer.BadParameter(f"Invalid colour rules in {rules}")
        if marker_size is not None and not engine.set_marker_display_size(marker_size):
            raise typer.BadParameter(f"Unknown marker size {marker_size!r}")
        if locked is not None:
            engine.set_markers_editable(not locked)
        if crosshair is not None:
            engine.toggle_crosshair(crosshair)
        if debug is not None and debug != engine.show_debug_info:
            engine.toggle_debug_info()
        if focus is not None and not engine.focus_marker(focus):
            raise typer.BadParameter(f"Marker {focus!r} not found")

        state = engine.state
        surface = QImageSurface(state.surface_width, state.surface_height)
        drawn = engine.render(surface)
        output.parent.mkdir(parents=True, exist_ok=True)
        if not surface.save(output):
            typer.echo(f"Error: could not write {output}", err=True)
            raise typer.Exit(1)
        print(
            f"[green]Rendered {output} "
            f"(scale {state.scale:.3f}, rotation {state.rotation}°, "
            f"{len(drawn)}/{len(engine.markers)} markers visible)"
        )
    finally:
        engine.dispose()


@app.command()
@_handle_errors
def locate(
    image: Path = typer.Argument(..., exists=True, dir_okay=False),
    x: float = typer.Argument(...),
    y: float = typer.Argument(...),
    rotation: int = typer.Option(0, help="Rotation in degrees (0, 90, 180, 270)"),
    size: str = typer.Option(_DEFAULT_SIZE, help="Surface size as WIDTHxHEIGHT"),
    to_screen: bool = typer.Option(False, "--to-screen", help="Treat X Y as map coordinates"),
) -> None:
    """Convert a screen point to map space (or the reverse) for a fitted view."""

    _check_rotation(rotation)
    dimensions = _parse_size(size)
    _ensure_qt_app()
    engine = _new_engine(dimensions)
    engine.set_rotation(rotation)
    try:
        _load(engine, image)
        if to_screen:
            result = engine.map_to_screen(x, y)
            source_label, target_label = "map", "screen"
        else:
            result = engine.screen_to_map(x, y)
            source_label, target_label = "screen", "map"
        if result is None:
            typer.echo("Error: coordinates could not be converted", err=True)
            raise typer.Exit(1)
        state = engine.state
        table = Table(show_header=False)
        table.add_row("scale", f"{state.scale:.4f}")
        table.add_row("offset", f"{state.offset_x:.2f}, {state.offset_y:.2f}")
        table.add_row("rotation", f"{state.rotation}°")
        table.add_row(source_label, f"{x:.2f}, {y:.2f}")
        table.add_row(target_label, f"{result[0]:.2f}, {result[1]:.2f}")
        print(table)
    finally:
        engine.dispose()


@app.command()
@_handle_errors
def view(
    image: Path = typer.Argument(..., exists=True, dir_okay=False),
    markers: Optional[Path] = typer.Option(None, exists=True, dir_okay=False, help="Markers JSON"),
    rotation: int = typer.Option(0, help="Rotation in degrees (0, 90, 180, 270)"),
) -> None:  # pragma: no cover - interactive
    """Open IMAGE in an interactive window."""

    _check_rotation(rotation)
    qt_app = _ensure_qt_app(headless=False)
    from .gui.map_canvas import MapCanvas

    canvas = MapCanvas()
    canvas.setWindowTitle(f"SnapSpot - {image.name}")
    canvas.resize(1024, 768)
    canvas.engine.set_rotation(rotation)
    if markers is not None:
        canvas.engine.set_markers(_read_markers(markers))
    canvas.load_image_async(image, MapInfo(id=image.stem, name=image.name))
    canvas.show()
    raise typer.Exit(qt_app.exec())


if __name__ == "__main__":  # pragma: no cover
    app()
