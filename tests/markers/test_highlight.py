"""Timed marker highlight driven by the virtual clock."""

import pytest

from snapspot.markers.highlight import HighlightController
from snapspot.utils.scheduling import ManualScheduler


@pytest.fixture
def setup():
    scheduler = ManualScheduler()
    changes = []
    known = {"a", "b"}
    controller = HighlightController(
        scheduler,
        marker_exists=lambda marker_id: marker_id in known,
        on_changed=changes.append,
    )
    return scheduler, controller, changes


def test_highlight_expires_after_duration(setup):
    scheduler, controller, changes = setup
    assert controller.highlight("a")
    assert controller.is_highlighted("a")
    assert changes == ["a"]

    scheduler.advance(4999)
    assert controller.highlighted_id == "a"
    scheduler.advance(1)
    assert controller.highlighted_id is None
    assert changes == ["a", None]


def test_new_highlight_restarts_window(setup):
    scheduler, controller, changes = setup
    controller.highlight("a")
    scheduler.advance(3000)
    controller.highlight("b")
    assert scheduler.pending == 1
    scheduler.advance(3000)
    assert controller.highlighted_id == "b"
    scheduler.advance(2000)
    assert controller.highlighted_id is None
    assert changes == ["a", "b", None]


def test_rehighlighting_same_marker_restarts_window(setup):
    scheduler, controller, _ = setup
    controller.highlight("a")
    scheduler.advance(4000)
    controller.highlight("a")
    scheduler.advance(4000)
    assert controller.highlighted_id == "a"


def test_unknown_marker_is_full_no_op(setup, caplog):
    scheduler, controller, changes = setup
    controller.highlight("a")
    scheduler.advance(1000)
    assert not controller.highlight("zzz")
    assert controller.highlighted_id == "a"
    assert changes == ["a"]
    assert scheduler.pending == 1
    assert "not found" in caplog.text
    scheduler.advance(4000)
    assert controller.highlighted_id is None


def test_clear_cancels_timer(setup):
    scheduler, controller, changes = setup
    controller.highlight("a")
    controller.clear()
    assert scheduler.pending == 0
    assert changes == ["a", None]
    controller.clear()
    assert changes == ["a", None]
