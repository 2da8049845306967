import pytest

from snapspot.utils.colors import is_valid_color


@pytest.mark.parametrize(
    "value",
    ["#fff", "#22c55e", "#8022c55e", "red", "transparent", "rgb(1, 2, 3)", "rgba(255, 0, 0, 0.7)"],
)
def test_accepted_colours(value):
    assert is_valid_color(value)


@pytest.mark.parametrize(
    "value",
    ["", "   ", "notacolour", "#12", "rgb(256, 0, 0)", "rgba(1, 2)", None, 42],
)
def test_rejected_colours(value):
    assert not is_valid_color(value)
