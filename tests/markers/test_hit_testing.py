from snapspot.markers.hit_testing import default_marker_description, marker_at_point
from snapspot.models.types import Marker
from snapspot.viewport.transformer import CoordinateTransformer


def _transformer(rotation=0):
    return CoordinateTransformer(
        scale=0.5, offset_x=0.0, offset_y=0.0, rotation=rotation, native_width=1000, native_height=800
    )


def test_hit_returns_topmost_marker():
    lower = Marker(id="lower", x=100.0, y=100.0)
    upper = Marker(id="upper", x=110.0, y=100.0)
    hit = marker_at_point([lower, upper], _transformer(), 52.0, 50.0, 12.0)
    assert hit is upper


def test_miss_outside_radius():
    marker = Marker(id="m", x=100.0, y=100.0)
    assert marker_at_point([marker], _transformer(), 50.0, 63.0, 12.0) is None
    assert marker_at_point([marker], _transformer(), 50.0, 62.0, 12.0) is marker


def test_hit_follows_rotation():
    marker = Marker(id="m", x=100.0, y=100.0)
    # (H - y, x) * 0.5 = (350, 50)
    assert marker_at_point([marker], _transformer(90), 350.0, 50.0, 12.0) is marker
    assert marker_at_point([marker], _transformer(90), 50.0, 50.0, 12.0) is None


def test_no_transformer_means_no_hit():
    assert marker_at_point([Marker(id="m", x=0.0, y=0.0)], None, 0.0, 0.0, 12.0) is None


def test_default_description_rounds_coordinates():
    assert default_marker_description(12.4, 99.6) == "Marker at 12, 100"
