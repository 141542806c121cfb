"""
View transform tests
Screen/image mapping, anchored zoom and scale bounds.
"""

import pytest

from sprite_extraction.config import EngineConfig
from sprite_extraction.core.coordinate_system import ViewTransform
from sprite_extraction.utils.geometry_utils import Point2D


@pytest.fixture
def view():
    return ViewTransform(EngineConfig())


def test_identity_mapping(view):
    assert view.screen_to_image((12, 34)) == Point2D(12, 34)


def test_round_trip_with_pan_and_scale(view):
    view.set_transform(2.5, (40, -10))

    image_point = view.screen_to_image(Point2D(140, 90))
    assert image_point == Point2D(40, 40)
    assert view.image_to_screen(image_point) == Point2D(140, 90)


def test_zoom_keeps_point_under_pointer(view):
    view.set_transform(1.7, (13, -7))
    pointer = Point2D(321.5, 187.25)

    for direction in (1, 1, 1, -1, 1, -1, -1):
        before = view.screen_to_image(pointer)
        assert view.zoom_at(pointer, direction)
        after = view.screen_to_image(pointer)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)


def test_zoom_step_is_multiplicative(view):
    view.zoom_at((0, 0), 1)
    assert view.scale == pytest.approx(1.1)
    view.zoom_at((0, 0), -1)
    assert view.scale == pytest.approx(1.0)


def test_wheel_direction(view):
    assert view.zoom_from_wheel((50, 50), -120)
    assert view.scale > 1.0
    assert view.zoom_from_wheel((50, 50), 120)
    assert view.zoom_from_wheel((50, 50), 120)
    assert view.scale < 1.0


def test_zoom_refused_outside_bounds(view):
    view.set_transform(19.0, (0, 0))
    assert not view.zoom_at((10, 10), 1)
    assert view.scale == 19.0

    view.set_transform(0.105, (5, 5))
    assert not view.zoom_at((10, 10), -1)
    assert view.scale == 0.105
    assert view.pan == Point2D(5, 5)


def test_set_transform_rejects_non_positive_scale(view):
    with pytest.raises(ValueError):
        view.set_transform(0, (0, 0))


def test_pan_and_reset(view):
    view.pan_by(10, -5)
    assert view.screen_to_image((10, -5)) == Point2D(0, 0)

    view.zoom_at((3, 3), 1)
    view.reset()
    assert view.scale == 1.0
    assert view.pan == Point2D(0, 0)

    info = view.get_transformation_info()
    assert info['scale_bounds'] == (0.1, 20.0)
