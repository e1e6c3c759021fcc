import pytest

from rfcache.utils.geo import METERS_PER_DEGREE_LAT, bounding_box, haversine


def test_haversine_one_degree_of_latitude():
    assert haversine((0.0, 0.0), (1.0, 0.0)) == pytest.approx(111195, rel=1e-3)


def test_haversine_same_point():
    assert haversine((48.85, 2.35), (48.85, 2.35)) == 0.0


def test_bounding_box_at_equator():
    bb = bounding_box(0.0, 0.0, METERS_PER_DEGREE_LAT)
    assert bb.south == pytest.approx(-1.0)
    assert bb.north == pytest.approx(1.0)
    assert bb.west == pytest.approx(-1.0)
    assert bb.east == pytest.approx(1.0)


def test_bounding_box_widens_with_latitude():
    bb = bounding_box(60.0, 10.0, 1000.0)
    # a degree of longitude is half as long at 60 degrees
    assert (bb.east - bb.west) == pytest.approx(2 * (bb.north - bb.south), rel=1e-6)


def test_bounding_box_clipped_at_pole():
    bb = bounding_box(89.99, 0.0, 10000.0)
    assert bb.north == 90.0
    assert bb.south < 89.99
