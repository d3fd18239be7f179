import math

import pytest

from brewery_directory.geo import EARTH_RADIUS_MILES, format_distance, haversine_miles, sort_by_distance, within_radius


def test_zero_distance():
    assert haversine_miles(39.29, -76.61, 39.29, -76.61) == 0


def test_one_degree_of_latitude():
    expected = EARTH_RADIUS_MILES * math.pi / 180
    assert haversine_miles(39.0, -77.0, 40.0, -77.0) == pytest.approx(expected)


def test_distance_is_symmetric():
    baltimore = (39.2904, -76.6122)
    frederick = (39.4143, -77.4105)

    there = haversine_miles(*baltimore, *frederick)
    back = haversine_miles(*frederick, *baltimore)

    assert there == pytest.approx(back)
    assert 40 < there < 50


def test_sort_by_distance_skips_breweries_without_coordinates(make_brewery):
    far = make_brewery("far", latitude=39.5, longitude=-77.0)
    near = make_brewery("near", latitude=39.1, longitude=-77.0)
    nowhere = make_brewery("nowhere")

    pairs = sort_by_distance([far, nowhere, near], 39.0, -77.0)

    assert [brewery.id for brewery, _ in pairs] == ["near", "far"]
    assert pairs[0][1] < pairs[1][1]


def test_within_radius_is_inclusive(make_brewery):
    brewery = make_brewery("edge", latitude=40.0, longitude=-77.0)
    radius = haversine_miles(39.0, -77.0, 40.0, -77.0)

    assert within_radius([brewery], 39.0, -77.0, radius) == [brewery]
    assert within_radius([brewery], 39.0, -77.0, radius - 0.01) == []


@pytest.mark.parametrize(
    "distance, text",
    [(0.0, "0 mi"), (0.44, "0.4 mi"), (0.96, "1 mi"), (3.2, "3 mi"), (12.5, "13 mi")],
)
def test_format_distance(distance, text):
    assert format_distance(distance) == text
