"""Great-circle distance helpers used by nearby queries."""

from __future__ import annotations

import math
from typing import Iterable, List, Tuple

from .models import BreweryRecord

EARTH_RADIUS_MILES = 3959.0


def to_radians(degrees: float) -> float:
    return degrees * math.pi / 180


def haversine_miles(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Return the Haversine distance in miles between two coordinates."""

    d_lat = to_radians(lat2 - lat1)
    d_lon = to_radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) * math.sin(d_lat / 2)
        + math.cos(to_radians(lat1)) * math.cos(to_radians(lat2)) * math.sin(d_lon / 2) * math.sin(d_lon / 2)
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def sort_by_distance(
    breweries: Iterable[BreweryRecord], latitude: float, longitude: float
) -> List[Tuple[BreweryRecord, float]]:
    """Pair each brewery that has coordinates with its distance and sort ascending.

    The sort is stable, so equidistant breweries keep their input order.
    """

    pairs = [
        (brewery, haversine_miles(latitude, longitude, brewery.latitude, brewery.longitude))
        for brewery in breweries
        if brewery.has_coordinates
    ]
    pairs.sort(key=lambda pair: pair[1])
    return pairs


def within_radius(
    breweries: Iterable[BreweryRecord], latitude: float, longitude: float, radius_miles: float
) -> List[BreweryRecord]:
    """Return breweries at most ``radius_miles`` away, nearest first."""

    return [brewery for brewery, distance in sort_by_distance(breweries, latitude, longitude) if distance <= radius_miles]


def format_distance(distance: float) -> str:
    if distance < 1:
        return f"{_round_half_up(distance * 10) / 10:g} mi"
    return f"{_round_half_up(distance)} mi"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
