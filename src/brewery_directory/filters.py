"""Multi-criteria filtering used by the filterable brewery list."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from .hours import is_open_now
from .models import BreweryRecord


@dataclass(slots=True)
class BreweryFilters:
    """Criteria combined with AND; ``None`` leaves a criterion unused."""

    city: Optional[str] = None
    county: Optional[str] = None
    type: Optional[str] = None
    amenity: Optional[str] = None
    open_now: bool = False
    has_website: bool = False
    has_phone: bool = False
    allows_visitors: Optional[bool] = None
    offers_tours: Optional[bool] = None
    beer_to_go: Optional[bool] = None
    has_merch: Optional[bool] = None


_FLAG_FILTERS = ("allows_visitors", "offers_tours", "beer_to_go", "has_merch")


def _same(left: Optional[str], right: str) -> bool:
    return left is not None and left.lower() == right.lower()


def matches_type(brewery: BreweryRecord, wanted: str) -> bool:
    """True when ``wanted`` names one of the brewery's labels or its combined key."""

    if brewery.type is None:
        return False
    wanted = wanted.lower()
    return wanted == brewery.type.grouping_key or any(label.lower() == wanted for label in brewery.type.labels)


def matches(brewery: BreweryRecord, filters: BreweryFilters, now: Optional[datetime] = None) -> bool:
    if filters.city and not _same(brewery.city, filters.city):
        return False
    if filters.county and not _same(brewery.county, filters.county):
        return False
    if filters.type and not matches_type(brewery, filters.type):
        return False
    if filters.amenity:
        needle = filters.amenity.lower()
        if not any(needle in amenity.lower() for amenity in brewery.amenities):
            return False
    if filters.open_now and not is_open_now(brewery, now):
        return False
    if filters.has_website and not brewery.website:
        return False
    if filters.has_phone and not brewery.phone:
        return False
    for name in _FLAG_FILTERS:
        wanted = getattr(filters, name)
        if wanted is not None and getattr(brewery, name) != wanted:
            return False
    return True


def filter_breweries(
    breweries: Iterable[BreweryRecord], filters: BreweryFilters, now: Optional[datetime] = None
) -> List[BreweryRecord]:
    """Return the breweries matching every criterion in ``filters``, in input order."""

    return [brewery for brewery in breweries if matches(brewery, filters, now)]
