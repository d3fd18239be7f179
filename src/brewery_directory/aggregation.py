"""Build the grouping indexes, unique-value lists and statistics for the site."""

from __future__ import annotations

import logging
import math
import time
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from .models import BreweryRecord, GroupingIndex, ProcessedBreweryData, SiteStatistics, normalize_key

logger = logging.getLogger(__name__)


class _UniqueValues:
    """Original-cased values deduplicated by normalised key, first seen wins."""

    def __init__(self) -> None:
        self._labels: Dict[str, str] = {}

    def add(self, value: str) -> None:
        self._labels.setdefault(normalize_key(value), value)

    def __len__(self) -> int:
        return len(self._labels)

    def sorted(self) -> Tuple[str, ...]:
        return tuple(sorted(self._labels.values()))


def _append(index: Dict[str, List[BreweryRecord]], key: str, brewery: BreweryRecord) -> None:
    bucket = index.get(key)
    if bucket is None:
        bucket = index[key] = []
    bucket.append(brewery)


def _freeze(index: Dict[str, List[BreweryRecord]]) -> GroupingIndex:
    return {key: tuple(records) for key, records in index.items()}


def aggregate(breweries: Sequence[BreweryRecord]) -> ProcessedBreweryData:
    """Process the raw record list into lookup structures and statistics.

    The result depends only on ``breweries`` and its order (apart from the
    ``lastUpdated`` timestamp) and is assembled in full before it is returned.
    """

    started = time.perf_counter()
    breweries = tuple(breweries)

    by_city: Dict[str, List[BreweryRecord]] = {}
    by_county: Dict[str, List[BreweryRecord]] = {}
    by_type: Dict[str, List[BreweryRecord]] = {}
    by_amenity: Dict[str, List[BreweryRecord]] = {}

    cities = _UniqueValues()
    counties = _UniqueValues()
    types = _UniqueValues()
    amenities = _UniqueValues()

    for brewery in breweries:
        if brewery.city:
            _append(by_city, normalize_key(brewery.city), brewery)
            cities.add(brewery.city)

        if brewery.county:
            _append(by_county, normalize_key(brewery.county), brewery)
            counties.add(brewery.county)

        if brewery.type is not None:
            _append(by_type, brewery.type.grouping_key, brewery)
            for label in brewery.type.labels:
                types.add(label)

        for amenity in brewery.amenities:
            _append(by_amenity, normalize_key(amenity), brewery)
            amenities.add(amenity)

    stats = compute_stats(breweries, cities=len(cities), counties=len(counties))

    processed = ProcessedBreweryData(
        breweries=breweries,
        by_city=_freeze(by_city),
        by_county=_freeze(by_county),
        by_type=_freeze(by_type),
        by_amenity=_freeze(by_amenity),
        cities=cities.sorted(),
        counties=counties.sorted(),
        amenities=amenities.sorted(),
        types=types.sorted(),
        stats=stats,
    )

    logger.debug(
        "Processed %d breweries in %.1fms (cities=%d counties=%d types=%d amenities=%d)",
        len(breweries),
        (time.perf_counter() - started) * 1000,
        len(cities),
        len(counties),
        len(types),
        len(amenities),
    )
    return processed


def compute_stats(breweries: Sequence[BreweryRecord], cities: int, counties: int) -> SiteStatistics:
    """Roll the record list up into the site-wide statistics summary."""

    by_type = _LabelledCounter()
    by_county = _LabelledCounter()
    city_keys = set()

    for brewery in breweries:
        # A brewery with several types counts once towards each of them.
        for label in brewery.type_labels:
            by_type.increment(label)
        if brewery.county:
            by_county.increment(brewery.county)
        if brewery.city:
            city_keys.add(normalize_key(brewery.city))

    dated = [brewery for brewery in breweries if brewery.opened_date]
    dated.sort(key=lambda brewery: parse_opened_date(brewery.opened_date))
    newest = dated[-1].name if dated else None
    oldest = dated[0].name if dated else None

    average = len(breweries) / len(city_keys) if city_keys else 0

    return SiteStatistics(
        total_breweries=len(breweries),
        total_cities=cities,
        total_counties=counties,
        breweries_by_type=by_type.as_dict(),
        breweries_by_county=by_county.as_dict(),
        average_breweries_per_city=average,
        newest_brewery=newest,
        oldest_brewery=oldest,
        last_updated=_utc_now_iso(),
    )


class _LabelledCounter:
    def __init__(self) -> None:
        self._labels: Dict[str, str] = {}
        self._counts: Dict[str, int] = {}

    def increment(self, value: str) -> None:
        key = normalize_key(value)
        self._labels.setdefault(key, value)
        self._counts[key] = self._counts.get(key, 0) + 1

    def as_dict(self) -> Dict[str, int]:
        return {self._labels[key]: count for key, count in self._counts.items()}


def parse_opened_date(value: Optional[str]) -> float:
    """Return a POSIX timestamp for an opened date, or NaN when it cannot be parsed.

    NaN compares false against everything, so malformed dates stay wherever the
    stable sort leaves them instead of raising.
    """

    if not value:
        return math.nan
    text = value.strip()
    if text.endswith("Z"):
        text = f"{text[:-1]}+00:00"
    parsed: Optional[datetime] = None
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        for fmt in ("%Y", "%Y-%m"):
            try:
                parsed = datetime.strptime(text, fmt)
                break
            except ValueError:
                continue
    if parsed is None:
        return math.nan
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")
