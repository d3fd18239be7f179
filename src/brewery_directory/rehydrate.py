"""Restore grouping indexes after processed data has crossed a cache boundary.

A JSON round trip turns each grouping index into either a plain object or,
with :func:`dump_processed`, an ordered list of ``[key, records]`` pairs. The
helpers here rebuild real dictionaries deterministically on every read.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Dict, Iterable, Mapping, Tuple

from .models import BreweryRecord, GroupingIndex, ProcessedBreweryData, SiteStatistics

GROUPING_FIELDS = ("by_city", "by_county", "by_type", "by_amenity")


def ensure_maps_are_maps(data: ProcessedBreweryData) -> ProcessedBreweryData:
    """Return ``data`` with every grouping index as a ``dict`` of record tuples.

    Data whose four indexes already hold :class:`BreweryRecord` tuples is
    returned unchanged. Plain objects of row dicts, pair lists and missing
    indexes are rebuilt; a missing index becomes an empty dictionary.
    """

    if all(_is_index(getattr(data, name)) for name in GROUPING_FIELDS):
        return data

    replacements = {name: _as_index(getattr(data, name)) for name in GROUPING_FIELDS}
    return dataclasses.replace(data, **replacements)


def _is_index(value: Any) -> bool:
    if not isinstance(value, dict):
        return False
    return all(
        isinstance(records, tuple) and all(isinstance(record, BreweryRecord) for record in records)
        for records in value.values()
    )


def _as_index(value: Any) -> GroupingIndex:
    if value is None:
        return {}
    if isinstance(value, Mapping):
        items: Iterable[Any] = value.items()
    else:
        items = value

    index: GroupingIndex = {}
    for key, records in items:
        index[str(key)] = tuple(_as_record(record) for record in records)
    return index


def _as_record(value: Any) -> BreweryRecord:
    if isinstance(value, BreweryRecord):
        return value
    return BreweryRecord.from_row(value)


def dump_processed(data: ProcessedBreweryData) -> Dict[str, Any]:
    """Encode processed data as JSON-safe primitives.

    Grouping indexes are written as ordered ``[key, [row, ...]]`` pairs.
    """

    data = ensure_maps_are_maps(data)
    payload: Dict[str, Any] = {
        "breweries": [brewery.to_row() for brewery in data.breweries],
        "cities": list(data.cities),
        "counties": list(data.counties),
        "amenities": list(data.amenities),
        "types": list(data.types),
        "stats": data.stats.to_dict(),
    }
    for name in GROUPING_FIELDS:
        index = getattr(data, name)
        payload[name] = [[key, [record.to_row() for record in records]] for key, records in index.items()]
    return payload


def load_processed(payload: Mapping[str, Any]) -> ProcessedBreweryData:
    """Decode a :func:`dump_processed` payload.

    The grouping indexes are left in their transported shape (tuples of
    pairs); callers pass the result through :func:`ensure_maps_are_maps`.
    """

    grouping: Dict[str, Tuple[Tuple[str, Tuple[BreweryRecord, ...]], ...]] = {}
    for name in GROUPING_FIELDS:
        raw = payload.get(name)
        if raw is None:
            grouping[name] = ()
            continue
        pairs = raw.items() if isinstance(raw, Mapping) else raw
        grouping[name] = tuple(
            (str(key), tuple(BreweryRecord.from_row(row) for row in rows)) for key, rows in pairs
        )

    return ProcessedBreweryData(
        breweries=tuple(BreweryRecord.from_row(row) for row in payload.get("breweries") or ()),
        cities=tuple(payload.get("cities") or ()),
        counties=tuple(payload.get("counties") or ()),
        amenities=tuple(payload.get("amenities") or ()),
        types=tuple(payload.get("types") or ()),
        stats=SiteStatistics.from_dict(payload["stats"]),
        **grouping,
    )
