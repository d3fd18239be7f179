"""Geocoding helpers for breweries missing coordinates."""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import List, Optional, Sequence

import requests
from geopy.point import Point

from .models import BreweryRecord
from .settings import GeocodeSettings

logger = logging.getLogger(__name__)


@dataclasses.dataclass(slots=True)
class GeocodeResult:
    """Result returned by a geocoding provider."""

    address: str
    latitude: float
    longitude: float
    raw: dict


class NominatimGeocoder:
    """Thin wrapper around the public Nominatim API."""

    def __init__(self, settings: Optional[GeocodeSettings] = None, session: Optional[requests.Session] = None) -> None:
        self.settings = settings or GeocodeSettings()
        self._session = session or requests.Session()
        self._session.headers.update({"User-Agent": "brewery-directory/0.1.0"})

    def geocode(self, query: str) -> Optional[GeocodeResult]:
        response = self._session.get(
            self.settings.provider_url,
            params=self.settings.query_params(query),
            timeout=self.settings.timeout,
        )
        response.raise_for_status()
        items = response.json()
        if not items:
            return None
        item = items[0]
        try:
            point = Point(float(item["lat"]), float(item["lon"]))
        except (KeyError, TypeError, ValueError):
            return None
        return GeocodeResult(
            address=item.get("display_name", query),
            latitude=point.latitude,
            longitude=point.longitude,
            raw=item,
        )


def build_query(brewery: BreweryRecord) -> str:
    parts = [brewery.name, brewery.street, brewery.city, brewery.state, brewery.zip]
    return ", ".join(part for part in parts if part)


def annotate_with_coordinates(
    breweries: Sequence[BreweryRecord], geocoder: Optional[NominatimGeocoder] = None
) -> List[BreweryRecord]:
    """Return ``breweries`` with coordinates filled in where they were missing.

    Records are immutable, so geocoded breweries are replaced by updated copies;
    order is preserved.
    """

    geocoder = geocoder or NominatimGeocoder()
    result: List[BreweryRecord] = []

    for brewery in breweries:
        if brewery.has_coordinates:
            result.append(brewery)
            continue
        query = build_query(brewery)
        if not query:
            result.append(brewery)
            continue
        try:
            found = geocoder.geocode(query)
        except requests.RequestException:
            logger.warning("Geocoding failed for %s", brewery.name, exc_info=True)
            found = None
        if found:
            logger.debug("Geocoded %s -> %s", brewery.name, found.address)
            brewery = dataclasses.replace(brewery, latitude=found.latitude, longitude=found.longitude)
        result.append(brewery)
        pause = getattr(geocoder.settings, "pause_seconds", 1.0) or 0.0
        if pause > 0:
            time.sleep(pause)

    return result
