"""Cached accessors that every page generator reads brewery data through."""

from __future__ import annotations

import asyncio
import functools
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Protocol

from .aggregation import aggregate
from .cache import IDENTITY, Codec, MemoryCache
from .geo import within_radius
from .geocode import NominatimGeocoder, annotate_with_coordinates
from .models import BreweryRecord, GroupingIndex, ProcessedBreweryData, SiteStatistics, normalize_key
from .rehydrate import dump_processed, ensure_maps_are_maps, load_processed
from .settings import DirectorySettings

logger = logging.getLogger(__name__)

RECORDS = Codec(
    encode=lambda breweries: [brewery.to_row() for brewery in breweries],
    decode=lambda rows: [BreweryRecord.from_row(row) for row in rows],
)
PROCESSED = Codec(encode=dump_processed, decode=lambda payload: ensure_maps_are_maps(load_processed(payload)))
STATS = Codec(encode=SiteStatistics.to_dict, decode=SiteStatistics.from_dict)


class BreweryFetcher(Protocol):
    async def fetch_all_async(self) -> List[BreweryRecord]:
        ...


def cached_query(key: str, codec: Codec = IDENTITY) -> Callable:
    """Cache a :class:`BreweryDirectory` coroutine method under ``key``.

    Each distinct argument tuple gets its own entry; all entries share the
    directory's revalidation window and tags.
    """

    def decorator(method: Callable[..., Awaitable[Any]]) -> Callable[..., Awaitable[Any]]:
        @functools.wraps(method)
        async def wrapper(self: "BreweryDirectory", *args: Any) -> Any:
            cached = self._wrapped.get(key)
            if cached is None:
                cached = self._wrapped[key] = self.cache.cached(
                    key,
                    functools.partial(method, self),
                    ttl=self.settings.cache.revalidate_seconds,
                    tags=self.settings.cache.tags,
                    codec=codec,
                )
            return await cached(*args)

        return wrapper

    return decorator


class BreweryDirectory:
    """Read-only view over the brewery table.

    The fetcher and cache are injected so the directory can run against a
    fake store and a fresh cache in tests.
    """

    def __init__(
        self,
        fetcher: BreweryFetcher,
        cache: Optional[MemoryCache] = None,
        settings: Optional[DirectorySettings] = None,
        geocoder: Optional[NominatimGeocoder] = None,
    ) -> None:
        self.fetcher = fetcher
        self.settings = settings or DirectorySettings()
        self.cache = cache if cache is not None else MemoryCache(serialize=self.settings.cache.serialize)
        self.geocoder = geocoder
        self._wrapped: Dict[str, Callable[..., Awaitable[Any]]] = {}

    @classmethod
    def from_settings(cls, settings: Optional[DirectorySettings] = None) -> "BreweryDirectory":
        from .fetcher import SupabaseBreweryFetcher

        settings = settings or DirectorySettings()
        geocoder = NominatimGeocoder(settings.geocode) if settings.geocode.enabled else None
        return cls(SupabaseBreweryFetcher(settings.supabase), settings=settings, geocoder=geocoder)

    def invalidate(self, tag: Optional[str] = None) -> int:
        """Drop every cached entry for ``tag`` (defaults to all directory tags)."""

        tags = (tag,) if tag else self.settings.cache.tags
        return sum(self.cache.invalidate_tag(name) for name in tags)

    @cached_query("brewery-data", RECORDS)
    async def get_all_brewery_data(self) -> List[BreweryRecord]:
        """Every brewery, with nested beers, fetched once per revalidation window."""

        breweries = await self.fetcher.fetch_all_async()
        if self.geocoder is not None:
            breweries = await asyncio.to_thread(annotate_with_coordinates, breweries, self.geocoder)
        return list(breweries)

    @cached_query("processed-brewery-data", PROCESSED)
    async def _processed(self) -> ProcessedBreweryData:
        breweries = await self.get_all_brewery_data()
        return aggregate(breweries)

    async def get_processed_brewery_data(self) -> ProcessedBreweryData:
        return ensure_maps_are_maps(await self._processed())

    async def _lookup(self, index_name: str, key: str) -> List[BreweryRecord]:
        data = await self.get_processed_brewery_data()
        index: GroupingIndex = getattr(data, index_name)
        return list(index.get(key, ()))

    @cached_query("breweries-by-city", RECORDS)
    async def get_breweries_by_city(self, city: str) -> List[BreweryRecord]:
        return await self._lookup("by_city", normalize_key(city))

    @cached_query("breweries-by-county", RECORDS)
    async def get_breweries_by_county(self, county: str) -> List[BreweryRecord]:
        return await self._lookup("by_county", normalize_key(county))

    @cached_query("breweries-by-type", RECORDS)
    async def get_breweries_by_type(self, brewery_type: str) -> List[BreweryRecord]:
        # Type keys are lowercased but not trimmed.
        return await self._lookup("by_type", brewery_type.lower())

    @cached_query("breweries-by-amenity", RECORDS)
    async def get_breweries_by_amenity(self, amenity: str) -> List[BreweryRecord]:
        return await self._lookup("by_amenity", normalize_key(amenity))

    @cached_query("all-cities")
    async def get_all_cities(self) -> List[str]:
        return list((await self.get_processed_brewery_data()).cities)

    @cached_query("all-counties")
    async def get_all_counties(self) -> List[str]:
        return list((await self.get_processed_brewery_data()).counties)

    @cached_query("all-amenities")
    async def get_all_amenities(self) -> List[str]:
        return list((await self.get_processed_brewery_data()).amenities)

    @cached_query("all-types")
    async def get_all_types(self) -> List[str]:
        return list((await self.get_processed_brewery_data()).types)

    @cached_query("site-statistics", STATS)
    async def get_site_statistics(self) -> SiteStatistics:
        return (await self.get_processed_brewery_data()).stats

    @cached_query("search-breweries", RECORDS)
    async def search_breweries(self, query: str) -> List[BreweryRecord]:
        """Case-insensitive substring search over name, city, county, description and amenities.

        A blank query applies no filter and returns every brewery.
        """

        data = await self.get_processed_brewery_data()
        term = query.lower().strip()
        if not term:
            return list(data.breweries)
        return [brewery for brewery in data.breweries if _matches(brewery, term)]

    async def get_nearby_breweries(
        self, latitude: float, longitude: float, radius_miles: Optional[float] = None
    ) -> List[BreweryRecord]:
        """Breweries within ``radius_miles`` (inclusive), nearest first."""

        if radius_miles is None:
            radius_miles = self.settings.nearby_radius_miles
        return await self._nearby(latitude, longitude, radius_miles)

    @cached_query("nearby-breweries", RECORDS)
    async def _nearby(self, latitude: float, longitude: float, radius_miles: float) -> List[BreweryRecord]:
        data = await self.get_processed_brewery_data()
        return within_radius(data.breweries, latitude, longitude, radius_miles)


def _matches(brewery: BreweryRecord, term: str) -> bool:
    for value in (brewery.name, brewery.city, brewery.county, brewery.description):
        if value and term in value.lower():
            return True
    return any(term in amenity.lower() for amenity in brewery.amenities)
