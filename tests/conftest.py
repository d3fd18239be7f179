from typing import Any, Dict, List

import pytest

from brewery_directory.cache import MemoryCache
from brewery_directory.directory import BreweryDirectory
from brewery_directory.models import BreweryRecord
from brewery_directory.settings import CacheSettings, DirectorySettings, SupabaseSettings


def brewery_row(brewery_id: str, **fields: Any) -> Dict[str, Any]:
    row: Dict[str, Any] = {
        "id": brewery_id,
        "name": f"Brewery {brewery_id}",
        "slug": f"brewery-{brewery_id.lower()}",
        "type": "Microbrewery",
        "state": "MD",
        "amenities": [],
    }
    row.update(fields)
    return row


class FakeFetcher:
    """Stands in for the Supabase fetcher and counts round trips."""

    def __init__(self, breweries: List[BreweryRecord]) -> None:
        self.breweries = list(breweries)
        self.calls = 0
        self.error: Exception | None = None

    async def fetch_all_async(self) -> List[BreweryRecord]:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return list(self.breweries)


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def make_brewery():
    def _make(brewery_id: str, **fields: Any) -> BreweryRecord:
        return BreweryRecord.from_row(brewery_row(brewery_id, **fields))

    return _make


@pytest.fixture
def scenario_breweries(make_brewery) -> List[BreweryRecord]:
    """Three breweries: two spellings of Baltimore and one in Frederick."""

    return [
        make_brewery(
            "A",
            name="Alpha Brewing",
            city="Baltimore",
            county="Baltimore City",
            type="Microbrewery",
            amenities=["Dog Friendly", "Tours"],
            opened_date="2015-01-01",
            latitude=39.2904,
            longitude=-76.6122,
            description="Lagers by the harbor",
        ),
        make_brewery(
            "B",
            name="Bravo Brewpub",
            city="baltimore ",
            county="Baltimore City",
            type=["Brewpub"],
            amenities=["Tours"],
            opened_date="2020-06-01",
            latitude=39.2850,
            longitude=-76.6000,
        ),
        make_brewery(
            "C",
            name="Charlie Ales",
            city="Frederick",
            county="Frederick",
            type="Microbrewery",
            amenities=[],
            latitude=39.4143,
            longitude=-77.4105,
        ),
    ]


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def settings() -> DirectorySettings:
    return DirectorySettings(
        supabase=SupabaseSettings(url="https://example.supabase.co", anon_key="anon"),
        cache=CacheSettings(revalidate_seconds=60),
    )


@pytest.fixture
def fetcher(scenario_breweries) -> FakeFetcher:
    return FakeFetcher(scenario_breweries)


@pytest.fixture
def directory(fetcher, settings, clock) -> BreweryDirectory:
    return BreweryDirectory(fetcher, cache=MemoryCache(clock=clock), settings=settings)
