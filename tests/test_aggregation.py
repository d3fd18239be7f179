import dataclasses
import math

import pytest
from hypothesis import given, settings as hypothesis_settings
from hypothesis import strategies as st

from brewery_directory.aggregation import aggregate, compute_stats, parse_opened_date
from brewery_directory.models import BreweryRecord, MultipleType, SingleType


def test_scenario_merges_city_spellings_and_computes_stats(scenario_breweries):
    data = aggregate(scenario_breweries)

    assert data.cities == ("Baltimore", "Frederick")
    assert len(data.by_city["baltimore"]) == 2
    assert data.types == ("Brewpub", "Microbrewery")
    assert len(data.by_amenity["tours"]) == 2
    assert data.stats.total_breweries == 3
    assert data.stats.newest_brewery == "Bravo Brewpub"
    assert data.stats.oldest_brewery == "Alpha Brewing"
    assert data.stats.average_breweries_per_city == pytest.approx(1.5)


def test_breweries_pass_through_in_order(scenario_breweries):
    data = aggregate(scenario_breweries)

    assert list(data.breweries) == scenario_breweries


def test_first_seen_casing_wins(make_brewery):
    data = aggregate(
        [
            make_brewery("1", city="Baltimore"),
            make_brewery("2", city=" baltimore "),
        ]
    )

    assert list(data.by_city) == ["baltimore"]
    assert [b.id for b in data.by_city["baltimore"]] == ["1", "2"]
    assert data.cities == ("Baltimore",)
    assert data.stats.total_cities == 1


def test_type_list_groups_by_combined_key_and_splits_labels(make_brewery):
    data = aggregate(
        [
            make_brewery("1", type=["Brewpub", "Taproom"]),
            make_brewery("2", type="Taproom"),
        ]
    )

    assert [b.id for b in data.by_type["brewpub, taproom"]] == ["1"]
    assert [b.id for b in data.by_type["taproom"]] == ["2"]
    assert "brewpub" not in data.by_type
    assert data.types == ("Brewpub", "Taproom")
    assert data.stats.breweries_by_type == {"Brewpub": 1, "Taproom": 2}


def test_missing_city_and_county_only_skip_those_indexes(make_brewery):
    brewery = make_brewery("1", city=None, county=None, amenities=["Food Trucks"])

    data = aggregate([brewery])

    assert data.by_city == {}
    assert data.by_county == {}
    assert data.cities == ()
    assert data.by_amenity["food trucks"] == (brewery,)
    assert data.by_type["microbrewery"] == (brewery,)
    assert data.breweries == (brewery,)


def test_record_without_type_is_skipped_for_type_data(make_brewery):
    untyped = dataclasses.replace(make_brewery("1", city="Laurel"), type=None)

    data = aggregate([untyped])

    assert data.by_type == {}
    assert data.types == ()
    assert data.stats.breweries_by_type == {}
    assert data.by_city["laurel"] == (untyped,)


def test_amenity_keys_are_normalized(make_brewery):
    data = aggregate(
        [
            make_brewery("1", amenities=["Outdoor Seating "]),
            make_brewery("2", amenities=["outdoor seating"]),
        ]
    )

    assert len(data.by_amenity["outdoor seating"]) == 2
    assert data.amenities == ("Outdoor Seating ",)


def test_value_lists_are_sorted(make_brewery):
    data = aggregate(
        [
            make_brewery("1", city="Westminster", county="Carroll"),
            make_brewery("2", city="Annapolis", county="Anne Arundel"),
            make_brewery("3", city="Frederick", county="Frederick"),
        ]
    )

    assert data.cities == ("Annapolis", "Frederick", "Westminster")
    assert data.counties == ("Anne Arundel", "Carroll", "Frederick")


def test_county_counts_use_normalized_keys(make_brewery):
    stats = compute_stats(
        [
            make_brewery("1", county="Baltimore"),
            make_brewery("2", county="baltimore"),
            make_brewery("3", county="Howard"),
            make_brewery("4", county=""),
        ],
        cities=0,
        counties=2,
    )

    assert stats.breweries_by_county == {"Baltimore": 2, "Howard": 1}


def test_average_is_zero_without_cities(make_brewery):
    stats = compute_stats([make_brewery("1", city=None)], cities=0, counties=0)

    assert stats.average_breweries_per_city == 0
    assert stats.total_breweries == 1


def test_empty_input():
    data = aggregate([])

    assert data.breweries == ()
    assert data.stats.total_breweries == 0
    assert data.stats.newest_brewery is None
    assert data.stats.oldest_brewery is None
    assert data.stats.average_breweries_per_city == 0


def test_last_updated_is_iso_utc(scenario_breweries):
    stats = aggregate(scenario_breweries).stats

    assert stats.last_updated.endswith("Z")
    assert "T" in stats.last_updated


def test_newest_and_oldest_undefined_without_dates(make_brewery):
    stats = compute_stats([make_brewery("1"), make_brewery("2", opened_date="")], cities=0, counties=0)

    assert stats.newest_brewery is None
    assert stats.oldest_brewery is None


def test_malformed_dates_stay_where_the_stable_sort_leaves_them(make_brewery):
    in_middle = compute_stats(
        [
            make_brewery("1", name="Old", opened_date="2015-01-01"),
            make_brewery("2", name="Bad", opened_date="someday"),
            make_brewery("3", name="New", opened_date="2020-06-01"),
        ],
        cities=0,
        counties=0,
    )
    assert in_middle.oldest_brewery == "Old"
    assert in_middle.newest_brewery == "New"

    at_front = compute_stats(
        [
            make_brewery("1", name="Bad", opened_date="someday"),
            make_brewery("2", name="Old", opened_date="2015-01-01"),
            make_brewery("3", name="New", opened_date="2020-06-01"),
        ],
        cities=0,
        counties=0,
    )
    assert at_front.oldest_brewery == "Bad"
    assert at_front.newest_brewery == "New"


@pytest.mark.parametrize(
    "value",
    ["2015-01-01", "2015-01-01T12:30:00Z", "2015-01-01T12:30:00+00:00", "2015", "2015-03"],
)
def test_parse_opened_date_accepts_iso_variants(value):
    assert not math.isnan(parse_opened_date(value))


@pytest.mark.parametrize("value", [None, "", "someday", "13/45/2020"])
def test_parse_opened_date_returns_nan_for_garbage(value):
    assert math.isnan(parse_opened_date(value))


def test_parse_opened_date_orders_chronologically():
    assert parse_opened_date("2015-01-01") < parse_opened_date("2020-06-01")


_labels = st.sampled_from(["Brewpub", "Taproom", "Microbrewery", "Nano", "brewpub"])
_cities = st.sampled_from(["Baltimore", "baltimore ", "Frederick", "Annapolis", None])
_brewery_types = st.one_of(
    _labels.map(SingleType),
    st.lists(_labels, min_size=1, max_size=3).map(lambda labels: MultipleType(tuple(labels))),
)


@st.composite
def _breweries(draw):
    count = draw(st.integers(min_value=0, max_value=12))
    return [
        BreweryRecord(
            id=str(index),
            name=f"Brewery {index}",
            slug=f"brewery-{index}",
            type=draw(_brewery_types),
            city=draw(_cities),
            county=draw(st.sampled_from(["Howard", "howard", "Carroll", None])),
            amenities=tuple(draw(st.lists(st.sampled_from(["Tours", "tours ", "Food"]), max_size=3))),
            opened_date=draw(st.sampled_from([None, "2010-01-01", "2019-05-05", "garbage"])),
        )
        for index in range(count)
    ]


def _without_timestamp(data):
    return dataclasses.replace(data, stats=dataclasses.replace(data.stats, last_updated=""))


@hypothesis_settings(max_examples=50)
@given(_breweries())
def test_aggregation_is_idempotent(breweries):
    first = aggregate(breweries)
    second = aggregate(breweries)

    assert _without_timestamp(first) == _without_timestamp(second)
    assert list(first.by_city) == list(second.by_city)


@hypothesis_settings(max_examples=50)
@given(_breweries())
def test_city_index_matches_city_list(breweries):
    data = aggregate(breweries)

    assert len(data.by_city) == len(data.cities)
    assert {city.lower().strip() for city in data.cities} == set(data.by_city)
    assert sum(len(records) for records in data.by_city.values()) == sum(1 for b in breweries if b.city)
