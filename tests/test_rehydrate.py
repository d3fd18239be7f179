import dataclasses
import json

from brewery_directory.aggregation import aggregate
from brewery_directory.rehydrate import GROUPING_FIELDS, dump_processed, ensure_maps_are_maps, load_processed


def test_dicts_are_left_alone(scenario_breweries):
    data = aggregate(scenario_breweries)

    assert ensure_maps_are_maps(data) is data


def test_json_round_trip_restores_lookups(scenario_breweries):
    original = aggregate(scenario_breweries)

    transported = load_processed(json.loads(json.dumps(dump_processed(original))))
    assert not isinstance(transported.by_city, dict)

    restored = ensure_maps_are_maps(transported)

    for name in GROUPING_FIELDS:
        assert isinstance(getattr(restored, name), dict)
        assert getattr(restored, name) == getattr(original, name)
    assert restored.by_city.get("baltimore") == original.by_city.get("baltimore")
    assert restored.breweries == original.breweries
    assert restored.cities == original.cities
    assert restored.stats == original.stats


def test_key_order_survives_round_trip(scenario_breweries):
    original = aggregate(scenario_breweries)

    restored = ensure_maps_are_maps(load_processed(json.loads(json.dumps(dump_processed(original)))))

    assert list(restored.by_city) == list(original.by_city)
    assert list(restored.by_amenity) == list(original.by_amenity)


def test_plain_object_shape_is_converted(scenario_breweries):
    original = aggregate(scenario_breweries)
    as_objects = {
        key: [record.to_row() for record in records] for key, records in original.by_county.items()
    }
    degraded = dataclasses.replace(original, by_county=as_objects, by_type=list(original.by_type.items()))

    restored = ensure_maps_are_maps(degraded)

    assert restored.by_county == original.by_county
    assert restored.by_type == original.by_type
    assert restored.by_city == original.by_city
    assert restored.stats is original.stats


def test_missing_index_becomes_empty(scenario_breweries):
    degraded = dataclasses.replace(aggregate(scenario_breweries), by_amenity=None)

    restored = ensure_maps_are_maps(degraded)

    assert restored.by_amenity == {}
    assert restored.by_amenity.get("tours", ()) == ()


def test_load_processed_tolerates_missing_indexes(scenario_breweries):
    payload = dump_processed(aggregate(scenario_breweries))
    del payload["by_type"]

    restored = ensure_maps_are_maps(load_processed(payload))

    assert restored.by_type == {}
    assert len(restored.by_city["baltimore"]) == 2


def test_json_objects_of_rows_are_converted(scenario_breweries):
    original = aggregate(scenario_breweries)
    degraded = dataclasses.replace(
        original,
        **{
            name: json.loads(
                json.dumps({key: [record.to_row() for record in records] for key, records in getattr(original, name).items()})
            )
            for name in GROUPING_FIELDS
        },
    )
    assert all(isinstance(getattr(degraded, name), dict) for name in GROUPING_FIELDS)

    restored = ensure_maps_are_maps(degraded)

    assert restored is not degraded
    for name in GROUPING_FIELDS:
        assert getattr(restored, name) == getattr(original, name)
    assert restored.by_city.get("baltimore") == original.by_city.get("baltimore")
    assert restored.by_city["baltimore"][0].name == "Alpha Brewing"
