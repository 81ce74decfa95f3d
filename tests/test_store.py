# file: tests/test_store.py

from backend.classifier import classify
from backend.models import FilterState, UNKNOWN_REGION
from backend.store import ReadingStore, partition_valid
from tests.conftest import make_reading


def test_scenario_grouping_classification_and_regions(store, scenario_readings):
    r1, r2, r3 = scenario_readings
    assert store.group_by_region() == {"ABUJA" : [r1, r2], "LAGOS" : [r3]}
    # 80 falls in [75, 115)
    assert [classify(reading.value("pm25")).label for reading in scenario_readings] == \
        ["Good", "Unhealthy", "Hazardous"]
    assert store.unique_regions() == ["ABUJA", "LAGOS"]


def test_load_drops_readings_without_coordinates():
    store = ReadingStore()
    result = store.load([make_reading(1), make_reading(2, coordinates=None), make_reading(3)])
    assert result.loaded == 2
    assert result.dropped == 1
    assert [reading.id for reading in store.readings] == [1, 3]


def test_partition_valid_counts_dropped():
    valid, dropped = partition_valid([make_reading(1, coordinates=None), make_reading(2)])
    assert [reading.id for reading in valid] == [2]
    assert dropped == 1


def test_group_by_region_is_a_partition():
    readings = [make_reading(i, region) for i, region in enumerate(["KANO", "ABUJA", "KANO", "", "RIVERS", None])]
    store = ReadingStore()
    store.load(readings)
    groups = store.group_by_region()

    assert list(groups) == sorted(groups)
    members = [reading.id for bucket in groups.values() for reading in bucket]
    assert sorted(members) == [reading.id for reading in readings]
    assert len(members) == len(set(members))
    assert [reading.id for reading in groups["KANO"]] == [0, 2]
    assert [reading.id for reading in groups[UNKNOWN_REGION]] == [3, 5]


def test_filter_all_regions_returns_everything(store, scenario_readings):
    assert store.filter(FilterState()) == scenario_readings
    assert store.filter(FilterState.for_regions([])) == scenario_readings


def test_filter_selected_regions(store):
    selected = store.filter(FilterState.for_regions(["LAGOS"]))
    assert [reading.id for reading in selected] == [3]
    assert store.filter(FilterState(selected_regions = [], all_regions = False)) == []


def test_filter_does_not_mutate_store(store):
    selected = store.filter(FilterState())
    selected.clear()
    assert len(store) == 3


def test_load_replaces_collection(store):
    before = store.filter(FilterState())
    store.load([make_reading(9, "KANO")])
    assert store.unique_regions() == ["KANO"]
    assert len(before) == 3


def test_get_matches_string_and_int_ids(store):
    assert store.get("2").location == "Wuse"
    assert store.get(3).region == "LAGOS"
    assert store.get("missing") is None


def test_refresh_store_reloads_shared_store(monkeypatch, scenario_readings):
    from backend import scheduler
    monkeypatch.setattr(scheduler, "get_readings", lambda: scenario_readings + [make_reading(4, coordinates=None)])
    try:
        result = scheduler.refresh_store()
        assert (result.loaded, result.dropped) == (3, 1)
        assert scheduler.reading_store.unique_regions() == ["ABUJA", "LAGOS"]
    finally:
        scheduler.reading_store.load([])


def test_export_region_label():
    from backend.utils import export_region_label
    assert export_region_label(None) == "all"
    assert export_region_label(["LAGOS", "ABUJA"]) == "ABUJA_LAGOS"



def test_export_region_label_is_header_safe():
    from backend.utils import export_region_label
    assert export_region_label(['AB"UJA']) == "AB_UJA"
    assert export_region_label(["KANO", "CROSS RIVER"]) == "CROSS_RIVER_KANO"
    assert export_region_label(["\u1eccy\u1ecd"]) == "y"
    assert export_region_label(["\u1ecc"]) == "regions"
