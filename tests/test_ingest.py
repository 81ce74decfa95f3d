# file: tests/test_ingest.py

import pytest

from backend.errors import IngestError
from backend.exporter import to_csv, to_geojson
from backend.heatmap import project_heatmap
from backend.ingest import SAMPLE_CSV, parse_csv, readings_from_geojson, resolve_field
from tests.conftest import make_reading


def test_parse_sample_csv():
    readings = parse_csv(SAMPLE_CSV, "Ada", "sample.csv")
    assert [reading.location for reading in readings] == ["Lugbe Market", "City Gate", "Gbosa Market"]
    first = readings[0]
    assert first.region == "ABUJA"
    assert first.coordinates == (7.376422, 8.98427935)
    assert first.value("pm25") == 68
    assert first.value("pm10") == pytest.approx(90.1)
    assert first.value("co2") == 445
    assert first.value("waterVapour") == 6365
    assert first.source_file == "sensor_001"
    assert first.uploader_name == "Ada"
    assert first.upload_time
    assert len({reading.id for reading in readings}) == 3


def test_aliases_are_case_insensitive():
    content = "Latitude,LONGITUDE,PM2_5,co2,State,Temperature\n6.5,3.35,40,500,lagos,31\n"
    reading = parse_csv(content, "Bola", "lagos.csv")[0]
    assert reading.coordinates == (3.35, 6.5)
    assert reading.value("pm25") == 40
    assert reading.value("co2") == 500
    assert reading.value("temperature") == 31
    assert reading.region == "lagos"
    assert reading.location == "Bola"
    assert reading.source_file == "lagos.csv"


def test_first_non_empty_alias_wins():
    assert resolve_field({"pm25_ugm3" : "", "PM2_5" : 12, "pm25" : 99}, "pm25") == 12
    assert resolve_field({"co2_ppm" : None}, "co2") is None


def test_missing_values_default_to_zero_and_unknown_region():
    reading = parse_csv("latitude,longitude,pm25_ugm3\n9.0,7.4,\n", "Chidi")[0]
    assert reading.value("pm25") == 0
    assert reading.value("hcho") == 0
    assert reading.region == "Unknown"


def test_rows_without_coordinates_are_kept_for_the_store_to_drop():
    readings = parse_csv("latitude,longitude,location\n9.0,7.4,A\n,7.5,B\n", "Chidi")
    assert readings[0].coordinates == (7.4, 9.0)
    assert readings[1].coordinates is None


def test_missing_required_columns():
    with pytest.raises(IngestError, match = "longitude"):
        parse_csv("latitude,pm25\n9.0,12\n", "Chidi")


def test_uploader_name_required():
    with pytest.raises(IngestError):
        parse_csv(SAMPLE_CSV, "  ")


def test_empty_file_rejected():
    with pytest.raises(IngestError):
        parse_csv(b"", "Chidi")


def test_csv_export_parses_back_with_commas_in_location():
    original = make_reading(1, "ABUJA", 68, (7.376422, 8.98427935), "Lugbe Market, Phase 2")
    reading = parse_csv(to_csv([original]), "Chidi")[0]
    assert reading.location == "Lugbe Market, Phase 2"
    assert reading.coordinates == original.coordinates
    assert reading.region == "ABUJA"
    assert reading.value("pm25") == 68


def test_geojson_round_trip(scenario_readings):
    assert readings_from_geojson(to_geojson(scenario_readings)) == scenario_readings


def test_geojson_requires_feature_collection():
    with pytest.raises(IngestError):
        readings_from_geojson({"type" : "Feature"})


def test_non_finite_values_become_zero():
    readings = parse_csv("latitude,longitude,pm25\n9,7,inf\n9.1,7.1,50\n9.2,inf,10\n", "Ada")
    assert [reading.value("pm25") for reading in readings] == [0.0, 50.0, 10.0]
    assert readings[2].coordinates is None
    assert [point.intensity for point in project_heatmap(readings, "pm25")] == [0.1, 1.0]
