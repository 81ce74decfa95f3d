# file: tests/conftest.py

import pytest

from backend.models import Reading
from backend.store import ReadingStore, reading_store


def make_reading(reading_id, region="ABUJA", pm25=0.0, coordinates=(7.4951, 9.0765), location=None, **pollutants):
    return Reading(
        id = reading_id,
        location = location or f"Station {reading_id}",
        region = region,
        coordinates = coordinates,
        pollutants = {"pm25" : pm25, **pollutants},
        uploader_name = "tester",
        source_file = "sensor.csv",
        upload_time = "2025-03-01T10:00:00+00:00"
    )


@pytest.fixture
def scenario_readings():
    return [
        make_reading(1, "ABUJA", 20, (7.4951, 9.0765), "Maitama"),
        make_reading(2, "ABUJA", 80, (7.4892, 9.0643), "Wuse"),
        make_reading(3, "LAGOS", 160, (3.4219, 6.4281), "Victoria Island"),
    ]


@pytest.fixture
def store(scenario_readings):
    store = ReadingStore()
    store.load(scenario_readings)
    return store


@pytest.fixture
def loaded_reading_store(scenario_readings):
    reading_store.load(scenario_readings)
    yield reading_store
    reading_store.load([])
