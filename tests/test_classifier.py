# file: tests/test_classifier.py

import math

import pytest

from backend.classifier import classify, legend, thresholds_for
from backend.errors import InvalidMeasurement


@pytest.mark.parametrize("value, label, band", [
    (0, "Good", 1),
    (34.9, "Good", 1),
    (35, "Moderate", 2),
    (74.99, "Moderate", 2),
    (75, "Unhealthy", 3),
    (114.9, "Unhealthy", 3),
    (115, "Very Unhealthy", 4),
    (149.9, "Very Unhealthy", 4),
    (150, "Hazardous", 5),
    (5000, "Hazardous", 5),
])
def test_band_boundaries(value, label, band):
    result = classify(value)
    assert result.label == label
    assert result.band == band


def test_negative_values_clamp_to_good():
    result = classify(-5)
    assert result.label == "Good"
    assert result.color_token == "green"


def test_infinity_is_hazardous():
    assert classify(math.inf).label == "Hazardous"


@pytest.mark.parametrize("value", [math.nan, None, "12", True])
def test_invalid_measurements_raise(value):
    with pytest.raises(InvalidMeasurement):
        classify(value)


def test_severity_is_monotonic():
    bands = [classify(value / 2).band for value in range(-20, 400)]
    assert bands == sorted(bands)


def test_colors_follow_bands():
    tokens = [classify(value).color_token for value in (10, 50, 100, 120, 200)]
    assert tokens == ["green", "yellow", "orange", "red", "purple"]
    assert classify(200).color_hex == "#a855f7"


def test_uncalibrated_pollutant_is_rejected():
    with pytest.raises(ValueError):
        classify(10, "co2")
    with pytest.raises(ValueError):
        thresholds_for("humidity")


def test_legend_ranges():
    entries = legend()
    assert [entry["label"] for entry in entries] == ["Good", "Moderate", "Unhealthy", "Very Unhealthy", "Hazardous"]
    assert entries[0]["range"] == "PM2.5 < 35"
    assert entries[1]["range"] == "PM2.5 35-75"
    assert entries[-1]["range"] == "PM2.5 > 150"
