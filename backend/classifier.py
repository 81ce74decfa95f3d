#file: backend/classifier.py

import math
from numbers import Real
from typing import Dict, List, NamedTuple, Union

from backend.errors import InvalidMeasurement
from backend.models import Classification, Pollutant, POLLUTANTS


class Band(NamedTuple):
    lower: float
    label: str
    color_token: str
    color_hex: str


# Lower bounds are inclusive, the last band is open-ended (µg/m³)
PM25_BANDS: List[Band] = [
    Band(0, "Good", "green", "#22c55e"),
    Band(35, "Moderate", "yellow", "#eab308"),
    Band(75, "Unhealthy", "orange", "#f97316"),
    Band(115, "Very Unhealthy", "red", "#ef4444"),
    Band(150, "Hazardous", "purple", "#a855f7"),
]

THRESHOLDS: Dict[Pollutant, List[Band]] = {
    Pollutant.PM25: PM25_BANDS,
}


def thresholds_for(pollutant: Union[Pollutant, str]) -> List[Band] :
    """Return the calibrated bands for a pollutant."""
    pollutant = Pollutant(pollutant)
    if pollutant not in THRESHOLDS :
        raise ValueError(f"No air quality thresholds calibrated for {pollutant.value}")
    return THRESHOLDS[pollutant]


def classify(value, pollutant: Union[Pollutant, str] = Pollutant.PM25) -> Classification :
    """Map a concentration to one of the five ordered air quality bands.

    Values below zero fall into the first band. Missing or non-numeric values
    raise InvalidMeasurement.
    """
    if isinstance(value, bool) or not isinstance(value, Real) or math.isnan(value) :
        raise InvalidMeasurement(f"Cannot classify concentration {value!r}")

    bands = thresholds_for(pollutant)
    selected = 0
    for index, band in enumerate(bands) :
        if value >= band.lower :
            selected = index
    band = bands[selected]
    return Classification(band = selected + 1, label = band.label, color_token = band.color_token,
                          color_hex = band.color_hex)


def legend(pollutant: Union[Pollutant, str] = Pollutant.PM25) -> List[Dict[str, str]] :
    """Describe each band for the map legend, e.g. "PM2.5 35-75"."""
    bands = thresholds_for(pollutant)
    name = POLLUTANTS[Pollutant(pollutant)].label
    entries = []
    for index, band in enumerate(bands) :
        if index == 0 :
            value_range = f"{name} < {bands[1].lower:g}"
        elif index == len(bands) - 1 :
            value_range = f"{name} > {band.lower:g}"
        else :
            value_range = f"{name} {band.lower:g}-{bands[index + 1].lower:g}"
        entries.append({"label" : band.label, "range" : value_range, "color_token" : band.color_token,
                        "color_hex" : band.color_hex})
    return entries
