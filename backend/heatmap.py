#file: backend/heatmap.py

import logging
from typing import Dict, Iterable, List, Union

from backend.models import HeatPoint, Pollutant, Reading

# Every point stays visible on the map, at the cost of compressing the low end of the range
MIN_INTENSITY = 0.1
MAX_INTENSITY = 1.0

HEAT_GRADIENT: Dict[float, str] = {
    0.0 : "#22c55e",
    0.3 : "#eab308",
    0.5 : "#f97316",
    0.7 : "#ef4444",
    1.0 : "#a855f7",
}

HEAT_LAYER_OPTIONS = {"radius" : 30, "max" : 1.0}


def project_heatmap(readings: Iterable[Reading], pollutant: Union[Pollutant, str] = Pollutant.PM25) -> List[HeatPoint] :
    """Normalize one pollutant over the given readings into heat intensities.

    The maximum is taken over the readings passed in, so the gradient always
    spans the current view.
    """
    pollutant = Pollutant(pollutant)
    located = [reading for reading in readings if reading.coordinates is not None]
    if not located :
        return []

    max_value = max(reading.value(pollutant) for reading in located)
    if max_value <= 0 :
        logging.info(f"All {pollutant.value} values are zero or below, using floor intensity")
        return [HeatPoint(lat = reading.latitude, lon = reading.longitude, intensity = MIN_INTENSITY)
                for reading in located]

    return [
        HeatPoint(
            lat = reading.latitude,
            lon = reading.longitude,
            intensity = max(MIN_INTENSITY, min(reading.value(pollutant) / max_value, MAX_INTENSITY))
        )
        for reading in located
    ]
