#file: backend/store.py

import logging
from typing import Dict, Iterable, List, Optional, Tuple, Union

from backend.errors import ValidationError
from backend.models import FilterState, LoadResult, Reading


def validate_reading(reading: Reading) -> Reading :
    """Raise ValidationError for readings that cannot be placed on a map."""
    if reading.coordinates is None :
        raise ValidationError(reading.id)
    return reading


def partition_valid(readings: Iterable[Reading]) -> Tuple[List[Reading], int] :
    """Split readings into the ones with coordinates and a count of the dropped ones."""
    valid = []
    dropped = 0
    for reading in readings :
        try :
            valid.append(validate_reading(reading))
        except ValidationError as e :
            logging.warning(f"Dropping reading: {e}")
            dropped += 1
    return valid, dropped


class ReadingStore :
    """In-memory collection of readings, replaced wholesale on every load."""

    def __init__(self) :
        self._readings: Tuple[Reading, ...] = ()

    def load(self, readings: Iterable[Reading]) -> LoadResult :
        """Replace the whole collection, dropping readings without coordinates."""
        valid, dropped = partition_valid(readings)
        # Single reference swap, readers never see a half-loaded collection
        self._readings = tuple(valid)
        logging.info(f"Loaded {len(valid)} readings, dropped {dropped}")
        return LoadResult(loaded = len(valid), dropped = dropped)

    @property
    def readings(self) -> List[Reading] :
        return list(self._readings)

    def __len__(self) -> int :
        return len(self._readings)

    def get(self, reading_id: Union[int, str]) -> Optional[Reading] :
        for reading in self._readings :
            if str(reading.id) == str(reading_id) :
                return reading
        return None

    def group_by_region(self) -> Dict[str, List[Reading]] :
        """Partition readings by region; regions sorted, readings kept in load order."""
        groups: Dict[str, List[Reading]] = {}
        for reading in self._readings :
            groups.setdefault(reading.region, []).append(reading)
        return {region : groups[region] for region in sorted(groups)}

    def filter(self, state: FilterState) -> List[Reading] :
        readings = self._readings
        if state.all_regions :
            return list(readings)
        selected = set(state.selected_regions)
        return [reading for reading in readings if reading.region in selected]

    def unique_regions(self) -> List[str] :
        return sorted({reading.region for reading in self._readings})


reading_store = ReadingStore()
