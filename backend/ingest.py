#file: backend/ingest.py

import io
import logging
import math
import uuid
from typing import Any, Dict, List, Optional, Union

import pandas as pd

from backend.errors import IngestError
from backend.models import Pollutant, POLLUTANTS, Reading
from backend.utils import get_current_time

REQUIRED_COLUMNS = ["latitude", "longitude"]

# Ordered synonyms per field, matched case-insensitively; the first non-empty one wins
COLUMN_ALIASES: Dict[str, List[str]] = {
    "id" : ["id"],
    "location" : ["location"],
    "longitude" : ["longitude"],
    "latitude" : ["latitude"],
    Pollutant.CO2.value : ["co2_ppm", "CO2"],
    Pollutant.CO.value : ["co_ppm", "CO"],
    Pollutant.HCHO.value : ["hcho_mgm3", "HCHO"],
    Pollutant.PM25.value : ["pm25_ugm3", "PM2_5", "pm25"],
    Pollutant.PM10.value : ["pm10_ugm3", "PM10", "pm10"],
    Pollutant.WATER_VAPOUR.value : ["water_vapour"],
    Pollutant.TEMPERATURE.value : ["temperature_c", "temperature"],
    Pollutant.HUMIDITY.value : ["humidity_percent", "humidity"],
    "source_file" : ["source_file", "source"],
    "region" : ["STATE", "state"],
}

SAMPLE_CSV = """location,latitude,longitude,co2_ppm,co_ppm,hcho_mgm3,pm25_ugm3,pm10_ugm3,water_vapour,temperature_c,humidity_percent,source_file,STATE
Lugbe Market,8.98427935,7.376422,445,0,0.002,68,90.1,6365,36,68,sensor_001,ABUJA
City Gate,9.034679,7.448315,725,7,0.002,47.3,59,4449,34,50,sensor_002,ABUJA
Gbosa Market,8.940684,7.298538,434,0,0.002,15,19.8,2020,36,51,sensor_003,ABUJA
"""


def _is_missing(value: Any) -> bool :
    if value is None :
        return True
    if isinstance(value, float) and math.isnan(value) :
        return True
    return isinstance(value, str) and not value.strip()


def resolve_field(row: Dict[str, Any], field: str) -> Any :
    """Look up a field through its alias list, ignoring header case."""
    lowered = {str(column).strip().lower() : value for column, value in row.items()}
    for alias in COLUMN_ALIASES[field] :
        value = lowered.get(alias.lower())
        if not _is_missing(value) :
            return value
    return None


def _to_float(value: Any) -> Optional[float] :
    if _is_missing(value) :
        return None
    try :
        number = float(value)
    except (TypeError, ValueError) :
        return None
    return number if math.isfinite(number) else None


def row_to_reading(row: Dict[str, Any], uploader_name: str, source_file: str, upload_time: str) -> Reading :
    longitude = _to_float(resolve_field(row, "longitude"))
    latitude = _to_float(resolve_field(row, "latitude"))
    reading_id = resolve_field(row, "id")
    location = resolve_field(row, "location")
    return Reading(
        id = str(reading_id) if reading_id is not None else uuid.uuid4().hex,
        location = str(location).strip() if location is not None else uploader_name,
        region = resolve_field(row, "region"),
        coordinates = (longitude, latitude) if longitude is not None and latitude is not None else None,
        pollutants = {pollutant.value : _to_float(resolve_field(row, pollutant.value)) or 0.0 for pollutant in Pollutant},
        uploader_name = uploader_name,
        source_file = str(resolve_field(row, "source_file") or source_file),
        upload_time = upload_time
    )


def parse_csv(content: Union[str, bytes], uploader_name: str, source_file: str = "upload.csv") -> List[Reading] :
    """Parse an uploaded CSV into readings. Rows without coordinates are kept for the store to drop."""
    if not uploader_name or not uploader_name.strip() :
        raise IngestError("Uploader name is required")
    if isinstance(content, bytes) :
        content = content.decode("utf-8-sig")
    if not content.strip() :
        raise IngestError("No file provided")

    try :
        df = pd.read_csv(io.StringIO(content), skip_blank_lines = True, skipinitialspace = True,
                         float_precision = "round_trip")
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e :
        logging.error(f"CSV parsing errors: {e}")
        raise IngestError(f"Failed to parse CSV file: {e}") from e

    headers = {str(column).strip().lower() for column in df.columns}
    missing_columns = [column for column in REQUIRED_COLUMNS if column not in headers]
    if missing_columns :
        raise IngestError(f"Missing required columns: {', '.join(missing_columns)}")

    upload_time = get_current_time()
    df = df.astype(object).where(pd.notna(df), None)
    readings = [row_to_reading(row, uploader_name.strip(), source_file, upload_time)
                for row in df.to_dict(orient = "records")]
    logging.info(f"Parsed {len(readings)} rows from {source_file}")
    return readings


def readings_from_geojson(collection: Dict[str, Any]) -> List[Reading] :
    """Turn a FeatureCollection produced by the exporter back into readings."""
    if collection.get("type") != "FeatureCollection" or not isinstance(collection.get("features"), list) :
        raise IngestError("Expected a GeoJSON FeatureCollection")

    readings = []
    for index, feature in enumerate(collection["features"]) :
        properties = feature.get("properties") or {}
        geometry = feature.get("geometry") or {}
        coordinates = geometry.get("coordinates") if geometry.get("type") == "Point" else None
        readings.append(Reading(
            id = properties.get("id", index),
            location = properties.get("location") or "Unknown",
            region = properties.get("state"),
            coordinates = tuple(coordinates[:2]) if coordinates else None,
            pollutants = {pollutant.value : properties.get(info.column) for pollutant, info in POLLUTANTS.items()},
            uploader_name = properties.get("uploader_name"),
            source_file = properties.get("source_file"),
            upload_time = properties.get("upload_time")
        ))
    return readings
