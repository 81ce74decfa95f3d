# file: backend/database.py

import logging
from datetime import datetime
from typing import List, Dict, Any, Optional
from influxdb_client import InfluxDBClient, Point
from influxdb_client.client.write_api import SYNCHRONOUS

from backend import config
from backend.errors import ValidationError
from backend.models import Pollutant, Reading

MEASUREMENT = "environmental_data"

_client: Optional[InfluxDBClient] = None


def get_client() -> InfluxDBClient :
    """Create the InfluxDB client on first use."""
    global _client
    if _client is None :
        if not config.influxdb_configured() :
            raise ValueError("Missing required InfluxDB environment variables")
        _client = InfluxDBClient(url = config.INFLUXDB_URL, token = config.INFLUXDB_TOKEN, org = config.INFLUXDB_ORG)
    return _client


def reading_to_point(reading: Reading) -> Point :
    """Convert a reading into one InfluxDB point tagged with its identity and provenance."""
    if reading.coordinates is None :
        raise ValidationError(reading.id)
    point = Point(MEASUREMENT) \
        .tag("reading_id", str(reading.id)) \
        .tag("region", reading.region) \
        .tag("location", reading.location) \
        .field("lon", float(reading.longitude)) \
        .field("lat", float(reading.latitude))
    if reading.uploader_name :
        point.tag("uploader_name", reading.uploader_name)
    if reading.source_file :
        point.tag("source_file", reading.source_file)
    if reading.upload_time :
        point.time(reading.upload_time)
    for pollutant in Pollutant :
        point.field(pollutant.value, float(reading.value(pollutant)))
    return point


def record_to_reading(values: Dict[str, Any]) -> Reading :
    """Build a reading from a pivoted InfluxDB record."""
    timestamp = values.get("_time")
    lon, lat = values.get("lon"), values.get("lat")
    return Reading(
        id = values["reading_id"],
        location = values.get("location") or "Unknown",
        region = values.get("region"),
        coordinates = (float(lon), float(lat)) if lon is not None and lat is not None else None,
        pollutants = {pollutant.value : values.get(pollutant.value) for pollutant in Pollutant},
        uploader_name = values.get("uploader_name"),
        source_file = values.get("source_file"),
        upload_time = timestamp.isoformat() if isinstance(timestamp, datetime) else timestamp
    )


def save_readings(readings: List[Reading]) -> int :
    """Write readings to InfluxDB synchronously and return how many were written."""
    if not readings :
        logging.warning("No readings to save to InfluxDB")
        return 0

    points = [reading_to_point(reading) for reading in readings]
    try :
        write_api = get_client().write_api(write_options = SYNCHRONOUS)
        write_api.write(bucket = config.INFLUXDB_BUCKET, record = points)
    except Exception as e :
        logging.error(f"Error saving readings to InfluxDB: {e}")
        raise
    logging.info(f"Saved {len(points)} readings to InfluxDB")
    return len(points)


def get_readings() -> List[Reading] :
    """Fetch every stored reading, oldest upload first."""
    query = f'''
        from(bucket: "{config.INFLUXDB_BUCKET}")
        |> range(start: -10y)
        |> filter(fn: (r) => r._measurement == "{MEASUREMENT}")
        |> pivot(rowKey: ["_time"], columnKey: ["_field"], valueColumn: "_value")
        |> group()
        |> sort(columns: ["_time"], desc: false)
    '''
    try :
        tables = get_client().query_api().query(query)
    except Exception as e :
        logging.error(f"Error fetching readings from InfluxDB: {e}")
        raise
    return [record_to_reading(record.values) for table in tables for record in table.records]
