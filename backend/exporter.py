#file: backend/exporter.py

import csv
import io
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Sequence, Tuple

from reportlab.lib.pagesizes import landscape, portrait
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from backend.errors import CaptureFailure, EmptyDataset
from backend.models import Pollutant, POLLUTANTS, Reading
from backend.utils import get_current_date

DEFAULT_CSV_COLUMNS = [
    "location", "longitude", "latitude", "co2_ppm", "co_ppm", "hcho_mgm3", "pm25_ugm3", "pm10_ugm3",
    "water_vapour", "temperature_c", "humidity_percent", "state", "uploader_name", "upload_time"
]

GEOJSON_FILENAME = "environmental-data-filtered.geojson"
CAPTURE_SCALE = 2
PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

POLLUTANT_COLUMNS = {info.column : pollutant for pollutant, info in POLLUTANTS.items()}
PROVENANCE_FIELDS = ("uploader_name", "source_file", "upload_time")


def csv_filename(region: str) -> str :
    return f"{region}-environmental-data.csv"


def image_filename(day: Optional[date] = None) -> str :
    return f"environmental-map-{(day or get_current_date()).isoformat()}.png"


def pdf_filename(day: Optional[date] = None) -> str :
    return f"environmental-map-{(day or get_current_date()).isoformat()}.pdf"


def column_value(reading: Reading, column: str) -> Any :
    """Resolve a CSV column name to the matching reading field, None when unknown."""
    name = column.strip()
    key = name.lower()
    if key in ("longitude", "lon", "lng") :
        return reading.longitude
    if key in ("latitude", "lat") :
        return reading.latitude
    if key in ("state", "region") :
        return reading.region
    if key in ("id", "location") + PROVENANCE_FIELDS :
        return getattr(reading, key)
    if key in POLLUTANT_COLUMNS :
        return reading.value(POLLUTANT_COLUMNS[key])
    if name in Pollutant._value2member_map_ :
        return reading.value(name)
    return None


def _check_empty(readings: Sequence[Reading], kind: str, strict: bool) -> None :
    if readings :
        return
    if strict :
        raise EmptyDataset(f"No readings to export as {kind}")
    logging.warning(f"Exporting empty {kind}, no readings match the current filters")


def to_csv(readings: Sequence[Reading], columns: Sequence[str] = DEFAULT_CSV_COLUMNS, strict: bool = False) -> str :
    """Serialize readings to RFC 4180 CSV text with a header row."""
    _check_empty(readings, "CSV", strict)
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting = csv.QUOTE_MINIMAL, lineterminator = "\r\n")
    writer.writerow(columns)
    for reading in readings :
        row = []
        for column in columns :
            value = column_value(reading, column)
            row.append("" if value is None else value)
        writer.writerow(row)
    return buffer.getvalue()


def feature_properties(reading: Reading) -> Dict[str, Any] :
    properties = {"id" : reading.id, "location" : reading.location, "state" : reading.region}
    for pollutant, info in POLLUTANTS.items() :
        properties[info.column] = reading.value(pollutant)
    for field in PROVENANCE_FIELDS :
        properties[field] = getattr(reading, field)
    return properties


def to_geojson(readings: Sequence[Reading], strict: bool = False) -> Dict[str, Any] :
    """Build a FeatureCollection with one Point feature per reading, [lon, lat] ordered."""
    _check_empty(readings, "GeoJSON", strict)
    return {
        "type" : "FeatureCollection",
        "features" : [
            {
                "type" : "Feature",
                "geometry" : {"type" : "Point", "coordinates" : [reading.longitude, reading.latitude]}
                if reading.coordinates is not None else None,
                "properties" : feature_properties(reading)
            }
            for reading in readings
        ]
    }


def to_image(surface, scale: int = CAPTURE_SCALE) -> bytes :
    """Rasterize a renderable surface (anything with a plotly-style to_image) to PNG bytes."""
    if surface is None :
        raise CaptureFailure("Nothing to capture, the map is not rendered")
    try :
        image = surface.to_image(format = "png", scale = scale)
    except Exception as e :
        logging.error(f"Error capturing map as image: {e}")
        raise CaptureFailure(f"Failed to export map as image: {e}") from e
    if not isinstance(image, (bytes, bytearray)) or not bytes(image).startswith(PNG_SIGNATURE) :
        raise CaptureFailure("Capture did not produce a PNG image")
    return bytes(image)


def page_size_for(width: float, height: float) -> Tuple[Tuple[float, float], str] :
    """Page exactly the size of the capture, landscape when wider than tall."""
    if width > height :
        return landscape((width, height)), "landscape"
    return portrait((width, height)), "portrait"


def to_pdf(surface, scale: int = CAPTURE_SCALE) -> bytes :
    """Wrap the PNG capture of a surface in a single full-page PDF."""
    image = to_image(surface, scale)
    try :
        reader = ImageReader(io.BytesIO(image))
        width, height = reader.getSize()
        pagesize, orientation = page_size_for(width, height)
        buffer = io.BytesIO()
        pdf = canvas.Canvas(buffer, pagesize = pagesize)
        pdf.drawImage(reader, 0, 0, width = width, height = height)
        pdf.showPage()
        pdf.save()
    except Exception as e :
        logging.error(f"Error exporting map as PDF: {e}")
        raise CaptureFailure(f"Failed to export map as PDF: {e}") from e
    logging.info(f"Exported {width}x{height} {orientation} PDF")
    return buffer.getvalue()
