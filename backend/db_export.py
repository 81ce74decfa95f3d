# file: backend/db_export.py

import json
import logging
import sys

from backend.database import get_readings
from backend.exporter import GEOJSON_FILENAME, to_geojson


def export_to_geojson(output_file: str = GEOJSON_FILENAME) -> int :
    """Export every stored reading from InfluxDB to a GeoJSON file."""
    try :
        readings = get_readings()
        collection = to_geojson(readings)
        with open(output_file, "w", encoding = "utf-8") as f :
            json.dump(collection, f, indent = 2, ensure_ascii = False)
        logging.info(f"Exported {len(readings)} readings to {output_file}")
        return len(readings)
    except Exception as e :
        logging.error(f"Error exporting data: {e}")
        raise

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    export_to_geojson(*sys.argv[1:2])
