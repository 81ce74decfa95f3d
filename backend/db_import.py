# file: backend/db_import.py
import json
import logging
import os
import sys
from typing import List

from tqdm import tqdm

from backend.database import save_readings
from backend.ingest import parse_csv, readings_from_geojson
from backend.models import Reading
from backend.store import partition_valid


def load_file(input_file: str, uploader_name: str) -> List[Reading] :
    """Read a CSV upload or an exported GeoJSON file into readings."""
    if input_file.lower().endswith((".geojson", ".json")) :
        with open(input_file, "r", encoding = "utf-8") as f :
            return readings_from_geojson(json.load(f))
    with open(input_file, "rb") as f :
        return parse_csv(f.read(), uploader_name, os.path.basename(input_file))


def import_files(input_files: List[str], uploader_name: str = "bulk import") -> int :
    """Import CSV or GeoJSON files into InfluxDB, skipping rows without coordinates."""
    imported = 0
    try :
        for input_file in tqdm(input_files, desc = "Importing files") :
            readings, dropped = partition_valid(load_file(input_file, uploader_name))
            logging.info(f"Loaded {len(readings)} readings from {input_file}, dropped {dropped}")
            imported += save_readings(readings)
        logging.info(f"Imported {imported} readings to target InfluxDB")
        return imported
    except Exception as e :
        logging.error(f"Error importing data: {e}")
        raise

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    import_files(sys.argv[1:] or ["environmental-data-filtered.geojson"])
