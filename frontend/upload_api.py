#file: frontend/upload_api.py

import logging
import requests
from frontend.data_fetch import FASTAPI_URL


def upload_csv(file_bytes, filename, uploader_name):
    """Upload a CSV file to the backend; returns (ok, message)."""
    try:
        response = requests.post(
            f"{FASTAPI_URL}/upload",
            files = {"file" : (filename, file_bytes, "text/csv")},
            data = {"uploader_name" : uploader_name},
            timeout = 60
        )
    except requests.RequestException as e:
        logging.error(f"Error uploading {filename}: {e}")
        return False, "Could not reach the server, please try again."

    payload = response.json() if response.headers.get("content-type", "").startswith("application/json") else {}
    if response.status_code == 200:
        return True, payload.get("message", "Upload complete.")
    logging.error(f"Upload failed with HTTP {response.status_code}: {response.text}")
    return False, str(payload.get("detail", f"Upload failed ({response.status_code})."))


def refresh_data():
    """Ask the backend to reload readings from the database."""
    try:
        response = requests.post(f"{FASTAPI_URL}/refresh", timeout = 30)
        response.raise_for_status()
        return response.json()
    except requests.RequestException as e:
        logging.error(f"Error refreshing data: {e}")
        return None
