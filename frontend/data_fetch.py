#file: frontend/data_fetch.py

import os
import aiohttp
import logging

FASTAPI_URL = os.getenv("FASTAPI_URL", "http://localhost:8000")
TIMEOUT = aiohttp.ClientTimeout(total = 30)


def region_params(regions=None):
    """Repeat the region query parameter once per selected region."""
    return [("region", region) for region in regions or []]


async def _get_json(path, params=None, default=None):
    url = f"{FASTAPI_URL}{path}"
    async with aiohttp.ClientSession(timeout = TIMEOUT) as session:
        try:
            async with session.get(url, params = params or []) as response:
                response.raise_for_status()
                return await response.json()
        except aiohttp.ClientResponseError as e:
            logging.error(f"[ERROR] HTTP {e.status} for {path}: {e.message}")
        except aiohttp.ClientError as e:
            logging.error(f"[ERROR] Network request failed: {e}")
    return default


async def fetch_readings(regions=None):
    """Fetch readings of the selected regions (all regions when none selected)."""
    return await _get_json("/readings", region_params(regions), default = [])


async def fetch_regions():
    """Fetch the sorted list of regions."""
    return await _get_json("/regions", default = [])


async def fetch_grouped_readings():
    """Fetch all readings grouped by region."""
    return await _get_json("/regions/grouped", default = {})


async def fetch_legend():
    return await _get_json("/legend", default = [])


async def fetch_heatmap(pollutant="pm25", regions=None):
    """Fetch heat intensities for one pollutant over the selected regions."""
    params = [("pollutant", pollutant)] + region_params(regions)
    return await _get_json("/heatmap", params, default = [])


async def fetch_export_csv(regions=None):
    """Fetch the CSV export of the selected regions as text."""
    url = f"{FASTAPI_URL}/export/csv"
    async with aiohttp.ClientSession(timeout = TIMEOUT) as session:
        try:
            async with session.get(url, params = region_params(regions)) as response:
                response.raise_for_status()
                return await response.text()
        except aiohttp.ClientError as e:
            logging.error(f"Error fetching CSV export: {e}")
    return None


async def fetch_export_geojson(regions=None):
    return await _get_json("/export/geojson", region_params(regions))


async def fetch_insights(reading_id, pollutant="pm25"):
    """Fetch AI insights for one reading; returns None when generation failed."""
    return await _get_json(f"/insights/{reading_id}", [("pollutant", pollutant)])


async def send_chat(messages):
    """Send the chat history and return the assistant's reply."""
    url = f"{FASTAPI_URL}/chat"
    async with aiohttp.ClientSession(timeout = TIMEOUT) as session:
        try:
            async with session.post(url, json = {"messages" : messages}) as response:
                response.raise_for_status()
                return (await response.json())["reply"]
        except aiohttp.ClientError as e:
            logging.error(f"Error in chat request: {e}")
    return None
