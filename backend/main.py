# file : /backend/main.py

import logging
import uvicorn
from fastapi import FastAPI, File, Form, Query, HTTPException, UploadFile
from fastapi.responses import JSONResponse, Response
from contextlib import asynccontextmanager
from typing import List, Optional, Dict

from backend.classifier import classify, legend
from backend.database import save_readings
from backend.errors import IngestError, InsightError, InvalidMeasurement
from backend.exporter import GEOJSON_FILENAME, DEFAULT_CSV_COLUMNS, csv_filename, to_csv, to_geojson
from backend.heatmap import project_heatmap
from backend.ingest import parse_csv
from backend.insights import build_snapshot, chat as chat_with_model, generate_insights
from backend.models import ChatRequest, Classification, FilterState, HeatPoint, InsightsResponse, LoadResult, \
    Pollutant, Reading, UploadResult
from backend.scheduler import refresh_store, run_schedule
from backend.store import partition_valid, reading_store
from backend.utils import export_region_label

# Configure logging
logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(levelname)s - %(message)s')

REGION_QUERY = Query(None, description="Regions to include; omit for all regions")


@asynccontextmanager
async def lifespan(app: FastAPI) :
    """Start the refresh scheduler and load the initial readings on startup."""
    run_schedule()
    try :
        refresh_store()
    except Exception as e :
        logging.error(f"Initial reading refresh failed: {e}")
    yield


app = FastAPI(
    title = "Nigeria Environmental Sensor Dashboard",
    description = "Air quality readings across Nigerian states: grouping, classification, heatmaps and exports.",
    version = "0.1",
    lifespan = lifespan
)


@app.get("/readings", response_model=List[Reading])
async def readings(region: Optional[List[str]] = REGION_QUERY):
    """Fetch the readings of the selected regions."""
    return reading_store.filter(FilterState.for_regions(region))


@app.get("/regions", response_model=List[str])
async def regions():
    """Fetch the distinct regions, sorted."""
    return reading_store.unique_regions()


@app.get("/regions/grouped", response_model=Dict[str, List[Reading]])
async def regions_grouped():
    """Fetch every reading partitioned by region."""
    return reading_store.group_by_region()


@app.get("/classify", response_model=Classification)
async def classify_value(
    value: float = Query(..., description="Concentration to classify"),
    pollutant: Pollutant = Query(Pollutant.PM25, description="Pollutant the thresholds are calibrated for")
):
    """Classify a concentration into an air quality band."""
    try :
        return classify(value, pollutant)
    except InvalidMeasurement as e :
        raise HTTPException(status_code = 422, detail = str(e))
    except ValueError as e :
        raise HTTPException(status_code = 400, detail = str(e))


@app.get("/legend")
async def air_quality_legend():
    """Fetch the map legend entries."""
    return legend()


@app.get("/heatmap", response_model=List[HeatPoint])
async def heatmap(
    pollutant: Pollutant = Query(Pollutant.PM25, description="Pollutant driving the heat intensity"),
    region: Optional[List[str]] = REGION_QUERY
):
    """Project the selected regions into heat intensities for one pollutant."""
    logging.info(f"Projecting heatmap for {pollutant.value} with region filter: {region}")
    return project_heatmap(reading_store.filter(FilterState.for_regions(region)), pollutant)


@app.get("/export/csv")
async def export_csv(
    region: Optional[List[str]] = REGION_QUERY,
    column: Optional[List[str]] = Query(None, description="Columns to export, in order")
):
    """Download the selected regions as CSV."""
    selected = reading_store.filter(FilterState.for_regions(region))
    content = to_csv(selected, column or DEFAULT_CSV_COLUMNS)
    filename = csv_filename(export_region_label(region))
    return Response(content = content, media_type = "text/csv",
                    headers = {"Content-Disposition" : f'attachment; filename="{filename}"'})


@app.get("/export/geojson")
async def export_geojson(region: Optional[List[str]] = REGION_QUERY):
    """Download the selected regions as a GeoJSON FeatureCollection."""
    selected = reading_store.filter(FilterState.for_regions(region))
    return JSONResponse(content = to_geojson(selected), media_type = "application/geo+json",
                        headers = {"Content-Disposition" : f'attachment; filename="{GEOJSON_FILENAME}"'})


@app.post("/upload", response_model=UploadResult)
async def upload(file: Optional[UploadFile] = File(None), uploader_name: str = Form("")):
    """Ingest an uploaded CSV, store its readings and refresh the dashboard data."""
    if file is None :
        raise HTTPException(status_code = 400, detail = "No file provided")
    try :
        parsed = parse_csv(await file.read(), uploader_name, file.filename or "upload.csv")
    except IngestError as e :
        raise HTTPException(status_code = 400, detail = str(e))

    valid, dropped = partition_valid(parsed)
    if not valid :
        raise HTTPException(status_code = 400, detail = "No rows with latitude and longitude found")

    try :
        count = save_readings(valid)
    except Exception as e :
        logging.error(f"Error saving uploaded readings: {e}")
        raise HTTPException(status_code = 500, detail = "Failed to insert data into database")

    try :
        refresh_store()
    except Exception as e :
        logging.error(f"Refresh after upload failed, merging upload locally: {e}")
        reading_store.load(reading_store.readings + valid)

    message = "Data uploaded successfully thanks for contributing!"
    if dropped :
        message += f" {dropped} rows without coordinates were skipped."
    return UploadResult(count = count, dropped = dropped, message = message)


@app.post("/refresh", response_model=LoadResult)
async def refresh():
    """Reload every reading from the database."""
    try :
        return refresh_store()
    except Exception as e :
        logging.error(f"Error refreshing readings: {e}")
        raise HTTPException(status_code = 503, detail = "Failed to refresh readings")


@app.get("/insights/{reading_id}", response_model=InsightsResponse)
async def insights(reading_id: str, pollutant: Pollutant = Query(Pollutant.PM25)):
    """Generate AI insights for one reading."""
    reading = reading_store.get(reading_id)
    if reading is None :
        raise HTTPException(status_code = 404, detail = f"Reading {reading_id} not found")
    snapshot = build_snapshot(reading)
    try :
        return InsightsResponse(snapshot = snapshot, insights = await generate_insights(snapshot, pollutant))
    except InsightError as e :
        logging.error(f"Error generating insights for {reading_id}: {e}")
        raise HTTPException(status_code = 502, detail = str(e))


@app.post("/chat")
async def chat(request: ChatRequest):
    """Answer a chat conversation about the air quality data."""
    try :
        return {"reply" : await chat_with_model(request.messages)}
    except InsightError as e :
        logging.error(f"Error in chat: {e}")
        raise HTTPException(status_code = 502, detail = str(e))


if __name__ == "__main__" :
    uvicorn.run(app, host = "0.0.0.0", port = 8000, log_level="info")
