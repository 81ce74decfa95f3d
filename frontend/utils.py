#file: frontend/utils.py

import pandas as pd

from backend.classifier import classify
from backend.models import FilterState, Pollutant, POLLUTANTS, Reading


def parse_readings(readings_data) :
    """Turn the JSON readings returned by the API into Reading models."""
    return [Reading.model_validate(item) for item in readings_data or []]


def readings_to_dataframe(readings) :
    """Flatten readings into one row per station, with PM2.5 class and marker colour."""
    rows = []
    for reading in readings :
        classification = classify(reading.value(Pollutant.PM25))
        rows.append({
            "id" : reading.id,
            "location" : reading.location,
            "region" : reading.region,
            "lon" : reading.longitude,
            "lat" : reading.latitude,
            **{pollutant.value : reading.value(pollutant) for pollutant in Pollutant},
            "quality" : classification.label,
            "color" : classification.color_hex,
            "uploader_name" : reading.uploader_name,
            "upload_time" : reading.upload_time
        })
    return pd.DataFrame(rows)


def format_value(value) :
    return f"{value:g}" if isinstance(value, (int, float)) else str(value)


def popup_text(row, pollutants) :
    """Hover text for one station: quality, selected pollutants, temperature and humidity."""
    lines = [f"<b>{row['location']}</b>", f"Air Quality: {row['quality']}"]
    for pollutant in pollutants :
        info = POLLUTANTS[Pollutant(pollutant)]
        lines.append(f"{info.label}: {format_value(row[Pollutant(pollutant).value])} {info.unit}")
    lines.append(f"Temperature: {format_value(row['temperature'])}°C")
    lines.append(f"Humidity: {format_value(row['humidity'])}%")
    return "<br>".join(lines)


def pollutant_stats(data_frame, pollutant) :
    """Average, minimum, maximum and count of one pollutant."""
    key = Pollutant(pollutant).value
    if data_frame.empty or key not in data_frame.columns :
        return {"average" : 0.0, "min" : 0.0, "max" : 0.0, "data_points" : 0}
    series = data_frame[key].astype(float)
    return {
        "average" : round(series.mean(), 1),
        "min" : round(series.min(), 1),
        "max" : round(series.max(), 1),
        "data_points" : int(series.count())
    }


def build_filter_state(selected_regions, selected_pollutants, view_mode, heat_pollutant) :
    """Collect the sidebar widget values into a FilterState."""
    return FilterState.for_regions(
        selected_regions,
        selected_pollutants = [Pollutant(pollutant) for pollutant in selected_pollutants],
        view_mode = view_mode,
        heat_pollutant = Pollutant(heat_pollutant)
    )
