#file: frontend/app.py

import os
import sys

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import asyncio
import json
import pandas as pd
import streamlit as st

st.set_page_config(page_title="Environmental Data", page_icon="🌍", layout="wide")
pd.options.display.float_format = "{:.2f}".format

from backend.errors import CaptureFailure
from backend.exporter import GEOJSON_FILENAME, csv_filename, image_filename, pdf_filename, to_image, to_pdf
from backend.ingest import SAMPLE_CSV
from backend.models import GAS_POLLUTANTS, POLLUTANTS, ViewMode
from frontend.data_fetch import fetch_export_csv, fetch_export_geojson, fetch_grouped_readings, fetch_heatmap, \
    fetch_insights, fetch_legend, fetch_readings, fetch_regions, send_chat
from frontend.upload_api import refresh_data, upload_csv
from frontend.utils import build_filter_state, parse_readings, readings_to_dataframe
from frontend.ui_elements import build_heatmap, build_points_map, display_charts, display_insights, display_legend, \
    display_map, display_region_readings

# Streamlit UI
st.title("Environmental Data")

regions = asyncio.run(fetch_regions())
grouped = asyncio.run(fetch_grouped_readings())
pollutant_labels = {pollutant.value : POLLUTANTS[pollutant].label for pollutant in GAS_POLLUTANTS}

# Sidebar filters
with st.sidebar:
    st.header("Data by State")
    selected_regions = st.multiselect("States (leave empty for all)", regions)
    selected_pollutants = st.multiselect("Pollutant Filters", list(pollutant_labels),
                                         default = ["pm25", "pm10", "co2"], format_func = pollutant_labels.get)
    view_mode = st.radio("Map view", [mode.value for mode in ViewMode], format_func = str.capitalize, horizontal = True)
    heat_pollutant = st.selectbox("Heatmap pollutant", list(pollutant_labels), format_func = pollutant_labels.get,
                                  disabled = view_mode != ViewMode.HEATMAP.value)
    map_style = st.selectbox("Map style", ["Street", "Satellite", "Terrain"])
    if st.button("Refresh data"):
        result = refresh_data()
        if result is None:
            st.error("Refresh failed, please try again.")
        else:
            st.success(f"Loaded {result['loaded']} readings.")
            st.rerun()

filters = build_filter_state(selected_regions, selected_pollutants, view_mode, heat_pollutant)
readings = parse_readings(asyncio.run(fetch_readings(filters.selected_regions)))
station_df = readings_to_dataframe(readings)
total = sum(len(items) for items in grouped.values())
st.caption(f"{len(readings)} of {total} stations shown")

map_tab, states_tab, charts_tab, upload_tab, insights_tab, chat_tab = st.tabs(
    ["Map", "States", "Charts", "Upload", "AI Insights", "Chat"])

with map_tab:
    col1, col2 = st.columns([4, 1])
    with col1:
        if filters.view_mode == ViewMode.HEATMAP:
            heat_points = asyncio.run(fetch_heatmap(filters.heat_pollutant.value, filters.selected_regions))
            fig_map = build_heatmap(heat_points, map_style)
        else:
            fig_map = build_points_map(station_df, filters.selected_pollutants, map_style)
        display_map(fig_map)
    with col2:
        display_legend(asyncio.run(fetch_legend()))

        st.markdown("---")
        if st.button("Export as Image"):
            try:
                st.session_state["map_png"] = to_image(fig_map)
            except CaptureFailure as e:
                st.error(f"{e}. Please try again.")
        if "map_png" in st.session_state:
            st.download_button("Download PNG", st.session_state["map_png"], file_name = image_filename(),
                               mime = "image/png")

        if st.button("Export as PDF"):
            try:
                st.session_state["map_pdf"] = to_pdf(fig_map)
            except CaptureFailure as e:
                st.error(f"{e}. Please try again.")
        if "map_pdf" in st.session_state:
            st.download_button("Download PDF", st.session_state["map_pdf"], file_name = pdf_filename(),
                               mime = "application/pdf")

        geojson = asyncio.run(fetch_export_geojson(filters.selected_regions))
        if geojson is not None:
            if not geojson["features"]:
                st.warning("No readings match the current filters.")
            st.download_button("Download GeoJSON", json.dumps(geojson, indent = 2), file_name = GEOJSON_FILENAME,
                               mime = "application/geo+json")

with states_tab:
    if not grouped:
        st.warning("No data yet. Upload a CSV file to get started.")
    for region, region_readings in grouped.items():
        region_df = readings_to_dataframe(parse_readings(region_readings))
        with st.expander(f"📍 {region} ({len(region_df)})"):
            col1, col2 = st.columns(2)
            with col1:
                show = st.toggle("View", key = f"view-{region}")
            with col2:
                csv_text = asyncio.run(fetch_export_csv([region]))
                if csv_text is not None:
                    st.download_button("Download", csv_text, file_name = csv_filename(region), mime = "text/csv",
                                       key = f"csv-{region}")
            if show:
                display_region_readings(region, region_df)
            else:
                for _, row in region_df.head(3).iterrows():
                    st.write(f"**{row['location']}** · PM2.5: {row['pm25']:g} μg/m³")
                if len(region_df) > 3:
                    st.caption(f"+{len(region_df) - 3} more locations")

with charts_tab:
    display_charts(station_df, filters.selected_pollutants)

with upload_tab:
    st.subheader("Upload environmental data")
    st.write("Upload data in standard CSV format with required columns: " + ", ".join(SAMPLE_CSV.splitlines()[0].split(",")))
    st.download_button("Download Sample", SAMPLE_CSV, file_name = "sample_environmental_data.csv", mime = "text/csv")
    with st.form("upload", clear_on_submit = True):
        uploader_name = st.text_input("Your name")
        uploaded_file = st.file_uploader("CSV file", type = ["csv"])
        submitted = st.form_submit_button("Upload")
    if submitted:
        if uploaded_file is None or not uploader_name.strip():
            st.error("Please provide your name and a CSV file.")
        else:
            ok, message = upload_csv(uploaded_file.getvalue(), uploaded_file.name, uploader_name)
            (st.success if ok else st.error)(message)

with insights_tab:
    if station_df.empty:
        st.info("No readings for the current filters.")
    else:
        options = dict(zip(station_df["id"].astype(str), station_df["location"] + " (" + station_df["region"] + ")"))
        reading_id = st.selectbox("Station", list(options), format_func = options.get)
        insight_pollutant = st.selectbox("Focus pollutant", list(pollutant_labels), format_func = pollutant_labels.get,
                                         key = "insight-pollutant")
        if st.button("Generate insights"):
            with st.spinner("Analysing air quality..."):
                result = asyncio.run(fetch_insights(reading_id, insight_pollutant))
            if result is None:
                st.error("Failed to generate insights, please try again.")
            else:
                display_insights(result["insights"])

with chat_tab:
    history = st.session_state.setdefault("chat_history", [])
    for message in history:
        with st.chat_message(message["role"]):
            st.markdown(message["content"])
    prompt = st.chat_input("Ask about air quality...")
    if prompt:
        history.append({"role" : "user", "content" : prompt})
        with st.chat_message("user"):
            st.markdown(prompt)
        reply = asyncio.run(send_chat(history))
        if reply is None:
            history.pop()
            st.error("The assistant is unavailable, please try again.")
        else:
            history.append({"role" : "assistant", "content" : reply})
            with st.chat_message("assistant"):
                st.markdown(reply)
