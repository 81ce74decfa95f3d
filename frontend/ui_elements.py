#file: frontend/ui_elements.py

import streamlit as st
import plotly.express as px
import plotly.graph_objects as go

from backend.heatmap import HEAT_GRADIENT, HEAT_LAYER_OPTIONS
from backend.models import Pollutant, POLLUTANTS
from frontend.utils import popup_text, pollutant_stats

MAP_CENTER = {"lat" : 9.082, "lon" : 7.4951}
MAP_ZOOM = 6
MAP_HEIGHT = 600

TILE_STYLES = {
    "Street" : None,
    "Satellite" : "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}",
    "Terrain" : "https://a.tile.opentopomap.org/{z}/{x}/{y}.png",
}


def apply_tile_style(fig, style = "Street") :
    """Switch the base map between street, satellite and terrain tiles."""
    tiles = TILE_STYLES.get(style)
    if tiles is None :
        fig.update_layout(map_style = "open-street-map", map_layers = [])
    else :
        fig.update_layout(
            map_style = "white-bg",
            map_layers = [{"below" : "traces", "sourcetype" : "raster", "source" : [tiles]}]
        )
    return fig


def _base_layout(fig, style) :
    fig.update_layout(
        map = {"center" : MAP_CENTER, "zoom" : MAP_ZOOM},
        height = MAP_HEIGHT,
        showlegend = False,
        margin = {
            "r" : 0,
            "t" : 0,
            "l" : 0,
            "b" : 0
        }
    )
    return apply_tile_style(fig, style)


def build_points_map(station_df, pollutants, style = "Street") :
    """One marker per station, coloured by its PM2.5 class."""
    fig = go.Figure()
    if not station_df.empty :
        fig.add_trace(go.Scattermap(
            lat = station_df["lat"],
            lon = station_df["lon"],
            mode = "markers",
            marker = {"size" : 14, "color" : station_df["color"], "opacity" : 0.8},
            text = [popup_text(row, pollutants) for _, row in station_df.iterrows()],
            hoverinfo = "text"
        ))
    return _base_layout(fig, style)


def build_heatmap(heat_points, style = "Street") :
    """Density layer driven by the normalized heat intensities."""
    fig = go.Figure()
    if heat_points :
        stops = sorted(HEAT_GRADIENT.items())
        fig.add_trace(go.Densitymap(
            lat = [point["lat"] for point in heat_points],
            lon = [point["lon"] for point in heat_points],
            z = [point["intensity"] for point in heat_points],
            radius = HEAT_LAYER_OPTIONS["radius"],
            zmin = 0,
            zmax = HEAT_LAYER_OPTIONS["max"],
            colorscale = [[stop, color] for stop, color in stops],
            opacity = 0.8,
            showscale = False
        ))
    return _base_layout(fig, style)


def display_map(fig) :
    st.plotly_chart(fig, use_container_width = True)


def display_legend(entries) :
    """Air quality legend next to the map."""
    st.markdown("**Air Quality Index**")
    for entry in entries :
        st.markdown(
            f"<span style='display:inline-block;width:14px;height:14px;border-radius:3px;"
            f"background:{entry['color_hex']};margin-right:8px'></span>"
            f"{entry['label']} <small>({entry['range']})</small>",
            unsafe_allow_html = True
        )


def build_pollutant_chart(data_frame, pollutant) :
    info = POLLUTANTS[Pollutant(pollutant)]
    key = Pollutant(pollutant).value
    fig = px.bar(
        data_frame.sort_values(by = key, ascending = False),
        x = "location",
        y = key,
        color = "region",
        title = f"{info.label} Concentration",
        labels = {
            "location" : "Station",
            "region" : "State",
            key : f"{info.label} ({info.unit})" if info.unit else info.label
        }
    )
    fig.update_layout(
        legend=dict(
            orientation="h",
            yanchor="top",
            y=-0.3,
            xanchor="center",
            x=0.5
        )
    )
    return fig


def display_charts(data_frame, pollutants) :
    """Display one bar chart with summary statistics per selected pollutant."""
    if data_frame.empty :
        st.info("No readings for the current filters.")
        return
    for pollutant in pollutants :
        stats = pollutant_stats(data_frame, pollutant)
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Average", stats["average"])
        col2.metric("Min", stats["min"])
        col3.metric("Max", stats["max"])
        col4.metric("Data points", stats["data_points"])
        st.plotly_chart(build_pollutant_chart(data_frame, pollutant), use_container_width = True)


def display_region_readings(region, readings_df) :
    """Card list of every station in one region."""
    st.subheader(f"{region} - Environmental Data")
    for _, row in readings_df.iterrows() :
        with st.container(border = True) :
            st.markdown(f"**{row['location']}**")
            col1, col2 = st.columns(2)
            col1.write(f"PM2.5: {row['pm25']:g} μg/m³")
            col2.write(f"PM10: {row['pm10']:g} μg/m³")
            col1.write(f"CO₂: {row['co2']:g} ppm")
            col2.write(f"CO: {row['co']:g} ppm")
            col1.write(f"Temperature: {row['temperature']:g}°C")
            col2.write(f"Humidity: {row['humidity']:g}%")


def display_insights(insights) :
    severity_icons = {"low" : "🟢", "medium" : "🟠", "high" : "🔴"}
    for insight in insights :
        with st.expander(f"{severity_icons.get(insight['severity'], '')} {insight['title']}", expanded = True) :
            st.write(insight["description"])
            for recommendation in insight.get("recommendations", []) :
                st.markdown(f"- {recommendation}")
