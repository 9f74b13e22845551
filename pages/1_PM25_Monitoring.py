# PM2.5 (NO₂ proxy) monitoring map: yearly layers, city statistics, undermonitored cities, city trend on click

import ee
import streamlit as st
from streamlit_folium import st_folium

from airwatch.config import load_settings
from airwatch.gee.datasets import cities_frame
from airwatch.gee.sampling import city_time_series
from airwatch.pipeline import build_sources
from airwatch.tables import city_stat_lines, city_stats_frame, nearest_city, panel_html
from airwatch.visual.charts import time_series_figure
from airwatch.visual.map import build_monitoring_map

st.set_page_config(page_title="PM2.5 Monitoring", layout="wide")

from ee_init import ensure_ee_ready
ensure_ee_ready()


@st.cache_data(show_spinner=False)
def fetch_city_table(settings):
    sources = build_sources(settings)
    return cities_frame(sources.cities, settings.city_name_property)


@st.cache_data(show_spinner=False)
def fetch_year_stats(settings, year: int) -> dict:
    """Evaluated reduceRegions result for one year (the raw FeatureCollection dict)."""
    return build_sources(settings).yearly_stats(year).getInfo()


@st.cache_data(show_spinner=False)
def fetch_time_series(settings, lon: float, lat: float):
    sources = build_sources(settings)
    return city_time_series(sources.yearly, settings.years, lon, lat, settings.scale_m)


def stats_panel(settings, year: int):
    try:
        with st.spinner(f"Reducing PM2.5 {year} over cities..."):
            fc_info = fetch_year_stats(settings, year)
    except ee.EEException as e:
        st.error(f"City statistics for {year} could not be computed: {e}")
        return

    st.markdown("**PM2.5 City Statistics**")
    lines = city_stat_lines(fc_info, name_property=settings.city_name_property)
    if lines:
        st.markdown("\n".join(f"- {line}" for line in lines))
    else:
        st.info(f"No city has PM2.5 data for {year}.")

    st.markdown("**Undermonitored Cities (Fixed)**")
    under_lines = city_stat_lines(fc_info, names=settings.undermonitored, name_property=settings.city_name_property)
    st.markdown(panel_html(under_lines), unsafe_allow_html=True)

    df = city_stats_frame(fc_info, year, name_property=settings.city_name_property)
    st.download_button(
        "Download city statistics (CSV)",
        df.to_csv(index=False).encode("utf-8"),
        file_name=f"{settings.export_prefix}_PM25_Cities_{year}.csv",
        mime="text/csv",
    )


def trend_panel(settings, clicked):
    st.markdown("**City Time-Series (Click a City)**")
    try:
        cities = fetch_city_table(settings)
    except ee.EEException as e:
        st.error(f"City points could not be loaded: {e}")
        return
    if cities.empty:
        st.info("The city collection is empty.")
        return

    city = None
    if clicked:
        city = nearest_city(cities, clicked["lng"], clicked["lat"], settings.click_tolerance_km)
        if city is None:
            st.caption(f"No city within {settings.click_tolerance_km:g} km of the clicked point.")

    names = sorted(cities["name"].astype(str).unique())
    default = names.index(str(city["name"])) if city is not None else 0
    name = st.selectbox("City", names, index=default)
    row = cities[cities["name"].astype(str) == name].iloc[0]

    try:
        with st.spinner(f"Sampling PM2.5 at {name}..."):
            df = fetch_time_series(settings, float(row["lon"]), float(row["lat"]))
    except ee.EEException as e:
        st.error(f"Time series for {name} could not be computed: {e}")
        return

    if df["pm25"].isna().all():
        st.info(f"No PM2.5 values for {name}.")
        return
    st.pyplot(time_series_figure(df, name), use_container_width=True)
    st.dataframe(df, use_container_width=True, hide_index=True)


def monitoring():
    settings = load_settings()
    sources = build_sources(settings)

    with st.sidebar:
        st.markdown(f"### {settings.title}")
        years = [str(y) for y in settings.years]
        year = int(st.selectbox("Select Year:", years, index=years.index(str(settings.default_year))))

    try:
        with st.spinner("Rendering map layers..."):
            under, other = sources.split_cities()
            Map = build_monitoring_map(
                sources.boundary, sources.yearly, settings.years, year, under, other,
                region_label=settings.region_name,
            )
    except ee.EEException as e:
        st.error(f"Map could not be built (check the boundary and city assets): {e}")
        st.stop()

    col1, col2 = st.columns([3, 2], gap="large")
    with col1:
        out = st_folium(Map, height=650, use_container_width=True, returned_objects=["last_clicked"], key="pm25_map")
    with col2:
        stats_panel(settings, year)
        trend_panel(settings, (out or {}).get("last_clicked"))


def app():
    st.title("PM2.5 Monitoring")
    st.caption("Sentinel-5P OFFL L3 tropospheric NO₂ (proxy) • Earth Engine • geemap • Streamlit")
    monitoring()

app()
