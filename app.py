"""
PM2.5 Monitoring (Sentinel-5P NO₂ proxy)
----------------------------------------
Landing page of the Streamlit app. Run with ``streamlit run app.py``.

- Tropospheric NO₂ column density (COPERNICUS/S5P/OFFL/L3_NO2) is averaged per year, month and week.
- The values are sampled at city points (mean, 1 km scale) and scaled by 1e6; they are labeled "PM2.5" as a proxy.
- Pages: monitoring map with city statistics and trends, monthly/weekly tables, Drive exports.
"""

import streamlit as st

from airwatch.config import load_settings

st.set_page_config(page_title="PM2.5 Monitoring", layout="wide")


def app():
    settings = load_settings()
    st.title(settings.title)
    st.caption("Sentinel-5P NO₂ (proxy for PM2.5) • Earth Engine • geemap • Streamlit")

    with st.expander("What this app does", expanded=True):
        st.markdown(
            f"""
    - Loads the **{settings.region_name}** boundary and the city points (`{settings.cities_asset}`).
    - Averages **tropospheric NO₂** per year, month and week and samples the means at every city (scale {settings.scale_m} m).
    - Values are multiplied by 1e6 and shown as **PM2.5 (µg/m³)**; this is a visual proxy, not a measured PM2.5 concentration.
    - Highlights the undermonitored cities: {", ".join(settings.undermonitored)}.
            """
        )

    st.page_link("pages/1_PM25_Monitoring.py", label="Monitoring map")
    st.page_link("pages/2_PM25_Periods.py", label="Monthly & weekly values")
    st.page_link("pages/3_PM25_Exports.py", label="Drive exports")

app()
