# Monthly and weekly PM2.5 (NO₂ proxy) values for all cities

import datetime

import ee
import pandas as pd
import streamlit as st

from airwatch.config import load_settings
from airwatch.pipeline import build_sources
from airwatch.tables import features_frame
from airwatch.visual.charts import time_series_figure

st.set_page_config(page_title="PM2.5 Monthly & Weekly", layout="wide")

from ee_init import ensure_ee_ready
ensure_ee_ready()

MONTHLY_COLUMNS = ["name", "year", "month", "PM25"]
WEEKLY_COLUMNS = ["name", "start", "end", "PM25"]


@st.cache_data(show_spinner=False)
def fetch_monthly(settings, year: int) -> pd.DataFrame:
    fc = build_sources(settings).monthly_stats([year])
    df = features_frame(fc.getInfo())
    return df.reindex(columns=MONTHLY_COLUMNS)


@st.cache_data(show_spinner=False)
def fetch_weekly(settings, year: int) -> pd.DataFrame:
    fc = build_sources(settings).weekly_stats(year)
    df = features_frame(fc.getInfo())
    return df.reindex(columns=WEEKLY_COLUMNS)


def show_table(df: pd.DataFrame, x: str, xlabel: str, file_name: str):
    if df.empty:
        st.info("No PM2.5 values for this selection.")
        return
    cities = sorted(df["name"].astype(str).unique())
    city = st.selectbox("City", cities, key=f"city_{file_name}")
    sub = df[df["name"].astype(str) == city].sort_values(x)
    st.pyplot(time_series_figure(sub, city, x=x, y="PM25", xlabel=xlabel), use_container_width=True)
    st.dataframe(df, use_container_width=True, hide_index=True)
    st.download_button(
        "Download CSV",
        df.to_csv(index=False).encode("utf-8"),
        file_name=file_name,
        mime="text/csv",
        key=f"dl_{file_name}",
    )


def monthly(settings, year: int):
    try:
        with st.spinner(f"Computing monthly means for {year}..."):
            df = fetch_monthly(settings, year)
    except ee.EEException as e:
        st.error(f"Monthly values could not be computed: {e}")
        return
    if not df.empty:
        df = df.assign(date=pd.to_datetime(df[["year", "month"]].assign(day=1)))
    show_table(df, "date", "Month", f"{settings.export_prefix}_PM25_Cities_Monthly_{year}.csv")


def weekly(settings, year: int):
    first = datetime.date.fromisoformat(settings.weekly_start).year
    last = datetime.date.fromisoformat(settings.weekly_end).year
    if not first <= year <= last:
        st.warning(f"The weekly window is {settings.weekly_start} – {settings.weekly_end}.")
        return
    try:
        with st.spinner(f"Computing weekly means for {year}..."):
            df = fetch_weekly(settings, year)
    except ee.EEException as e:
        st.error(f"Weekly values could not be computed: {e}")
        return
    if not df.empty:
        df = df.assign(date=pd.to_datetime(df["start"]))
    show_table(df, "date", "Week", f"{settings.export_prefix}_PM25_AllCities_Weekly_{year}.csv")


def app():
    st.title("PM2.5 by Month and Week")
    settings = load_settings()

    apps = [
        "MONTHLY",
        "WEEKLY",
    ]

    col1, col2 = st.columns([4, 1])
    with col2:
        selected_app = st.selectbox("Select an aggregation", apps)
        years = [str(y) for y in settings.years]
        year = int(st.selectbox("Select a Year", years, index=years.index(str(settings.default_year))))

    with col1:
        if selected_app == "MONTHLY":
            monthly(settings, year)
        elif selected_app == "WEEKLY":
            weekly(settings, year)

app()
