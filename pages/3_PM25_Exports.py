# Drive exports (CSV) of yearly, monthly and weekly PM2.5 city statistics

import ee
import streamlit as st

from airwatch.config import load_settings
from airwatch.gee.composites import weekly_periods
from airwatch.gee.export import (
    monthly_export_task,
    start_tasks,
    task_status_frame,
    weekly_export_task,
    yearly_export_tasks,
)
from airwatch.pipeline import build_sources

st.set_page_config(page_title="PM2.5 Exports", layout="wide")

from ee_init import ensure_ee_ready
ensure_ee_ready()


def build_tasks(settings, kinds):
    sources = build_sources(settings)
    tasks = []
    if "Yearly" in kinds:
        tasks += yearly_export_tasks(sources.yearly_stats, settings.years, settings.export_prefix, settings.drive_folder)
    if "Monthly" in kinds:
        tasks.append(monthly_export_task(sources.monthly_stats(), settings.years, settings.export_prefix, settings.drive_folder))
    if "Weekly" in kinds:
        periods = weekly_periods(settings.weekly_start, settings.weekly_end)
        week_years = sorted({p.start.year for p in periods})
        tasks.append(weekly_export_task(sources.weekly_stats(), week_years, settings.export_prefix, settings.drive_folder))
    return tasks


def exports():
    settings = load_settings()
    st.title("PM2.5 Exports to Google Drive")
    folder = settings.drive_folder or "(Drive root)"
    st.caption(f"Years {settings.years[0]}–{settings.years[-1]} • scale {settings.scale_m} m • folder {folder}")

    kinds = st.multiselect("Exports", ["Yearly", "Monthly", "Weekly"], default=["Yearly", "Monthly", "Weekly"])

    if st.button("Start exports", disabled=not kinds):
        try:
            with st.spinner("Submitting export tasks..."):
                started = start_tasks(build_tasks(settings, kinds))
        except ee.EEException as e:
            st.error(f"Export submission failed: {e}")
        else:
            st.session_state.setdefault("pm25_tasks", []).extend(started)
            st.success(f"Submitted {len(started)} export task(s).")

    tasks = st.session_state.get("pm25_tasks", [])
    if tasks:
        st.subheader("Task status")
        if st.button("Refresh status"):
            st.rerun()
        try:
            st.dataframe(task_status_frame(tasks), use_container_width=True, hide_index=True)
        except ee.EEException as e:
            st.warning(f"Task status unavailable: {e}")
    else:
        st.info("No export tasks submitted in this session yet.")


exports()
