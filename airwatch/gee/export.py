"""Drive CSV exports of the city statistics as Earth Engine batch tasks."""
import logging
import re
import time
from typing import Callable, Iterable, Optional, Sequence

import ee
import pandas as pd

logger = logging.getLogger(__name__)

BATCH_POLL_INTERVAL_S = 30
TERMINAL_STATES = {"COMPLETED", "FAILED", "CANCELLED"}
_MAX_DESCRIPTION = 100


def export_description(text: str) -> str:
    """Task descriptions allow letters, digits, '_' and '-' and at most 100 chars."""
    cleaned = re.sub(r"[^A-Za-z0-9_-]+", "_", text).strip("_")
    if not cleaned:
        raise ValueError(f"Export description {text!r} has no usable characters")
    return cleaned[:_MAX_DESCRIPTION]


def table_to_drive(collection: ee.FeatureCollection, description: str, folder: Optional[str] = None):
    kwargs = dict(
        collection=collection,
        description=export_description(description),
        fileFormat="CSV",
    )
    if folder:
        kwargs["folder"] = folder
    return ee.batch.Export.table.toDrive(**kwargs)


def yearly_export_tasks(
    stats_for_year: Callable[[int], ee.FeatureCollection],
    years: Iterable[int],
    prefix: str = "TN",
    folder: Optional[str] = None,
) -> list:
    """One task per year; stats_for_year(year) builds that year's city statistics."""
    return [
        table_to_drive(stats_for_year(y), f"{prefix}_PM25_Cities_{y}", folder)
        for y in years
    ]


def monthly_export_task(monthly: ee.FeatureCollection, years: Sequence[int], prefix: str = "TN", folder: Optional[str] = None):
    return table_to_drive(monthly, f"{prefix}_PM25_Cities_Monthly_{min(years)}_{max(years)}", folder)


def weekly_export_task(weekly: ee.FeatureCollection, years: Sequence[int], prefix: str = "TN", folder: Optional[str] = None):
    return table_to_drive(weekly, f"{prefix}_PM25_AllCities_Weekly_{min(years)}_{max(years)}", folder)


def start_tasks(tasks: Iterable) -> list:
    started = []
    for task in tasks:
        task.start()
        logger.info("Started export task %s", (task.config or {}).get("description"))
        started.append(task)
    return started


def task_status_frame(tasks: Iterable) -> pd.DataFrame:
    rows = []
    for task in tasks:
        s = task.status()
        rows.append({
            "id": s.get("id"),
            "description": s.get("description"),
            "state": s.get("state"),
            "error": s.get("error_message"),
        })
    return pd.DataFrame(rows, columns=["id", "description", "state", "error"])


def wait_for_tasks(
    tasks: Sequence,
    poll_interval_s: float = BATCH_POLL_INTERVAL_S,
    timeout_s: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> pd.DataFrame:
    """Poll until every task is COMPLETED / FAILED / CANCELLED; returns the final status table."""
    deadline = None if timeout_s is None else clock() + timeout_s
    while True:
        status = task_status_frame(tasks)
        unsubmitted = status[status["state"] == "UNSUBMITTED"]
        if not unsubmitted.empty:
            raise ValueError(
                "export task(s) were never started, call start_tasks() first: "
                + ", ".join(str(d) for d in unsubmitted["description"])
            )
        pending = status[~status["state"].isin(TERMINAL_STATES)]
        if pending.empty:
            failed = status[status["state"] != "COMPLETED"]
            for _, row in failed.iterrows():
                logger.warning("Export %s ended as %s: %s", row["description"], row["state"], row["error"])
            return status
        if deadline is not None and clock() >= deadline:
            raise TimeoutError(
                f"{len(pending)} export task(s) still running after {timeout_s}s: "
                + ", ".join(str(d) for d in pending["description"])
            )
        logger.info("%d/%d export tasks pending", len(pending), len(status))
        sleep(poll_interval_s)

