"""Client-side helpers over evaluated (getInfo) Earth Engine results."""
import html
import math
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from airwatch.config import PM25_FACTOR

UNIT = "µg/m³"
EARTH_RADIUS_KM = 6371.0088


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(float(value))
    except (TypeError, ValueError):
        return True


def to_pm25(value) -> Optional[float]:
    """mol/m² NO₂ column -> PM2.5 proxy value; None for null/NaN."""
    if _is_missing(value):
        return None
    return float(value) * PM25_FACTOR


def features_frame(fc_info: dict) -> pd.DataFrame:
    """Flatten an evaluated FeatureCollection into one row of properties per feature.

    Point geometries additionally get ``lon`` / ``lat`` columns.
    """
    rows = []
    for f in (fc_info or {}).get("features", []):
        row = dict(f.get("properties") or {})
        geom = f.get("geometry") or {}
        if geom.get("type") == "Point":
            lon, lat = geom["coordinates"][:2]
            row["lon"], row["lat"] = lon, lat
        rows.append(row)
    return pd.DataFrame(rows)


def city_stat_lines(
    fc_info: dict,
    names: Optional[Iterable[str]] = None,
    name_property: str = "name",
    value_property: str = "mean",
) -> List[str]:
    """'<city>: <value> µg/m³' lines for every feature with a usable mean.

    Null, NaN and zero means are skipped. With ``names``, only those cities are kept.
    """
    wanted = set(names) if names is not None else None
    lines = []
    for f in (fc_info or {}).get("features", []):
        props = f.get("properties") or {}
        name = props.get(name_property)
        val = props.get(value_property)
        if _is_missing(val) or not val:
            continue
        if wanted is not None and name not in wanted:
            continue
        lines.append(f"{name}: {to_pm25(val):.2f} {UNIT}")
    return lines


def panel_html(lines: Iterable[str], empty: str = "No data") -> str:
    """Grey box with one escaped line per row, for ``st.markdown(unsafe_allow_html=True)``."""
    body = "<br>".join(html.escape(str(line)) for line in lines) or html.escape(empty)
    return f"<div style='background-color:#f0f0f0;padding:8px;margin:10px 5px'>{body}</div>"


def city_stats_frame(fc_info: dict, year: int, name_property: str = "name") -> pd.DataFrame:
    """Per-city table for one year: name, year, pm25 (NaN where no data)."""
    df = features_frame(fc_info)
    if df.empty:
        return pd.DataFrame(columns=["name", "year", "pm25"])
    means = df["mean"] if "mean" in df.columns else pd.Series(np.nan, index=df.index)
    return pd.DataFrame({
        "name": df[name_property],
        "year": int(year),
        "pm25": pd.to_numeric(pd.Series([to_pm25(v) for v in means], index=df.index, dtype="object")),
    })


def _haversine_km(lon1, lat1, lon2, lat2):
    lon1, lat1, lon2, lat2 = map(np.radians, (lon1, lat1, lon2, lat2))
    a = np.sin((lat2 - lat1) / 2) ** 2 + np.cos(lat1) * np.cos(lat2) * np.sin((lon2 - lon1) / 2) ** 2
    return 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(a))


def nearest_city(cities_df: pd.DataFrame, lon: float, lat: float, tolerance_km: float = 10.0) -> Optional[pd.Series]:
    """City row closest to a map click, or None if none lies within tolerance_km."""
    if cities_df is None or cities_df.empty:
        return None
    dist = _haversine_km(cities_df["lon"].to_numpy(float), cities_df["lat"].to_numpy(float), lon, lat)
    i = int(np.argmin(dist))
    if dist[i] > tolerance_km:
        return None
    row = cities_df.iloc[i].copy()
    row["distance_km"] = float(dist[i])
    return row
