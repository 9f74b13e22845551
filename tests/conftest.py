import matplotlib

matplotlib.use("Agg")  # before anything imports pyplot

import pytest
import streamlit as st

ENV_KEYS = [
    "PM25_REGION_NAME", "PM25_BOUNDARY_ASSET", "PM25_CITIES_ASSET", "PM25_YEARS",
    "PM25_DEFAULT_YEAR", "PM25_UNDERMONITORED", "PM25_WEEKLY_START", "PM25_WEEKLY_END",
    "PM25_SCALE_M", "PM25_DRIVE_FOLDER", "PM25_EXPORT_PREFIX",
    "EE_PRIVATE_KEY", "EE_PROJECT", "ALLOW_GEEMAP_FALLBACK", "EARTHENGINE_TOKEN",
]


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch):
    """No secrets.toml and no PM25_/EE_ variables leaking in from the shell."""
    monkeypatch.setattr(st, "secrets", {})
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def fc_info():
    """Evaluated reduceRegions result as returned by getInfo()."""
    def feature(name, lon, lat, mean):
        return {
            "type": "Feature",
            "geometry": {"type": "Point", "coordinates": [lon, lat]},
            "properties": {"name": name, "mean": mean},
        }

    return {
        "type": "FeatureCollection",
        "features": [
            feature("Chennai", 80.27, 13.08, 0.0000712),
            feature("Neyveli", 79.48, 11.61, 0.0000451),
            feature("Ranipet", 79.33, 12.93, None),
            feature("Madurai", 78.12, 9.93, 0.0),
            feature("Tiruppur", 77.34, 11.11, 0.00003),
        ],
    }
