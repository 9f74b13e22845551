# config.py — settings from st.secrets / environment with sensible defaults
import os
import datetime as dt
from dataclasses import dataclass
from typing import Optional, Tuple

import streamlit as st

# Sentinel-5P OFFL L3 NO₂ (used as PM2.5 proxy)
NO2_COLLECTION = "COPERNICUS/S5P/OFFL/L3_NO2"
NO2_BAND = "tropospheric_NO2_column_number_density"

# mol/m² -> displayed "µg/m³" proxy value
PM25_FACTOR = 1e6

PM25_VIS = {
    "min": 0,
    "max": 0.0002,
    "palette": ["#00e400", "#ffff00", "#ff7e00", "#ff0000", "#8f3f97", "#7e0023"],
}
LEGEND_NAMES = ["Good", "Moderate", "Unhealthy (SG)", "Unhealthy", "Very Unhealthy", "Hazardous"]


def load_from_secrets_or_env(key: str) -> Optional[str]:
    # st.secrets may be missing entirely (no secrets.toml)
    try:
        if key in st.secrets:
            return st.secrets[key]
    except Exception:
        pass
    return os.environ.get(key)


def _parse_int(key: str, raw: str) -> int:
    try:
        return int(str(raw).strip())
    except ValueError as e:
        raise ValueError(f"{key} must be an integer, got {raw!r}") from e


def parse_years(raw: str, key: str = "PM25_YEARS") -> Tuple[int, ...]:
    """Accepts '2018,2019,2020' or a range '2018-2022' (inclusive)."""
    s = str(raw).strip()
    if not s:
        raise ValueError(f"{key} is empty")
    if "-" in s and "," not in s:
        first, last = (p.strip() for p in s.split("-", 1))
        a, b = _parse_int(key, first), _parse_int(key, last)
        if b < a:
            raise ValueError(f"{key}: range end {b} is before start {a}")
        return tuple(range(a, b + 1))
    years = tuple(_parse_int(key, p) for p in s.split(",") if p.strip())
    if not years:
        raise ValueError(f"{key} is empty")
    return tuple(sorted(set(years)))


def _parse_names(key: str, raw: str) -> Tuple[str, ...]:
    return tuple(n.strip() for n in str(raw).split(",") if n.strip())


def _parse_str(key: str, raw: str) -> str:
    return str(raw).strip()


def _parse_date(key: str, raw: str) -> str:
    try:
        return dt.date.fromisoformat(str(raw).strip()).isoformat()
    except ValueError as e:
        raise ValueError(f"{key} must be an ISO date (YYYY-MM-DD), got {raw!r}") from e


@dataclass(frozen=True)
class Settings:
    region_name: str = "Tamil Nadu"
    boundary_asset: str = "FAO/GAUL_SIMPLIFIED_500m/2015/level1"
    boundary_property: str = "ADM1_NAME"
    cities_asset: str = "projects/profound-surge-473000-c4/assets/TNadded"
    city_name_property: str = "name"
    years: Tuple[int, ...] = (2018, 2019, 2020, 2021, 2022)
    default_year: int = 2020
    undermonitored: Tuple[str, ...] = ("Neyveli", "Ranipet", "Tirupur", "Tiruppur")
    weekly_start: str = "2018-01-01"
    weekly_end: str = "2022-12-31"
    scale_m: int = 1000
    drive_folder: Optional[str] = None
    export_prefix: str = "TN"
    click_tolerance_km: float = 10.0

    @property
    def title(self) -> str:
        return f"{self.region_name} PM2.5 Monitoring ({self.years[0]}–{self.years[-1]})"

    def validate(self) -> "Settings":
        if not self.years:
            raise ValueError("At least one year must be configured.")
        if self.default_year not in self.years:
            raise ValueError(
                f"PM25_DEFAULT_YEAR {self.default_year} is not one of the configured years {list(self.years)}"
            )
        if self.weekly_end < self.weekly_start:
            raise ValueError(
                f"PM25_WEEKLY_END {self.weekly_end} is before PM25_WEEKLY_START {self.weekly_start}"
            )
        if self.scale_m <= 0:
            raise ValueError("PM25_SCALE_M must be positive.")
        return self


# secrets/env key -> (Settings field, parser(key, raw))
_ENV_FIELDS = {
    "PM25_REGION_NAME": ("region_name", _parse_str),
    "PM25_BOUNDARY_ASSET": ("boundary_asset", _parse_str),
    "PM25_CITIES_ASSET": ("cities_asset", _parse_str),
    "PM25_YEARS": ("years", lambda key, raw: parse_years(raw, key)),
    "PM25_DEFAULT_YEAR": ("default_year", _parse_int),
    "PM25_UNDERMONITORED": ("undermonitored", _parse_names),
    "PM25_WEEKLY_START": ("weekly_start", _parse_date),
    "PM25_WEEKLY_END": ("weekly_end", _parse_date),
    "PM25_SCALE_M": ("scale_m", _parse_int),
    "PM25_DRIVE_FOLDER": ("drive_folder", _parse_str),
    "PM25_EXPORT_PREFIX": ("export_prefix", _parse_str),
}


def load_settings() -> Settings:
    """Build Settings from st.secrets / env. Unset keys keep their defaults."""
    kwargs = {}
    for key, (name, parse) in _ENV_FIELDS.items():
        val = load_from_secrets_or_env(key)
        if val is None or str(val).strip() == "":
            continue
        kwargs[name] = parse(key, val)

    if "years" in kwargs and "default_year" not in kwargs and Settings.default_year not in kwargs["years"]:
        # default 2020 outside a custom range -> last configured year
        kwargs["default_year"] = kwargs["years"][-1]

    return Settings(**kwargs).validate()
