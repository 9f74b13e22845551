"""Earth Engine sources: region boundary, city points and the Sentinel-5P NO₂ collection."""
import logging
from typing import Sequence, Tuple

import ee
import pandas as pd

from airwatch.config import NO2_BAND, NO2_COLLECTION, Settings
from airwatch.tables import features_frame

logger = logging.getLogger(__name__)


def no2_collection() -> ee.ImageCollection:
    """Sentinel-5P OFFL L3 NO₂ restricted to the tropospheric column band."""
    return ee.ImageCollection(NO2_COLLECTION).select(NO2_BAND)


def load_boundary(settings: Settings) -> ee.FeatureCollection:
    return (
        ee.FeatureCollection(settings.boundary_asset)
        .filter(ee.Filter.eq(settings.boundary_property, settings.region_name))
    )


def load_cities(settings: Settings) -> ee.FeatureCollection:
    return ee.FeatureCollection(settings.cities_asset)


def split_cities(
    cities: ee.FeatureCollection, names: Sequence[str], name_property: str = "name"
) -> Tuple[ee.FeatureCollection, ee.FeatureCollection]:
    """Return (cities in names, all other cities)."""
    in_list = ee.Filter.inList(name_property, list(names))
    return cities.filter(in_list), cities.filter(in_list.Not())


def cities_frame(cities: ee.FeatureCollection, name_property: str = "name") -> pd.DataFrame:
    """Evaluate the city points into a DataFrame with name, lon, lat."""
    info = cities.getInfo()
    df = features_frame(info)
    if df.empty:
        logger.warning("City collection is empty")
        return pd.DataFrame(columns=["name", "lon", "lat"])
    if name_property not in df.columns:
        raise ValueError(
            f"City collection has no '{name_property}' property (found: {sorted(df.columns)})"
        )
    out = df[[name_property, "lon", "lat"]].rename(columns={name_property: "name"})
    out = out.dropna(subset=["lon", "lat"]).reset_index(drop=True)
    logger.info("Loaded %d cities", len(out))
    return out
