"""Server-side spatial reduction of the composites at city points.

All collections built here stay lazy; nothing is evaluated until a caller asks
for ``getInfo()`` or hands the result to an export task.
"""
import logging
from typing import Iterable, Sequence

import ee
import numpy as np
import pandas as pd

from airwatch.config import NO2_BAND, PM25_FACTOR
from airwatch.gee.composites import Period, image_for_year, period_image

logger = logging.getLogger(__name__)


def city_stats(image: ee.Image, cities: ee.FeatureCollection, scale: int = 1000) -> ee.FeatureCollection:
    """Mean of the image per city; each feature gets a (possibly null) 'mean' property."""
    return image.reduceRegions(
        collection=cities,
        reducer=ee.Reducer.mean(),
        scale=scale,
    )


def _with_pm25(f: ee.Feature) -> ee.Feature:
    mean_val = f.get("mean")
    pm25 = ee.Algorithms.If(mean_val, ee.Number(mean_val).multiply(PM25_FACTOR), None)
    return f.set("PM25", pm25)


def _period_stats(
    dataset: ee.ImageCollection,
    cities: ee.FeatureCollection,
    period: Period,
    props: dict,
    scale: int,
) -> ee.FeatureCollection:
    img = period_image(dataset, period)
    reduced = city_stats(img, cities, scale).map(lambda f: _with_pm25(f).set(props))
    # Empty window -> band-less mean image -> empty collection instead of an error
    return ee.FeatureCollection(ee.Algorithms.If(
        img.bandNames().size().gt(0),
        reduced,
        ee.FeatureCollection([]),
    ))


def _flatten_non_null(collections: Sequence) -> ee.FeatureCollection:
    return ee.FeatureCollection(list(collections)).flatten().filter(ee.Filter.notNull(["PM25"]))


def monthly_city_stats(
    dataset: ee.ImageCollection,
    cities: ee.FeatureCollection,
    periods: Iterable[Period],
    scale: int = 1000,
) -> ee.FeatureCollection:
    periods = list(periods)
    logger.debug("Building monthly city stats for %d months", len(periods))
    return _flatten_non_null([
        _period_stats(dataset, cities, p, {"year": p.year, "month": p.month}, scale)
        for p in periods
    ])


def weekly_city_stats(
    dataset: ee.ImageCollection,
    cities: ee.FeatureCollection,
    periods: Iterable[Period],
    scale: int = 1000,
) -> ee.FeatureCollection:
    periods = list(periods)
    logger.debug("Building weekly city stats for %d weeks", len(periods))
    return _flatten_non_null([
        _period_stats(dataset, cities, p, {"start": p.start_str, "end": p.end_str}, scale)
        for p in periods
    ])


def city_time_series(
    yearly: ee.ImageCollection,
    years: Sequence[int],
    lon: float,
    lat: float,
    scale: int = 1000,
) -> pd.DataFrame:
    """Yearly PM2.5 proxy at one city point as a DataFrame (year, pm25).

    Years whose composite has no bands (no scenes in range) come back as NaN.
    """
    point = ee.Geometry.Point([lon, lat])

    def _year_value(y):
        img = image_for_year(yearly, y)
        value = img.reduceRegion(
            reducer=ee.Reducer.mean(),
            geometry=point,
            scale=scale,
        ).get(NO2_BAND)
        return ee.Algorithms.If(img.bandNames().size().gt(0), value, None)

    values = ee.List([_year_value(y) for y in years])
    raw = values.getInfo()  # one round trip for all years
    pm25 = [np.nan if v is None else float(v) * PM25_FACTOR for v in raw]
    return pd.DataFrame({"year": list(years), "pm25": pm25})
