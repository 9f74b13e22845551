import logging
from typing import Sequence

import ee
import geemap.foliumap as geemap

from airwatch.config import PM25_VIS
from airwatch.gee.composites import image_for_year
from airwatch.visual.legend import add_pm25_legend

logger = logging.getLogger(__name__)


def build_monitoring_map(
    boundary: ee.FeatureCollection,
    yearly: ee.ImageCollection,
    years: Sequence[int],
    selected_year: int,
    under_cities: ee.FeatureCollection,
    other_cities: ee.FeatureCollection,
    region_label: str = "Region",
    zoom: int = 7,
):
    """Region boundary, one PM2.5 layer per year (only selected_year visible), cities and legend."""
    Map = geemap.Map(plugin_Draw=False, locate_control=False)
    Map.add_basemap("CartoDB.PositronOnlyLabels")  # labels-only overlay
    Map.centerObject(boundary, zoom)
    Map.addLayer(boundary, {}, region_label)

    for year in years:
        try:
            Map.addLayer(
                image_for_year(yearly, year),
                PM25_VIS,
                f"PM2.5 {year}",
                year == selected_year,
                opacity=0.8,
            )
        except ee.EEException as e:
            # a year without scenes has a band-less composite that cannot be rendered
            logger.warning("Skipping PM2.5 layer for %s: %s", year, e)

    Map.addLayer(other_cities, {"color": "blue"}, "Other Cities")
    Map.addLayer(under_cities, {"color": "red"}, "Undermonitored Cities")

    add_pm25_legend(Map)
    Map.addLayerControl()
    return Map
