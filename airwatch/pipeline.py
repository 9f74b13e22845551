"""Wires settings to the lazy Earth Engine objects every page needs."""
from dataclasses import dataclass

import ee

from airwatch.config import Settings
from airwatch.gee.composites import image_for_year, monthly_periods, weekly_periods, yearly_collection
from airwatch.gee.datasets import load_boundary, load_cities, no2_collection, split_cities
from airwatch.gee.sampling import city_stats, monthly_city_stats, weekly_city_stats


@dataclass(frozen=True)
class Sources:
    settings: Settings
    boundary: ee.FeatureCollection
    cities: ee.FeatureCollection
    dataset: ee.ImageCollection
    yearly: ee.ImageCollection

    def split_cities(self):
        return split_cities(self.cities, self.settings.undermonitored, self.settings.city_name_property)

    def yearly_stats(self, year: int) -> ee.FeatureCollection:
        return city_stats(image_for_year(self.yearly, year), self.cities, self.settings.scale_m)

    def monthly_stats(self, years=None) -> ee.FeatureCollection:
        periods = monthly_periods(years if years is not None else self.settings.years)
        return monthly_city_stats(self.dataset, self.cities, periods, self.settings.scale_m)

    def weekly_stats(self, year: int = None) -> ee.FeatureCollection:
        """Weekly stats on the configured weekly grid; with year, only weeks starting in that year."""
        periods = weekly_periods(self.settings.weekly_start, self.settings.weekly_end)
        if year is not None:
            periods = [p for p in periods if p.start.year == year]
        return weekly_city_stats(self.dataset, self.cities, periods, self.settings.scale_m)


def build_sources(settings: Settings) -> Sources:
    boundary = load_boundary(settings)
    dataset = no2_collection()
    return Sources(
        settings=settings,
        boundary=boundary,
        cities=load_cities(settings),
        dataset=dataset,
        yearly=yearly_collection(dataset, settings.years, boundary),
    )
