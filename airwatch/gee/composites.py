"""Yearly / monthly / weekly mean composites of the NO₂ collection."""
import math
from datetime import date, timedelta
from typing import Iterable, List, NamedTuple, Optional

import ee


class Period(NamedTuple):
    start: date
    end: date  # exclusive
    year: Optional[int] = None
    month: Optional[int] = None

    @property
    def start_str(self) -> str:
        return self.start.strftime("%Y-%m-%d")

    @property
    def end_str(self) -> str:
        return self.end.strftime("%Y-%m-%d")


def add_months(d: date, months: int) -> date:
    m = d.month - 1 + months
    return date(d.year + m // 12, m % 12 + 1, 1)


def monthly_periods(years: Iterable[int]) -> List[Period]:
    periods = []
    for y in years:
        for m in range(1, 13):
            start = date(int(y), m, 1)
            periods.append(Period(start, add_months(start, 1), int(y), m))
    return periods


def weekly_periods(start: str, end: str) -> List[Period]:
    """Consecutive 7-day windows from start; ceil(days/7) of them, the last may run past end."""
    s = date.fromisoformat(start)
    e = date.fromisoformat(end)
    n_steps = math.ceil((e - s).days / 7)
    periods = []
    for i in range(n_steps):
        ws = s + timedelta(days=7 * i)
        periods.append(Period(ws, ws + timedelta(days=7)))
    return periods


def yearly_image(dataset: ee.ImageCollection, year: int, boundary: ee.FeatureCollection) -> ee.Image:
    start = ee.Date.fromYMD(year, 1, 1)
    end = start.advance(1, "year")
    return dataset.filterDate(start, end).mean().clip(boundary).set("year", year)


def yearly_collection(dataset: ee.ImageCollection, years: Iterable[int], boundary: ee.FeatureCollection) -> ee.ImageCollection:
    return ee.ImageCollection([yearly_image(dataset, y, boundary) for y in years])


def image_for_year(yearly: ee.ImageCollection, year: int) -> ee.Image:
    return ee.Image(yearly.filter(ee.Filter.eq("year", year)).first())


def period_image(dataset: ee.ImageCollection, period: Period) -> ee.Image:
    # Unclipped; has no bands when the window holds no scenes.
    return dataset.filterDate(period.start_str, period.end_str).mean()
