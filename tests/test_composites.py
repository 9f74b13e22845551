from datetime import date
from unittest import mock

import pytest

from airwatch.gee import composites
from airwatch.gee.composites import Period, add_months, monthly_periods, weekly_periods


@pytest.mark.parametrize("d, n, expected", [
    (date(2020, 1, 1), 1, date(2020, 2, 1)),
    (date(2020, 12, 1), 1, date(2021, 1, 1)),
    (date(2020, 11, 1), 14, date(2022, 1, 1)),
])
def test_add_months(d, n, expected):
    assert add_months(d, n) == expected


def test_monthly_periods():
    periods = monthly_periods([2018, 2019])
    assert len(periods) == 24
    assert periods[0] == Period(date(2018, 1, 1), date(2018, 2, 1), 2018, 1)
    assert periods[11] == Period(date(2018, 12, 1), date(2019, 1, 1), 2018, 12)
    assert periods[-1].year == 2019 and periods[-1].month == 12


def test_weekly_periods_full_range():
    periods = weekly_periods("2018-01-01", "2022-12-31")
    # 1825 days / 7 -> 261 windows
    assert len(periods) == 261
    assert periods[0].start_str == "2018-01-01"
    assert periods[0].end_str == "2018-01-08"
    assert periods[-1].start_str == "2022-12-26"
    assert periods[-1].end_str == "2023-01-02"
    assert all((p.end - p.start).days == 7 for p in periods)
    assert all(a.end == b.start for a, b in zip(periods, periods[1:]))


def test_weekly_periods_partial_week():
    assert len(weekly_periods("2020-01-01", "2020-01-09")) == 2
    assert weekly_periods("2020-01-01", "2020-01-01") == []


@mock.patch.object(composites, "ee")
def test_yearly_image(ee_mock):
    dataset = mock.MagicMock()
    boundary = mock.MagicMock()
    start = ee_mock.Date.fromYMD.return_value

    img = composites.yearly_image(dataset, 2020, boundary)

    ee_mock.Date.fromYMD.assert_called_once_with(2020, 1, 1)
    start.advance.assert_called_once_with(1, "year")
    dataset.filterDate.assert_called_once_with(start, start.advance.return_value)
    mean = dataset.filterDate.return_value.mean.return_value
    mean.clip.assert_called_once_with(boundary)
    mean.clip.return_value.set.assert_called_once_with("year", 2020)
    assert img is mean.clip.return_value.set.return_value


@mock.patch.object(composites, "ee")
def test_yearly_collection_one_image_per_year(ee_mock):
    dataset = mock.MagicMock()
    composites.yearly_collection(dataset, [2018, 2019, 2020], mock.MagicMock())
    (images,), _ = ee_mock.ImageCollection.call_args
    assert len(images) == 3
    assert [c.args for c in ee_mock.Date.fromYMD.call_args_list] == [(2018, 1, 1), (2019, 1, 1), (2020, 1, 1)]


@mock.patch.object(composites, "ee")
def test_period_image_is_unclipped_mean(ee_mock):
    dataset = mock.MagicMock()
    p = Period(date(2019, 3, 1), date(2019, 4, 1), 2019, 3)
    img = composites.period_image(dataset, p)
    dataset.filterDate.assert_called_once_with("2019-03-01", "2019-04-01")
    assert img is dataset.filterDate.return_value.mean.return_value
    img.clip.assert_not_called()
