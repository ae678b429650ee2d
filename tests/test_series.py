import pandas as pd
import pytest

from conftest import make_series
from imbalance_sarima.data.series import ImbalanceSeries


def test_tsp_of_half_hourly_series():
    series = make_series(n=96, period=48)
    start, end, frequency = series.tsp()

    assert series.start == (2023, 1.0)
    assert start == 1.0
    assert end == pytest.approx(1.0 + 95 / 48)
    assert frequency == 48


def test_iloc_keeps_origin():
    series = make_series(n=20)
    part = series.iloc(5, 10)

    assert part.start[0] == series.start[0]
    assert part.start_time == pytest.approx(series.time_at(5))
    assert part.window(part.time_at(1), part.time_at(2)).index.equals(series.index[6:8])


def test_concat_rejects_overlap():
    series = make_series(n=20)
    with pytest.raises(ValueError):
        series.iloc(0, 10).concat(series.iloc(5, 20))


def test_requires_datetime_index():
    with pytest.raises(TypeError):
        ImbalanceSeries(data=pd.Series([1.0, 2.0]))
