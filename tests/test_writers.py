import math

import numpy as np
import pandas as pd
import pytest

from imbalance_sarima.data.writers import (
    read_best_order,
    read_forecast,
    read_search_results,
    write_forecast,
    write_search_results
)
from imbalance_sarima.models.order_search import RESULT_COLUMNS


def _forecast(n=5):
    index = pd.date_range("2023-10-01 00:00:00", periods=n, freq="30min", tz="UTC", name="start_date")
    return pd.Series(np.linspace(-1.5, 2.5, n), index=index, name="sarima")


def _search_table():
    rows = [
        {'candidate': 2, 'p': 1, 'd': 1, 'q': 1, 'P': 0, 'D': 1, 'Q': 1, 'MAE': 1.0, 'RMSE': 1.5},
        {'candidate': 1, 'p': 0, 'd': 1, 'q': 1, 'P': 0, 'D': 1, 'Q': 1, 'MAE': 1.2, 'RMSE': 1.7},
        {'candidate': 3, 'p': 2, 'd': 1, 'q': 1, 'P': 0, 'D': 1, 'Q': 1, 'MAE': math.nan, 'RMSE': math.nan},
    ]
    return pd.DataFrame(rows).set_index('candidate')[RESULT_COLUMNS]


def test_forecast_csv_layout(tmp_path):
    path = write_forecast(_forecast(), tmp_path / "forecasts" / "sarima.csv")

    lines = path.read_text().splitlines()
    assert lines[0] == "start_date,sarima"
    assert lines[1].startswith("2023-10-01 00:00:00,")
    assert len(lines) == 6


def test_forecast_round_trip(tmp_path):
    forecast = _forecast()
    path = write_forecast(forecast, tmp_path / "sarima.csv")

    pd.testing.assert_series_equal(read_forecast(path), forecast, check_freq=False)


def test_naive_index_is_written_as_utc(tmp_path):
    forecast = _forecast().tz_localize(None)
    path = write_forecast(forecast, tmp_path / "sarima.csv")
    assert read_forecast(path).index[0] == pd.Timestamp("2023-10-01 00:00:00", tz="UTC")


def test_unwritable_path_raises_and_leaves_nothing(tmp_path):
    blocker = tmp_path / "not_a_dir"
    blocker.write_text("x")

    with pytest.raises(OSError):
        write_forecast(_forecast(), blocker / "sarima.csv")
    assert blocker.read_text() == "x"


def test_existing_file_is_replaced(tmp_path):
    path = tmp_path / "sarima.csv"
    path.write_text("old contents\n")
    write_forecast(_forecast(3), path)

    assert len(read_forecast(path)) == 3
    assert [p.name for p in tmp_path.iterdir()] == ["sarima.csv"]


def test_search_results_round_trip(tmp_path):
    table = _search_table()
    path = write_search_results(table, tmp_path / "sarima_order.csv")

    assert path.read_text().splitlines()[0] == "candidate,p,d,q,P,D,Q,MAE,RMSE"
    loaded = read_search_results(path)
    assert list(loaded.index) == [2, 1, 3]
    assert math.isnan(loaded.loc[3, 'RMSE'])


def test_read_best_order(tmp_path):
    path = write_search_results(_search_table(), tmp_path / "sarima_order.csv")
    assert read_best_order(path, period=48) == ((1, 1, 1), (0, 1, 1, 48))


def test_read_best_order_without_scores(tmp_path):
    table = _search_table().iloc[[2]]
    path = write_search_results(table, tmp_path / "sarima_order.csv")

    with pytest.raises(ValueError, match="No scored"):
        read_best_order(path, period=48)
