import logging

import pandas as pd
import pytest

from conftest import make_frame
from imbalance_sarima.data.series_loader import load_series, series_from_frame
from imbalance_sarima.exceptions import ParseError


def test_load_series_reads_timestamps_as_utc(data_csv):
    series = load_series(data_csv, frequency=4)

    assert len(series) == 200
    assert str(series.index.tz) == "UTC"
    assert series.index[0] == pd.Timestamp("2023-01-01 00:00:00", tz="UTC")
    assert series.index.is_monotonic_increasing
    assert series.frequency == 4


def test_start_reference_half_hourly():
    frame = pd.DataFrame({
        'start_date': ["2023-02-01 00:30:00", "2023-02-01 01:00:00", "2023-02-01 01:30:00"],
        'Imbalance': [1.0, -2.5, 3.0],
    })
    series = series_from_frame(frame)

    # Feb 1st is day 32; 00:30 is slot 1 of 48
    assert series.start == (2023, 32 + 1 / 48)
    assert series.time_at(2) == pytest.approx(32 + 3 / 48)


def test_other_columns_are_ignored():
    frame = make_frame(n=12)
    frame['extra'] = 'x'
    series = series_from_frame(frame, frequency=4)
    assert series.name == 'Imbalance'
    assert len(series) == 12


def test_bad_timestamp_raises_parse_error():
    frame = make_frame(n=12)
    frame.loc[5, 'start_date'] = "2023/01/02 06:00"

    with pytest.raises(ParseError, match="line 7"):
        series_from_frame(frame, frequency=4)


def test_non_numeric_value_raises_parse_error():
    frame = make_frame(n=12)
    frame['Imbalance'] = frame['Imbalance'].astype(object)
    frame.loc[3, 'Imbalance'] = "n/a"

    with pytest.raises(ParseError, match="non-numeric"):
        series_from_frame(frame, frequency=4)


def test_missing_value_raises_parse_error():
    frame = make_frame(n=12)
    frame.loc[3, 'Imbalance'] = None

    with pytest.raises(ParseError):
        series_from_frame(frame, frequency=4)


def test_duplicate_timestamp_raises_parse_error():
    frame = make_frame(n=12)
    frame.loc[4, 'start_date'] = frame.loc[3, 'start_date']

    with pytest.raises(ParseError, match="Duplicate"):
        series_from_frame(frame, frequency=4)


def test_out_of_order_timestamps_raise_parse_error():
    frame = make_frame(n=12)
    frame = frame.iloc[[0, 2, 1] + list(range(3, 12))]

    with pytest.raises(ParseError, match="increasing"):
        series_from_frame(frame, frequency=4)


def test_missing_column_raises_parse_error():
    frame = make_frame(n=12).drop(columns=['Imbalance'])

    with pytest.raises(ParseError, match="Imbalance"):
        series_from_frame(frame, frequency=4)


def test_gap_is_kept_and_reported(caplog):
    frame = make_frame(n=12).drop(index=[5])

    with caplog.at_level(logging.WARNING):
        series = series_from_frame(frame, frequency=4)

    assert len(series) == 11
    assert "irregular step" in caplog.text


def test_missing_file_raises(tmp_path):
    with pytest.raises(OSError):
        load_series(tmp_path / "missing.csv")
