"""
Series Loader
=============
Reads raw timestamped imbalance observations from CSV and builds an
ImbalanceSeries at a fixed frequency (48 half-hours per day).

Timestamps are parsed with an explicit format in UTC, so daylight saving
transitions never produce ambiguous or missing hours.
"""

import logging
from pathlib import Path
from typing import Union

import pandas as pd

from imbalance_sarima.data.series import ImbalanceSeries, SECONDS_PER_DAY
from imbalance_sarima.exceptions import ParseError

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = '%Y-%m-%d %H:%M:%S'


def _examples(raw: pd.Series, mask: pd.Series, limit: int = 5) -> str:
    rows = raw[mask].head(limit)
    # +2: header line plus 1-based numbering
    return ', '.join(f"line {i + 2}: {value!r}" for i, value in rows.items())


def series_from_frame(
    df: pd.DataFrame,
    timestamp_col: str = 'start_date',
    value_col: str = 'Imbalance',
    frequency: int = 48,
    timestamp_format: str = TIMESTAMP_FORMAT
) -> ImbalanceSeries:
    """
    Build an ImbalanceSeries from a raw DataFrame.

    Args:
        df: Raw rows with a timestamp column and a numeric value column
        timestamp_col: Timestamp column name
        value_col: Value column name
        frequency: Observations per day (seasonal period)
        timestamp_format: strptime format of the timestamp column

    Returns:
        ImbalanceSeries indexed by UTC timestamps

    Raises:
        ParseError: missing columns, unparsable timestamps, non-numeric values,
            duplicated or out-of-order timestamps
    """
    missing = [col for col in (timestamp_col, value_col) if col not in df.columns]
    if missing:
        raise ParseError(f"Missing required column(s): {', '.join(missing)}")
    if df.empty:
        raise ParseError("Input contains no observations")

    df = df.reset_index(drop=True)
    raw_ts = df[timestamp_col]
    timestamps = pd.to_datetime(raw_ts.astype(str), format=timestamp_format, utc=True, errors='coerce')
    bad_ts = timestamps.isna()
    if bad_ts.any():
        raise ParseError(
            f"Unable to parse {int(bad_ts.sum())} {timestamp_col!r} value(s) with format "
            f"{timestamp_format!r}; examples: {_examples(raw_ts, bad_ts)}"
        )

    raw_values = df[value_col]
    values = pd.to_numeric(raw_values, errors='coerce')
    bad_values = values.isna()
    if bad_values.any():
        raise ParseError(
            f"{int(bad_values.sum())} missing or non-numeric {value_col!r} value(s); "
            f"examples: {_examples(raw_values, bad_values)}"
        )

    duplicated = timestamps.duplicated()
    if duplicated.any():
        raise ParseError(f"Duplicate timestamps; examples: {_examples(raw_ts, duplicated)}")
    if not timestamps.is_monotonic_increasing:
        raise ParseError(f"Timestamps in {timestamp_col!r} are not in increasing order")

    index = pd.DatetimeIndex(timestamps, name=timestamp_col)
    expected_step = pd.Timedelta(seconds=SECONDS_PER_DAY // frequency)
    gaps = int((index.to_series().diff().dropna() != expected_step).sum())
    if gaps:
        logger.warning(f"⚠ {gaps} irregular step(s) found (expected {expected_step}); series is not re-indexed")

    series = pd.Series(values.to_numpy(dtype=float), index=index, name=value_col)
    return ImbalanceSeries(data=series, frequency=frequency)


def load_series(
    path: Union[str, Path],
    timestamp_col: str = 'start_date',
    value_col: str = 'Imbalance',
    frequency: int = 48,
    timestamp_format: str = TIMESTAMP_FORMAT
) -> ImbalanceSeries:
    """
    Load the imbalance series from a CSV file.

    Args:
        path: CSV file path
        timestamp_col: Timestamp column name
        value_col: Value column name
        frequency: Observations per day (seasonal period)
        timestamp_format: strptime format of the timestamp column

    Returns:
        ImbalanceSeries
    """
    path = Path(path)
    logger.info(f"Loading imbalance data from {path}")

    df = pd.read_csv(path, dtype={timestamp_col: str})
    series = series_from_frame(
        df,
        timestamp_col=timestamp_col,
        value_col=value_col,
        frequency=frequency,
        timestamp_format=timestamp_format
    )

    logger.info(f"Loaded {len(series)} observations")
    logger.info(f"Date range: {series.index.min()} to {series.index.max()}")
    logger.info(f"ts start: {series.start}, frequency: {series.frequency}")

    return series
