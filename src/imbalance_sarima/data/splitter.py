"""
Train / Validation / Test Splitter
==================================
Temporal split of an ImbalanceSeries by fractional cut-points (no shuffling).

Cut indices:
- train_end = floor(0.70 * n)
- valid_end = floor(0.85 * n)

Every partition is built twice, by position and by ts-time window, and the two
must select the same timestamps: the order search works on the positional
arrays while the final model relies on the windowed, seasonally aligned series.
"""

import logging
import math
from dataclasses import dataclass

import pandas as pd

from imbalance_sarima.data.series import ImbalanceSeries

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SeriesSplit:
    """Contiguous train / validation / test partitions of one series."""

    full: ImbalanceSeries
    train: ImbalanceSeries
    validation: ImbalanceSeries
    test: ImbalanceSeries
    train_end: int
    valid_end: int

    @property
    def train_plus_validation(self) -> ImbalanceSeries:
        return self.full.iloc(0, self.valid_end)

    @property
    def train_end_time(self) -> float:
        return self.full.time_at(self.train_end - 1)

    @property
    def valid_end_time(self) -> float:
        return self.full.time_at(self.valid_end - 1)

    @property
    def train_end_timestamp(self) -> pd.Timestamp:
        return self.full.index[self.train_end - 1]

    @property
    def valid_end_timestamp(self) -> pd.Timestamp:
        return self.full.index[self.valid_end - 1]

    def summary(self) -> pd.DataFrame:
        """Rows and time span of each partition."""
        rows = []
        for name, part in (('train', self.train), ('validation', self.validation), ('test', self.test)):
            rows.append({
                'split': name,
                'rows': len(part),
                'start': part.index[0],
                'end': part.index[-1],
                'ts_start': part.tsp()[0],
                'ts_end': part.tsp()[1],
            })
        return pd.DataFrame(rows)


def validate_length(series: ImbalanceSeries, min_cycles: int = 3) -> None:
    """
    Check the series holds enough seasonal cycles to be split and modelled.

    Raises:
        ValueError: if len(series) < min_cycles * frequency
    """
    required = min_cycles * series.frequency
    if len(series) < required:
        raise ValueError(
            f"Series has {len(series)} observations; at least {required} "
            f"({min_cycles} cycles of {series.frequency}) are required"
        )


def _check_agreement(name: str, by_index: ImbalanceSeries, by_window: ImbalanceSeries) -> None:
    if not by_index.index.equals(by_window.index):
        raise ValueError(
            f"{name} partition differs between index split ({len(by_index)} rows) "
            f"and ts window split ({len(by_window)} rows)"
        )


def split(
    series: ImbalanceSeries,
    train_frac: float = 0.70,
    valid_frac_cumulative: float = 0.85
) -> SeriesSplit:
    """
    Split a series into train / validation / test respecting temporal order.

    Args:
        series: Full series
        train_frac: Fraction of observations in train
        valid_frac_cumulative: Fraction of observations in train + validation

    Returns:
        SeriesSplit

    Raises:
        ValueError: invalid fractions, or a partition would be empty
    """
    if not 0 < train_frac < valid_frac_cumulative < 1:
        raise ValueError(
            f"Expected 0 < train_frac < valid_frac_cumulative < 1, "
            f"got {train_frac} and {valid_frac_cumulative}"
        )

    n = len(series)
    train_end = math.floor(train_frac * n)
    valid_end = math.floor(valid_frac_cumulative * n)
    if train_end < 1 or valid_end <= train_end or valid_end >= n:
        raise ValueError(f"Series of {n} observations is too short to split")

    # Positional partitions
    train = series.iloc(0, train_end)
    validation = series.iloc(train_end, valid_end)
    test = series.iloc(valid_end, n)

    # ts-time partitions
    step = 1 / series.frequency
    train_end_time = series.time_at(train_end - 1)
    valid_end_time = series.time_at(valid_end - 1)
    train_ts = series.window(end=train_end_time)
    validation_ts = series.window(start=train_end_time + step, end=valid_end_time)
    test_ts = series.window(start=valid_end_time + step)

    _check_agreement('train', train, train_ts)
    _check_agreement('validation', validation, validation_ts)
    _check_agreement('test', test, test_ts)

    result = SeriesSplit(
        full=series,
        train=train_ts,
        validation=validation_ts,
        test=test_ts,
        train_end=train_end,
        valid_end=valid_end,
    )

    logger.info(f"\n{'='*80}")
    logger.info("DATA SPLIT (Temporal)")
    logger.info(f"{'='*80}")
    logger.info(f"Train: {len(train):6d} samples ({train.index[0]} to {train.index[-1]})")
    logger.info(f"Val:   {len(validation):6d} samples ({validation.index[0]} to {validation.index[-1]})")
    logger.info(f"Test:  {len(test):6d} samples ({test.index[0]} to {test.index[-1]})")
    logger.info(f"{'='*80}\n")

    return result
