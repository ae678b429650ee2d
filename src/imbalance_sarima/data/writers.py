"""
Result Writers
==============
CSV persistence for forecast series and order search diagnostics.

Forecast files hold one row per test timestamp:
    start_date,sarima
    2023-10-01 00:00:00,12.34

Writes go to a temporary file in the target directory and are moved into
place once complete, so a failed write never leaves a truncated file.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Tuple, Union

import numpy as np
import pandas as pd

from imbalance_sarima.data.series_loader import TIMESTAMP_FORMAT

logger = logging.getLogger(__name__)

INDEX_NAME = 'start_date'
SEARCH_COLUMNS = ['p', 'd', 'q', 'P', 'D', 'Q', 'MAE', 'RMSE']


def _atomic_to_csv(df: pd.DataFrame, path: Path, **kwargs) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix='.tmp', dir=path.parent)
    try:
        with os.fdopen(fd, 'w', newline='') as handle:
            df.to_csv(handle, **kwargs)
        os.replace(tmp_name, path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise


def write_forecast(
    forecast: pd.Series,
    path: Union[str, Path],
    model_name: str = 'sarima'
) -> Path:
    """
    Write a forecast series as `start_date,<model_name>` rows.

    Args:
        forecast: Predictions indexed by timestamp
        path: Output CSV path
        model_name: Value column label

    Returns:
        Path written

    Raises:
        OSError: path is not writable
    """
    path = Path(path)
    frame = forecast.rename(model_name).to_frame()
    index = pd.DatetimeIndex(frame.index)
    if index.tz is None:
        index = index.tz_localize('UTC')
    frame.index = index.tz_convert('UTC').strftime(TIMESTAMP_FORMAT)
    frame.index.name = INDEX_NAME

    _atomic_to_csv(frame, path)
    logger.info(f"✓ Forecast saved: {path} ({len(frame)} rows)")
    return path


def read_forecast(path: Union[str, Path], model_name: str = 'sarima') -> pd.Series:
    """Read a forecast CSV written by `write_forecast`."""
    df = pd.read_csv(path, dtype={INDEX_NAME: str})
    index = pd.DatetimeIndex(
        pd.to_datetime(df[INDEX_NAME], format=TIMESTAMP_FORMAT, utc=True),
        name=INDEX_NAME
    )
    return pd.Series(df[model_name].to_numpy(dtype=float), index=index, name=model_name)


def write_search_results(table: pd.DataFrame, path: Union[str, Path]) -> Path:
    """
    Write the ranked order search table, keeping its candidate index.

    Raises:
        OSError: path is not writable
    """
    path = Path(path)
    _atomic_to_csv(table[SEARCH_COLUMNS], path, index=True)
    logger.info(f"✓ Search results saved: {path} ({len(table)} candidates)")
    return path


def read_search_results(path: Union[str, Path]) -> pd.DataFrame:
    return pd.read_csv(path, index_col=0)


def read_best_order(
    path: Union[str, Path],
    period: int
) -> Tuple[Tuple[int, int, int], Tuple[int, int, int, int]]:
    """
    Top-ranked candidate with defined scores from a search results CSV.

    Returns:
        ((p, d, q), (P, D, Q, period))

    Raises:
        ValueError: no candidate in the file was scored
    """
    table = read_search_results(path)
    scored = table[np.isfinite(table['RMSE'].astype(float))]
    if scored.empty:
        raise ValueError(f"No scored candidates in {path}")

    best = scored.sort_values(['RMSE', 'MAE'], kind='mergesort').iloc[0]
    order = (int(best['p']), int(best['d']), int(best['q']))
    seasonal_order = (int(best['P']), int(best['D']), int(best['Q']), period)
    return order, seasonal_order
