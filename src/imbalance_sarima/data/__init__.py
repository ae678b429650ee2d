"""
Data Modules for Imbalance Forecasting
======================================
Loading, splitting and persisting the imbalance series.

Modules:
--------
- series: ImbalanceSeries, index and ts-time views over one series
- series_loader: CSV → ImbalanceSeries with strict parsing
- splitter: 70/15/15 temporal train/validation/test split
- writers: forecast and search diagnostics CSV files
"""

from .series import ImbalanceSeries
from .series_loader import load_series, series_from_frame
from .splitter import SeriesSplit, split, validate_length

__all__ = [
    'ImbalanceSeries',
    'load_series',
    'series_from_frame',
    'SeriesSplit',
    'split',
    'validate_length'
]
