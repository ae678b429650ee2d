"""
Shared fixtures: small synthetic imbalance series.

Series use a seasonal period of 4 (6-hourly observations) so that SARIMA fits
stay fast; the production period of 48 is only used where no model is fitted.
"""
import numpy as np
import pandas as pd
import pytest

from imbalance_sarima.data.series import ImbalanceSeries

PERIOD = 4


def make_frame(n: int = 200, period: int = PERIOD, start: str = "2023-01-01 00:00:00", seed: int = 7) -> pd.DataFrame:
    """Seasonal pattern + AR(1) noise in the raw CSV layout."""
    rng = np.random.default_rng(seed)
    step = pd.Timedelta(seconds=86400 // period)
    index = pd.date_range(start, periods=n, freq=step)

    noise = np.zeros(n)
    shocks = rng.normal(scale=1.0, size=n)
    for t in range(1, n):
        noise[t] = 0.5 * noise[t - 1] + shocks[t]
    seasonal = 5.0 * np.sin(2 * np.pi * np.arange(n) / period)

    return pd.DataFrame({
        'start_date': index.strftime("%Y-%m-%d %H:%M:%S"),
        'Imbalance': np.round(seasonal + noise, 4),
    })


def make_series(n: int = 200, period: int = PERIOD, **kwargs) -> ImbalanceSeries:
    frame = make_frame(n=n, period=period, **kwargs)
    index = pd.DatetimeIndex(pd.to_datetime(frame['start_date'], utc=True), name='start_date')
    return ImbalanceSeries(
        data=pd.Series(frame['Imbalance'].to_numpy(dtype=float), index=index, name='Imbalance'),
        frequency=period,
    )


@pytest.fixture
def seasonal_series() -> ImbalanceSeries:
    return make_series()


@pytest.fixture
def half_hourly_series() -> ImbalanceSeries:
    """1000 half-hourly observations (period 48)."""
    return make_series(n=1000, period=48)


@pytest.fixture
def data_csv(tmp_path):
    path = tmp_path / "data.csv"
    make_frame().to_csv(path, index=False)
    return path
