"""
Imbalance Series
================
Immutable, frequency-aware wrapper around a timestamp-indexed pandas Series.

The same backing data can be sliced two ways:
- by position (iloc), as the order search does on raw arrays
- by ts-time (window), i.e. seasonal cycles since the start of the origin year,
  which keeps the seasonal alignment the models need

Sub-series keep the ts-time origin of their parent, so a window taken from a
window still lines up with the full series.
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np
import pandas as pd

SECONDS_PER_DAY = 86400


def _start_reference(first: pd.Timestamp, frequency: int) -> Tuple[int, float]:
    """(year, fractional day-of-year) of the first observation."""
    seconds = first.hour * 3600 + first.minute * 60 + first.second
    slot = (seconds * frequency) // SECONDS_PER_DAY
    return first.year, first.dayofyear + slot / frequency


@dataclass(frozen=True)
class ImbalanceSeries:
    """
    Regularly spaced series tagged with its seasonal frequency.

    Attributes:
        data: Float values indexed by a DatetimeIndex
        frequency: Observations per seasonal cycle (48 for half-hourly data)
        start: (origin year, ts-time of the first observation); derived from
            the first timestamp when not given
    """

    data: pd.Series
    frequency: int = 48
    start: Optional[Tuple[int, float]] = field(default=None)

    def __post_init__(self):
        if not isinstance(self.data.index, pd.DatetimeIndex):
            raise TypeError("ImbalanceSeries requires a DatetimeIndex")
        if self.frequency < 1:
            raise ValueError(f"frequency must be positive, got {self.frequency}")
        if self.start is None and len(self.data) > 0:
            object.__setattr__(
                self, 'start', _start_reference(self.data.index[0], self.frequency)
            )

    def __len__(self) -> int:
        return len(self.data)

    @property
    def values(self) -> np.ndarray:
        return self.data.to_numpy(dtype=float)

    @property
    def index(self) -> pd.DatetimeIndex:
        return self.data.index

    @property
    def name(self) -> Optional[str]:
        return self.data.name

    @property
    def start_time(self) -> float:
        if self.start is None:
            raise ValueError("Empty series has no start time")
        return self.start[1]

    def time_at(self, position: int) -> float:
        """ts-time of the observation at `position`."""
        return self.start_time + position / self.frequency

    def time_index(self) -> np.ndarray:
        return self.start_time + np.arange(len(self)) / self.frequency

    def tsp(self) -> Tuple[float, float, int]:
        """(start time, end time, frequency) of the series."""
        return self.start_time, self.time_at(len(self) - 1), self.frequency

    def iloc(self, start: Optional[int] = None, stop: Optional[int] = None) -> 'ImbalanceSeries':
        """Positional slice [start, stop) sharing this series' ts-time origin."""
        first, _, _ = slice(start, stop).indices(len(self))
        child_start = None
        if self.start is not None:
            child_start = (self.start[0], self.time_at(first))
        return ImbalanceSeries(
            data=self.data.iloc[start:stop],
            frequency=self.frequency,
            start=child_start,
        )

    def _position_of(self, time: float) -> int:
        return int(round((time - self.start_time) * self.frequency))

    def window(self, start: Optional[float] = None, end: Optional[float] = None) -> 'ImbalanceSeries':
        """
        Sub-series between two ts-times, both ends inclusive.

        Times are snapped to the nearest observation, so boundaries computed as
        `start_time + k / frequency` select exactly observation `k`.
        """
        first = 0 if start is None else max(self._position_of(start), 0)
        last = len(self) - 1 if end is None else min(self._position_of(end), len(self) - 1)
        return self.iloc(first, max(last + 1, first))

    def between(self, start_ts=None, end_ts=None) -> 'ImbalanceSeries':
        """Sub-series between two timestamps, both ends inclusive."""
        first = 0
        stop = len(self)
        if start_ts is not None:
            first = int(self.index.searchsorted(pd.Timestamp(start_ts), side='left'))
        if end_ts is not None:
            stop = int(self.index.searchsorted(pd.Timestamp(end_ts), side='right'))
        return self.iloc(first, max(stop, first))

    def concat(self, *others: 'ImbalanceSeries') -> 'ImbalanceSeries':
        """Append contiguous later series; keeps this series' origin."""
        parts = [self.data] + [other.data for other in others]
        combined = pd.concat(parts)
        if not combined.index.is_monotonic_increasing or combined.index.has_duplicates:
            raise ValueError("Series to concatenate must be contiguous and time-ordered")
        return ImbalanceSeries(data=combined, frequency=self.frequency, start=self.start)
