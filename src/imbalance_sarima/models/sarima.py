"""
SARIMA Model for Imbalance Forecasting
======================================
Seasonal ARIMA wrapper around statsmodels SARIMAX.

Two fitting modes:
- fit: estimate parameters from data
- refit_fixed: apply already estimated parameters to another series,
  no re-estimation

One-step-ahead forecasts are the in-sample fitted values of the fixed-parameter
model applied to the full series: each prediction uses the true observations
up to the previous timestamp, never earlier predictions.
See https://robjhyndman.com/hyndsight/out-of-sample-one-step-forecasts/
"""

import logging
import warnings
from typing import Callable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd
from statsmodels.tsa.statespace.sarimax import SARIMAX

from imbalance_sarima.data.series import ImbalanceSeries
from imbalance_sarima.exceptions import CandidateTimeout, ConvergenceError
from imbalance_sarima.models.evaluate import evaluate_forecast
from imbalance_sarima.models.hyperparameter_configs import FINAL_ORDER, FINAL_SEASONAL_ORDER

logger = logging.getLogger(__name__)

SeriesLike = Union[ImbalanceSeries, pd.Series, np.ndarray]


def as_endog(series: SeriesLike) -> np.ndarray:
    """Plain float array of a series; models work on positions, not dates."""
    if isinstance(series, ImbalanceSeries):
        return series.values
    if isinstance(series, pd.Series):
        return series.to_numpy(dtype=float)
    return np.asarray(series, dtype=float)


class SARIMAForecaster:
    """SARIMA model wrapper for imbalance forecasting."""

    def __init__(
        self,
        order: Tuple[int, int, int] = FINAL_ORDER,
        seasonal_order: Tuple[int, int, int, int] = FINAL_SEASONAL_ORDER,
        maxiter: int = 200,
        enforce_stationarity: bool = True,
        enforce_invertibility: bool = True,
        require_convergence: bool = True,
        model_name: str = 'sarima'
    ):
        """
        Initialize SARIMA forecaster.

        Args:
            order: (p, d, q) for ARIMA
                p: autoregressive order
                d: differencing order
                q: moving average order
            seasonal_order: (P, D, Q, s) for seasonal ARIMA
                P: seasonal AR order
                D: seasonal differencing order
                Q: seasonal MA order
                s: seasonal period (48 for half-hourly data)
            maxiter: Maximum optimizer iterations
            enforce_stationarity: Constrain AR parameters to stationarity
            enforce_invertibility: Constrain MA parameters to invertibility
            require_convergence: Treat an unconverged optimizer as a failed fit
            model_name: Label of the forecast column
        """
        self.order = tuple(order)
        self.seasonal_order = tuple(seasonal_order)
        self.maxiter = maxiter
        self.enforce_stationarity = enforce_stationarity
        self.enforce_invertibility = enforce_invertibility
        self.require_convergence = require_convergence
        self.model_name = model_name
        self.fitted_model = None
        self.fit_warnings: List[str] = []

    @property
    def label(self) -> str:
        return f"SARIMA{self.order}x{self.seasonal_order}"

    def fit(self, series: SeriesLike, callback: Optional[Callable] = None):
        """
        Estimate SARIMA parameters.

        Args:
            series: Training series
            callback: Called by the optimizer after each iteration

        Returns:
            Fitted SARIMAXResults

        Raises:
            ConvergenceError: the model could not be estimated
            CandidateTimeout: `callback` ran out of time
        """
        endog = as_endog(series)

        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            try:
                model = SARIMAX(
                    endog,
                    order=self.order,
                    seasonal_order=self.seasonal_order,
                    enforce_stationarity=self.enforce_stationarity,
                    enforce_invertibility=self.enforce_invertibility
                )
                result = model.fit(disp=False, maxiter=self.maxiter, callback=callback)
            except CandidateTimeout:
                raise
            except Exception as exc:
                raise ConvergenceError(f"{self.label} fit failed: {exc}") from exc

        self.fit_warnings = list(dict.fromkeys(str(w.message) for w in caught))

        converged = (result.mle_retvals or {}).get('converged', True)
        if self.require_convergence and not converged:
            raise ConvergenceError(
                f"{self.label} optimizer did not converge within {self.maxiter} iterations"
            )
        if not np.all(np.isfinite(result.params)):
            raise ConvergenceError(f"{self.label} produced non-finite parameters")

        self.fitted_model = result
        return result

    def refit_fixed(self, series: SeriesLike):
        """
        Apply the estimated parameters to another series without re-estimation.

        Returns:
            SARIMAXResults over `series` with the same parameters
        """
        if self.fitted_model is None:
            raise ValueError("Model must be trained before refitting")

        with warnings.catch_warnings():
            warnings.simplefilter('ignore')
            return self.fitted_model.apply(as_endog(series), refit=False)

    def forecast_one_step(
        self,
        full_series: Union[ImbalanceSeries, pd.Series],
        start: Optional[int] = None,
        stop: Optional[int] = None
    ) -> pd.Series:
        """
        One-step-ahead predictions over a contiguous range of `full_series`.

        Args:
            full_series: Series the fixed-parameter model is applied to
            start: First position of the returned range
            stop: Position after the last one returned

        Returns:
            Predictions indexed by timestamp, named after the model
        """
        applied = self.refit_fixed(full_series)
        fitted = np.asarray(applied.fittedvalues, dtype=float)

        forecast = pd.Series(fitted, index=full_series.index, name=self.model_name)
        forecast = forecast.iloc[start:stop]
        forecast.index.name = 'start_date'
        return forecast

    def native_one_step(self) -> float:
        """Forecast for the step right after the fitted series."""
        if self.fitted_model is None:
            raise ValueError("Model must be trained before forecasting")
        return float(np.asarray(self.fitted_model.forecast(steps=1))[0])

    def check_first_forecast(self, forecast: pd.Series, atol: float = 1e-6) -> float:
        """
        Compare the first forecast against the fitted model's own forecast.

        `forecast` must start right after the series the model was fitted on.

        Returns:
            Absolute difference between the two values

        Raises:
            ValueError: the values differ by more than `atol` (scaled)
        """
        native = self.native_one_step()
        first = float(forecast.iloc[0])
        diff = abs(first - native)
        if not np.isclose(first, native, rtol=1e-6, atol=atol):
            raise ValueError(
                f"First one-step forecast {first:.6f} does not match native forecast {native:.6f}"
            )
        logger.info(f"✓ First forecast {first:.4f} matches native one-step forecast (|Δ|={diff:.2e})")
        return diff

    def in_sample_metrics(self) -> dict:
        """Training-set error measures of the fitted model."""
        if self.fitted_model is None:
            raise ValueError("Model must be trained first")
        endog = np.asarray(self.fitted_model.model.endog, dtype=float).ravel()
        fitted = np.asarray(self.fitted_model.fittedvalues, dtype=float)
        return evaluate_forecast(
            y_true=endog,
            y_pred=fitted,
            y_train=endog,
            seasonality=self.seasonal_order[3] or 1
        )

    def get_summary(self) -> str:
        if self.fitted_model is None:
            return "Model not yet trained"
        return str(self.fitted_model.summary())
