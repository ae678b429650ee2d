"""
Evaluation Metrics for Imbalance Forecasts
==========================================
Error measures shared by the order search (validation range) and the
forecast pipeline (test range).

Metrics:
- MAE (Mean Absolute Error)
- RMSE (Root Mean Squared Error)
- MASE (Mean Absolute Scaled Error, seasonal naive scale)

Imbalance changes sign and crosses zero, so percentage errors are not reported.
"""

import logging
from typing import Dict, Optional

import numpy as np

logger = logging.getLogger(__name__)


def mean_absolute_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Calculate Mean Absolute Error.

    Args:
        y_true: True values
        y_pred: Predicted values

    Returns:
        MAE value
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.mean(np.abs(y_true - y_pred)))


def root_mean_squared_error(y_true: np.ndarray, y_pred: np.ndarray) -> float:
    """
    Calculate Root Mean Squared Error.

    Args:
        y_true: True values
        y_pred: Predicted values

    Returns:
        RMSE value
    """
    y_true = np.asarray(y_true, dtype=float)
    y_pred = np.asarray(y_pred, dtype=float)
    return float(np.sqrt(np.mean((y_true - y_pred) ** 2)))


def mean_absolute_scaled_error(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    y_train: np.ndarray,
    seasonality: int = 1
) -> float:
    """
    Calculate Mean Absolute Scaled Error.

    MASE scales the MAE by the in-sample MAE of the seasonal naive forecast
    y_t = y_{t-seasonality}. Below 1 beats the seasonal naive forecast.

    Args:
        y_true: True values
        y_pred: Predicted values
        y_train: Training data for scaling
        seasonality: Seasonal period for the naive forecast

    Returns:
        MASE value (NaN when the naive scale is zero)
    """
    y_train = np.asarray(y_train, dtype=float)
    mae_forecast = mean_absolute_error(y_true, y_pred)

    if len(y_train) <= seasonality:
        naive_errors = np.abs(np.diff(y_train))
    else:
        naive_errors = np.abs(y_train[seasonality:] - y_train[:-seasonality])

    mae_naive = np.mean(naive_errors) if naive_errors.size else 0.0
    if mae_naive == 0:
        return np.nan

    return float(mae_forecast / mae_naive)


def evaluate_forecast(
    y_true: np.ndarray,
    y_pred: np.ndarray,
    y_train: Optional[np.ndarray] = None,
    seasonality: int = 48,
    model_name: Optional[str] = None
) -> Dict[str, float]:
    """
    Evaluate a forecast.

    Args:
        y_true: True values
        y_pred: Predicted values
        y_train: Training data for MASE (MASE omitted when None)
        seasonality: Seasonal period for MASE
        model_name: Optional model name for logging

    Returns:
        Dictionary with MAE, RMSE and (optionally) MASE
    """
    metrics = {
        'MAE': mean_absolute_error(y_true, y_pred),
        'RMSE': root_mean_squared_error(y_true, y_pred),
    }
    if y_train is not None:
        metrics['MASE'] = mean_absolute_scaled_error(y_true, y_pred, y_train, seasonality)

    if model_name:
        logger.info(f"\nEvaluation Metrics for {model_name}:")
        for name, value in metrics.items():
            logger.info(f"  {name + ':':6s} {value:.4f}")

    return metrics
