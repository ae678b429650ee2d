"""
SARIMA Models for Imbalance Forecasting
=======================================
Order search and final one-step-ahead forecasting of the imbalance series.

Modules:
- sarima: SARIMAForecaster (fit, fixed-parameter refit, one-step forecasts)
- order_search: parallel grid search scored on the validation range
- evaluate: MAE / RMSE / MASE
- grid_search_runner: order search CLI
- pipeline_runner: final fit and forecast CLI
"""

from .order_search import OrderSearchEngine, build_candidates, search
from .sarima import SARIMAForecaster

__all__ = [
    'OrderSearchEngine',
    'build_candidates',
    'search',
    'SARIMAForecaster'
]
