"""
Imbalance SARIMA Forecasting
============================
Seasonal ARIMA forecasting of half-hourly electrical grid imbalance.

Modules:
--------
- data: series loading, train/validation/test splitting, CSV writers
- models: SARIMA order search, final fitting, one-step-ahead forecasting

Pipeline:
- Train on the first 70% of the series, validate on the next 15%
- Grid search SARIMA orders on validation RMSE/MAE
- Refit on train+validation, forecast the last 15% one step ahead
  without re-estimation

Version: 1.0.0
"""

__version__ = "1.0.0"
