"""
SARIMA Forecast Pipeline
========================
Fits the final SARIMA model on train + validation and writes one-step-ahead
forecasts for the test range.

Steps:
1. Load the imbalance series and split it 70/15/15
2. Fit the final order (fixed, from the CLI, or best row of a search CSV)
3. Apply the fitted parameters to the full series (no re-estimation) and keep
   the fitted values over the test range
4. Check the first test forecast against the model's own 1-step forecast
5. Evaluate against the test actuals and write start_date,sarima

Usage:
    python -m imbalance_sarima.models.pipeline_runner --data data/data.csv
    python -m imbalance_sarima.models.pipeline_runner --order-from reports/sarima/sarima_order.csv
    python -m imbalance_sarima.models.pipeline_runner --order 2 1 1 --seasonal-order 0 1 1 48 --no-mlflow
"""

import argparse
import logging
import sys
import tempfile
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import mlflow

from imbalance_sarima import settings
from imbalance_sarima.data.series_loader import load_series
from imbalance_sarima.data.splitter import SeriesSplit, split, validate_length
from imbalance_sarima.data.writers import read_best_order, write_forecast
from imbalance_sarima.models.evaluate import evaluate_forecast
from imbalance_sarima.models.hyperparameter_configs import (
    DEFAULT_FREQUENCY,
    FINAL_ORDER,
    FINAL_SEASONAL_ORDER,
    TRAIN_FRAC,
    VALID_FRAC_CUMULATIVE
)
from imbalance_sarima.models.sarima import SARIMAForecaster
from imbalance_sarima.models.stages import stage

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def _log_to_mlflow(
    forecaster: SARIMAForecaster,
    data_split: SeriesSplit,
    metrics: Dict[str, float],
    forecast_path: Path,
    experiment_name: str,
    run_name: str,
    mlflow_uri: Optional[str]
) -> str:
    mlflow.set_tracking_uri(mlflow_uri or settings.mlflow_uri_from_env())
    mlflow.set_experiment(experiment_name)

    with mlflow.start_run(run_name=run_name) as run:
        mlflow.log_param("model_type", "SARIMA")
        mlflow.log_param("order", str(forecaster.order))
        mlflow.log_param("seasonal_order", str(forecaster.seasonal_order))
        mlflow.log_param("fit_samples", len(data_split.train_plus_validation))
        mlflow.log_param("test_samples", len(data_split.test))
        mlflow.log_param("test_start", str(data_split.test.index[0]))

        mlflow.log_metric("AIC", forecaster.fitted_model.aic)
        mlflow.log_metric("BIC", forecaster.fitted_model.bic)
        for name, value in metrics.items():
            mlflow.log_metric(name, value)

        with tempfile.TemporaryDirectory() as tmp:
            summary_path = Path(tmp) / 'sarima_summary.txt'
            summary_path.write_text(forecaster.get_summary())
            mlflow.log_artifact(str(summary_path))
        mlflow.log_artifact(str(forecast_path))

        logger.info(f"✓ MLflow run ID: {run.info.run_id}")
        return run.info.run_id


def run_sarima_pipeline(
    data_path: str = settings.DATA_FILE,
    output_path: Optional[Path] = None,
    order: Tuple[int, int, int] = FINAL_ORDER,
    seasonal_order: Tuple[int, int, int, int] = FINAL_SEASONAL_ORDER,
    order_from: Optional[Path] = None,
    frequency: int = DEFAULT_FREQUENCY,
    train_frac: float = TRAIN_FRAC,
    valid_frac_cumulative: float = VALID_FRAC_CUMULATIVE,
    maxiter: int = 200,
    timestamp_col: str = 'start_date',
    value_col: str = 'Imbalance',
    use_mlflow: bool = True,
    experiment_name: str = "Imbalance-SARIMA",
    run_name: str = "sarima_final",
    mlflow_uri: Optional[str] = None
) -> Dict[str, Any]:
    """
    Fit the final model and write the test-range one-step forecasts.

    Args:
        data_path: Input CSV
        output_path: Forecast CSV (default: data/forecasts/sarima.csv)
        order: (p, d, q) of the final model
        seasonal_order: (P, D, Q, s) of the final model
        order_from: Search results CSV; its best row replaces order/seasonal_order
        frequency: Observations per seasonal cycle
        train_frac: Train fraction
        valid_frac_cumulative: Train + validation fraction
        maxiter: Maximum optimizer iterations
        timestamp_col: Timestamp column of the input
        value_col: Value column of the input
        use_mlflow: Track the run in MLflow
        experiment_name: MLflow experiment name
        run_name: MLflow run name
        mlflow_uri: MLflow tracking URI (default: MLFLOW_TRACKING_URI or sqlite mlflow.db)

    Returns:
        Dictionary with forecast, metrics, forecaster, split and output_path

    Raises:
        ParseError: input could not be parsed
        ValueError: series too short, bad fractions or failed forecast check
        ConvergenceError: final fit failed
        OSError: input unreadable or output unwritable
    """
    output_path = Path(output_path or settings.FORECAST_FILE)

    logger.info("="*80)
    logger.info("SARIMA FORECAST PIPELINE")
    logger.info("="*80)

    with stage('load'):
        series = load_series(data_path, timestamp_col=timestamp_col, value_col=value_col, frequency=frequency)

    with stage('split'):
        validate_length(series)
        data_split = split(series, train_frac, valid_frac_cumulative)

    with stage('fit'):
        if order_from is not None:
            order, seasonal_order = read_best_order(order_from, period=seasonal_order[3])
            logger.info(f"Order taken from {order_from}: {order}x{seasonal_order}")

        forecaster = SARIMAForecaster(order=order, seasonal_order=seasonal_order, maxiter=maxiter)
        logger.info(f"Fitting {forecaster.label} on train + validation "
                    f"({len(data_split.train_plus_validation)} observations)")
        forecaster.fit(data_split.train_plus_validation)
        for message in forecaster.fit_warnings:
            logger.warning(f"⚠ {message}")
        logger.info("\n" + forecaster.get_summary())
        in_sample = forecaster.in_sample_metrics()
        logger.info(f"In-sample: MAE={in_sample['MAE']:.3f}, RMSE={in_sample['RMSE']:.3f}")

    with stage('forecast'):
        forecast = forecaster.forecast_one_step(data_split.full, start=data_split.valid_end)
        forecaster.check_first_forecast(forecast)
        metrics = evaluate_forecast(
            y_true=data_split.test.values,
            y_pred=forecast.to_numpy(),
            y_train=data_split.train_plus_validation.values,
            seasonality=seasonal_order[3] or 1,
            model_name=forecaster.label
        )

    with stage('write'):
        write_forecast(forecast, output_path, model_name=forecaster.model_name)

    run_id = None
    if use_mlflow:
        with stage('track'):
            run_id = _log_to_mlflow(
                forecaster, data_split, metrics, output_path,
                experiment_name, run_name, mlflow_uri
            )

    return {
        'forecast': forecast,
        'metrics': metrics,
        'forecaster': forecaster,
        'split': data_split,
        'output_path': output_path,
        'mlflow_run_id': run_id,
    }


def main(argv=None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description='Fit the final SARIMA model and forecast the test range')
    parser.add_argument('--data', type=str, default=settings.DATA_FILE, help='Input CSV')
    parser.add_argument('--output', type=str, default=str(settings.FORECAST_FILE), help='Forecast CSV path')
    parser.add_argument('--order', type=int, nargs=3, default=list(FINAL_ORDER),
                        metavar=('P', 'D', 'Q'), help='Non-seasonal order (default: 3 1 1)')
    parser.add_argument('--seasonal-order', type=int, nargs=4, default=list(FINAL_SEASONAL_ORDER),
                        metavar=('SP', 'SD', 'SQ', 'S'), help='Seasonal order (default: 0 1 1 48)')
    parser.add_argument('--order-from', type=str, default=None,
                        help='Take the best order from a search results CSV')
    parser.add_argument('--maxiter', type=int, default=200, help='Optimizer iterations')
    parser.add_argument('--train-frac', type=float, default=TRAIN_FRAC)
    parser.add_argument('--valid-frac', type=float, default=VALID_FRAC_CUMULATIVE,
                        help='Cumulative train + validation fraction')
    parser.add_argument('--experiment', type=str, default='Imbalance-SARIMA', help='MLflow experiment name')
    parser.add_argument('--run-name', type=str, default='sarima_final', help='MLflow run name')
    parser.add_argument('--mlflow-uri', type=str, default=None, help='MLflow tracking URI')
    parser.add_argument('--no-mlflow', action='store_true', help='Disable MLflow tracking')

    args = parser.parse_args(argv)

    try:
        result = run_sarima_pipeline(
            data_path=args.data,
            output_path=Path(args.output),
            order=tuple(args.order),
            seasonal_order=tuple(args.seasonal_order),
            order_from=Path(args.order_from) if args.order_from else None,
            frequency=args.seasonal_order[3] or DEFAULT_FREQUENCY,
            train_frac=args.train_frac,
            valid_frac_cumulative=args.valid_frac,
            maxiter=args.maxiter,
            use_mlflow=not args.no_mlflow,
            experiment_name=args.experiment,
            run_name=args.run_name,
            mlflow_uri=args.mlflow_uri
        )
    except Exception as e:
        logger.error(f"✗ Pipeline failed: {e}")
        return 1

    metrics = result['metrics']
    logger.info("\n" + "="*80)
    logger.info("FORECAST COMPLETE")
    logger.info("="*80)
    logger.info(f"Forecasts: {len(result['forecast'])} → {result['output_path']}")
    logger.info(f"MAE:   {metrics['MAE']:.3f}")
    logger.info(f"RMSE:  {metrics['RMSE']:.3f}")
    logger.info(f"MASE:  {metrics['MASE']:.4f}")
    logger.info("="*80)
    return 0


if __name__ == '__main__':
    sys.exit(main())
