"""
Runtime settings read from the environment (and a local .env file).

Variables:
    IMBALANCE_DATA_FILE   input CSV (default: data/data.csv)
    IMBALANCE_OUTPUT_DIR  root for reports and forecasts (default: .)
    IMBALANCE_N_JOBS      order search workers (default: cores - 1)
    MLFLOW_TRACKING_URI   MLflow tracking server (default: sqlite mlflow.db under the output dir)
"""

import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DATA_FILE = os.getenv("IMBALANCE_DATA_FILE", "data/data.csv")
OUTPUT_DIR = Path(os.getenv("IMBALANCE_OUTPUT_DIR", "."))

SEARCH_RESULTS_FILE = OUTPUT_DIR / "reports" / "sarima" / "sarima_order.csv"
SEARCH_LOG_DIR = OUTPUT_DIR / "reports" / "sarima" / "logs"
FORECAST_FILE = OUTPUT_DIR / "data" / "forecasts" / "sarima.csv"


def n_jobs_from_env() -> Optional[int]:
    value = os.getenv("IMBALANCE_N_JOBS")
    return int(value) if value else None


def mlflow_uri_from_env() -> str:
    uri = os.getenv("MLFLOW_TRACKING_URI")
    if uri is None:
        OUTPUT_DIR.mkdir(parents=True, exist_ok=True)
        uri = f"sqlite:///{(OUTPUT_DIR / 'mlflow.db').resolve().as_posix()}"
    return uri
