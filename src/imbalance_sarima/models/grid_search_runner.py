"""
Grid Search Runner for SARIMA Orders
====================================
Loads the imbalance series, splits it 70/15/15 and runs the SARIMA order
search on train/validation. Writes the ranked diagnostics table
(p,d,q,P,D,Q,MAE,RMSE) and a run log.

Usage:
    # Study grid (d=1, D=1 fixed), all cores but one
    python -m imbalance_sarima.models.grid_search_runner --data data/data.csv

    # Compact grid searching differencing orders too, 4 workers
    python -m imbalance_sarima.models.grid_search_runner --grid sarima_compact --n-jobs 4

    # Override single parameter ranges
    python -m imbalance_sarima.models.grid_search_runner --p-vals 0 1 2 --q-vals 1
"""

import argparse
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

import pandas as pd
from tqdm import tqdm

from imbalance_sarima import settings
from imbalance_sarima.data.series_loader import load_series
from imbalance_sarima.data.splitter import split, validate_length
from imbalance_sarima.data.writers import write_search_results
from imbalance_sarima.models.hyperparameter_configs import (
    DEFAULT_CANDIDATE_TIMEOUT,
    GRID_PARAMETERS,
    SARIMAGridConfigs,
    TRAIN_FRAC,
    VALID_FRAC_CUMULATIVE
)
from imbalance_sarima.models.order_search import (
    BACKENDS,
    OrderSearchEngine,
    SearchProgress,
    build_candidates,
    log_progress
)
from imbalance_sarima.models.stages import stage

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class GridSearchRunner:
    """
    Runs one SARIMA order search end to end.
    """

    def __init__(
        self,
        data_path: str = settings.DATA_FILE,
        grid_name: str = 'sarima_thesis',
        grid_overrides: Optional[Dict[str, Any]] = None,
        output_path: Optional[Path] = None,
        log_dir: Optional[Path] = None,
        n_jobs: Optional[int] = None,
        backend: str = 'loky',
        maxiter: int = 200,
        candidate_timeout: Optional[float] = None,
        train_frac: float = TRAIN_FRAC,
        valid_frac_cumulative: float = VALID_FRAC_CUMULATIVE,
        timestamp_col: str = 'start_date',
        value_col: str = 'Imbalance',
        show_progress: bool = True
    ):
        """
        Initialize grid search runner.

        Args:
            data_path: Input CSV
            grid_name: Named grid from SARIMAGridConfigs
            grid_overrides: Per-parameter value lists replacing the named grid's
            output_path: Diagnostics CSV (default: reports/sarima/sarima_order.csv)
            log_dir: Directory of the run log file (None disables the file log)
            n_jobs: Worker count (default: cores - 1)
            backend: joblib backend
            maxiter: Maximum optimizer iterations per fit
            candidate_timeout: Seconds allowed per candidate fit
            train_frac: Train fraction
            valid_frac_cumulative: Train + validation fraction
            timestamp_col: Timestamp column of the input
            value_col: Value column of the input
            show_progress: Display a progress bar
        """
        configs = SARIMAGridConfigs.get_all_grid_configs()
        if grid_name not in configs:
            raise ValueError(f"Unknown grid {grid_name!r}; choose from {', '.join(configs)}")

        self.grid_name = grid_name
        self.grid = dict(configs[grid_name])
        self.grid.update({k: v for k, v in (grid_overrides or {}).items() if v is not None})

        self.data_path = data_path
        self.output_path = Path(output_path or settings.SEARCH_RESULTS_FILE)
        self.log_dir = log_dir
        self.engine = OrderSearchEngine(
            n_jobs=n_jobs,
            backend=backend,
            maxiter=maxiter,
            candidate_timeout=candidate_timeout
        )
        self.train_frac = train_frac
        self.valid_frac_cumulative = valid_frac_cumulative
        self.timestamp_col = timestamp_col
        self.value_col = value_col
        self.show_progress = show_progress
        self.results: Optional[pd.DataFrame] = None

    def _attach_log_file(self) -> Optional[logging.Handler]:
        if self.log_dir is None:
            return None
        self.log_dir.mkdir(parents=True, exist_ok=True)
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = self.log_dir / f'grid_search_run_{timestamp}.log'

        # Root logger, so worker-side and library messages land in the file too
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))
        logging.getLogger().addHandler(file_handler)
        logger.info(f"Log file: {log_file}")
        return file_handler

    def run(self) -> pd.DataFrame:
        """
        Run the search and write the diagnostics table.

        Returns:
            Ranked diagnostics table
        """
        file_handler = self._attach_log_file()

        try:
            logger.info(f"\n{'█'*80}")
            logger.info("SARIMA ORDER GRID SEARCH")
            logger.info(f"{'█'*80}")
            logger.info(f"Grid: {self.grid_name} - {self.grid.get('description', '')}")
            for name in GRID_PARAMETERS:
                logger.info(f"  {name}: {list(self.grid[name])}")
            logger.info(f"  period: {self.grid['period']}")

            with stage('load'):
                series = load_series(
                    self.data_path,
                    timestamp_col=self.timestamp_col,
                    value_col=self.value_col,
                    frequency=self.grid['period']
                )

            with stage('split'):
                validate_length(series)
                data_split = split(series, self.train_frac, self.valid_frac_cumulative)

            total = len(build_candidates(*(self.grid[name] for name in GRID_PARAMETERS), self.grid['period']))
            with stage('search'), tqdm(total=total, desc='SARIMA order search', disable=not self.show_progress) as bar:
                def progress(update: SearchProgress) -> None:
                    bar.update(1)
                    log_progress(update)

                table = self.engine.search(
                    data_split.train,
                    data_split.validation,
                    **{name: self.grid[name] for name in GRID_PARAMETERS},
                    period=self.grid['period'],
                    progress=progress
                )

            with stage('write'):
                write_search_results(table, self.output_path)

            self.results = table
            self.log_top_candidates(table)
            return table

        finally:
            if file_handler is not None:
                logging.getLogger().removeHandler(file_handler)
                file_handler.close()

    @staticmethod
    def log_top_candidates(table: pd.DataFrame, n: int = 10) -> None:
        logger.info(f"\nTop {n} candidates (by RMSE, then MAE):")
        logger.info("\n" + table.head(n).to_string())

        scored = table.dropna(subset=['RMSE'])
        if scored.empty:
            logger.warning("⚠ No candidate could be scored")
            return
        best = scored.iloc[0]
        logger.info(
            f"\n🏆 Best order: ({int(best['p'])},{int(best['d'])},{int(best['q'])})"
            f"x({int(best['P'])},{int(best['D'])},{int(best['Q'])}) "
            f"MAE={best['MAE']:.3f} RMSE={best['RMSE']:.3f}"
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Grid search SARIMA orders on the validation range')
    parser.add_argument('--data', type=str, default=settings.DATA_FILE, help='Input CSV')
    parser.add_argument('--grid', type=str, default='sarima_thesis',
                        choices=list(SARIMAGridConfigs.get_all_grid_configs()),
                        help='Named grid (default: sarima_thesis)')
    for name in GRID_PARAMETERS:
        flag = '--' + name.replace('_', '-')
        parser.add_argument(flag, dest=name, type=int, nargs='+', default=None,
                            help=f'Override {name} of the named grid')
    parser.add_argument('--period', type=int, default=None, help='Seasonal period (default: grid value)')
    parser.add_argument('--output', type=str, default=str(settings.SEARCH_RESULTS_FILE),
                        help='Diagnostics CSV path')
    parser.add_argument('--log-dir', type=str, default=str(settings.SEARCH_LOG_DIR),
                        help='Run log directory')
    parser.add_argument('--n-jobs', type=int, default=settings.n_jobs_from_env(),
                        help='Parallel workers (default: cores - 1)')
    parser.add_argument('--backend', type=str, default='loky',
                        choices=list(BACKENDS),
                        help='joblib backend')
    parser.add_argument('--maxiter', type=int, default=200, help='Optimizer iterations per fit')
    parser.add_argument('--timeout', type=float, default=DEFAULT_CANDIDATE_TIMEOUT,
                        help=f'Seconds allowed per candidate, 0 for no limit (default: {DEFAULT_CANDIDATE_TIMEOUT:g})')
    parser.add_argument('--train-frac', type=float, default=TRAIN_FRAC)
    parser.add_argument('--valid-frac', type=float, default=VALID_FRAC_CUMULATIVE,
                        help='Cumulative train + validation fraction')
    parser.add_argument('--no-progress', action='store_true', help='Hide the progress bar')
    return parser


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    overrides = {name: getattr(args, name) for name in GRID_PARAMETERS}
    overrides['period'] = args.period

    try:
        runner = GridSearchRunner(
            data_path=args.data,
            grid_name=args.grid,
            grid_overrides=overrides,
            output_path=Path(args.output),
            log_dir=Path(args.log_dir),
            n_jobs=args.n_jobs,
            backend=args.backend,
            maxiter=args.maxiter,
            candidate_timeout=args.timeout or None,
            train_frac=args.train_frac,
            valid_frac_cumulative=args.valid_frac,
            show_progress=not args.no_progress
        )
        runner.run()
    except Exception as e:
        logger.error(f"✗ Grid search failed: {e}")
        return 1

    logger.info("✓ Grid search completed successfully!")
    return 0


if __name__ == '__main__':
    sys.exit(main())
