"""
SARIMA Order Search Engine
==========================
Exhaustive grid search over SARIMA orders, scored on the validation range.

For each candidate (p, d, q, P, D, Q):
1. Fit on train (parameters estimated from scratch)
2. Apply the fitted parameters to validation without re-estimation
3. Score MAE / RMSE of validation actuals against the in-sample fitted values

Candidates are independent and run on a joblib worker pool that lives only for
the duration of the search. A candidate that fails to fit, refit or finish in
time is recorded with undefined scores; it never aborts the search.

The result table is sorted ascending by RMSE, then MAE, with undefined rows last.
"""

import logging
import math
import time
from dataclasses import dataclass
from itertools import product
from typing import Callable, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple, Union

import joblib
import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from imbalance_sarima.exceptions import CandidateTimeout, FitFailure
from imbalance_sarima.models.evaluate import mean_absolute_error, root_mean_squared_error
from imbalance_sarima.models.sarima import SARIMAForecaster, SeriesLike, as_endog

logger = logging.getLogger(__name__)

RESULT_COLUMNS = ['p', 'd', 'q', 'P', 'D', 'Q', 'MAE', 'RMSE']

# Process-based or in-process only: fits record warnings through the
# interpreter-wide warnings filters, which threads would share
BACKENDS = ('loky', 'multiprocessing', 'sequential')


@dataclass(frozen=True)
class CandidateOrder:
    """One point of the SARIMA hyperparameter grid."""

    p: int
    d: int
    q: int
    P: int
    D: int
    Q: int
    period: int

    @property
    def order(self) -> Tuple[int, int, int]:
        return self.p, self.d, self.q

    @property
    def seasonal_order(self) -> Tuple[int, int, int, int]:
        return self.P, self.D, self.Q, self.period

    @property
    def label(self) -> str:
        return f"(p={self.p},d={self.d},q={self.q},P={self.P},D={self.D},Q={self.Q})"

    def validate(self) -> None:
        values = (self.p, self.d, self.q, self.P, self.D, self.Q)
        if any(v < 0 for v in values):
            raise FitFailure(f"invalid order {self.label}: negative entries")
        if self.period < 2 and any((self.P, self.D, self.Q)):
            raise FitFailure(f"invalid order {self.label}: seasonal terms need period >= 2")


@dataclass(frozen=True)
class Scored:
    mae: float
    rmse: float


@dataclass(frozen=True)
class Failed:
    reason: str


CandidateOutcome = Union[Scored, Failed]


@dataclass(frozen=True)
class SearchResult:
    """Outcome of one candidate; `index` is its 1-based grid position."""

    index: int
    candidate: CandidateOrder
    outcome: CandidateOutcome

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, Scored)

    @property
    def mae(self) -> float:
        return self.outcome.mae if self.ok else math.nan

    @property
    def rmse(self) -> float:
        return self.outcome.rmse if self.ok else math.nan

    def to_dict(self) -> Dict[str, float]:
        c = self.candidate
        return {
            'candidate': self.index,
            'p': c.p, 'd': c.d, 'q': c.q,
            'P': c.P, 'D': c.D, 'Q': c.Q,
            'MAE': self.mae,
            'RMSE': self.rmse,
        }


@dataclass(frozen=True)
class SearchProgress:
    completed: int
    total: int
    result: SearchResult


ProgressCallback = Callable[[SearchProgress], None]


def log_progress(progress: SearchProgress) -> None:
    """Default progress callback: one log line per finished candidate."""
    result = progress.result
    prefix = f"Model {progress.completed}/{progress.total} {result.candidate.label}"
    if result.ok:
        logger.info(f"{prefix} → MAE={result.mae:.3f}, RMSE={result.rmse:.3f}")
    else:
        logger.warning(f"✗ {prefix} failed: {result.outcome.reason}")


def default_n_jobs() -> int:
    """All available cores but one."""
    return max(1, joblib.cpu_count() - 1)


def build_candidates(
    p_vals: Iterable[int],
    d_vals: Iterable[int],
    q_vals: Iterable[int],
    P_vals: Iterable[int],
    D_vals: Iterable[int],
    Q_vals: Iterable[int],
    period: int
) -> List[CandidateOrder]:
    """Full cartesian product of the per-parameter value ranges."""
    return [
        CandidateOrder(p, d, q, P, D, Q, period)
        for p, d, q, P, D, Q in product(p_vals, d_vals, q_vals, P_vals, D_vals, Q_vals)
    ]


class _Deadline:
    """Optimizer callback that aborts a fit once its time budget is spent."""

    def __init__(self, seconds: float):
        self.seconds = seconds
        self.expires = time.monotonic() + seconds

    def __call__(self, *args):
        self.check()

    def check(self) -> None:
        if time.monotonic() > self.expires:
            raise CandidateTimeout(f"timeout after {self.seconds:g}s")


def evaluate_candidate(
    index: int,
    candidate: CandidateOrder,
    train: SeriesLike,
    validation: SeriesLike,
    maxiter: int = 200,
    timeout: Optional[float] = None,
    require_convergence: bool = True
) -> SearchResult:
    """
    Fit, refit and score a single candidate. Never raises.

    Args:
        index: 1-based grid position
        candidate: Order to evaluate
        train: Series the parameters are estimated on
        validation: Series the fixed parameters are applied to
        maxiter: Maximum optimizer iterations
        timeout: Seconds allowed for fit and validation refit (None for no limit)
        require_convergence: Treat an unconverged optimizer as a failure

    Returns:
        SearchResult with a Scored or Failed outcome
    """
    forecaster = SARIMAForecaster(
        order=candidate.order,
        seasonal_order=candidate.seasonal_order,
        maxiter=maxiter,
        require_convergence=require_convergence
    )

    # The deadline starts before model setup, so start parameter estimation counts too
    deadline = _Deadline(timeout) if timeout else None
    try:
        candidate.validate()
        forecaster.fit(train, callback=deadline)
    except Exception as e:
        return SearchResult(index, candidate, Failed(f"fit: {e}"))

    try:
        actual = as_endog(validation)
        fitted = np.asarray(forecaster.refit_fixed(actual).fittedvalues, dtype=float)
        if deadline is not None:
            deadline.check()
        mae = mean_absolute_error(actual, fitted)
        rmse = root_mean_squared_error(actual, fitted)
    except Exception as e:
        return SearchResult(index, candidate, Failed(f"refit: {e}"))

    if not (np.isfinite(mae) and np.isfinite(rmse)):
        return SearchResult(index, candidate, Failed("refit: non-finite validation error"))

    return SearchResult(index, candidate, Scored(mae=mae, rmse=rmse))


def _rank_key(result: SearchResult) -> Tuple:
    rmse = result.rmse if np.isfinite(result.rmse) else float('inf')
    mae = result.mae if np.isfinite(result.mae) else float('inf')
    return (not result.ok, rmse, mae, result.index)


def results_to_frame(results: Iterable[SearchResult]) -> pd.DataFrame:
    """
    Rank results into the diagnostics table.

    Returns:
        DataFrame indexed by candidate with columns p,d,q,P,D,Q,MAE,RMSE,
        sorted by RMSE then MAE, undefined scores last
    """
    ranked = sorted(results, key=_rank_key)
    df = pd.DataFrame([r.to_dict() for r in ranked], columns=['candidate'] + RESULT_COLUMNS)
    return df.set_index('candidate')


class OrderSearchEngine:
    """
    Parallel SARIMA grid search.
    """

    def __init__(
        self,
        n_jobs: Optional[int] = None,
        backend: str = 'loky',
        maxiter: int = 200,
        candidate_timeout: Optional[float] = None,
        require_convergence: bool = True
    ):
        """
        Initialize search engine.

        Args:
            n_jobs: Worker count (default: available cores - 1)
            backend: joblib backend, one of BACKENDS
            maxiter: Maximum optimizer iterations per fit
            candidate_timeout: Seconds allowed per candidate fit (None: unbounded)
            require_convergence: Treat unconverged fits as failures
        """
        if backend not in BACKENDS:
            raise ValueError(f"Unsupported backend {backend!r}; choose from {', '.join(BACKENDS)}")
        self.n_jobs = n_jobs if n_jobs is not None else default_n_jobs()
        self.backend = backend
        self.maxiter = maxiter
        self.candidate_timeout = candidate_timeout
        self.require_convergence = require_convergence

    def iter_search(
        self,
        train: SeriesLike,
        validation: SeriesLike,
        candidates: Sequence[CandidateOrder],
        progress: Optional[ProgressCallback] = log_progress
    ) -> Iterator[SearchResult]:
        """
        Evaluate candidates, yielding each result as soon as it completes.

        The worker pool is shut down when the iterator is exhausted or closed.
        """
        train_values = as_endog(train)
        valid_values = as_endog(validation)
        total = len(candidates)

        tasks = (
            delayed(evaluate_candidate)(
                i, candidate, train_values, valid_values,
                self.maxiter, self.candidate_timeout, self.require_convergence
            )
            for i, candidate in enumerate(candidates, start=1)
        )

        with Parallel(n_jobs=self.n_jobs, backend=self.backend, return_as='generator_unordered') as parallel:
            for completed, result in enumerate(parallel(tasks), start=1):
                if progress is not None:
                    progress(SearchProgress(completed=completed, total=total, result=result))
                yield result

    def search(
        self,
        train: SeriesLike,
        validation: SeriesLike,
        p_vals: Iterable[int] = range(0, 3),
        d_vals: Iterable[int] = range(0, 2),
        q_vals: Iterable[int] = range(0, 3),
        P_vals: Iterable[int] = range(0, 2),
        D_vals: Iterable[int] = range(0, 2),
        Q_vals: Iterable[int] = range(0, 2),
        period: int = 48,
        progress: Optional[ProgressCallback] = log_progress
    ) -> pd.DataFrame:
        """
        Run the full grid search.

        Returns:
            Ranked diagnostics table (see `results_to_frame`)
        """
        candidates = build_candidates(p_vals, d_vals, q_vals, P_vals, D_vals, Q_vals, period)

        logger.info(f"\n{'='*80}")
        logger.info("SARIMA ORDER SEARCH")
        logger.info(f"{'='*80}")
        logger.info(f"Candidates: {len(candidates)} (period={period})")
        logger.info(f"Workers: {self.n_jobs} ({self.backend})")
        if self.candidate_timeout:
            logger.info(f"Per-candidate timeout: {self.candidate_timeout:g}s")

        start_time = time.time()
        results = list(self.iter_search(train, validation, candidates, progress=progress))
        elapsed = time.time() - start_time

        table = results_to_frame(results)
        n_failed = sum(not r.ok for r in results)
        logger.info(f"Search completed in {elapsed/60:.2f} minutes")
        logger.info(f"✓ Scored: {len(results) - n_failed} | ✗ Failed: {n_failed}")
        logger.info(f"{'='*80}\n")

        return table


def search(
    train: SeriesLike,
    validation: SeriesLike,
    p_vals: Iterable[int] = range(0, 3),
    d_vals: Iterable[int] = range(0, 2),
    q_vals: Iterable[int] = range(0, 3),
    P_vals: Iterable[int] = range(0, 2),
    D_vals: Iterable[int] = range(0, 2),
    Q_vals: Iterable[int] = range(0, 2),
    period: int = 48,
    concurrency: Optional[int] = None,
    progress: Optional[ProgressCallback] = log_progress,
    **engine_kwargs
) -> pd.DataFrame:
    """Convenience wrapper: build an engine and run one grid search."""
    engine = OrderSearchEngine(n_jobs=concurrency, **engine_kwargs)
    return engine.search(
        train, validation,
        p_vals=p_vals, d_vals=d_vals, q_vals=q_vals,
        P_vals=P_vals, D_vals=D_vals, Q_vals=Q_vals,
        period=period,
        progress=progress
    )
