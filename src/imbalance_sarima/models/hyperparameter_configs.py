"""
SARIMA Hyperparameter Configurations
====================================
Named order search grids and the fixed final model order.

Differencing orders are part of every grid. The thesis grid pins d=1 and D=1,
found during earlier experimentation; the compact grid searches them.
"""

from typing import Any, Dict

DEFAULT_FREQUENCY = 48  # half-hourly observations, daily cycle

TRAIN_FRAC = 0.70
VALID_FRAC_CUMULATIVE = 0.85

FINAL_ORDER = (3, 1, 1)
FINAL_SEASONAL_ORDER = (0, 1, 1, DEFAULT_FREQUENCY)

# Seconds per candidate in the search CLI
DEFAULT_CANDIDATE_TIMEOUT = 600.0

GRID_PARAMETERS = ('p_vals', 'd_vals', 'q_vals', 'P_vals', 'D_vals', 'Q_vals')


class SARIMAGridConfigs:
    """
    Pre-defined SARIMA order grids.

    Each grid lists the values searched per parameter; the candidate set is
    their full cartesian product.
    """

    @staticmethod
    def get_thesis_grid() -> Dict[str, Any]:
        """Grid of the thesis study (128 candidates, d and D fixed to 1)."""
        return {
            'p_vals': [0, 1, 2, 3],
            'd_vals': [1],
            'q_vals': [0, 1, 2, 3],
            'P_vals': [0, 1, 2, 3],
            'D_vals': [1],
            'Q_vals': [1, 2],
            'period': DEFAULT_FREQUENCY,
            'description': 'Study grid with fixed differencing (d=1, D=1)'
        }

    @staticmethod
    def get_compact_grid() -> Dict[str, Any]:
        """Small grid that also searches the differencing orders (144 candidates)."""
        return {
            'p_vals': [0, 1, 2],
            'd_vals': [0, 1],
            'q_vals': [0, 1, 2],
            'P_vals': [0, 1],
            'D_vals': [0, 1],
            'Q_vals': [0, 1],
            'period': DEFAULT_FREQUENCY,
            'description': 'Compact grid including differencing orders'
        }

    @staticmethod
    def get_smoke_grid() -> Dict[str, Any]:
        """Two candidates, for checking a new dataset end to end."""
        return {
            'p_vals': [0, 1],
            'd_vals': [1],
            'q_vals': [1],
            'P_vals': [0],
            'D_vals': [1],
            'Q_vals': [1],
            'period': DEFAULT_FREQUENCY,
            'description': 'Sanity check grid'
        }

    @staticmethod
    def get_all_grid_configs() -> Dict[str, Dict[str, Any]]:
        return {
            'sarima_thesis': SARIMAGridConfigs.get_thesis_grid(),
            'sarima_compact': SARIMAGridConfigs.get_compact_grid(),
            'sarima_smoke': SARIMAGridConfigs.get_smoke_grid(),
        }
