from imbalance_sarima.models.hyperparameter_configs import (
    FINAL_ORDER,
    FINAL_SEASONAL_ORDER,
    GRID_PARAMETERS,
    SARIMAGridConfigs
)
from imbalance_sarima.models.order_search import build_candidates


def _size(grid):
    return len(build_candidates(*(grid[name] for name in GRID_PARAMETERS), grid['period']))


def test_thesis_grid():
    grid = SARIMAGridConfigs.get_thesis_grid()

    assert grid['d_vals'] == [1]
    assert grid['D_vals'] == [1]
    assert grid['period'] == 48
    assert _size(grid) == 128


def test_all_grids_are_complete():
    for name, grid in SARIMAGridConfigs.get_all_grid_configs().items():
        for param in GRID_PARAMETERS:
            assert grid[param], f"{name} has no values for {param}"
        assert _size(grid) >= 1


def test_final_order():
    assert FINAL_ORDER == (3, 1, 1)
    assert FINAL_SEASONAL_ORDER == (0, 1, 1, 48)
