"""
Validation metrics for soil temperature models.
Compares models against a reference on a common depth grid.
"""
from soiltemp.validation.comparison import (
    compare_models,
    profiles_on_grid,
    rmse,
    mean_bias,
    ubrmse,
)

__all__ = [
    "compare_models",
    "profiles_on_grid",
    "rmse",
    "mean_bias",
    "ubrmse",
]
