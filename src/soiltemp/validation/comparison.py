"""
Inter-model comparison on a common depth grid.

Models report on different native grids, so each model's daily mean
profile is first remapped (intensive) onto a shared grid; error metrics
are then computed per model and depth band against a reference model.
"""
import logging
from typing import Dict, List

import numpy as np
import pandas as pd

from soiltemp.core.exceptions import ConfigurationError, ErrorContext
from soiltemp.physics.remap import DepthGrid, overlap_matrix
from soiltemp.pipeline.unifier import RECORD_COLUMNS

logger = logging.getLogger(__name__)


def rmse(reference: np.ndarray, predicted: np.ndarray) -> float:
    return float(np.sqrt(np.mean((predicted - reference) ** 2)))


def mean_bias(reference: np.ndarray, predicted: np.ndarray) -> float:
    return float(np.mean(predicted - reference))


def ubrmse(reference: np.ndarray, predicted: np.ndarray) -> float:
    """
    Unbiased Root Mean Square Error.

    ubRMSE = sqrt(RMSE² - bias²)
    """
    bias = np.mean(predicted - reference)
    mse = np.mean((predicted - reference) ** 2)
    return float(np.sqrt(max(0.0, mse - bias ** 2)))


def _label_columns(frame: pd.DataFrame) -> List[str]:
    return [c for c in frame.columns if c not in RECORD_COLUMNS and c != "model_id"]


def profiles_on_grid(frame: pd.DataFrame, grid: DepthGrid) -> pd.DataFrame:
    """
    Remap every model's daily mean profile onto `grid`.

    Surface rows (depth 0-0) are carried through unchanged.

    Returns:
        Long frame with the label columns, model_id, date, depth_top,
        depth_bottom and mean_temp
    """
    labels = _label_columns(frame)
    keys = labels + ["model_id"]
    is_surface = (frame["depth_top"] == 0) & (frame["depth_bottom"] == 0)
    out = [frame.loc[is_surface, keys + ["date", "depth_top", "depth_bottom", "mean_temp"]]]

    for group_key, group in frame[~is_surface].groupby(keys, sort=False):
        group_key = group_key if isinstance(group_key, tuple) else (group_key,)
        wide = group.pivot_table(index="date", columns=["depth_top", "depth_bottom"], values="mean_temp")
        source = DepthGrid.from_layers(
            wide.columns.get_level_values("depth_top"),
            wide.columns.get_level_values("depth_bottom"),
        )
        weights = overlap_matrix(source, grid)
        weights = weights / weights.sum(axis=1, keepdims=True)
        remapped = wide.to_numpy() @ weights.T

        long = pd.DataFrame({
            "date": np.repeat(wide.index.to_numpy(), grid.n_layers),
            "depth_top": np.tile(grid.tops, len(wide)),
            "depth_bottom": np.tile(grid.bottoms, len(wide)),
            "mean_temp": remapped.ravel(),
        })
        for column, value in zip(keys, group_key):
            long[column] = value
        out.append(long[keys + ["date", "depth_top", "depth_bottom", "mean_temp"]])

    return pd.concat(out, ignore_index=True)


def compare_models(frame: pd.DataFrame, reference_model: str, grid: DepthGrid) -> pd.DataFrame:
    """
    Error metrics of every model against a reference model.

    Args:
        frame: Canonical records with a model_id column (e.g. BatchResult.to_frame())
        reference_model: model_id the others are compared against
        grid: Common depth grid

    Returns:
        One row per (model_id, depth band) with n, rmse, bias and ubrmse
    """
    if reference_model not in set(frame["model_id"]):
        raise ConfigurationError(
            f"Reference model '{reference_model}' has no records",
            ErrorContext(model_id=reference_model, component="comparison"),
        )

    profiles = profiles_on_grid(frame, grid)
    join = _label_columns(frame) + ["date", "depth_top", "depth_bottom"]

    reference = profiles[profiles["model_id"] == reference_model]
    others = profiles[profiles["model_id"] != reference_model]
    merged = others.merge(
        reference[join + ["mean_temp"]], on=join, suffixes=("", "_reference"), how="inner"
    )

    rows: List[Dict] = []
    for (model_id, top, bottom), group in merged.groupby(["model_id", "depth_top", "depth_bottom"], sort=True):
        ref = group["mean_temp_reference"].to_numpy(dtype=float)
        pred = group["mean_temp"].to_numpy(dtype=float)
        rows.append({
            "model_id": model_id,
            "depth_top": top,
            "depth_bottom": bottom,
            "n": len(group),
            "rmse": rmse(ref, pred),
            "bias": mean_bias(ref, pred),
            "ubrmse": ubrmse(ref, pred),
        })

    logger.info(f"Compared {merged['model_id'].nunique()} models against {reference_model} on {grid}")
    return pd.DataFrame(rows, columns=["model_id", "depth_top", "depth_bottom", "n", "rmse", "bias", "ubrmse"])
