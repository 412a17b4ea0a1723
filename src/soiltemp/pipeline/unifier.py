"""
Output unifier.
Maps each model's native daily outputs onto the canonical depth-band record.
"""
from dataclasses import dataclass, asdict
from datetime import date
from typing import Iterable, List

import numpy as np
import pandas as pd

from soiltemp.core.types import NOT_AVAILABLE, Availability, OptionalTemperature
from soiltemp.physics.adapters.base import DailyOutputs

RECORD_COLUMNS = ["date", "depth_top", "depth_bottom", "mean_temp", "min_temp", "max_temp"]


@dataclass(frozen=True)
class DailyOutputRecord:
    """One depth band on one day; depth 0-0 is the surface"""
    date: date
    depth_top: float
    depth_bottom: float
    mean_temp: float
    min_temp: OptionalTemperature = NOT_AVAILABLE
    max_temp: OptionalTemperature = NOT_AVAILABLE

    @property
    def is_surface(self) -> bool:
        return self.depth_top == 0.0 and self.depth_bottom == 0.0


def _optional(value) -> OptionalTemperature:
    return NOT_AVAILABLE if value is None else float(value)


def unify(outputs: DailyOutputs) -> List[DailyOutputRecord]:
    """Surface record first, then one record per layer of the output grid"""
    records = [
        DailyOutputRecord(
            date=outputs.date,
            depth_top=0.0,
            depth_bottom=0.0,
            mean_temp=float(outputs.surface_mean),
            min_temp=_optional(outputs.surface_min),
            max_temp=_optional(outputs.surface_max),
        )
    ]

    grid = outputs.grid
    for i in range(grid.n_layers):
        records.append(
            DailyOutputRecord(
                date=outputs.date,
                depth_top=float(grid.tops[i]),
                depth_bottom=float(grid.bottoms[i]),
                mean_temp=float(outputs.mean[i]),
                min_temp=NOT_AVAILABLE if outputs.min is None else float(outputs.min[i]),
                max_temp=NOT_AVAILABLE if outputs.max is None else float(outputs.max[i]),
            )
        )
    return records


def records_to_frame(records: Iterable[DailyOutputRecord], **labels) -> pd.DataFrame:
    """
    Tabular view of canonical records.

    Args:
        records: Canonical records
        **labels: Constant columns prepended to every row (e.g. scenario, model)

    Returns:
        DataFrame with nullable Float64 min/max; NOT_AVAILABLE becomes pd.NA
    """
    rows = []
    for record in records:
        row = dict(labels)
        row.update(asdict(record))
        for column in ("min_temp", "max_temp"):
            if isinstance(row[column], Availability):
                row[column] = pd.NA
        rows.append(row)

    columns = list(labels) + RECORD_COLUMNS
    df = pd.DataFrame(rows, columns=columns)
    df["date"] = pd.to_datetime(df["date"])
    for column in ("depth_top", "depth_bottom", "mean_temp"):
        df[column] = df[column].astype(np.float64)
    for column in ("min_temp", "max_temp"):
        df[column] = df[column].astype("Float64")
    return df
