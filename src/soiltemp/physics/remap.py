"""
Conservative remapping of layer-indexed quantities between depth grids.

A DepthGrid is an ordered sequence of layer boundaries starting at the soil
surface. Quantities are moved from one grid to another by weighting every
source layer with the length of its overlap with each target layer:

    w[t, s] = max(0, min(bottom_t, bottom_s) - max(top_t, top_s))

Intensive quantities (temperature, bulk density, volumetric water content)
become overlap-weighted averages; extensive quantities (layer totals such as
water in mm) are split in proportion to the fraction of each source layer that
falls inside the target layer. Either way the depth integral is preserved
when the target grid spans the source grid.

Where the target grid reaches below the deepest source boundary, the excess
depth is attributed to the deepest source layer: soil below the described
profile is assumed uniform with its last horizon.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Sequence

import numpy as np

from soiltemp.core.exceptions import GridMismatchError, ErrorContext


class RemapMode(str, Enum):
    """How a layer quantity aggregates over depth"""
    INTENSIVE = "intensive"
    EXTENSIVE = "extensive"


@dataclass(frozen=True, eq=False)
class DepthGrid:
    """
    Immutable layer discretization.

    Attributes:
        boundaries: Layer boundaries in cm, length n_layers + 1, boundaries[0] == 0
    """
    boundaries: np.ndarray

    def __post_init__(self):
        b = np.array(self.boundaries, dtype=float)
        if b.ndim != 1 or b.size < 2:
            raise GridMismatchError(
                "Depth grid needs a one dimensional boundary array with >= 2 entries",
                ErrorContext(component="remap"),
            )
        if not np.all(np.isfinite(b)):
            raise GridMismatchError("Depth grid boundaries must be finite", ErrorContext(component="remap"))
        if b[0] != 0.0:
            raise GridMismatchError(
                f"Depth grid must start at depth 0 (got {b[0]})", ErrorContext(component="remap"))
        steps = np.diff(b)
        if np.any(steps < 0):
            raise GridMismatchError("Depth grid boundaries are not monotonic", ErrorContext(component="remap"))
        if np.any(steps == 0):
            raise GridMismatchError("Depth grid has zero-length layers", ErrorContext(component="remap"))
        b.setflags(write=False)
        object.__setattr__(self, "boundaries", b)

    @classmethod
    def from_boundaries(cls, boundaries: Sequence[float]) -> "DepthGrid":
        return cls(np.asarray(boundaries, dtype=float))

    @classmethod
    def from_layers(cls, tops: Sequence[float], bottoms: Sequence[float]) -> "DepthGrid":
        """Build a grid from per-layer tops and bottoms; layers must be contiguous"""
        tops = np.asarray(tops, dtype=float)
        bottoms = np.asarray(bottoms, dtype=float)
        if tops.shape != bottoms.shape or tops.size == 0:
            raise GridMismatchError("Layer tops and bottoms must be non-empty and equally long")
        if not np.array_equal(tops[1:], bottoms[:-1]):
            raise GridMismatchError("Layers are not contiguous", ErrorContext(component="remap"))
        return cls(np.concatenate([tops[:1], bottoms]))

    @classmethod
    def uniform(cls, thickness: float, count: int) -> "DepthGrid":
        """count layers of equal thickness from the surface down"""
        if count < 1:
            raise GridMismatchError(f"Uniform grid needs at least one layer (got {count})")
        return cls(np.arange(count + 1, dtype=float) * thickness)

    @property
    def n_layers(self) -> int:
        return self.boundaries.size - 1

    @property
    def tops(self) -> np.ndarray:
        return self.boundaries[:-1]

    @property
    def bottoms(self) -> np.ndarray:
        return self.boundaries[1:]

    @property
    def thickness(self) -> np.ndarray:
        return np.diff(self.boundaries)

    @property
    def midpoints(self) -> np.ndarray:
        return 0.5 * (self.tops + self.bottoms)

    @property
    def depth(self) -> float:
        return float(self.boundaries[-1])

    def __len__(self) -> int:
        return self.n_layers

    def __eq__(self, other) -> bool:
        if not isinstance(other, DepthGrid):
            return NotImplemented
        return np.array_equal(self.boundaries, other.boundaries)

    def __hash__(self) -> int:
        return hash(self.boundaries.tobytes())

    def __repr__(self) -> str:
        return f"DepthGrid({self.boundaries.tolist()})"


def overlap_matrix(source: DepthGrid, target: DepthGrid) -> np.ndarray:
    """
    Overlap length of every target layer with every source layer.

    Returns:
        Array of shape (target.n_layers, source.n_layers); target depth below
        the source profile is added to the deepest source column.
    """
    top = np.maximum(target.tops[:, None], source.tops[None, :])
    bottom = np.minimum(target.bottoms[:, None], source.bottoms[None, :])
    weights = np.clip(bottom - top, 0.0, None)

    excess = np.clip(target.bottoms - np.maximum(target.tops, source.depth), 0.0, None)
    weights[:, -1] += excess
    return weights


def remap(
    source: DepthGrid,
    values: Sequence[float],
    target: DepthGrid,
    mode: RemapMode = RemapMode.INTENSIVE,
    as_density: bool = False,
) -> np.ndarray:
    """
    Remap a layer quantity from the source grid onto the target grid.

    Args:
        source: Grid the values are defined on
        values: One value per source layer
        target: Grid to remap onto
        mode: INTENSIVE (weighted average) or EXTENSIVE (weighted split of totals)
        as_density: For EXTENSIVE mode, divide each target total by target thickness

    Returns:
        One value per target layer
    """
    values = np.asarray(values, dtype=float)
    if values.shape != (source.n_layers,):
        raise GridMismatchError(
            f"Expected {source.n_layers} source values, got shape {values.shape}",
            ErrorContext(component="remap"),
        )

    mode = RemapMode(mode)

    if source == target:
        if mode is RemapMode.EXTENSIVE and as_density:
            return values / target.thickness
        return values.copy()

    weights = overlap_matrix(source, target)

    if mode is RemapMode.INTENSIVE:
        return (weights @ values) / weights.sum(axis=1)

    remapped = (weights / source.thickness[None, :]) @ values
    if as_density:
        return remapped / target.thickness
    return remapped


def layer_integral(grid: DepthGrid, values: Sequence[float]) -> float:
    """Depth integral of an intensive quantity over the grid"""
    return float(np.sum(np.asarray(values, dtype=float) * grid.thickness))


def remap_profile(profile, target: DepthGrid):
    """Soil profile with every populated property remapped onto `target`"""
    return profile.on_grid(target)
