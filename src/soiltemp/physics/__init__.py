"""Depth-grid remapping, heat transport helpers and model adapters."""
from soiltemp.physics.remap import (
    DepthGrid,
    RemapMode,
    layer_integral,
    overlap_matrix,
    remap,
    remap_profile,
)

__all__ = [
    "DepthGrid",
    "RemapMode",
    "layer_integral",
    "overlap_matrix",
    "remap",
    "remap_profile",
]
