"""Soil temperature model adapters and the default registry."""
from soiltemp.physics.adapters.base import (
    ADAPTERS,
    AdapterRegistry,
    DailyOutputs,
    ModelAdapter,
    ModelState,
    register_adapter,
)
# Importing the variants registers them
from soiltemp.physics.adapters.stemp import StempAdapter
from soiltemp.physics.adapters.epic import EpicAdapter
from soiltemp.physics.adapters.swat import SwatAdapter
from soiltemp.physics.adapters.parton_swat import PartonSwatAdapter
from soiltemp.physics.adapters.campbell import CampbellAdapter
from soiltemp.physics.adapters.five_layer import FiveLayerAdapter
from soiltemp.physics.adapters.deep_lag import DeepLagAdapter
from soiltemp.physics.adapters.harmonic import HarmonicAdapter

__all__ = [
    "ADAPTERS",
    "AdapterRegistry",
    "DailyOutputs",
    "ModelAdapter",
    "ModelState",
    "register_adapter",
    "StempAdapter",
    "EpicAdapter",
    "SwatAdapter",
    "PartonSwatAdapter",
    "CampbellAdapter",
    "FiveLayerAdapter",
    "DeepLagAdapter",
    "HarmonicAdapter",
]
