"""
Type definitions and type aliases for the soiltemp harness.
"""
from datetime import date
from typing import Optional, Union
from enum import Enum
from dataclasses import dataclass
from typing_extensions import TypeAlias
import numpy as np


# Type aliases for clarity
SiteID: TypeAlias = str
SoilID: TypeAlias = str
ModelID: TypeAlias = str
Date: TypeAlias = date
DepthCm: TypeAlias = float
TemperatureC: TypeAlias = float

# Array types for static typing with numpy
BoundaryArray: TypeAlias = np.ndarray  # Shape: (n_layers + 1,)
LayerArray: TypeAlias = np.ndarray  # Shape: (n_layers,)


class Availability(Enum):
    """Marker for values a model does not compute"""
    NOT_AVAILABLE = "not_available"

    def __repr__(self) -> str:
        return "NOT_AVAILABLE"

    def __bool__(self) -> bool:
        return False


NOT_AVAILABLE = Availability.NOT_AVAILABLE

OptionalTemperature: TypeAlias = Union[float, Availability]


class GridKind(str, Enum):
    """Depth discretization a model is designed around"""
    SCENARIO = "scenario"  # the soil profile's own layers
    FIXED_UNIFORM = "fixed_uniform"  # fixed-thickness layers (50 mm)
    FIXED_FIVE_LAYER = "fixed_five_layer"
    SINGLE_DEEP_LAYER = "single_deep_layer"


class DriverStatus(str, Enum):
    """Lifecycle of one scenario run"""
    UNINITIALIZED = "uninitialized"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class ScenarioDescriptor:
    """Immutable identity of one simulation instance"""
    site_id: SiteID
    soil_id: SoilID
    cover_level: int
    moisture_level: int

    @property
    def key(self) -> str:
        """Stable string identity used in logs and failure reports"""
        return f"{self.site_id}_{self.soil_id}_LAI{self.cover_level}_PAW{self.moisture_level}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class ScenarioParameters:
    """Physical values a scenario's cover and moisture levels map to"""
    biomass_kg_ha: float = 0.0
    paw_fraction: Optional[float] = None  # None keeps the profile's own water content

    @property
    def biomass_g_m2(self) -> float:
        return self.biomass_kg_ha / 10.0
