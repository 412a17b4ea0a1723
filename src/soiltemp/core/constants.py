"""
Physical constants, default values, and system-wide constants.
"""
from typing import Dict, Final, Tuple

# Physical constants
WATER_HEAT_CAPACITY: Final[float] = 4.18e6  # J/m³/K
MINERAL_HEAT_CAPACITY: Final[float] = 2.4e6  # J/m³/K (solids, scaled by bulk/particle density)
PARTICLE_DENSITY: Final[float] = 2.65  # g/cm³
SECONDS_PER_DAY: Final[float] = 86400.0
DAYS_PER_YEAR: Final[float] = 365.25
RADIANS_PER_DAY: Final[float] = 0.0174  # 2π / 365.25, rounded as in the damping-depth literature

# Unit conversion factors
CM_TO_M: Final[float] = 0.01
CM_TO_MM: Final[float] = 10.0

# Numerical stability
EPSILON: Final[float] = 1e-10

# Day of year of the annual air temperature maximum
HOTTEST_DAY_NORTH: Final[int] = 200
HOTTEST_DAY_SOUTH: Final[int] = 20

# Scenario lookups: cover level (LAI class) -> above-ground biomass (kg/ha)
DEFAULT_COVER_BIOMASS_KG_HA: Final[Dict[int, float]] = {
    0: 0.0,
    2: 1800.0,
    7: 10500.0,
}

# Moisture level (% plant available water) -> PAW fraction
DEFAULT_MOISTURE_PAW_FRACTION: Final[Dict[int, float]] = {
    0: 0.0,
    25: 0.25,
    50: 0.50,
    75: 0.75,
    100: 1.0,
}

# Fixed grids
DEFAULT_FIXED_LAYER_THICKNESS_CM: Final[float] = 5.0
DEFAULT_FIXED_LAYER_COUNT: Final[int] = 42
DEFAULT_FIVE_LAYER_BOUNDARIES_CM: Final[Tuple[float, ...]] = (0.0, 5.0, 15.0, 30.0, 60.0, 100.0)
DEFAULT_DEEP_LAYER_DEPTH_CM: Final[float] = 100.0
