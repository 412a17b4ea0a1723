"""
soiltemp Data Package.

Provides validated input records and scenario enumeration.
"""

from soiltemp.data.contracts import (
    SoilLayer,
    SoilProfile,
    WeatherRecord,
    SiteParameters,
)
from soiltemp.data.scenarios import ScenarioLookup, ScenarioResolver

__all__ = [
    "SoilLayer",
    "SoilProfile",
    "WeatherRecord",
    "SiteParameters",
    "ScenarioLookup",
    "ScenarioResolver",
]
