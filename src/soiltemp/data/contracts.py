"""
Data contracts and schemas for the soiltemp harness.
Parsed records handed over by the I/O layer; validated on construction.
"""
from datetime import date
from typing import Optional, List
from pydantic import BaseModel, Field, field_validator, model_validator
import numpy as np

from soiltemp.core.types import SiteID, SoilID
from soiltemp.core.exceptions import MissingParameterError, MissingDataError, ErrorContext
from soiltemp.physics.remap import DepthGrid, RemapMode, remap


# Soil properties a model may ask a profile for
SOIL_PROPERTIES = (
    "bulk_density_g_cm3",
    "field_capacity",
    "wilting_point",
    "water_content",
    "organic_carbon_percent",
)


class SoilLayer(BaseModel):
    """One horizon of a soil profile (depths in cm)"""
    top_cm: float = Field(ge=0)
    bottom_cm: float = Field(ge=0)

    bulk_density_g_cm3: Optional[float] = Field(default=None, gt=0)
    field_capacity: Optional[float] = Field(default=None, ge=0, le=1)
    wilting_point: Optional[float] = Field(default=None, ge=0, le=1)
    water_content: Optional[float] = Field(default=None, ge=0, le=1)
    organic_carbon_percent: Optional[float] = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @property
    def thickness_cm(self) -> float:
        return self.bottom_cm - self.top_cm

    @model_validator(mode='after')
    def validate_depths(self):
        """Ensure the layer has non-negative thickness"""
        if self.bottom_cm < self.top_cm:
            raise ValueError(f'bottom_cm ({self.bottom_cm}) must be >= top_cm ({self.top_cm})')
        return self

    @model_validator(mode='after')
    def validate_water_limits(self):
        """Ensure field capacity is above wilting point when both are given"""
        if self.field_capacity is not None and self.wilting_point is not None:
            if self.field_capacity < self.wilting_point:
                raise ValueError('field_capacity must be >= wilting_point')
        return self


class SoilProfile(BaseModel):
    """Ordered, contiguous soil layers starting at the surface"""
    soil_id: SoilID
    layers: List[SoilLayer] = Field(min_length=1)

    model_config = {"frozen": True}

    @model_validator(mode='after')
    def validate_layering(self):
        """Layers sorted by top, contiguous, starting at depth 0"""
        if self.layers[0].top_cm != 0:
            raise ValueError(f'Profile must start at depth 0 (got {self.layers[0].top_cm})')
        for upper, lower in zip(self.layers, self.layers[1:]):
            if lower.top_cm != upper.bottom_cm:
                raise ValueError(
                    f'Layers are not contiguous: {upper.bottom_cm} cm != {lower.top_cm} cm'
                )
        return self

    @property
    def grid(self) -> DepthGrid:
        return DepthGrid.from_layers(
            [layer.top_cm for layer in self.layers],
            [layer.bottom_cm for layer in self.layers],
        )

    @property
    def depth_cm(self) -> float:
        return self.layers[-1].bottom_cm

    def has_property(self, name: str) -> bool:
        return all(getattr(layer, name) is not None for layer in self.layers)

    def property_array(self, name: str) -> np.ndarray:
        """Per-layer values of a soil property; every layer must define it"""
        if name not in SOIL_PROPERTIES:
            raise KeyError(f"Unknown soil property: {name}")
        values = [getattr(layer, name) for layer in self.layers]
        missing = [i for i, v in enumerate(values) if v is None]
        if missing:
            raise MissingParameterError(
                f"Soil property '{name}' missing for layers {missing}",
                ErrorContext(component="soil", details={"soil_id": self.soil_id}),
            )
        return np.asarray(values, dtype=float)

    def on_grid(self, target: DepthGrid) -> "SoilProfile":
        """Remap every populated soil property onto another depth grid"""
        source = self.grid
        properties = {
            name: remap(source, self.property_array(name), target, RemapMode.INTENSIVE)
            for name in SOIL_PROPERTIES
            if self.has_property(name)
        }
        return SoilProfile.from_arrays(self.soil_id, target.boundaries, **properties)

    @classmethod
    def from_arrays(cls, soil_id: SoilID, boundaries, **properties) -> "SoilProfile":
        """Build a profile from a boundary array and per-layer property arrays"""
        boundaries = np.asarray(boundaries, dtype=float)
        layers = []
        for i in range(boundaries.size - 1):
            values = {
                name: (None if prop is None else float(prop[i]))
                for name, prop in properties.items()
            }
            layers.append(SoilLayer(top_cm=float(boundaries[i]), bottom_cm=float(boundaries[i + 1]), **values))
        return cls(soil_id=soil_id, layers=layers)


class WeatherRecord(BaseModel):
    """Daily weather forcing for one calendar day"""
    date: date
    t_min: float
    t_max: float
    t_mean: Optional[float] = None
    radiation: Optional[float] = Field(default=None, ge=0)  # MJ/m²/day
    rain: Optional[float] = Field(default=None, ge=0)  # mm
    snow_water_equivalent: Optional[float] = Field(default=None, ge=0)  # mm
    day_length: Optional[float] = Field(default=None, ge=0, le=24)  # hours

    model_config = {"frozen": True}

    @field_validator('t_max')
    @classmethod
    def validate_temperature_range(cls, v, info):
        """Ensure temperature max >= min"""
        if hasattr(info, 'data') and 't_min' in info.data:
            if v < info.data['t_min']:
                raise ValueError('t_max must be >= t_min')
        return v

    @property
    def mean_temperature(self) -> float:
        if self.t_mean is not None:
            return self.t_mean
        return 0.5 * (self.t_min + self.t_max)

    def require(self, *fields: str) -> None:
        """Raise MissingDataError if any of the named fields is absent"""
        missing = [name for name in fields if getattr(self, name) is None]
        if missing:
            raise MissingDataError(
                f"Forcing fields missing: {', '.join(missing)}",
                ErrorContext(date=self.date.isoformat(), component="forcing"),
            )


class SiteParameters(BaseModel):
    """Site-level scalars shared by all scenarios of a site"""
    site_id: SiteID
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    annual_mean_temp: Optional[float] = None  # °C
    annual_amplitude: Optional[float] = Field(default=None, ge=0)  # °C, max - min of monthly means
    albedo: Optional[float] = Field(default=None, ge=0, le=1)
    elevation_m: Optional[float] = None

    model_config = {"frozen": True}

    def require(self, *fields: str) -> None:
        """Raise MissingParameterError if any of the named fields is absent"""
        missing = [name for name in fields if getattr(self, name) is None]
        if missing:
            raise MissingParameterError(
                f"Site parameters missing: {', '.join(missing)}",
                ErrorContext(component="site", details={"site_id": self.site_id}),
            )
