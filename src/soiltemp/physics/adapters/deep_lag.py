"""
Single deep-layer lag model.

Surface minimum follows the air minimum; the surface maximum is raised by
absorbed radiation. The daily surface mean is the midpoint of the two, and
one deep layer relaxes toward it with a fixed lag.
"""
from dataclasses import dataclass, replace
from typing import Tuple

from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.remap import DepthGrid
from soiltemp.physics.adapters.base import (
    ModelAdapter, ModelState, DailyOutputs, frozen_array, register_adapter
)


@dataclass(frozen=True)
class DeepLagState(ModelState):
    deep_temperature: float
    model_grid: DepthGrid
    reporting_grid: DepthGrid
    albedo: float


@register_adapter
class DeepLagAdapter(ModelAdapter):
    """Surface extremes plus one lagged deep layer"""

    model_id = "deep_lag"
    native_grid_kind = GridKind.SINGLE_DEEP_LAYER
    required_forcing = ("radiation",)
    required_site = ("annual_mean_temp", "albedo")
    required_soil = ()

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> DeepLagState:
        grid = self.model_grid(soil)
        return DeepLagState(
            day=0,
            deep_temperature=site.annual_mean_temp,
            model_grid=grid,
            reporting_grid=self.reporting_grid(soil, grid),
            albedo=site.albedo,
        )

    def _step(self, state: DeepLagState, forcing: WeatherRecord) -> Tuple[DeepLagState, DailyOutputs]:
        absorbed = forcing.radiation * (1.0 - state.albedo)
        surface_min = forcing.t_min
        surface_max = forcing.t_max + self.constants.heat_flux_coefficient * absorbed
        surface = 0.5 * (surface_min + surface_max)

        lag = self.constants.deep_lag_coefficient
        deep = lag * state.deep_temperature + (1.0 - lag) * surface

        new_state = replace(state, day=state.day + 1, deep_temperature=deep)
        layers = self.to_reporting_grid(state.model_grid, [deep], state.reporting_grid)
        return new_state, DailyOutputs(
            date=forcing.date,
            surface_mean=surface,
            surface_min=surface_min,
            surface_max=surface_max,
            grid=state.reporting_grid,
            mean=frozen_array(layers),
        )
