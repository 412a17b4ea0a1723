"""
EPIC soil temperature model.

Surface temperature blends the air temperature (weighted toward the daily
maximum on dry days) with the top soil layer under residue/canopy or snow
cover. Each layer then relaxes toward a depth-weighted mix of the annual
mean and the surface temperature.

References:
- Williams et al. (1984) EPIC soil temperature submodel
"""
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from soiltemp.core.constants import CM_TO_MM
from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.heat import damping_depth_mm, depth_factor, cover_factor
from soiltemp.physics.remap import DepthGrid
from soiltemp.physics.adapters.base import (
    ModelAdapter, ModelState, DailyOutputs, frozen_array, register_adapter
)


@dataclass(frozen=True)
class EpicState(ModelState):
    wet_days: np.ndarray  # 1.0 for wet days, newest first, up to the window length
    layer_temperature: np.ndarray
    grid: DepthGrid
    depth_weight: np.ndarray
    tav: float
    biomass_kg_ha: float


@register_adapter
class EpicAdapter(ModelAdapter):
    """DSSAT/EPIC soil temperature on the scenario's own soil layers"""

    model_id = "epic"
    native_grid_kind = GridKind.SCENARIO
    required_forcing = ("rain", "snow_water_equivalent")
    required_site = ("annual_mean_temp",)

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> EpicState:
        grid = soil.grid
        bulk_density = soil.property_array("bulk_density_g_cm3")
        theta = self.soil_water(soil, scenario)

        mean_bd = float(np.sum(bulk_density * grid.thickness) / grid.depth)
        water_mm = float(np.sum(theta * grid.thickness) * CM_TO_MM)
        dd = damping_depth_mm(mean_bd, water_mm, grid.depth * CM_TO_MM)
        weight = depth_factor(grid.midpoints * CM_TO_MM, dd)

        tav = site.annual_mean_temp
        start = first_day.mean_temperature
        return EpicState(
            day=0,
            wet_days=frozen_array([]),
            layer_temperature=frozen_array(weight * (tav - start) + start),
            grid=grid,
            depth_weight=frozen_array(weight),
            tav=tav,
            biomass_kg_ha=scenario.biomass_kg_ha,
        )

    def _step(self, state: EpicState, forcing: WeatherRecord) -> Tuple[EpicState, DailyOutputs]:
        wet = 1.0 if forcing.rain > self.constants.wet_day_threshold_mm else 0.0
        wet_days = np.concatenate([[wet], state.wet_days])[: self.constants.epic_wet_day_window]
        wet_fraction = float(np.mean(wet_days))

        t_avg = forcing.mean_temperature
        if t_avg > 0:
            bare = wet_fraction * t_avg + (1.0 - wet_fraction) * forcing.t_max
        else:
            bare = t_avg

        bcv = cover_factor(state.biomass_kg_ha, forcing.snow_water_equivalent)
        surface = (1.0 - bcv) * bare + bcv * state.layer_temperature[0]

        lag = self.constants.epic_lag_coefficient
        target = state.depth_weight * (state.tav - surface) + surface
        layers = lag * state.layer_temperature + (1.0 - lag) * target

        new_state = replace(
            state,
            day=state.day + 1,
            wet_days=frozen_array(wet_days),
            layer_temperature=frozen_array(layers),
        )
        return new_state, DailyOutputs(
            date=forcing.date, surface_mean=float(surface), grid=state.grid, mean=new_state.layer_temperature,
        )
