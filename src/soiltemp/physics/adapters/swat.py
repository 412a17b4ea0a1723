"""
SWAT soil temperature model.

    T_bare = T_mean + eps_sr * (T_max - T_min) / 2
    eps_sr = (H_day * (1 - albedo) - 14) / 20
    T_surf = bcv * T_soil(1) + (1 - bcv) * T_bare
    T_soil(z) = lag * T_soil(z) + (1 - lag) * (df * (T_AA - T_surf) + T_surf)

The layer update is shared with the Parton surface variant.

References:
- Neitsch et al. (2011) SWAT Theoretical Documentation, section 1:1.3
"""
from dataclasses import dataclass, replace
from typing import Optional, Tuple

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
class SwatState(ModelState):
    layer_temperature: np.ndarray
    grid: DepthGrid
    depth_weight: np.ndarray
    tav: float
    albedo: Optional[float]  # unused by the Parton surface
    biomass_kg_ha: float


def relax_layers(state: SwatState, surface: float, lag: float) -> np.ndarray:
    target = state.depth_weight * (state.tav - surface) + surface
    return lag * state.layer_temperature + (1.0 - lag) * target


def initial_swat_state(
    site: SiteParameters, soil: SoilProfile, theta: np.ndarray,
    first_day: WeatherRecord, scenario: ScenarioParameters,
) -> SwatState:
    grid = soil.grid
    bulk_density = soil.property_array("bulk_density_g_cm3")
    mean_bd = float(np.sum(bulk_density * grid.thickness) / grid.depth)
    water_mm = float(np.sum(theta * grid.thickness) * CM_TO_MM)
    dd = damping_depth_mm(mean_bd, water_mm, grid.depth * CM_TO_MM)
    weight = depth_factor(grid.midpoints * CM_TO_MM, dd)

    tav = site.annual_mean_temp
    start = first_day.mean_temperature
    return SwatState(
        day=0,
        layer_temperature=frozen_array(weight * (tav - start) + start),
        grid=grid,
        depth_weight=frozen_array(weight),
        tav=tav,
        albedo=site.albedo,
        biomass_kg_ha=scenario.biomass_kg_ha,
    )


@register_adapter
class SwatAdapter(ModelAdapter):
    """SWAT bare-soil surface with cover/snow blending"""

    model_id = "swat"
    native_grid_kind = GridKind.SCENARIO
    required_forcing = ("radiation", "snow_water_equivalent")
    required_site = ("annual_mean_temp", "albedo")

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> SwatState:
        return initial_swat_state(site, soil, self.soil_water(soil, scenario), first_day, scenario)

    def _step(self, state: SwatState, forcing: WeatherRecord) -> Tuple[SwatState, DailyOutputs]:
        eps_sr = (forcing.radiation * (1.0 - state.albedo) - 14.0) / 20.0
        bare = forcing.mean_temperature + eps_sr * (forcing.t_max - forcing.t_min) / 2.0

        bcv = cover_factor(state.biomass_kg_ha, forcing.snow_water_equivalent)
        surface = bcv * state.layer_temperature[0] + (1.0 - bcv) * bare

        layers = relax_layers(state, surface, self.constants.swat_lag_coefficient)
        new_state = replace(state, day=state.day + 1, layer_temperature=frozen_array(layers))
        return new_state, DailyOutputs(
            date=forcing.date, surface_mean=float(surface), grid=state.grid, mean=new_state.layer_temperature,
        )
