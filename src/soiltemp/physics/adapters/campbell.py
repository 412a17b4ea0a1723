"""
Campbell heat-flow soil temperature model on a fixed 50 mm grid.

The scenario's soil properties are remapped onto the uniform grid, thermal
properties follow Campbell (1985), and each day is integrated with implicit
substeps under a sinusoidal surface boundary and the annual mean air
temperature below the column. Daily minimum and maximum are tracked per
layer across the substeps.

References:
- Campbell (1985) Soil Physics with BASIC, ch. 4
"""
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from soiltemp.core.constants import CM_TO_M
from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.heat import campbell_conductivity, volumetric_heat_capacity, run_conduction_day
from soiltemp.physics.remap import DepthGrid, RemapMode, remap
from soiltemp.physics.adapters.base import (
    ModelAdapter, ModelState, DailyOutputs, frozen_array, register_adapter
)


@dataclass(frozen=True)
class ConductionState(ModelState):
    temperature: np.ndarray  # on the model grid
    model_grid: DepthGrid
    reporting_grid: DepthGrid
    conductivity: np.ndarray
    heat_capacity: np.ndarray
    bottom_temperature: float


def initial_conduction_state(
    adapter: ModelAdapter, site: SiteParameters, soil: SoilProfile, scenario: ScenarioParameters,
) -> ConductionState:
    """Remap soil onto the model grid and derive thermal properties"""
    grid = adapter.model_grid(soil)
    bulk_density = remap(soil.grid, soil.property_array("bulk_density_g_cm3"), grid, RemapMode.INTENSIVE)
    theta = remap(soil.grid, adapter.soil_water(soil, scenario), grid, RemapMode.INTENSIVE)
    clay = adapter.constants.clay_fraction

    return ConductionState(
        day=0,
        temperature=frozen_array(np.full(grid.n_layers, site.annual_mean_temp)),
        model_grid=grid,
        reporting_grid=adapter.reporting_grid(soil, grid),
        conductivity=frozen_array(campbell_conductivity(bulk_density, theta, clay)),
        heat_capacity=frozen_array(volumetric_heat_capacity(bulk_density, theta)),
        bottom_temperature=site.annual_mean_temp,
    )


@register_adapter
class CampbellAdapter(ModelAdapter):
    """Implicit conduction with sub-daily surface forcing"""

    model_id = "campbell"
    native_grid_kind = GridKind.FIXED_UNIFORM
    required_site = ("annual_mean_temp",)
    provides_min_max = True

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> ConductionState:
        return initial_conduction_state(self, site, soil, scenario)

    def _step(self, state: ConductionState, forcing: WeatherRecord) -> Tuple[ConductionState, DailyOutputs]:
        final, mean, low, high = run_conduction_day(
            state.temperature,
            state.model_grid.thickness * CM_TO_M,
            state.conductivity,
            state.heat_capacity,
            forcing.t_min,
            forcing.t_max,
            state.bottom_temperature,
            self.constants.campbell_substeps_per_day,
        )

        grid, reporting = state.model_grid, state.reporting_grid
        new_state = replace(state, day=state.day + 1, temperature=frozen_array(final))
        return new_state, DailyOutputs(
            date=forcing.date,
            surface_mean=0.5 * (forcing.t_min + forcing.t_max),
            surface_min=forcing.t_min,
            surface_max=forcing.t_max,
            grid=reporting,
            mean=frozen_array(self.to_reporting_grid(grid, mean, reporting)),
            min=frozen_array(self.to_reporting_grid(grid, low, reporting)),
            max=frozen_array(self.to_reporting_grid(grid, high, reporting)),
        )
