"""
Five-layer conduction model with snow insulation.

Daily-mean air temperature drives the top of a fixed five-layer column;
snow cover decouples the surface from the air in proportion to its water
equivalent, holding it near the temperature of the top layer.
"""
from dataclasses import replace
from typing import Tuple

import numpy as np

from soiltemp.core.constants import CM_TO_M, SECONDS_PER_DAY
from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.heat import implicit_conduction_step
from soiltemp.physics.adapters.base import ModelAdapter, DailyOutputs, frozen_array, register_adapter
from soiltemp.physics.adapters.campbell import ConductionState, initial_conduction_state


@register_adapter
class FiveLayerAdapter(ModelAdapter):
    """Implicit conduction on a fixed five-layer grid"""

    model_id = "five_layer"
    native_grid_kind = GridKind.FIXED_FIVE_LAYER
    required_forcing = ("snow_water_equivalent",)
    required_site = ("annual_mean_temp",)

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> ConductionState:
        return initial_conduction_state(self, site, soil, scenario)

    def _step(self, state: ConductionState, forcing: WeatherRecord) -> Tuple[ConductionState, DailyOutputs]:
        coupling = float(np.exp(-self.constants.snow_damping_per_mm * forcing.snow_water_equivalent))
        surface = coupling * forcing.mean_temperature + (1.0 - coupling) * float(state.temperature[0])

        substeps = self.constants.five_layer_substeps_per_day
        thickness_m = state.model_grid.thickness * CM_TO_M
        current = np.array(state.temperature)
        total = np.zeros_like(current)
        for _ in range(substeps):
            current = implicit_conduction_step(
                current, thickness_m, state.conductivity, state.heat_capacity,
                SECONDS_PER_DAY / substeps, surface, state.bottom_temperature,
            )
            total += current

        grid, reporting = state.model_grid, state.reporting_grid
        new_state = replace(state, day=state.day + 1, temperature=frozen_array(current))
        return new_state, DailyOutputs(
            date=forcing.date,
            surface_mean=surface,
            grid=reporting,
            mean=frozen_array(self.to_reporting_grid(grid, total / substeps, reporting)),
        )
