"""
Damping-depth soil temperature model (DSSAT STEMP formulation).

Layer temperatures follow the annual air temperature wave, damped and
delayed with depth, shifted by how far the recent surface temperature
departs from the seasonal expectation:

    ST(z) = TAV + (TAMP/2 * cos(ALX + ZD) + DT) * exp(ZD),   ZD = -z / DD

References:
- Ritchie (1998) Soil water balance and plant water stress
"""
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from soiltemp.core.constants import CM_TO_MM, RADIANS_PER_DAY
from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.heat import damping_depth_mm
from soiltemp.physics.remap import DepthGrid
from soiltemp.physics.adapters.base import (
    ModelAdapter, ModelState, DailyOutputs, frozen_array, register_adapter
)


@dataclass(frozen=True)
class StempState(ModelState):
    surface_history: np.ndarray  # newest first
    layer_temperature: np.ndarray
    grid: DepthGrid
    damping_depth_mm: float
    tav: float
    tamp: float
    albedo: float
    hottest_day: int


def annual_wave(state: StempState, doy: int, dt: float) -> Tuple[float, np.ndarray]:
    """Surface and layer temperatures for a day of year and history offset"""
    alx = (doy - state.hottest_day) * RADIANS_PER_DAY
    zd = -state.grid.midpoints * CM_TO_MM / state.damping_depth_mm
    layers = state.tav + (state.tamp / 2.0 * np.cos(alx + zd) + dt) * np.exp(zd)
    surface = state.tav + state.tamp / 2.0 * np.cos(alx) + dt
    return float(surface), layers


@register_adapter
class StempAdapter(ModelAdapter):
    """DSSAT STEMP on the scenario's own soil layers"""

    model_id = "stemp"
    native_grid_kind = GridKind.SCENARIO
    required_forcing = ("radiation",)
    required_site = ("latitude", "annual_mean_temp", "annual_amplitude", "albedo")

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> StempState:
        grid = soil.grid
        bulk_density = soil.property_array("bulk_density_g_cm3")
        theta = self.soil_water(soil, scenario)

        mean_bd = float(np.sum(bulk_density * grid.thickness) / grid.depth)
        water_mm = float(np.sum(theta * grid.thickness) * CM_TO_MM)
        dd = damping_depth_mm(mean_bd, water_mm, grid.depth * CM_TO_MM)

        history = np.full(self.constants.surface_history_days, first_day.mean_temperature)
        state = StempState(
            day=0,
            surface_history=frozen_array(history),
            layer_temperature=frozen_array(np.zeros(grid.n_layers)),
            grid=grid,
            damping_depth_mm=dd,
            tav=site.annual_mean_temp,
            tamp=site.annual_amplitude,
            albedo=site.albedo,
            hottest_day=self.hottest_day(site),
        )
        doy = first_day.date.timetuple().tm_yday
        _, layers = annual_wave(state, doy, 0.0)
        return replace(state, layer_temperature=frozen_array(layers))

    def _step(self, state: StempState, forcing: WeatherRecord) -> Tuple[StempState, DailyOutputs]:
        t_avg = forcing.mean_temperature
        surface_today = (1.0 - state.albedo) * (
            t_avg + (forcing.t_max - t_avg) * np.sqrt(forcing.radiation * 0.03)
        ) + state.albedo * state.surface_history[0]
        history = np.concatenate([[surface_today], state.surface_history[:-1]])

        doy = forcing.date.timetuple().tm_yday
        seasonal = state.tav + state.tamp * np.cos((doy - state.hottest_day) * RADIANS_PER_DAY) / 2.0
        dt = float(np.mean(history)) - seasonal
        surface, layers = annual_wave(state, doy, dt)

        new_state = replace(
            state,
            day=state.day + 1,
            surface_history=frozen_array(history),
            layer_temperature=frozen_array(layers),
        )
        return new_state, DailyOutputs(
            date=forcing.date, surface_mean=surface, grid=state.grid, mean=new_state.layer_temperature,
        )
