"""
Harmonic soil temperature model.

Analytical solution for a periodic surface temperature in a conducting
half-space, applied layer by layer with each layer's own diffusivity:

    T(z, t) = TAV + TAMP/2 * exp(-z/D) * cos(w (t - t_max) - z/D) + A(t) * exp(-z/D_a)

A(t) is a lagged anomaly of the air temperature from its seasonal
expectation, damped with the shorter damping depth D_a of a synoptic cycle.
"""
from dataclasses import dataclass, replace
from typing import Tuple

import numpy as np

from soiltemp.core.constants import CM_TO_M, DAYS_PER_YEAR, SECONDS_PER_DAY
from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.heat import thermal_diffusivity
from soiltemp.physics.remap import DepthGrid
from soiltemp.physics.adapters.base import (
    ModelAdapter, ModelState, DailyOutputs, frozen_array, register_adapter
)


@dataclass(frozen=True)
class HarmonicState(ModelState):
    anomaly: float
    grid: DepthGrid
    annual_damping: np.ndarray  # z/D at each layer midpoint
    anomaly_damping: np.ndarray  # z/D_a at each layer midpoint
    tav: float
    tamp: float
    hottest_day: int


def reduced_depth(grid: DepthGrid, diffusivity: np.ndarray, period_days: float) -> np.ndarray:
    """Sum of dz / D from the surface to each layer midpoint"""
    omega = 2.0 * np.pi / (period_days * SECONDS_PER_DAY)
    damping_m = np.sqrt(2.0 * diffusivity / omega)
    per_layer = grid.thickness * CM_TO_M / damping_m
    above = np.concatenate([[0.0], np.cumsum(per_layer)[:-1]])
    return above + 0.5 * per_layer


@register_adapter
class HarmonicAdapter(ModelAdapter):
    """Damped annual wave with a lagged weather anomaly"""

    model_id = "harmonic"
    native_grid_kind = GridKind.SCENARIO
    required_site = ("latitude", "annual_mean_temp", "annual_amplitude")

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> HarmonicState:
        grid = soil.grid
        diffusivity = thermal_diffusivity(
            soil.property_array("bulk_density_g_cm3"),
            self.soil_water(soil, scenario),
            self.constants.clay_fraction,
        )
        return HarmonicState(
            day=0,
            anomaly=0.0,
            grid=grid,
            annual_damping=frozen_array(reduced_depth(grid, diffusivity, DAYS_PER_YEAR)),
            anomaly_damping=frozen_array(
                reduced_depth(grid, diffusivity, self.constants.harmonic_anomaly_period_days)),
            tav=site.annual_mean_temp,
            tamp=site.annual_amplitude,
            hottest_day=self.hottest_day(site),
        )

    def _step(self, state: HarmonicState, forcing: WeatherRecord) -> Tuple[HarmonicState, DailyOutputs]:
        phase = 2.0 * np.pi * (forcing.date.timetuple().tm_yday - state.hottest_day) / DAYS_PER_YEAR
        seasonal = state.tav + state.tamp / 2.0 * np.cos(phase)

        lag = self.constants.harmonic_anomaly_lag
        anomaly = lag * state.anomaly + (1.0 - lag) * (forcing.mean_temperature - seasonal)

        zd = state.annual_damping
        layers = state.tav + state.tamp / 2.0 * np.exp(-zd) * np.cos(phase - zd) \
            + anomaly * np.exp(-state.anomaly_damping)

        new_state = replace(state, day=state.day + 1, anomaly=float(anomaly))
        return new_state, DailyOutputs(
            date=forcing.date, surface_mean=float(seasonal + anomaly), grid=state.grid, mean=frozen_array(layers),
        )
