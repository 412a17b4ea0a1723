"""
Parton surface temperature with SWAT soil layers.

Surface extremes depend on above-ground biomass and radiation; the daily
mean weights them by day length. Layers use the SWAT lag update.

References:
- Parton (1984) Predicting soil temperatures in a shortgrass steppe
"""
from dataclasses import replace
from typing import Tuple

import numpy as np

from soiltemp.core.types import GridKind, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord
from soiltemp.physics.adapters.base import ModelAdapter, DailyOutputs, frozen_array, register_adapter
from soiltemp.physics.adapters.swat import SwatState, initial_swat_state, relax_layers


def parton_surface(forcing: WeatherRecord, biomass_kg_ha: float) -> Tuple[float, float, float]:
    """(min, max, mean) surface temperature for one day"""
    biomass_t_ha = biomass_kg_ha / 1000.0
    biomass_g_m2 = biomass_kg_ha / 10.0

    t_max = forcing.t_max + (
        24.0 * (1.0 - np.exp(-0.038 * forcing.radiation)) + 0.35 * forcing.t_max
    ) * (np.exp(-0.048 * biomass_t_ha) - 0.13)
    t_min = min(forcing.t_min + 0.006 * biomass_g_m2 - 1.82, t_max)

    day_fraction = forcing.day_length / 24.0
    t_mean = day_fraction * t_max + (1.0 - day_fraction) * t_min
    return float(t_min), float(t_max), float(t_mean)


@register_adapter
class PartonSwatAdapter(ModelAdapter):
    """Parton surface extremes over SWAT layers"""

    model_id = "parton_swat"
    native_grid_kind = GridKind.SCENARIO
    required_forcing = ("radiation", "day_length")
    required_site = ("annual_mean_temp",)

    def _initialize(
        self,
        site: SiteParameters,
        soil: SoilProfile,
        first_day: WeatherRecord,
        scenario: ScenarioParameters,
    ) -> SwatState:
        return initial_swat_state(site, soil, self.soil_water(soil, scenario), first_day, scenario)

    def _step(self, state: SwatState, forcing: WeatherRecord) -> Tuple[SwatState, DailyOutputs]:
        surface_min, surface_max, surface = parton_surface(forcing, state.biomass_kg_ha)

        layers = relax_layers(state, surface, self.constants.swat_lag_coefficient)
        new_state = replace(state, day=state.day + 1, layer_temperature=frozen_array(layers))
        return new_state, DailyOutputs(
            date=forcing.date,
            surface_mean=surface,
            surface_min=surface_min,
            surface_max=surface_max,
            grid=state.grid,
            mean=new_state.layer_temperature,
        )
