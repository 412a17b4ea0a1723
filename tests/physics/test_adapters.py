"""
Tests for the model adapters and the adapter registry.
Every registered model must run a full year on the shared fixtures.
"""
from dataclasses import FrozenInstanceError
from datetime import date

import numpy as np
import pytest

from soiltemp.core.config import HarnessConfig, RuntimeConfig
from soiltemp.core.exceptions import MissingDataError, MissingParameterError, UnimplementedModelError
from soiltemp.core.types import ScenarioParameters
from soiltemp.data.contracts import SiteParameters
from soiltemp.physics.adapters import ADAPTERS, AdapterRegistry, StempAdapter
from soiltemp.physics.remap import DepthGrid

ALL_MODELS = ["stemp", "epic", "swat", "parton_swat", "campbell", "five_layer", "deep_lag", "harmonic"]


def run_year(adapter, site, soil, weather, params):
    state = adapter.initialize(site, soil, weather[0], params)
    outputs = []
    for forcing in weather:
        state, out = adapter.step(state, forcing)
        outputs.append(out)
    return state, outputs


class TestRegistry:

    def test_all_models_registered(self):
        assert sorted(ALL_MODELS) == ADAPTERS.available()
        for model_id in ALL_MODELS:
            assert model_id in ADAPTERS

    def test_unknown_model(self):
        with pytest.raises(UnimplementedModelError) as exc_info:
            ADAPTERS.create("ecosys")

        assert exc_info.value.context.model_id == "ecosys"

    def test_duplicate_id_rejected(self):
        registry = AdapterRegistry()
        registry.register(StempAdapter)

        class OtherStemp(StempAdapter):
            model_id = "stemp"

        with pytest.raises(ValueError):
            registry.register(OtherStemp)


class TestAllAdapters:
    """Shared contract checks across every model"""

    @pytest.mark.parametrize("model_id", ALL_MODELS)
    def test_runs_a_year_with_finite_output(self, model_id, site, soil_profile, weather_year, scenario_params):
        adapter = ADAPTERS.create(model_id)

        state, outputs = run_year(adapter, site, soil_profile, weather_year, scenario_params)

        assert state.day == len(weather_year)
        assert len(outputs) == len(weather_year)
        for out in outputs:
            assert np.all(np.isfinite(out.values()))
            assert out.mean.shape == (out.grid.n_layers,)

    @pytest.mark.parametrize("model_id", ALL_MODELS)
    def test_step_is_pure(self, model_id, site, soil_profile, weather_year, scenario_params):
        adapter = ADAPTERS.create(model_id)
        state = adapter.initialize(site, soil_profile, weather_year[0], scenario_params)

        first_state, first = adapter.step(state, weather_year[0])
        second_state, second = adapter.step(state, weather_year[0])

        assert first.surface_mean == second.surface_mean
        np.testing.assert_array_equal(first.mean, second.mean)
        assert state.day == 0
        assert first_state is not state

    @pytest.mark.parametrize("model_id", ALL_MODELS)
    def test_state_is_immutable(self, model_id, site, soil_profile, weather_year, scenario_params):
        adapter = ADAPTERS.create(model_id)
        state = adapter.initialize(site, soil_profile, weather_year[0], scenario_params)

        with pytest.raises(FrozenInstanceError):
            state.day = 5
        _, out = adapter.step(state, weather_year[0])
        with pytest.raises(ValueError):
            out.mean[0] = 0.0

    @pytest.mark.parametrize("model_id", ALL_MODELS)
    def test_profile_water_content_without_paw(self, model_id, site, soil_profile, weather_year):
        adapter = ADAPTERS.create(model_id)

        _, outputs = run_year(adapter, site, soil_profile, weather_year[:30], ScenarioParameters())

        assert np.all(np.isfinite(outputs[-1].values()))


class TestRequirements:
    """Missing inputs are errors, never defaults"""

    def test_missing_site_parameter(self, soil_profile, weather_year, scenario_params):
        site = SiteParameters(site_id="bare", latitude=10.0, annual_mean_temp=20.0, annual_amplitude=5.0)

        with pytest.raises(MissingParameterError):
            ADAPTERS.create("stemp").initialize(site, soil_profile, weather_year[0], scenario_params)

    def test_missing_soil_property(self, site, weather_year, scenario_params):
        from soiltemp.data.contracts import SoilProfile
        soil = SoilProfile.from_arrays("no_bd", [0, 20, 50], water_content=[0.2, 0.2])

        with pytest.raises(MissingParameterError):
            ADAPTERS.create("campbell").initialize(site, soil, weather_year[0], scenario_params)

    def test_missing_forcing_on_first_day(self, site, soil_profile, weather_factory, scenario_params):
        weather = weather_factory(date(2021, 1, 1), 3, radiation=None)

        with pytest.raises(MissingDataError):
            ADAPTERS.create("swat").initialize(site, soil_profile, weather[0], scenario_params)

    def test_missing_forcing_mid_run(self, site, soil_profile, weather_factory, scenario_params):
        weather = weather_factory(date(2021, 1, 1), 3)
        adapter = ADAPTERS.create("epic")
        state = adapter.initialize(site, soil_profile, weather[0], scenario_params)
        gap = weather_factory(date(2021, 1, 2), 1, rain=None)[0]

        with pytest.raises(MissingDataError) as exc_info:
            adapter.step(state, gap)

        assert exc_info.value.context.date == "2021-01-02"

    def test_deep_lag_needs_no_soil_properties(self, site, weather_year, scenario_params):
        from soiltemp.data.contracts import SoilProfile
        soil = SoilProfile.from_arrays("empty", [0, 100])

        _, outputs = run_year(ADAPTERS.create("deep_lag"), site, soil, weather_year[:10], scenario_params)

        assert len(outputs) == 10


class TestGrids:
    """Native grids and reporting grids"""

    def test_campbell_reports_native_grid(self, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create("campbell"), site, soil_profile, weather_year[:5], scenario_params)

        assert outputs[0].grid == DepthGrid.uniform(5.0, 42)

    def test_five_layer_grid(self, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create("five_layer"), site, soil_profile, weather_year[:5], scenario_params)

        assert outputs[0].grid == DepthGrid.from_boundaries([0, 5, 15, 30, 60, 100])

    @pytest.mark.parametrize("model_id", ["campbell", "five_layer", "deep_lag"])
    def test_scenario_output_grid(self, model_id, site, soil_profile, weather_year, scenario_params):
        config = HarnessConfig(runtime=RuntimeConfig(output_grid="scenario"))

        _, outputs = run_year(ADAPTERS.create(model_id, config), site, soil_profile, weather_year[:5], scenario_params)

        assert outputs[0].grid == soil_profile.grid

    def test_configured_uniform_grid(self, site, soil_profile, weather_year, scenario_params):
        config = HarnessConfig.model_validate({"grid": {"fixed_layer_thickness_cm": 10.0, "fixed_layer_count": 12}})

        _, outputs = run_year(ADAPTERS.create("campbell", config), site, soil_profile, weather_year[:2], scenario_params)

        assert outputs[0].grid.n_layers == 12


class TestMinMax:
    """Capability-dependent extremes"""

    def test_campbell_layer_extremes_bracket_mean(self, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create("campbell"), site, soil_profile, weather_year[:60], scenario_params)

        for out in outputs:
            assert np.all(out.min <= out.mean + 1e-9)
            assert np.all(out.mean <= out.max + 1e-9)
            assert out.surface_min <= out.surface_mean <= out.surface_max

    @pytest.mark.parametrize("model_id", ["parton_swat", "deep_lag"])
    def test_surface_only_extremes(self, model_id, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create(model_id), site, soil_profile, weather_year[:10], scenario_params)

        for out in outputs:
            assert out.surface_min <= out.surface_max
            assert out.min is None and out.max is None

    def test_deep_lag_mean_is_midpoint(self, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create("deep_lag"), site, soil_profile, weather_year[:10], scenario_params)

        for out in outputs:
            assert out.surface_mean == pytest.approx(0.5 * (out.surface_min + out.surface_max))

    @pytest.mark.parametrize("model_id", ["stemp", "epic", "swat", "five_layer", "harmonic"])
    def test_no_extremes(self, model_id, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create(model_id), site, soil_profile, weather_year[:3], scenario_params)

        assert outputs[0].surface_min is None
        assert outputs[0].min is None


class TestPhysicalBehaviour:

    @pytest.mark.parametrize("model_id", ["stemp", "epic", "swat", "campbell", "harmonic"])
    def test_seasonal_swing_damped_with_depth(self, model_id, site, soil_profile, weather_year, scenario_params):
        _, outputs = run_year(ADAPTERS.create(model_id), site, soil_profile, weather_year, scenario_params)

        layers = np.array([out.mean for out in outputs])
        swing = layers.max(axis=0) - layers.min(axis=0)
        assert swing[0] >= swing[-1]

    def test_snow_insulates_five_layer_surface(self, site, soil_profile, weather_factory, scenario_params):
        adapter = ADAPTERS.create("five_layer")
        bare = weather_factory(date(2021, 1, 1), 20, t_min=-15.0, t_max=-5.0, snow_water_equivalent=0.0)
        snowy = weather_factory(date(2021, 1, 1), 20, t_min=-15.0, t_max=-5.0, snow_water_equivalent=200.0)

        _, bare_out = run_year(adapter, site, soil_profile, bare, scenario_params)
        _, snowy_out = run_year(adapter, site, soil_profile, snowy, scenario_params)

        assert snowy_out[-1].mean[0] > bare_out[-1].mean[0]
