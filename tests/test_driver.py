"""
Tests for the stepping driver: lifecycle, ordering, failure reporting.
"""
from dataclasses import replace
from datetime import date

import pytest

from soiltemp.core.exceptions import GeneralStepFailure, MissingDataError, MissingParameterError
from soiltemp.core.types import DriverStatus, GridKind, NOT_AVAILABLE
from soiltemp.data.contracts import SiteParameters
from soiltemp.physics.adapters import ADAPTERS, DailyOutputs, ModelAdapter, ModelState
from soiltemp.physics.adapters.base import frozen_array
from soiltemp.physics.remap import DepthGrid
from soiltemp.pipeline.driver import SteppingDriver, validate_forcing_sequence


class FlakyAdapter(ModelAdapter):
    """Fails in a configurable way on a given day"""

    model_id = "flaky"
    native_grid_kind = GridKind.SCENARIO
    required_soil = ()

    def __init__(self, fail_on_day=None, failure="nan", config=None):
        super().__init__(config)
        self.grid = DepthGrid.from_boundaries([0, 10, 60])
        self.fail_on_day = fail_on_day
        self.failure = failure

    def _initialize(self, site, soil, first_day, scenario):
        return ModelState(day=0)

    def _step(self, state, forcing):
        n = state.day + 1
        value = float(n)
        if n == self.fail_on_day:
            if self.failure == "nan":
                value = float("nan")
            elif self.failure == "zero_division":
                value = 1.0 / 0
            elif self.failure == "key":
                raise KeyError("missing coefficient")
        return replace(state, day=n), DailyOutputs(
            date=forcing.date,
            surface_mean=value,
            grid=self.grid,
            mean=frozen_array([value, value]),
        )


def make_driver(adapter, descriptor, scenario_params, site, soil, weather):
    return SteppingDriver(adapter, descriptor, scenario_params, site, soil, weather)


class TestForcingSequence:

    def test_empty_sequence(self):
        with pytest.raises(MissingDataError):
            validate_forcing_sequence([])

    def test_gap(self, weather_factory):
        weather = weather_factory(date(2021, 1, 1), 10)
        del weather[4]

        with pytest.raises(MissingDataError) as exc_info:
            validate_forcing_sequence(weather)

        assert exc_info.value.context.date == "2021-01-06"

    def test_reordered(self, weather_factory):
        weather = weather_factory(date(2021, 1, 1), 5)
        weather[1], weather[2] = weather[2], weather[1]

        with pytest.raises(MissingDataError):
            validate_forcing_sequence(weather)

    def test_duplicate_day(self, weather_factory):
        weather = weather_factory(date(2021, 1, 1), 3)
        weather.insert(1, weather[0])

        with pytest.raises(MissingDataError):
            validate_forcing_sequence(weather)


class TestSteppingDriver:

    def test_completes_scenario(self, descriptor, scenario_params, site, soil_profile, weather_year):
        driver = make_driver(ADAPTERS.create("swat"), descriptor, scenario_params, site, soil_profile, weather_year)
        assert driver.status is DriverStatus.UNINITIALIZED

        result = driver.run()

        assert driver.status is DriverStatus.COMPLETED
        assert result.succeeded
        assert result.failure is None
        # surface plus three soil layers per day
        assert len(result.records) == len(weather_year) * 4
        assert result.raise_for_failure() is result

    def test_records_in_date_order(self, descriptor, scenario_params, site, soil_profile, weather_year):
        result = make_driver(
            ADAPTERS.create("epic"), descriptor, scenario_params, site, soil_profile, weather_year[:20]
        ).run()

        dates = [r.date for r in result.records]
        assert dates == sorted(dates)
        assert dates[0] == weather_year[0].date
        assert dates[-1] == weather_year[19].date

    @pytest.mark.parametrize("model_id", ["stemp", "campbell", "harmonic"])
    def test_sequential_determinism(self, model_id, descriptor, scenario_params, site, soil_profile, weather_year):
        first = make_driver(
            ADAPTERS.create(model_id), descriptor, scenario_params, site, soil_profile, weather_year
        ).run()
        second = make_driver(
            ADAPTERS.create(model_id), descriptor, scenario_params, site, soil_profile, weather_year
        ).run()

        assert first.records == second.records
        assert repr(first.records).encode() == repr(second.records).encode()

    def test_driver_is_single_use(self, descriptor, scenario_params, site, soil_profile, weather_year):
        driver = make_driver(
            ADAPTERS.create("swat"), descriptor, scenario_params, site, soil_profile, weather_year[:3]
        )
        driver.run()

        with pytest.raises(RuntimeError):
            driver.run()

    def test_sentinel_for_models_without_extremes(self, descriptor, scenario_params, site, soil_profile, weather_year):
        result = make_driver(
            ADAPTERS.create("stemp"), descriptor, scenario_params, site, soil_profile, weather_year[:3]
        ).run()

        for record in result.records:
            assert record.min_temp is NOT_AVAILABLE
            assert record.max_temp is NOT_AVAILABLE


class TestFailures:
    """All-or-nothing scenarios with identity attached"""

    def test_non_finite_output(self, descriptor, scenario_params, site, soil_profile, weather_year):
        adapter = FlakyAdapter(fail_on_day=3, failure="nan")
        driver = make_driver(adapter, descriptor, scenario_params, site, soil_profile, weather_year[:10])

        result = driver.run()

        assert driver.status is DriverStatus.FAILED
        assert not result.succeeded
        assert result.records == []
        failure = result.failure
        assert failure.kind == "GeneralStepFailure"
        assert failure.scenario == descriptor.key
        assert failure.model_id == "flaky"
        assert failure.date == "2021-01-03"
        assert driver.days_completed == 2

    @pytest.mark.parametrize("failure", ["zero_division", "key"])
    def test_foreign_exceptions_are_wrapped(self, failure, descriptor, scenario_params, site, soil_profile,
                                            weather_year):
        adapter = FlakyAdapter(fail_on_day=2, failure=failure)

        result = make_driver(adapter, descriptor, scenario_params, site, soil_profile, weather_year[:5]).run()

        assert result.failure.kind == "GeneralStepFailure"
        assert result.failure.date == "2021-01-02"
        with pytest.raises(GeneralStepFailure) as exc_info:
            result.raise_for_failure()
        assert descriptor.key in str(exc_info.value)
        assert exc_info.value.__cause__ is not None

    def test_missing_parameter_fails_before_running(self, descriptor, scenario_params, soil_profile, weather_year):
        site = SiteParameters(site_id="site_a", latitude=42.0)
        driver = make_driver(ADAPTERS.create("stemp"), descriptor, scenario_params, site, soil_profile, weather_year)

        result = driver.run()

        assert driver.status is DriverStatus.FAILED
        assert result.failure.kind == "MissingParameterError"
        with pytest.raises(MissingParameterError):
            result.raise_for_failure()

    def test_missing_forcing_discards_partial_output(self, descriptor, scenario_params, site, soil_profile,
                                                     weather_factory):
        weather = weather_factory(date(2021, 1, 1), 10)
        weather[6] = weather[6].model_copy(update={"radiation": None})

        result = make_driver(ADAPTERS.create("stemp"), descriptor, scenario_params, site, soil_profile, weather).run()

        assert result.records == []
        assert result.failure.kind == "MissingDataError"
        assert result.failure.date == "2021-01-07"
        assert result.failure.scenario == descriptor.key

    def test_gap_in_weather(self, descriptor, scenario_params, site, soil_profile, weather_factory):
        weather = weather_factory(date(2021, 1, 1), 10)
        del weather[3]

        driver = make_driver(ADAPTERS.create("swat"), descriptor, scenario_params, site, soil_profile, weather)
        result = driver.run()

        assert result.failure.kind == "MissingDataError"
        assert driver.days_completed == 0
