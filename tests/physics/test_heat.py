"""
Tests for the shared heat transfer helpers.
"""
import numpy as np
import pytest

from soiltemp.physics.heat import (
    cover_factor,
    damping_depth_mm,
    depth_factor,
    diurnal_surface_temperature,
    implicit_conduction_step,
    max_damping_depth_mm,
    run_conduction_day,
    campbell_conductivity,
    volumetric_heat_capacity,
)


class TestDampingDepth:

    def test_bounded_by_maximum(self):
        dd_max = max_damping_depth_mm(1.4)
        dd = damping_depth_mm(1.4, soil_water_mm=120.0, profile_depth_mm=600.0)

        assert 500.0 <= dd <= dd_max

    def test_depth_factor_increases_with_depth(self):
        weights = depth_factor(np.array([10.0, 100.0, 1000.0]), 1500.0)

        assert np.all(np.diff(weights) > 0)
        assert np.all((weights > 0) & (weights < 1))


class TestCoverFactor:

    def test_bare_soil_has_no_cover(self):
        assert cover_factor(0.0, 0.0) == 0.0

    def test_dense_cover_approaches_one(self):
        assert cover_factor(10500.0, 0.0) > cover_factor(1800.0, 0.0) > 0.0
        assert cover_factor(0.0, 100.0) > 0.9


class TestConduction:

    @pytest.fixture
    def column(self):
        n = 10
        thickness = np.full(n, 0.05)
        k = campbell_conductivity(np.full(n, 1.4), np.full(n, 0.25), 0.2)
        c = volumetric_heat_capacity(np.full(n, 1.4), np.full(n, 0.25))
        return thickness, k, c

    def test_equilibrium_is_preserved(self, column):
        thickness, k, c = column
        start = np.full(thickness.size, 8.0)

        result = implicit_conduction_step(start, thickness, k, c, 3600.0, 8.0, 8.0)

        np.testing.assert_allclose(result, 8.0)

    def test_warm_surface_heats_the_top_first(self, column):
        thickness, k, c = column
        start = np.zeros(thickness.size)

        result = implicit_conduction_step(start, thickness, k, c, 3600.0, 20.0, 0.0)

        assert result[0] > result[1] > result[-1] >= 0.0
        assert np.all(result <= 20.0)

    def test_diurnal_peak_at_two_pm(self):
        assert diurnal_surface_temperature(5.0, 25.0, 14.0 / 24.0) == pytest.approx(25.0)
        assert diurnal_surface_temperature(5.0, 25.0, 2.0 / 24.0) == pytest.approx(5.0)

    def test_day_statistics_bracket_mean(self, column):
        thickness, k, c = column

        final, mean, low, high = run_conduction_day(
            np.full(thickness.size, 10.0), thickness, k, c, 2.0, 18.0, 10.0, 24
        )

        assert np.all(low <= mean + 1e-12)
        assert np.all(mean <= high + 1e-12)
        assert np.all((final >= low - 1e-12) & (final <= high + 1e-12))
        # Diurnal swing is damped with depth
        swing = high - low
        assert swing[0] > swing[-1]
