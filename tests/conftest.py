"""
Shared fixtures: a small layered soil, a mid-latitude site and one year of
synthetic daily weather carrying every forcing field any model needs.
"""
from datetime import date, timedelta

import numpy as np
import pytest

from soiltemp.core.config import set_config
from soiltemp.core.types import ScenarioDescriptor, ScenarioParameters
from soiltemp.data.contracts import SiteParameters, SoilProfile, WeatherRecord


def make_weather(start: date, days: int, **overrides):
    """Seasonal synthetic weather; keyword overrides replace a field on every day"""
    records = []
    for i in range(days):
        day = start + timedelta(days=i)
        doy = day.timetuple().tm_yday
        season = np.cos(2.0 * np.pi * (doy - 200) / 365.25)
        mean = 10.0 + 12.0 * season + 2.0 * np.sin(i / 3.0)
        values = dict(
            date=day,
            t_min=float(mean - 5.0),
            t_max=float(mean + 5.0),
            radiation=float(16.0 + 10.0 * season),
            rain=5.0 if i % 4 == 0 else 0.0,
            snow_water_equivalent=float(max(0.0, -mean) * 3.0),
            day_length=float(12.0 + 3.0 * season),
        )
        values.update(overrides)
        records.append(WeatherRecord(**values))
    return records


@pytest.fixture(autouse=True)
def reset_config():
    """Each test starts from default configuration"""
    set_config(None)
    yield
    set_config(None)


@pytest.fixture
def soil_profile():
    return SoilProfile.from_arrays(
        "loam",
        [0.0, 10.0, 30.0, 60.0],
        bulk_density_g_cm3=[1.30, 1.40, 1.50],
        field_capacity=[0.32, 0.30, 0.28],
        wilting_point=[0.12, 0.13, 0.14],
        water_content=[0.22, 0.21, 0.20],
    )


@pytest.fixture
def site():
    return SiteParameters(
        site_id="site_a",
        latitude=42.0,
        annual_mean_temp=10.0,
        annual_amplitude=24.0,
        albedo=0.2,
    )


@pytest.fixture
def weather_year():
    return make_weather(date(2021, 1, 1), 365)


@pytest.fixture
def descriptor():
    return ScenarioDescriptor("site_a", "loam", 2, 50)


@pytest.fixture
def scenario_params():
    return ScenarioParameters(biomass_kg_ha=1800.0, paw_fraction=0.5)


@pytest.fixture
def weather_factory():
    return make_weather
