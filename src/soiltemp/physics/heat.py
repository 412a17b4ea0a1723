"""
Soil heat transfer building blocks shared by the temperature models.

References:
- Campbell (1985) Soil Physics with BASIC, ch. 4
- Williams et al. (1984) EPIC soil temperature
- Neitsch et al. (2011) SWAT Theoretical Documentation, 1:1.3
"""
from typing import Tuple

import numpy as np
from scipy.linalg import solve_banded

from soiltemp.core.constants import (
    WATER_HEAT_CAPACITY, MINERAL_HEAT_CAPACITY, PARTICLE_DENSITY, EPSILON
)


# =============================================================================
# DAMPING DEPTH MODELS
# =============================================================================

def max_damping_depth_mm(bulk_density: float) -> float:
    """Maximum damping depth (mm) for a mean profile bulk density (g/cm³)"""
    fx = bulk_density / (bulk_density + 686.0 * np.exp(-5.63 * bulk_density))
    return 1000.0 + 2500.0 * fx


def damping_depth_mm(bulk_density: float, soil_water_mm: float, profile_depth_mm: float) -> float:
    """
    Damping depth (mm) scaled by how wet the profile is.

        dd = dd_max * exp(ln(500 / dd_max) * ((1 - scl) / (1 + scl))²)
        scl = SW / ((0.356 - 0.144 ρb) * z_tot)
    """
    dd_max = max_damping_depth_mm(bulk_density)
    capacity = (0.356 - 0.144 * bulk_density) * profile_depth_mm
    scl = max(soil_water_mm, 0.01) / max(capacity, EPSILON)
    ratio = (1.0 - scl) / (1.0 + scl)
    return float(dd_max * np.exp(np.log(500.0 / dd_max) * ratio ** 2))


def depth_factor(z_mm: np.ndarray, damping_depth: float) -> np.ndarray:
    """Weight of the annual mean versus the surface temperature at depth z"""
    zd = np.asarray(z_mm, dtype=float) / damping_depth
    return zd / (zd + np.exp(-0.8669 - 2.0775 * zd))


def cover_factor(biomass_kg_ha: float, snow_mm: float) -> float:
    """Shading of the soil surface by residue/canopy or snow (0 = bare)"""
    cv = biomass_kg_ha
    bcv_cover = cv / (cv + np.exp(7.563 - 1.297e-4 * cv)) if cv > 0 else 0.0
    bcv_snow = snow_mm / (snow_mm + np.exp(6.055 - 0.3002 * snow_mm)) if snow_mm > 0 else 0.0
    return float(max(bcv_cover, bcv_snow))


# =============================================================================
# THERMAL PROPERTIES
# =============================================================================

def volumetric_heat_capacity(bulk_density: np.ndarray, theta: np.ndarray) -> np.ndarray:
    """Volumetric heat capacity (J/m³/K) of mineral soil plus water"""
    return MINERAL_HEAT_CAPACITY * np.asarray(bulk_density) / PARTICLE_DENSITY \
        + WATER_HEAT_CAPACITY * np.asarray(theta)


def campbell_conductivity(bulk_density: np.ndarray, theta: np.ndarray, clay_fraction: float) -> np.ndarray:
    """
    Thermal conductivity (W/m/K), Campbell (1985) eq. 4.20.

        k = A + B θ - (A - D) exp(-(C θ)^4)
    """
    rho = np.asarray(bulk_density, dtype=float)
    theta = np.asarray(theta, dtype=float)
    a = 0.65 - 0.78 * rho + 0.6 * rho ** 2
    b = 1.06 * rho
    c = 1.0 + 2.6 / np.sqrt(clay_fraction)
    d = 0.03 + 0.1 * rho ** 2
    return a + b * theta - (a - d) * np.exp(-(c * theta) ** 4)


def thermal_diffusivity(bulk_density: np.ndarray, theta: np.ndarray, clay_fraction: float) -> np.ndarray:
    """Thermal diffusivity (m²/s)"""
    return campbell_conductivity(bulk_density, theta, clay_fraction) \
        / volumetric_heat_capacity(bulk_density, theta)


# =============================================================================
# IMPLICIT CONDUCTION
# =============================================================================

def diurnal_surface_temperature(t_min: float, t_max: float, fraction_of_day: float) -> float:
    """Sinusoidal daily cycle peaking at 14:00"""
    mean = 0.5 * (t_min + t_max)
    half_range = 0.5 * (t_max - t_min)
    return float(mean + half_range * np.sin(2.0 * np.pi * (fraction_of_day - 1.0 / 3.0)))


def implicit_conduction_step(
    temperature: np.ndarray,
    thickness_m: np.ndarray,
    conductivity: np.ndarray,
    heat_capacity: np.ndarray,
    dt_s: float,
    top_temperature: float,
    bottom_temperature: float,
) -> np.ndarray:
    """
    One backward-Euler step of 1-D heat conduction on a layered column.

    Finite-volume nodes sit at layer midpoints; both boundaries are fixed
    temperatures half a layer beyond the outermost nodes. The tridiagonal
    system is solved in banded form.

    Args:
        temperature: Layer temperatures at the start of the step (°C)
        thickness_m: Layer thickness (m)
        conductivity: Layer thermal conductivity (W/m/K)
        heat_capacity: Layer volumetric heat capacity (J/m³/K)
        dt_s: Timestep (s)
        top_temperature: Surface boundary temperature (°C)
        bottom_temperature: Temperature below the column (°C)

    Returns:
        Layer temperatures at the end of the step
    """
    half = 0.5 * thickness_m
    resistance = half / conductivity
    # Conductance between neighbouring nodes and to each boundary (W/m²/K)
    interface = 1.0 / (resistance[:-1] + resistance[1:])
    top = 1.0 / resistance[0]
    bottom = 1.0 / resistance[-1]

    upper = np.concatenate([[top], interface])
    lower = np.concatenate([interface, [bottom]])
    storage = heat_capacity * thickness_m / dt_s

    banded = np.zeros((3, temperature.size))
    banded[0, 1:] = -interface
    banded[1, :] = storage + upper + lower
    banded[2, :-1] = -interface

    rhs = storage * temperature
    rhs[0] += top * top_temperature
    rhs[-1] += bottom * bottom_temperature

    return solve_banded((1, 1), banded, rhs)


def run_conduction_day(
    temperature: np.ndarray,
    thickness_m: np.ndarray,
    conductivity: np.ndarray,
    heat_capacity: np.ndarray,
    t_min: float,
    t_max: float,
    bottom_temperature: float,
    substeps: int,
) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
    """
    Integrate one day in equal substeps under a diurnal surface boundary.

    Returns:
        (final temperature, daily mean, daily min, daily max) per layer
    """
    dt_s = 86400.0 / substeps
    current = np.array(temperature, dtype=float)
    total = np.zeros_like(current)
    low = np.full_like(current, np.inf)
    high = np.full_like(current, -np.inf)

    for k in range(substeps):
        surface = diurnal_surface_temperature(t_min, t_max, (k + 1) / substeps)
        current = implicit_conduction_step(
            current, thickness_m, conductivity, heat_capacity, dt_s, surface, bottom_temperature
        )
        total += current
        np.minimum(low, current, out=low)
        np.maximum(high, current, out=high)

    return current, total / substeps, low, high
