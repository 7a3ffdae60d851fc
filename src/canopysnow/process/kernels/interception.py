"""Canopy snow interception capacity.

Pure physics kernels for the maximum ice storage of a vegetation canopy and
the throughfall and unloading fluxes that depend on the current storage.
"""

from __future__ import annotations

from numba import njit

from canopysnow.constants import (
    BRANCH_SCALE_TEMPERATURE,
    DENSITY_SCALE_COEFF,
    DENSITY_SCALE_OFFSET,
)
from canopysnow.process.kernels.status import (
    DENSITY_SCALED,
    STATUS_INVALID_INPUT,
    STATUS_OK,
    STATUS_UNSUPPORTED_OPTION,
    TEMPERATURE_SCALED,
)

__all__ = [
    "branch_capacity",
    "density_scale_factor",
    "temperature_scale_factor",
    "max_capacity",
    "throughfall",
    "unloading",
]


@njit(cache=True)
def branch_capacity(
    scheme: int,
    exposed_vai: float,
    ref_cap: float,
) -> tuple[float, float, int]:
    """
    Bare-branch interception capacity, used when no snow is falling.

    Parameters
    ----------
    scheme : int
        Interception scheme tag (DENSITY_SCALED or TEMPERATURE_SCALED)
    exposed_vai : float
        Exposed vegetation area index (m2 m-2)
    ref_cap : float
        Reference interception capacity per unit leaf area (kg m-2)

    Returns
    -------
    capacity : float
        Maximum canopy ice storage (kg m-2)
    scale : float
        Multiplier applied to the reference capacity
    status : int
        STATUS_OK or STATUS_UNSUPPORTED_OPTION

    Notes
    -----
    The temperature-scaled scheme holds four times the reference capacity on
    bare branches, the ceiling of its temperature scale factor.
    """
    if scheme == DENSITY_SCALED:
        scale = 1.0
    elif scheme == TEMPERATURE_SCALED:
        scale = BRANCH_SCALE_TEMPERATURE
    else:
        return 0.0, 0.0, STATUS_UNSUPPORTED_OPTION
    return exposed_vai * ref_cap * scale, scale, STATUS_OK


@njit(cache=True)
def density_scale_factor(new_snow_density: float) -> float:
    """
    Leaf capacity multiplier as an inverse function of new snow density.

    scale = 0.27 + 46 / density

    Light, fluffy snow is retained far better than dense snow.

    References
    ----------
    Hedstrom, N.R. and Pomeroy, J.W., 1998. Measurements and modelling of
    snow interception in the boreal forest. Hydrol. Process. 12, 1611-1625.
    """
    return DENSITY_SCALE_OFFSET + DENSITY_SCALE_COEFF / new_snow_density


@njit(cache=True)
def temperature_scale_factor(air_temperature_c: float) -> float:
    """
    Leaf capacity multiplier as an increasing function of air temperature.

    Physical constraints:
        - 1.0 <= scale <= 4.0
        - scale = 4.0 above -1 degC (sticky, near-melting snow)
        - scale = 1.0 at and below -3 degC
        - linear between, continuous at both breakpoints

    Parameters
    ----------
    air_temperature_c : float
        Air temperature (degC)

    Returns
    -------
    float
        Scale factor (-)
    """
    if air_temperature_c > -1.0:
        return 4.0
    elif air_temperature_c > -3.0:
        return 1.5 * air_temperature_c + 5.5
    return 1.0


@njit(cache=True)
def max_capacity(
    scheme: int,
    exposed_vai: float,
    snowfalling: bool,
    new_snow_density: float,
    air_temperature: float,
    ref_cap: float,
    t_freeze: float,
) -> tuple[float, float, int]:
    """
    Maximum interception storage capacity for ice on the canopy.

    Parameters
    ----------
    scheme : int
        Interception scheme tag (DENSITY_SCALED or TEMPERATURE_SCALED)
    exposed_vai : float
        Exposed vegetation area index (m2 m-2)
    snowfalling : bool
        Whether snow is falling during this time step
    new_snow_density : float
        Density of new snow (kg m-3), must be > 0 for the density-scaled
        scheme when snow is falling
    air_temperature : float
        Air temperature (K)
    ref_cap : float
        Reference interception capacity per unit leaf area (kg m-2)
    t_freeze : float
        Freezing point (K)

    Returns
    -------
    capacity : float
        Maximum canopy ice storage (kg m-2)
    scale : float
        Multiplier applied to the reference capacity
    status : int
        STATUS_OK, STATUS_INVALID_INPUT or STATUS_UNSUPPORTED_OPTION
    """
    if not snowfalling:
        return branch_capacity(scheme, exposed_vai, ref_cap)

    if scheme == DENSITY_SCALED:
        if new_snow_density <= 0.0:
            return 0.0, 0.0, STATUS_INVALID_INPUT
        scale = density_scale_factor(new_snow_density)
    elif scheme == TEMPERATURE_SCALED:
        scale = temperature_scale_factor(air_temperature - t_freeze)
    else:
        return 0.0, 0.0, STATUS_UNSUPPORTED_OPTION

    return ref_cap * scale * exposed_vai, scale, STATUS_OK


@njit(cache=True, error_model="numpy")
def throughfall(
    snowfall: float,
    canopy_ice: float,
    canopy_ice_max: float,
) -> tuple[float, float]:
    """
    Snow throughfall and its derivative with respect to canopy storage.

    throughfall = snowfall * canopy_ice / canopy_ice_max

    Parameters
    ----------
    snowfall : float
        Snowfall rate (kg m-2 s-1)
    canopy_ice : float
        Trial canopy ice storage (kg m-2)
    canopy_ice_max : float
        Maximum canopy ice storage (kg m-2)

    Returns
    -------
    flux : float
        Throughfall (kg m-2 s-1)
    deriv : float
        d(flux)/d(canopy_ice) (s-1)
    """
    return snowfall * (canopy_ice / canopy_ice_max), snowfall / canopy_ice_max


@njit(cache=True)
def unloading(
    unloading_coeff: float,
    canopy_ice: float,
) -> tuple[float, float]:
    """Unloading flux (kg m-2 s-1) and its derivative w.r.t. storage (s-1)."""
    return unloading_coeff * canopy_ice, unloading_coeff
