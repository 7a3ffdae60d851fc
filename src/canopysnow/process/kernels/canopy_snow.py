"""Implicit mass balance of snow stored on the vegetation canopy.

The interception capacity and both outflow fluxes depend on the end-of-step
storage, so the balance

    dS/dt = snowfall - throughfall(S) - unloading(S)

is solved with implicit Euler, linearizing the fluxes about the current trial
storage and iterating until the realized mass residual is within tolerance.
"""

from __future__ import annotations

import numpy as np
from numba import njit, prange
from numpy.typing import NDArray

from canopysnow.constants import TINY
from canopysnow.process.kernels.interception import (
    branch_capacity,
    max_capacity,
    throughfall,
    unloading,
)
from canopysnow.process.kernels.status import (
    STATUS_CONVERGENCE_FAILURE,
    STATUS_OK,
)

__all__ = ["canopy_snow_step", "canopy_snow_units"]


@njit(cache=True, error_model="numpy")
def canopy_snow_step(
    dt: float,
    compute_veg_flux: bool,
    scheme: int,
    canopy_ice: float,
    exposed_vai: float,
    air_temperature: float,
    snowfall: float,
    new_snow_density: float,
    ref_cap: float,
    throughfall_scale: float,
    unloading_coeff: float,
    t_freeze: float,
    tolerance: float,
    max_iterations: int,
) -> tuple[int, float, float, float, float, int, float]:
    """
    Update canopy ice storage for one unit over one time step.

    Physical constraints:
        - S_new = S_old + dt * (snowfall - throughfall - unloading)
          within tolerance at convergence
        - S_new = S_old when the canopy is inactive or when there is
          neither snowfall nor stored ice

    Parameters
    ----------
    dt : float
        Time step (s)
    compute_veg_flux : bool
        False when the canopy is buried or otherwise inactive
    scheme : int
        Interception scheme tag (DENSITY_SCALED or TEMPERATURE_SCALED)
    canopy_ice : float
        Canopy ice storage at the start of the step (kg m-2)
    exposed_vai : float
        Exposed vegetation area index (m2 m-2)
    air_temperature : float
        Air temperature (K)
    snowfall : float
        Snowfall rate (kg m-2 s-1)
    new_snow_density : float
        Density of new snow (kg m-3)
    ref_cap : float
        Reference interception capacity per unit leaf area (kg m-2)
    throughfall_scale : float
        Throughfall scaling factor (-). Accepted but not used by the
        throughfall formulation.
    unloading_coeff : float
        Unloading time constant (s-1)
    t_freeze : float
        Freezing point (K)
    tolerance : float
        Convergence tolerance on the mass residual (kg m-2)
    max_iterations : int
        Iteration budget

    Returns
    -------
    status : int
        STATUS_OK or the failure code
    canopy_ice : float
        Updated canopy ice storage (kg m-2); the input value on failure
    canopy_ice_max : float
        Maximum interception capacity (kg m-2)
    throughfall : float
        Snow throughfall (kg m-2 s-1)
    unloading : float
        Snow unloading from the canopy (kg m-2 s-1)
    iterations : int
        Number of iterations used, 0 on the fast path
    residual : float
        Mass residual of the last evaluation (kg m-2)
    """
    if not compute_veg_flux or (snowfall < TINY and canopy_ice < TINY):
        ice_max, _, status = branch_capacity(scheme, exposed_vai, ref_cap)
        return status, canopy_ice, ice_max, snowfall, 0.0, 0, 0.0

    snowfalling = snowfall >= TINY
    ice_iter = canopy_ice
    ice_max = 0.0
    tf_flux = 0.0
    unl_flux = 0.0
    residual = np.inf

    for iteration in range(1, max_iterations + 1):
        ice_max, _, status = max_capacity(
            scheme, exposed_vai, snowfalling, new_snow_density,
            air_temperature, ref_cap, t_freeze,
        )
        if status != STATUS_OK:
            return status, canopy_ice, ice_max, tf_flux, unl_flux, iteration, residual

        if snowfalling:
            tf_flux, tf_deriv = throughfall(snowfall, ice_iter, ice_max)
        else:
            # effectively zero
            tf_flux = snowfall
            tf_deriv = 0.0

        unl_flux, unl_deriv = unloading(unloading_coeff, ice_iter)

        flux = snowfall - tf_flux - unl_flux
        delta = (flux * dt - (ice_iter - canopy_ice)) / (
            1.0 + (tf_deriv + unl_deriv) * dt
        )

        residual = ice_iter - (canopy_ice + flux * dt)
        if abs(residual) < tolerance:
            return STATUS_OK, ice_iter, ice_max, tf_flux, unl_flux, iteration, residual

        ice_iter = ice_iter + delta

    return (
        STATUS_CONVERGENCE_FAILURE, canopy_ice, ice_max,
        tf_flux, unl_flux, max_iterations, residual,
    )


@njit(cache=True, parallel=True, error_model="numpy")
def canopy_snow_units(
    dt: float,
    compute_veg_flux: NDArray[np.bool_],
    scheme: int,
    canopy_ice: NDArray[np.float64],
    exposed_vai: NDArray[np.float64],
    air_temperature: NDArray[np.float64],
    snowfall: NDArray[np.float64],
    new_snow_density: NDArray[np.float64],
    ref_cap: NDArray[np.float64],
    throughfall_scale: NDArray[np.float64],
    unloading_coeff: NDArray[np.float64],
    t_freeze: float,
    tolerance: float,
    max_iterations: int,
) -> tuple[
    NDArray[np.int64],
    NDArray[np.float64],
    NDArray[np.float64],
    NDArray[np.float64],
    NDArray[np.float64],
    NDArray[np.int64],
    NDArray[np.float64],
]:
    """
    Apply ``canopy_snow_step`` to independent spatial units.

    Parameters
    ----------
    dt : float
        Time step (s)
    compute_veg_flux : (n_units,)
        Canopy activity flag per unit
    scheme : int
        Interception scheme tag shared by all units
    canopy_ice : (n_units,)
        Canopy ice storage at the start of the step (kg m-2)
    exposed_vai, air_temperature, snowfall, new_snow_density : (n_units,)
        Forcing per unit, units as in ``canopy_snow_step``
    ref_cap, throughfall_scale, unloading_coeff : (n_units,)
        Parameters per unit
    t_freeze, tolerance, max_iterations
        As in ``canopy_snow_step``

    Returns
    -------
    status, canopy_ice, canopy_ice_max, throughfall, unloading, iterations, residual : (n_units,)
        Per-unit outputs of ``canopy_snow_step``. The input array is not
        modified.
    """
    n = canopy_ice.shape[0]
    status = np.empty(n, dtype=np.int64)
    ice_new = np.empty(n, dtype=np.float64)
    ice_max = np.empty(n, dtype=np.float64)
    tf_flux = np.empty(n, dtype=np.float64)
    unl_flux = np.empty(n, dtype=np.float64)
    iterations = np.empty(n, dtype=np.int64)
    residual = np.empty(n, dtype=np.float64)

    for i in prange(n):
        code, ice, cap, tf, unl, n_iter, res = canopy_snow_step(
            dt, compute_veg_flux[i], scheme, canopy_ice[i], exposed_vai[i],
            air_temperature[i], snowfall[i], new_snow_density[i], ref_cap[i],
            throughfall_scale[i], unloading_coeff[i], t_freeze, tolerance,
            max_iterations,
        )
        status[i] = code
        ice_new[i] = ice
        ice_max[i] = cap
        tf_flux[i] = tf
        unl_flux[i] = unl
        iterations[i] = n_iter
        residual[i] = res

    return status, ice_new, ice_max, tf_flux, unl_flux, iterations, residual
