"""Entry point for the canopy snow mass balance of a single unit.

Wraps the JIT kernel with input coercion, typed errors and logging. Called
once per spatial unit per time step by the host model's driver.
"""

from __future__ import annotations

from canopysnow.constants import TFREEZE
from canopysnow.logging import get_logger
from canopysnow.process.errors import (
    CanopySnowError,
    ConvergenceFailureError,
    InvalidInputError,
    UnsupportedOptionError,
    raise_for_status,
)
from canopysnow.process.kernels.canopy_snow import canopy_snow_step
from canopysnow.process.state import (
    CanopySnowControl,
    CanopySnowForcing,
    CanopySnowParameters,
    CanopySnowResult,
    SolverSettings,
)

__all__ = ["canopy_snow"]

log = get_logger("solver")

_FAILURE_EVENTS = {
    UnsupportedOptionError: "unsupported_option",
    InvalidInputError: "invalid_input",
    ConvergenceFailureError: "convergence_failure",
}


def canopy_snow(
    dt: float,
    canopy_ice: float,
    forcing: CanopySnowForcing,
    params: CanopySnowParameters,
    control: CanopySnowControl,
    settings: SolverSettings | None = None,
    t_freeze: float = TFREEZE,
) -> CanopySnowResult:
    """Compute the change in snow stored on the vegetation canopy.

    Snowfall is split into interception and throughfall, intercepted snow
    unloads at a rate proportional to storage, and the end-of-step storage is
    solved so that the storage change equals the time-integrated net flux.

    Parameters
    ----------
    dt : float
        Time step (s), must be positive
    canopy_ice : float
        Canopy ice storage at the start of the step (kg m-2)
    forcing : CanopySnowForcing
        Vegetation area, air temperature, snowfall and new snow density
    params : CanopySnowParameters
        Interception capacity and unloading parameters
    control : CanopySnowControl
        Canopy activity flag and interception scheme
    settings : SolverSettings, optional
        Tolerance and iteration budget. Defaults to 1e-4 kg m-2 and 50.
    t_freeze : float
        Freezing point (K)

    Returns
    -------
    CanopySnowResult
        Capacity, throughfall, unloading and updated canopy ice. The
        ``canopy_ice`` argument is not modified.

    Raises
    ------
    UnsupportedOptionError
        Interception scheme not recognized
    InvalidInputError
        Non-positive time step, or non-positive new snow density while
        snow is falling under the density-scaled scheme
    ConvergenceFailureError
        Mass residual above tolerance after the iteration budget
    """
    if settings is None:
        settings = SolverSettings()
    if not dt > 0.0:
        raise InvalidInputError(f"canopySnow/time step must be positive, got {dt}")

    status, ice_new, ice_max, tf_flux, unl_flux, iterations, residual = canopy_snow_step(
        float(dt),
        bool(control.compute_veg_flux),
        int(control.scheme),
        float(canopy_ice),
        float(forcing.exposed_vai),
        float(forcing.air_temperature),
        float(forcing.snowfall),
        float(forcing.new_snow_density),
        float(params.ref_intercept_cap_snow),
        float(params.throughfall_scale_snow),
        float(params.snow_unloading_coeff),
        float(t_freeze),
        float(settings.tolerance),
        settings.max_iterations,
    )

    try:
        raise_for_status(status, iterations=iterations, residual=residual)
    except CanopySnowError as exc:
        log.error(
            _FAILURE_EVENTS.get(type(exc), "step_failed"),
            canopy_ice=canopy_ice,
            snowfall=forcing.snowfall,
            new_snow_density=forcing.new_snow_density,
            iterations=int(iterations),
            residual=float(residual),
            message=str(exc),
        )
        raise

    if iterations == 0:
        log.debug("early_return", compute_veg_flux=bool(control.compute_veg_flux))
    else:
        log.debug("converged", iterations=int(iterations), residual=float(residual))

    return CanopySnowResult(
        canopy_ice_max=float(ice_max),
        throughfall_snow=float(tf_flux),
        canopy_snow_unloading=float(unl_flux),
        canopy_ice=float(ice_new),
        iterations=int(iterations),
        residual=float(residual),
    )
