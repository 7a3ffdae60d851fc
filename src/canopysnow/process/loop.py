"""Step drivers for canopy snow modeling.

Provides a batch step that updates the canopy ice of many independent
units in place, and a runner that threads one unit's canopy ice through a
forcing time series.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from canopysnow.constants import TFREEZE
from canopysnow.logging import get_logger
from canopysnow.process.errors import InvalidInputError, raise_for_status
from canopysnow.process.kernels.canopy_snow import canopy_snow_units
from canopysnow.process.kernels.status import STATUS_OK
from canopysnow.process.solver import canopy_snow
from canopysnow.process.state import (
    CanopySnowControl,
    CanopySnowForcing,
    CanopySnowParameters,
    SolverSettings,
)

if TYPE_CHECKING:
    from numpy.typing import ArrayLike, NDArray

    from canopysnow.process.state import CanopyIceState

__all__ = ["step_canopy_snow", "run_canopy_snow", "FORCING_COLUMNS"]

FORCING_COLUMNS = ("exposed_vai", "air_temperature", "snowfall", "new_snow_density")

log = get_logger("loop")


def _per_unit(values: ArrayLike, n: int, name: str, dtype=np.float64) -> NDArray:
    """Broadcast a scalar or (n,) array to a contiguous (n,) array."""
    try:
        arr = np.broadcast_to(np.asarray(values, dtype=dtype), (n,))
    except ValueError:
        raise InvalidInputError(
            f"{name} has shape {np.shape(values)}, expected scalar or ({n},)"
        ) from None
    return np.ascontiguousarray(arr)


def step_canopy_snow(
    state: CanopyIceState,
    exposed_vai: ArrayLike,
    air_temperature: ArrayLike,
    snowfall: ArrayLike,
    new_snow_density: ArrayLike,
    params: CanopySnowParameters,
    control: CanopySnowControl,
    dt: float,
    settings: SolverSettings | None = None,
    compute_veg_flux: ArrayLike | None = None,
    t_freeze: float = TFREEZE,
) -> dict[str, NDArray]:
    """Execute one canopy snow time step for all units.

    Parameters
    ----------
    state : CanopyIceState
        Canopy ice state (modified in-place on success)
    exposed_vai : scalar or (n_units,)
        Exposed vegetation area index (m2 m-2)
    air_temperature : scalar or (n_units,)
        Air temperature (K)
    snowfall : scalar or (n_units,)
        Snowfall rate (kg m-2 s-1)
    new_snow_density : scalar or (n_units,)
        Density of new snow (kg m-3)
    params : CanopySnowParameters
        Parameters; fields may be scalars or (n_units,) arrays
    control : CanopySnowControl
        Interception scheme and default canopy activity flag
    dt : float
        Time step (s)
    settings : SolverSettings, optional
        Tolerance and iteration budget
    compute_veg_flux : scalar or (n_units,) bool, optional
        Per-unit canopy activity, e.g. False where the canopy is buried.
        Defaults to ``control.compute_veg_flux`` for every unit.
    t_freeze : float
        Freezing point (K)

    Returns
    -------
    dict
        Per-unit outputs: canopy_ice, canopy_ice_max, throughfall_snow,
        canopy_snow_unloading, iterations

    Raises
    ------
    CanopySnowError
        Subclass matching the first failing unit. No unit's state is
        updated when any unit fails.
    """
    if settings is None:
        settings = SolverSettings()
    if not dt > 0.0:
        raise InvalidInputError(f"canopySnow/time step must be positive, got {dt}")

    n = state.n_units
    if compute_veg_flux is None:
        compute_veg_flux = control.compute_veg_flux

    status, ice_new, ice_max, tf_flux, unl_flux, iterations, residual = canopy_snow_units(
        float(dt),
        _per_unit(compute_veg_flux, n, "compute_veg_flux", dtype=np.bool_),
        int(control.scheme),
        np.ascontiguousarray(state.canopy_ice, dtype=np.float64),
        _per_unit(exposed_vai, n, "exposed_vai"),
        _per_unit(air_temperature, n, "air_temperature"),
        _per_unit(snowfall, n, "snowfall"),
        _per_unit(new_snow_density, n, "new_snow_density"),
        _per_unit(params.ref_intercept_cap_snow, n, "ref_intercept_cap_snow"),
        _per_unit(params.throughfall_scale_snow, n, "throughfall_scale_snow"),
        _per_unit(params.snow_unloading_coeff, n, "snow_unloading_coeff"),
        float(t_freeze),
        float(settings.tolerance),
        settings.max_iterations,
    )

    failed = np.flatnonzero(status != STATUS_OK)
    if failed.size:
        i = int(failed[0])
        log.error(
            "step_failed",
            n_failed=int(failed.size),
            first_unit=i,
            status=int(status[i]),
        )
        raise_for_status(
            int(status[i]),
            iterations=int(iterations[i]),
            residual=float(residual[i]),
            context=f"unit {i}: ",
        )

    state.canopy_ice = ice_new

    return {
        "canopy_ice": ice_new,
        "canopy_ice_max": ice_max,
        "throughfall_snow": tf_flux,
        "canopy_snow_unloading": unl_flux,
        "iterations": iterations,
    }


def run_canopy_snow(
    forcing: pd.DataFrame,
    params: CanopySnowParameters,
    control: CanopySnowControl,
    dt: float,
    canopy_ice: float = 0.0,
    settings: SolverSettings | None = None,
    t_freeze: float = TFREEZE,
) -> pd.DataFrame:
    """Run the canopy snow step over a forcing time series for one unit.

    Parameters
    ----------
    forcing : pd.DataFrame
        One row per time step with columns exposed_vai, air_temperature,
        snowfall and new_snow_density. An optional boolean column
        compute_veg_flux overrides ``control.compute_veg_flux`` per step.
    params : CanopySnowParameters
        Parameters
    control : CanopySnowControl
        Interception scheme and canopy activity flag
    dt : float
        Time step (s)
    canopy_ice : float
        Initial canopy ice storage (kg m-2)
    settings : SolverSettings, optional
        Tolerance and iteration budget
    t_freeze : float
        Freezing point (K)

    Returns
    -------
    pd.DataFrame
        Indexed like ``forcing`` with columns canopy_ice, canopy_ice_max,
        throughfall_snow, canopy_snow_unloading, iterations
    """
    missing = [c for c in FORCING_COLUMNS if c not in forcing.columns]
    if missing:
        raise InvalidInputError(f"forcing is missing columns: {missing}")

    if "compute_veg_flux" in forcing.columns:
        active = forcing["compute_veg_flux"].astype(bool).to_numpy()
    else:
        active = np.full(len(forcing), bool(control.compute_veg_flux))

    records = []
    for step, row in enumerate(forcing[list(FORCING_COLUMNS)].itertuples(index=False)):
        step_control = CanopySnowControl(
            scheme=control.scheme, compute_veg_flux=bool(active[step])
        )
        result = canopy_snow(
            dt,
            canopy_ice,
            CanopySnowForcing(
                exposed_vai=row.exposed_vai,
                air_temperature=row.air_temperature,
                snowfall=row.snowfall,
                new_snow_density=row.new_snow_density,
            ),
            params,
            step_control,
            settings=settings,
            t_freeze=t_freeze,
        )
        canopy_ice = result.canopy_ice
        records.append(
            (
                result.canopy_ice,
                result.canopy_ice_max,
                result.throughfall_snow,
                result.canopy_snow_unloading,
                result.iterations,
            )
        )

    return pd.DataFrame(
        records,
        index=forcing.index,
        columns=[
            "canopy_ice",
            "canopy_ice_max",
            "throughfall_snow",
            "canopy_snow_unloading",
            "iterations",
        ],
    )
