"""Typed containers for canopy snow modeling.

Provides dataclass-based containers for:
- InterceptionScheme: Closed set of interception capacity schemes
- CanopySnowForcing: Per-step forcing of one unit
- CanopySnowParameters: Interception and unloading parameters
- CanopySnowControl: Canopy activity flag and scheme selector
- SolverSettings: Tolerance and iteration budget of the implicit solve
- CanopySnowResult: Outputs of one step for one unit
- CanopyIceState: Mutable canopy ice arrays for many units
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import TYPE_CHECKING, Any

import numpy as np

from canopysnow.constants import MASS_TOLERANCE, MAX_ITERATIONS
from canopysnow.process.errors import InvalidInputError, UnsupportedOptionError
from canopysnow.process.kernels import status

if TYPE_CHECKING:
    from numpy.typing import NDArray

__all__ = [
    "InterceptionScheme",
    "CanopySnowForcing",
    "CanopySnowParameters",
    "CanopySnowControl",
    "SolverSettings",
    "CanopySnowResult",
    "CanopyIceState",
]


class InterceptionScheme(IntEnum):
    """Maximum interception capacity schemes.

    DENSITY_SCALED
        Capacity an inverse function of new snow density ("lightSnow").
    TEMPERATURE_SCALED
        Capacity an increasing function of air temperature ("stickySnow").
    """

    DENSITY_SCALED = status.DENSITY_SCALED
    TEMPERATURE_SCALED = status.TEMPERATURE_SCALED

    @classmethod
    def parse(cls, value: Any) -> InterceptionScheme:
        """Coerce a member, integer tag or option name to a scheme.

        Raises
        ------
        UnsupportedOptionError
            If ``value`` does not identify a known scheme.
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return _SCHEME_NAMES[value.strip().lower()]
            except KeyError:
                raise UnsupportedOptionError(
                    f"unknown snow interception option '{value}'; "
                    f"expected one of {sorted(_SCHEME_NAMES)}"
                ) from None
        if isinstance(value, bool):
            raise UnsupportedOptionError(f"unknown snow interception option {value!r}")
        try:
            return cls(value)
        except (TypeError, ValueError):
            raise UnsupportedOptionError(
                f"unknown snow interception option {value!r}"
            ) from None


_SCHEME_NAMES: dict[str, InterceptionScheme] = {
    "lightsnow": InterceptionScheme.DENSITY_SCALED,
    "density_scaled": InterceptionScheme.DENSITY_SCALED,
    "density-scaled": InterceptionScheme.DENSITY_SCALED,
    "stickysnow": InterceptionScheme.TEMPERATURE_SCALED,
    "temperature_scaled": InterceptionScheme.TEMPERATURE_SCALED,
    "temperature-scaled": InterceptionScheme.TEMPERATURE_SCALED,
}


@dataclass(frozen=True)
class CanopySnowForcing:
    """Forcing and diagnostic inputs of one unit for one time step.

    Attributes
    ----------
    exposed_vai : float
        Exposed vegetation area index, leaf + stem after burial (m2 m-2)
    air_temperature : float
        Air temperature (K)
    snowfall : float
        Snowfall rate (kg m-2 s-1)
    new_snow_density : float
        Density of new snow (kg m-3)
    """

    exposed_vai: float
    air_temperature: float
    snowfall: float
    new_snow_density: float


@dataclass(frozen=True)
class CanopySnowParameters:
    """Canopy snow parameters.

    Attributes
    ----------
    ref_intercept_cap_snow : float
        Reference canopy interception capacity for snow per unit leaf area (kg m-2)
    throughfall_scale_snow : float
        Scaling factor for snow throughfall (-). Accepted for compatibility
        with existing parameter sets; the throughfall formulation does not
        use it.
    snow_unloading_coeff : float
        Time constant for unloading of snow from the canopy (s-1)
    """

    ref_intercept_cap_snow: float
    throughfall_scale_snow: float
    snow_unloading_coeff: float


@dataclass(frozen=True)
class CanopySnowControl:
    """Model control for the canopy snow step.

    Attributes
    ----------
    scheme : InterceptionScheme
        Maximum interception capacity scheme. Option names and integer tags
        are coerced on construction.
    compute_veg_flux : bool
        Whether fluxes over vegetation are computed; False means the canopy
        is buried by snow and left unchanged.
    """

    scheme: InterceptionScheme
    compute_veg_flux: bool = True

    def __post_init__(self):
        object.__setattr__(self, "scheme", InterceptionScheme.parse(self.scheme))


@dataclass(frozen=True)
class SolverSettings:
    """Convergence settings of the implicit canopy mass balance.

    Attributes
    ----------
    tolerance : float
        Convergence tolerance on the mass residual (kg m-2)
    max_iterations : int
        Iteration budget before the step fails
    """

    tolerance: float = MASS_TOLERANCE
    max_iterations: int = MAX_ITERATIONS

    def __post_init__(self):
        if not self.tolerance > 0.0:
            raise InvalidInputError(f"tolerance must be positive, got {self.tolerance}")
        if int(self.max_iterations) < 1:
            raise InvalidInputError(
                f"max_iterations must be at least 1, got {self.max_iterations}"
            )
        object.__setattr__(self, "max_iterations", int(self.max_iterations))


@dataclass(frozen=True)
class CanopySnowResult:
    """Outputs of one canopy snow step for one unit.

    Attributes
    ----------
    canopy_ice_max : float
        Maximum interception storage capacity for ice (kg m-2)
    throughfall_snow : float
        Snow that reaches the ground without touching the canopy (kg m-2 s-1)
    canopy_snow_unloading : float
        Unloading of snow from the canopy (kg m-2 s-1)
    canopy_ice : float
        Canopy ice storage at the end of the step (kg m-2)
    iterations : int
        Iterations of the implicit solve, 0 when the step returned early
    residual : float
        Mass residual of the last evaluation (kg m-2)
    """

    canopy_ice_max: float
    throughfall_snow: float
    canopy_snow_unloading: float
    canopy_ice: float
    iterations: int = 0
    residual: float = 0.0

    def mass_balance_error(self, previous_ice: float, snowfall: float, dt: float) -> float:
        """Storage change minus the time-integrated net flux (kg m-2)."""
        net_flux = snowfall - self.throughfall_snow - self.canopy_snow_unloading
        return self.canopy_ice - (previous_ice + dt * net_flux)


@dataclass
class CanopyIceState:
    """Mutable canopy ice storage for many independent units.

    Arrays have shape (n_units,) and are updated in-place by
    ``canopysnow.process.loop.step_canopy_snow``. The caller owns the state
    and threads it from one time step to the next.

    Attributes
    ----------
    n_units : int
        Number of spatial units
    canopy_ice : NDArray[np.float64]
        Canopy ice storage (kg m-2)
    """

    n_units: int
    canopy_ice: NDArray[np.float64] = field(default=None)

    def __post_init__(self):
        """Initialize storage with zeros if not provided."""
        if self.canopy_ice is None:
            self.canopy_ice = np.zeros(self.n_units, dtype=np.float64)
        else:
            self.canopy_ice = np.asarray(self.canopy_ice, dtype=np.float64)
        if self.canopy_ice.shape != (self.n_units,):
            raise InvalidInputError(
                f"canopy_ice has shape {self.canopy_ice.shape}, expected ({self.n_units},)"
            )

    @classmethod
    def from_values(cls, canopy_ice: NDArray[np.float64]) -> CanopyIceState:
        """Create state from existing storage values (copied)."""
        values = np.array(canopy_ice, dtype=np.float64, copy=True).ravel()
        return cls(n_units=values.shape[0], canopy_ice=values)

    def copy(self) -> CanopyIceState:
        """Create a deep copy of the state."""
        return CanopyIceState(n_units=self.n_units, canopy_ice=self.canopy_ice.copy())
