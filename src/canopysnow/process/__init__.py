"""
canopysnow Process Package

Canopy snow mass balance with:
- Pure physics kernels (numba JIT)
- Typed state containers
- Typed errors for unsupported options, invalid input and non-convergence
- Structured logging
"""

from canopysnow.process import kernels
from canopysnow.process.errors import (
    CanopySnowError,
    ConvergenceFailureError,
    InvalidInputError,
    UnsupportedOptionError,
)
from canopysnow.process.loop import run_canopy_snow, step_canopy_snow
from canopysnow.process.solver import canopy_snow
from canopysnow.process.state import (
    CanopyIceState,
    CanopySnowControl,
    CanopySnowForcing,
    CanopySnowParameters,
    CanopySnowResult,
    InterceptionScheme,
    SolverSettings,
)

__all__ = [
    "kernels",
    "canopy_snow",
    "step_canopy_snow",
    "run_canopy_snow",
    "InterceptionScheme",
    "CanopyIceState",
    "CanopySnowForcing",
    "CanopySnowParameters",
    "CanopySnowControl",
    "SolverSettings",
    "CanopySnowResult",
    "CanopySnowError",
    "UnsupportedOptionError",
    "InvalidInputError",
    "ConvergenceFailureError",
]
