"""Exceptions raised by the canopy snow solver."""

from __future__ import annotations

from canopysnow.process.kernels.status import (
    STATUS_CONVERGENCE_FAILURE,
    STATUS_INVALID_INPUT,
    STATUS_OK,
    STATUS_UNSUPPORTED_OPTION,
)

__all__ = [
    "CanopySnowError",
    "UnsupportedOptionError",
    "InvalidInputError",
    "ConvergenceFailureError",
    "raise_for_status",
]


class CanopySnowError(Exception):
    """Base class for canopy snow errors."""


class UnsupportedOptionError(CanopySnowError):
    """Raised when the interception scheme selector is not recognized."""


class InvalidInputError(CanopySnowError):
    """Raised when an input is physically invalid, e.g. non-positive new snow density."""


class ConvergenceFailureError(CanopySnowError):
    """Raised when the canopy mass residual stays above tolerance for the whole iteration budget."""

    def __init__(self, message: str, iterations: int, residual: float):
        super().__init__(message)
        self.iterations = iterations
        self.residual = residual


def raise_for_status(
    status: int,
    iterations: int = 0,
    residual: float = float("nan"),
    context: str = "",
) -> None:
    """Raise the exception matching a kernel status code.

    Parameters
    ----------
    status : int
        Status code returned by a JIT kernel
    iterations : int
        Iterations used, reported on convergence failure
    residual : float
        Final mass residual (kg m-2), reported on convergence failure
    context : str
        Prefix for the error message, e.g. the unit index
    """
    if status == STATUS_OK:
        return
    prefix = f"canopySnow/{context}"
    if status == STATUS_UNSUPPORTED_OPTION:
        raise UnsupportedOptionError(
            f"{prefix}unable to identify option for maximum branch interception capacity"
        )
    if status == STATUS_INVALID_INPUT:
        raise InvalidInputError(f"{prefix}invalid new snow density")
    if status == STATUS_CONVERGENCE_FAILURE:
        raise ConvergenceFailureError(
            f"{prefix}failed to converge [mass] after {iterations} iterations "
            f"(residual={residual:.3e} kg m-2)",
            iterations=iterations,
            residual=residual,
        )
    raise CanopySnowError(f"{prefix}unknown status code {status}")
