"""Status codes returned by the JIT kernels.

Kernels compiled in nopython mode report failures as integer codes;
``canopysnow.process.errors.raise_for_status`` maps them to exceptions.
"""

__all__ = [
    "STATUS_OK",
    "STATUS_UNSUPPORTED_OPTION",
    "STATUS_INVALID_INPUT",
    "STATUS_CONVERGENCE_FAILURE",
    "DENSITY_SCALED",
    "TEMPERATURE_SCALED",
]

STATUS_OK = 0
STATUS_UNSUPPORTED_OPTION = 1
STATUS_INVALID_INPUT = 2
STATUS_CONVERGENCE_FAILURE = 3

# Integer tags of the interception capacity schemes (InterceptionScheme values)
DENSITY_SCALED = 1
TEMPERATURE_SCALED = 2
