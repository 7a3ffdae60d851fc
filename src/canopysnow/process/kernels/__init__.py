"""
Physics kernels for canopy snow interception.

Design Rules:
1. Functions take scalars (or numpy arrays for the per-unit variants)
2. Functions return scalars or numpy arrays, failures as integer status codes
3. No file I/O, no `self`, no state mutation
4. All physical constraints documented in docstrings
5. Numba JIT compiled with cache=True for performance
"""

from canopysnow.process.kernels import canopy_snow, interception, status

__all__ = [
    "canopy_snow",
    "interception",
    "status",
]
