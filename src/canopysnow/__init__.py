"""
canopysnow: Canopy snow interception and unloading.

Computes, for each spatial unit and time step, how much falling snow is
intercepted by a vegetation canopy, how much passes through as throughfall,
how much previously intercepted snow unloads to the ground, and the updated
canopy ice storage.

Subpackages:
    process: Physics kernels, typed state containers and step drivers.

Example:
    >>> from canopysnow import CanopySnowConfig
    >>> from canopysnow.process import CanopySnowForcing, canopy_snow
    >>>
    >>> config = CanopySnowConfig.from_toml("canopy.toml")
    >>> forcing = CanopySnowForcing(exposed_vai=2.0, air_temperature=271.0,
    ...                             snowfall=1e-3, new_snow_density=100.0)
    >>> result = canopy_snow(config.dt, 0.0, forcing, config.parameters(),
    ...                      config.control(), config.solver_settings())
"""

from canopysnow.config import CanopySnowConfig

__version__ = "0.1.0"

__all__ = ["CanopySnowConfig"]
