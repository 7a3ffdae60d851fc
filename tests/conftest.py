"""
Shared pytest fixtures for canopysnow tests.

This module provides:
- Default parameter, control and forcing fixtures for the canopy snow step
- Tolerance settings for mass balance comparisons
"""

import pytest

from canopysnow.constants import TFREEZE
from canopysnow.process.state import (
    CanopySnowControl,
    CanopySnowForcing,
    CanopySnowParameters,
    InterceptionScheme,
)

# =============================================================================
# Tolerance Settings
# =============================================================================

MASS_ATOL = 1e-4  # Solver convergence tolerance (kg m-2)


# =============================================================================
# Model Fixtures
# =============================================================================

@pytest.fixture
def dt() -> float:
    """Hourly time step (s)."""
    return 3600.0


@pytest.fixture
def params() -> CanopySnowParameters:
    """Parameters with a moderate reference capacity and slow unloading."""
    return CanopySnowParameters(
        ref_intercept_cap_snow=5.0,
        throughfall_scale_snow=0.5,
        snow_unloading_coeff=1.0e-6,
    )


@pytest.fixture
def density_control() -> CanopySnowControl:
    return CanopySnowControl(scheme=InterceptionScheme.DENSITY_SCALED)


@pytest.fixture
def temperature_control() -> CanopySnowControl:
    return CanopySnowControl(scheme=InterceptionScheme.TEMPERATURE_SCALED)


@pytest.fixture
def snowing() -> CanopySnowForcing:
    """Steady snowfall of 3.6 mm/hr at -2 degC on a canopy with VAI = 2."""
    return CanopySnowForcing(
        exposed_vai=2.0,
        air_temperature=TFREEZE - 2.0,
        snowfall=1.0e-3,
        new_snow_density=100.0,
    )


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "unit: fast isolated unit tests"
    )
    config.addinivalue_line(
        "markers", "conservation: mass balance and canopy ice conservation verification"
    )
