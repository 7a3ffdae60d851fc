"""Unit tests for the canopy_snow entry point.

Covers the reference scenarios of the canopy snow step: inactive canopy,
zero-input early return, both capacity schemes, and the three failure
kinds.
"""

import json
import logging

import pytest

from canopysnow.constants import TFREEZE
from canopysnow.process.errors import (
    ConvergenceFailureError,
    InvalidInputError,
    UnsupportedOptionError,
)
from canopysnow.process.solver import canopy_snow
from canopysnow.process.state import (
    CanopySnowControl,
    CanopySnowForcing,
    CanopySnowParameters,
    InterceptionScheme,
    SolverSettings,
)

pytestmark = pytest.mark.unit


class TestEarlyReturn:
    """Canopy inactive or nothing to do."""

    def test_inactive_canopy_density_scheme(self, params, dt):
        control = CanopySnowControl(scheme="lightSnow", compute_veg_flux=False)
        forcing = CanopySnowForcing(2.0, TFREEZE - 5.0, 0.001, 100.0)

        result = canopy_snow(dt, 1.25, forcing, params, control)

        assert result.canopy_ice_max == pytest.approx(10.0)
        assert result.throughfall_snow == 0.001
        assert result.canopy_snow_unloading == 0.0
        assert result.canopy_ice == 1.25
        assert result.iterations == 0

    def test_inactive_canopy_temperature_scheme(self, params, dt):
        control = CanopySnowControl(scheme="stickySnow", compute_veg_flux=False)
        forcing = CanopySnowForcing(2.0, TFREEZE - 5.0, 0.001, 100.0)

        result = canopy_snow(dt, 1.25, forcing, params, control)

        assert result.canopy_ice_max == pytest.approx(40.0)
        assert result.throughfall_snow == 0.001
        assert result.canopy_ice == 1.25

    def test_inactive_canopy_ignores_invalid_density(self, params, density_control, dt):
        """A buried canopy does not evaluate the snowfall capacity."""
        control = CanopySnowControl(scheme=density_control.scheme, compute_veg_flux=False)
        forcing = CanopySnowForcing(2.0, TFREEZE, 0.002, -1.0)

        result = canopy_snow(dt, 0.0, forcing, params, control)

        assert result.canopy_ice == 0.0

    @pytest.mark.parametrize(
        "scheme, capacity",
        [(InterceptionScheme.DENSITY_SCALED, 10.0), (InterceptionScheme.TEMPERATURE_SCALED, 40.0)],
    )
    def test_zero_input(self, params, dt, scheme, capacity):
        control = CanopySnowControl(scheme=scheme)
        forcing = CanopySnowForcing(2.0, TFREEZE - 5.0, 0.0, 100.0)

        result = canopy_snow(dt, 0.0, forcing, params, control)

        assert result.canopy_ice_max == pytest.approx(capacity)
        assert result.throughfall_snow == 0.0
        assert result.canopy_snow_unloading == 0.0
        assert result.canopy_ice == 0.0
        assert result.iterations == 0


class TestSnowfall:
    """Snow falling on an active canopy."""

    def test_density_scheme_capacity(self, params, density_control, snowing, dt):
        result = canopy_snow(dt, 0.0, snowing, params, density_control)

        assert result.canopy_ice_max == pytest.approx(7.3)
        assert 0.0 < result.canopy_ice < result.canopy_ice_max
        assert 0.0 < result.throughfall_snow < snowing.snowfall

    def test_temperature_scheme_minus_two(self, params, temperature_control, snowing, dt):
        result = canopy_snow(dt, 0.0, snowing, params, temperature_control)

        assert result.canopy_ice_max == pytest.approx(5.0 * 2.5 * 2.0)

    def test_temperature_scheme_minus_five(self, params, temperature_control, dt):
        forcing = CanopySnowForcing(2.0, TFREEZE - 5.0, 1e-3, 100.0)

        result = canopy_snow(dt, 0.0, forcing, params, temperature_control)

        assert result.canopy_ice_max == pytest.approx(5.0 * 2.0)

    def test_custom_freezing_point(self, params, temperature_control, dt):
        """Air temperature is converted with the supplied freezing point."""
        forcing = CanopySnowForcing(2.0, 271.15, 1e-3, 100.0)

        result = canopy_snow(dt, 0.0, forcing, params, temperature_control, t_freeze=273.15)

        assert result.canopy_ice_max == pytest.approx(5.0 * 2.5 * 2.0)

    def test_throughfall_scale_is_inert(self, density_control, snowing, dt):
        base = CanopySnowParameters(5.0, 0.5, 1e-6)
        scaled = CanopySnowParameters(5.0, 0.9, 1e-6)

        a = canopy_snow(dt, 0.4, snowing, base, density_control)
        b = canopy_snow(dt, 0.4, snowing, scaled, density_control)

        assert a == b

    def test_larger_capacity_retains_more(self, params, density_control, dt):
        light = CanopySnowForcing(2.0, TFREEZE - 5.0, 1e-3, 60.0)
        dense = CanopySnowForcing(2.0, TFREEZE - 5.0, 1e-3, 200.0)

        retained_light = canopy_snow(dt, 0.0, light, params, density_control).canopy_ice
        retained_dense = canopy_snow(dt, 0.0, dense, params, density_control).canopy_ice

        assert retained_light > retained_dense


class TestErrors:
    """Failures propagate as typed exceptions."""

    def test_unsupported_scheme(self, params, snowing, dt):
        with pytest.raises(UnsupportedOptionError):
            canopy_snow(dt, 0.0, snowing, params, CanopySnowControl(scheme="wetSnow"))

    def test_negative_density(self, params, density_control, dt):
        forcing = CanopySnowForcing(2.0, TFREEZE - 5.0, 0.002, -1.0)

        with pytest.raises(InvalidInputError, match="invalid new snow density"):
            canopy_snow(dt, 0.0, forcing, params, density_control)

    @pytest.mark.parametrize("bad_dt", [0.0, -60.0])
    def test_non_positive_time_step(self, params, density_control, snowing, bad_dt):
        with pytest.raises(InvalidInputError):
            canopy_snow(bad_dt, 0.0, snowing, params, density_control)

    def test_iteration_budget(self, params, density_control, snowing, dt):
        settings = SolverSettings(max_iterations=1)

        with pytest.raises(ConvergenceFailureError) as excinfo:
            canopy_snow(dt, 0.0, snowing, params, density_control, settings)

        assert excinfo.value.iterations == 1
        assert abs(excinfo.value.residual) > settings.tolerance

    def test_zero_vegetation_with_snowfall(self, params, density_control, dt):
        forcing = CanopySnowForcing(0.0, TFREEZE - 5.0, 1e-3, 100.0)

        with pytest.raises(ConvergenceFailureError, match="failed to converge"):
            canopy_snow(dt, 0.0, forcing, params, density_control)


class TestLogging:
    """Solver events are emitted as JSON documents."""

    def test_converged_event(self, params, density_control, snowing, dt, caplog):
        caplog.set_level(logging.DEBUG, logger="canopysnow")

        result = canopy_snow(dt, 0.0, snowing, params, density_control)

        events = [
            json.loads(r.getMessage()) for r in caplog.records
            if r.name == "canopysnow.solver"
        ]
        assert events[-1]["event"] == "converged"
        assert events[-1]["iterations"] == result.iterations

    def test_failure_event(self, params, density_control, snowing, dt, caplog):
        caplog.set_level(logging.DEBUG, logger="canopysnow")

        with pytest.raises(ConvergenceFailureError):
            canopy_snow(dt, 0.0, snowing, params, density_control,
                        SolverSettings(max_iterations=1))

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert json.loads(errors[-1].getMessage())["event"] == "convergence_failure"

    def test_invalid_input_event(self, params, density_control, dt, caplog):
        caplog.set_level(logging.DEBUG, logger="canopysnow")
        forcing = CanopySnowForcing(2.0, TFREEZE - 5.0, 0.002, -1.0)

        with pytest.raises(InvalidInputError):
            canopy_snow(dt, 0.0, forcing, params, density_control)

        errors = [r for r in caplog.records if r.levelno == logging.ERROR]
        event = json.loads(errors[-1].getMessage())
        assert event["event"] == "invalid_input"
        assert event["new_snow_density"] == -1.0
        assert "invalid new snow density" in event["message"]
