import os

import toml

from canopysnow.constants import MASS_TOLERANCE, MAX_ITERATIONS, TFREEZE
from canopysnow.logging import get_logger
from canopysnow.process.errors import InvalidInputError
from canopysnow.process.state import (
    CanopySnowControl,
    CanopySnowParameters,
    InterceptionScheme,
    SolverSettings,
)

log = get_logger("config")

REQUIRED_PARAMETERS = (
    "ref_intercept_cap_snow",
    "throughfall_scale_snow",
    "snow_unloading_coeff",
)


class CanopySnowConfig:
    def __init__(self):
        super().__init__()
        # Metadata
        self.resolved_config = {}
        self.conf_file_path = None

        # Model control
        self.dt = None
        self.compute_veg_flux = None
        self.snow_interception = None

        # Parameters
        self.ref_intercept_cap_snow = None
        self.throughfall_scale_snow = None
        self.snow_unloading_coeff = None

        # Solver
        self.tolerance = None
        self.max_iterations = None
        self.settings = None

        # Constants
        self.freezing_point = None

    @classmethod
    def from_toml(cls, conf_file_path):
        config = cls()
        config.read_config(conf_file_path)
        return config

    def read_config(self, conf_file_path):
        with open(conf_file_path, 'r') as f:
            raw_config = toml.load(f)
        self.read_dict(raw_config)
        self.conf_file_path = conf_file_path
        log.info('config_loaded', path=os.path.abspath(conf_file_path),
                 scheme=self.snow_interception.name)

    def read_dict(self, raw_config):
        self.resolved_config = raw_config

        model_conf = raw_config.get('model', {})
        params_conf = raw_config.get('parameters', {})
        solver_conf = raw_config.get('solver', {})
        constants_conf = raw_config.get('constants', {})

        # Model control
        self.dt = self._as_float(model_conf.get('dt'), 'model.dt')
        if not self.dt > 0.0:
            raise InvalidInputError(f'model.dt must be positive, got {self.dt}')
        self.compute_veg_flux = self._as_bool(model_conf.get('compute_veg_flux', True),
                                              'model.compute_veg_flux')
        self.snow_interception = InterceptionScheme.parse(
            model_conf.get('snow_interception', 'lightSnow'))

        # Parameters
        missing = [k for k in REQUIRED_PARAMETERS if k not in params_conf]
        if missing:
            raise InvalidInputError(f'[parameters] is missing {missing}')
        self.ref_intercept_cap_snow = self._as_float(
            params_conf['ref_intercept_cap_snow'], 'parameters.ref_intercept_cap_snow')
        self.throughfall_scale_snow = self._as_float(
            params_conf['throughfall_scale_snow'], 'parameters.throughfall_scale_snow')
        self.snow_unloading_coeff = self._as_float(
            params_conf['snow_unloading_coeff'], 'parameters.snow_unloading_coeff')

        # Solver
        self.tolerance = self._as_float(solver_conf.get('tolerance', MASS_TOLERANCE),
                                        'solver.tolerance')
        self.max_iterations = self._as_int(solver_conf.get('max_iterations', MAX_ITERATIONS),
                                           'solver.max_iterations')
        self.settings = SolverSettings(tolerance=self.tolerance,
                                       max_iterations=self.max_iterations)

        # Constants
        self.freezing_point = self._as_float(constants_conf.get('freezing_point', TFREEZE),
                                             'constants.freezing_point')

    @staticmethod
    def _as_float(value, key):
        if value is None:
            raise InvalidInputError(f'{key} is required')
        try:
            return float(value)
        except (TypeError, ValueError):
            raise InvalidInputError(f'{key} must be a number, got {value!r}') from None

    @staticmethod
    def _as_int(value, key):
        # TOML integers only; floats and bools would truncate silently
        if isinstance(value, bool) or not isinstance(value, int):
            raise InvalidInputError(f'{key} must be an integer, got {value!r}')
        return value

    @staticmethod
    def _as_bool(value, key):
        if not isinstance(value, bool):
            raise InvalidInputError(f'{key} must be true or false, got {value!r}')
        return value

    def parameters(self):
        return CanopySnowParameters(
            ref_intercept_cap_snow=self.ref_intercept_cap_snow,
            throughfall_scale_snow=self.throughfall_scale_snow,
            snow_unloading_coeff=self.snow_unloading_coeff,
        )

    def control(self):
        return CanopySnowControl(
            scheme=self.snow_interception,
            compute_veg_flux=self.compute_veg_flux,
        )

    def solver_settings(self):
        return self.settings
