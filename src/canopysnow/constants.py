"""
Physical constants and numerical defaults used by canopysnow.

Values here are the defaults of the constants provider; callers that run
inside a larger model may pass their own freezing point to the solver.
"""

import numpy as np

#: [K], temperature at freezing
TFREEZE = 273.16

#: [-], smallest positive normal float64, threshold for "numerically zero"
TINY = float(np.finfo(np.float64).tiny)

#: [kg m-2], convergence tolerance on the canopy mass residual
MASS_TOLERANCE = 1e-4
#: [-], iteration budget of the implicit canopy mass balance
MAX_ITERATIONS = 50

#: [-], bare-branch capacity multiplier of the temperature-scaled scheme
BRANCH_SCALE_TEMPERATURE = 4.0
#: [-], offset of the density-scaled leaf capacity (Hedstrom and Pomeroy, 1998)
DENSITY_SCALE_OFFSET = 0.27
#: [kg m-3], density coefficient of the density-scaled leaf capacity
DENSITY_SCALE_COEFF = 46.0

# EOF
