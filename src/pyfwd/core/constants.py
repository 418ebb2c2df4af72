"""Numerical constants and defaults for the projection engine.

This module centralizes magic numbers used throughout pyfwd.
"""

# ============================================================================
# ARRAY LAYOUT
# ============================================================================

# Axis order of every MultiAxisArray: quant, year, unit, season, area, iter
N_AXES = 6
N_COORD_AXES = 5  # year, unit, season, area, iter
AXIS_NAMES = ("quant", "year", "unit", "season", "area", "iter")

# ============================================================================
# STOCK-RECRUITMENT
# ============================================================================

# Timesteps between spawning and the recruitment it produces
DEFAULT_SR_TIMELAG = 1

# ============================================================================
# SOLVER
# ============================================================================

# Starting value of every effort multiplier in a target-set solve
EFFORT_MULT_INITIAL = 1.0

# Newton-Raphson defaults
DEFAULT_MAX_ITERS = 50
DEFAULT_TOLERANCE = 1e-8  # Absolute tolerance on |desired - achieved|

# Bounds on the effort multipliers
DEFAULT_INDEP_MIN = 0.0
DEFAULT_INDEP_MAX = 1e3

# ============================================================================
# EXCHANGE
# ============================================================================

# Column names of the long-format exchange table
QUANT_FRAME_COLUMNS = ["quant", "year", "unit", "season", "area", "iter", "data"]
