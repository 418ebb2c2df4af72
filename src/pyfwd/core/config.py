"""Solver configuration."""

from dataclasses import dataclass

from pyfwd.core.constants import (
    DEFAULT_INDEP_MAX,
    DEFAULT_INDEP_MIN,
    DEFAULT_MAX_ITERS,
    DEFAULT_TOLERANCE,
)
from pyfwd.core.errors import ConfigurationError


@dataclass
class SolverConfig:
    """Newton-Raphson settings used for every target set.

    Attributes
    ----------
    max_iters : int
        Iteration cap per target set and iteration
    tolerance : float
        Convergence threshold on the absolute target error
    indep_min : float
        Lower bound on the effort multipliers
    indep_max : float
        Upper bound on the effort multipliers
    """

    max_iters: int = DEFAULT_MAX_ITERS
    tolerance: float = DEFAULT_TOLERANCE
    indep_min: float = DEFAULT_INDEP_MIN
    indep_max: float = DEFAULT_INDEP_MAX

    def __post_init__(self):
        if self.max_iters < 1:
            raise ConfigurationError(f"max_iters must be >= 1, got {self.max_iters}")
        if self.tolerance <= 0:
            raise ConfigurationError(f"tolerance must be positive, got {self.tolerance}")
        if self.indep_min >= self.indep_max:
            raise ConfigurationError(
                f"indep_min ({self.indep_min}) must be < indep_max ({self.indep_max})"
            )
