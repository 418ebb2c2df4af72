"""
pyfwd - forward projection of fish stocks and fleets

Projects age-structured stocks exploited by fishing fleets and solves for
the effort that meets management targets.
"""

__version__ = "0.1.0"
__author__ = "pyfwd Development Team"

# Core imports
from pyfwd.core.quant import (
    MultiAxisArray,
    timestep_to_year_season,
    year_season_to_timestep,
)
from pyfwd.core.sr import DevianceMode, StockRecruitmentModel, register_sr_model
from pyfwd.core.expression import sr_model_from_expression
from pyfwd.core.biol import Biol
from pyfwd.core.fishery import Catch, Fishery
from pyfwd.core.control import Control, TargetType
from pyfwd.core.config import SolverConfig
from pyfwd.core.errors import (
    ConfigurationError,
    RecruitmentWarning,
    SolverConvergenceWarning,
)
from pyfwd.core.operating_model import OperatingModel
from pyfwd.core.solver import RunResult, TargetSetResult

__all__ = [
    # Version
    "__version__",
    "__author__",
    # Arrays
    "MultiAxisArray",
    "timestep_to_year_season",
    "year_season_to_timestep",
    # Stock-recruitment
    "DevianceMode",
    "StockRecruitmentModel",
    "register_sr_model",
    "sr_model_from_expression",
    # Model
    "Biol",
    "Catch",
    "Fishery",
    "Control",
    "TargetType",
    "SolverConfig",
    "OperatingModel",
    "RunResult",
    "TargetSetResult",
    # Errors
    "ConfigurationError",
    "RecruitmentWarning",
    "SolverConvergenceWarning",
]
