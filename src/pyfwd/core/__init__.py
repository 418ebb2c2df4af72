"""
Core module for pyfwd.

Contains the arrays, population and fleet objects, the operating model
and the effort solver.
"""

from pyfwd.core.quant import (
    MultiAxisArray,
    coordinate_range,
    exp,
    quant_mean,
    quant_sum,
    timestep_to_year_season,
    year_season_to_timestep,
)
from pyfwd.core.sr import (
    DevianceMode,
    SRModelKind,
    StockRecruitmentModel,
    register_sr_model,
    registered_sr_models,
    unregister_sr_model,
)
from pyfwd.core.expression import compile_sr_expression, sr_model_from_expression
from pyfwd.core.biol import Biol
from pyfwd.core.fishery import Catch, Fishery
from pyfwd.core.control import Control, Target, TargetType
from pyfwd.core.config import SolverConfig
from pyfwd.core.errors import (
    ConfigurationError,
    RecruitmentWarning,
    SolverConvergenceWarning,
)
from pyfwd.core.solver import (
    RunResult,
    SolveStatus,
    TargetSetGraph,
    TargetSetResult,
    newton_raphson,
)
from pyfwd.core.operating_model import OperatingModel, baranov

__all__ = [
    # Arrays
    "MultiAxisArray",
    "coordinate_range",
    "exp",
    "quant_mean",
    "quant_sum",
    "timestep_to_year_season",
    "year_season_to_timestep",
    # Stock-recruitment
    "DevianceMode",
    "SRModelKind",
    "StockRecruitmentModel",
    "register_sr_model",
    "registered_sr_models",
    "unregister_sr_model",
    "compile_sr_expression",
    "sr_model_from_expression",
    # Model components
    "Biol",
    "Catch",
    "Fishery",
    "Control",
    "Target",
    "TargetType",
    # Projection and solving
    "OperatingModel",
    "baranov",
    "SolverConfig",
    "RunResult",
    "SolveStatus",
    "TargetSetGraph",
    "TargetSetResult",
    "newton_raphson",
    # Errors
    "ConfigurationError",
    "RecruitmentWarning",
    "SolverConvergenceWarning",
]
