"""
Effort solver for target sets.

For each target set a TargetSetGraph wraps the projection as a pure
function of the effort multipliers (one per fishery and iteration):
copy the operating model, scale effort at the effort timestep, project
fisheries and then biols, and return the achieved target values. JAX
traces and compiles the function and its forward-mode Jacobian.

newton_raphson() then solves each iteration independently on its own
block of the Jacobian. Multipliers are ordered fishery-major
(``(fishery - 1) * niter + iter - 1``) and target values target-major
(``(target - 1) * niter + iter - 1``).
"""

import warnings
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Sequence, Tuple

import jax
import jax.numpy as jnp
import numpy as np
import pandas as pd
from scipy import linalg

from pyfwd.core.config import SolverConfig
from pyfwd.core.constants import EFFORT_MULT_INITIAL
from pyfwd.core.errors import SolverConvergenceWarning
from pyfwd.core.quant import timestep_to_year_season
from pyfwd.logger import get_logger

logger = get_logger(__name__)


class SolveStatus(Enum):
    """Outcome of the Newton-Raphson solve of one iteration."""

    CONVERGED = "converged"
    FAILED = "failed"


class TargetSetGraph:
    """Achieved target values of one target set as a function of effort.

    Parameters
    ----------
    om : OperatingModel
        Model whose current state the graph starts from. It is never
        modified by evaluating the graph.
    rows : sequence of int
        0-based control rows of the target set
    effort_timestep : int
        Timestep whose effort is scaled
    """

    def __init__(self, om, rows: Sequence[int], effort_timestep: int):
        self.om = om
        self.rows = list(rows)
        self.effort_timestep = effort_timestep
        self.effort_year, self.effort_season = timestep_to_year_season(effort_timestep, om.nseason)
        self.nfishery = om.nfishery
        self.niter = om.niter
        self.ntarget = len(self.rows)
        self._achieved = jax.jit(self._achieved_values)
        self._jacobian = jax.jit(self._compressed_jacobian)

    def _achieved_values(self, multipliers):
        model = self.om.copy()
        model.apply_effort_multipliers(multipliers, self.effort_year, self.effort_season)
        model.project_timestep(self.effort_timestep)
        return jnp.concatenate([jnp.asarray(model.achieved_value(r)) for r in self.rows])

    def _compressed_jacobian(self, multipliers):
        # iterations do not interact, so one tangent per fishery covering every
        # iteration recovers all non-zero derivatives
        tangents = jnp.repeat(jnp.eye(self.nfishery), self.niter, axis=1)

        def column(tangent):
            return jax.jvp(self._achieved_values, (multipliers,), (tangent,))[1]

        return jax.vmap(column, out_axes=1)(tangents)

    def achieved(self, multipliers) -> np.ndarray:
        """(ntarget * niter,) achieved values."""
        return np.asarray(self._achieved(jnp.asarray(multipliers, dtype=jnp.float64)))

    def jacobian(self, multipliers) -> np.ndarray:
        """(ntarget * niter, nfishery) derivatives of the achieved values.

        Row ``(target - 1) * niter + iter - 1`` holds the derivatives with
        respect to the multipliers of the same iteration, one per fishery.
        """
        return np.asarray(self._jacobian(jnp.asarray(multipliers, dtype=jnp.float64)))

    def initial_multipliers(self) -> np.ndarray:
        return np.full(self.nfishery * self.niter, EFFORT_MULT_INITIAL)

    def desired(self) -> np.ndarray:
        """(ntarget * niter,) desired values.

        Bounded rows are limited against the values the projection gives
        with the current effort.
        """
        base = self.achieved(self.initial_multipliers()).reshape(self.ntarget, self.niter)
        return np.concatenate(
            [self.om.desired_value(row, achieved=base[i]) for i, row in enumerate(self.rows)]
        )


def newton_raphson(
    initial: np.ndarray,
    residual: Callable[[np.ndarray], np.ndarray],
    jacobian: Callable[[np.ndarray], np.ndarray],
    niter: int,
    ntarget: int,
    config: SolverConfig,
) -> Tuple[np.ndarray, List[SolveStatus], List[int]]:
    """Solve ``residual(x) = 0`` separately for each iteration.

    Parameters
    ----------
    initial : np.ndarray
        (nindep * niter,) starting values, ordered independent-major
    residual : callable
        x -> (ntarget * niter,) residuals, ordered target-major
    jacobian : callable
        x -> (ntarget * niter, nindep) derivatives of the residuals; each row
        holds the derivatives with respect to its own iteration's values
    niter : int
        Number of independent iterations
    ntarget : int
        Number of residuals per iteration
    config : SolverConfig
        Iteration cap, tolerance and bounds on x

    Returns
    -------
    x : np.ndarray
        Solution, same layout as initial
    status : list of SolveStatus
        Per iteration
    steps : list of int
        Newton steps taken per iteration
    """
    x = np.array(initial, dtype=float)
    nindep = len(x) // niter
    x_index = [np.arange(nindep) * niter + i for i in range(niter)]
    r_index = [np.arange(ntarget) * niter + i for i in range(niter)]

    status = [SolveStatus.FAILED] * niter
    steps = [0] * niter
    active = set(range(niter))

    for _ in range(config.max_iters + 1):
        r = np.asarray(residual(x))
        for i in sorted(active):
            r_i = r[r_index[i]]
            if np.all(np.abs(r_i) < config.tolerance):
                status[i] = SolveStatus.CONVERGED
                active.discard(i)
            elif not np.all(np.isfinite(r_i)) or steps[i] >= config.max_iters:
                active.discard(i)
        if not active:
            break

        jac = np.asarray(jacobian(x))
        for i in sorted(active):
            jac_i = jac[r_index[i]]
            if not np.all(np.isfinite(jac_i)):
                active.discard(i)
                continue
            delta, *_ = linalg.lstsq(jac_i, r[r_index[i]])
            x[x_index[i]] = np.clip(x[x_index[i]] - delta, config.indep_min, config.indep_max)
            steps[i] += 1

    return x, status, steps


@dataclass
class TargetSetResult:
    """Outcome of solving one target set.

    Attributes
    ----------
    target_set : int
        Target set id
    rows : list of int
        0-based control rows solved together
    effort_timestep : int
        Timestep whose effort was changed
    multipliers : np.ndarray
        (nfishery, niter) effort multipliers committed to the model
    status : list of SolveStatus
        Per iteration
    iterations : list of int
        Newton steps taken per iteration
    desired : np.ndarray
        (ntarget, niter) target values
    achieved : np.ndarray
        (ntarget, niter) values after committing the multipliers
    """

    target_set: int
    rows: List[int]
    effort_timestep: int
    multipliers: np.ndarray
    status: List[SolveStatus]
    iterations: List[int]
    desired: np.ndarray
    achieved: np.ndarray

    @property
    def converged(self) -> bool:
        return all(s == SolveStatus.CONVERGED for s in self.status)

    @property
    def failed_iters(self) -> List[int]:
        """1-based iterations that did not converge."""
        return [i + 1 for i, s in enumerate(self.status) if s != SolveStatus.CONVERGED]


@dataclass
class RunResult:
    """Results of every target set of a run, in solving order."""

    target_sets: List[TargetSetResult] = field(default_factory=list)

    @property
    def converged(self) -> bool:
        return all(r.converged for r in self.target_sets)

    @property
    def failed_sets(self) -> List[int]:
        return [r.target_set for r in self.target_sets if not r.converged]

    def to_frame(self) -> pd.DataFrame:
        """One row per target set and iteration."""
        records = []
        for result in self.target_sets:
            for i, status in enumerate(result.status):
                record = {
                    "target_set": result.target_set,
                    "iter": i + 1,
                    "effort_timestep": result.effort_timestep,
                    "status": status.value,
                    "iterations": result.iterations[i],
                }
                for f, mult in enumerate(result.multipliers[:, i], start=1):
                    record[f"multiplier_{f}"] = mult
                records.append(record)
        return pd.DataFrame(records)


def solve_target_set(om, target_set: int, rows: Sequence[int], effort_timestep: int, config: SolverConfig) -> TargetSetResult:
    """Solve one target set and commit the effort multipliers to the model."""
    graph = TargetSetGraph(om, rows, effort_timestep)
    desired = graph.desired()
    logger.debug(f"Target set {target_set}: rows {[r + 1 for r in rows]}, effort timestep {effort_timestep}")

    multipliers, status, steps = newton_raphson(
        graph.initial_multipliers(),
        lambda x: graph.achieved(x) - desired,
        graph.jacobian,
        graph.niter,
        graph.ntarget,
        config,
    )

    om.apply_effort_multipliers(multipliers, graph.effort_year, graph.effort_season)
    om.project_timestep(effort_timestep)

    achieved = np.concatenate([np.asarray(om.achieved_value(r), dtype=float) for r in rows])
    result = TargetSetResult(
        target_set=target_set,
        rows=list(rows),
        effort_timestep=effort_timestep,
        multipliers=multipliers.reshape(graph.nfishery, graph.niter),
        status=status,
        iterations=steps,
        desired=desired.reshape(graph.ntarget, graph.niter),
        achieved=achieved.reshape(graph.ntarget, graph.niter),
    )
    if result.converged:
        logger.info(f"Target set {target_set} converged in at most {max(steps)} steps")
    else:
        warnings.warn(
            f"Target set {target_set}: iterations {result.failed_iters} did not converge "
            f"within {config.max_iters} steps",
            SolverConvergenceWarning,
        )
    return result
