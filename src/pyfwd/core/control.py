"""
Projection control: management targets and the fishing map.

Targets are held in a pandas DataFrame, one row per target. Rows that
share a ``target_set`` are solved simultaneously; sets are solved in the
order they first appear. Per-iteration target values live in ``iters``,
a (nrow, 3, niter) array of min / value / max.

The FCB map lists which (fishery, catch) pairs fish which biol. All
numbers (fishery, catch, biol, year, season) are 1-based positions.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd

from pyfwd.core.errors import ConfigurationError
from pyfwd.core.quant import year_season_to_timestep


class TargetType(Enum):
    """Quantity a target constrains."""

    FBAR = "fbar"
    CATCH = "catch"
    LANDINGS = "landings"
    DISCARDS = "discards"
    SRP = "srp"
    BIOMASS = "biomass"


# Abundance targets are driven by effort in the previous timestep
ABUNDANCE_TARGETS = (TargetType.SRP, TargetType.BIOMASS)

# Quantities summed (rather than averaged) over units and areas
ADDITIVE_TARGETS = (
    TargetType.CATCH,
    TargetType.LANDINGS,
    TargetType.DISCARDS,
    TargetType.SRP,
    TargetType.BIOMASS,
)

REFERENCE_COLUMNS = [
    "year", "season", "fishery", "catch", "biol",
    "rel_year", "rel_season", "rel_fishery", "rel_catch", "rel_biol",
    "age_min", "age_max",
]
BOUND_COLUMNS = ["min", "value", "max"]
TARGET_COLUMNS = ["target_set", "target_type"] + REFERENCE_COLUMNS + BOUND_COLUMNS


def _optional_int(value) -> Optional[int]:
    return None if pd.isna(value) else int(value)


@dataclass(frozen=True)
class Target:
    """One control row with missing references as None.

    Attributes:
        row: 0-based row position in the control
        target_set: Set the row is solved in
        target_type: Quantity being constrained
        year, season: Target timestep
        fishery, catch, biol: Target references
        rel_year, rel_season, rel_fishery, rel_catch, rel_biol: Reference
            quantity of a relative target
        age_min, age_max: Age range for fbar targets
        has_min, has_max: Whether the row is bounded rather than fixed
    """

    row: int
    target_set: int
    target_type: TargetType
    year: int
    season: int
    fishery: Optional[int] = None
    catch: Optional[int] = None
    biol: Optional[int] = None
    rel_year: Optional[int] = None
    rel_season: Optional[int] = None
    rel_fishery: Optional[int] = None
    rel_catch: Optional[int] = None
    rel_biol: Optional[int] = None
    age_min: Optional[int] = None
    age_max: Optional[int] = None
    has_min: bool = False
    has_max: bool = False

    @property
    def is_relative(self) -> bool:
        return self.rel_year is not None

    @property
    def is_bounded(self) -> bool:
        return self.has_min or self.has_max


class Control:
    """Targets, per-iteration values and the FCB fishing map.

    Parameters
    ----------
    targets : pd.DataFrame
        One row per target. Needs ``target_type`` and ``year``; every
        other column of TARGET_COLUMNS is optional. Missing
        ``target_set`` puts each row in its own set, missing ``season``
        means season 1.
    fcb : array-like
        (n, 3) integer (fishery, catch, biol) triples
    iters : np.ndarray, optional
        (nrow, 3, niter) min / value / max per iteration. Defaults to the
        min / value / max columns repeated over niter.
    niter : int, optional
        Number of iterations when iters is not given (default 1)
    """

    def __init__(
        self,
        targets: pd.DataFrame,
        fcb,
        iters: Optional[np.ndarray] = None,
        niter: Optional[int] = None,
    ):
        self._targets = self._normalise_targets(targets)
        self._fcb = self._normalise_fcb(fcb)
        self._iters = self._normalise_iters(iters, niter)
        self._iters.setflags(write=False)
        self._check_values()

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _normalise_targets(targets: pd.DataFrame) -> pd.DataFrame:
        if not isinstance(targets, pd.DataFrame):
            raise ConfigurationError("targets must be a pandas DataFrame")
        if len(targets) == 0:
            raise ConfigurationError("Control needs at least one target")
        missing = [c for c in ("target_type", "year") if c not in targets.columns]
        if missing:
            raise ConfigurationError(f"targets is missing required columns: {missing}")
        unknown = [c for c in targets.columns if c not in TARGET_COLUMNS]
        if unknown:
            raise ConfigurationError(f"Unknown target columns: {unknown}")

        df = targets.reset_index(drop=True).copy()
        if "target_set" not in df.columns:
            df["target_set"] = np.arange(1, len(df) + 1)
        if "season" not in df.columns:
            df["season"] = 1

        try:
            df["target_type"] = [TargetType(str(t).lower()).value for t in df["target_type"]]
        except ValueError as e:
            raise ConfigurationError(
                f"{e}. Valid target types: {[t.value for t in TargetType]}"
            ) from None

        for col in ["target_set"] + REFERENCE_COLUMNS:
            if col not in df.columns:
                df[col] = np.nan
            values = pd.to_numeric(df[col], errors="coerce")
            present = values.dropna()
            if (present != present.round()).any() or (present < 1).any():
                raise ConfigurationError(f"Column '{col}' must hold positive integers")
            df[col] = values.astype("Int64")

        for col in BOUND_COLUMNS:
            if col not in df.columns:
                df[col] = np.nan
            df[col] = pd.to_numeric(df[col], errors="coerce").astype(float)

        for col in ("target_set", "year", "season"):
            if df[col].isna().any():
                raise ConfigurationError(f"Column '{col}' cannot have missing values")

        return df[TARGET_COLUMNS]

    @staticmethod
    def _normalise_fcb(fcb) -> np.ndarray:
        fcb = np.asarray(fcb)
        if fcb.ndim != 2 or fcb.shape[1] != 3 or fcb.shape[0] == 0:
            raise ConfigurationError(f"fcb must be an (n, 3) array, got shape {fcb.shape}")
        if (fcb != np.round(fcb)).any() or (fcb < 1).any():
            raise ConfigurationError("fcb must hold positive integers")
        fcb = fcb.astype(int)
        if len({tuple(r) for r in fcb}) != len(fcb):
            raise ConfigurationError("fcb has duplicated (fishery, catch, biol) rows")
        return fcb

    def _normalise_iters(self, iters, niter) -> np.ndarray:
        nrow = len(self._targets)
        if iters is None:
            niter = 1 if niter is None else int(niter)
            if niter < 1:
                raise ConfigurationError(f"niter must be >= 1, got {niter}")
            bounds = self._targets[BOUND_COLUMNS].to_numpy(dtype=float)
            return np.repeat(bounds[:, :, None], niter, axis=2)
        iters = np.array(iters, dtype=float)
        if iters.ndim != 3 or iters.shape[0] != nrow or iters.shape[1] != 3:
            raise ConfigurationError(
                f"iters must have shape ({nrow}, 3, niter), got {iters.shape}"
            )
        if niter is not None and iters.shape[2] != niter:
            raise ConfigurationError(f"iters has {iters.shape[2]} iterations, expected {niter}")
        return iters

    def _check_values(self) -> None:
        for i in range(self.nrow):
            target = self.target(i)
            values = self._iters[i]
            if target.has_min and np.isnan(values[0]).any():
                raise ConfigurationError(f"Target row {i + 1}: min is missing for some iterations")
            if target.has_max and np.isnan(values[2]).any():
                raise ConfigurationError(f"Target row {i + 1}: max is missing for some iterations")
            if not target.is_bounded and np.isnan(values[1]).any():
                raise ConfigurationError(f"Target row {i + 1}: value is missing for some iterations")
            if target.target_type == TargetType.FBAR and (target.age_min is None or target.age_max is None):
                raise ConfigurationError(f"Target row {i + 1}: fbar targets need age_min and age_max")
            if (target.rel_year is None) != (target.rel_season is None):
                raise ConfigurationError(
                    f"Target row {i + 1}: rel_year and rel_season must both be set or both be missing"
                )

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    @property
    def targets(self) -> pd.DataFrame:
        return self._targets.copy()

    @property
    def iters(self) -> np.ndarray:
        return self._iters

    @property
    def nrow(self) -> int:
        return len(self._targets)

    @property
    def niter(self) -> int:
        return self._iters.shape[2]

    @property
    def fcb(self) -> np.ndarray:
        return self._fcb.copy()

    @property
    def target_sets(self) -> List[int]:
        """Target set ids in solving order."""
        return [int(s) for s in pd.unique(self._targets["target_set"])]

    def rows_in_set(self, target_set: int) -> List[int]:
        """0-based rows of a target set, in row order."""
        mask = (self._targets["target_set"] == target_set).to_numpy(dtype=bool)
        rows = np.flatnonzero(mask).tolist()
        if not rows:
            raise ConfigurationError(f"No targets in target set {target_set}")
        return rows

    def target(self, row: int) -> Target:
        """Typed view of one control row."""
        record = self._targets.iloc[row]
        refs = {col: _optional_int(record[col]) for col in REFERENCE_COLUMNS}
        return Target(
            row=row,
            target_set=int(record["target_set"]),
            target_type=TargetType(record["target_type"]),
            has_min=not pd.isna(record["min"]),
            has_max=not pd.isna(record["max"]),
            **refs,
        )

    def target_values(self, row: int) -> np.ndarray:
        """(3, niter) min / value / max of one row."""
        return self._iters[row]

    def target_timestep(self, row: int, nseason: int = 1) -> int:
        target = self.target(row)
        return year_season_to_timestep(target.year, target.season, nseason)

    def target_effort_timestep(self, row: int, nseason: int = 1) -> int:
        """Timestep whose effort determines the target quantity.

        Abundance targets (srp, biomass) depend on the effort of the
        previous timestep; all others on the effort of the target timestep.
        """
        timestep = self.target_timestep(row, nseason)
        if self.target(row).target_type in ABUNDANCE_TARGETS:
            timestep -= 1
        return timestep

    # ------------------------------------------------------------------
    # Fishing map
    # ------------------------------------------------------------------

    def get_fc(self, biol: int) -> List[Tuple[int, int]]:
        """(fishery, catch) pairs that fish a biol."""
        rows = self._fcb[self._fcb[:, 2] == biol]
        return [(int(f), int(c)) for f, c, _ in rows]

    def get_b(self, fishery: int, catch: int) -> List[int]:
        """Biols fished by a (fishery, catch) pair."""
        rows = self._fcb[(self._fcb[:, 0] == fishery) & (self._fcb[:, 1] == catch)]
        return [int(b) for b in rows[:, 2]]

    def fishes(self, fishery: int, catch: int, biol: int) -> bool:
        return biol in self.get_b(fishery, catch)

    def __repr__(self) -> str:
        return f"Control(nrow={self.nrow}, nsets={len(self.target_sets)}, niter={self.niter})"
