"""
Fishing fleets and their catches.

A Fishery has an effort time series and one or more Catch objects. Each
Catch carries the catchability, selectivity and discard parameters that
turn effort into fishing mortality on the biols it fishes, and the
landings / discards numbers written by the projection.

Catchability is ``q = alpha * biomass ** -beta``, with alpha and beta in
slots 1 and 2 of ``catchability_params``.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional

from pyfwd.core.errors import ConfigurationError
from pyfwd.core.quant import MultiAxisArray


@dataclass
class Catch:
    """Catch of one fishery.

    Attributes:
        name: Catch name
        landings_n: Landed numbers at age (state)
        selectivity: Selectivity at age
        catchability_params: (2, ...) alpha and beta of the catchability
        discards_n: Discarded numbers at age (state, default 0)
        discard_ratio: Proportion of the catch discarded at age (default 0)
        landings_wt: Landed weight at age (default 1)
        discards_wt: Discarded weight at age (default 1)
    """

    name: str
    landings_n: MultiAxisArray
    selectivity: MultiAxisArray
    catchability_params: MultiAxisArray
    discards_n: Optional[MultiAxisArray] = None
    discard_ratio: Optional[MultiAxisArray] = None
    landings_wt: Optional[MultiAxisArray] = None
    discards_wt: Optional[MultiAxisArray] = None

    def __post_init__(self):
        self.landings_n = MultiAxisArray(self.landings_n)
        nage = self.landings_n.nquant
        if self.discards_n is None:
            self.discards_n = MultiAxisArray.filled(self.landings_n.dim, 0.0)
        else:
            self.discards_n = MultiAxisArray(self.discards_n)
            if self.discards_n.dim != self.landings_n.dim:
                raise ConfigurationError(
                    f"Catch '{self.name}': discards_n {self.discards_n.dim} and "
                    f"landings_n {self.landings_n.dim} differ"
                )

        defaults = {"discard_ratio": 0.0, "landings_wt": 1.0, "discards_wt": 1.0}
        for attr in ("selectivity", "discard_ratio", "landings_wt", "discards_wt"):
            values = getattr(self, attr)
            if values is None:
                values = MultiAxisArray.filled((nage, 1, 1, 1, 1, 1), defaults[attr])
            values = MultiAxisArray(values)
            if values.nquant != nage:
                raise ConfigurationError(
                    f"Catch '{self.name}': {attr} has {values.nquant} ages, landings_n has {nage}"
                )
            setattr(self, attr, values)

        self.catchability_params = MultiAxisArray(self.catchability_params)
        if self.catchability_params.nquant != 2:
            raise ConfigurationError(
                f"Catch '{self.name}': catchability_params must hold 2 parameters (alpha, beta)"
            )

    @property
    def nage(self) -> int:
        return self.landings_n.nquant

    def parameter_block(self, attr: str, year: int, season: int):
        """Recycled (quant, unit, area, iter) block of a parameter array."""
        dim = self.landings_n.dim
        return getattr(self, attr).recycled_timestep_slice(year, season, dim[2], dim[4], dim[5])

    def catch_n(self, year: int, season: int) -> MultiAxisArray:
        """Landings plus discards numbers at one timestep, as (age, 1, unit, 1, area, iter)."""
        block = self.landings_n.timestep_slice(year, season) + self.discards_n.timestep_slice(year, season)
        return MultiAxisArray(block[:, None, :, None, :, :])

    def _total_weight(self, numbers: str, weights: str, year: int, season: int):
        block = getattr(self, numbers).timestep_slice(year, season)
        block = block * self.parameter_block(weights, year, season)
        return MultiAxisArray(block.sum(axis=0, keepdims=True)[:, None, :, None, :, :])

    def landings(self, year: int, season: int) -> MultiAxisArray:
        """Total landed weight at one timestep."""
        return self._total_weight("landings_n", "landings_wt", year, season)

    def discards(self, year: int, season: int) -> MultiAxisArray:
        """Total discarded weight at one timestep."""
        return self._total_weight("discards_n", "discards_wt", year, season)

    def catches(self, year: int, season: int) -> MultiAxisArray:
        """Total caught weight (landings + discards) at one timestep."""
        return self.landings(year, season) + self.discards(year, season)

    def copy(self) -> "Catch":
        return replace(self, landings_n=self.landings_n.copy(), discards_n=self.discards_n.copy())


@dataclass
class Fishery:
    """A fishing fleet.

    Attributes:
        name: Fishery name
        effort: (1, year, unit, season, area, iter) fishing effort (state)
        catches: Catches taken by the fleet
        fishing_start_end: (2, ...) proportion of the timestep elapsed when
            fishing starts and ends (default 0 and 1, recycled)
    """

    name: str
    effort: MultiAxisArray
    catches: List[Catch] = field(default_factory=list)
    fishing_start_end: Optional[MultiAxisArray] = None

    def __post_init__(self):
        self.effort = MultiAxisArray(self.effort)
        if self.effort.nquant != 1:
            raise ConfigurationError(
                f"Fishery '{self.name}': effort must have a quant extent of 1"
            )
        if self.fishing_start_end is None:
            self.fishing_start_end = MultiAxisArray.filled((2, 1, 1, 1, 1, 1), 0.0)
            self.fishing_start_end.set(2, 1, 1, 1, 1, 1, 1.0)
        else:
            self.fishing_start_end = MultiAxisArray(self.fishing_start_end)
            if self.fishing_start_end.nquant != 2:
                raise ConfigurationError(
                    f"Fishery '{self.name}': fishing_start_end must hold 2 values (start, end)"
                )
        self.catches = list(self.catches)
        if not self.catches:
            raise ConfigurationError(f"Fishery '{self.name}' has no catches")
        for c in self.catches:
            if not isinstance(c, Catch):
                raise ConfigurationError(f"Fishery '{self.name}': catches must be Catch objects")

    @property
    def ncatch(self) -> int:
        return len(self.catches)

    def get_catch(self, catch_no: int) -> Catch:
        """Catch by 1-based position."""
        if catch_no < 1 or catch_no > self.ncatch:
            raise ConfigurationError(
                f"Fishery '{self.name}' has {self.ncatch} catches, asked for catch {catch_no}"
            )
        return self.catches[catch_no - 1]

    def copy(self) -> "Fishery":
        return replace(self, effort=self.effort.copy(), catches=[c.copy() for c in self.catches])
