"""
Age-structured stocks (biols).

A Biol holds the abundance of one stock together with its life-history
parameters and a stock-recruitment model. Abundance ``n`` is state and
is overwritten timestep by timestep during a projection; the other
arrays are parameters and are read with recycling.
"""

from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from pyfwd.core.errors import ConfigurationError
from pyfwd.core.quant import MultiAxisArray
from pyfwd.core.sr import StockRecruitmentModel


@dataclass
class Biol:
    """A single stock.

    Attributes:
        name: Stock name
        n: Abundance at the start of each timestep (age, year, unit, season, area, iter)
        m: Natural mortality rate
        wt: Mean weight at age
        mat: Proportion mature at age
        spwn: Proportion of the timestep elapsed at spawning (quant extent 1 or nage)
        srr: Stock-recruitment model
        fec: Fecundity at age (default 1)
        ages: Age label of each quant slot (default 1..nage)
    """

    name: str
    n: MultiAxisArray
    m: MultiAxisArray
    wt: MultiAxisArray
    mat: MultiAxisArray
    spwn: MultiAxisArray
    srr: StockRecruitmentModel
    fec: Optional[MultiAxisArray] = None
    ages: Optional[Sequence[int]] = field(default=None)

    def __post_init__(self):
        self.n = MultiAxisArray(self.n)
        nage = self.n.nquant
        for attr in ("m", "wt", "mat"):
            values = MultiAxisArray(getattr(self, attr))
            if values.nquant != nage:
                raise ConfigurationError(
                    f"Biol '{self.name}': {attr} has {values.nquant} ages, n has {nage}"
                )
            setattr(self, attr, values)

        if self.fec is None:
            self.fec = MultiAxisArray.filled((nage, 1, 1, 1, 1, 1), 1.0)
        else:
            self.fec = MultiAxisArray(self.fec)
            if self.fec.nquant != nage:
                raise ConfigurationError(
                    f"Biol '{self.name}': fec has {self.fec.nquant} ages, n has {nage}"
                )

        self.spwn = MultiAxisArray(self.spwn)
        if self.spwn.nquant not in (1, nage):
            raise ConfigurationError(
                f"Biol '{self.name}': spwn must have a quant extent of 1 or {nage}"
            )

        if self.ages is None:
            self.ages = list(range(1, nage + 1))
        else:
            self.ages = [int(a) for a in self.ages]
            if len(self.ages) != nage:
                raise ConfigurationError(
                    f"Biol '{self.name}': {len(self.ages)} age labels for {nage} ages"
                )

        if not isinstance(self.srr, StockRecruitmentModel):
            raise ConfigurationError(f"Biol '{self.name}': srr must be a StockRecruitmentModel")

    @property
    def nage(self) -> int:
        return self.n.nquant

    @property
    def niter(self) -> int:
        return self.n.niter

    def age_index(self, age: int) -> int:
        """1-based quant index of an age label."""
        try:
            return self.ages.index(int(age)) + 1
        except ValueError:
            raise ConfigurationError(
                f"Age {age} not in biol '{self.name}' (ages {self.ages[0]}-{self.ages[-1]})"
            ) from None

    def parameter_block(self, attr: str, year: int, season: int):
        """Recycled (quant, unit, area, iter) block of a parameter array."""
        return getattr(self, attr).recycled_timestep_slice(
            year, season, self.n.nunit, self.n.narea, self.n.niter
        )

    def biomass_block(self, year: int, season: int):
        n = self.n.timestep_slice(year, season)
        return (n * self.parameter_block("wt", year, season)).sum(axis=0, keepdims=True)

    def biomass(self, year: int, season: int) -> MultiAxisArray:
        """Total biomass (sum over ages of n * wt) at one timestep.

        Returns
        -------
        MultiAxisArray
            Dimensions (1, 1, nunit, 1, narea, niter)
        """
        block = self.biomass_block(year, season)
        return MultiAxisArray(block[:, None, :, None, :, :])

    def copy(self) -> "Biol":
        """Copy with independent arrays."""
        return replace(self, n=self.n.copy(), ages=list(self.ages))
