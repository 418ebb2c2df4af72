"""
Operating model: projection and target evaluation.

The OperatingModel combines biols, fisheries and a Control. It computes
fishing and total mortality, projects catches with the Baranov catch
equation, projects abundance (survival, ageing and recruitment) and
evaluates the quantities targeted by the control rows.

All timestep calculations work on whole blocks of shape
(quant, unit, area, iter). Public accessors return MultiAxisArrays of
shape (quant, 1, unit, 1, area, iter).

The same code runs on concrete numpy values and on JAX tracers, which is
how the solver differentiates the projection with respect to effort.

Example
-------
>>> om = OperatingModel([biol], [fishery], control)
>>> result = om.run()
>>> result.converged
True
"""

import copy
from typing import List, Optional, Sequence

import jax.numpy as jnp
import numpy as np

from pyfwd.core.biol import Biol
from pyfwd.core.config import SolverConfig
from pyfwd.core.control import ADDITIVE_TARGETS, Control, Target, TargetType
from pyfwd.core.errors import ConfigurationError
from pyfwd.core.fishery import Fishery
from pyfwd.core.quant import (
    MultiAxisArray,
    timestep_to_year_season,
    year_season_to_timestep,
)
from pyfwd.core.solver import RunResult, solve_target_set
from pyfwd.logger import get_logger

logger = get_logger(__name__)


def baranov(f, z, n):
    """Catch numbers from the Baranov equation, 0 where total mortality is 0."""
    positive = z > 0
    safe_z = jnp.where(positive, z, 1.0)
    return jnp.where(positive, f / safe_z * (1.0 - jnp.exp(-z)) * n, 0.0)


def _to_quant(block) -> MultiAxisArray:
    """(quant, unit, area, iter) block -> (quant, 1, unit, 1, area, iter) array."""
    return MultiAxisArray(block[:, None, :, None, :, :])


class OperatingModel:
    """Biols, fisheries and control for a forward projection.

    Parameters
    ----------
    biols : list of Biol
        Stocks, numbered from 1 in list order
    fisheries : list of Fishery
        Fleets, numbered from 1 in list order
    control : Control
        Targets and FCB fishing map
    solver_config : SolverConfig, optional
        Newton-Raphson settings
    """

    def __init__(
        self,
        biols: Sequence[Biol],
        fisheries: Sequence[Fishery],
        control: Control,
        solver_config: Optional[SolverConfig] = None,
    ):
        self.biols: List[Biol] = list(biols)
        self.fisheries: List[Fishery] = list(fisheries)
        self.control = control
        self.solver_config = solver_config or SolverConfig()
        self._validate()
        logger.debug(
            f"OperatingModel with {self.nbiol} biols, {self.nfishery} fisheries, "
            f"{self.control.nrow} targets, {self.niter} iterations"
        )

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        if not self.biols:
            raise ConfigurationError("OperatingModel needs at least one biol")
        if not self.fisheries:
            raise ConfigurationError("OperatingModel needs at least one fishery")

        dim = self.biols[0].n.dim[1:]
        for biol in self.biols:
            if biol.niter != self.biols[0].niter:
                raise ConfigurationError(
                    f"Biol '{biol.name}' has {biol.niter} iterations, "
                    f"biol '{self.biols[0].name}' has {self.biols[0].niter}"
                )
            if biol.n.dim[1:] != dim:
                raise ConfigurationError(
                    f"Biol '{biol.name}' n has dimensions {biol.n.dim[1:]}, expected {dim}"
                )
        if self.control.niter != self.niter:
            raise ConfigurationError(
                f"Control has {self.control.niter} iterations, biols have {self.niter}"
            )

        for fishery in self.fisheries:
            if fishery.effort.dim[1:] != dim:
                raise ConfigurationError(
                    f"Fishery '{fishery.name}' effort has dimensions "
                    f"{fishery.effort.dim[1:]}, expected {dim}"
                )
            for catch in fishery.catches:
                if catch.landings_n.dim[1:] != dim:
                    raise ConfigurationError(
                        f"Catch '{catch.name}' has dimensions "
                        f"{catch.landings_n.dim[1:]}, expected {dim}"
                    )

        for fishery_no, catch_no, biol_no in self.control.fcb:
            self._check_fcb(fishery_no, catch_no, biol_no)
            catch = self.fisheries[fishery_no - 1].catches[catch_no - 1]
            biol = self.biols[biol_no - 1]
            if catch.nage != biol.nage:
                raise ConfigurationError(
                    f"Catch '{catch.name}' has {catch.nage} ages but fishes "
                    f"biol '{biol.name}' with {biol.nage}"
                )

        for fishery_no, fishery in enumerate(self.fisheries, start=1):
            for catch_no, catch in enumerate(fishery.catches, start=1):
                if not self.control.get_b(fishery_no, catch_no):
                    raise ConfigurationError(
                        f"Catch '{catch.name}' of fishery '{fishery.name}' does not fish any biol"
                    )

        for row in range(self.control.nrow):
            self._check_target(self.control.target(row))
        for target_set in self.control.target_sets:
            rows = self.control.rows_in_set(target_set)
            timesteps = {self.control.target_effort_timestep(r, self.nseason) for r in rows}
            if len(timesteps) > 1:
                raise ConfigurationError(
                    f"Targets in target set {target_set} are driven by different "
                    f"effort timesteps {sorted(timesteps)}"
                )
            if min(timesteps) < 1:
                raise ConfigurationError(
                    f"Target set {target_set} needs effort before the first timestep"
                )

    def _check_fcb(self, fishery_no, catch_no, biol_no) -> None:
        if fishery_no is not None and not 1 <= fishery_no <= self.nfishery:
            raise ConfigurationError(f"Fishery {fishery_no} does not exist ({self.nfishery} fisheries)")
        if catch_no is not None:
            if fishery_no is None:
                raise ConfigurationError("A catch was given without its fishery")
            ncatch = self.fisheries[fishery_no - 1].ncatch
            if not 1 <= catch_no <= ncatch:
                raise ConfigurationError(
                    f"Catch {catch_no} does not exist in fishery {fishery_no} ({ncatch} catches)"
                )
        if biol_no is not None and not 1 <= biol_no <= self.nbiol:
            raise ConfigurationError(f"Biol {biol_no} does not exist ({self.nbiol} biols)")

    def _check_target(self, target: Target) -> None:
        where = f"Target row {target.row + 1}"
        timesteps = [(target.year, target.season)]
        if target.is_relative:
            timesteps.append((target.rel_year, target.rel_season))
        for year, season in timesteps:
            if year > self.nyear or season > self.nseason:
                raise ConfigurationError(
                    f"{where}: year {year} / season {season} outside the projection "
                    f"({self.nyear} years, {self.nseason} seasons)"
                )
        references = [self._references(target, relative=False)]
        if target.is_relative:
            references.append(self._references(target, relative=True))
        for fishery_no, catch_no, biol_no in references:
            try:
                self._check_fcb(fishery_no, catch_no, biol_no)
            except ConfigurationError as e:
                raise ConfigurationError(f"{where}: {e}") from None
            if target.target_type == TargetType.FBAR:
                if biol_no is None:
                    raise ConfigurationError(f"{where}: fbar targets need a biol")
                self._age_range(target, biol_no)
            elif target.target_type in (TargetType.SRP, TargetType.BIOMASS):
                if biol_no is None:
                    raise ConfigurationError(f"{where}: {target.target_type.value} targets need a biol")
            else:
                if fishery_no is not None and catch_no is None:
                    raise ConfigurationError(
                        f"{where}: {target.target_type.value} targets with a fishery need its catch"
                    )
                if catch_no is not None and biol_no is not None:
                    raise ConfigurationError(
                        f"{where}: {target.target_type.value} of a particular catch on a "
                        "particular biol is not supported; give the catch or the biol"
                    )
                if catch_no is None and biol_no is None:
                    raise ConfigurationError(
                        f"{where}: {target.target_type.value} targets need a catch or a biol"
                    )

    @staticmethod
    def _references(target: Target, relative: bool):
        """(fishery, catch, biol) used by a target or by its relative reference.

        A relative target with no rel_fishery, rel_catch or rel_biol refers to
        the same quantity as the target itself.
        """
        if relative and any(
            r is not None for r in (target.rel_fishery, target.rel_catch, target.rel_biol)
        ):
            return target.rel_fishery, target.rel_catch, target.rel_biol
        return target.fishery, target.catch, target.biol

    def _age_range(self, target: Target, biol_no: int):
        """0-based slice of the target age range in a biol."""
        biol = self.biols[biol_no - 1]
        first = biol.age_index(target.age_min)
        last = biol.age_index(target.age_max)
        if first > last:
            raise ConfigurationError(
                f"Target row {target.row + 1}: age_min {target.age_min} is above age_max {target.age_max}"
            )
        return slice(first - 1, last)

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    @property
    def nbiol(self) -> int:
        return len(self.biols)

    @property
    def nfishery(self) -> int:
        return len(self.fisheries)

    @property
    def nyear(self) -> int:
        return self.biols[0].n.nyear

    @property
    def nunit(self) -> int:
        return self.biols[0].n.nunit

    @property
    def nseason(self) -> int:
        return self.biols[0].n.nseason

    @property
    def narea(self) -> int:
        return self.biols[0].n.narea

    @property
    def niter(self) -> int:
        return self.biols[0].n.niter

    @property
    def ntimestep(self) -> int:
        return self.nyear * self.nseason

    def copy(self) -> "OperatingModel":
        """Copy with independent biol and fishery state; the control is shared."""
        clone = copy.copy(self)
        clone.biols = [b.copy() for b in self.biols]
        clone.fisheries = [f.copy() for f in self.fisheries]
        return clone

    def _block_dims(self):
        return self.nunit, self.narea, self.niter

    # ------------------------------------------------------------------
    # Mortality
    # ------------------------------------------------------------------

    def _fishing_mortality_block(self, fishery_no, catch_no, biol_no, year, season):
        fishery = self.fisheries[fishery_no - 1]
        catch = fishery.catches[catch_no - 1]
        biol = self.biols[biol_no - 1]
        effort = fishery.effort.timestep_slice(year, season)
        selectivity = catch.parameter_block("selectivity", year, season)
        q_params = catch.catchability_params.recycled_timestep_slice(year, season, *self._block_dims())
        biomass = biol.biomass_block(year, season)
        catchability = q_params[0:1] * biomass ** (-q_params[1:2])
        return catchability * effort * selectivity

    def _partial_f_block(self, fishery_no, catch_no, biol_no, year, season):
        if not self.control.fishes(fishery_no, catch_no, biol_no):
            return jnp.zeros((self.biols[biol_no - 1].nage,) + self._block_dims())
        return self._fishing_mortality_block(fishery_no, catch_no, biol_no, year, season)

    def _total_f_block(self, biol_no, year, season):
        total = jnp.zeros((self.biols[biol_no - 1].nage,) + self._block_dims())
        for fishery_no, catch_no in self.control.get_fc(biol_no):
            total = total + self._fishing_mortality_block(fishery_no, catch_no, biol_no, year, season)
        return total

    def _total_z_block(self, biol_no, year, season):
        m = self.biols[biol_no - 1].parameter_block("m", year, season)
        return self._total_f_block(biol_no, year, season) + m

    def fishing_mortality(self, fishery_no: int, catch_no: int, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """F at age on a biol from one catch: effort * selectivity * alpha * biomass ** -beta."""
        return _to_quant(self._fishing_mortality_block(fishery_no, catch_no, biol_no, year, season))

    def partial_fishing_mortality(self, fishery_no: int, catch_no: int, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """F at age from one catch, or zeros if the catch does not fish the biol."""
        return _to_quant(self._partial_f_block(fishery_no, catch_no, biol_no, year, season))

    def total_fishing_mortality(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """F at age summed over every catch that fishes the biol."""
        return _to_quant(self._total_f_block(biol_no, year, season))

    def total_mortality(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """Z = total F + M."""
        return _to_quant(self._total_z_block(biol_no, year, season))

    def f_prop_spawn(self, fishery_no: int, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """Proportion of a fishery's fishing that happens before the biol spawns.

        1 if fishing ends before spawning, 0 if it starts after, and the
        elapsed fraction of the fishing period otherwise.
        """
        fishery = self.fisheries[fishery_no - 1]
        biol = self.biols[biol_no - 1]
        timing = np.asarray(
            fishery.fishing_start_end.recycled_timestep_slice(year, season, *self._block_dims())
        )
        start, end = timing[0:1], timing[1:2]
        spwn = np.asarray(biol.parameter_block("spwn", year, season))[0:1]
        span = np.where(end > start, end - start, 1.0)
        during = np.where(end > start, (spwn - start) / span, 1.0)
        prop = np.where(end < spwn, 1.0, np.where(start > spwn, 0.0, during))
        return _to_quant(prop)

    # ------------------------------------------------------------------
    # Abundance
    # ------------------------------------------------------------------

    def _srp_block(self, biol_no, year, season):
        biol = self.biols[biol_no - 1]
        n = biol.n.timestep_slice(year, season)
        wt = biol.parameter_block("wt", year, season)
        mat = biol.parameter_block("mat", year, season)
        m = biol.parameter_block("m", year, season)
        spwn = biol.parameter_block("spwn", year, season)
        return (n * wt * mat * jnp.exp(-m * spwn)).sum(axis=0, keepdims=True)

    def spawning_potential(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """Spawning reproductive potential: sum over ages of n * wt * mat * exp(-m * spwn)."""
        return _to_quant(self._srp_block(biol_no, year, season))

    def _recruitment_block(self, biol_no, year, season):
        biol = self.biols[biol_no - 1]
        srr = biol.srr
        timestep = year_season_to_timestep(year, season, self.nseason)
        units = []
        srp = None
        for unit in range(1, self.nunit + 1):
            if not srr.does_recruitment_happen(unit, year, season):
                units.append(jnp.zeros((1, self.narea, self.niter)))
                continue
            if srp is None:
                srp_timestep = timestep - srr.timelag
                if srp_timestep < 1:
                    raise ConfigurationError(
                        f"Biol '{biol.name}' recruits at timestep {timestep} but spawning "
                        f"{srr.timelag} timesteps earlier is before the first timestep"
                    )
                srp = self._srp_block(biol_no, *timestep_to_year_season(srp_timestep, self.nseason))
            unit_srp = MultiAxisArray(jnp.reshape(srp[:, unit - 1], (1, 1, 1, 1, self.narea, self.niter)))
            rec = srr.predict_recruitment(unit_srp, (year, unit, season, 1, 1))
            units.append(jnp.reshape(rec.data, (1, self.narea, self.niter)))
        return jnp.stack(units, axis=1)

    def recruitment(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """Recruits entering the first age at a timestep (0 for units that do not recruit)."""
        return _to_quant(self._recruitment_block(biol_no, year, season))

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def _check_timestep(self, timestep: int) -> None:
        if not 1 <= timestep <= self.ntimestep:
            raise ValueError(f"Timestep {timestep} outside 1..{self.ntimestep}")

    def project_fisheries(self, timestep: int) -> None:
        """Landings and discards numbers of every catch at a timestep.

        Catch numbers are summed over the biols each catch fishes and split
        into landings and discards with the discard ratio.
        """
        self._check_timestep(timestep)
        year, season = timestep_to_year_season(timestep, self.nseason)
        z = {}
        for fishery_no, fishery in enumerate(self.fisheries, start=1):
            for catch_no, catch in enumerate(fishery.catches, start=1):
                biol_nos = self.control.get_b(fishery_no, catch_no)
                if not biol_nos:
                    raise ConfigurationError(
                        f"Catch '{catch.name}' of fishery '{fishery.name}' does not fish any biol"
                    )
                catch_n = jnp.zeros((catch.nage,) + self._block_dims())
                for biol_no in biol_nos:
                    if biol_no not in z:
                        z[biol_no] = self._total_z_block(biol_no, year, season)
                    f = self._fishing_mortality_block(fishery_no, catch_no, biol_no, year, season)
                    n = self.biols[biol_no - 1].n.timestep_slice(year, season)
                    catch_n = catch_n + baranov(f, z[biol_no], n)
                discard_ratio = catch.parameter_block("discard_ratio", year, season)
                catch.landings_n.set_timestep_slice(year, season, catch_n * (1.0 - discard_ratio))
                catch.discards_n.set_timestep_slice(year, season, catch_n * discard_ratio)

    def project_biols(self, timestep: int) -> None:
        """Abundance at a timestep from the previous one.

        Survivors of the previous timestep age by one at the start of each
        year (season 1), with the last age a plus group. Recruits are added
        to the first age.
        """
        if timestep < 2:
            raise ValueError(f"Cannot project biols into timestep {timestep}; it must be >= 2")
        self._check_timestep(timestep)
        year, season = timestep_to_year_season(timestep, self.nseason)
        prev_year, prev_season = timestep_to_year_season(timestep - 1, self.nseason)
        for biol_no, biol in enumerate(self.biols, start=1):
            n_prev = biol.n.timestep_slice(prev_year, prev_season)
            survivors = n_prev * jnp.exp(-self._total_z_block(biol_no, prev_year, prev_season))
            if season == 1 and biol.nage > 1:
                survivors = jnp.concatenate(
                    [
                        jnp.zeros_like(survivors[:1]),
                        survivors[:-2],
                        survivors[-2:-1] + survivors[-1:],
                    ],
                    axis=0,
                )
            recruits = self._recruitment_block(biol_no, year, season)
            n_new = jnp.concatenate([survivors[:1] + recruits, survivors[1:]], axis=0)
            biol.n.set_timestep_slice(year, season, n_new)

    def project_timestep(self, timestep: int) -> None:
        """Catches at a timestep, then abundance at the next timestep if there is one."""
        self.project_fisheries(timestep)
        if timestep + 1 <= self.ntimestep:
            self.project_biols(timestep + 1)

    def apply_effort_multipliers(self, multipliers, year: int, season: int) -> None:
        """Scale effort at one timestep, all units and areas.

        Parameters
        ----------
        multipliers : array-like
            (nfishery * niter,) multipliers ordered fishery-major
        """
        multipliers = jnp.reshape(jnp.asarray(multipliers), (self.nfishery, self.niter))
        for fishery_no, fishery in enumerate(self.fisheries, start=1):
            effort = fishery.effort.timestep_slice(year, season)
            scaled = effort * jnp.reshape(multipliers[fishery_no - 1], (1, 1, 1, self.niter))
            fishery.effort.set_timestep_slice(year, season, scaled)

    # ------------------------------------------------------------------
    # Catches by biol
    # ------------------------------------------------------------------

    def _biol_catch_weights(self, biol_no, year, season):
        """(landings, discards) weight blocks of a biol summed over its catches."""
        landings = jnp.zeros((1,) + self._block_dims())
        discards = jnp.zeros((1,) + self._block_dims())
        z = None
        for fishery_no, catch_no in self.control.get_fc(biol_no):
            catch = self.fisheries[fishery_no - 1].catches[catch_no - 1]
            if self.control.get_b(fishery_no, catch_no) == [biol_no]:
                landings_n = catch.landings_n.timestep_slice(year, season)
                discards_n = catch.discards_n.timestep_slice(year, season)
            else:
                # catch is shared with other biols: partition it again
                if z is None:
                    z = self._total_z_block(biol_no, year, season)
                f = self._fishing_mortality_block(fishery_no, catch_no, biol_no, year, season)
                catch_n = baranov(f, z, self.biols[biol_no - 1].n.timestep_slice(year, season))
                discard_ratio = catch.parameter_block("discard_ratio", year, season)
                landings_n = catch_n * (1.0 - discard_ratio)
                discards_n = catch_n * discard_ratio
            landings_wt = catch.parameter_block("landings_wt", year, season)
            discards_wt = catch.parameter_block("discards_wt", year, season)
            landings = landings + (landings_n * landings_wt).sum(axis=0, keepdims=True)
            discards = discards + (discards_n * discards_wt).sum(axis=0, keepdims=True)
        return landings, discards

    def biol_landings(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        """Landed weight of a biol summed over the catches that fish it."""
        return _to_quant(self._biol_catch_weights(biol_no, year, season)[0])

    def biol_discards(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        return _to_quant(self._biol_catch_weights(biol_no, year, season)[1])

    def biol_catches(self, biol_no: int, year: int, season: int) -> MultiAxisArray:
        landings, discards = self._biol_catch_weights(biol_no, year, season)
        return _to_quant(landings + discards)

    # ------------------------------------------------------------------
    # Targets
    # ------------------------------------------------------------------

    def _target_block(self, target: Target, year, season, relative: bool):
        fishery_no, catch_no, biol_no = self._references(target, relative)
        target_type = target.target_type

        if target_type == TargetType.FBAR:
            ages = self._age_range(target, biol_no)
            if catch_no is not None:
                f = self._partial_f_block(fishery_no, catch_no, biol_no, year, season)
            else:
                f = self._total_f_block(biol_no, year, season)
            return f[ages].mean(axis=0, keepdims=True)

        if target_type == TargetType.SRP:
            return self._srp_block(biol_no, year, season)

        if target_type == TargetType.BIOMASS:
            return self.biols[biol_no - 1].biomass_block(year, season)

        if catch_no is not None:
            catch = self.fisheries[fishery_no - 1].catches[catch_no - 1]
            landings = (
                catch.landings_n.timestep_slice(year, season)
                * catch.parameter_block("landings_wt", year, season)
            ).sum(axis=0, keepdims=True)
            discards = (
                catch.discards_n.timestep_slice(year, season)
                * catch.parameter_block("discards_wt", year, season)
            ).sum(axis=0, keepdims=True)
        else:
            landings, discards = self._biol_catch_weights(biol_no, year, season)

        if target_type == TargetType.LANDINGS:
            return landings
        if target_type == TargetType.DISCARDS:
            return discards
        return landings + discards

    def evaluate(self, row: int, year: int, season: int, relative: bool = False):
        """Value of a target quantity at a timestep, one per iteration.

        Additive quantities (catches, srp, biomass) are summed over units
        and areas; fbar is averaged over them.

        Parameters
        ----------
        row : int
            0-based control row
        year, season : int
            Timestep to evaluate at
        relative : bool
            Use the row's rel_fishery / rel_catch / rel_biol references

        Returns
        -------
        array of shape (niter,)
        """
        target = self.control.target(row)
        block = self._target_block(target, year, season, relative)
        if target.target_type in ADDITIVE_TARGETS:
            return block.sum(axis=(0, 1, 2))
        return block.mean(axis=(0, 1, 2))

    def achieved_value(self, row: int):
        """Current value of a target.

        For relative rows (rel_year set) this is the reference value divided
        by the current value.
        """
        target = self.control.target(row)
        value = self.evaluate(row, target.year, target.season)
        if target.is_relative:
            reference = self.evaluate(row, target.rel_year, target.rel_season, relative=True)
            value = reference / value
        return value

    def desired_value(self, row: int, achieved=None) -> np.ndarray:
        """Target value per iteration.

        For rows with a min and / or max, the achieved value limited to
        those bounds. ``achieved`` defaults to the current achieved value.
        """
        target = self.control.target(row)
        values = self.control.target_values(row)
        if not target.is_bounded:
            return np.array(values[1], dtype=float)
        if achieved is None:
            achieved = self.achieved_value(row)
        desired = np.array(achieved, dtype=float)
        if target.has_max:
            desired = np.minimum(desired, values[2])
        if target.has_min:
            desired = np.maximum(desired, values[0])
        return desired

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> RunResult:
        """Solve every target set in order, updating effort and the projection.

        Returns
        -------
        RunResult
            Status, multipliers and iteration counts of each target set
        """
        effort_timesteps = [
            self.control.target_effort_timestep(r, self.nseason) for r in range(self.control.nrow)
        ]
        first = min(effort_timesteps)
        if first >= 2:
            self.project_biols(first)

        results = []
        for target_set in self.control.target_sets:
            rows = self.control.rows_in_set(target_set)
            results.append(
                solve_target_set(self, target_set, rows, effort_timesteps[rows[0]], self.solver_config)
            )
        run_result = RunResult(results)
        if run_result.converged:
            logger.info(f"All {len(results)} target sets converged")
        else:
            logger.warning(f"{len(run_result.failed_sets)} of {len(results)} target sets did not converge")
        return run_result
