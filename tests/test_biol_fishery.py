"""
Tests for Biol, Fishery and Catch containers.
"""

import numpy as np
import pytest

from pyfwd.core.biol import Biol
from pyfwd.core.errors import ConfigurationError
from pyfwd.core.fishery import Catch, Fishery
from pyfwd.core.quant import MultiAxisArray
from pyfwd.core.sr import StockRecruitmentModel


def filled(nquant, value, dim=(2, 1, 1, 1, 1)):
    return MultiAxisArray.filled((nquant,) + tuple(dim), value)


def make_biol(nage=3, **kwargs):
    n = MultiAxisArray(np.arange(1, nage + 1, dtype=float).reshape(nage, 1, 1, 1, 1, 1) * np.ones((1, 2, 1, 1, 1, 1)))
    args = dict(
        name="cod",
        n=n,
        m=filled(nage, 0.2, (1, 1, 1, 1, 1)),
        wt=filled(nage, 2.0, (1, 1, 1, 1, 1)),
        mat=filled(nage, 1.0, (1, 1, 1, 1, 1)),
        spwn=filled(1, 0.0, (1, 1, 1, 1, 1)),
        srr=StockRecruitmentModel("constant", filled(1, 10.0, (1, 1, 1, 1, 1))),
    )
    args.update(kwargs)
    return Biol(**args)


def make_catch(nage=3, **kwargs):
    args = dict(
        name="trawl catch",
        landings_n=filled(nage, 0.0),
        selectivity=filled(nage, 1.0, (1, 1, 1, 1, 1)),
        catchability_params=MultiAxisArray(np.array([0.1, 0.0]).reshape(2, 1, 1, 1, 1, 1)),
    )
    args.update(kwargs)
    return Catch(**args)


class TestBiol:
    """Test Biol construction and derived quantities."""

    def test_defaults(self):
        """Fecundity defaults to 1 and ages to 1..nage."""
        biol = make_biol()
        assert biol.nage == 3
        assert biol.ages == [1, 2, 3]
        assert np.all(biol.fec.to_numpy() == 1.0)

    def test_age_labels(self):
        biol = make_biol(ages=[0, 1, 2])
        assert biol.age_index(0) == 1
        assert biol.age_index(2) == 3
        with pytest.raises(ConfigurationError):
            biol.age_index(3)

    def test_mismatched_ages(self):
        with pytest.raises(ConfigurationError):
            make_biol(m=filled(2, 0.2, (1, 1, 1, 1, 1)))
        with pytest.raises(ConfigurationError):
            make_biol(ages=[1, 2])

    def test_spwn_extent(self):
        with pytest.raises(ConfigurationError):
            make_biol(spwn=filled(2, 0.0, (1, 1, 1, 1, 1)))

    def test_biomass(self):
        """Biomass is the sum over ages of n * wt."""
        biol = make_biol()
        biomass = biol.biomass(1, 1)
        assert biomass.dim == (1, 1, 1, 1, 1, 1)
        assert biomass.get(1, 1, 1, 1, 1, 1) == pytest.approx(2.0 * (1 + 2 + 3))

    def test_copy_is_independent(self):
        biol = make_biol()
        clone = biol.copy()
        clone.n.set(1, 1, 1, 1, 1, 1, 500.0)
        assert biol.n.get(1, 1, 1, 1, 1, 1) == 1.0


class TestCatch:
    """Test Catch construction and totals."""

    def test_defaults(self):
        catch = make_catch()
        assert catch.discards_n.dim == catch.landings_n.dim
        assert np.all(catch.discard_ratio.to_numpy() == 0.0)
        assert np.all(catch.landings_wt.to_numpy() == 1.0)

    def test_catchability_needs_two_params(self):
        with pytest.raises(ConfigurationError):
            make_catch(catchability_params=filled(1, 0.1, (1, 1, 1, 1, 1)))

    def test_landings_discards_catches(self):
        """Totals weight the numbers at age."""
        catch = make_catch(
            landings_wt=MultiAxisArray(np.array([1.0, 2.0, 3.0]).reshape(3, 1, 1, 1, 1, 1)),
            discards_wt=filled(3, 0.5, (1, 1, 1, 1, 1)),
        )
        catch.landings_n.set_timestep_slice(1, 1, np.full((3, 1, 1, 1), 10.0))
        catch.discards_n.set_timestep_slice(1, 1, np.full((3, 1, 1, 1), 4.0))
        assert catch.landings(1, 1).get(1, 1, 1, 1, 1, 1) == pytest.approx(60.0)
        assert catch.discards(1, 1).get(1, 1, 1, 1, 1, 1) == pytest.approx(6.0)
        assert catch.catches(1, 1).get(1, 1, 1, 1, 1, 1) == pytest.approx(66.0)
        assert catch.catch_n(1, 1).get(2, 1, 1, 1, 1, 1) == pytest.approx(14.0)


class TestFishery:
    """Test Fishery construction."""

    def test_default_fishing_period(self):
        """Fishing spans the whole timestep by default."""
        fishery = Fishery("trawl", filled(1, 1.0), [make_catch()])
        assert fishery.fishing_start_end.get(1, 1, 1, 1, 1, 1) == 0.0
        assert fishery.fishing_start_end.get(2, 5, 1, 1, 1, 1) == 1.0

    def test_get_catch(self):
        fishery = Fishery("trawl", filled(1, 1.0), [make_catch(), make_catch(name="bycatch")])
        assert fishery.ncatch == 2
        assert fishery.get_catch(2).name == "bycatch"
        with pytest.raises(ConfigurationError):
            fishery.get_catch(3)

    def test_needs_catches(self):
        with pytest.raises(ConfigurationError):
            Fishery("trawl", filled(1, 1.0), [])

    def test_effort_single_quant(self):
        with pytest.raises(ConfigurationError):
            Fishery("trawl", filled(2, 1.0), [make_catch()])

    def test_copy_is_independent(self):
        fishery = Fishery("trawl", filled(1, 1.0), [make_catch()])
        clone = fishery.copy()
        clone.effort.set(1, 1, 1, 1, 1, 1, 9.0)
        clone.catches[0].landings_n.set(1, 1, 1, 1, 1, 1, 9.0)
        assert fishery.effort.get(1, 1, 1, 1, 1, 1) == 1.0
        assert fishery.catches[0].landings_n.get(1, 1, 1, 1, 1, 1) == 0.0
