"""
Tests for six-axis arrays and timestep indexing.

Tests MultiAxisArray construction, recycled reads, strict writes,
timestep blocks, arithmetic and the coordinate helpers.
"""

import jax
import jax.numpy as jnp
import numpy as np
import pytest

from pyfwd.core.errors import ConfigurationError
from pyfwd.core.quant import (
    MultiAxisArray,
    coordinate_range,
    exp,
    quant_mean,
    quant_sum,
    timestep_to_year_season,
    year_season_to_timestep,
)


@pytest.fixture
def quant():
    """(2, 3, 1, 2, 1, 2) array holding 0..23 in row-major order."""
    return MultiAxisArray(np.arange(24, dtype=float).reshape(2, 3, 1, 2, 1, 2))


class TestConstruction:
    """Test creating arrays."""

    def test_dim_properties(self, quant):
        """Dimension properties should follow the axis order."""
        assert quant.dim == (2, 3, 1, 2, 1, 2)
        assert quant.nquant == 2
        assert quant.nyear == 3
        assert quant.nunit == 1
        assert quant.nseason == 2
        assert quant.narea == 1
        assert quant.niter == 2

    def test_filled(self):
        """filled() should create a constant array."""
        q = MultiAxisArray.filled((1, 2, 1, 1, 1, 3), 7.0)
        assert q.dim == (1, 2, 1, 1, 1, 3)
        assert np.all(q.to_numpy() == 7.0)

    def test_wrong_number_of_dimensions(self):
        """Anything but six dimensions is a configuration error."""
        with pytest.raises(ConfigurationError):
            MultiAxisArray(np.zeros((2, 2)))
        with pytest.raises(ConfigurationError):
            MultiAxisArray.filled((1, 1, 1), 0.0)

    def test_zero_extent_rejected(self):
        """Every extent must be at least 1."""
        with pytest.raises(ConfigurationError):
            MultiAxisArray(np.zeros((1, 0, 1, 1, 1, 1)))

    def test_construction_copies(self):
        """Arrays never alias their source or each other."""
        source = np.ones((1, 1, 1, 1, 1, 1))
        q = MultiAxisArray(source)
        source[0, 0, 0, 0, 0, 0] = 5.0
        assert q.get(1, 1, 1, 1, 1, 1) == 1.0

        copied = q.copy()
        copied.set(1, 1, 1, 1, 1, 1, 3.0)
        assert q.get(1, 1, 1, 1, 1, 1) == 1.0


class TestRecycledReads:
    """Test the recycling rule on get()."""

    def test_get_is_one_based(self, quant):
        """get(1, 1, 1, 1, 1, 1) is the first element."""
        assert quant.get(1, 1, 1, 1, 1, 1) == 0.0
        assert quant.get(2, 3, 1, 2, 1, 2) == 23.0

    @pytest.mark.parametrize("axis", [1, 2, 3, 4, 5])
    def test_out_of_range_axis_reads_index_one(self, quant, axis):
        """An index beyond any non-quant axis reads as index 1 on that axis."""
        base = [2, 2, 1, 2, 1, 2]
        base[axis] = 1
        expected = quant.get(*base)
        beyond = list(base)
        beyond[axis] = quant.dim[axis] + 4
        assert quant.get(*beyond) == expected

    def test_quant_axis_not_recycled(self, quant):
        """The quant axis is checked strictly."""
        with pytest.raises(IndexError):
            quant.get(3, 1, 1, 1, 1, 1)

    def test_index_below_one(self, quant):
        """Indices start at 1."""
        with pytest.raises(IndexError):
            quant.get(1, 0, 1, 1, 1, 1)

    def test_wrong_number_of_indices(self, quant):
        with pytest.raises(ConfigurationError):
            quant.recycled_index((1, 1, 1))

    def test_recycled_timestep_slice(self):
        """Blocks expand recycled axes to the requested shape."""
        q = MultiAxisArray(np.array([1.0, 2.0]).reshape(2, 1, 1, 1, 1, 1))
        block = q.recycled_timestep_slice(4, 2, nunit=2, narea=3, niter=5)
        assert block.shape == (2, 2, 3, 5)
        assert np.all(block[0] == 1.0)
        assert np.all(block[1] == 2.0)


class TestStrictWrites:
    """Test set() and timestep blocks."""

    def test_set_then_get(self, quant):
        quant.set(1, 2, 1, 1, 1, 2, 99.0)
        assert quant.get(1, 2, 1, 1, 1, 2) == 99.0

    def test_set_never_recycles(self, quant):
        """Writing beyond an axis is an error rather than a write to index 1."""
        with pytest.raises(IndexError):
            quant.set(1, 4, 1, 1, 1, 1, 1.0)
        assert quant.get(1, 1, 1, 1, 1, 1) == 0.0

    def test_timestep_slice_shape(self, quant):
        """Timestep blocks are (quant, unit, area, iter)."""
        block = quant.timestep_slice(2, 1)
        assert block.shape == (2, 1, 1, 2)
        assert block[1, 0, 0, 1] == quant.get(2, 2, 1, 1, 1, 2)

    def test_set_timestep_slice(self, quant):
        values = np.full((2, 1, 1, 2), -1.0)
        quant.set_timestep_slice(3, 2, values)
        assert quant.get(2, 3, 1, 2, 1, 1) == -1.0
        assert quant.get(2, 3, 1, 1, 1, 1) == 20.0

    def test_set_timestep_slice_shape_checked(self, quant):
        with pytest.raises(ValueError):
            quant.set_timestep_slice(1, 1, np.zeros((1, 1, 1, 1)))

    def test_subset(self, quant):
        """subset() returns an independent inclusive block."""
        sub = quant.subset((1, 2, 1, 1, 1, 1), (2, 3, 1, 2, 1, 1))
        assert sub.dim == (2, 2, 1, 2, 1, 1)
        assert sub.get(1, 1, 1, 1, 1, 1) == quant.get(1, 2, 1, 1, 1, 1)
        sub.set(1, 1, 1, 1, 1, 1, 100.0)
        assert quant.get(1, 2, 1, 1, 1, 1) != 100.0

    def test_subset_strict(self, quant):
        with pytest.raises(IndexError):
            quant.subset((1, 1, 1, 1, 1, 1), (1, 4, 1, 1, 1, 1))

    def test_traced_write_switches_to_jax(self):
        """Writing a traced value keeps the computation differentiable."""

        def total(x):
            q = MultiAxisArray.filled((1, 2, 1, 1, 1, 1), 3.0)
            q.set(1, 2, 1, 1, 1, 1, x * 2.0)
            return jnp.sum(q.data)

        assert float(jax.grad(total)(1.5)) == pytest.approx(2.0)

    def test_fill(self, quant):
        quant.fill(4.0)
        assert np.all(quant.to_numpy() == 4.0)


class TestArithmetic:
    """Test element-wise operations."""

    def test_scalar_operations(self, quant):
        assert (quant + 1).get(1, 1, 1, 1, 1, 1) == 1.0
        assert (2 * quant).get(1, 1, 1, 1, 1, 2) == 2.0
        assert (quant - 1).get(1, 1, 1, 1, 1, 1) == -1.0
        assert (1 - quant).get(1, 1, 1, 1, 1, 2) == 0.0
        assert (quant / 2).get(1, 1, 1, 1, 1, 2) == 0.5

    def test_array_operations(self, quant):
        doubled = quant + quant
        np.testing.assert_allclose(doubled.to_numpy(), 2 * quant.to_numpy())
        ratio = (quant + 1) / (quant + 1)
        np.testing.assert_allclose(ratio.to_numpy(), 1.0)

    def test_dimension_mismatch(self, quant):
        with pytest.raises(ValueError):
            quant + MultiAxisArray.filled((1, 1, 1, 1, 1, 1), 1.0)

    def test_exp_and_negation(self, quant):
        np.testing.assert_allclose(exp(-quant).to_numpy(), np.exp(-quant.to_numpy()))

    def test_quant_sum_and_mean(self, quant):
        """Reductions over the quant axis keep it with length 1."""
        total = quant_sum(quant)
        mean = quant_mean(quant)
        assert total.dim == (1, 3, 1, 2, 1, 2)
        assert total.get(1, 1, 1, 1, 1, 1) == 0.0 + 12.0
        assert mean.get(1, 1, 1, 1, 1, 1) == 6.0


class TestTimesteps:
    """Test timestep conversions and the coordinate iterator."""

    def test_known_values(self):
        assert year_season_to_timestep(1, 1, 4) == 1
        assert year_season_to_timestep(2, 3, 4) == 7
        assert timestep_to_year_season(7, 4) == (2, 3)
        assert timestep_to_year_season(4, 4) == (1, 4)

    @pytest.mark.parametrize("nseason", [1, 2, 4, 12])
    def test_round_trip(self, nseason):
        """Conversions are mutual inverses."""
        for timestep in range(1, 50):
            year, season = timestep_to_year_season(timestep, nseason)
            assert 1 <= season <= nseason
            assert year_season_to_timestep(year, season, nseason) == timestep

    def test_invalid_timestep(self):
        with pytest.raises(ValueError):
            timestep_to_year_season(0, 4)
        with pytest.raises(ValueError):
            year_season_to_timestep(1, 5, 4)

    def test_coordinate_range_order(self):
        """Coordinates are produced last axis fastest."""
        coords = list(coordinate_range((1, 1), (2, 3)))
        assert coords == [(1, 1), (1, 2), (1, 3), (2, 1), (2, 2), (2, 3)]

    def test_coordinate_range_length_mismatch(self):
        with pytest.raises(ConfigurationError):
            coordinate_range((1, 1), (1,))
