"""
Six-axis quantity arrays.

Every quantity in the operating model (abundance, mortality, effort,
stock-recruitment parameters, ...) is held in a MultiAxisArray with the
dimensions (quant, year, unit, season, area, iter). The quant axis holds
ages or parameter slots; the other five axes are shared by all arrays in
a simulation.

Indexing is 1-based. Reads through get() recycle: a year, unit, season,
area or iter index beyond the extent of that axis is replaced by 1, so
parameters that are fixed over time or area need not be replicated.
Writes never recycle.
"""

from __future__ import annotations

import itertools
from typing import Iterator, Sequence, Tuple, Union

import jax

jax.config.update("jax_enable_x64", True)

import jax.numpy as jnp
import numpy as np

from pyfwd.core.constants import AXIS_NAMES, N_AXES
from pyfwd.core.errors import ConfigurationError


ArrayLike = Union[np.ndarray, jax.Array, float]


def is_concrete(value) -> bool:
    """True if value can be materialised as a numpy array (i.e. is not being traced)."""
    try:
        np.asarray(value)
    except jax.errors.TracerArrayConversionError:
        return False
    return True


def _as_storage(values):
    """Copy concrete values into a float64 numpy array; keep traced values as they are."""
    if is_concrete(values):
        return np.array(values, dtype=np.float64)
    return jnp.asarray(values)


def year_season_to_timestep(year: int, season: int, nseason: int) -> int:
    """Convert a (year, season) pair of indices to a timestep (all 1-based)."""
    if year < 1 or season < 1 or season > nseason:
        raise ValueError(
            f"year ({year}) must be >= 1 and season ({season}) in 1..{nseason}"
        )
    return (year - 1) * nseason + season


def timestep_to_year_season(timestep: int, nseason: int) -> Tuple[int, int]:
    """Convert a timestep to a (year, season) pair of indices (all 1-based)."""
    if timestep < 1:
        raise ValueError(f"timestep must be >= 1, got {timestep}")
    if nseason < 1:
        raise ValueError(f"nseason must be >= 1, got {nseason}")
    year = (timestep - 1) // nseason + 1
    season = (timestep - 1) % nseason + 1
    return year, season


def coordinate_range(
    indices_min: Sequence[int], indices_max: Sequence[int]
) -> Iterator[Tuple[int, ...]]:
    """Iterate over every coordinate of an inclusive box of 1-based indices.

    Coordinates are produced in row-major order, the last axis varying
    fastest.

    Parameters
    ----------
    indices_min : sequence of int
        Lower bound of each axis
    indices_max : sequence of int
        Upper bound of each axis (same length as indices_min)

    Yields
    ------
    tuple of int
    """
    if len(indices_min) != len(indices_max):
        raise ConfigurationError(
            f"indices_min ({len(indices_min)}) and indices_max ({len(indices_max)}) "
            "must have the same length"
        )
    ranges = [range(lo, hi + 1) for lo, hi in zip(indices_min, indices_max)]
    return itertools.product(*ranges)


class MultiAxisArray:
    """Six-axis numeric array with 1-based, recycling reads.

    Parameters
    ----------
    data : array-like or MultiAxisArray
        Six-dimensional values (quant, year, unit, season, area, iter).
        Concrete values are always copied, so instances never alias.

    Attributes
    ----------
    data : np.ndarray
        Backing store. While the solver traces a target set a copy may
        hold a JAX array instead.
    """

    def __init__(self, data: Union[ArrayLike, "MultiAxisArray"]):
        if isinstance(data, MultiAxisArray):
            data = data.data
        values = _as_storage(data)
        if values.ndim != N_AXES:
            raise ConfigurationError(
                f"MultiAxisArray needs {N_AXES} dimensions, got {values.ndim}"
            )
        if any(d < 1 for d in values.shape):
            raise ConfigurationError(f"All dimensions must be >= 1, got {values.shape}")
        self.data = values

    @classmethod
    def filled(cls, dim: Sequence[int], value: float = 0.0) -> "MultiAxisArray":
        """Create an array of the given dimensions filled with a single value."""
        if len(dim) != N_AXES:
            raise ConfigurationError(f"dim must have length {N_AXES}, got {len(dim)}")
        return cls(np.full(tuple(int(d) for d in dim), value, dtype=np.float64))

    # ------------------------------------------------------------------
    # Dimensions
    # ------------------------------------------------------------------

    @property
    def dim(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self.data.shape)

    @property
    def nquant(self) -> int:
        return self.dim[0]

    @property
    def nyear(self) -> int:
        return self.dim[1]

    @property
    def nunit(self) -> int:
        return self.dim[2]

    @property
    def nseason(self) -> int:
        return self.dim[3]

    @property
    def narea(self) -> int:
        return self.dim[4]

    @property
    def niter(self) -> int:
        return self.dim[5]

    # ------------------------------------------------------------------
    # Element access
    # ------------------------------------------------------------------

    def _strict_index(self, indices: Sequence[int]) -> Tuple[int, ...]:
        if len(indices) != N_AXES:
            raise ConfigurationError(f"Expected {N_AXES} indices, got {len(indices)}")
        for axis, (idx, extent) in enumerate(zip(indices, self.dim)):
            if idx < 1 or idx > extent:
                raise IndexError(
                    f"{AXIS_NAMES[axis]} index {idx} outside 1..{extent}"
                )
        return tuple(int(idx) - 1 for idx in indices)

    def recycled_index(self, indices: Sequence[int]) -> Tuple[int, ...]:
        """0-based position of a 1-based coordinate after recycling.

        The quant index is checked strictly; any other index beyond its
        axis is replaced by 1.
        """
        if len(indices) != N_AXES:
            raise ConfigurationError(f"Expected {N_AXES} indices, got {len(indices)}")
        position = []
        for axis, (idx, extent) in enumerate(zip(indices, self.dim)):
            if idx < 1:
                raise IndexError(f"{AXIS_NAMES[axis]} index {idx} must be >= 1")
            if idx > extent:
                if axis == 0:
                    raise IndexError(f"quant index {idx} outside 1..{extent}")
                idx = 1
            position.append(int(idx) - 1)
        return tuple(position)

    def get(self, quant: int, year: int, unit: int, season: int, area: int, iter: int):
        """Read one value, recycling year, unit, season, area and iter."""
        return self.data[self.recycled_index((quant, year, unit, season, area, iter))]

    def __getitem__(self, indices: Tuple[int, ...]):
        return self.get(*indices)

    def _assign(self, index, value) -> None:
        if isinstance(self.data, np.ndarray) and is_concrete(value):
            self.data[index] = np.asarray(value, dtype=np.float64)
        else:
            self.data = jnp.asarray(self.data).at[index].set(value)

    def set(self, quant: int, year: int, unit: int, season: int, area: int, iter: int, value) -> None:
        """Write one value. Out-of-range indices raise IndexError."""
        self._assign(self._strict_index((quant, year, unit, season, area, iter)), value)

    def __setitem__(self, indices: Tuple[int, ...], value) -> None:
        self.set(*indices, value)

    def fill(self, value: float) -> None:
        self._assign(Ellipsis, value)

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def subset(self, indices_min: Sequence[int], indices_max: Sequence[int]) -> "MultiAxisArray":
        """Independent copy of an inclusive block of 1-based indices."""
        lo = self._strict_index(indices_min)
        hi = self._strict_index(indices_max)
        if any(l > h for l, h in zip(lo, hi)):
            raise IndexError(f"indices_min {list(indices_min)} exceed indices_max {list(indices_max)}")
        return MultiAxisArray(self.data[tuple(slice(l, h + 1) for l, h in zip(lo, hi))])

    def timestep_slice(self, year: int, season: int):
        """Values of one timestep as a (quant, unit, area, iter) array."""
        self._strict_index((1, year, 1, season, 1, 1))
        return self.data[:, year - 1, :, season - 1, :, :]

    def recycled_timestep_slice(self, year: int, season: int, nunit: int, narea: int, niter: int):
        """Timestep block expanded to (quant, nunit, narea, niter) by recycling.

        Used for parameters that may be stored with fewer years, units,
        seasons, areas or iterations than the simulation.
        """
        year = year if year <= self.nyear else 1
        season = season if season <= self.nseason else 1
        block = self.data[:, year - 1, :, season - 1, :, :]
        units = np.array([u if u < self.nunit else 0 for u in range(nunit)])
        areas = np.array([a if a < self.narea else 0 for a in range(narea)])
        iters = np.array([i if i < self.niter else 0 for i in range(niter)])
        return block[:, units, :, :][:, :, areas, :][:, :, :, iters]

    def set_timestep_slice(self, year: int, season: int, values) -> None:
        """Overwrite one timestep with a (quant, unit, area, iter) array."""
        self._strict_index((1, year, 1, season, 1, 1))
        expected = (self.nquant, self.nunit, self.narea, self.niter)
        if tuple(jnp.shape(values)) != expected:
            raise ValueError(f"Timestep values have shape {jnp.shape(values)}, expected {expected}")
        self._assign((slice(None), year - 1, slice(None), season - 1), values)

    def copy(self) -> "MultiAxisArray":
        return MultiAxisArray(self)

    def to_numpy(self) -> np.ndarray:
        return np.array(self.data, dtype=np.float64)

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------

    def _operand(self, other):
        if isinstance(other, MultiAxisArray):
            if other.dim != self.dim:
                raise ValueError(f"Dimension mismatch: {self.dim} vs {other.dim}")
            return other.data
        if np.ndim(other) != 0:
            raise TypeError("MultiAxisArray arithmetic needs a MultiAxisArray or a scalar")
        return other

    def __add__(self, other):
        return MultiAxisArray(jnp.add(self.data, self._operand(other)))

    __radd__ = __add__

    def __sub__(self, other):
        return MultiAxisArray(jnp.subtract(self.data, self._operand(other)))

    def __rsub__(self, other):
        return MultiAxisArray(jnp.subtract(self._operand(other), self.data))

    def __mul__(self, other):
        return MultiAxisArray(jnp.multiply(self.data, self._operand(other)))

    __rmul__ = __mul__

    def __truediv__(self, other):
        return MultiAxisArray(jnp.divide(self.data, self._operand(other)))

    def __rtruediv__(self, other):
        return MultiAxisArray(jnp.divide(self._operand(other), self.data))

    def __neg__(self):
        return MultiAxisArray(jnp.negative(self.data))

    def __repr__(self) -> str:
        return f"MultiAxisArray(dim={self.dim})"


def exp(quant: MultiAxisArray) -> MultiAxisArray:
    return MultiAxisArray(jnp.exp(quant.data))


def quant_sum(quant: MultiAxisArray) -> MultiAxisArray:
    """Sum over the quant axis, keeping it with length 1."""
    return MultiAxisArray(jnp.sum(quant.data, axis=0, keepdims=True))


def quant_mean(quant: MultiAxisArray) -> MultiAxisArray:
    """Mean over the quant axis, keeping it with length 1."""
    return MultiAxisArray(jnp.mean(quant.data, axis=0, keepdims=True))
