"""
Stock-recruitment models.

A StockRecruitmentModel turns spawning reproductive potential (SRP) into
recruits. The functional form is picked by name from a registry holding
the built-in Ricker, Beverton-Holt and constant forms plus any custom
callables added with register_sr_model().

Parameters are stored in a MultiAxisArray whose quant axis holds the
parameter slots (a, b, ...). They are read with recycling, so a model
with fixed parameters only needs a (nparams, 1, 1, 1, 1, 1) array.
Deviances are applied per coordinate after the deterministic prediction
and are never recycled.

A NaN first parameter at a (year, unit, season) marks that no
recruitment happens there.
"""

from __future__ import annotations

import warnings
from enum import Enum
from typing import Callable, Dict, Optional, Sequence, Tuple, Union

import jax.numpy as jnp
import numpy as np

from pyfwd.core.constants import DEFAULT_SR_TIMELAG, N_COORD_AXES
from pyfwd.core.errors import ConfigurationError, RecruitmentWarning
from pyfwd.core.quant import MultiAxisArray, coordinate_range
from pyfwd.logger import get_logger

logger = get_logger(__name__)


class DevianceMode(Enum):
    """How recruitment deviances combine with the deterministic prediction."""

    MULTIPLICATIVE = "multiplicative"
    ADDITIVE = "additive"


class SRModelKind(Enum):
    """Functional form of a stock-recruitment model."""

    RICKER = "ricker"
    BEVHOLT = "bevholt"
    CONSTANT = "constant"
    CUSTOM = "custom"


SRFunction = Callable[[object, object], object]


def ricker(srp, params):
    """Ricker: a * srp * exp(-b * srp)."""
    return params[0] * srp * jnp.exp(-params[1] * srp)


def bevholt(srp, params):
    """Beverton-Holt: a * srp / (b + srp)."""
    return params[0] * srp / (params[1] + srp)


def constant(srp, params):
    """Constant recruitment a, whatever the SRP."""
    return params[0]


_BUILTIN_MODELS: Dict[str, SRModelKind] = {
    "ricker": SRModelKind.RICKER,
    "Ricker": SRModelKind.RICKER,
    "bevholt": SRModelKind.BEVHOLT,
    "Bevholt": SRModelKind.BEVHOLT,
    "constant": SRModelKind.CONSTANT,
    "Constant": SRModelKind.CONSTANT,
    "mean": SRModelKind.CONSTANT,
    "Mean": SRModelKind.CONSTANT,
    "geomean": SRModelKind.CONSTANT,
    "Geomean": SRModelKind.CONSTANT,
}

_BUILTIN_FUNCTIONS: Dict[SRModelKind, SRFunction] = {
    SRModelKind.RICKER: ricker,
    SRModelKind.BEVHOLT: bevholt,
    SRModelKind.CONSTANT: constant,
}

_CUSTOM_MODELS: Dict[str, SRFunction] = {}


def register_sr_model(name: str, func: SRFunction) -> None:
    """Add a custom stock-recruitment function to the registry.

    Parameters
    ----------
    name : str
        Model id used to construct StockRecruitmentModel instances.
        Built-in names cannot be overridden.
    func : callable
        ``func(srp, params) -> recruitment``. Must use jax.numpy (or
        plain arithmetic) so that it can be differentiated.
    """
    if name in _BUILTIN_MODELS:
        raise ConfigurationError(f"'{name}' is a built-in stock-recruitment model")
    if not callable(func):
        raise ConfigurationError(f"Stock-recruitment model '{name}' must be callable")
    if name in _CUSTOM_MODELS:
        logger.debug(f"Replacing custom stock-recruitment model '{name}'")
    _CUSTOM_MODELS[name] = func


def unregister_sr_model(name: str) -> None:
    """Remove a custom model from the registry. Unknown names are ignored."""
    _CUSTOM_MODELS.pop(name, None)


def registered_sr_models() -> Tuple[str, ...]:
    return tuple(_BUILTIN_MODELS) + tuple(_CUSTOM_MODELS)


def resolve_sr_model(name: str) -> Tuple[SRModelKind, SRFunction]:
    """Look up a model id, returning its kind and evaluation function."""
    if name in _BUILTIN_MODELS:
        kind = _BUILTIN_MODELS[name]
        return kind, _BUILTIN_FUNCTIONS[kind]
    if name in _CUSTOM_MODELS:
        return SRModelKind.CUSTOM, _CUSTOM_MODELS[name]
    raise ConfigurationError(
        f"Unknown stock-recruitment model '{name}'. "
        f"Available: {', '.join(registered_sr_models())}"
    )


class StockRecruitmentModel:
    """Stock-recruitment relationship with parameters and deviances.

    Parameters
    ----------
    model_id : str
        Registry name (e.g. 'ricker', 'bevholt', 'constant' or a custom name)
    params : array-like or MultiAxisArray
        Parameters, quant axis = parameter slot. Read with recycling.
    deviances : array-like or MultiAxisArray, optional
        Residuals with quant extent 1. None applies no deviances.
    deviance_mode : DevianceMode or str
        'multiplicative' (rec * dev) or 'additive' (rec + dev)
    timelag : int
        Timesteps between spawning and recruitment (>= 1)
    """

    def __init__(
        self,
        model_id: str,
        params: Union[MultiAxisArray, np.ndarray],
        deviances: Optional[Union[MultiAxisArray, np.ndarray]] = None,
        deviance_mode: Union[DevianceMode, str] = DevianceMode.MULTIPLICATIVE,
        timelag: int = DEFAULT_SR_TIMELAG,
    ):
        self._kind, self._func = resolve_sr_model(model_id)
        self._model_id = model_id
        self._params = MultiAxisArray(params)
        if int(timelag) != timelag or timelag < 1:
            raise ConfigurationError(f"timelag must be an integer >= 1, got {timelag}")
        self._timelag = int(timelag)
        self._deviances: Optional[MultiAxisArray] = None
        self._deviance_mode = DevianceMode(deviance_mode)
        if deviances is not None:
            self.set_deviances(deviances)

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def kind(self) -> SRModelKind:
        return self._kind

    @property
    def params(self) -> MultiAxisArray:
        return self._params.copy()

    @property
    def nparams(self) -> int:
        return self._params.nquant

    @property
    def deviances(self) -> Optional[MultiAxisArray]:
        return None if self._deviances is None else self._deviances.copy()

    @property
    def deviance_mode(self) -> DevianceMode:
        return self._deviance_mode

    @property
    def timelag(self) -> int:
        return self._timelag

    def set_deviances(
        self,
        deviances: Optional[Union[MultiAxisArray, np.ndarray]],
        deviance_mode: Optional[Union[DevianceMode, str]] = None,
    ) -> None:
        """Replace the deviances (and optionally the mode). None removes them."""
        if deviance_mode is not None:
            self._deviance_mode = DevianceMode(deviance_mode)
        if deviances is None:
            self._deviances = None
            return
        deviances = MultiAxisArray(deviances)
        if deviances.nquant != 1:
            raise ConfigurationError(
                f"Deviances must have a quant extent of 1, got {deviances.nquant}"
            )
        self._deviances = deviances

    def get_params(self, year: int, unit: int, season: int, area: int, iter: int) -> np.ndarray:
        """Parameter vector at a coordinate, recycled on each axis."""
        position = self._params.recycled_index((1, year, unit, season, area, iter))
        return self._params.data[(slice(None),) + position[1:]]

    def eval(self, srp, coordinates: Sequence[int]):
        """Deterministic recruitment from an SRP value.

        Parameters
        ----------
        srp : float or jax scalar
            Spawning reproductive potential
        coordinates : sequence of int
            (year, unit, season, area, iter) used to look up the parameters

        Returns
        -------
        Recruitment. 0 (with a RecruitmentWarning) if any parameter is NaN.
        """
        if len(coordinates) != N_COORD_AXES:
            raise ConfigurationError(
                f"coordinates must have {N_COORD_AXES} entries "
                f"(year, unit, season, area, iter), got {len(coordinates)}"
            )
        params = self.get_params(*coordinates)
        if np.any(np.isnan(params)):
            warnings.warn(
                f"Stock-recruitment model '{self._model_id}' has NaN parameters at "
                f"{tuple(coordinates)}; recruitment set to 0",
                RecruitmentWarning,
                stacklevel=2,
            )
            return 0.0
        return self._func(srp, jnp.asarray(params))

    def _check_deviance_coverage(self, start: Sequence[int], extent: Sequence[int]) -> None:
        last = [s + e - 1 for s, e in zip(start, extent)]
        available = self._deviances.dim[1:]
        if any(l > a for l, a in zip(last, available)):
            raise ConfigurationError(
                f"Deviances {available} do not cover coordinates {tuple(start)} to {tuple(last)}"
            )

    def predict_recruitment(self, srp: MultiAxisArray, start_coord: Sequence[int]) -> MultiAxisArray:
        """Recruitment for every coordinate of an SRP array.

        Element ``(1, y, u, s, a, i)`` of srp is evaluated with parameters
        and deviances at ``start_coord + (y, u, s, a, i) - 1``.

        Parameters
        ----------
        srp : MultiAxisArray
            SRP values, quant extent 1
        start_coord : sequence of int
            (year, unit, season, area, iter) of the first element

        Returns
        -------
        MultiAxisArray
            Recruitment with the same dimensions as srp
        """
        if len(start_coord) != N_COORD_AXES:
            raise ConfigurationError(
                f"start_coord must have {N_COORD_AXES} entries, got {len(start_coord)}"
            )
        if srp.nquant != 1:
            raise ConfigurationError(f"SRP must have a quant extent of 1, got {srp.nquant}")
        extent = srp.dim[1:]
        if self._deviances is not None:
            self._check_deviance_coverage(start_coord, extent)

        values = []
        for offset in coordinate_range((1,) * N_COORD_AXES, extent):
            coord = tuple(s + o - 1 for s, o in zip(start_coord, offset))
            rec = self.eval(srp.data[(0,) + tuple(o - 1 for o in offset)], coord)
            if self._deviances is not None:
                deviance = self._deviances.data[(0,) + tuple(c - 1 for c in coord)]
                if self._deviance_mode == DevianceMode.MULTIPLICATIVE:
                    rec = rec * deviance
                else:
                    rec = rec + deviance
            values.append(jnp.asarray(rec, dtype=jnp.float64))
        return MultiAxisArray(jnp.reshape(jnp.stack(values), srp.dim))

    def does_recruitment_happen(self, unit: int, year: int, season: int) -> bool:
        """True unless the first parameter at (year, unit, season), iteration 1, is NaN."""
        return not np.isnan(self.get_params(year, unit, season, 1, 1)[0])

    def has_recruitment_happened(self, unit: int, year: int, season: int) -> bool:
        """True if recruitment happens in any season from 1 to season of the year."""
        return any(self.does_recruitment_happen(unit, year, s) for s in range(1, season + 1))

    def __repr__(self) -> str:
        return (
            f"StockRecruitmentModel(model_id={self._model_id!r}, "
            f"nparams={self.nparams}, deviance_mode={self._deviance_mode.value})"
        )
