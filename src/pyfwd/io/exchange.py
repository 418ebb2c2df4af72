"""
Tabular exchange of arrays and controls.

MultiAxisArrays are exchanged as long-format tables with one row per
cell and the columns ``quant, year, unit, season, area, iter, data``
(1-based coordinates). Controls are exchanged as their targets table;
with several iterations the long form adds ``target`` and ``iter``
columns and carries min / value / max per iteration.

Functions
---------
- quant_to_frame() / quant_from_frame(): MultiAxisArray <-> DataFrame
- read_quant_csv() / write_quant_csv(): the same through CSV files
- control_to_frame() / control_from_frame(): Control <-> DataFrame
"""

from pathlib import Path
from typing import Optional, Sequence, Union

import numpy as np
import pandas as pd

from pyfwd.core.constants import AXIS_NAMES, QUANT_FRAME_COLUMNS
from pyfwd.core.control import BOUND_COLUMNS, TARGET_COLUMNS, Control
from pyfwd.core.errors import ConfigurationError
from pyfwd.core.quant import MultiAxisArray, coordinate_range


def quant_to_frame(quant: MultiAxisArray, quant_labels: Optional[Sequence] = None) -> pd.DataFrame:
    """Long-format table of every cell of an array.

    Parameters
    ----------
    quant : MultiAxisArray
        Array to export
    quant_labels : sequence, optional
        Labels written in the quant column instead of 1..nquant (e.g. ages)

    Returns
    -------
    pd.DataFrame
        Columns quant, year, unit, season, area, iter, data
    """
    if quant_labels is not None and len(quant_labels) != quant.nquant:
        raise ConfigurationError(
            f"{len(quant_labels)} quant labels for a quant axis of length {quant.nquant}"
        )
    coords = np.array(list(coordinate_range((1,) * len(quant.dim), quant.dim)))
    df = pd.DataFrame(coords, columns=list(AXIS_NAMES))
    df["data"] = quant.to_numpy().ravel()
    if quant_labels is not None:
        df["quant"] = np.asarray(quant_labels)[df["quant"].to_numpy() - 1]
    return df[QUANT_FRAME_COLUMNS]


def quant_from_frame(
    df: pd.DataFrame,
    dim: Optional[Sequence[int]] = None,
    quant_labels: Optional[Sequence] = None,
    fill_value: float = np.nan,
) -> MultiAxisArray:
    """Build an array from a long-format table.

    Parameters
    ----------
    df : pd.DataFrame
        Needs a data column; missing coordinate columns mean index 1
    dim : sequence of int, optional
        Array dimensions (default: largest index of each axis)
    quant_labels : sequence, optional
        Labels used in the quant column, mapped to 1..len(quant_labels)
    fill_value : float
        Value of cells absent from the table

    Returns
    -------
    MultiAxisArray
    """
    if "data" not in df.columns:
        raise ConfigurationError("Exchange table needs a 'data' column")
    df = df.copy()
    for axis in AXIS_NAMES:
        if axis not in df.columns:
            df[axis] = 1

    if quant_labels is not None:
        positions = {label: i + 1 for i, label in enumerate(quant_labels)}
        unknown = set(df["quant"]) - set(positions)
        if unknown:
            raise ConfigurationError(f"Unknown quant labels: {sorted(unknown)}")
        df["quant"] = df["quant"].map(positions)

    indices = df[list(AXIS_NAMES)].to_numpy()
    if (indices != np.round(indices)).any() or (indices < 1).any():
        raise ConfigurationError("Coordinates must be positive integers")
    indices = indices.astype(int)
    if df.duplicated(subset=list(AXIS_NAMES)).any():
        raise ConfigurationError("Exchange table has duplicated coordinates")

    if dim is None:
        dim = indices.max(axis=0)
        if quant_labels is not None:
            dim[0] = len(quant_labels)
    dim = tuple(int(d) for d in dim)
    if (indices > np.array(dim)).any():
        raise ConfigurationError(f"Coordinates exceed the dimensions {dim}")

    values = np.full(dim, fill_value, dtype=float)
    values[tuple((indices - 1).T)] = df["data"].to_numpy(dtype=float)
    return MultiAxisArray(values)


def read_quant_csv(path: Union[str, Path], **kwargs) -> MultiAxisArray:
    """Read an array from a long-format CSV file (see quant_from_frame)."""
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    return quant_from_frame(pd.read_csv(path), **kwargs)


def write_quant_csv(quant: MultiAxisArray, path: Union[str, Path], quant_labels: Optional[Sequence] = None) -> None:
    quant_to_frame(quant, quant_labels).to_csv(path, index=False)


def control_to_frame(control: Control, long: bool = False) -> pd.DataFrame:
    """Targets table of a control.

    With ``long=True`` there is one row per target and iteration, with
    1-based ``target`` and ``iter`` columns and the per-iteration
    min / value / max.
    """
    targets = control.targets
    if not long:
        return targets
    frames = []
    for i in range(control.niter):
        frame = targets.copy()
        frame[BOUND_COLUMNS] = control.iters[:, :, i]
        frame.insert(0, "target", np.arange(1, control.nrow + 1))
        frame["iter"] = i + 1
        frames.append(frame)
    return (
        pd.concat(frames, ignore_index=True)
        .sort_values(["target", "iter"], kind="stable")
        .reset_index(drop=True)
    )


def control_from_frame(df: pd.DataFrame, fcb, niter: Optional[int] = None) -> Control:
    """Build a Control from a targets table.

    A table with ``target`` and ``iter`` columns is read as the long form
    written by control_to_frame(long=True); otherwise each row is one
    target and the bounds are repeated over niter.
    """
    if "iter" not in df.columns:
        return Control(df, fcb, niter=niter)
    if "target" not in df.columns:
        raise ConfigurationError("Long control tables need a 'target' column next to 'iter'")
    missing = [c for c in BOUND_COLUMNS if c not in df.columns]
    if missing:
        raise ConfigurationError(f"Long control tables need the columns {missing}")

    df = df.sort_values(["target", "iter"], kind="stable")
    target_ids = list(pd.unique(df["target"]))
    niter_found = int(df["iter"].max())
    if niter is not None and niter != niter_found:
        raise ConfigurationError(f"Table has {niter_found} iterations, expected {niter}")

    iters = np.full((len(target_ids), 3, niter_found), np.nan)
    for row, (_, group) in enumerate(df.groupby("target", sort=False)):
        if len(group) != niter_found or sorted(group["iter"]) != list(range(1, niter_found + 1)):
            raise ConfigurationError(
                f"Target {group['target'].iloc[0]} does not have iterations 1..{niter_found}"
            )
        iters[row] = group[BOUND_COLUMNS].to_numpy(dtype=float).T

    columns = [c for c in TARGET_COLUMNS if c in df.columns]
    targets = df.groupby("target", sort=False).first()[columns].reset_index(drop=True)
    return Control(targets, fcb, iters=iters)
