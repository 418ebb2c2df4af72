"""
Tests for tabular exchange of arrays and controls.
"""

import numpy as np
import pandas as pd
import pytest

from pyfwd.core.control import Control
from pyfwd.core.errors import ConfigurationError
from pyfwd.core.quant import MultiAxisArray
from pyfwd.io import (
    control_from_frame,
    control_to_frame,
    quant_from_frame,
    quant_to_frame,
    read_quant_csv,
    write_quant_csv,
)


@pytest.fixture
def quant():
    return MultiAxisArray(np.arange(12, dtype=float).reshape(2, 2, 1, 1, 1, 3))


@pytest.fixture
def control():
    targets = pd.DataFrame(
        {
            "target_type": ["catch", "fbar"],
            "year": [1, 2],
            "fishery": [1, np.nan],
            "catch": [1, np.nan],
            "biol": [np.nan, 1],
            "value": [100.0, 0.2],
            "age_min": [np.nan, 1],
            "age_max": [np.nan, 3],
        }
    )
    iters = np.full((2, 3, 2), np.nan)
    iters[:, 1, :] = [[100.0, 120.0], [0.2, 0.25]]
    return Control(targets, [[1, 1, 1]], iters=iters)


class TestQuantFrame:
    """Test the long-format table of an array."""

    def test_to_frame(self, quant):
        df = quant_to_frame(quant)
        assert list(df.columns) == ["quant", "year", "unit", "season", "area", "iter", "data"]
        assert len(df) == 12
        # last axis varies fastest
        assert df.loc[1, "iter"] == 2
        assert df.loc[3, "year"] == 2
        assert df.loc[6, "quant"] == 2
        np.testing.assert_array_equal(df["data"], np.arange(12.0))

    def test_quant_labels(self, quant):
        df = quant_to_frame(quant, quant_labels=[0, 1])
        assert sorted(df["quant"].unique()) == [0, 1]
        restored = quant_from_frame(df, quant_labels=[0, 1])
        np.testing.assert_array_equal(restored.to_numpy(), quant.to_numpy())

    def test_wrong_number_of_labels(self, quant):
        with pytest.raises(ConfigurationError):
            quant_to_frame(quant, quant_labels=[1, 2, 3])

    def test_from_frame(self, quant):
        restored = quant_from_frame(quant_to_frame(quant))
        assert restored.dim == quant.dim
        np.testing.assert_array_equal(restored.to_numpy(), quant.to_numpy())

    def test_missing_axes_and_cells(self):
        """Missing coordinate columns mean index 1; missing cells take fill_value."""
        df = pd.DataFrame({"quant": [1, 2], "year": [1, 3], "data": [5.0, 6.0]})
        result = quant_from_frame(df)
        assert result.dim == (2, 3, 1, 1, 1, 1)
        assert result.get(2, 3, 1, 1, 1, 1) == 6.0
        assert np.isnan(result.get(1, 2, 1, 1, 1, 1))
        filled = quant_from_frame(df, dim=(2, 4, 1, 1, 1, 1), fill_value=0.0)
        assert filled.dim == (2, 4, 1, 1, 1, 1)
        assert filled.get(2, 4, 1, 1, 1, 1) == 0.0

    @pytest.mark.parametrize(
        "df",
        [
            pd.DataFrame({"quant": [1], "year": [1]}),
            pd.DataFrame({"quant": [1, 1], "data": [1.0, 2.0]}),
            pd.DataFrame({"quant": [0], "data": [1.0]}),
            pd.DataFrame({"quant": [1.5], "data": [1.0]}),
        ],
    )
    def test_invalid_tables(self, df):
        with pytest.raises(ConfigurationError):
            quant_from_frame(df)

    def test_coordinates_beyond_dim(self):
        df = pd.DataFrame({"quant": [3], "data": [1.0]})
        with pytest.raises(ConfigurationError):
            quant_from_frame(df, dim=(2, 1, 1, 1, 1, 1))

    def test_unknown_label(self):
        df = pd.DataFrame({"quant": [7], "data": [1.0]})
        with pytest.raises(ConfigurationError):
            quant_from_frame(df, quant_labels=[0, 1])


class TestQuantCSV:
    """Test CSV files."""

    def test_write_and_read(self, quant, tmp_path):
        path = tmp_path / "n.csv"
        write_quant_csv(quant, path)
        restored = read_quant_csv(path)
        np.testing.assert_array_equal(restored.to_numpy(), quant.to_numpy())

    def test_read_with_dimensions(self, quant, tmp_path):
        path = tmp_path / "n.csv"
        write_quant_csv(quant, path)
        restored = read_quant_csv(path, dim=(2, 3, 1, 1, 1, 3))
        assert restored.dim == (2, 3, 1, 1, 1, 3)
        assert np.isnan(restored.get(1, 3, 1, 1, 1, 1))

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_quant_csv(tmp_path / "missing.csv")


class TestControlFrame:
    """Test control tables."""

    def test_wide_table(self, control):
        df = control_to_frame(control)
        assert len(df) == 2
        assert list(df["target_type"]) == ["catch", "fbar"]

    def test_long_table(self, control):
        df = control_to_frame(control, long=True)
        assert len(df) == 4
        assert list(df["target"]) == [1, 1, 2, 2]
        assert list(df["iter"]) == [1, 2, 1, 2]
        assert list(df["value"]) == [100.0, 120.0, 0.2, 0.25]

    def test_long_table_restores_iters(self, control):
        restored = control_from_frame(control_to_frame(control, long=True), control.fcb)
        assert restored.niter == 2
        np.testing.assert_array_equal(restored.iters, control.iters)
        assert restored.target(1).age_max == 3

    def test_wide_table_with_niter(self, control):
        restored = control_from_frame(control_to_frame(control), control.fcb, niter=3)
        assert restored.niter == 3
        np.testing.assert_array_equal(restored.target_values(0)[1], [100.0, 100.0, 100.0])

    def test_long_table_needs_target(self, control):
        df = control_to_frame(control, long=True).drop(columns="target")
        with pytest.raises(ConfigurationError):
            control_from_frame(df, control.fcb)

    def test_incomplete_iterations(self, control):
        df = control_to_frame(control, long=True).iloc[:3]
        with pytest.raises(ConfigurationError):
            control_from_frame(df, control.fcb)

    def test_niter_mismatch(self, control):
        with pytest.raises(ConfigurationError):
            control_from_frame(control_to_frame(control, long=True), control.fcb, niter=3)
