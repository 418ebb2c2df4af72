"""
Tests for solver configuration and package logging.
"""

import io
import logging

import pytest

import pyfwd
from pyfwd.core.config import SolverConfig
from pyfwd.core.errors import ConfigurationError
from pyfwd.logger import configure_logging, get_logger


class TestSolverConfig:
    """Test SolverConfig defaults and validation."""

    def test_defaults(self):
        config = SolverConfig()
        assert config.max_iters == 50
        assert config.tolerance == 1e-8
        assert config.indep_min == 0.0
        assert config.indep_max == 1e3

    @pytest.mark.parametrize(
        "kwargs",
        [
            {"max_iters": 0},
            {"tolerance": 0.0},
            {"tolerance": -1e-6},
            {"indep_min": 5.0, "indep_max": 5.0},
        ],
    )
    def test_invalid(self, kwargs):
        with pytest.raises(ConfigurationError):
            SolverConfig(**kwargs)

    def test_configuration_error_is_value_error(self):
        with pytest.raises(ValueError):
            SolverConfig(max_iters=-1)


class TestLogger:
    """Test logger naming and configuration."""

    def test_module_loggers_are_children(self):
        assert get_logger("pyfwd.core.solver").name == "pyfwd.core.solver"
        assert get_logger("scripts").name == "pyfwd.scripts"
        assert get_logger().name == "pyfwd"

    def test_configure_logging(self):
        stream = io.StringIO()
        handler = configure_logging(logging.DEBUG, stream=stream)
        try:
            get_logger("pyfwd.core.solver").debug("Target set 1 converged")
            assert "Target set 1 converged" in stream.getvalue()
            assert "DEBUG" in stream.getvalue()
        finally:
            get_logger().removeHandler(handler)
            get_logger().setLevel(logging.NOTSET)


class TestPackage:
    """Test the public namespace."""

    def test_version(self):
        assert pyfwd.__version__ == "0.1.0"

    def test_exports(self):
        for name in pyfwd.__all__:
            assert hasattr(pyfwd, name)
