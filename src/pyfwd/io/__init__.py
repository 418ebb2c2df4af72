"""
I/O module for pyfwd.

Contains functions for exchanging arrays and controls as pandas tables
and CSV files.
"""

from pyfwd.io.exchange import (
    control_from_frame,
    control_to_frame,
    quant_from_frame,
    quant_to_frame,
    read_quant_csv,
    write_quant_csv,
)

__all__ = [
    "control_from_frame",
    "control_to_frame",
    "quant_from_frame",
    "quant_to_frame",
    "read_quant_csv",
    "write_quant_csv",
]
