"""Centralized logging configuration for pyfwd."""

import logging
import sys
from typing import Optional

# Create logger
logger = logging.getLogger('pyfwd')
logger.addHandler(logging.NullHandler())

# Create formatter
formatter = logging.Formatter(
    '%(asctime)s - %(name)s - %(levelname)s - %(filename)s:%(lineno)d - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)


def configure_logging(level: int = logging.INFO, stream=None) -> logging.Handler:
    """Attach a console handler to the package logger.

    Parameters
    ----------
    level : int
        Logging level for the package logger and the new handler
    stream : file-like, optional
        Output stream (default: sys.stdout)

    Returns
    -------
    logging.Handler
        The handler that was added, so callers can remove it again
    """
    console_handler = logging.StreamHandler(stream or sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)
    logger.setLevel(level)
    return console_handler


def get_logger(name: Optional[str] = None):
    """Get a logger instance.

    Parameters
    ----------
    name : str, optional
        Logger name (typically __name__). If None, returns the package logger.

    Returns
    -------
    logging.Logger
        Configured logger instance
    """
    if name:
        if name.startswith('pyfwd.'):
            return logging.getLogger(name)
        return logging.getLogger(f'pyfwd.{name}')
    return logger
