"""
Logging configuration for Churn Insight.

All records go to the ``churn_insight`` logger, rendered by rich on stderr.
stdout is reserved for the serialized churn result.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "churn_insight"

_LEVELS = {
    "quiet": logging.ERROR,
    "normal": logging.WARNING,
    "verbose": logging.DEBUG,
}


def setup_logging(verbosity: str = "normal", log_file: Optional[str] = None) -> logging.Logger:
    """
    Attach a rich stderr handler to the package logger.

    Calling this again replaces the previous handlers, so a process that runs
    several commands (or a test session) never logs a record twice.

    Args:
        verbosity: "quiet", "normal" or "verbose", as in ``ChurnConfig``
        log_file: Optional file path that also receives every record

    Returns:
        The configured ``churn_insight`` logger
    """
    if verbosity not in _LEVELS:
        raise ValueError(f"Unknown verbosity: {verbosity!r}")
    level = _LEVELS[verbosity]
    verbose = verbosity == "verbose"

    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    rich_handler = RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )
    rich_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
    logger.addHandler(rich_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="a")
        file_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
            )
        )
        logger.addHandler(file_handler)

    logger.setLevel(level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger under the package namespace.

    ``get_logger(__name__)`` inside the package returns the module logger;
    bare names such as ``"driver"`` are prefixed with ``churn_insight.``.
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
