"""Logging configuration for scripts and notebooks using grove3d."""

from __future__ import annotations

import logging
import os
import sys


def setup_logging(
    level: int = logging.INFO, log_file: str | os.PathLike | None = None
) -> logging.Logger:
    """Configures the logger for the 'grove3d' namespace.

    The library itself only creates module-level loggers; call this from an
    application entry point to actually see their output.

    Parameters
    ----------
    level : int
        logging level, e.g. logging.DEBUG or logging.INFO
    log_file : string, path to file, optional
        if given, log records are also written to this file

    Returns
    -------
    logger : logging.Logger
        the configured package logger
    """
    logger = logging.getLogger("grove3d")
    logger.setLevel(level)

    # avoid duplicated records when called twice in the same session
    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
    )

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode="w", encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.debug("Logging initialized.")
    return logger
