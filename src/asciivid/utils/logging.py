"""Logging utilities for asciivid."""

from __future__ import annotations

import logging
import sys
from typing import TextIO


def _stream_handler(stream: TextIO, level: int) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setLevel(level)

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)
    return handler


def get_logger(
    name: str = "asciivid",
    level: int = logging.INFO,
    stream: TextIO = sys.stderr,
) -> logging.Logger:
    """Get a configured logger for asciivid.

    Calling again with another stream replaces the handler, so the logger
    never keeps writing to a stream that has since been swapped out.

    Args:
        name: Logger name.
        level: Logging level.
        stream: Output stream.

    Returns:
        Configured logger instance.
    """
    logger = logging.getLogger(name)

    if logger.handlers and all(getattr(h, "stream", None) is stream for h in logger.handlers):
        for handler in logger.handlers:
            handler.setLevel(level)
    else:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
        logger.addHandler(_stream_handler(stream, level))

    logger.setLevel(level)
    return logger
