"""Centralized logging setup for the render denoiser.

Provides one logging configuration with consistent formatting across
the filters, the image I/O helpers and the CLI, plus a small timer for
reporting how long a denoising pass took.
"""

import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger with a standard format.

    Repeated calls leave an already configured root logger untouched.

    Args:
        level: Logging level string (DEBUG, INFO, WARNING, ERROR, CRITICAL).
            Unknown names fall back to INFO.
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    root = logging.getLogger()

    if root.handlers:
        return

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )
    root.addHandler(handler)
    root.setLevel(numeric_level)


def get_logger(name: str) -> logging.Logger:
    """Get a named logger instance.

    Args:
        name: Logger name, typically ``__name__`` of the calling module.

    Returns:
        Configured logger instance.
    """
    return logging.getLogger(name)


@contextmanager
def log_duration(
    logger: logging.Logger, label: str, level: int = logging.INFO
) -> Iterator[dict[str, float]]:
    """Log how long the enclosed block took.

    The yielded dict receives an ``elapsed_s`` entry once the block exits,
    so callers can reuse the measurement. Nothing is logged if the block
    raises.

    Args:
        logger: Logger to report to.
        label: Short description of the timed work.
        level: Logging level of the report.
    """
    timing: dict[str, float] = {}
    start = time.perf_counter()
    yield timing
    timing["elapsed_s"] = time.perf_counter() - start
    logger.log(level, "%s took %.3fs", label, timing["elapsed_s"])
