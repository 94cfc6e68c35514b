"""Logging configuration for command-line use.

Library modules only create ``logging.getLogger(__name__)`` loggers;
handlers are installed here, once, by the entry point.
"""

from __future__ import annotations

import logging
import sys


def setup_logging(level: int = logging.WARNING) -> None:
    """Send log records to stderr with a timestamped format.

    Args:
        level: Threshold for the ``geocoin`` package loggers.  The root
            logger stays at WARNING, so third-party libraries only
            report warnings and errors.
    """
    logging.basicConfig(
        level=logging.WARNING,
        format="%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s:%(lineno)d | %(message)s",
        datefmt="%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stderr)],
        force=True,
    )
    logging.getLogger("geocoin").setLevel(level)
