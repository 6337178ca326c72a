"""Logging for the ``helixforge`` command line."""

from __future__ import annotations

import logging
import os
import sys


def configure_logging(default_level: str = "WARNING") -> int:
    """Route helixforge log records to stderr and return the active level.

    ``LOG_LEVEL`` (e.g. ``DEBUG`` to trace dropped blocks and snapshot
    controllers) overrides ``default_level``. stdout is left to the preset
    and catalog JSON the CLI prints.
    """
    requested = os.environ.get("LOG_LEVEL", default_level).upper()
    level = logging.getLevelName(requested)
    invalid = not isinstance(level, int)
    if invalid:
        level = logging.getLevelName(default_level.upper())
        if not isinstance(level, int):
            level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )
    if invalid:
        logging.getLogger("helixforge").warning(
            "Ignoring unknown LOG_LEVEL %r; logging at %s",
            requested,
            logging.getLevelName(level),
        )
    return level
