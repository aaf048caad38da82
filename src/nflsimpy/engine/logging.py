"""Logging helpers for the simulation engine."""

from __future__ import annotations

import logging
from typing import Iterable


def configure_logging(
    level: int | str = logging.INFO, handlers: Iterable[logging.Handler] | None = None
) -> None:
    """Configure root logging for command line and notebook sessions.

    Team tables frequently arrive with missing or oddly formatted columns and
    the normaliser reports every substituted default through the module
    loggers.  Embedding applications can call this helper to get a consistent
    format for those messages and for the per-run simulation diagnostics.
    """

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=list(handlers) if handlers else None,
    )
