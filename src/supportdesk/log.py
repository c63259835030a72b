"""Logging setup shared by the CLI and the web app."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Install one stream handler on the package logger.

    Safe to call more than once; later calls only adjust the level.
    """
    logger = logging.getLogger("supportdesk")
    logger.setLevel(level.upper())
    if not any(getattr(h, "_supportdesk", False) for h in logger.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._supportdesk = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
