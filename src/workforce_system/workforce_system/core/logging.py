"""Logging setup shared by the whole service."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def configure_logging(level: str | int = "INFO") -> None:
    global _configured

    root = logging.getLogger("workforce_system")
    root.setLevel(level if isinstance(level, int) else level.upper())
    if not _configured:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)
        _configured = True


def get_logger(name: str) -> logging.Logger:
    if not name.startswith("workforce_system"):
        name = f"workforce_system.{name}"
    return logging.getLogger(name)
