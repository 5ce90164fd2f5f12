"""Logging helpers with consistent formatting."""

from __future__ import annotations

import logging
import os
import sys
from typing import Optional

from rich.logging import RichHandler


_ROOT = "lockkey"


def _level_from_env(default: int) -> int:
    raw = os.getenv("LOCKKEY_LOG_LEVEL")
    if not raw:
        return default
    value = raw.strip().upper()
    if value.isdigit():
        return int(value)
    resolved = logging.getLevelName(value)
    # getLevelName returns "Level X" for names it does not know
    return resolved if isinstance(resolved, int) else default


def get_logger(name: str, level: Optional[int] = None, *, rich: bool = True) -> logging.Logger:
    """Configure and return a logger under the ``lockkey`` namespace."""
    qualified = name if name.startswith(_ROOT) else f"{_ROOT}.{name}"
    logger = logging.getLogger(qualified)
    if logger.handlers:
        return logger

    level = _level_from_env(logging.WARNING) if level is None else level
    logger.setLevel(level)

    if rich:
        handler: logging.Handler = RichHandler(
            level=level,
            markup=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            show_time=True,
            show_path=False,
        )
    else:
        handler = logging.StreamHandler(sys.stderr)
        handler.setLevel(level)

    formatter = logging.Formatter(
        "%(asctime)s %(name)s %(levelname)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    handler.setFormatter(formatter)

    logger.addHandler(handler)
    logger.propagate = False
    return logger
