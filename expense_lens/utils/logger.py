"""Logging utilities for the expense_lens package."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_LEVEL_ENV = "EXPENSE_LENS_LOG_LEVEL"
PACKAGE_LOGGER = "expense_lens"

_PACKAGE_LOGGER: Optional[logging.Logger] = None


def resolve_level(value: str | None) -> int:
    """Map a level name such as ``"debug"`` to its number; unknown names give INFO."""

    if not value:
        return logging.INFO
    level = logging.getLevelName(value.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return ``name``'s logger, configuring the package logger on first use.

    The package level comes from ``EXPENSE_LENS_LOG_LEVEL`` (INFO when unset).
    """
    global _PACKAGE_LOGGER
    if _PACKAGE_LOGGER is None:
        logging.basicConfig(format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        _PACKAGE_LOGGER = logging.getLogger(PACKAGE_LOGGER)
        _PACKAGE_LOGGER.setLevel(resolve_level(os.environ.get(LOG_LEVEL_ENV)))
    return logging.getLogger(name)
