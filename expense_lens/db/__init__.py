"""Helpers for working with the local SQLite database."""

from __future__ import annotations

from pathlib import Path
from typing import Final

__all__ = ["DEFAULT_SQLITE_DB_PATH", "default_sqlite_path"]

# Resolved against this module so the location does not depend on the working
# directory; SQLite needs an absolute path once installed in site-packages.
DEFAULT_SQLITE_DB_PATH: Final[Path] = Path(__file__).resolve().with_name("expenses.db")


def default_sqlite_path() -> Path:
    """Return the absolute path to the default ``expenses.db`` file."""

    return DEFAULT_SQLITE_DB_PATH
