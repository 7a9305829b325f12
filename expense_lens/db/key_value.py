"""Key-value storage used to persist rate and symbol tables between runs."""

from __future__ import annotations

from typing import Protocol

from expense_lens.db.sqlite_manager import SQLiteManager


class KeyValueStore(Protocol):
    """Minimal string store keyed by name."""

    def get(self, key: str) -> str | None:
        ...  # pragma: no cover - protocol definition

    def set(self, key: str, value: str) -> None:
        ...  # pragma: no cover - protocol definition


class InMemoryKeyValueStore:
    def __init__(self, initial: dict[str, str] | None = None) -> None:
        self._values: dict[str, str] = dict(initial or {})

    def get(self, key: str) -> str | None:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value


class SQLiteKeyValueStore:
    """Stores values in the ``key_value_cache`` table of a :class:`SQLiteManager`."""

    def __init__(self, manager: SQLiteManager) -> None:
        self.manager = manager

    def get(self, key: str) -> str | None:
        return self.manager.get_value(key)

    def set(self, key: str, value: str) -> None:
        self.manager.set_value(key, value)


__all__ = ["InMemoryKeyValueStore", "KeyValueStore", "SQLiteKeyValueStore"]
