"""SQLite backend strategy implementation."""

from __future__ import annotations

from pathlib import Path

from expense_lens.db import DEFAULT_SQLITE_DB_PATH
from expense_lens.db.base_backend import ExpenseBackend
from expense_lens.db.sqlite_manager import SQLiteManager
from expense_lens.models import ExpenseRecord


class SQLiteBackend(ExpenseBackend):
    """Backend strategy that stores expenses in a local SQLite database."""

    def __init__(
        self,
        db_path: str | Path = DEFAULT_SQLITE_DB_PATH,
        *,
        manager: SQLiteManager | None = None,
    ) -> None:
        self.manager = manager or SQLiteManager(db_path)
        self.db_path = Path(self.manager.db_path)

    def insert(self, record: ExpenseRecord) -> None:
        self.manager.insert_expense(record)

    def update(self, record: ExpenseRecord) -> None:
        self.manager.update_expense(record)

    def delete(self, expense_id: str) -> bool:
        return self.manager.delete_expense(expense_id)

    def get(self, expense_id: str) -> ExpenseRecord | None:
        return self.manager.get_expense(expense_id)

    def fetch_all(self) -> list[ExpenseRecord]:
        return self.manager.fetch_expenses()

    def close(self) -> None:  # pragma: no cover - trivial delegator
        self.manager.close()


__all__ = ["SQLiteBackend"]
