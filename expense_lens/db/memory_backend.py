"""In-process expense backend."""

from __future__ import annotations

from expense_lens.db.base_backend import ExpenseBackend, sort_newest_first
from expense_lens.models import ExpenseRecord


class InMemoryBackend(ExpenseBackend):
    """Keeps expenses in a dict; nothing survives the process."""

    def __init__(self, records: list[ExpenseRecord] | None = None) -> None:
        self._records: dict[str, ExpenseRecord] = {}
        for record in records or []:
            self.insert(record)

    def insert(self, record: ExpenseRecord) -> None:
        if record.id in self._records:
            raise ValueError(f"Duplicate expense id: {record.id}")
        self._records[record.id] = record

    def update(self, record: ExpenseRecord) -> None:
        if record.id not in self._records:
            raise KeyError(f"Unknown expense: {record.id}")
        self._records[record.id] = record

    def delete(self, expense_id: str) -> bool:
        return self._records.pop(expense_id, None) is not None

    def get(self, expense_id: str) -> ExpenseRecord | None:
        return self._records.get(expense_id)

    def fetch_all(self) -> list[ExpenseRecord]:
        return sort_newest_first(list(self._records.values()))


__all__ = ["InMemoryBackend"]
