"""Backend strategy interfaces for expense storage."""

from __future__ import annotations

from abc import ABC, abstractmethod

from expense_lens.models import ExpenseRecord


class ExpenseBackend(ABC):
    """Common interface implemented by every expense storage backend."""

    @abstractmethod
    def insert(self, record: ExpenseRecord) -> None:
        """Persist a new expense."""

    @abstractmethod
    def update(self, record: ExpenseRecord) -> None:
        """Replace the stored expense sharing ``record.id``."""

    @abstractmethod
    def delete(self, expense_id: str) -> bool:
        """Remove an expense; return ``False`` when it did not exist."""

    @abstractmethod
    def get(self, expense_id: str) -> ExpenseRecord | None:
        """Return a single expense or ``None``."""

    @abstractmethod
    def fetch_all(self) -> list[ExpenseRecord]:
        """Return all expenses sorted by date descending, undated last."""

    def close(self) -> None:  # pragma: no cover - optional cleanup hook
        """Backends may override to release connections/resources."""


def sort_newest_first(records: list[ExpenseRecord]) -> list[ExpenseRecord]:
    """Order by date descending; undated records go last, ties keep insertion order."""

    dated = [record for record in records if record.date is not None]
    undated = [record for record in records if record.date is None]
    dated.sort(key=lambda record: record.date, reverse=True)  # type: ignore[arg-type,return-value]
    return dated + undated


__all__ = ["ExpenseBackend", "sort_newest_first"]
