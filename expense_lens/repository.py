"""Expense repository with change notifications."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Literal

from expense_lens.db.base_backend import ExpenseBackend
from expense_lens.db.memory_backend import InMemoryBackend
from expense_lens.models import DEFAULT_CURRENCY, ExpenseRecord
from expense_lens.utils.logger import get_logger

LOGGER = get_logger(__name__)

ChangeKind = Literal["created", "updated", "deleted"]


@dataclass(slots=True, frozen=True)
class RepositoryEvent:
    """Emitted after a mutation has been committed."""

    kind: ChangeKind
    expense_id: str


Listener = Callable[[RepositoryEvent], None]


class ExpenseRepository:
    """Create/read/update/delete expenses and notify subscribers of changes.

    Subscribers are called synchronously, in subscription order, after the
    backend has committed the change.
    """

    def __init__(self, backend: ExpenseBackend | None = None) -> None:
        self.backend = backend or InMemoryBackend()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, kind: ChangeKind, expense_id: str) -> None:
        event = RepositoryEvent(kind=kind, expense_id=expense_id)
        for listener in list(self._listeners):
            listener(event)

    def list_all(self) -> list[ExpenseRecord]:
        """Return every expense, newest first (undated expenses last)."""

        return self.backend.fetch_all()

    def get(self, expense_id: str) -> ExpenseRecord | None:
        return self.backend.get(expense_id)

    def add_expense(
        self,
        amount: float,
        category: str | None = None,
        date: datetime | None = None,
        *,
        payment_method: str | None = None,
        note: str | None = None,
        currency: str | None = DEFAULT_CURRENCY,
    ) -> ExpenseRecord:
        _validate_amount(amount)
        record = ExpenseRecord(
            id=uuid.uuid4().hex,
            amount=float(amount),
            category=category,
            date=_local_naive(date),
            currency=currency.upper() if currency else currency,
            payment_method=payment_method,
            note=note,
        )
        self.backend.insert(record)
        LOGGER.info("Saved expense %s (%s %s)", record.id, record.amount, record.currency_code)
        self._emit("created", record.id)
        return record

    def update_expense(self, expense_id: str, **changes: object) -> ExpenseRecord:
        """Apply ``changes`` to an existing expense.

        Accepted keys mirror :class:`ExpenseRecord` fields except ``id``.
        """

        existing = self.backend.get(expense_id)
        if existing is None:
            raise KeyError(f"Unknown expense: {expense_id}")
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported fields: {', '.join(sorted(unknown))}")
        if "amount" in changes:
            _validate_amount(changes["amount"])  # type: ignore[arg-type]
            changes["amount"] = float(changes["amount"])  # type: ignore[arg-type]
        if isinstance(changes.get("date"), datetime):
            changes["date"] = _local_naive(changes["date"])  # type: ignore[arg-type]
        if isinstance(changes.get("currency"), str):
            changes["currency"] = changes["currency"].upper()  # type: ignore[union-attr]
        updated = existing.with_changes(**changes)
        self.backend.update(updated)
        LOGGER.info("Updated expense %s", expense_id)
        self._emit("updated", expense_id)
        return updated

    def delete_expense(self, expense_id: str) -> None:
        if not self.backend.delete(expense_id):
            raise KeyError(f"Unknown expense: {expense_id}")
        LOGGER.info("Deleted expense %s", expense_id)
        self._emit("deleted", expense_id)

    def close(self) -> None:
        self._listeners.clear()
        self.backend.close()


_EDITABLE_FIELDS = frozenset(
    {"amount", "category", "date", "currency", "payment_method", "note"}
)


def _validate_amount(amount: object) -> None:
    if isinstance(amount, bool) or not isinstance(amount, (int, float)):
        raise ValueError("amount must be a number")
    if not math.isfinite(amount):
        raise ValueError("amount must be a finite number")
    if amount < 0:
        raise ValueError("amount must not be negative")


def _local_naive(value: datetime | None) -> datetime | None:
    """Expense dates are naive local time; aware values are converted first."""

    if value is None or value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)


__all__ = ["ExpenseRepository", "RepositoryEvent"]
