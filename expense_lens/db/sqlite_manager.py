"""SQLAlchemy persistence for expenses and the key-value cache."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import cast

from sqlalchemy import Column, DateTime, Float, Integer, String, Text, create_engine, select, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from expense_lens.db import DEFAULT_SQLITE_DB_PATH
from expense_lens.models import ExpenseRecord
from expense_lens.utils.logger import get_logger

LOGGER = get_logger(__name__)


class Base(DeclarativeBase):
    pass


class _Expense(Base):
    __tablename__ = "expenses"

    id = Column(String, primary_key=True)
    amount = Column(Float, nullable=False)
    category = Column(String, nullable=True)
    spent_at = Column(DateTime, nullable=True, index=True)
    currency = Column(String(3), nullable=True)
    payment_method = Column(String, nullable=True)
    note = Column(Text, nullable=True)
    # Insertion order; keeps ``fetch_all`` stable for equal dates.
    seq = Column(Integer, nullable=False)
    created_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


class _CacheEntry(Base):
    __tablename__ = "key_value_cache"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, server_default=text("CURRENT_TIMESTAMP"))


def _to_record(model: _Expense) -> ExpenseRecord:
    return ExpenseRecord(
        id=cast(str, model.id),
        amount=cast(float, model.amount),
        category=cast("str | None", model.category),
        date=cast("datetime | None", model.spent_at),
        currency=cast("str | None", model.currency),
        payment_method=cast("str | None", model.payment_method),
        note=cast("str | None", model.note),
    )


class SQLiteManager:
    """Owns the SQLite engine and exposes expense and cache operations."""

    def __init__(self, db_path: str | Path = DEFAULT_SQLITE_DB_PATH) -> None:
        self.db_path = Path(db_path).expanduser().resolve()
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self.engine: Engine = create_engine(
            f"sqlite:///{self.db_path}",
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
        )
        Base.metadata.create_all(self.engine)
        self._SessionFactory: sessionmaker[Session] = sessionmaker(
            bind=self.engine, expire_on_commit=False, future=True
        )
        LOGGER.debug("Opened SQLite database at %s", self.db_path)

    def insert_expense(self, record: ExpenseRecord) -> None:
        with self._SessionFactory() as session:
            if session.get(_Expense, record.id) is not None:
                raise ValueError(f"Duplicate expense id: {record.id}")
            last_seq = session.execute(select(_Expense.seq).order_by(_Expense.seq.desc())).first()
            session.add(
                _Expense(
                    id=record.id,
                    amount=record.amount,
                    category=record.category,
                    spent_at=record.date,
                    currency=record.currency,
                    payment_method=record.payment_method,
                    note=record.note,
                    seq=(last_seq[0] + 1) if last_seq else 0,
                )
            )
            session.commit()

    def update_expense(self, record: ExpenseRecord) -> None:
        with self._SessionFactory() as session:
            existing = session.get(_Expense, record.id)
            if existing is None:
                raise KeyError(f"Unknown expense: {record.id}")
            setattr(existing, "amount", record.amount)
            setattr(existing, "category", record.category)
            setattr(existing, "spent_at", record.date)
            setattr(existing, "currency", record.currency)
            setattr(existing, "payment_method", record.payment_method)
            setattr(existing, "note", record.note)
            session.commit()

    def delete_expense(self, expense_id: str) -> bool:
        with self._SessionFactory() as session:
            existing = session.get(_Expense, expense_id)
            if existing is None:
                return False
            session.delete(existing)
            session.commit()
            return True

    def get_expense(self, expense_id: str) -> ExpenseRecord | None:
        with self._SessionFactory() as session:
            model = session.get(_Expense, expense_id)
            return _to_record(model) if model is not None else None

    def fetch_expenses(self) -> list[ExpenseRecord]:
        """Return expenses newest first; undated rows trail, insertion order breaks ties."""

        with self._SessionFactory() as session:
            stmt = select(_Expense).order_by(
                _Expense.spent_at.is_(None),
                _Expense.spent_at.desc(),
                _Expense.seq,
            )
            return [_to_record(cast(_Expense, row)) for row in session.execute(stmt).scalars()]

    def get_value(self, key: str) -> str | None:
        with self._SessionFactory() as session:
            entry = session.get(_CacheEntry, key)
            return cast("str | None", entry.value) if entry is not None else None

    def set_value(self, key: str, value: str) -> None:
        with self._SessionFactory() as session:
            entry = session.get(_CacheEntry, key)
            if entry is None:
                session.add(_CacheEntry(key=key, value=value))
            else:
                setattr(entry, "value", value)
            session.commit()

    def close(self) -> None:  # pragma: no cover - trivial
        self.engine.dispose()

    def __enter__(self) -> "SQLiteManager":  # pragma: no cover - trivial
        return self

    def __exit__(self, exc_type, exc, tb) -> None:  # pragma: no cover - trivial
        self.close()


__all__ = ["SQLiteManager"]
