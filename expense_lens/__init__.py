"""Public interface for the expense_lens package."""

from __future__ import annotations

from datetime import date, datetime
from importlib import metadata as importlib_metadata
from pathlib import Path
from typing import Callable

from sqlalchemy import text

from expense_lens.analytics.summary import MonthlyAnalytics
from expense_lens.db import DEFAULT_SQLITE_DB_PATH
from expense_lens.db.key_value import SQLiteKeyValueStore
from expense_lens.db.sqlite_backend import SQLiteBackend
from expense_lens.db.sqlite_manager import SQLiteManager
from expense_lens.listing import Dashboard
from expense_lens.models import DEFAULT_CURRENCY, CategorySlice, ExpenseRecord, RateTable
from expense_lens.rates.client import DEFAULT_BASE_URL, ExchangeRateClient
from expense_lens.rates.store import ExchangeRateStore, RateSource
from expense_lens.repository import ExpenseRepository
from expense_lens.utils.currency import AmountNormalizer, convert, convert_to_target_currency

__all__ = [
    "__version__",
    "CategorySlice",
    "Dashboard",
    "ExchangeRateClient",
    "ExchangeRateStore",
    "ExpenseLens",
    "ExpenseRecord",
    "ExpenseRepository",
    "MonthlyAnalytics",
    "RateTable",
    "SQLiteManager",
    "convert",
    "convert_to_target_currency",
]

try:
    __version__ = importlib_metadata.version("expense-lens")
except importlib_metadata.PackageNotFoundError:  # pragma: no cover - fallback for local runs
    __version__ = "0.1.0"


class ExpenseLens:
    """Package facade wiring storage, exchange rates and analytics together."""

    __slots__ = (
        "home_currency",
        "sqlite_manager",
        "repository",
        "rate_store",
        "dashboard",
        "_clock",
    )

    # Provide direct access to the package version as a class attribute.
    __version__ = __version__

    def __init__(
        self,
        db_path: str | Path | None = None,
        *,
        home_currency: str = DEFAULT_CURRENCY,
        access_key: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        client: RateSource | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        """Open (or create) the expense database and restore cached rates.

        Expenses and the rate cache share one SQLite file, ``db_path``, which
        defaults to :data:`DEFAULT_SQLITE_DB_PATH`. Without an explicit
        ``client`` an :class:`ExchangeRateClient` is built from ``access_key``
        (or the ``EXCHANGE_RATES_API_KEY`` environment variable) and
        ``base_url``. No network request is made here.
        """

        self.home_currency = home_currency.upper()
        self._clock = clock
        self.sqlite_manager = SQLiteManager(db_path or DEFAULT_SQLITE_DB_PATH)
        self.repository = ExpenseRepository(SQLiteBackend(manager=self.sqlite_manager))
        rate_client = client or ExchangeRateClient(access_key=access_key, base_url=base_url)
        self.rate_store = ExchangeRateStore(
            rate_client,
            SQLiteKeyValueStore(self.sqlite_manager),
            clock=clock,
        )
        self.dashboard = Dashboard(
            self.repository.list_all,
            normalizer_provider=self.normalizer,
            clock=clock,
        )

    def normalizer(self) -> AmountNormalizer:
        """Amount normaliser reflecting the current rate table and readiness."""

        return AmountNormalizer.for_rates(
            self.rate_store.latest_rates,
            self.home_currency,
            ready=self.rate_store.is_ready,
        )

    def analytics(self, month: date | datetime | None = None) -> MonthlyAnalytics:
        """Return a live analytics view for ``month`` (defaults to the current month)."""

        return MonthlyAnalytics(
            self.repository,
            self.rate_store,
            home_currency=self.home_currency,
            selected_month=month,
            clock=self._clock,
        )

    @property
    def is_ready(self) -> bool:
        return self.rate_store.is_ready

    def connection(self) -> tuple[bool, str | None]:
        """Attempt a trivial query against the database and report the outcome."""

        try:
            with self.sqlite_manager.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:  # pragma: no cover - SQLAlchemy provides error detail
            return False, str(exc)
        return True, None

    def close(self) -> None:
        self.rate_store.close()
        self.repository.close()

    def __enter__(self) -> "ExpenseLens":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
