"""Data models shared across the expense_lens package."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from expense_lens.utils.logger import get_logger

LOGGER = get_logger(__name__)

BASE_CURRENCY = "EUR"
DEFAULT_CURRENCY = "INR"
DEFAULT_CATEGORY = "Others"


@dataclass(slots=True, frozen=True)
class ExpenseRecord:
    """A single recorded expense as returned by the repository."""

    id: str
    amount: float
    category: str | None = None
    date: datetime | None = None
    currency: str | None = DEFAULT_CURRENCY
    payment_method: str | None = None
    note: str | None = None

    @property
    def category_key(self) -> str:
        """Category used for grouping; missing categories fall under ``Others``."""

        return self.category or DEFAULT_CATEGORY

    @property
    def currency_code(self) -> str:
        return (self.currency or DEFAULT_CURRENCY).upper()

    def with_changes(self, **changes: Any) -> "ExpenseRecord":
        return replace(self, **changes)


@dataclass(slots=True, frozen=True)
class CategorySlice:
    """One category's share of a period's spending."""

    name: str
    percent: float
    color_key: str


class RateTable(Mapping[str, float]):
    """Immutable exchange rates quoted against :data:`BASE_CURRENCY`.

    A non-empty table always carries the identity rate for the base currency.
    Non-positive or non-numeric rates are dropped while the table is built.
    """

    __slots__ = ("_rates", "base")

    def __init__(
        self,
        rates: Mapping[str, Any] | None = None,
        *,
        base: str = BASE_CURRENCY,
    ) -> None:
        self.base = base
        cleaned: dict[str, float] = {}
        for code, value in (rates or {}).items():
            try:
                rate = float(value)
            except (TypeError, ValueError):
                LOGGER.warning("Dropping non-numeric rate %r for %s", value, code)
                continue
            if rate <= 0:
                LOGGER.warning("Dropping non-positive rate %s for %s", rate, code)
                continue
            cleaned[str(code).upper()] = rate
        if cleaned:
            cleaned.setdefault(base, 1.0)
        self._rates = dict(sorted(cleaned.items()))

    def __getitem__(self, code: str) -> float:
        return self._rates[code.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __repr__(self) -> str:
        return f"RateTable(base={self.base!r}, rates={self._rates!r})"

    def as_dict(self) -> dict[str, float]:
        return dict(self._rates)


class SymbolTable(Mapping[str, str]):
    """Immutable mapping of currency codes to display names."""

    __slots__ = ("_symbols",)

    def __init__(self, symbols: Mapping[str, Any] | None = None) -> None:
        self._symbols = {
            str(code).upper(): str(name) for code, name in sorted((symbols or {}).items())
        }

    def __getitem__(self, code: str) -> str:
        return self._symbols[code.upper()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._symbols)

    def __len__(self) -> int:
        return len(self._symbols)

    def __repr__(self) -> str:
        return f"SymbolTable({self._symbols!r})"

    def as_dict(self) -> dict[str, str]:
        return dict(self._symbols)


__all__ = [
    "BASE_CURRENCY",
    "DEFAULT_CATEGORY",
    "DEFAULT_CURRENCY",
    "CategorySlice",
    "ExpenseRecord",
    "RateTable",
    "SymbolTable",
]
