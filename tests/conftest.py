from __future__ import annotations

from datetime import datetime
from typing import Callable

import pytest

from expense_lens.rates.client import RatesResponse, SymbolsResponse

FIXED_NOW = datetime(2026, 1, 20, 15, 30)


class FakeRateClient:
    """Stands in for ``ExchangeRateClient``; records every call it receives."""

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.latest: RatesResponse | Exception = RatesResponse(
            success=True, rates={"USD": 1.1, "INR": 90.0}, base="EUR"
        )
        self.symbols: SymbolsResponse | Exception = SymbolsResponse(
            success=True,
            symbols={"EUR": "Euro", "INR": "Indian Rupee", "USD": "United States Dollar"},
        )
        self.historical: RatesResponse | Exception = RatesResponse(
            success=True, rates={"USD": 1.05, "INR": 88.0}, base="EUR"
        )
        self.on_latest: Callable[[], None] | None = None
        self.on_historical: Callable[[str], None] | None = None

    @staticmethod
    def _answer(value):
        if isinstance(value, Exception):
            raise value
        return value

    def fetch_latest(self) -> RatesResponse:
        self.calls.append("latest")
        if self.on_latest is not None:
            hook, self.on_latest = self.on_latest, None
            hook()
        return self._answer(self.latest)

    def fetch_symbols(self) -> SymbolsResponse:
        self.calls.append("symbols")
        return self._answer(self.symbols)

    def fetch_historical(self, day: str) -> RatesResponse:
        self.calls.append(f"historical:{day}")
        if self.on_historical is not None:
            hook, self.on_historical = self.on_historical, None
            hook(day)
        return self._answer(self.historical)


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return lambda: FIXED_NOW


@pytest.fixture
def fake_client() -> FakeRateClient:
    return FakeRateClient()
