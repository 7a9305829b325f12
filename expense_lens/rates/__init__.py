"""Exchange rate service client and the cached rate store."""

from __future__ import annotations

from expense_lens.rates.client import (
    DEFAULT_BASE_URL,
    ApiError,
    ExchangeRateClient,
    RateServiceConfigError,
    RateServiceError,
    RatesResponse,
    SymbolsResponse,
)
from expense_lens.rates.store import (
    CacheState,
    ConversionError,
    ExchangeRateStore,
    LoadState,
    LoadStatus,
)

__all__ = [
    "DEFAULT_BASE_URL",
    "ApiError",
    "CacheState",
    "ConversionError",
    "ExchangeRateClient",
    "ExchangeRateStore",
    "LoadState",
    "LoadStatus",
    "RateServiceConfigError",
    "RateServiceError",
    "RatesResponse",
    "SymbolsResponse",
]
