"""Exchange rate state: latest rates, currency symbols and historical rates."""

from __future__ import annotations

import json
import threading
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Literal, Optional, Protocol, TypeVar

from expense_lens.db.key_value import InMemoryKeyValueStore, KeyValueStore
from expense_lens.models import BASE_CURRENCY, RateTable, SymbolTable
from expense_lens.rates.client import (
    ApiError,
    RateServiceConfigError,
    RateServiceError,
    RatesResponse,
    SymbolsResponse,
)
from expense_lens.utils.logger import get_logger
from expense_lens.utils.periods import as_date

LOGGER = get_logger(__name__)

LATEST_RATES_KEY = "latestExchangeRates"
CURRENCY_SYMBOLS_KEY = "currencySymbols"

NETWORK_CONFIG_MESSAGE = (
    "Network configuration required. Check the exchange rate service URL and access key."
)
FUTURE_DATE_MESSAGE = "Cannot select future dates"

DataKind = Literal["latest", "symbols", "historical"]
_KIND_LABELS: dict[str, str] = {
    "latest": "latest rates",
    "symbols": "currency symbols",
    "historical": "historical rates",
}

T = TypeVar("T")


class RateSource(Protocol):
    """What the store needs from the remote rate service."""

    def fetch_latest(self) -> RatesResponse:
        ...  # pragma: no cover - protocol definition

    def fetch_symbols(self) -> SymbolsResponse:
        ...  # pragma: no cover - protocol definition

    def fetch_historical(self, day: str) -> RatesResponse:
        ...  # pragma: no cover - protocol definition


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


@dataclass(slots=True, frozen=True)
class LoadState:
    """Status of the most recent load for one kind of data."""

    status: LoadStatus = LoadStatus.IDLE
    message: str | None = None

    @classmethod
    def loading(cls) -> "LoadState":
        return cls(LoadStatus.LOADING)

    @classmethod
    def success(cls) -> "LoadState":
        return cls(LoadStatus.SUCCESS)

    @classmethod
    def error(cls, message: str) -> "LoadState":
        return cls(LoadStatus.ERROR, message)

    @property
    def is_error(self) -> bool:
        return self.status is LoadStatus.ERROR


class CacheState(str, Enum):
    """Where the in-memory table came from."""

    UNLOADED = "unloaded"
    CACHED = "cached"
    FRESH = "fresh"


class ConversionError(ValueError):
    """Raised by :meth:`ExchangeRateStore.convert_currency` for unusable input."""


def _api_error_message(error: ApiError | None, kind: str) -> str:
    if error is not None and error.info:
        return f"API Error: {error.info}"
    return f"Failed to load {_KIND_LABELS[kind]}"


def _describe_failure(exc: RateServiceError) -> str:
    if isinstance(exc, RateServiceConfigError):
        return NETWORK_CONFIG_MESSAGE
    return str(exc) or "Network request failed"


class ExchangeRateStore:
    """Holds the current rate and symbol tables and tracks how they were loaded.

    Tables are swapped as whole immutable values; readers never see a partial
    update. Latest rates and symbols are written to ``cache`` whenever they
    change and read back on construction, so :attr:`is_ready` can be true
    before any request completes.

    One request per kind of data runs at a time. A load issued while another is
    in flight returns the current state without fetching.
    """

    def __init__(
        self,
        client: RateSource,
        cache: Optional[KeyValueStore] = None,
        *,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.client = client
        self.cache: KeyValueStore = cache if cache is not None else InMemoryKeyValueStore()
        self._clock = clock
        self._latest_rates = RateTable()
        self._symbols = SymbolTable()
        self._historical_rates = RateTable()
        self._states: dict[str, LoadState] = {kind: LoadState() for kind in _KIND_LABELS}
        self._cache_states: dict[str, CacheState] = {
            kind: CacheState.UNLOADED for kind in _KIND_LABELS
        }
        self._locks: dict[str, threading.Lock] = {kind: threading.Lock() for kind in _KIND_LABELS}
        self._listeners: list[Callable[[DataKind], None]] = []
        self._selected_date: date = clock().date()
        self._historical_date: date | None = None
        self._historical_generation = 0
        self._closed = False
        self._load_persisted()

    # -- read accessors -------------------------------------------------

    @property
    def latest_rates(self) -> RateTable:
        return self._latest_rates

    @property
    def symbols(self) -> SymbolTable:
        return self._symbols

    @property
    def historical_rates(self) -> RateTable:
        return self._historical_rates

    @property
    def historical_date(self) -> date | None:
        """Day the current historical table belongs to."""

        return self._historical_date

    @property
    def selected_date(self) -> date:
        return self._selected_date

    @property
    def latest_state(self) -> LoadState:
        return self._states["latest"]

    @property
    def symbols_state(self) -> LoadState:
        return self._states["symbols"]

    @property
    def historical_state(self) -> LoadState:
        return self._states["historical"]

    def cache_state(self, kind: DataKind) -> CacheState:
        return self._cache_states[kind]

    @property
    def is_ready(self) -> bool:
        """Both latest rates and symbols are available, from cache or network."""

        return bool(self._latest_rates) and bool(self._symbols)

    @property
    def is_initial_data_loaded(self) -> bool:
        return (
            self._cache_states["latest"] is not CacheState.UNLOADED
            and self._cache_states["symbols"] is not CacheState.UNLOADED
        )

    # -- listeners ------------------------------------------------------

    def subscribe(self, listener: Callable[[DataKind], None]) -> Callable[[], None]:
        """Call ``listener`` with the data kind after every table swap."""

        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self, kind: DataKind) -> None:
        for listener in list(self._listeners):
            listener(kind)

    # -- persistence ----------------------------------------------------

    def _load_persisted(self) -> None:
        rates = self._read_cached(LATEST_RATES_KEY)
        if rates:
            self._latest_rates = RateTable(rates)
            self._cache_states["latest"] = CacheState.CACHED
        symbols = self._read_cached(CURRENCY_SYMBOLS_KEY)
        if symbols:
            self._symbols = SymbolTable(symbols)
            self._cache_states["symbols"] = CacheState.CACHED
        if rates or symbols:
            LOGGER.info(
                "Restored %s cached rates and %s cached symbols",
                len(self._latest_rates),
                len(self._symbols),
            )

    def _read_cached(self, key: str) -> dict[str, Any] | None:
        raw = self.cache.get(key)
        if raw is None:
            return None
        try:
            payload = json.loads(raw)
        except ValueError:
            LOGGER.warning("Ignoring unreadable cache entry %s", key)
            return None
        if not isinstance(payload, dict):
            LOGGER.warning("Ignoring cache entry %s: expected an object", key)
            return None
        return payload

    def _persist(self, key: str, table: RateTable | SymbolTable) -> None:
        self.cache.set(key, json.dumps(table.as_dict(), sort_keys=True))

    # -- loading --------------------------------------------------------

    def _fetch(self, kind: DataKind, fetch: Callable[[], T]) -> T | None:
        """Run ``fetch`` while marking ``kind`` as loading.

        Returns ``None`` when the rate service failed; the error is recorded in
        the load state. Other exceptions are recorded the same way and re-raised.
        """

        self._states[kind] = LoadState.loading()
        try:
            return fetch()
        except RateServiceError as exc:
            message = _describe_failure(exc)
            LOGGER.warning("Loading %s failed: %s", _KIND_LABELS[kind], message)
            self._states[kind] = LoadState.error(message)
            return None
        except Exception as exc:
            LOGGER.exception("Unexpected failure loading %s", _KIND_LABELS[kind])
            self._states[kind] = LoadState.error(str(exc) or type(exc).__name__)
            raise

    def load_latest(self) -> LoadState:
        return self._load_latest(force=False)

    def refresh_latest(self) -> LoadState:
        return self._load_latest(force=True)

    def _load_latest(self, *, force: bool) -> LoadState:
        if not force and self._latest_rates:
            self._states["latest"] = LoadState.success()
            return self.latest_state
        lock = self._locks["latest"]
        if not lock.acquire(blocking=False):
            LOGGER.debug("Latest rates request already in flight")
            return self.latest_state
        try:
            response = self._fetch("latest", self.client.fetch_latest)
            if response is None:
                return self.latest_state
            if not response.success or response.rates is None:
                self._states["latest"] = LoadState.error(
                    _api_error_message(response.error, "latest")
                )
                return self.latest_state
            self._latest_rates = RateTable(response.rates)
            self._cache_states["latest"] = CacheState.FRESH
            self._persist(LATEST_RATES_KEY, self._latest_rates)
            self._states["latest"] = LoadState.success()
            LOGGER.info("Loaded %s latest rates", len(self._latest_rates))
        finally:
            lock.release()
        self._notify("latest")
        return self.latest_state

    def load_symbols(self) -> LoadState:
        return self._load_symbols(force=False)

    def refresh_symbols(self) -> LoadState:
        return self._load_symbols(force=True)

    def _load_symbols(self, *, force: bool) -> LoadState:
        if not force and self._symbols:
            self._states["symbols"] = LoadState.success()
            return self.symbols_state
        lock = self._locks["symbols"]
        if not lock.acquire(blocking=False):
            LOGGER.debug("Symbols request already in flight")
            return self.symbols_state
        try:
            response = self._fetch("symbols", self.client.fetch_symbols)
            if response is None:
                return self.symbols_state
            if not response.success or response.symbols is None:
                self._states["symbols"] = LoadState.error(
                    _api_error_message(response.error, "symbols")
                )
                return self.symbols_state
            self._symbols = SymbolTable(response.symbols)
            self._cache_states["symbols"] = CacheState.FRESH
            self._persist(CURRENCY_SYMBOLS_KEY, self._symbols)
            self._states["symbols"] = LoadState.success()
            LOGGER.info("Loaded %s currency symbols", len(self._symbols))
        finally:
            lock.release()
        self._notify("symbols")
        return self.symbols_state

    def select_date(self, day: date | datetime) -> LoadState:
        """Change the historical date; rates are reloaded when the day changes."""

        target = as_date(day)
        if target == self._selected_date and self._historical_date == target:
            return self.historical_state
        if target != self._selected_date:
            self._selected_date = target
            self._historical_generation += 1
            self._historical_rates = RateTable()
            self._historical_date = None
            self._cache_states["historical"] = CacheState.UNLOADED
        return self.load_historical()

    def load_historical(self) -> LoadState:
        return self._load_historical(force=False)

    def refresh_historical(self) -> LoadState:
        return self._load_historical(force=True)

    def _load_historical(self, *, force: bool) -> LoadState:
        if (
            not force
            and self._historical_rates
            and self._historical_date == self._selected_date
        ):
            self._states["historical"] = LoadState.success()
            return self.historical_state
        lock = self._locks["historical"]
        if not lock.acquire(blocking=False):
            # The running request re-checks the selection before applying.
            LOGGER.debug("Historical rates request already in flight")
            return self.historical_state
        applied = False
        try:
            while not self._closed:
                target = self._selected_date
                generation = self._historical_generation
                if target > self._clock().date():
                    self._states["historical"] = LoadState.error(FUTURE_DATE_MESSAGE)
                    return self.historical_state
                response = self._fetch(
                    "historical", lambda: self.client.fetch_historical(target.isoformat())
                )
                if self._closed:
                    break
                if generation != self._historical_generation:
                    LOGGER.info("Discarding historical rates for %s; selection changed", target)
                    continue
                if response is None:
                    return self.historical_state
                if not response.success or response.rates is None:
                    self._states["historical"] = LoadState.error(
                        _api_error_message(response.error, "historical")
                    )
                    return self.historical_state
                self._historical_rates = RateTable(response.rates)
                self._historical_date = target
                self._cache_states["historical"] = CacheState.FRESH
                self._states["historical"] = LoadState.success()
                applied = True
                LOGGER.info("Loaded %s historical rates for %s", len(self._historical_rates), target)
                break
            else:
                LOGGER.debug("Rate store closed; historical request dropped")
            if self._closed:
                self._states["historical"] = LoadState()
        finally:
            lock.release()
        if applied:
            self._notify("historical")
        return self.historical_state

    def load_initial_data(self) -> None:
        """Load whatever has not been loaded yet."""

        self.load_symbols()
        self.load_latest()
        self.load_historical()

    def refresh_all(self) -> None:
        self.refresh_symbols()
        self.refresh_latest()
        self.refresh_historical()

    def close(self) -> None:
        """Stop applying results; in-flight historical requests are discarded."""

        self._closed = True
        self._historical_generation += 1
        self._listeners.clear()

    # -- conversion and search -----------------------------------------

    def convert_currency(self, amount: Any, from_currency: str, to_currency: str) -> float:
        """Convert with the latest table, rejecting input that cannot be converted."""

        try:
            value = float(amount)
        except (TypeError, ValueError) as exc:
            raise ConversionError("Please enter a valid amount greater than 0") from exc
        if value <= 0:
            raise ConversionError("Please enter a valid amount greater than 0")
        if not from_currency or not to_currency:
            raise ConversionError("Please select both currencies")
        rates = self._latest_rates
        if not rates:
            raise ConversionError(
                "Currency rates not available. Please wait for rates to load or refresh."
            )
        from_code = from_currency.upper()
        to_code = to_currency.upper()
        from_rate = 1.0 if from_code == BASE_CURRENCY else rates.get(from_code)
        to_rate = 1.0 if to_code == BASE_CURRENCY else rates.get(to_code)
        if from_rate is None or to_rate is None:
            raise ConversionError("Exchange rate not available for selected currencies")
        return value / from_rate * to_rate

    def filter_rates(self, search: str = "") -> list[tuple[str, float]]:
        return _filter_table(self._latest_rates, search)

    def filter_historical(self, search: str = "") -> list[tuple[str, float]]:
        return _filter_table(self._historical_rates, search)

    def filter_symbols(self, search: str = "") -> list[tuple[str, str]]:
        needle = search.lower()
        return [
            (code, name)
            for code, name in self._symbols.items()
            if not needle or needle in code.lower() or needle in name.lower()
        ]


def _filter_table(table: RateTable, search: str) -> list[tuple[str, float]]:
    needle = search.lower()
    return [(code, rate) for code, rate in table.items() if not needle or needle in code.lower()]


__all__ = [
    "CURRENCY_SYMBOLS_KEY",
    "FUTURE_DATE_MESSAGE",
    "LATEST_RATES_KEY",
    "NETWORK_CONFIG_MESSAGE",
    "CacheState",
    "ConversionError",
    "ExchangeRateStore",
    "LoadState",
    "LoadStatus",
    "RateSource",
]
