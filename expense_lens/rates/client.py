"""HTTP client for the exchangeratesapi.io v1 API."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping, Optional

import requests
from tenacity import Retrying, retry_if_exception, stop_after_attempt, wait_exponential

from expense_lens.utils.logger import get_logger

if TYPE_CHECKING:  # pragma: no cover - imported only for type checking
    from requests import Response

LOGGER = get_logger(__name__)

DEFAULT_BASE_URL = "http://api.exchangeratesapi.io/v1"
ACCESS_KEY_ENV = "EXCHANGE_RATES_API_KEY"


class RateServiceError(RuntimeError):
    """Raised when the rate service cannot be reached or returns garbage."""


class RateServiceConfigError(RateServiceError):
    """Raised when the client is misconfigured (URL, TLS, access key)."""


@dataclass(slots=True, frozen=True)
class ApiError:
    code: int
    type: str
    info: str

    @classmethod
    def from_payload(cls, payload: Any) -> "ApiError | None":
        if not isinstance(payload, Mapping):
            return None
        try:
            code = int(payload.get("code", 0))
        except (TypeError, ValueError):
            code = 0
        return cls(
            code=code,
            type=str(payload.get("type", "")),
            info=str(payload.get("info", payload.get("message", ""))),
        )


@dataclass(slots=True, frozen=True)
class RatesResponse:
    """Decoded ``/latest`` or ``/YYYY-MM-DD`` payload."""

    success: bool
    rates: dict[str, float] | None = None
    base: str | None = None
    date: str | None = None
    timestamp: int | None = None
    error: ApiError | None = None


@dataclass(slots=True, frozen=True)
class SymbolsResponse:
    """Decoded ``/symbols`` payload."""

    success: bool
    symbols: dict[str, str] | None = None
    error: ApiError | None = None


def _require_success_flag(payload: Any, endpoint: str) -> bool:
    if not isinstance(payload, Mapping):
        raise RateServiceError(f"Unexpected response from {endpoint}: not a JSON object")
    success = payload.get("success")
    if not isinstance(success, bool):
        raise RateServiceError(f"Unexpected response from {endpoint}: missing 'success' flag")
    return success


def parse_rates_response(payload: Any, endpoint: str = "rates") -> RatesResponse:
    success = _require_success_flag(payload, endpoint)
    raw_rates = payload.get("rates")
    rates: dict[str, float] | None = None
    if raw_rates is not None:
        if not isinstance(raw_rates, Mapping):
            raise RateServiceError(f"Unexpected response from {endpoint}: 'rates' is not an object")
        try:
            rates = {str(code): float(value) for code, value in raw_rates.items()}
        except (TypeError, ValueError) as exc:
            raise RateServiceError(f"Unexpected response from {endpoint}: {exc}") from exc
    timestamp = payload.get("timestamp")
    return RatesResponse(
        success=success,
        rates=rates,
        base=payload.get("base"),
        date=payload.get("date"),
        timestamp=timestamp if isinstance(timestamp, int) else None,
        error=ApiError.from_payload(payload.get("error")),
    )


def parse_symbols_response(payload: Any) -> SymbolsResponse:
    success = _require_success_flag(payload, "symbols")
    raw_symbols = payload.get("symbols")
    symbols: dict[str, str] | None = None
    if raw_symbols is not None:
        if not isinstance(raw_symbols, Mapping):
            raise RateServiceError("Unexpected response from symbols: 'symbols' is not an object")
        symbols = {str(code): str(name) for code, name in raw_symbols.items()}
    return SymbolsResponse(
        success=success,
        symbols=symbols,
        error=ApiError.from_payload(payload.get("error")),
    )


def _is_transient(exc: BaseException) -> bool:
    if isinstance(exc, requests.exceptions.SSLError):
        return False
    return isinstance(exc, (requests.exceptions.ConnectionError, requests.exceptions.Timeout))


@dataclass
class ExchangeRateClient:
    """Thin wrapper over the exchange rate REST endpoints.

    ``success: false`` payloads are returned as-is; only transport and
    decoding problems raise :class:`RateServiceError`.
    """

    access_key: Optional[str] = None
    base_url: str = DEFAULT_BASE_URL
    timeout: float = 10.0
    max_attempts: int = 3
    retry_wait: float = 1.0
    session: Optional[requests.Session] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.access_key is None:
            self.access_key = os.environ.get(ACCESS_KEY_ENV)
        if self.session is None:
            self.session = requests.Session()
            self.session.headers.update({"Accept": "application/json"})

    def fetch_latest(self) -> RatesResponse:
        return parse_rates_response(self._get("latest"), "latest")

    def fetch_symbols(self) -> SymbolsResponse:
        return parse_symbols_response(self._get("symbols"))

    def fetch_historical(self, day: str | date) -> RatesResponse:
        """Fetch rates for ``day`` (``YYYY-MM-DD``)."""

        endpoint = day.isoformat() if isinstance(day, date) else day
        return parse_rates_response(self._get(endpoint), endpoint)

    def _get(self, endpoint: str) -> Any:
        if not self.access_key:
            raise RateServiceConfigError(
                f"No access key configured; set {ACCESS_KEY_ENV} or pass access_key"
            )
        url = f"{self.base_url.rstrip('/')}/{endpoint}"
        try:
            response = self._request(url)
        except (
            requests.exceptions.SSLError,
            requests.exceptions.InvalidURL,
            requests.exceptions.MissingSchema,
            requests.exceptions.InvalidSchema,
        ) as exc:
            raise RateServiceConfigError(str(exc)) from exc
        except requests.exceptions.RequestException as exc:
            LOGGER.debug("Request to %s failed: %s", url, exc)
            raise RateServiceError(str(exc)) from exc
        return self._decode(response, endpoint)

    def _request(self, url: str) -> "Response":
        """GET ``url``, retrying dropped connections and timeouts."""

        assert self.session is not None
        retrying = Retrying(
            retry=retry_if_exception(_is_transient),
            stop=stop_after_attempt(max(1, self.max_attempts)),
            wait=wait_exponential(multiplier=self.retry_wait, max=30),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                if attempt.retry_state.attempt_number > 1:
                    LOGGER.info(
                        "Retrying %s (attempt %s)", url, attempt.retry_state.attempt_number
                    )
                return self.session.get(
                    url,
                    params={"access_key": self.access_key},
                    timeout=self.timeout,
                )
        raise AssertionError("unreachable")  # pragma: no cover

    @staticmethod
    def _decode(response: "Response", endpoint: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise RateServiceError(
                f"Could not decode {endpoint} response (HTTP {response.status_code})"
            ) from exc


__all__ = [
    "ACCESS_KEY_ENV",
    "DEFAULT_BASE_URL",
    "ApiError",
    "ExchangeRateClient",
    "RateServiceConfigError",
    "RateServiceError",
    "RatesResponse",
    "SymbolsResponse",
    "parse_rates_response",
    "parse_symbols_response",
]
