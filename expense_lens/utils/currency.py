"""Currency conversion against EUR-quoted rate tables."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from expense_lens.models import BASE_CURRENCY, DEFAULT_CURRENCY, ExpenseRecord
from expense_lens.utils.logger import get_logger

LOGGER = get_logger(__name__)


class ConversionStatus(str, Enum):
    """How an amount made it through :func:`convert_with_status`."""

    IDENTITY = "identity"
    CONVERTED = "converted"
    UNCONVERTED = "unconverted"


@dataclass(slots=True, frozen=True)
class ConversionResult:
    amount: float
    status: ConversionStatus

    @property
    def converted(self) -> bool:
        return self.status is not ConversionStatus.UNCONVERTED


def _rate_for(code: str, rates: Mapping[str, float]) -> float | None:
    rate = rates.get(code)
    if rate is None and code == BASE_CURRENCY:
        return 1.0
    return rate


def convert_with_status(
    from_currency: str,
    to_currency: str,
    amount: float,
    rates: Mapping[str, float] | None,
) -> ConversionResult:
    """Convert ``amount`` and report whether a real conversion took place.

    Rates are quoted against EUR, so the amount is first expressed in EUR and
    then in the target currency. When no table is available, or either code is
    missing from it, the amount is returned unchanged and tagged
    ``UNCONVERTED``.
    """

    if from_currency == to_currency:
        return ConversionResult(amount, ConversionStatus.IDENTITY)
    if not rates:
        return ConversionResult(amount, ConversionStatus.UNCONVERTED)

    from_rate = _rate_for(from_currency, rates)
    to_rate = _rate_for(to_currency, rates)
    if from_rate is None or to_rate is None:
        return ConversionResult(amount, ConversionStatus.UNCONVERTED)

    amount_in_base = amount / from_rate
    return ConversionResult(amount_in_base * to_rate, ConversionStatus.CONVERTED)


def convert(
    from_currency: str,
    to_currency: str,
    amount: float,
    rates: Mapping[str, float] | None,
) -> float:
    """Best-effort conversion; unknown currencies pass the amount through."""

    return convert_with_status(from_currency, to_currency, amount, rates).amount


def convert_to_target_currency(
    from_currency: str,
    amount: float,
    rates: Mapping[str, float] | None,
    target: str = DEFAULT_CURRENCY,
) -> float:
    return convert(from_currency, target, amount, rates)


class AmountNormalizer:
    """Maps an expense to the amount that should be summed, or ``None`` to skip it."""

    def __init__(self, func: Callable[[ExpenseRecord], float | None], *, label: str) -> None:
        self._func = func
        self.label = label

    def __call__(self, record: ExpenseRecord) -> float | None:
        return self._func(record)

    def __repr__(self) -> str:
        return f"AmountNormalizer({self.label})"

    @classmethod
    def raw(cls) -> "AmountNormalizer":
        """Sum every amount in its own currency."""

        return cls(lambda record: record.amount, label="raw")

    @classmethod
    def for_rates(
        cls,
        rates: Mapping[str, float] | None,
        target: str = DEFAULT_CURRENCY,
        *,
        ready: bool,
    ) -> "AmountNormalizer":
        """Normalise amounts into ``target``.

        With ``ready`` set every amount is converted. Otherwise only records
        already denominated in ``target`` are counted and the rest are left
        out of the total.
        """

        target = target.upper()
        if not ready:

            def _same_currency_only(record: ExpenseRecord) -> float | None:
                if record.currency_code == target:
                    return record.amount
                return None

            return cls(_same_currency_only, label=f"{target}-only")

        def _converted(record: ExpenseRecord) -> float | None:
            result = convert_with_status(record.currency_code, target, record.amount, rates)
            if not result.converted:
                LOGGER.debug(
                    "No rate to convert %s into %s for expense %s; using original amount",
                    record.currency_code,
                    target,
                    record.id,
                )
            return result.amount

        return cls(_converted, label=f"converted-to-{target}")


def sum_amounts(
    records: Iterable[ExpenseRecord],
    normalizer: AmountNormalizer | None = None,
) -> float:
    """Sum expenses through ``normalizer``, skipping records it excludes."""

    normalize = normalizer or AmountNormalizer.raw()
    total = 0.0
    for record in records:
        value = normalize(record)
        if value is not None:
            total += value
    return total


__all__ = [
    "AmountNormalizer",
    "ConversionResult",
    "ConversionStatus",
    "convert",
    "convert_to_target_currency",
    "convert_with_status",
    "sum_amounts",
]
