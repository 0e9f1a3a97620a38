"""Static-rate conversion between display currencies.

Used for presentation only; ledger balances are never converted.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Dict, Optional, Tuple, Union

from .models import Currency
from .models import to_currency as _as_currency

DEFAULT_EXCHANGE_RATES: Dict[Tuple[Currency, Currency], Decimal] = {
    (Currency.USD, Currency.INR): Decimal("83.5"),
    (Currency.INR, Currency.USD): Decimal("0.012"),
}

CurrencyLike = Union[Currency, str]


class CurrencyConverter:
    """Converts amounts with a fixed rate table.

    Pairs missing from the table (and same-currency conversions) return
    the amount unchanged.
    """

    def __init__(self, rates: Optional[Dict[Tuple[Currency, Currency], Decimal]] = None) -> None:
        self._rates = dict(DEFAULT_EXCHANGE_RATES if rates is None else rates)

    def rate(self, from_currency: CurrencyLike, to_currency: CurrencyLike) -> Decimal:
        src, dst = _as_currency(from_currency), _as_currency(to_currency)
        if src is dst:
            return Decimal("1")
        return self._rates.get((src, dst), Decimal("1"))

    def convert(
        self,
        amount: Decimal,
        from_currency: CurrencyLike,
        to_currency: CurrencyLike,
    ) -> Decimal:
        return Decimal(str(amount)) * self.rate(from_currency, to_currency)


_default_converter = CurrencyConverter()


def convert_currency(
    amount: Decimal,
    from_currency: CurrencyLike,
    to_currency: CurrencyLike,
) -> Decimal:
    """Convert ``amount`` with the default rate table."""
    return _default_converter.convert(amount, from_currency, to_currency)
