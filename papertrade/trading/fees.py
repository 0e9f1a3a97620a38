"""Fee calculation for paper trades."""

from __future__ import annotations

from decimal import Decimal
from typing import Mapping, Optional

from .errors import UnknownSymbolError
from .models import Fee

DEFAULT_FEE_RATE = Decimal("0.001")
DEFAULT_DISCOUNT = Decimal("0.25")


class FeeCalculator:
    """Computes execution fees.

    The fee value is ``price * quantity * effective_rate``. Paying in the
    discount asset lowers the rate by ``discount``; the value is then
    converted to discount-asset units at that asset's USD price.
    """

    def __init__(
        self,
        base_rate: Decimal = DEFAULT_FEE_RATE,
        discount: Decimal = DEFAULT_DISCOUNT,
        quote_asset: str = "USDT",
        discount_asset: str = "BNB",
    ) -> None:
        self._base_rate = Decimal(str(base_rate))
        self._discount = Decimal(str(discount))
        self._quote_asset = quote_asset.upper()
        self._discount_asset = discount_asset.upper()

    @property
    def base_rate(self) -> Decimal:
        return self._base_rate

    @property
    def discount_asset(self) -> str:
        return self._discount_asset

    def effective_rate(self, use_discount_asset: bool = False) -> Decimal:
        if use_discount_asset:
            return self._base_rate * (Decimal("1") - self._discount)
        return self._base_rate

    def calculate(
        self,
        price: Decimal,
        quantity: Decimal,
        use_discount_asset: bool = False,
        prices: Optional[Mapping[str, Decimal]] = None,
    ) -> Fee:
        """Calculate the fee for an execution.

        Args:
            price: Execution price in USD
            quantity: Base asset amount
            use_discount_asset: Pay the fee in the discount asset
            prices: Current price map, needed to convert a discount-asset fee

        Returns:
            Fee with amount in fee-asset units and value in USD

        Raises:
            UnknownSymbolError: If paying in the discount asset and it has no price
        """
        rate = self.effective_rate(use_discount_asset)
        value = price * quantity * rate

        if not use_discount_asset:
            return Fee(amount=value, asset=self._quote_asset, rate=rate, value=value)

        asset_price = (prices or {}).get(self._discount_asset)
        if not asset_price or asset_price <= Decimal("0"):
            raise UnknownSymbolError(self._discount_asset)
        return Fee(
            amount=value / asset_price,
            asset=self._discount_asset,
            rate=rate,
            value=value,
        )
