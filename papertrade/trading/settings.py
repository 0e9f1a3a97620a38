"""Paper trading configuration.

Settings are a plain dataclass persisted through an ``IStorageService``
under ``SETTINGS_STORAGE_KEY``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Dict, Optional, Tuple

from papertrade.storage.storage import IStorageService
from .models import to_decimal

logger = logging.getLogger(__name__)

SETTINGS_STORAGE_KEY = "paper_trading_settings"

DEFAULT_INITIAL_BALANCES = {
    "USD": Decimal("10000"),
    "BTC": Decimal("0"),
    "ETH": Decimal("0"),
    "BNB": Decimal("0"),
    "USDT": Decimal("10000"),
}

DEFAULT_INITIAL_PRICES = {
    "BTC": Decimal("50000"),
    "ETH": Decimal("3000"),
    "BNB": Decimal("500"),
}


def _decimal_map(data: Optional[dict], default: Dict[str, Decimal]) -> Dict[str, Decimal]:
    if not data:
        return dict(default)
    return {str(k).upper(): Decimal(str(v)) for k, v in data.items()}


@dataclass
class TradingSettings:
    """Paper trading account settings.

    Attributes:
        quote_asset: Asset order prices are paid and received in
        cash_assets: Assets valued 1:1 in USD for account valuation
        base_fee_rate: Fee rate charged on every execution (0.1%)
        discount_asset: Asset that earns the fee discount when used for fees
        fee_discount: Fractional discount on the base rate (25%)
        initial_balances: Balances set by ``initialize()``
        initial_prices: Price map the account starts with
    """
    quote_asset: str = "USDT"
    cash_assets: Tuple[str, ...] = ("USD", "USDT")
    base_fee_rate: Decimal = Decimal("0.001")
    discount_asset: str = "BNB"
    fee_discount: Decimal = Decimal("0.25")
    initial_balances: Dict[str, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_INITIAL_BALANCES)
    )
    initial_prices: Dict[str, Decimal] = field(
        default_factory=lambda: dict(DEFAULT_INITIAL_PRICES)
    )

    def __post_init__(self) -> None:
        self.base_fee_rate = Decimal(str(self.base_fee_rate))
        self.fee_discount = Decimal(str(self.fee_discount))
        if not Decimal("0") <= self.fee_discount <= Decimal("1"):
            raise ValueError("fee_discount must be between 0 and 1")
        if self.base_fee_rate < Decimal("0"):
            raise ValueError("base_fee_rate cannot be negative")
        self.quote_asset = self.quote_asset.upper()
        self.discount_asset = self.discount_asset.upper()
        if isinstance(self.cash_assets, str):
            self.cash_assets = (self.cash_assets,)
        self.cash_assets = tuple(a.upper() for a in self.cash_assets)
        self.initial_balances = {k.upper(): to_decimal(v) for k, v in self.initial_balances.items()}
        self.initial_prices = {k.upper(): to_decimal(v) for k, v in self.initial_prices.items()}

    def to_dict(self) -> dict:
        """Convert to a JSON-compatible dictionary for storage."""
        return {
            "quote_asset": self.quote_asset,
            "cash_assets": list(self.cash_assets),
            "base_fee_rate": str(self.base_fee_rate),
            "discount_asset": self.discount_asset,
            "fee_discount": str(self.fee_discount),
            "initial_balances": {k: str(v) for k, v in self.initial_balances.items()},
            "initial_prices": {k: str(v) for k, v in self.initial_prices.items()},
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TradingSettings":
        """Create from dictionary, filling missing keys with defaults."""
        return cls(
            quote_asset=data.get("quote_asset", "USDT"),
            cash_assets=data.get("cash_assets", ("USD", "USDT")),
            base_fee_rate=Decimal(str(data.get("base_fee_rate", "0.001"))),
            discount_asset=data.get("discount_asset", "BNB"),
            fee_discount=Decimal(str(data.get("fee_discount", "0.25"))),
            initial_balances=_decimal_map(data.get("initial_balances"), DEFAULT_INITIAL_BALANCES),
            initial_prices=_decimal_map(data.get("initial_prices"), DEFAULT_INITIAL_PRICES),
        )


def load_settings(storage: Optional[IStorageService]) -> TradingSettings:
    """Load settings from storage, falling back to defaults."""
    if storage is None:
        return TradingSettings()
    data = storage.load(SETTINGS_STORAGE_KEY)
    if data is None:
        return TradingSettings()
    try:
        return TradingSettings.from_dict(data)
    except (AttributeError, ValueError, TypeError, InvalidOperation) as e:
        logger.error(f"Invalid paper trading settings, using defaults: {e}")
        return TradingSettings()


def save_settings(storage: IStorageService, settings: TradingSettings) -> None:
    """Persist settings under ``SETTINGS_STORAGE_KEY``."""
    storage.save(SETTINGS_STORAGE_KEY, settings.to_dict())
