"""In-memory balance and price ledger for paper trading."""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, Mapping, Optional

from .models import to_decimal


class ILedger(ABC):
    """Interface for ledger operations."""

    @abstractmethod
    def get_balances(self) -> Dict[str, Decimal]:
        """Get a copy of all asset balances."""
        ...

    @abstractmethod
    def get_prices(self) -> Dict[str, Decimal]:
        """Get a copy of the price map."""
        ...

    @abstractmethod
    def apply_delta(self, asset: str, delta: Decimal) -> Decimal:
        """Add ``delta`` to an asset balance and return the new balance."""
        ...

    @abstractmethod
    def set_prices(self, prices: Mapping[str, Decimal]) -> None:
        """Merge prices into the price map."""
        ...


class Ledger(ILedger):
    """Thread-safe ledger of balances and last prices.

    Every mutation takes ``lock``. Callers that need a balance check and
    the matching update to be atomic hold ``lock`` around both; it is
    re-entrant so the ledger methods can be called while holding it.
    No bounds checking is done here.
    """

    def __init__(
        self,
        balances: Optional[Mapping[str, Decimal]] = None,
        prices: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        self._lock = threading.RLock()
        self._balances: Dict[str, Decimal] = {}
        self._prices: Dict[str, Decimal] = {}
        self.reset(balances or {}, prices or {})

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    def get_balances(self) -> Dict[str, Decimal]:
        with self._lock:
            return self._balances.copy()

    def get_prices(self) -> Dict[str, Decimal]:
        with self._lock:
            return self._prices.copy()

    def get_balance(self, asset: str) -> Decimal:
        with self._lock:
            return self._balances.get(asset.upper(), Decimal("0"))

    def get_price(self, asset: str) -> Optional[Decimal]:
        with self._lock:
            return self._prices.get(asset.upper())

    def apply_delta(self, asset: str, delta: Decimal) -> Decimal:
        asset = asset.upper()
        with self._lock:
            new_balance = self._balances.get(asset, Decimal("0")) + to_decimal(delta)
            self._balances[asset] = new_balance
            return new_balance

    def apply_deltas(self, deltas: Mapping[str, Decimal]) -> None:
        """Apply several balance deltas as one atomic update."""
        with self._lock:
            for asset, delta in deltas.items():
                self.apply_delta(asset, delta)

    def set_balance(self, asset: str, amount: Decimal) -> None:
        with self._lock:
            self._balances[asset.upper()] = to_decimal(amount)

    def set_prices(self, prices: Mapping[str, Decimal]) -> None:
        with self._lock:
            for asset, price in prices.items():
                self._prices[asset.upper()] = to_decimal(price)

    def reset(
        self,
        balances: Mapping[str, Decimal],
        prices: Optional[Mapping[str, Decimal]] = None,
    ) -> None:
        """Replace all balances, and the price map when ``prices`` is given."""
        with self._lock:
            self._balances = {k.upper(): to_decimal(v) for k, v in balances.items()}
            if prices is not None:
                self._prices = {k.upper(): to_decimal(v) for k, v in prices.items()}
