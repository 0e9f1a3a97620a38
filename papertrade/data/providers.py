from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Mapping, Optional

import httpx

logger = logging.getLogger(__name__)

BINANCE_BASE = "https://api.binance.com"
COINGECKO_PRICE_URL = "https://api.coingecko.com/api/v3/simple/price"

COINGECKO_IDS = {
    "BTC": "bitcoin",
    "ETH": "ethereum",
    "BNB": "binancecoin",
    "SOL": "solana",
    "ADA": "cardano",
    "XRP": "ripple",
    "DOGE": "dogecoin",
}


class IPriceFeed(ABC):
    """Source of USD price snapshots for ``push_price_update``."""

    @abstractmethod
    def fetch_prices(self, assets: List[str]) -> Dict[str, Decimal]:
        """Fetch current prices.

        Args:
            assets: Base assets (e.g. ["BTC", "ETH"])

        Returns:
            Mapping of asset to USD price for the assets that resolved
        """
        ...


class StaticPriceFeed(IPriceFeed):
    """Serves prices from a fixed table; for offline demos."""

    def __init__(self, prices: Mapping[str, Decimal]) -> None:
        self._prices = {k.upper(): Decimal(str(v)) for k, v in prices.items()}

    def fetch_prices(self, assets: List[str]) -> Dict[str, Decimal]:
        return {a.upper(): self._prices[a.upper()] for a in assets if a.upper() in self._prices}

    def set_price(self, asset: str, price: Decimal) -> None:
        self._prices[asset.upper()] = Decimal(str(price))


class BinancePriceFeed(IPriceFeed):
    def __init__(
        self,
        timeout_s: float = 5.0,
        quote_asset: str = "USDT",
        source: str = "binance",
    ) -> None:
        self._client = httpx.Client(base_url=BINANCE_BASE, timeout=timeout_s)
        self._lock = threading.Lock()
        self._quote_asset = quote_asset.upper()
        self._source = source.lower()

    def fetch_prices(self, assets: List[str]) -> Dict[str, Decimal]:
        if self._source == "coingecko":
            return self._fetch_coingecko(assets)
        return self._fetch_binance(assets)

    def close(self) -> None:
        self._client.close()

    def _fetch_binance(self, assets: List[str]) -> Dict[str, Decimal]:
        out: Dict[str, Decimal] = {}
        last_err: Optional[Exception] = None
        for asset in assets:
            asset = asset.upper()
            try:
                with self._lock:
                    r = self._client.get(
                        "/api/v3/ticker/price",
                        params={"symbol": f"{asset}{self._quote_asset}"},
                    )
                r.raise_for_status()
                price = Decimal(str(r.json()["price"]))
            except (httpx.HTTPError, KeyError, ValueError, InvalidOperation) as e:
                logger.error(f"Failed to fetch {asset} price from Binance: {e}")
                last_err = e
                continue
            if price > 0:
                out[asset] = price
        if not out and last_err:
            raise last_err
        return out

    def _fetch_coingecko(self, assets: List[str]) -> Dict[str, Decimal]:
        ids = {COINGECKO_IDS[a.upper()]: a.upper() for a in assets if a.upper() in COINGECKO_IDS}
        if not ids:
            return {}
        params = {"ids": ",".join(ids), "vs_currencies": "usd"}
        with self._lock:
            r = self._client.get(COINGECKO_PRICE_URL, params=params)
        r.raise_for_status()
        data = r.json()

        out: Dict[str, Decimal] = {}
        for cid, obj in data.items():
            asset = ids.get(cid)
            if not asset:
                continue
            try:
                price = Decimal(str(obj.get("usd", 0)))
            except InvalidOperation:
                continue
            if price > 0:
                out[asset] = price
        return out
