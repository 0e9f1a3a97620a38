"""Market data collaborators feeding prices into the paper account."""

from papertrade.data.providers import BinancePriceFeed, IPriceFeed, StaticPriceFeed

__all__ = ["BinancePriceFeed", "IPriceFeed", "StaticPriceFeed"]
