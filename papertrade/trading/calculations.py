"""Order sizing and projection helpers.

This module provides:
- calculate_quantity: base quantity affordable with a budget
- potential profit/loss projections for a planned trade
- order_from_recommendation: turns an external recommendation into a TradeOrder
"""

from __future__ import annotations

from decimal import Decimal

from .currency import CurrencyLike, convert_currency
from .models import Currency, Side, TradeOrder, TradeRecommendation


def calculate_quantity(budget: Decimal, price: Decimal) -> Decimal:
    """Quantity purchasable with ``budget`` (same currency as ``price``).

    Returns zero when price is not positive.
    """
    if price <= Decimal("0"):
        return Decimal("0")
    return budget / price


def calculate_potential_profit(
    entry_price: Decimal,
    target_price: Decimal,
    quantity: Decimal,
    from_currency: CurrencyLike = Currency.USD,
    to_currency: CurrencyLike = Currency.USD,
) -> Decimal:
    profit = (target_price - entry_price) * quantity
    return convert_currency(profit, from_currency, to_currency)


def calculate_potential_loss(
    entry_price: Decimal,
    stop_loss: Decimal,
    quantity: Decimal,
    from_currency: CurrencyLike = Currency.USD,
    to_currency: CurrencyLike = Currency.USD,
) -> Decimal:
    loss = (entry_price - stop_loss) * quantity
    return convert_currency(loss, from_currency, to_currency)


def calculate_profit_loss_percentage(profit_loss: Decimal, investment: Decimal) -> Decimal:
    if investment == Decimal("0"):
        return Decimal("0")
    return (profit_loss / investment) * Decimal("100")


def order_from_recommendation(
    recommendation: TradeRecommendation,
    budget: Decimal,
    currency: Currency = Currency.USD,
    use_discount_asset_for_fees: bool = False,
) -> TradeOrder:
    """Build a buy order at the recommended entry with its exit levels.

    The budget is converted to USD only to size the order; the order keeps
    the budget in its display currency.
    """
    budget = Decimal(str(budget))
    budget_usd = convert_currency(budget, currency, Currency.USD)
    quantity = calculate_quantity(budget_usd, recommendation.entry_price)
    if quantity <= Decimal("0"):
        raise ValueError("Recommendation entry price and budget must be positive")
    return TradeOrder(
        symbol=recommendation.symbol,
        side=Side.BUY,
        price=recommendation.entry_price,
        quantity=quantity,
        stop_loss=recommendation.stop_loss,
        take_profit=recommendation.target_price,
        budget=budget,
        currency=currency,
        use_discount_asset_for_fees=use_discount_asset_for_fees,
    )
