"""Property-based tests for the order lifecycle.

Tests balance conservation, exact cancellation and rejection atomicity
using Hypothesis.
"""

from __future__ import annotations

from decimal import Decimal

import pytest
from hypothesis import given, settings, strategies as st

from papertrade.trading.account import PaperTradingAccount
from papertrade.trading.errors import InsufficientBalanceError
from papertrade.trading.models import OrderStatus, PositionState, Side, TradeOrder


balance_strategy = st.decimals(
    min_value=Decimal("100"),
    max_value=Decimal("1000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False
)

quantity_strategy = st.decimals(
    min_value=Decimal("0.00000001"),
    max_value=Decimal("10"),
    places=8,
    allow_nan=False,
    allow_infinity=False
)

price_strategy = st.decimals(
    min_value=Decimal("0.01"),
    max_value=Decimal("100000"),
    places=2,
    allow_nan=False,
    allow_infinity=False
)

fraction_strategy = st.decimals(
    min_value=Decimal("0"),
    max_value=Decimal("1"),
    places=3,
    allow_nan=False,
    allow_infinity=False
)

asset_strategy = st.sampled_from(["BTC", "ETH", "BNB"])
side_strategy = st.sampled_from([Side.BUY, Side.SELL])


def _funded_account(quote: Decimal, holdings: Decimal, asset: str, price: Decimal) -> PaperTradingAccount:
    account = PaperTradingAccount()
    account.set_balance("USDT", quote)
    account.set_balance(asset, holdings)
    account.push_price_update({asset: price})
    return account


@given(
    spare=balance_strategy,
    quantity=quantity_strategy,
    price=price_strategy,
    asset=asset_strategy,
    side=side_strategy,
)
@settings(max_examples=100)
def test_execution_conserves_value(spare, quantity, price, asset, side):
    """
    **Property: Execution moves exactly notional and fee**

    For any order that executes, the quote balance changes by the
    notional (minus the fee) and the base balance by the quantity.
    """
    notional = price * quantity
    fee = notional * Decimal("0.001")
    quote = notional + fee + spare
    account = _funded_account(quote, quantity, asset, price)

    execution = account.execute_order(
        TradeOrder(symbol=asset, side=side, price=price, quantity=quantity)
    )

    balances = account.ledger.get_balances()
    assert execution.status == OrderStatus.EXECUTED
    assert execution.fee.amount == fee
    if side is Side.BUY:
        assert balances["USDT"] == quote - notional - fee
        assert balances[asset] == quantity * 2
    else:
        assert balances["USDT"] == quote + notional - fee
        assert balances[asset] == Decimal("0")
    for amount in balances.values():
        assert amount >= Decimal("0")


@given(
    spare=balance_strategy,
    quantity=quantity_strategy,
    price=price_strategy,
    mark=price_strategy,
    asset=asset_strategy,
    side=side_strategy,
)
@settings(max_examples=100)
def test_cancel_restores_balances_exactly(spare, quantity, price, mark, asset, side):
    """
    **Property: Cancel is an exact undo**

    For any executed order, cancelling it restores every balance to its
    pre-execution value, fee included, whatever the current price.
    """
    quote = price * quantity * Decimal("1.001") + spare
    account = _funded_account(quote, quantity, asset, price)
    before = account.ledger.get_balances()

    execution = account.execute_order(
        TradeOrder(symbol=asset, side=side, price=price, quantity=quantity)
    )
    account.push_price_update({asset: mark})
    cancelled = account.cancel_order(execution.order_id)

    assert account.ledger.get_balances() == before
    assert cancelled.state == PositionState.CANCELLED
    direction = mark - price if side is Side.BUY else price - mark
    assert cancelled.pnl == direction * quantity - execution.fee.value
    assert account.get_open_orders() == []


@given(
    fraction=fraction_strategy,
    quantity=quantity_strategy,
    price=price_strategy,
    asset=asset_strategy,
)
@settings(max_examples=100)
def test_insufficient_quote_rejects_without_mutation(fraction, quantity, price, asset):
    """
    **Property: Insufficient balance rejection is atomic**

    For any buy whose notional plus fee exceeds the quote balance, the
    order is rejected and no balance or order list changes.
    """
    quote = price * quantity * fraction
    account = _funded_account(quote, Decimal("0"), asset, price)
    before = account.ledger.get_balances()

    with pytest.raises(InsufficientBalanceError) as exc_info:
        account.execute_order(
            TradeOrder(symbol=asset, side=Side.BUY, price=price, quantity=quantity)
        )

    assert exc_info.value.asset == "USDT"
    assert exc_info.value.available == quote
    assert account.ledger.get_balances() == before
    assert account.get_open_orders() == []


@given(
    holdings=quantity_strategy,
    extra=quantity_strategy,
    price=price_strategy,
    asset=asset_strategy,
)
@settings(max_examples=100)
def test_oversized_sell_rejected(holdings, extra, price, asset):
    """
    **Property: Sells cannot exceed holdings**

    For any sell of more than the held base quantity, the order is
    rejected naming the base asset.
    """
    account = _funded_account(Decimal("10000"), holdings, asset, price)

    with pytest.raises(InsufficientBalanceError) as exc_info:
        account.execute_order(
            TradeOrder(symbol=asset, side=Side.SELL, price=price, quantity=holdings + extra)
        )

    assert exc_info.value.asset == asset
    assert account.ledger.get_balance(asset) == holdings
