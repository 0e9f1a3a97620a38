from __future__ import annotations

from decimal import Decimal

import pytest

from papertrade.trading.errors import InsufficientBalanceError, InvalidAmountError
from papertrade.trading.models import Currency, Side, TradeOrder


def test_deposit_credits_balance_and_records_audit_entry(account):
    record = account.deposit("btc", Decimal("0.5"))

    assert record.id.startswith("DEP-")
    assert record.asset == "BTC"
    assert record.amount == Decimal("0.5")
    assert account.ledger.get_balance("BTC") == Decimal("0.5")
    assert account.get_account_snapshot().deposits == [record]


def test_deposit_of_new_asset_creates_balance(account):
    account.deposit("SOL", Decimal("3"))

    assert account.ledger.get_balance("SOL") == Decimal("3")


@pytest.mark.parametrize("amount", ["0", "-5"])
def test_non_positive_deposit_rejected(account, amount):
    with pytest.raises(InvalidAmountError):
        account.deposit("USDT", Decimal(amount))
    assert account.get_account_snapshot().deposits == []


def test_withdraw_debits_balance(account):
    record = account.withdraw("USDT", Decimal("2500"), Currency.INR)

    assert record.id.startswith("WD-")
    assert record.currency == Currency.INR
    assert account.ledger.get_balance("USDT") == Decimal("7500")
    assert account.get_account_snapshot().withdrawals == [record]


def test_withdraw_entire_balance(account):
    account.withdraw("USD", Decimal("10000"))

    assert account.ledger.get_balance("USD") == Decimal("0")


def test_overdraw_rejected_without_mutation(account):
    with pytest.raises(InsufficientBalanceError) as exc_info:
        account.withdraw("ETH", Decimal("1"))

    assert exc_info.value.asset == "ETH"
    assert exc_info.value.required == Decimal("1")
    assert exc_info.value.available == Decimal("0")
    assert account.ledger.get_balance("ETH") == Decimal("0")
    assert account.get_account_snapshot().withdrawals == []


@pytest.mark.parametrize("amount", ["0", "-1"])
def test_non_positive_withdrawal_rejected(account, amount):
    with pytest.raises(InvalidAmountError):
        account.withdraw("USDT", Decimal(amount))


def test_funding_does_not_touch_open_orders(account):
    execution = account.execute_order(
        TradeOrder(symbol="ETH", side=Side.BUY, price="3000", quantity="1")
    )
    account.deposit("USDT", Decimal("100"))
    account.withdraw("USDT", Decimal("50"))

    (open_order,) = account.get_open_orders()
    assert open_order.order_id == execution.order_id
    assert open_order.fee == execution.fee


def test_string_currency_is_coerced(account):
    deposit = account.deposit("USDT", Decimal("10"), "inr")
    withdrawal = account.withdraw("USDT", Decimal("5"), "USD")

    assert deposit.currency is Currency.INR
    assert withdrawal.currency is Currency.USD
    assert account.get_funding_summary("inr").currency is Currency.INR


@pytest.mark.parametrize("amount", ["NaN", "Infinity"])
def test_non_finite_funding_amount_rejected(account, amount):
    with pytest.raises(InvalidAmountError):
        account.deposit("USDT", Decimal(amount))
    with pytest.raises(InvalidAmountError):
        account.withdraw("USDT", Decimal(amount))
    assert account.ledger.get_balance("USDT") == Decimal("10000")


def test_funding_summary_totals_per_asset(account):
    account.deposit("BTC", Decimal("0.5"))
    account.deposit("BTC", Decimal("0.25"))
    account.deposit("USDT", Decimal("1000"))
    account.withdraw("BTC", Decimal("0.1"))

    summary = account.get_funding_summary()

    assert summary.total_deposited == {"BTC": Decimal("0.75"), "USDT": Decimal("1000")}
    assert summary.total_withdrawn == {"BTC": Decimal("0.1")}
    assert len(summary.deposits) == 3
    assert len(summary.withdrawals) == 1
    assert summary.currency == Currency.USD


def test_funding_ids_are_unique(account):
    ids = {account.deposit("USDT", Decimal("1")).id for _ in range(20)}

    assert len(ids) == 20
