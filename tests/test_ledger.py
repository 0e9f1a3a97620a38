from __future__ import annotations

from decimal import Decimal

from papertrade.trading.ledger import Ledger


def test_keys_are_case_insensitive():
    ledger = Ledger({"usdt": Decimal("10")}, {"btc": Decimal("50000")})

    assert ledger.get_balance("USDT") == Decimal("10")
    assert ledger.get_price("BTC") == Decimal("50000")
    assert ledger.get_price("Btc") == Decimal("50000")


def test_missing_entries():
    ledger = Ledger()

    assert ledger.get_balance("ETH") == Decimal("0")
    assert ledger.get_price("ETH") is None


def test_apply_delta_returns_new_balance():
    ledger = Ledger({"ETH": Decimal("1")})

    assert ledger.apply_delta("ETH", Decimal("-0.25")) == Decimal("0.75")
    assert ledger.apply_delta("SOL", "2") == Decimal("2")


def test_apply_deltas_updates_every_asset():
    ledger = Ledger({"USDT": Decimal("100"), "BTC": Decimal("0")})

    ledger.apply_deltas({"USDT": Decimal("-50.5"), "BTC": Decimal("0.001")})

    assert ledger.get_balances() == {"USDT": Decimal("49.5"), "BTC": Decimal("0.001")}


def test_copies_do_not_alias():
    ledger = Ledger({"USDT": Decimal("1")}, {"BTC": Decimal("2")})

    ledger.get_balances()["USDT"] = Decimal("999")
    ledger.get_prices()["BTC"] = Decimal("999")

    assert ledger.get_balance("USDT") == Decimal("1")
    assert ledger.get_price("BTC") == Decimal("2")


def test_set_prices_merges():
    ledger = Ledger(prices={"BTC": Decimal("1"), "ETH": Decimal("2")})

    ledger.set_prices({"ETH": 3.5})

    assert ledger.get_prices() == {"BTC": Decimal("1"), "ETH": Decimal("3.5")}


def test_reset_keeps_prices_unless_given():
    ledger = Ledger({"USDT": Decimal("5")}, {"BTC": Decimal("1")})

    ledger.reset({"USD": Decimal("7")})
    assert ledger.get_balances() == {"USD": Decimal("7")}
    assert ledger.get_price("BTC") == Decimal("1")

    ledger.reset({}, {"ETH": Decimal("3")})
    assert ledger.get_prices() == {"ETH": Decimal("3")}


def test_lock_is_reentrant():
    ledger = Ledger({"USDT": Decimal("1")})

    with ledger.lock:
        with ledger.lock:
            ledger.set_balance("USDT", Decimal("2"))

    assert ledger.get_balance("USDT") == Decimal("2")
