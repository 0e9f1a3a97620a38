from __future__ import annotations

import json
from datetime import datetime
from decimal import Decimal

import pytest

from papertrade.storage import JsonFileStorage
from papertrade.trading.account import AccountSerializer, PaperTradingAccount
from papertrade.trading.errors import InsufficientBalanceError
from papertrade.trading.models import Currency, Side, TradeOrder
from papertrade.trading.settings import (
    SETTINGS_STORAGE_KEY,
    TradingSettings,
    load_settings,
    save_settings,
)


def test_storage_save_load_delete(tmp_path):
    storage = JsonFileStorage(tmp_path)

    storage.save("k", {"amount": Decimal("1.5"), "when": datetime(2024, 1, 2, 3, 4), "cur": Currency.INR})

    assert storage.load("k") == {"amount": "1.5", "when": "2024-01-02T03:04:00", "cur": "INR"}
    assert storage.keys() == ["k"]
    storage.delete("k")
    assert storage.load("k") is None
    storage.delete("k")


def test_storage_corrupted_file_yields_none(tmp_path):
    (tmp_path / "broken.json").write_text("{not json", encoding="utf-8")

    assert JsonFileStorage(tmp_path).load("broken") is None


def test_storage_rejects_unencodable_values(tmp_path):
    with pytest.raises(TypeError):
        JsonFileStorage(tmp_path).save("bad", {"x": object()})


def test_settings_defaults():
    s = TradingSettings()

    assert s.quote_asset == "USDT"
    assert s.base_fee_rate == Decimal("0.001")
    assert s.fee_discount == Decimal("0.25")
    assert s.initial_balances["USD"] == Decimal("10000")
    assert s.initial_prices["BNB"] == Decimal("500")


@pytest.mark.parametrize("kwargs", [{"fee_discount": "1.5"}, {"base_fee_rate": "-0.1"}])
def test_settings_validation(kwargs):
    with pytest.raises(ValueError):
        TradingSettings(**kwargs)


def test_settings_round_trip_through_storage(tmp_path):
    storage = JsonFileStorage(tmp_path)
    custom = TradingSettings(
        base_fee_rate=Decimal("0.002"),
        initial_balances={"USDT": Decimal("500")},
        initial_prices={"BTC": Decimal("60000"), "BNB": Decimal("600")},
    )

    save_settings(storage, custom)

    assert load_settings(storage) == custom


def test_load_settings_without_stored_value(tmp_path):
    assert load_settings(JsonFileStorage(tmp_path)) == TradingSettings()
    assert load_settings(None) == TradingSettings()


def test_load_settings_with_invalid_value_falls_back(tmp_path):
    storage = JsonFileStorage(tmp_path)
    storage.save(SETTINGS_STORAGE_KEY, {"base_fee_rate": "not-a-number"})

    assert load_settings(storage) == TradingSettings()


def test_account_uses_custom_settings():
    settings = TradingSettings(
        base_fee_rate=Decimal("0.002"),
        initial_balances={"USDT": Decimal("500")},
        initial_prices={"BTC": Decimal("100")},
    )
    account = PaperTradingAccount(settings)

    execution = account.execute_order(TradeOrder(symbol="BTC", side=Side.BUY, price="100", quantity="1"))

    assert execution.fee.amount == Decimal("0.2")
    assert account.ledger.get_balances() == {"USDT": Decimal("399.8"), "BTC": Decimal("1")}
    assert account.get_total_value() == Decimal("499.8")


def test_serialized_snapshot_is_json(tmp_path):
    account = PaperTradingAccount()
    account.execute_order(
        TradeOrder(symbol="BTC", side=Side.BUY, price="50000", quantity="0.1", stop_loss="45000")
    )
    account.push_price_update({"BTC": Decimal("44000")})

    data = AccountSerializer.serialize(account)
    storage = JsonFileStorage(tmp_path)
    storage.save("snapshot", data)
    loaded = json.loads((tmp_path / "snapshot.json").read_text(encoding="utf-8"))

    assert Decimal(loaded["balances"]["USDT"]) == Decimal("9390.6")
    assert len(loaded["history"]) == 2
    assert loaded["history"][0]["status"] == "closed"
    assert loaded["history"][0]["close_reason"] == "stop_loss"
    assert loaded["history"][1]["closes_order_id"] == loaded["history"][0]["order_id"]
    assert loaded["open_orders"] == []


def test_settings_normalize_asset_names():
    s = TradingSettings(
        quote_asset="usdt",
        discount_asset="bnb",
        cash_assets=("usd", "usdt"),
        initial_balances={"usdt": "100"},
        initial_prices={"btc": "50000"},
    )

    assert s.quote_asset == "USDT"
    assert s.discount_asset == "BNB"
    assert s.cash_assets == ("USD", "USDT")
    assert s.initial_balances == {"USDT": Decimal("100")}
    assert s.initial_prices == {"BTC": Decimal("50000")}


def test_lowercase_quote_asset_still_checks_order_and_fee_together():
    account = PaperTradingAccount(TradingSettings(quote_asset="usdt"))

    with pytest.raises(InsufficientBalanceError) as exc_info:
        account.execute_order(TradeOrder(symbol="BTC", side=Side.BUY, price="50000", quantity="0.2"))

    assert exc_info.value.asset == "USDT"
    assert exc_info.value.required == Decimal("10010")
    assert account.ledger.get_balance("USDT") == Decimal("10000")
    assert "usdt" not in account.ledger.get_balances()


def test_lowercase_discount_asset_pays_fee():
    account = PaperTradingAccount(TradingSettings(discount_asset="bnb"))
    account.deposit("BNB", Decimal("1"))

    execution = account.execute_order(
        TradeOrder(
            symbol="BTC",
            side=Side.BUY,
            price="50000",
            quantity="0.1",
            use_discount_asset_for_fees=True,
        )
    )

    assert execution.fee.asset == "BNB"
    assert account.ledger.get_balance("BNB") == Decimal("0.9925")


def test_lowercase_cash_assets_count_at_par():
    account = PaperTradingAccount(TradingSettings(cash_assets=["usd", "usdt"]))

    assert account.get_total_value() == Decimal("20000")


def test_stored_cash_assets_as_single_string(tmp_path):
    storage = JsonFileStorage(tmp_path)
    storage.save(SETTINGS_STORAGE_KEY, {"cash_assets": "usdt"})

    assert load_settings(storage).cash_assets == ("USDT",)


def test_serialize_funding_with_string_currency():
    account = PaperTradingAccount()
    account.deposit("BTC", Decimal("0.5"), "USD")
    account.withdraw("BTC", Decimal("0.1"), "inr")

    data = AccountSerializer.serialize(account)

    assert data["deposits"][0]["currency"] == "USD"
    assert data["withdrawals"][0]["currency"] == "INR"
