from __future__ import annotations

from decimal import Decimal

import pytest

from papertrade.trading.account import PaperTradingAccount
from papertrade.trading.settings import TradingSettings


@pytest.fixture
def account() -> PaperTradingAccount:
    return PaperTradingAccount()


@pytest.fixture
def zero_fee_account() -> PaperTradingAccount:
    return PaperTradingAccount(TradingSettings(base_fee_rate=Decimal("0")))
