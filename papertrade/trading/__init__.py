# Trading module
"""Paper trading engine: ledger, order lifecycle, triggers, funding and history."""

from .models import (
    Currency,
    DepositRecord,
    Fee,
    FundingSummary,
    OrderStatus,
    PositionState,
    Side,
    TradeExecution,
    TradeHistorySummary,
    TradeOrder,
    TradeRecommendation,
    TriggerKind,
    WithdrawalRecord,
)
from .errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    OrderAlreadyClosedError,
    OrderNotFoundError,
    OrderRejectionReason,
    PaperTradingError,
    UnknownSymbolError,
)
from .fees import FeeCalculator
from .currency import CurrencyConverter, convert_currency
from .ledger import ILedger, Ledger
from .orders import IOrderService, OrderLifecycleManager, OrderResult, base_asset
from .triggers import TriggerMonitor, breached_trigger
from .funding import FundingManager
from .analytics import HistoryAggregator, IHistoryAggregator
from .settings import TradingSettings, load_settings, save_settings
from .account import AccountSerializer, AccountSnapshot, PaperTradingAccount

__all__ = [
    "Currency",
    "DepositRecord",
    "Fee",
    "FundingSummary",
    "OrderStatus",
    "PositionState",
    "Side",
    "TradeExecution",
    "TradeHistorySummary",
    "TradeOrder",
    "TradeRecommendation",
    "TriggerKind",
    "WithdrawalRecord",
    "InsufficientBalanceError",
    "InvalidAmountError",
    "OrderAlreadyClosedError",
    "OrderNotFoundError",
    "OrderRejectionReason",
    "PaperTradingError",
    "UnknownSymbolError",
    "FeeCalculator",
    "CurrencyConverter",
    "convert_currency",
    "ILedger",
    "Ledger",
    "IOrderService",
    "OrderLifecycleManager",
    "OrderResult",
    "base_asset",
    "TriggerMonitor",
    "breached_trigger",
    "FundingManager",
    "HistoryAggregator",
    "IHistoryAggregator",
    "TradingSettings",
    "load_settings",
    "save_settings",
    "AccountSerializer",
    "AccountSnapshot",
    "PaperTradingAccount",
]
