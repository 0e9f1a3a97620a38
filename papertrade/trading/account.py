"""Paper trading account: the in-process API over the ledger engine.

An account is created and owned by whatever embeds it; there is no
process-wide instance. ``initialize()`` returns it to the configured
starting balances.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Mapping, Optional

from .analytics import DateLike, HistoryAggregator
from .errors import PaperTradingError
from .fees import FeeCalculator
from .funding import FundingManager
from .ledger import Ledger
from .models import (
    Currency,
    DepositRecord,
    FundingSummary,
    OrderStatus,
    TradeExecution,
    TradeHistorySummary,
    TradeOrder,
    WithdrawalRecord,
)
from .orders import OrderLifecycleManager, OrderResult
from .settings import TradingSettings
from .triggers import TriggerMonitor

logger = logging.getLogger(__name__)


@dataclass
class AccountSnapshot:
    """Point-in-time view of the account.

    Attributes:
        balances: Asset balances
        prices: Last known USD prices
        open_orders: Open positions with refreshed unrealized PnL
        history: Finalized positions and closing executions
        deposits: Deposit audit records
        withdrawals: Withdrawal audit records
        total_value: Cash plus crypto holdings valued at current prices (USD)
        total_realized_pnl: Sum of PnL realized by cancellations and trigger closes
    """
    balances: Dict[str, Decimal]
    prices: Dict[str, Decimal]
    open_orders: List[TradeExecution]
    history: List[TradeExecution]
    deposits: List[DepositRecord]
    withdrawals: List[WithdrawalRecord]
    total_value: Decimal
    total_realized_pnl: Decimal


class PaperTradingAccount:
    """Simulated trading account.

    Wires the ledger, order lifecycle manager, trigger monitor, funding
    manager and history aggregator around one shared lock.
    """

    def __init__(
        self,
        settings: Optional[TradingSettings] = None,
        ledger: Optional[Ledger] = None,
    ) -> None:
        self._settings = settings or TradingSettings()
        self._ledger = ledger or Ledger(prices=self._settings.initial_prices)
        fee_calculator = FeeCalculator(
            base_rate=self._settings.base_fee_rate,
            discount=self._settings.fee_discount,
            quote_asset=self._settings.quote_asset,
            discount_asset=self._settings.discount_asset,
        )
        self._orders = OrderLifecycleManager(
            self._ledger, fee_calculator, quote_asset=self._settings.quote_asset
        )
        self._triggers = TriggerMonitor(self._ledger, self._orders)
        self._funding = FundingManager(self._ledger)
        self._aggregator = HistoryAggregator()
        self.initialize()

    @property
    def settings(self) -> TradingSettings:
        return self._settings

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    def initialize(self) -> None:
        """Reset balances to the starting state and clear all records.

        Prices are kept.
        """
        with self._ledger.lock:
            self._ledger.reset(self._settings.initial_balances)
            self._orders.reset()
            self._funding.reset()
        logger.info("Paper trading account initialized with default values")

    def execute_order(self, order: TradeOrder) -> TradeExecution:
        """Execute an order; raises ``PaperTradingError`` on rejection."""
        return self._orders.execute_order(order)

    def submit_order(self, order: TradeOrder) -> OrderResult:
        """Execute an order, reporting rejection in the result instead of raising."""
        try:
            execution = self._orders.execute_order(order)
        except PaperTradingError as e:
            logger.info(f"Order for {order.symbol} rejected: {e.message}")
            return OrderResult(
                status=OrderStatus.FAILED,
                rejection_reason=e.reason,
                message=e.message,
            )
        return OrderResult(
            status=OrderStatus.EXECUTED,
            execution=execution,
            message=execution.message,
        )

    def cancel_order(self, order_id: str) -> TradeExecution:
        return self._orders.cancel_order(order_id)

    def push_price_update(self, prices: Mapping[str, Decimal]) -> List[TradeExecution]:
        """Apply new prices and close any position whose trigger is crossed."""
        return self._triggers.on_price_update(prices)

    def deposit(
        self,
        asset: str,
        amount: Decimal,
        currency: Currency = Currency.USD,
    ) -> DepositRecord:
        return self._funding.deposit(asset, amount, currency)

    def withdraw(
        self,
        asset: str,
        amount: Decimal,
        currency: Currency = Currency.USD,
    ) -> WithdrawalRecord:
        return self._funding.withdraw(asset, amount, currency)

    def get_price(self, asset: str) -> Decimal:
        """Last known price of ``asset``, zero if unknown."""
        return self._ledger.get_price(asset) or Decimal("0")

    def set_balance(self, asset: str, amount: Decimal) -> None:
        """Overwrite a balance directly (test and demo setup)."""
        self._ledger.set_balance(asset, amount)

    def get_open_orders(self) -> List[TradeExecution]:
        self._orders.refresh_unrealized_pnl()
        return self._orders.get_open_orders()

    def get_order(self, order_id: str) -> TradeExecution:
        return self._orders.get_order(order_id)

    def get_total_value(self) -> Decimal:
        """Cash assets at par plus positive crypto holdings at current prices."""
        with self._ledger.lock:
            balances = self._ledger.get_balances()
            prices = self._ledger.get_prices()
        cash_assets = set(self._settings.cash_assets)
        total = sum((balances.get(a, Decimal("0")) for a in cash_assets), Decimal("0"))
        for asset, amount in balances.items():
            if asset in cash_assets or amount <= Decimal("0"):
                continue
            price = prices.get(asset)
            if price:
                total += amount * price
        return total

    def get_account_snapshot(self) -> AccountSnapshot:
        with self._ledger.lock:
            self._orders.refresh_unrealized_pnl()
            return AccountSnapshot(
                balances=self._ledger.get_balances(),
                prices=self._ledger.get_prices(),
                open_orders=self._orders.get_open_orders(),
                history=self._orders.get_history(),
                deposits=self._funding.get_deposits(),
                withdrawals=self._funding.get_withdrawals(),
                total_value=self.get_total_value(),
                total_realized_pnl=self._orders.realized_pnl,
            )

    def get_history(
        self,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        currency: Currency = Currency.USD,
    ) -> TradeHistorySummary:
        return self._aggregator.summarize(
            self._orders.get_history(), start_date, end_date, currency
        )

    def get_funding_summary(self, currency: Currency = Currency.USD) -> FundingSummary:
        return self._funding.get_summary(currency)

    def export_history_csv(self, filepath: str) -> None:
        trades = self._aggregator.sort_by_timestamp(self._orders.get_history())
        self._aggregator.export_to_csv(trades, filepath)


class AccountSerializer:
    """Serializer for account state to JSON-compatible dictionaries."""

    @staticmethod
    def serialize(account: PaperTradingAccount) -> dict:
        """Serialize an account snapshot.

        Args:
            account: Account to serialize

        Returns:
            Dictionary with Decimal values as strings
        """
        snapshot = account.get_account_snapshot()
        return {
            "balances": {k: str(v) for k, v in snapshot.balances.items()},
            "prices": {k: str(v) for k, v in snapshot.prices.items()},
            "open_orders": [AccountSerializer.execution_to_dict(e) for e in snapshot.open_orders],
            "history": [AccountSerializer.execution_to_dict(e) for e in snapshot.history],
            "deposits": [AccountSerializer._funding_to_dict(r) for r in snapshot.deposits],
            "withdrawals": [AccountSerializer._funding_to_dict(r) for r in snapshot.withdrawals],
            "total_value": str(snapshot.total_value),
            "total_realized_pnl": str(snapshot.total_realized_pnl),
            "created_at": datetime.now().isoformat(),
        }

    @staticmethod
    def execution_to_dict(execution: TradeExecution) -> dict:
        fee = execution.fee
        return {
            "order_id": execution.order_id,
            "symbol": execution.symbol,
            "side": execution.side.value,
            "price": str(execution.price),
            "quantity": str(execution.quantity),
            "status": execution.status.value,
            "state": execution.state.value,
            "timestamp": execution.timestamp.isoformat(),
            "stop_loss": str(execution.stop_loss),
            "take_profit": str(execution.take_profit),
            "budget": str(execution.budget),
            "currency": execution.currency.value,
            "message": execution.message,
            "fee": None if fee is None else {
                "amount": str(fee.amount),
                "asset": fee.asset,
                "rate": str(fee.rate),
                "value": str(fee.value),
            },
            "current_pnl": str(execution.current_pnl),
            "current_pnl_percentage": str(execution.current_pnl_percentage),
            "close_reason": execution.close_reason.value if execution.close_reason else None,
            "closed_by": execution.closed_by,
            "closes_order_id": execution.closes_order_id,
        }

    @staticmethod
    def _funding_to_dict(record) -> dict:
        return {
            "id": record.id,
            "asset": record.asset,
            "amount": str(record.amount),
            "timestamp": record.timestamp.isoformat(),
            "currency": record.currency.value,
        }
