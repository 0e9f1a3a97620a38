"""Order lifecycle management for paper trading.

This module provides order execution functionality including:
- OrderResult dataclass for non-raising order submission
- IOrderService interface for order execution and cancellation
- OrderLifecycleManager, the only component that changes position state
"""

from __future__ import annotations

import itertools
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict, defaultdict
from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from typing import Dict, List, Optional, Set, Tuple

from .errors import (
    InsufficientBalanceError,
    InvalidAmountError,
    OrderAlreadyClosedError,
    OrderNotFoundError,
    OrderRejectionReason,
    UnknownSymbolError,
)
from .fees import FeeCalculator
from .ledger import Ledger
from .models import (
    Fee,
    OrderStatus,
    PositionState,
    Side,
    TradeExecution,
    TradeOrder,
    TriggerKind,
)

logger = logging.getLogger(__name__)

VALID_TRANSITIONS: Dict[PositionState, Set[PositionState]] = {
    PositionState.OPEN: {PositionState.CANCELLED, PositionState.CLOSED_BY_TRIGGER},
    PositionState.CANCELLED: set(),
    PositionState.CLOSED_BY_TRIGGER: set(),
}


def base_asset(symbol: str, quote_asset: str = "USDT") -> str:
    """Normalize a symbol or trading pair to its base asset.

    "BTC", "BTCUSDT", "BTC/USDT" and "btc-usdt" all map to "BTC".
    """
    s = symbol.replace("/", "").replace("-", "").replace(" ", "").upper()
    quote = quote_asset.upper()
    if s.endswith(quote) and len(s) > len(quote):
        s = s[: -len(quote)]
    return s


@dataclass
class OrderResult:
    """Result of a non-raising order submission.

    Attributes:
        status: EXECUTED on success, FAILED when validation rejected the order
        execution: The execution record if the order was executed
        rejection_reason: The reason for rejection if the order failed
        message: Human-readable message describing the result
    """
    status: OrderStatus
    execution: Optional[TradeExecution] = None
    rejection_reason: Optional[OrderRejectionReason] = None
    message: str = ""


class IOrderService(ABC):
    """Interface for order execution and cancellation."""

    @abstractmethod
    def execute_order(self, order: TradeOrder) -> TradeExecution:
        """Validate and execute an order against the ledger."""
        ...

    @abstractmethod
    def cancel_order(self, order_id: str) -> TradeExecution:
        """Cancel an open order, undoing its balance changes."""
        ...


class OrderLifecycleManager(IOrderService):
    """Validates, executes, cancels and closes paper orders.

    Open positions are indexed by order id in insertion order. Every
    check-then-act sequence runs under the ledger lock, so a position
    can be finalized once only: a racing cancel or trigger close sees it
    as already closed.
    """

    def __init__(
        self,
        ledger: Ledger,
        fee_calculator: Optional[FeeCalculator] = None,
        quote_asset: str = "USDT",
    ) -> None:
        self._ledger = ledger
        self._fees = fee_calculator or FeeCalculator(quote_asset=quote_asset)
        self._quote_asset = quote_asset.upper()
        self._sequence = itertools.count(1)
        self._open: "OrderedDict[str, TradeExecution]" = OrderedDict()
        self._deltas: Dict[str, Dict[str, Decimal]] = {}
        self._finalized: Dict[str, TradeExecution] = {}
        self._history: List[TradeExecution] = []
        self._realized_pnl = Decimal("0")

    @property
    def quote_asset(self) -> str:
        return self._quote_asset

    @property
    def realized_pnl(self) -> Decimal:
        with self._ledger.lock:
            return self._realized_pnl

    def execute_order(self, order: TradeOrder) -> TradeExecution:
        """Execute an order at its requested price.

        Args:
            order: Order request

        Returns:
            A copy of the new EXECUTED record

        Raises:
            UnknownSymbolError: If the base asset has no known price
            InvalidAmountError: If price or quantity is not positive
            InsufficientBalanceError: If any debited balance cannot cover
                the order value and fee
        """
        symbol = base_asset(order.symbol, self._quote_asset)

        with self._ledger.lock:
            prices = self._ledger.get_prices()
            if not prices.get(symbol):
                raise UnknownSymbolError(order.symbol)
            if not (order.quantity.is_finite() and order.price.is_finite()):
                raise InvalidAmountError("Price and quantity must be finite numbers")
            if order.quantity <= Decimal("0") or order.price <= Decimal("0"):
                raise InvalidAmountError("Price and quantity must be greater than zero")

            fee = self._fees.calculate(
                order.price,
                order.quantity,
                order.use_discount_asset_for_fees,
                prices,
            )
            deltas = self._balance_deltas(order.side, symbol, order.price, order.quantity, fee)
            self._check_funds(deltas)

            execution = TradeExecution(
                order_id=self._next_id(),
                symbol=symbol,
                side=order.side,
                price=order.price,
                quantity=order.quantity,
                status=OrderStatus.EXECUTED,
                timestamp=datetime.now(),
                stop_loss=order.stop_loss,
                take_profit=order.take_profit,
                budget=order.budget,
                currency=order.currency,
                message=f"Paper {order.side.value.capitalize()} order executed successfully",
                fee=fee,
            )
            self._ledger.apply_deltas(deltas)
            self._open[execution.order_id] = execution
            self._deltas[execution.order_id] = deltas

        logger.info(
            f"Executed {execution.side.value} {execution.quantity} {symbol} "
            f"at {execution.price} ({execution.order_id})"
        )
        return replace(execution)

    def cancel_order(self, order_id: str) -> TradeExecution:
        """Cancel an open order.

        The original balance changes, including the fee, are reversed
        exactly. The PnL at the current mark is recorded as realized but
        does not move any balance.

        Raises:
            OrderNotFoundError: If the id was never issued
            OrderAlreadyClosedError: If the order is already finalized
            InsufficientBalanceError: If the reversal would overdraw an asset
        """
        with self._ledger.lock:
            execution = self._get_open(order_id)
            reversal = {asset: -delta for asset, delta in self._deltas[order_id].items()}
            self._check_funds(reversal)

            current_price = self._ledger.get_price(execution.symbol)
            if current_price:
                pnl, pnl_pct = self._compute_pnl(execution, current_price)
            else:
                pnl, pnl_pct = Decimal("0"), Decimal("0")

            self._ledger.apply_deltas(reversal)
            self._transition(execution, PositionState.CANCELLED)
            execution.status = OrderStatus.CANCELLED
            execution.message = "Paper trade cancelled successfully"
            self._set_realized(execution, pnl, pnl_pct)
            self._finalize(execution)

        logger.info(f"Cancelled {order_id} with PnL {pnl}")
        return replace(execution)

    def close_position(
        self,
        order_id: str,
        price: Decimal,
        reason: TriggerKind,
    ) -> TradeExecution:
        """Close an open position with an opposite-side execution.

        The closing execution pays the default fee. The original order
        becomes CLOSED and both records are appended to history.

        Returns:
            A copy of the closing execution

        Raises:
            OrderNotFoundError: If the id was never issued
            OrderAlreadyClosedError: If the position is already finalized
            InsufficientBalanceError: If the closing trade cannot be funded
        """
        price = Decimal(str(price))
        with self._ledger.lock:
            position = self._get_open(order_id)
            side = position.side.opposite
            fee = self._fees.calculate(price, position.quantity)
            deltas = self._balance_deltas(side, position.symbol, price, position.quantity, fee)
            self._check_funds(deltas)

            prefix = "PAPER-SL" if reason is TriggerKind.STOP_LOSS else "PAPER-TP"
            closing = TradeExecution(
                order_id=self._next_id(prefix),
                symbol=position.symbol,
                side=side,
                price=price,
                quantity=position.quantity,
                status=OrderStatus.EXECUTED,
                timestamp=datetime.now(),
                budget=position.budget,
                currency=position.currency,
                message=f"Paper {reason.label} executed at {price}",
                fee=fee,
                state=PositionState.CLOSED_BY_TRIGGER,
                close_reason=reason,
                closes_order_id=order_id,
            )
            self._ledger.apply_deltas(deltas)

            pnl, pnl_pct = self._compute_pnl(position, price, exit_fee=fee.value)
            self._transition(position, PositionState.CLOSED_BY_TRIGGER)
            position.status = OrderStatus.CLOSED
            position.message = f"Position closed by {reason.label} at {price}"
            position.close_reason = reason
            position.closed_by = closing.order_id
            self._set_realized(position, pnl, pnl_pct)
            closing.pnl = pnl
            closing.pnl_percentage = pnl_pct
            self._finalize(position)
            self._finalized[closing.order_id] = closing
            self._history.append(closing)

        logger.info(f"{position.message} ({order_id} -> {closing.order_id}), PnL {pnl}")
        return replace(closing)

    def refresh_unrealized_pnl(self) -> None:
        """Recompute current PnL of open orders from the latest prices."""
        with self._ledger.lock:
            prices = self._ledger.get_prices()
            for execution in self._open.values():
                price = prices.get(execution.symbol)
                if price:
                    pnl, pnl_pct = self._compute_pnl(execution, price)
                    execution.current_pnl = pnl
                    execution.current_pnl_percentage = pnl_pct

    def get_open_orders(self) -> List[TradeExecution]:
        """Open orders in insertion order."""
        with self._ledger.lock:
            return [replace(e) for e in self._open.values()]

    def get_order(self, order_id: str) -> TradeExecution:
        with self._ledger.lock:
            execution = self._open.get(order_id) or self._finalized.get(order_id)
            if execution is None:
                raise OrderNotFoundError(order_id)
            return replace(execution)

    def get_history(self) -> List[TradeExecution]:
        """Finalized positions and closing executions, oldest first."""
        with self._ledger.lock:
            return [replace(e) for e in self._history]

    def reset(self) -> None:
        """Drop all orders, history and realized PnL."""
        with self._ledger.lock:
            self._open.clear()
            self._deltas.clear()
            self._finalized.clear()
            self._history.clear()
            self._realized_pnl = Decimal("0")

    def _next_id(self, prefix: str = "PAPER") -> str:
        return f"{prefix}-{int(time.time() * 1000)}-{next(self._sequence):06d}"

    def _get_open(self, order_id: str) -> TradeExecution:
        execution = self._open.get(order_id)
        if execution is not None:
            return execution
        finalized = self._finalized.get(order_id)
        if finalized is not None:
            raise OrderAlreadyClosedError(order_id, finalized.status.value)
        raise OrderNotFoundError(order_id)

    def _balance_deltas(
        self,
        side: Side,
        symbol: str,
        price: Decimal,
        quantity: Decimal,
        fee: Optional[Fee],
    ) -> Dict[str, Decimal]:
        # Netted per asset, so a fee paid in the quote asset is checked
        # together with the order value.
        notional = price * quantity
        deltas: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        if side is Side.BUY:
            deltas[self._quote_asset] -= notional
            deltas[symbol] += quantity
        else:
            deltas[self._quote_asset] += notional
            deltas[symbol] -= quantity
        if fee is not None:
            deltas[fee.asset] -= fee.amount
        return dict(deltas)

    def _check_funds(self, deltas: Dict[str, Decimal]) -> None:
        for asset, delta in deltas.items():
            if delta >= Decimal("0"):
                continue
            available = self._ledger.get_balance(asset)
            if available + delta < Decimal("0"):
                raise InsufficientBalanceError(asset, -delta, available)

    @staticmethod
    def _compute_pnl(
        execution: TradeExecution,
        price: Decimal,
        exit_fee: Decimal = Decimal("0"),
    ) -> Tuple[Decimal, Decimal]:
        if execution.side is Side.BUY:
            pnl = (price - execution.price) * execution.quantity
        else:
            pnl = (execution.price - price) * execution.quantity
        pnl -= execution.fee_value + exit_fee
        pnl_pct = (pnl / execution.notional) * Decimal("100")
        return pnl, pnl_pct

    @staticmethod
    def _transition(execution: TradeExecution, new_state: PositionState) -> None:
        if new_state not in VALID_TRANSITIONS[execution.state]:
            raise OrderAlreadyClosedError(execution.order_id, execution.state.value)
        execution.state = new_state

    def _set_realized(self, execution: TradeExecution, pnl: Decimal, pnl_pct: Decimal) -> None:
        execution.current_pnl = pnl
        execution.current_pnl_percentage = pnl_pct
        execution.pnl = pnl
        execution.pnl_percentage = pnl_pct
        self._realized_pnl += pnl

    def _finalize(self, execution: TradeExecution) -> None:
        del self._open[execution.order_id]
        del self._deltas[execution.order_id]
        self._finalized[execution.order_id] = execution
        self._history.append(execution)
