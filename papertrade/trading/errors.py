"""Errors raised by the paper trading engine.

Every error is a local validation failure. A raised error means the
operation was rejected before any balance changed.
"""

from __future__ import annotations

from decimal import Decimal
from enum import Enum


class OrderRejectionReason(Enum):
    """Reason an operation was rejected."""
    UNKNOWN_SYMBOL = "unknown_symbol"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_AMOUNT = "invalid_amount"
    ORDER_NOT_FOUND = "order_not_found"
    ORDER_ALREADY_CLOSED = "order_already_closed"


class PaperTradingError(Exception):
    """Base class for paper trading rejections."""

    reason: OrderRejectionReason

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnknownSymbolError(PaperTradingError):
    reason = OrderRejectionReason.UNKNOWN_SYMBOL

    def __init__(self, symbol: str) -> None:
        super().__init__(f"Invalid symbol: {symbol}")
        self.symbol = symbol


class InsufficientBalanceError(PaperTradingError):
    """Raised when an asset balance cannot cover a debit.

    Attributes:
        asset: Asset whose balance is short
        required: Amount the operation needs
        available: Balance at the time of the check
    """
    reason = OrderRejectionReason.INSUFFICIENT_BALANCE

    def __init__(self, asset: str, required: Decimal, available: Decimal) -> None:
        super().__init__(
            f"Insufficient {asset} balance. Required: {required}, Available: {available}"
        )
        self.asset = asset
        self.required = required
        self.available = available


class InvalidAmountError(PaperTradingError):
    reason = OrderRejectionReason.INVALID_AMOUNT


class OrderNotFoundError(PaperTradingError):
    reason = OrderRejectionReason.ORDER_NOT_FOUND

    def __init__(self, order_id: str) -> None:
        super().__init__(f"Trade with order ID {order_id} not found")
        self.order_id = order_id


class OrderAlreadyClosedError(PaperTradingError):
    reason = OrderRejectionReason.ORDER_ALREADY_CLOSED

    def __init__(self, order_id: str, state: str) -> None:
        super().__init__(f"Trade with order ID {order_id} is already {state}")
        self.order_id = order_id
        self.state = state
