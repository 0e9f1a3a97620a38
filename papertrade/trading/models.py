"""Data models for the paper trading ledger."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional


class Side(Enum):
    """Direction of an order."""
    BUY = "buy"
    SELL = "sell"

    @property
    def opposite(self) -> "Side":
        return Side.SELL if self is Side.BUY else Side.BUY


class Currency(Enum):
    """Display currencies. Ledger math is always USD."""
    USD = "USD"
    INR = "INR"


class OrderStatus(Enum):
    """Status reported on an execution record."""
    PENDING = "pending"
    EXECUTED = "executed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    PARTIALLY_FILLED = "partially_filled"
    CLOSED = "closed"


class PositionState(Enum):
    """Lifecycle state of a position held by the order manager."""
    OPEN = "open"
    CANCELLED = "cancelled"
    CLOSED_BY_TRIGGER = "closed_by_trigger"

    @property
    def is_terminal(self) -> bool:
        return self is not PositionState.OPEN


class TriggerKind(Enum):
    """Which protective level closed a position."""
    STOP_LOSS = "stop_loss"
    TAKE_PROFIT = "take_profit"

    @property
    def label(self) -> str:
        return "stop loss" if self is TriggerKind.STOP_LOSS else "take profit"


def to_decimal(value) -> Decimal:
    """Coerce int/float/str input to Decimal without binary float noise."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def to_currency(value) -> Currency:
    """Coerce a currency code such as "usd" to ``Currency``."""
    if isinstance(value, Currency):
        return value
    return Currency(str(value).upper())


@dataclass(frozen=True)
class Fee:
    """Trading fee charged on an execution.

    Attributes:
        amount: Fee in units of ``asset``
        asset: Asset the fee was paid in (e.g. "USDT" or "BNB")
        rate: Effective fee rate applied to the notional
        value: USD equivalent of the fee (notional * rate)
    """
    amount: Decimal
    asset: str
    rate: Decimal
    value: Decimal


@dataclass
class TradeOrder:
    """Order request submitted to the order lifecycle manager.

    ``budget`` and ``currency`` are presentation attributes; balance math
    uses ``price`` and ``quantity`` in USD only.
    """
    symbol: str
    side: Side
    price: Decimal
    quantity: Decimal
    stop_loss: Decimal = Decimal("0")
    take_profit: Decimal = Decimal("0")
    budget: Decimal = Decimal("0")
    currency: Currency = Currency.USD
    use_discount_asset_for_fees: bool = False

    def __post_init__(self) -> None:
        if not isinstance(self.side, Side):
            self.side = Side(str(self.side).lower())
        self.currency = to_currency(self.currency)
        self.price = to_decimal(self.price)
        self.quantity = to_decimal(self.quantity)
        self.stop_loss = to_decimal(self.stop_loss or 0)
        self.take_profit = to_decimal(self.take_profit or 0)
        self.budget = to_decimal(self.budget or 0)


@dataclass
class TradeExecution:
    """An executed order and, once finalized, its realized result.

    Attributes:
        order_id: Unique, insertion-ordered identifier
        symbol: Base asset (e.g. "BTC")
        side: BUY or SELL
        price: Execution price in USD
        quantity: Base asset amount
        status: Reported order status
        state: Position lifecycle state
        fee: Fee charged at execution
        current_pnl: Unrealized (open) or realized (closed) profit/loss in USD
        close_reason: Trigger that closed the position, if any
        closed_by: Order id of the closing execution, if trigger-closed
        closes_order_id: On a closing execution, the position it closed
    """
    order_id: str
    symbol: str
    side: Side
    price: Decimal
    quantity: Decimal
    status: OrderStatus
    timestamp: datetime
    stop_loss: Decimal = Decimal("0")
    take_profit: Decimal = Decimal("0")
    budget: Decimal = Decimal("0")
    currency: Currency = Currency.USD
    message: str = ""
    fee: Optional[Fee] = None
    current_pnl: Decimal = Decimal("0")
    current_pnl_percentage: Decimal = Decimal("0")
    state: PositionState = PositionState.OPEN
    close_reason: Optional[TriggerKind] = None
    closed_by: Optional[str] = None
    closes_order_id: Optional[str] = None
    pnl: Optional[Decimal] = None
    pnl_percentage: Optional[Decimal] = None

    @property
    def notional(self) -> Decimal:
        """Order value in USD (price * quantity)."""
        return self.price * self.quantity

    @property
    def fee_value(self) -> Decimal:
        return self.fee.value if self.fee else Decimal("0")

    @property
    def is_open(self) -> bool:
        return self.state is PositionState.OPEN

    @property
    def realized_pnl(self) -> Optional[Decimal]:
        """Realized PnL of a finalized position, None while open."""
        return self.pnl


@dataclass(frozen=True)
class DepositRecord:
    """Audit entry for funds added outside the order flow."""
    id: str
    asset: str
    amount: Decimal
    timestamp: datetime
    currency: Currency = Currency.USD

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", to_currency(self.currency))


@dataclass(frozen=True)
class WithdrawalRecord:
    """Audit entry for funds removed outside the order flow."""
    id: str
    asset: str
    amount: Decimal
    timestamp: datetime
    currency: Currency = Currency.USD

    def __post_init__(self) -> None:
        object.__setattr__(self, "currency", to_currency(self.currency))


@dataclass
class TradeHistorySummary:
    """Aggregated view over finalized trades in a date range."""
    trades: List[TradeExecution]
    total_profit: Decimal
    total_loss: Decimal
    total_fees: Decimal
    win_rate: Decimal
    currency: Currency = Currency.USD
    trades_counted: int = 0
    wins: int = 0


@dataclass
class FundingSummary:
    """Deposits and withdrawals with per-asset totals."""
    deposits: List[DepositRecord]
    withdrawals: List[WithdrawalRecord]
    total_deposited: dict
    total_withdrawn: dict
    currency: Currency = Currency.USD


@dataclass
class TradeRecommendation:
    """Entry/exit levels supplied by an external recommendation provider."""
    symbol: str
    entry_price: Decimal
    target_price: Decimal
    stop_loss: Decimal
    confidence: float = 0.0
    reasoning: str = ""
    timestamp: datetime = field(default_factory=datetime.now)

    def __post_init__(self) -> None:
        self.entry_price = to_decimal(self.entry_price)
        self.target_price = to_decimal(self.target_price)
        self.stop_loss = to_decimal(self.stop_loss)

    @property
    def risk_reward_ratio(self) -> Decimal:
        """Reward per unit of risk; zero when there is no downside."""
        risk = abs(self.entry_price - self.stop_loss)
        if risk == Decimal("0"):
            return Decimal("0")
        return abs(self.target_price - self.entry_price) / risk
