"""Trade history aggregation for paper trading."""

from __future__ import annotations

import csv
from abc import ABC, abstractmethod
from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional, Union

from .currency import CurrencyConverter
from .models import Currency, PositionState, TradeExecution, TradeHistorySummary, to_currency

DateLike = Union[date, datetime]

_COUNTED_STATES = (PositionState.CANCELLED, PositionState.CLOSED_BY_TRIGGER)


class IHistoryAggregator(ABC):
    """Interface for trade history reporting."""

    @abstractmethod
    def summarize(
        self,
        trades: List[TradeExecution],
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        currency: Currency = Currency.USD,
    ) -> TradeHistorySummary:
        """Aggregate profit, loss, fees and win rate over a date range.

        Args:
            trades: Finalized trades, oldest first
            start_date: First day included (from 00:00:00)
            end_date: Last day included (through 23:59:59)
            currency: Display currency for the totals

        Returns:
            TradeHistorySummary for the filtered trades
        """
        ...

    @abstractmethod
    def export_to_csv(self, trades: List[TradeExecution], filepath: str) -> None:
        """Export trade history to a CSV file."""
        ...

    @abstractmethod
    def sort_by_timestamp(
        self, trades: List[TradeExecution], descending: bool = True
    ) -> List[TradeExecution]:
        """Sort trades by timestamp, most recent first by default."""
        ...


class HistoryAggregator(IHistoryAggregator):
    """Read-only aggregation over closed trades.

    Win rate counts every finalized position with a realized PnL, whether
    it was cancelled or closed by a trigger. Closing executions are not
    counted on their own since their PnL is already on the position they
    closed; their fees are.
    """

    def __init__(self, converter: Optional[CurrencyConverter] = None) -> None:
        self._converter = converter or CurrencyConverter()

    def summarize(
        self,
        trades: List[TradeExecution],
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
        currency: Currency = Currency.USD,
    ) -> TradeHistorySummary:
        trades = self.filter_by_date(trades, start_date, end_date)
        currency = to_currency(currency)

        total_profit = Decimal("0")
        total_loss = Decimal("0")
        total_fees = Decimal("0")
        wins = 0
        counted = 0

        for trade in trades:
            total_fees += trade.fee_value
            if not self._counts_toward_results(trade):
                continue
            counted += 1
            if trade.pnl > Decimal("0"):
                total_profit += trade.pnl
                wins += 1
            else:
                total_loss += abs(trade.pnl)

        if counted > 0:
            win_rate = (Decimal(wins) / Decimal(counted)) * Decimal("100")
        else:
            win_rate = Decimal("0")

        return TradeHistorySummary(
            trades=trades,
            total_profit=self._display(total_profit, currency),
            total_loss=self._display(total_loss, currency),
            total_fees=self._display(total_fees, currency),
            win_rate=win_rate,
            currency=currency,
            trades_counted=counted,
            wins=wins,
        )

    @staticmethod
    def filter_by_date(
        trades: List[TradeExecution],
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> List[TradeExecution]:
        """Keep trades inside whole-day bounds, inclusive on both ends."""
        start = datetime.combine(_as_date(start_date), time.min) if start_date else None
        end = datetime.combine(_as_date(end_date), time.max) if end_date else None
        return [
            t for t in trades
            if (start is None or t.timestamp >= start) and (end is None or t.timestamp <= end)
        ]

    def sort_by_timestamp(
        self, trades: List[TradeExecution], descending: bool = True
    ) -> List[TradeExecution]:
        return sorted(trades, key=lambda t: t.timestamp, reverse=descending)

    def export_to_csv(self, trades: List[TradeExecution], filepath: str) -> None:
        fieldnames = [
            "order_id", "symbol", "side", "status", "quantity", "price",
            "fee", "fee_asset", "pnl", "closes_order_id", "timestamp",
        ]

        with open(filepath, "w", newline="", encoding="utf-8") as csvfile:
            writer = csv.DictWriter(csvfile, fieldnames=fieldnames)
            writer.writeheader()

            for trade in trades:
                writer.writerow({
                    "order_id": trade.order_id,
                    "symbol": trade.symbol,
                    "side": trade.side.value,
                    "status": trade.status.value,
                    "quantity": str(trade.quantity),
                    "price": str(trade.price),
                    "fee": str(trade.fee.amount) if trade.fee else "",
                    "fee_asset": trade.fee.asset if trade.fee else "",
                    "pnl": "" if trade.pnl is None else str(trade.pnl),
                    "closes_order_id": trade.closes_order_id or "",
                    "timestamp": trade.timestamp.isoformat(),
                })

    @staticmethod
    def _counts_toward_results(trade: TradeExecution) -> bool:
        return (
            trade.closes_order_id is None
            and trade.state in _COUNTED_STATES
            and trade.pnl is not None
        )

    def _display(self, amount: Decimal, currency: Currency) -> Decimal:
        return self._converter.convert(amount, Currency.USD, currency)


def _as_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
