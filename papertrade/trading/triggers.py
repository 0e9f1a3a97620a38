"""Stop-loss / take-profit monitoring for open paper positions."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import List, Mapping, Optional

from .errors import InsufficientBalanceError
from .ledger import Ledger
from .models import Side, TradeExecution, TriggerKind
from .orders import OrderLifecycleManager

logger = logging.getLogger(__name__)


def breached_trigger(execution: TradeExecution, price: Decimal) -> Optional[TriggerKind]:
    """Return the trigger ``price`` breaches for a position, if any.

    A level of zero means no trigger. Stop loss is checked first.
    Buy positions stop out at or below the stop and take profit at or
    above the target; sell positions are mirrored.
    """
    stop_loss = execution.stop_loss
    take_profit = execution.take_profit

    if execution.side is Side.BUY:
        if stop_loss > 0 and price <= stop_loss:
            return TriggerKind.STOP_LOSS
        if take_profit > 0 and price >= take_profit:
            return TriggerKind.TAKE_PROFIT
    else:
        if stop_loss > 0 and price >= stop_loss:
            return TriggerKind.STOP_LOSS
        if take_profit > 0 and price <= take_profit:
            return TriggerKind.TAKE_PROFIT
    return None


class TriggerMonitor:
    """Applies price updates and closes positions whose levels are crossed."""

    def __init__(self, ledger: Ledger, orders: OrderLifecycleManager) -> None:
        self._ledger = ledger
        self._orders = orders

    def on_price_update(self, prices: Mapping[str, Decimal]) -> List[TradeExecution]:
        """Merge ``prices`` into the ledger and evaluate every open position.

        Positions are evaluated in insertion order. A position whose
        closing trade cannot be funded stays open.

        Args:
            prices: Asset to USD price

        Returns:
            Closing executions created by this update
        """
        closed: List[TradeExecution] = []
        with self._ledger.lock:
            self._ledger.set_prices(prices)
            current = self._ledger.get_prices()

            for execution in self._orders.get_open_orders():
                price = current.get(execution.symbol)
                if not price:
                    continue
                reason = breached_trigger(execution, price)
                if reason is None:
                    continue
                try:
                    closed.append(self._orders.close_position(execution.order_id, price, reason))
                except InsufficientBalanceError as e:
                    logger.warning(
                        f"Could not close {execution.order_id} by {reason.label} at {price}: {e}"
                    )
        return closed
