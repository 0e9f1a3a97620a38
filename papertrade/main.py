from __future__ import annotations

import argparse
import logging
import sys
import time
from decimal import Decimal
from pathlib import Path
from typing import Dict, Iterable, List, Optional

import httpx

from papertrade.data.providers import BinancePriceFeed, IPriceFeed
from papertrade.storage.storage import JsonFileStorage
from papertrade.trading.account import AccountSerializer, PaperTradingAccount
from papertrade.trading.errors import PaperTradingError
from papertrade.trading.models import Side, TradeOrder
from papertrade.trading.settings import load_settings

logger = logging.getLogger(__name__)

SNAPSHOT_STORAGE_KEY = "paper_trading_snapshot"
DEFAULT_DATA_DIR = Path.home() / ".papertrade" / "data"

# Offline price path. BTC falls through its stop; ETH rallies through its target.
SCRIPTED_PRICES: List[Dict[str, Decimal]] = [
    {"BTC": Decimal("52000"), "ETH": Decimal("3100")},
    {"BTC": Decimal("44000"), "ETH": Decimal("3150")},
    {"ETH": Decimal("3400")},
]


def open_demo_positions(account: PaperTradingAccount, assets: Iterable[str]) -> None:
    """Open one bracketed buy per asset with roughly 10% of the quote balance."""
    quote = account.settings.quote_asset
    for asset in assets:
        price = account.get_price(asset)
        if price <= 0:
            logger.warning(f"No price for {asset}, skipping")
            continue
        budget = account.ledger.get_balance(quote) * Decimal("0.1")
        order = TradeOrder(
            symbol=asset,
            side=Side.BUY,
            price=price,
            quantity=(budget / price).quantize(Decimal("0.00000001")),
            stop_loss=price * Decimal("0.9"),
            take_profit=price * Decimal("1.08"),
            budget=budget,
        )
        result = account.submit_order(order)
        logger.info(f"{asset}: {result.status.value} - {result.message}")


def run_session(
    account: PaperTradingAccount,
    feed: Optional[IPriceFeed],
    assets: List[str],
    ticks: int,
    interval_s: float,
) -> None:
    open_demo_positions(account, assets)

    if feed is None:
        updates = SCRIPTED_PRICES
    else:
        updates = []
        for i in range(ticks):
            try:
                updates.append(feed.fetch_prices(assets))
            except httpx.HTTPError as e:
                logger.error(f"Price fetch failed: {e}")
            if i + 1 < ticks:
                time.sleep(interval_s)

    for prices in updates:
        closed = account.push_price_update(prices)
        for execution in closed:
            logger.info(f"Trigger close {execution.order_id}: {execution.message}, PnL {execution.pnl}")


def log_account(account: PaperTradingAccount) -> None:
    snapshot = account.get_account_snapshot()
    for asset, amount in sorted(snapshot.balances.items()):
        logger.info(f"{asset}: {amount:.8f}")
    logger.info(f"Total value: {snapshot.total_value:.2f}")
    for execution in snapshot.open_orders:
        logger.info(
            f"Open {execution.order_id} {execution.side.value} {execution.quantity} "
            f"{execution.symbol} @ {execution.price}, PnL {execution.current_pnl:.2f}"
        )
    summary = account.get_history()
    logger.info(
        f"History: {len(summary.trades)} records, profit {summary.total_profit:.2f}, "
        f"loss {summary.total_loss:.2f}, fees {summary.total_fees:.4f}, "
        f"win rate {summary.win_rate:.1f}%"
    )


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Run a paper trading session.")
    parser.add_argument("--data-dir", type=Path, default=DEFAULT_DATA_DIR)
    parser.add_argument(
        "--feed",
        choices=["scripted", "binance", "coingecko"],
        default="scripted",
        help="price source; 'scripted' runs offline",
    )
    parser.add_argument("--assets", nargs="+", default=["BTC", "ETH"])
    parser.add_argument("--ticks", type=int, default=3)
    parser.add_argument("--interval", type=float, default=2.0)
    parser.add_argument("--export", type=Path, default=None, help="write history CSV here")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    storage = JsonFileStorage(args.data_dir)
    account = PaperTradingAccount(load_settings(storage))
    assets = [a.upper() for a in args.assets]

    feed: Optional[BinancePriceFeed] = None
    if args.feed != "scripted":
        feed = BinancePriceFeed(quote_asset=account.settings.quote_asset, source=args.feed)
        try:
            account.push_price_update(feed.fetch_prices(assets))
        except httpx.HTTPError as e:
            logger.error(f"Initial price fetch failed, using configured prices: {e}")

    try:
        run_session(account, feed, assets, args.ticks, args.interval)
    except PaperTradingError as e:
        logger.error(f"Session aborted: {e}")
        return 1
    finally:
        if feed is not None:
            feed.close()

    log_account(account)
    storage.save(SNAPSHOT_STORAGE_KEY, AccountSerializer.serialize(account))
    if args.export:
        account.export_history_csv(str(args.export))
        logger.info(f"History exported to {args.export}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main(sys.argv[1:]))
