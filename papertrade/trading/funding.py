"""Deposits and withdrawals for the paper trading account."""

from __future__ import annotations

import itertools
import logging
import time
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Dict, List

from .errors import InsufficientBalanceError, InvalidAmountError
from .ledger import Ledger
from .models import (
    Currency,
    DepositRecord,
    FundingSummary,
    WithdrawalRecord,
    to_currency,
    to_decimal,
)

logger = logging.getLogger(__name__)


class FundingManager:
    """Moves funds in and out of the ledger outside the order flow.

    Deposits and withdrawals never touch open orders or fees. Each one
    appends an immutable audit record.
    """

    def __init__(self, ledger: Ledger) -> None:
        self._ledger = ledger
        self._sequence = itertools.count(1)
        self._deposits: List[DepositRecord] = []
        self._withdrawals: List[WithdrawalRecord] = []

    def deposit(
        self,
        asset: str,
        amount: Decimal,
        currency: Currency = Currency.USD,
    ) -> DepositRecord:
        """Add ``amount`` of ``asset`` to the account.

        Raises:
            InvalidAmountError: If amount is not greater than zero
        """
        asset = asset.upper()
        amount = to_decimal(amount)
        if not amount.is_finite() or amount <= Decimal("0"):
            raise InvalidAmountError("Deposit amount must be greater than zero")

        with self._ledger.lock:
            record = DepositRecord(
                id=self._next_id("DEP"),
                asset=asset,
                amount=amount,
                timestamp=datetime.now(),
                currency=currency,
            )
            self._ledger.apply_delta(asset, amount)
            self._deposits.append(record)

        logger.info(f"Deposited {amount} {asset} ({record.id})")
        return record

    def withdraw(
        self,
        asset: str,
        amount: Decimal,
        currency: Currency = Currency.USD,
    ) -> WithdrawalRecord:
        """Remove ``amount`` of ``asset`` from the account.

        Raises:
            InvalidAmountError: If amount is not greater than zero
            InsufficientBalanceError: If the balance is below ``amount``
        """
        asset = asset.upper()
        amount = to_decimal(amount)
        if not amount.is_finite() or amount <= Decimal("0"):
            raise InvalidAmountError("Withdrawal amount must be greater than zero")

        with self._ledger.lock:
            available = self._ledger.get_balance(asset)
            if available < amount:
                raise InsufficientBalanceError(asset, amount, available)
            record = WithdrawalRecord(
                id=self._next_id("WD"),
                asset=asset,
                amount=amount,
                timestamp=datetime.now(),
                currency=currency,
            )
            self._ledger.apply_delta(asset, -amount)
            self._withdrawals.append(record)

        logger.info(f"Withdrew {amount} {asset} ({record.id})")
        return record

    def get_deposits(self) -> List[DepositRecord]:
        with self._ledger.lock:
            return list(self._deposits)

    def get_withdrawals(self) -> List[WithdrawalRecord]:
        with self._ledger.lock:
            return list(self._withdrawals)

    def get_summary(self, currency: Currency = Currency.USD) -> FundingSummary:
        """Deposits and withdrawals with per-asset totals."""
        deposits = self.get_deposits()
        withdrawals = self.get_withdrawals()
        return FundingSummary(
            deposits=deposits,
            withdrawals=withdrawals,
            total_deposited=self._totals(deposits),
            total_withdrawn=self._totals(withdrawals),
            currency=to_currency(currency),
        )

    def reset(self) -> None:
        with self._ledger.lock:
            self._deposits.clear()
            self._withdrawals.clear()

    def _next_id(self, prefix: str) -> str:
        return f"{prefix}-{int(time.time() * 1000)}-{next(self._sequence):06d}"

    @staticmethod
    def _totals(records) -> Dict[str, Decimal]:
        totals: Dict[str, Decimal] = defaultdict(lambda: Decimal("0"))
        for record in records:
            totals[record.asset] += record.amount
        return dict(totals)
