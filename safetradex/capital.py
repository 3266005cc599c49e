"""Deposits and withdrawals, stored as tagged trade rows.

These rows change the account balance but are never counted as trading
results. They do not pass through the entry gate.
"""

import logging
import math
from datetime import date, datetime
from typing import Iterable, Optional

from safetradex.records import CAPITAL_ADJUSTMENT, DEPOSIT, WITHDRAWAL, Trade
from safetradex.storage.database import Database

logger = logging.getLogger(__name__)


def _record(db: Database, kind: str, amount: float, trade_date: date,
            created_at: Optional[datetime]) -> Trade:
    if not math.isfinite(amount) or amount <= 0:
        raise ValueError(f"{kind.title()} amount must be a positive number, got {amount}")
    signed = amount if kind == DEPOSIT else -amount
    trade = db.insert_trade(Trade(
        trade_name=kind,
        pnl_amount=signed,
        trade_date=trade_date,
        created_at=created_at,
        comments=CAPITAL_ADJUSTMENT,
    ))
    logger.info(f"[Capital] {kind}: ₹{amount:,.2f} on {trade_date}")
    return trade


def deposit(db: Database, amount: float, trade_date: date,
            created_at: Optional[datetime] = None) -> Trade:
    """Add funds to the account balance."""
    return _record(db, DEPOSIT, amount, trade_date, created_at)


def withdraw(db: Database, amount: float, trade_date: date,
             created_at: Optional[datetime] = None) -> Trade:
    """Take funds out of the account balance."""
    return _record(db, WITHDRAWAL, amount, trade_date, created_at)


def total_capital(starting_capital: float, trades: Iterable[Trade]) -> float:
    """Current balance: starting capital plus every row, adjustments included."""
    return starting_capital + sum(t.pnl_amount for t in trades)
