"""Trade journal statistics: history, monthly calendar, and the equity curve.

Capital adjustments (deposits/withdrawals) are stripped before any of
these views are computed. Balances live in projections.equity instead.
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Optional

import numpy as np
import pandas as pd

from safetradex.records import Trade, performance_trades
from safetradex.risk.limits import GST_RATE

logger = logging.getLogger(__name__)

DEFAULT_MAX_DRAWDOWN_PCT = 10.0

TRADE_COLUMNS = ["id", "trade_date", "created_at", "trade_name", "pnl_amount",
                 "setup_type", "market_state", "comments"]


def trades_frame(trades: list[Trade]) -> pd.DataFrame:
    """Performance trades as a DataFrame, in the order given."""
    rows = [
        {
            "id": t.id,
            "trade_date": t.trade_date,
            "created_at": t.created_at,
            "trade_name": t.trade_name,
            "pnl_amount": t.pnl_amount,
            "setup_type": t.setup_type,
            "market_state": t.market_state,
            "comments": t.comments,
        }
        for t in performance_trades(trades)
    ]
    return pd.DataFrame(rows, columns=TRADE_COLUMNS)


class TradeStats:
    """Aggregate statistics over closed trades."""

    def __init__(self, trades: list[Trade]):
        self.trades = performance_trades(trades)
        self._pnls = np.array([t.pnl_amount for t in self.trades], dtype=float)
        self._winners = self._pnls[self._pnls > 0]
        self._losers = self._pnls[self._pnls < 0]

    def calculate_all(self) -> dict:
        return {
            "total_trades": self.total_trades(),
            "wins": self.winning_trades(),
            "losses": self.losing_trades(),
            "win_rate_pct": self.win_rate(),
            "total_pnl": self.total_pnl(),
            "avg_pnl": self.avg_trade(),
            "best_trade": self.best_trade(),
            "worst_trade": self.worst_trade(),
        }

    def total_trades(self) -> int:
        return len(self._pnls)

    def winning_trades(self) -> int:
        return len(self._winners)

    def losing_trades(self) -> int:
        return len(self._losers)

    def win_rate(self) -> float:
        if len(self._pnls) == 0:
            return 0.0
        return len(self._winners) / len(self._pnls) * 100

    def total_pnl(self) -> float:
        if len(self._pnls) == 0:
            return 0.0
        return float(self._pnls.sum())

    def avg_trade(self) -> float:
        if len(self._pnls) == 0:
            return 0.0
        return float(self._pnls.mean())

    def best_trade(self) -> float:
        if len(self._pnls) == 0:
            return 0.0
        return float(self._pnls.max())

    def worst_trade(self) -> float:
        if len(self._pnls) == 0:
            return 0.0
        return float(self._pnls.min())


def history_table(trades: list[Trade]) -> pd.DataFrame:
    """Trades in display order with a running cumulative P&L column."""
    df = trades_frame(trades)
    df["cumulative"] = df["pnl_amount"].cumsum()
    return df


# ── Monthly calendar ─────────────────────────────────────────────

@dataclass(frozen=True)
class MonthlyPerformance:
    year: int
    month: int
    daily_pnl: dict[int, float] = field(default_factory=dict)  # day-of-month -> P&L

    @property
    def total(self) -> float:
        return sum(self.daily_pnl.values())

    @property
    def trading_days(self) -> int:
        return len(self.daily_pnl)

    @property
    def winning_days(self) -> int:
        return sum(1 for v in self.daily_pnl.values() if v > 0)

    @property
    def losing_days(self) -> int:
        return sum(1 for v in self.daily_pnl.values() if v < 0)


def monthly_performance(trades: list[Trade], year: int, month: int) -> MonthlyPerformance:
    """Per-day P&L totals for one month."""
    df = trades_frame(trades)
    if df.empty:
        return MonthlyPerformance(year, month)
    in_month = df["trade_date"].map(
        lambda d: d.year == year and d.month == month
    ).astype(bool)
    df = df[in_month]
    if df.empty:
        return MonthlyPerformance(year, month)
    totals = df.groupby(df["trade_date"].map(lambda d: d.day))["pnl_amount"].sum()
    return MonthlyPerformance(
        year, month, {int(day): float(pnl) for day, pnl in totals.items()}
    )


# ── Equity curve ─────────────────────────────────────────────────

@dataclass(frozen=True)
class EquityCurveStats:
    peak: float
    current: float
    lowest: float
    max_drawdown: float
    drawdown_pct: float
    is_in_drawdown: bool


def round_trip_cost(brokerage_per_order: float) -> float:
    """Brokerage for entry + exit, with GST."""
    return brokerage_per_order * 2 * (1 + GST_RATE)


def equity_curve(trades: list[Trade], brokerage_per_order: float) -> pd.Series:
    """Cumulative net P&L at the end of each trading date.

    Trades are ordered by insertion time and each is charged one round
    trip of brokerage.
    """
    df = trades_frame(trades)
    if df.empty:
        return pd.Series(dtype=float, name="equity")

    df = df.sort_values("created_at", kind="stable")
    net = df["pnl_amount"] - round_trip_cost(brokerage_per_order)
    df = df.assign(cumulative=net.cumsum())
    curve = df.groupby("trade_date")["cumulative"].last()
    curve.index = pd.to_datetime(curve.index)
    curve.name = "equity"
    return curve


def equity_curve_stats(curve: pd.Series, starting_capital: float,
                       max_drawdown_percent: float = DEFAULT_MAX_DRAWDOWN_PCT
                       ) -> Optional[EquityCurveStats]:
    """Peak, trough and drawdown of a cumulative P&L curve (None when empty).

    The running peak starts at zero, so an account that only ever lost
    money measures its drawdown from breakeven.
    """
    if len(curve) == 0:
        return None

    values = curve.to_numpy(dtype=float)
    running_peak = np.maximum.accumulate(np.maximum(values, 0.0))
    max_dd = float(max((running_peak - values).max(), 0.0))

    dd_pct = (max_dd / starting_capital) * 100 if starting_capital > 0 else 0.0
    return EquityCurveStats(
        peak=float(max(values.max(), 0.0)),
        current=float(values[-1]),
        lowest=float(min(values.min(), 0.0)),
        max_drawdown=max_dd,
        drawdown_pct=dd_pct,
        is_in_drawdown=dd_pct > max_drawdown_percent,
    )
