"""Daily risk limits: P&L against opening equity, max loss, and profit target.

Pure functions of today's trades, the saved rules, and the opening equity
(starting capital plus everything realised before today). Nothing here
touches the database or the clock.

Limits evaluated:
- Max daily loss (%)        → locks the session once gross P&L <= -limit
- Daily profit target (%)   → locks the session once gross P&L >= target
Both boundaries count as reached.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from safetradex.config.settings import TradingSettings
from safetradex.records import Trade, performance_trades, total_pnl

logger = logging.getLogger(__name__)

MAX_LOSS_REASON = "Maximum loss limit reached. Protect your capital."
PROFIT_TARGET_REASON = "Profit target achieved! Book your profits."

GST_RATE = 0.18             # On brokerage
TAX_ESTIMATE_RATE = 0.001   # STT + exchange charges, rough


@dataclass(frozen=True)
class DailyRiskSnapshot:
    """Derived numbers for one trading session."""
    opening_equity: float
    trade_count: int
    gross_pnl: float
    current_pnl_pct: float
    max_loss_amount: float
    profit_target_amount: float
    is_max_loss_reached: bool
    is_profit_target_reached: bool
    brokerage_total: float
    estimated_taxes: float
    net_pnl: float

    @property
    def is_locked(self) -> bool:
        return self.is_max_loss_reached or self.is_profit_target_reached

    @property
    def lock_reason(self) -> Optional[str]:
        if self.is_max_loss_reached:
            return MAX_LOSS_REASON
        if self.is_profit_target_reached:
            return PROFIT_TARGET_REASON
        return None

    @property
    def brokerage_with_gst(self) -> float:
        return self.brokerage_total * (1 + GST_RATE)


def opening_equity(starting_capital: float, trades: Iterable[Trade],
                   today: date) -> float:
    """Starting capital adjusted by every row dated before today.

    Capital adjustments count here: this is a balance, not a statistic.
    """
    return starting_capital + sum(
        t.pnl_amount for t in trades if t.trade_date < today
    )


def evaluate_daily_limits(todays_trades: list[Trade],
                          settings: TradingSettings,
                          opening_equity: float) -> DailyRiskSnapshot:
    """Compute today's P&L figures and whether a limit has been crossed.

    Args:
        todays_trades: Rows dated today (adjustments are filtered out)
        settings: Saved rules (loss %, target %, brokerage)
        opening_equity: Balance at the start of today

    Returns:
        DailyRiskSnapshot. A non-positive opening equity reports 0% instead
        of dividing by zero.
    """
    trades = performance_trades(todays_trades)
    gross = total_pnl(trades)
    count = len(trades)

    pnl_pct = (gross / opening_equity) * 100 if opening_equity > 0 else 0.0
    max_loss = opening_equity * settings.max_daily_loss_percent / 100
    profit_target = opening_equity * settings.daily_profit_target_percent / 100

    brokerage_total = count * settings.brokerage_per_order * 2  # Buy + sell
    taxes = abs(gross) * TAX_ESTIMATE_RATE

    snapshot = DailyRiskSnapshot(
        opening_equity=opening_equity,
        trade_count=count,
        gross_pnl=gross,
        current_pnl_pct=pnl_pct,
        max_loss_amount=max_loss,
        profit_target_amount=profit_target,
        is_max_loss_reached=gross <= -max_loss,
        is_profit_target_reached=gross >= profit_target,
        brokerage_total=brokerage_total,
        estimated_taxes=taxes,
        net_pnl=gross - brokerage_total - taxes,
    )

    if snapshot.is_locked:
        logger.warning(
            f"[Risk] Session locked: {snapshot.lock_reason} "
            f"(gross ₹{gross:,.2f}, loss limit ₹{max_loss:,.2f}, "
            f"target ₹{profit_target:,.2f})"
        )
    return snapshot


def evaluate_session(all_trades: list[Trade], settings: TradingSettings,
                     today: date) -> DailyRiskSnapshot:
    """Convenience wrapper: split the full trade list into before/today."""
    equity = opening_equity(settings.starting_capital, all_trades, today)
    todays = [t for t in all_trades if t.trade_date == today]
    return evaluate_daily_limits(todays, settings, equity)
