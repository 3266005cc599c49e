"""Projected vs realised equity for one calendar month.

Each trading day of the month gets a row with the compounded projection
(start balance grown by that day's target %) next to the realised result.
The running balance follows reality wherever a trade exists:

- Day with trades      → next day starts from the actual end balance
- Future day, no trade → next day starts from the projected end balance
- Past day, no trade   → balance carries over flat

Future rows display today's real balance as their start balance while the
projected end balance keeps compounding. That split is deliberate.

Balances here include deposits and withdrawals. Everything is plain
float arithmetic; rounding is left to display code.
"""

import calendar
import logging
import math
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from safetradex.config.settings import TradingSettings
from safetradex.records import DailyTarget, Trade
from safetradex.risk.session_filter import SessionFilter
from safetradex.storage.database import Database

logger = logging.getLogger(__name__)

DEFAULT_TARGET_PERCENT = 1.0

# Roughly 20 trading sessions per month
SESSIONS_PER_MONTH = 20


@dataclass(frozen=True)
class DayProjection:
    """One trading day of the projection table."""
    date: date
    is_today: bool
    is_future: bool
    start_balance: float            # Displayed (today's real balance for future rows)
    calc_start_balance: float       # Balance the projection actually compounds from
    target_percent: float
    projected_gain: float
    projected_end_balance: float
    actual_pnl: Optional[float] = None
    actual_percent: Optional[float] = None
    actual_end_balance: Optional[float] = None
    variance: Optional[float] = None  # Actual - projected

    @property
    def has_actual(self) -> bool:
        return self.actual_pnl is not None


@dataclass(frozen=True)
class MonthSummary:
    """Headline numbers for the month view."""
    month_start_balance: float
    month_end_projected: float
    month_projected_gain: float
    month_end_reality: float
    month_actual_gain: float
    is_future_month: bool


def month_bounds(year: int, month: int) -> tuple[date, date]:
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last_day)


def month_days(year: int, month: int) -> list[date]:
    """Every calendar day of the month, trading or not."""
    start, end = month_bounds(year, month)
    return [start + timedelta(days=i) for i in range((end - start).days + 1)]


class EquityProjection:
    """Compounding projection over a fixed set of trades and targets.

    Pure function of its inputs plus the `today` passed to each call:
    calling month_rows() twice with the same arguments gives identical rows.
    """

    def __init__(self, starting_capital: float, trades: Iterable[Trade],
                 targets: Iterable[DailyTarget] = (),
                 session_filter: Optional[SessionFilter] = None):
        self.starting_capital = starting_capital
        self.session_filter = session_filter or SessionFilter()

        self._pnl_by_date: dict[date, float] = defaultdict(float)
        for t in trades:
            self._pnl_by_date[t.trade_date] += t.pnl_amount
        self._targets = {t.date: t.target_percentage for t in targets}

    def target_for(self, day: date) -> float:
        return self._targets.get(day, DEFAULT_TARGET_PERCENT)

    def day_pnl(self, day: date) -> Optional[float]:
        """Summed P&L of the day, or None when nothing was logged."""
        if day in self._pnl_by_date:
            return self._pnl_by_date[day]
        return None

    def balance_before(self, day: date) -> float:
        """Starting capital plus everything dated strictly before `day`."""
        return self.starting_capital + sum(
            pnl for d, pnl in self._pnl_by_date.items() if d < day
        )

    def balance_through(self, day: date) -> float:
        """Starting capital plus everything dated on or before `day`."""
        return self.starting_capital + sum(
            pnl for d, pnl in self._pnl_by_date.items() if d <= day
        )

    def opening_balance(self, year: int, month: int, today: date) -> float:
        """Balance on the 1st of the month.

        Past and current months use realised P&L. A future month starts
        from today's real balance compounded over every trading day between
        tomorrow and the day before the month begins.
        """
        view_start, _ = month_bounds(year, month)
        if view_start <= today:
            return self.balance_before(view_start)

        balance = self.balance_through(today)
        gap_start = today + timedelta(days=1)
        gap_end = view_start - timedelta(days=1)
        for day in self.session_filter.trading_days(gap_start, gap_end):
            balance += balance * (self.target_for(day) / 100)
        return balance

    def month_rows(self, year: int, month: int, today: date) -> list[DayProjection]:
        """Projection rows for every trading day of the month."""
        compounding = self.opening_balance(year, month, today)
        latest_actual = self.balance_through(today)
        rows = []

        for day in month_days(year, month):
            if not self.session_filter.is_trading_day(day):
                continue

            is_today = day == today
            is_future = day > today
            target_pct = self.target_for(day)
            pnl = self.day_pnl(day)

            calc_start = compounding
            if is_today:
                # Strict morning balance so the table never drifts from reality
                calc_start = self.balance_before(day)

            projected_gain = calc_start * (target_pct / 100)
            projected_end = calc_start + projected_gain

            actual_end = actual_pct = variance = None
            if pnl is not None:
                actual_end = calc_start + pnl
                actual_pct = (pnl / calc_start) * 100 if calc_start > 0 else 0.0
                variance = pnl - projected_gain
                compounding = actual_end
            elif is_future:
                compounding = projected_end
            else:
                compounding = calc_start

            rows.append(DayProjection(
                date=day,
                is_today=is_today,
                is_future=is_future,
                start_balance=latest_actual if is_future else calc_start,
                calc_start_balance=calc_start,
                target_percent=target_pct,
                projected_gain=projected_gain,
                projected_end_balance=projected_end,
                actual_pnl=pnl,
                actual_percent=actual_pct,
                actual_end_balance=actual_end,
                variance=variance,
            ))

        return rows

    def month_summary(self, year: int, month: int, today: date,
                      rows: Optional[list[DayProjection]] = None) -> MonthSummary:
        if rows is None:
            rows = self.month_rows(year, month, today)
        view_start, view_end = month_bounds(year, month)

        start_bal = rows[0].start_balance if rows else 0.0
        end_proj = rows[-1].projected_end_balance if rows else 0.0
        actual_gain = sum(
            pnl for d, pnl in self._pnl_by_date.items()
            if view_start <= d <= view_end
        )
        return MonthSummary(
            month_start_balance=start_bal,
            month_end_projected=end_proj,
            month_projected_gain=end_proj - start_bal,
            month_end_reality=self.balance_through(view_end),
            month_actual_gain=actual_gain,
            is_future_month=view_start > today,
        )


# ── Target editing ───────────────────────────────────────────────

def parse_percent(value) -> float:
    """Parse a user-entered percentage, rejecting blanks and non-numbers."""
    try:
        pct = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Target percentage must be a number, got {value!r}")
    if math.isnan(pct) or math.isinf(pct):
        raise ValueError(f"Target percentage must be a finite number, got {value!r}")
    return pct


def set_day_target(db: Database, day: date, percent) -> float:
    """Upsert the target for a single date."""
    pct = parse_percent(percent)
    db.upsert_daily_target(day, pct)
    logger.info(f"[Targets] {day}: {pct:.2f}%")
    return pct


def bulk_target_updates(year: int, month: int, pct: float) -> list[tuple[date, float]]:
    """(date, pct) for every calendar day of the month, weekends and holidays too."""
    return [(day, pct) for day in month_days(year, month)]


def apply_bulk_target(db: Database, year: int, month: int, percent) -> int:
    """Write one target to every day of the month. Returns the row count."""
    pct = parse_percent(percent)
    updates = bulk_target_updates(year, month, pct)
    db.upsert_daily_targets(updates)
    logger.info(f"[Targets] {year}-{month:02d}: {pct:.2f}% on {len(updates)} days")
    return len(updates)


def suggested_bulk_percent(targets: Iterable[DailyTarget], year: int, month: int,
                           settings: Optional[TradingSettings] = None) -> float:
    """Value to pre-fill a bulk edit with.

    First stored target inside the month, else the monthly goal spread over
    ~20 sessions, else the 1% default.
    """
    view_start, view_end = month_bounds(year, month)
    in_view = sorted(
        (t for t in targets if view_start <= t.date <= view_end),
        key=lambda t: t.date,
    )
    if in_view:
        return in_view[0].target_percentage
    if settings is not None and settings.monthly_target_percent:
        return settings.monthly_target_percent / SESSIONS_PER_MONTH
    return DEFAULT_TARGET_PERCENT


def load_projection(db: Database, settings: TradingSettings, year: int,
                    month: int, today: date) -> EquityProjection:
    """Fetch the rows a month view needs and build the projection.

    Targets are fetched from today when the month is in the future so the
    gap simulation sees them.
    """
    view_start, view_end = month_bounds(year, month)
    fetch_start = min(view_start, today)
    return EquityProjection(
        starting_capital=settings.starting_capital,
        trades=db.get_all_trades(),
        targets=db.get_daily_targets(fetch_start, view_end),
    )
