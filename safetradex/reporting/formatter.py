"""Plain-text rendering for the dashboard, journal, projections, and sentiment.

Every method returns a string ready to print. Currency is shown in whole
rupees with Indian digit grouping (1,00,000); percentages with two
decimals.
"""

from datetime import date, datetime
from typing import Optional

from safetradex.analytics.performance import EquityCurveStats, MonthlyPerformance
from safetradex.config.settings import TradingSettings
from safetradex.projections.equity import DayProjection, MonthSummary
from safetradex.records import Trade
from safetradex.risk.gate import GateState
from safetradex.risk.limits import DailyRiskSnapshot
from safetradex.sentiment.scoring import OI_LABELS, VIX_LABELS, SentimentInputs, SentimentResult


def _group_indian(digits: str) -> str:
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join(groups) + "," + tail


def format_inr(value: float, signed: bool = False) -> str:
    """₹1,23,456 (rounded to whole rupees). signed=True adds a leading +."""
    rounded = int(round(value))
    body = "₹" + _group_indian(str(abs(rounded)))
    if rounded < 0:
        return "-" + body
    return ("+" + body) if signed else body


def format_pct(value: float, signed: bool = False) -> str:
    sign = "+" if signed and value >= 0 else ""
    return f"{sign}{value:.2f}%"


class Formatter:
    """Text views for the CLI."""

    def dashboard(self, today: date, now: datetime, settings: TradingSettings,
                  snapshot: DailyRiskSnapshot, state: GateState,
                  trades: list[Trade], warnings: Optional[list[str]] = None) -> str:
        lines = [
            f"{today.strftime('%A, %d %b %Y')}  —  {now.strftime('%I:%M:%S %p %Z')}",
            f"{'='*60}",
            f"  Opening Equity:  {format_inr(snapshot.opening_equity)}"
            f"   ({snapshot.trade_count}/{settings.max_trades_per_day} trades)",
            f"  Max Daily Loss:  {settings.max_daily_loss_percent}%"
            f"  ({format_inr(snapshot.max_loss_amount)})",
            f"  Profit Target:   {settings.daily_profit_target_percent}%"
            f"  ({format_inr(snapshot.profit_target_amount)})",
        ]
        if settings.current_streak > 0:
            lines.append(f"  Streak:          {settings.current_streak} day streak")

        lines += [
            f"{'-'*60}",
            f"  Today's Gross P&L: {format_inr(snapshot.gross_pnl, signed=True)}"
            f"  ({format_pct(snapshot.current_pnl_pct, signed=True)})",
        ]

        if snapshot.trade_count > 0:
            lines += [
                f"  Brokerage + GST:   -{format_inr(snapshot.brokerage_with_gst)}"
                f"  ({snapshot.trade_count} x ₹{settings.brokerage_per_order:g} x 2 + 18% GST)",
                f"  STT + Charges:     -{format_inr(snapshot.estimated_taxes)}",
                f"  Net P&L:           {format_inr(snapshot.net_pnl, signed=True)}",
            ]

        if snapshot.is_locked:
            headline = (
                "MAXIMUM LOSS LIMIT REACHED" if snapshot.is_max_loss_reached
                else "PROFIT TARGET ACHIEVED"
            )
            lines += [f"{'-'*60}", f"  *** {headline} ***", f"  {snapshot.lock_reason}"]

        lines += [f"{'-'*60}", f"  Entry: {state.message}"]
        for w in warnings or []:
            lines.append(f"  WARNING: {w}")

        lines.append(f"{'='*60}")
        lines.append(self.trade_table(trades, title="Today's Activity"))
        return "\n".join(lines)

    def trade_table(self, trades: list[Trade], title: str = "Trades",
                    cumulative: bool = False) -> str:
        if not trades:
            return f"  {title}: No trades logged.\n"

        lines = [
            f"  {title} ({len(trades)} trades)",
            f"  {'Date':<11} {'Time':<6} {'Script':<22} {'Setup':<14} "
            f"{'Market':<10} {'P&L':>12}" + (f" {'Cumulative':>12}" if cumulative else ""),
            f"  {'-'*80}",
        ]
        running = 0.0
        for t in trades:
            running += t.pnl_amount
            time_str = t.created_at.strftime("%H:%M") if t.created_at else ""
            setup = (t.setup_type or "-").replace("_", " ")
            line = (
                f"  {t.trade_date.isoformat():<11} {time_str:<6} {t.trade_name[:22]:<22} "
                f"{setup[:14]:<14} {(t.market_state or '-')[:10]:<10} "
                f"{format_inr(t.pnl_amount, signed=True):>12}"
            )
            if cumulative:
                line += f" {format_inr(running, signed=True):>12}"
            lines.append(line)
        return "\n".join(lines) + "\n"

    def stats(self, stats: dict) -> str:
        lines = [
            f"{'='*50}",
            f"  Trade Statistics (All Time)",
            f"{'='*50}",
            f"  Total Trades:  {stats['total_trades']}",
            f"  Wins:          {stats['wins']}",
            f"  Losses:        {stats['losses']}",
            f"  Win Rate:      {stats['win_rate_pct']:.1f}%",
            f"  Total P&L:     {format_inr(stats['total_pnl'], signed=True)}",
            f"  Avg P&L:       {format_inr(stats['avg_pnl'], signed=True)}",
            f"  Best Trade:    {format_inr(stats['best_trade'], signed=True)}",
            f"  Worst Trade:   {format_inr(stats['worst_trade'], signed=True)}",
            f"{'='*50}",
        ]
        return "\n".join(lines)

    def monthly_calendar(self, perf: MonthlyPerformance) -> str:
        month_name = date(perf.year, perf.month, 1).strftime("%B %Y")
        lines = [
            f"  {month_name}",
            f"  {'-'*30}",
        ]
        for day in sorted(perf.daily_pnl):
            lines.append(f"  {day:>2}  {format_inr(perf.daily_pnl[day], signed=True):>14}")
        lines += [
            f"  {'-'*30}",
            f"  Total:        {format_inr(perf.total, signed=True)}",
            f"  Trading days: {perf.trading_days}"
            f"  ({perf.winning_days} green / {perf.losing_days} red)",
        ]
        return "\n".join(lines)

    def equity(self, stats: Optional[EquityCurveStats]) -> str:
        if stats is None:
            return "  Equity curve: not enough trades yet."
        flag = "  ** IN DRAWDOWN **" if stats.is_in_drawdown else ""
        return "\n".join([
            f"  Net P&L (after costs): {format_inr(stats.current, signed=True)}",
            f"  Peak:                  {format_inr(stats.peak, signed=True)}",
            f"  Lowest:                {format_inr(stats.lowest, signed=True)}",
            f"  Max Drawdown:          {format_inr(stats.max_drawdown)}"
            f" ({format_pct(stats.drawdown_pct)}){flag}",
        ])

    def projection(self, year: int, month: int, rows: list[DayProjection],
                   summary: MonthSummary) -> str:
        month_name = date(year, month, 1).strftime("%B %Y")
        lines = [
            f"  Projected vs Reality — {month_name}",
            f"  {'='*96}",
            f"  {'Date':<11} {'Start Bal':>13} {'Target':>8} {'Proj Gain':>11} "
            f"{'Proj End':>13} {'Actual':>11} {'Act %':>8} {'Act End':>13} {'Variance':>11}",
            f"  {'-'*96}",
        ]
        for r in rows:
            marker = "*" if r.is_today else " "
            actual = format_inr(r.actual_pnl, signed=True) if r.has_actual else "-"
            act_pct = format_pct(r.actual_percent, signed=True) if r.has_actual else "-"
            act_end = format_inr(r.actual_end_balance) if r.has_actual else "-"
            variance = format_inr(r.variance, signed=True) if r.has_actual else "-"
            lines.append(
                f" {marker}{r.date.isoformat():<11} {format_inr(r.start_balance):>13} "
                f"{format_pct(r.target_percent):>8} {format_inr(r.projected_gain, signed=True):>11} "
                f"{format_inr(r.projected_end_balance):>13} {actual:>11} {act_pct:>8} "
                f"{act_end:>13} {variance:>11}"
            )
        lines += [
            f"  {'-'*96}",
            f"  Month start:      {format_inr(summary.month_start_balance)}",
            f"  Projected end:    {format_inr(summary.month_end_projected)}"
            f"  ({format_inr(summary.month_projected_gain, signed=True)})",
            f"  Current reality:  {format_inr(summary.month_end_reality)}"
            f"  ({format_inr(summary.month_actual_gain, signed=True)} this month)",
        ]
        return "\n".join(lines)

    def sentiment(self, inputs: SentimentInputs, result: SentimentResult) -> str:
        lines = [
            f"{'='*50}",
            f"  {result.verdict_label}",
            f"  Conviction: {result.conviction_score}/100 ({result.conviction_label})",
            f"{'-'*50}",
            f"  CPR:         {inputs.cpr_type}",
            f"  India VIX:   {VIX_LABELS[inputs.vix_range]}",
            f"  OI:          {OI_LABELS[inputs.oi_build_up]}",
            f"  PCR:         {inputs.pcr_value:.2f}",
            f"  Global cues: {inputs.global_cues}",
        ]
        if inputs.support_level or inputs.resistance_level:
            lines.append(
                f"  Levels:      S {inputs.support_level or '-'}"
                f" / R {inputs.resistance_level or '-'}"
            )
        for w in result.warnings:
            lines.append(f"  WARNING: {w}")
        lines.append(f"{'='*50}")
        return "\n".join(lines)

    def settings(self, settings: TradingSettings) -> str:
        lines = [f"{'='*50}", "  Trading Parameters", f"{'='*50}"]
        for name, value in settings.model_dump(exclude={"id"}).items():
            lines.append(f"  {name:<30} {value}")
        lines.append(f"{'='*50}")
        return "\n".join(lines)
