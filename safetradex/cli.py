"""Safe TradeX CLI — command-line front end for the discipline journal.

Usage:
    python -m safetradex.cli dashboard
    python -m safetradex.cli log-trade NAME PNL --setup S --market M [--comments C]
    python -m safetradex.cli deposit AMOUNT | withdraw AMOUNT
    python -m safetradex.cli edit-trade ID [--pnl X] [--name N] ...
    python -m safetradex.cli delete-trade ID
    python -m safetradex.cli trades [--date YYYY-MM-DD] [--sort pnl_amount] [--asc]
    python -m safetradex.cli stats | calendar [--month YYYY-MM] | equity
    python -m safetradex.cli settings show | settings set --starting-capital 100000 ...
    python -m safetradex.cli targets set DATE PCT | targets bulk YYYY-MM [PCT]
    python -m safetradex.cli projection [--month YYYY-MM]
    python -m safetradex.cli sentiment --cpr narrow --vix stable ... [--log]
    python -m safetradex.cli clear-old-trades [--before YYYY-MM-DD]
"""

import argparse
import logging
import sqlite3
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from safetradex.analytics.performance import (
    TradeStats, equity_curve, equity_curve_stats, monthly_performance,
)
from safetradex.capital import deposit, total_capital, withdraw
from safetradex.config.settings import AppConfig, TradingSettings
from safetradex.main import App, setup_logging
from safetradex.projections.equity import (
    apply_bulk_target, load_projection, month_bounds, set_day_target,
    suggested_bulk_percent,
)
from safetradex.reporting.formatter import Formatter, format_inr
from safetradex.risk.checklist import (
    FOMO_PROMPT, HIGH_PROBABILITY_PROMPT, REVENGE_PROMPT, ChecklistResponse,
)
from safetradex.risk.gate import validate_trade_fields
from safetradex.risk.limits import evaluate_session
from safetradex.sentiment.scoring import (
    CPR_TYPES, GLOBAL_CUES, OI_BUILD_UPS, VIX_RANGES,
    SentimentInputs, log_sentiment, score_sentiment,
)

logger = logging.getLogger(__name__)

project_root = Path(__file__).parent.parent
DEFAULT_CONFIG = "safetradex/config/default.toml"

STORE_FAILURE_MESSAGE = "Could not reach the trade store. Nothing was changed."
NO_SETTINGS_MESSAGE = (
    "No trading parameters saved yet. Run: "
    "safetradex settings set --starting-capital AMOUNT"
)

formatter = Formatter()


def load_env():
    """Load .env file if it exists."""
    env_file = project_root / ".env"
    if env_file.exists():
        load_dotenv(env_file)


def get_config(args) -> AppConfig:
    config_path = getattr(args, "config", None) or DEFAULT_CONFIG
    config = AppConfig.load(config_path)
    if getattr(args, "db", None):
        config.db_path = args.db
    return config


def _parse_month(value: Optional[str], today: date) -> tuple[int, int]:
    if not value:
        return today.year, today.month
    try:
        parsed = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise ValueError(f"Month must look like YYYY-MM, got {value!r}")
    return parsed.year, parsed.month


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValueError(f"Date must look like YYYY-MM-DD, got {value!r}")


def _yes_no(value: Optional[str], prompt: str) -> bool:
    if value is None:
        value = input(f"{prompt} [y/n] ")
    return value.strip().lower() in ("y", "yes", "true", "1")


def _require_settings(app: App) -> Optional[TradingSettings]:
    settings = app.settings()
    if settings is None:
        print(NO_SETTINGS_MESSAGE)
    return settings


# --- Commands ---

def cmd_dashboard(args, app: App) -> int:
    """Today's P&L, limits, gate state, and trades."""
    settings = _require_settings(app)
    if settings is None:
        return 1
    gate = app.gate(settings)
    now = app.now()
    snapshot = evaluate_session(app.db.get_all_trades(), settings, app.today)
    print(formatter.dashboard(
        app.today, now, settings, snapshot, gate.state(now),
        app.db.get_trades_for_date(app.today),
        warnings=_session_warnings(app, now),
    ))
    return 0


def _session_warnings(app: App, now: datetime) -> list[str]:
    if app.session.is_market_hours(now):
        return []
    opens = app.session.next_session_open(now)
    return [f"Market closed. Next session opens {opens:%a %d %b %Y %H:%M}."]


def cmd_log_trade(args, app: App) -> int:
    """Run the checklist and submit one trade through the gate."""
    settings = _require_settings(app)
    if settings is None:
        return 1
    gate = app.gate(settings)

    state = gate.state()
    if not state.allows_entry:
        print(f"Trading blocked: {state.message}")
        return 1

    warnings = gate.complete_checklist(ChecklistResponse(
        high_probability_setup=_yes_no(args.plan_setup, HIGH_PROBABILITY_PROMPT),
        chasing_fomo=_yes_no(args.fomo, FOMO_PROMPT),
        revenge_trade=_yes_no(args.revenge, REVENGE_PROMPT),
    ))
    for w in warnings:
        print(f"WARNING: {w}")

    result = gate.submit(
        args.name, args.pnl, args.setup, args.market, comments=args.comments,
    )
    if not result.accepted:
        print(f"Trade not logged: {result.message}")
        return 1

    print(f"Logged {result.trade.trade_name} "
          f"{format_inr(result.trade.pnl_amount, signed=True)}. "
          f"{result.state.message}")
    return 0


def cmd_capital(args, app: App) -> int:
    """Record a deposit or withdrawal."""
    settings = _require_settings(app)
    if settings is None:
        return 1
    action = deposit if args.command == "deposit" else withdraw
    action(app.db, args.amount, app.today, created_at=app.now())
    balance = total_capital(settings.starting_capital, app.db.get_all_trades())
    print(f"{args.command.title()} recorded. Total capital: {format_inr(balance)}")
    return 0


def cmd_edit_trade(args, app: App) -> int:
    fields = {}
    if args.name is not None:
        fields["trade_name"] = args.name
    if args.pnl is not None:
        fields["pnl_amount"] = args.pnl
    if args.setup is not None:
        fields["setup_type"] = args.setup
    if args.market is not None:
        fields["market_state"] = args.market
    if args.comments is not None:
        fields["comments"] = args.comments
    if args.date is not None:
        fields["trade_date"] = _parse_date(args.date)

    problems = validate_trade_fields(**fields)
    if problems:
        raise ValueError(" ".join(problems))

    if app.db.get_trade(args.id) is None:
        print(f"No trade with id {args.id}.")
        return 1
    app.db.update_trade(args.id, **fields)
    print(f"Trade {args.id} updated.")
    return 0


def cmd_delete_trade(args, app: App) -> int:
    if app.db.get_trade(args.id) is None:
        print(f"No trade with id {args.id}.")
        return 1
    app.db.delete_trade(args.id)
    print(f"Trade {args.id} deleted.")
    return 0


def cmd_trades(args, app: App) -> int:
    """Trade history with sorting, date filter, and running totals."""
    trade_date = _parse_date(args.date) if args.date else None
    trades = app.db.get_trade_history(
        sort_field=args.sort, ascending=args.asc, trade_date=trade_date,
    )
    stats = TradeStats(trades)
    title = f"Trades on {trade_date}" if trade_date else "Trade History"
    print(formatter.trade_table(trades, title=title, cumulative=True))
    print(f"  Total P&L: {format_inr(stats.total_pnl(), signed=True)}  "
          f"Wins: {stats.winning_trades()}  Losses: {stats.losing_trades()}\n")
    return 0


def cmd_stats(args, app: App) -> int:
    print(formatter.stats(TradeStats(app.db.get_all_trades()).calculate_all()))
    return 0


def cmd_calendar(args, app: App) -> int:
    year, month = _parse_month(args.month, app.today)
    perf = monthly_performance(app.db.get_all_trades(), year, month)
    print(formatter.monthly_calendar(perf))
    return 0


def cmd_equity(args, app: App) -> int:
    settings = _require_settings(app)
    if settings is None:
        return 1
    curve = equity_curve(app.db.get_all_trades(), settings.brokerage_per_order)
    stats = equity_curve_stats(curve, settings.starting_capital, args.max_drawdown)
    print(formatter.equity(stats))
    return 0


def cmd_settings_show(args, app: App) -> int:
    settings = _require_settings(app)
    if settings is None:
        return 1
    print(formatter.settings(settings))
    return 0


def cmd_settings_set(args, app: App) -> int:
    """Read-modify-write the settings singleton."""
    current = app.settings() or TradingSettings()
    updates = {
        name: getattr(args, name)
        for name in TradingSettings.model_fields
        if name != "id" and getattr(args, name, None) is not None
    }
    settings = TradingSettings(**{**current.model_dump(), **updates})
    app.db.save_settings(settings)
    print("Configuration saved successfully")
    return 0


def cmd_targets_set(args, app: App) -> int:
    pct = set_day_target(app.db, _parse_date(args.date), args.percent)
    print(f"Target for {args.date} set to {pct:.2f}%")
    return 0


def cmd_targets_bulk(args, app: App) -> int:
    year, month = _parse_month(args.month, app.today)
    percent = args.percent
    if percent is None:
        view_start, view_end = month_bounds(year, month)
        percent = suggested_bulk_percent(
            app.db.get_daily_targets(view_start, view_end), year, month,
            app.settings(),
        )
    count = apply_bulk_target(app.db, year, month, percent)
    print(f"Applied {float(percent):.2f}% to {count} days of {year}-{month:02d}")
    return 0


def cmd_projection(args, app: App) -> int:
    settings = _require_settings(app)
    if settings is None:
        return 1
    year, month = _parse_month(args.month, app.today)
    projection = load_projection(app.db, settings, year, month, app.today)
    rows = projection.month_rows(year, month, app.today)
    summary = projection.month_summary(year, month, app.today, rows=rows)
    print(formatter.projection(year, month, rows, summary))
    return 0


def cmd_sentiment(args, app: App) -> int:
    inputs = SentimentInputs(
        cpr_type=args.cpr,
        vix_range=args.vix,
        oi_build_up=args.oi,
        pcr_value=args.pcr,
        global_cues=args.cues,
        support_level=args.support or "",
        resistance_level=args.resistance or "",
    )
    result = score_sentiment(inputs)
    print(formatter.sentiment(inputs, result))
    if args.log:
        log_id = log_sentiment(app.db, inputs, result)
        if log_id is None:
            print("Failed to save sentiment log.")
            return 1
        print(f"Saved sentiment log #{log_id}")
    return 0


def cmd_clear_old_trades(args, app: App) -> int:
    """Delete every trade dated before the cutoff."""
    cutoff = _parse_date(args.before) if args.before else app.config.maintenance_cutoff
    print(f"Clearing trades before {cutoff}...")
    count = app.db.delete_trades_before(cutoff)
    logger.info(f"[Maintenance] Deleted {count} trades before {cutoff}")
    print(f"Successfully deleted {count} trades before {cutoff}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="safetradex",
        description="Safe TradeX — trading discipline journal",
    )
    parser.add_argument(
        "--config", "-c",
        default=DEFAULT_CONFIG,
        help=f"Path to TOML config file (default: {DEFAULT_CONFIG})",
    )
    parser.add_argument("--db", help="Override the database path")
    parser.add_argument("--now", help="Pin the current time (ISO 8601)")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    p = subparsers.add_parser("dashboard", help="Show today's session")
    p.set_defaults(func=cmd_dashboard)

    # log-trade
    p = subparsers.add_parser("log-trade", help="Log a trade through the entry gate")
    p.add_argument("name", help="Instrument, e.g. 'NIFTY 22000 CE'")
    p.add_argument("pnl", type=float, help="Signed P&L in rupees")
    p.add_argument("--setup", required=True, help="Setup type tag")
    p.add_argument("--market", required=True, help="Market state tag")
    p.add_argument("--comments", help="Free-text notes")
    p.add_argument("--plan-setup", choices=("yes", "no"),
                   help=HIGH_PROBABILITY_PROMPT)
    p.add_argument("--fomo", choices=("yes", "no"), help=FOMO_PROMPT)
    p.add_argument("--revenge", choices=("yes", "no"), help=REVENGE_PROMPT)
    p.set_defaults(func=cmd_log_trade)

    for name, help_text in (("deposit", "Add capital"), ("withdraw", "Withdraw capital")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("amount", type=float, help="Amount in rupees")
        p.set_defaults(func=cmd_capital)

    p = subparsers.add_parser("edit-trade", help="Edit a logged trade")
    p.add_argument("id", type=int)
    p.add_argument("--name")
    p.add_argument("--pnl", type=float)
    p.add_argument("--setup")
    p.add_argument("--market")
    p.add_argument("--comments")
    p.add_argument("--date", help="Trading date (YYYY-MM-DD)")
    p.set_defaults(func=cmd_edit_trade)

    p = subparsers.add_parser("delete-trade", help="Delete a logged trade")
    p.add_argument("id", type=int)
    p.set_defaults(func=cmd_delete_trade)

    # trades
    p = subparsers.add_parser("trades", help="Show trade history")
    p.add_argument("--date", help="Only this trading date (YYYY-MM-DD)")
    p.add_argument("--sort", choices=("trade_date", "pnl_amount"),
                   default="trade_date", help="Sort field (default: trade_date)")
    p.add_argument("--asc", action="store_true", help="Ascending order")
    p.set_defaults(func=cmd_trades)

    p = subparsers.add_parser("stats", help="Aggregate trade statistics")
    p.set_defaults(func=cmd_stats)

    p = subparsers.add_parser("calendar", help="Daily P&L for a month")
    p.add_argument("--month", help="YYYY-MM (default: current month)")
    p.set_defaults(func=cmd_calendar)

    p = subparsers.add_parser("equity", help="Net equity curve and drawdown")
    p.add_argument("--max-drawdown", type=float, default=10.0,
                   help="Drawdown %% that raises a warning (default: 10)")
    p.set_defaults(func=cmd_equity)

    # settings
    p_settings = subparsers.add_parser("settings", help="Trading parameters")
    settings_sub = p_settings.add_subparsers(dest="settings_command")
    p = settings_sub.add_parser("show", help="Print saved parameters")
    p.set_defaults(func=cmd_settings_show)
    p = settings_sub.add_parser("set", help="Update parameters")
    for name, field in TradingSettings.model_fields.items():
        if name == "id":
            continue
        p.add_argument(f"--{name.replace('_', '-')}", dest=name,
                       type=field.annotation, default=None)
    p.set_defaults(func=cmd_settings_set)

    # targets
    p_targets = subparsers.add_parser("targets", help="Daily target percentages")
    targets_sub = p_targets.add_subparsers(dest="targets_command")
    p = targets_sub.add_parser("set", help="Set one day's target")
    p.add_argument("date", help="YYYY-MM-DD")
    p.add_argument("percent")
    p.set_defaults(func=cmd_targets_set)
    p = targets_sub.add_parser("bulk", help="Set every day of a month")
    p.add_argument("month", help="YYYY-MM")
    p.add_argument("percent", nargs="?",
                   help="Default: first target set in the month, else monthly goal / 20")
    p.set_defaults(func=cmd_targets_bulk)

    p = subparsers.add_parser("projection", help="Projected vs actual equity")
    p.add_argument("--month", help="YYYY-MM (default: current month)")
    p.set_defaults(func=cmd_projection)

    # sentiment
    p = subparsers.add_parser("sentiment", help="Score pre-market sentiment")
    p.add_argument("--cpr", choices=CPR_TYPES, default="narrow")
    p.add_argument("--vix", choices=VIX_RANGES, default="stable")
    p.add_argument("--oi", choices=OI_BUILD_UPS, default="long_buildup")
    p.add_argument("--pcr", type=float, default=1.0)
    p.add_argument("--cues", choices=GLOBAL_CUES, default="neutral")
    p.add_argument("--support")
    p.add_argument("--resistance")
    p.add_argument("--log", action="store_true", help="Archive the result")
    p.set_defaults(func=cmd_sentiment)

    p = subparsers.add_parser("clear-old-trades",
                              help="Delete trades before a cutoff date")
    p.add_argument("--before", help="Cutoff date (default: from config)")
    p.set_defaults(func=cmd_clear_old_trades)

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not getattr(args, "func", None):
        parser.print_help()
        return 0

    load_env()
    config = get_config(args)
    setup_logging(config)

    try:
        now = datetime.fromisoformat(args.now) if args.now else None
        with App(config, now=now) as app:
            return args.func(args, app)
    except sqlite3.Error as e:
        logger.error(f"Store error running {args.command}: {e}")
        print(STORE_FAILURE_MESSAGE)
        return 1
    except (ValueError, ValidationError) as e:
        print(f"Invalid input: {e}")
        return 2


if __name__ == "__main__":
    sys.exit(main())
