"""Trade-entry gate: decides whether a new trade may be logged right now.

The gate sits between the entry form and the store. Every submission goes
through submit(), which re-derives the session state from stored rows
before writing anything.

States, in priority order:
- Locked(reason)      → daily max loss or profit target reached
- MaxTradesReached    → today's trade count hit the configured maximum
- CoolingOff(left)    → a losing trade was logged less than 15 min ago
- Paused(left)        → any trade was logged less than 5 min ago
- Open                → entries allowed

Submissions also need non-empty setup and market tags, and the first
entry of a visit needs the reflection checklist completed.
"""

import logging
import math
import sqlite3
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Callable, Optional, Union

from safetradex.config.settings import GateConfig, TradingSettings
from safetradex.records import Trade
from safetradex.risk.checklist import ChecklistResponse
from safetradex.risk.limits import DailyRiskSnapshot, evaluate_session
from safetradex.risk.session_filter import IST, current_trading_date, to_zone
from safetradex.risk.timers import SessionTimers
from safetradex.storage.database import Database

logger = logging.getLogger(__name__)

STORE_ERROR_MESSAGE = "Failed to add trade"
CHECKLIST_REQUIRED_MESSAGE = "Complete the pre-trade checklist before logging a trade."


# ── Gate states ──────────────────────────────────────────────────

@dataclass(frozen=True)
class Open:
    allows_entry = True

    @property
    def message(self) -> str:
        return "Ready to log a trade."


@dataclass(frozen=True)
class Locked:
    reason: str
    allows_entry = False

    @property
    def message(self) -> str:
        return self.reason


@dataclass(frozen=True)
class MaxTradesReached:
    limit: int
    allows_entry = False

    @property
    def message(self) -> str:
        return f"Maximum trades for today reached ({self.limit}/{self.limit})."


@dataclass(frozen=True)
class CoolingOff:
    remaining: timedelta
    allows_entry = False

    @property
    def message(self) -> str:
        return f"Cool-off after a loss: {format_remaining(self.remaining)} remaining."


@dataclass(frozen=True)
class Paused:
    remaining: timedelta
    allows_entry = False

    @property
    def message(self) -> str:
        return f"Post-trade pause: {format_remaining(self.remaining)} remaining."


GateState = Union[Open, Locked, MaxTradesReached, CoolingOff, Paused]


def format_remaining(delta: timedelta) -> str:
    """MM:SS, rounded up so a running timer never shows 00:00."""
    total = int(-(-delta.total_seconds() // 1))
    minutes, seconds = divmod(max(total, 0), 60)
    return f"{minutes:02d}:{seconds:02d}"


def evaluate_gate(snapshot: DailyRiskSnapshot, max_trades_per_day: int,
                  timers: SessionTimers, now: datetime) -> GateState:
    """Produce the single current gate state from the session inputs."""
    if snapshot.is_locked:
        return Locked(snapshot.lock_reason)

    if snapshot.trade_count >= max_trades_per_day:
        return MaxTradesReached(max_trades_per_day)

    cool_off_left = timers.cool_off_remaining(now)
    if cool_off_left:
        return CoolingOff(cool_off_left)

    pause_left = timers.pause_remaining(now)
    if pause_left:
        return Paused(pause_left)

    return Open()


# ── Submission ───────────────────────────────────────────────────

ACCEPTED = "accepted"
BLOCKED = "blocked"
INVALID = "invalid"
CHECKLIST_REQUIRED = "checklist_required"
STORE_ERROR = "store_error"


@dataclass
class SubmissionResult:
    """Outcome of one submit() call."""
    status: str
    message: str
    state: Optional[GateState] = None
    trade: Optional[Trade] = None
    warnings: list[str] = field(default_factory=list)

    @property
    def accepted(self) -> bool:
        return self.status == ACCEPTED


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TradeEntryGate:
    """Session-level gate guarding trade submissions.

    One instance corresponds to one visit: the checklist is asked once per
    instance, and the timers are restored from the store when it is built.
    """

    def __init__(self, db: Database, settings: TradingSettings,
                 config: Optional[GateConfig] = None,
                 clock: Callable[[], datetime] = _utcnow,
                 tz: tzinfo = IST):
        self.db = db
        self.settings = settings
        self.config = config or GateConfig()
        self.clock = clock
        self.tz = tz

        self._checklist: Optional[ChecklistResponse] = None
        self._has_submitted = False
        self.warnings: list[str] = []

        now = self._now()
        todays = db.get_trades_for_date(current_trading_date(now, tz))
        self.timers = SessionTimers.restore(db, self.config, todays, now)

    def _now(self, now: Optional[datetime] = None) -> datetime:
        return to_zone(now if now is not None else self.clock(), self.tz)

    # --- Checklist ---

    @property
    def checklist_required(self) -> bool:
        return not self._has_submitted and self._checklist is None

    @property
    def high_risk_flagged(self) -> bool:
        return self._checklist is not None and self._checklist.is_high_risk

    def complete_checklist(self, response: ChecklistResponse) -> list[str]:
        """Record the reflection answers. Returns any warnings raised."""
        self._checklist = response
        new_warnings = response.warnings()
        self.warnings.extend(new_warnings)
        if response.is_high_risk:
            logger.warning("[Gate] High-risk pattern acknowledged in checklist")
        return new_warnings

    # --- State ---

    def snapshot(self, now: Optional[datetime] = None) -> DailyRiskSnapshot:
        """Today's risk figures, recomputed from every stored row."""
        today = current_trading_date(self._now(now), self.tz)
        return evaluate_session(self.db.get_all_trades(), self.settings, today)

    def state(self, now: Optional[datetime] = None) -> GateState:
        now = self._now(now)
        return evaluate_gate(
            self.snapshot(now), self.settings.max_trades_per_day, self.timers, now
        )

    def submit(self, trade_name: str, pnl_amount: float,
               setup_type: Optional[str], market_state: Optional[str],
               comments: Optional[str] = None,
               now: Optional[datetime] = None) -> SubmissionResult:
        """Validate and, if the gate is open, write a new trade row.

        Args:
            trade_name: Instrument label, e.g. "NIFTY 22000 CE"
            pnl_amount: Signed P&L in rupees
            setup_type: Required setup tag
            market_state: Required market condition tag
            comments: Optional free text
            now: Submission instant (defaults to the gate's clock)

        Returns:
            SubmissionResult. Guard states and validation problems are
            returned, not raised; a store failure leaves timers untouched.
        """
        now = self._now(now)

        state = self.state(now)
        if not state.allows_entry:
            logger.info(f"[Gate] Entry blocked: {state.message}")
            return SubmissionResult(BLOCKED, state.message, state=state)

        problems = validate_trade_fields(
            trade_name=trade_name, pnl_amount=pnl_amount,
            setup_type=setup_type, market_state=market_state,
        )
        if problems:
            message = " ".join(problems)
            logger.info(f"[Gate] Entry rejected: {message}")
            return SubmissionResult(INVALID, message, state=state)

        if self.checklist_required:
            return SubmissionResult(
                CHECKLIST_REQUIRED, CHECKLIST_REQUIRED_MESSAGE, state=state
            )

        trade = Trade(
            trade_name=trade_name.strip(),
            pnl_amount=float(pnl_amount),
            trade_date=current_trading_date(now, self.tz),
            created_at=now,
            comments=comments or None,
            setup_type=setup_type.strip(),
            market_state=market_state.strip(),
        )

        try:
            trade = self.db.insert_trade(trade)
        except sqlite3.Error as e:
            logger.error(f"[Gate] Error adding trade: {e}")
            return SubmissionResult(STORE_ERROR, STORE_ERROR_MESSAGE, state=state)

        self.timers.record_trade(trade)
        self._has_submitted = True

        sign = "+" if trade.pnl_amount >= 0 else ""
        logger.info(
            f"[Gate] Trade logged: {trade.trade_name} {sign}₹{trade.pnl_amount:,.2f} "
            f"({trade.setup_type}, {trade.market_state})"
        )
        return SubmissionResult(
            ACCEPTED, "Trade logged.", state=self.state(now),
            trade=trade, warnings=list(self.warnings),
        )


def validate_trade_fields(**fields) -> list[str]:
    """Problems with the given trade columns; only the keys passed are checked.

    Shared by new submissions and edits of stored rows.
    """
    problems = []
    if "trade_name" in fields and not _present(fields["trade_name"]):
        problems.append("Instrument name is required.")
    if "pnl_amount" in fields and not _finite(fields["pnl_amount"]):
        problems.append("P&L amount must be a number.")
    if "setup_type" in fields and not _present(fields["setup_type"]):
        problems.append("Setup type is required.")
    if "market_state" in fields and not _present(fields["market_state"]):
        problems.append("Market state is required.")
    return problems


def _present(value: Optional[str]) -> bool:
    return bool(value and value.strip())


def _finite(value) -> bool:
    try:
        return math.isfinite(float(value))
    except (TypeError, ValueError):
        return False
