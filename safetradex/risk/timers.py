"""Cool-off and post-trade pause reference instants, persisted across restarts.

SessionTimers is created once per visit with restore(), read through its
properties, and written through record_trade(). The reference instants
live in the gate_state table so closing the terminal does not reset them.
Stored instants are local wall-clock values; clock skew against any other
machine is not corrected.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

from safetradex.config.settings import GateConfig
from safetradex.records import Trade, performance_trades
from safetradex.storage.database import Database

logger = logging.getLogger(__name__)

LAST_LOSS_KEY = "last_loss_time"
LAST_TRADE_KEY = "last_trade_time"


def _parse(value) -> Optional[datetime]:
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except (TypeError, ValueError):
        logger.warning(f"Ignoring unreadable timer value: {value!r}")
        return None


def _latest(*instants: Optional[datetime]) -> Optional[datetime]:
    present = [i for i in instants if i is not None]
    return max(present) if present else None


def remaining(reference: Optional[datetime], duration: timedelta,
              now: datetime) -> timedelta:
    """Time left on a timer started at `reference`; zero once it has run out."""
    if reference is None:
        return timedelta(0)
    left = reference + duration - now
    return left if left > timedelta(0) else timedelta(0)


class SessionTimers:
    """Reference instants for the cool-off and pause timers."""

    def __init__(self, db: Database, config: GateConfig,
                 last_loss_time: Optional[datetime] = None,
                 last_trade_time: Optional[datetime] = None):
        self._db = db
        self.config = config
        self._last_loss_time = last_loss_time
        self._last_trade_time = last_trade_time

    @classmethod
    def restore(cls, db: Database, config: GateConfig,
                todays_trades: list[Trade], now: datetime) -> "SessionTimers":
        """Load persisted instants and reconcile them with today's rows.

        The later of the stored key and the newest matching trade wins, so
        a lost key never shortens a timer. Keys whose timer has already
        expired are removed.
        """
        trades = [t for t in performance_trades(todays_trades) if t.created_at]
        newest_loss = _latest(*(t.created_at for t in trades if t.is_loser))
        newest_trade = _latest(*(t.created_at for t in trades))

        timers = cls(
            db, config,
            last_loss_time=_latest(_parse(db.load_state(LAST_LOSS_KEY)), newest_loss),
            last_trade_time=_latest(_parse(db.load_state(LAST_TRADE_KEY)), newest_trade),
        )
        timers._drop_expired(now)
        return timers

    @property
    def cool_off(self) -> timedelta:
        return timedelta(minutes=self.config.cool_off_minutes)

    @property
    def pause(self) -> timedelta:
        return timedelta(minutes=self.config.post_trade_pause_minutes)

    @property
    def last_loss_time(self) -> Optional[datetime]:
        return self._last_loss_time

    @property
    def last_trade_time(self) -> Optional[datetime]:
        return self._last_trade_time

    def cool_off_remaining(self, now: datetime) -> timedelta:
        return remaining(self._last_loss_time, self.cool_off, now)

    def pause_remaining(self, now: datetime) -> timedelta:
        return remaining(self._last_trade_time, self.pause, now)

    def record_trade(self, trade: Trade) -> None:
        """Start the pause (and the cool-off for a loss) at the row's created_at."""
        self._last_trade_time = trade.created_at
        self._db.save_state(LAST_TRADE_KEY, trade.created_at.isoformat())
        if trade.is_loser:
            self._last_loss_time = trade.created_at
            self._db.save_state(LAST_LOSS_KEY, trade.created_at.isoformat())
            logger.info(
                f"[Gate] Loss recorded, cool-off until "
                f"{(trade.created_at + self.cool_off).isoformat()}"
            )

    def _drop_expired(self, now: datetime) -> None:
        if self._last_loss_time and not self.cool_off_remaining(now):
            self._last_loss_time = None
            self._db.clear_state(LAST_LOSS_KEY)
        if self._last_trade_time and not self.pause_remaining(now):
            self._last_trade_time = None
            self._db.clear_state(LAST_TRADE_KEY)
