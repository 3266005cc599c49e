"""SQLite row store for trades, settings, daily targets, sentiment logs, and gate state.

Every write targets a single row (or one upsert batch) and commits
immediately, so each call is atomic on its own. There is no cross-call
transaction: a deposit followed by a settings change is two independent
writes, and concurrent edits resolve last-write-wins.

sqlite3.Error is not caught here. Call sites decide how to surface it.
"""

import logging
import json
import sqlite3
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Optional

from safetradex.config.settings import TradingSettings
from safetradex.records import DailyTarget, SentimentLog, Trade
from safetradex.storage.models import CREATE_TABLES, SETTINGS_COLUMNS

logger = logging.getLogger(__name__)

TRADE_SORT_FIELDS = ("trade_date", "pnl_amount", "created_at")
TRADE_UPDATE_FIELDS = (
    "trade_name", "pnl_amount", "comments",
    "setup_type", "market_state", "trade_date",
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # Stored timestamps must share one offset so text ordering is time ordering
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class Database:
    """Synchronous SQLite database using the standard sqlite3 module.

    The workload is a handful of rows per session, so a single
    connection with autocommit-per-call is plenty.
    """

    def __init__(self, db_path: str = "data/safetradex.db"):
        self.db_path = db_path
        self._conn: Optional[sqlite3.Connection] = None

    def connect(self) -> None:
        """Open database connection and create tables if needed."""
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = sqlite3.connect(self.db_path)
        self._conn.row_factory = sqlite3.Row
        self._conn.executescript(CREATE_TABLES)
        self._conn.commit()
        logger.info(f"Database connected: {self.db_path}")

    def close(self) -> None:
        """Close database connection."""
        if self._conn:
            self._conn.close()
            self._conn = None

    # --- Trades ---

    def insert_trade(self, trade: Trade) -> Trade:
        """Insert a trade row. Returns the trade with id and created_at filled in."""
        created_at = _as_utc(trade.created_at) if trade.created_at else _utcnow()
        cursor = self._conn.execute(
            """INSERT INTO daily_trades (trade_name, pnl_amount, comments,
               setup_type, market_state, trade_date, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                trade.trade_name, trade.pnl_amount, trade.comments,
                trade.setup_type, trade.market_state,
                trade.trade_date.isoformat(), created_at.isoformat(),
            ),
        )
        self._conn.commit()
        trade.id = cursor.lastrowid
        trade.created_at = created_at
        return trade

    def update_trade(self, trade_id: int, **fields) -> None:
        """Overwrite editable columns of a trade. Last write wins."""
        unknown = set(fields) - set(TRADE_UPDATE_FIELDS)
        if unknown:
            raise ValueError(f"Cannot update trade fields: {sorted(unknown)}")
        if not fields:
            return
        values = [
            v.isoformat() if isinstance(v, date) else v for v in fields.values()
        ]
        assignments = ", ".join(f"{k}=?" for k in fields)
        self._conn.execute(
            f"UPDATE daily_trades SET {assignments} WHERE id=?",
            (*values, trade_id),
        )
        self._conn.commit()

    def delete_trade(self, trade_id: int) -> None:
        self._conn.execute("DELETE FROM daily_trades WHERE id=?", (trade_id,))
        self._conn.commit()

    def get_trade(self, trade_id: int) -> Optional[Trade]:
        row = self._conn.execute(
            "SELECT * FROM daily_trades WHERE id=?", (trade_id,)
        ).fetchone()
        return Trade.from_row(dict(row)) if row else None

    def get_trades_for_date(self, trade_date: date) -> list[Trade]:
        """All trades of one session, newest first."""
        rows = self._conn.execute(
            """SELECT * FROM daily_trades WHERE trade_date=?
               ORDER BY created_at DESC, id DESC""",
            (trade_date.isoformat(),),
        ).fetchall()
        return [Trade.from_row(dict(r)) for r in rows]

    def get_all_trades(self) -> list[Trade]:
        """Every trade, oldest session first."""
        rows = self._conn.execute(
            "SELECT * FROM daily_trades ORDER BY trade_date, created_at, id"
        ).fetchall()
        return [Trade.from_row(dict(r)) for r in rows]

    def get_trade_history(self, sort_field: str = "trade_date",
                          ascending: bool = False,
                          trade_date: Optional[date] = None) -> list[Trade]:
        """Trades sorted by date or P&L, optionally limited to one date."""
        if sort_field not in TRADE_SORT_FIELDS:
            raise ValueError(f"Cannot sort trades by {sort_field!r}")
        direction = "ASC" if ascending else "DESC"
        query = "SELECT * FROM daily_trades"
        params: tuple = ()
        if trade_date is not None:
            query += " WHERE trade_date=?"
            params = (trade_date.isoformat(),)
        query += f" ORDER BY {sort_field} {direction}, id {direction}"
        rows = self._conn.execute(query, params).fetchall()
        return [Trade.from_row(dict(r)) for r in rows]

    def delete_trades_before(self, cutoff: date) -> int:
        """Physically delete trades dated before cutoff. Returns the row count."""
        cursor = self._conn.execute(
            "DELETE FROM daily_trades WHERE trade_date < ?",
            (cutoff.isoformat(),),
        )
        self._conn.commit()
        return cursor.rowcount

    # --- Settings (singleton) ---

    def get_settings(self) -> Optional[TradingSettings]:
        """The saved rules, or None before the first save."""
        row = self._conn.execute(
            "SELECT * FROM settings ORDER BY id LIMIT 1"
        ).fetchone()
        if not row:
            return None
        data = {k: row[k] for k in SETTINGS_COLUMNS if row[k] is not None}
        return TradingSettings(id=row["id"], **data)

    def save_settings(self, settings: TradingSettings) -> TradingSettings:
        """Insert the singleton on first save, update it afterwards."""
        existing = self._conn.execute(
            "SELECT id FROM settings ORDER BY id LIMIT 1"
        ).fetchone()
        values = [getattr(settings, k) for k in SETTINGS_COLUMNS]
        now = _utcnow().isoformat()

        if existing:
            assignments = ", ".join(f"{k}=?" for k in SETTINGS_COLUMNS)
            self._conn.execute(
                f"UPDATE settings SET {assignments}, updated_at=? WHERE id=?",
                (*values, now, existing["id"]),
            )
            settings_id = existing["id"]
        else:
            columns = ", ".join(SETTINGS_COLUMNS)
            placeholders = ", ".join("?" for _ in SETTINGS_COLUMNS)
            cursor = self._conn.execute(
                f"INSERT INTO settings ({columns}, updated_at) "
                f"VALUES ({placeholders}, ?)",
                (*values, now),
            )
            settings_id = cursor.lastrowid
        self._conn.commit()
        return settings.model_copy(update={"id": settings_id})

    # --- Daily targets ---

    def get_daily_targets(self, start: date, end: date) -> list[DailyTarget]:
        """Targets with start <= date <= end, ordered by date."""
        rows = self._conn.execute(
            """SELECT * FROM daily_targets WHERE date >= ? AND date <= ?
               ORDER BY date""",
            (start.isoformat(), end.isoformat()),
        ).fetchall()
        return [
            DailyTarget(
                id=r["id"],
                date=date.fromisoformat(r["date"]),
                target_percentage=r["target_percentage"],
                notes=r["notes"],
            )
            for r in rows
        ]

    def upsert_daily_target(self, target_date: date, target_percentage: float,
                            notes: Optional[str] = None) -> None:
        """Save or update the target for one date."""
        self.upsert_daily_targets([(target_date, target_percentage)], notes=notes)

    def upsert_daily_targets(self, targets: Iterable[tuple[date, float]],
                             notes: Optional[str] = None) -> None:
        """Save or update many (date, percentage) targets in one commit."""
        self._conn.executemany(
            """INSERT INTO daily_targets (date, target_percentage, notes)
               VALUES (?, ?, ?)
               ON CONFLICT(date) DO UPDATE SET
               target_percentage=excluded.target_percentage,
               notes=COALESCE(excluded.notes, daily_targets.notes)""",
            [(d.isoformat(), pct, notes) for d, pct in targets],
        )
        self._conn.commit()

    # --- Sentiment logs ---

    def insert_sentiment_log(self, log: SentimentLog) -> int:
        """Append one sentiment evaluation. Returns the log ID."""
        created_at = log.created_at or _utcnow()
        cursor = self._conn.execute(
            """INSERT INTO sentiment_logs (cpr_type, vix_range, oi_build_up,
               pcr_value, global_cues, support_level, resistance_level,
               final_verdict, conviction_score, warnings, created_at)
               VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
            (
                log.cpr_type, log.vix_range, log.oi_build_up,
                log.pcr_value, log.global_cues,
                log.support_level or None, log.resistance_level or None,
                log.final_verdict, log.conviction_score,
                json.dumps(log.warnings), created_at.isoformat(),
            ),
        )
        self._conn.commit()
        return cursor.lastrowid

    def count_sentiment_logs(self) -> int:
        row = self._conn.execute("SELECT COUNT(*) AS n FROM sentiment_logs").fetchone()
        return row["n"]

    # --- Gate state ---

    def save_state(self, key: str, value: Any) -> None:
        """Save a key-value pair that must survive a restart."""
        now = _utcnow().isoformat()
        self._conn.execute(
            """INSERT INTO gate_state (key, value, updated_at)
               VALUES (?, ?, ?)
               ON CONFLICT(key) DO UPDATE SET value=?, updated_at=?""",
            (key, json.dumps(value), now, json.dumps(value), now),
        )
        self._conn.commit()

    def load_state(self, key: str, default=None) -> Any:
        """Load a state value by key."""
        row = self._conn.execute(
            "SELECT value FROM gate_state WHERE key=?",
            (key,),
        ).fetchone()
        if row:
            try:
                return json.loads(row["value"])
            except (json.JSONDecodeError, TypeError):
                return row["value"]
        return default

    def clear_state(self, key: str) -> None:
        """Remove a state key."""
        self._conn.execute("DELETE FROM gate_state WHERE key=?", (key,))
        self._conn.commit()
