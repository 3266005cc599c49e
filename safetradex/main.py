"""Application wiring: logging, database, and the session objects the CLI uses."""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional
from zoneinfo import ZoneInfo

from safetradex.config.settings import AppConfig, TradingSettings
from safetradex.risk.gate import TradeEntryGate
from safetradex.risk.session_filter import SessionFilter, current_trading_date, to_zone
from safetradex.storage.database import Database

logger = logging.getLogger(__name__)


def setup_logging(config: AppConfig) -> None:
    """Configure logging to console and file."""
    log_level = getattr(logging, config.log_level.upper(), logging.INFO)

    # Ensure log directory exists
    log_path = Path(config.log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    # Root logger
    root = logging.getLogger()
    root.setLevel(log_level)

    # Console handler: warnings only, the CLI prints its own output
    console = logging.StreamHandler(sys.stderr)
    console.setLevel(max(log_level, logging.WARNING))
    console_fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    console.setFormatter(console_fmt)
    root.addHandler(console)

    # File handler
    file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_fmt = logging.Formatter(
        "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    file_handler.setFormatter(file_fmt)
    root.addHandler(file_handler)


class App:
    """Holds the config, the open database, and the session clock."""

    def __init__(self, config: AppConfig, now: Optional[datetime] = None):
        self.config = config
        self.tz = ZoneInfo(config.timezone)
        self._fixed_now = now
        self.session = SessionFilter(tz=self.tz)
        self.db = Database(db_path=config.db_path)

    def __enter__(self) -> "App":
        self.db.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.db.close()

    def now(self) -> datetime:
        return to_zone(self._fixed_now, self.tz)

    @property
    def today(self):
        return current_trading_date(self.now(), self.tz)

    def settings(self) -> Optional[TradingSettings]:
        return self.db.get_settings()

    def gate(self, settings: TradingSettings) -> TradeEntryGate:
        return TradeEntryGate(
            self.db, settings, self.config.gate, clock=self.now, tz=self.tz,
        )
