"""Application configuration and the trading-rules record, using Pydantic.

AppConfig loads from:
1. Environment variables (highest priority)
2. TOML config file (safetradex/config/default.toml or custom path)
3. Pydantic defaults (lowest priority)

TradingSettings is the user's singleton rule set stored in the database
(capital, loss limit, profit target, ...). It is validated here and
persisted by storage.database.
"""

import os
import tomllib
from datetime import date
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field


class GateConfig(BaseModel):
    """Timers enforced by the trade-entry gate."""
    cool_off_minutes: float = 15.0          # Block entries after a losing trade
    post_trade_pause_minutes: float = 5.0   # Block entries after any trade


class TradingSettings(BaseModel):
    """Singleton discipline rules. One row exists once the user saves."""
    starting_capital: float = Field(default=0.0, ge=0)
    max_daily_loss_percent: float = Field(default=2.0, ge=0)
    daily_profit_target_percent: float = Field(default=5.0, ge=0)
    max_trades_per_day: int = Field(default=10, ge=1)
    brokerage_per_order: float = Field(default=20.0, ge=0)
    max_lot_size: int = Field(default=1, ge=0)
    lot_value: float = Field(default=0.0, ge=0)
    current_streak: int = Field(default=0, ge=0)

    # Projection goals
    monthly_target_percent: float = Field(default=20.0, ge=0)
    yearly_target_percent: float = Field(default=200.0, ge=0)
    yearly_target_amount: float = Field(default=1_000_000.0, ge=0)

    id: Optional[int] = None


class AppConfig(BaseModel):
    """Top-level application configuration."""

    # Storage
    db_path: str = "data/safetradex.db"

    # Logging
    log_level: str = "INFO"
    log_file: str = "data/safetradex.log"

    # IANA zone used to decide the trading date
    timezone: str = "Asia/Kolkata"

    gate: GateConfig = Field(default_factory=GateConfig)

    # Trades dated before this are removed by `clear-old-trades`
    maintenance_cutoff: date = date(2026, 1, 31)

    @classmethod
    def load(cls, config_path: Optional[str] = None) -> "AppConfig":
        """Load config from TOML file + environment variables.

        Environment variables override TOML values:
            SAFETRADEX_DB_PATH, SAFETRADEX_LOG_LEVEL,
            SAFETRADEX_LOG_FILE, SAFETRADEX_TIMEZONE
        """
        data = {}

        if config_path and Path(config_path).exists():
            data = _load_toml(config_path)

        env_overrides = {
            "db_path": os.getenv("SAFETRADEX_DB_PATH"),
            "log_level": os.getenv("SAFETRADEX_LOG_LEVEL"),
            "log_file": os.getenv("SAFETRADEX_LOG_FILE"),
            "timezone": os.getenv("SAFETRADEX_TIMEZONE"),
        }

        for key, val in env_overrides.items():
            if val is not None:
                data[key] = val

        return cls(**data)


def _load_toml(path: str) -> dict:
    with open(path, "rb") as f:
        return tomllib.load(f)
