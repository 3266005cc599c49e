"""Tests for configuration loading and the trading-rules model."""

import sys
import os
import pytest
from datetime import date
from pydantic import ValidationError

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safetradex.config.settings import AppConfig, TradingSettings

DEFAULT_TOML = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))),
    "safetradex", "config", "default.toml",
)

ENV_VARS = ("SAFETRADEX_DB_PATH", "SAFETRADEX_LOG_LEVEL",
            "SAFETRADEX_LOG_FILE", "SAFETRADEX_TIMEZONE")


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestAppConfig:
    def test_defaults_without_file(self):
        config = AppConfig.load(None)
        assert config.db_path == "data/safetradex.db"
        assert config.timezone == "Asia/Kolkata"
        assert config.gate.cool_off_minutes == 15
        assert config.gate.post_trade_pause_minutes == 5
        assert config.maintenance_cutoff == date(2026, 1, 31)

    def test_bundled_toml_matches_defaults(self):
        assert AppConfig.load(DEFAULT_TOML) == AppConfig()

    def test_toml_values(self, tmp_path):
        path = tmp_path / "custom.toml"
        path.write_text(
            'db_path = "journal.db"\n'
            'maintenance_cutoff = 2026-03-01\n'
            '[gate]\ncool_off_minutes = 30\n'
        )
        config = AppConfig.load(str(path))
        assert config.db_path == "journal.db"
        assert config.maintenance_cutoff == date(2026, 3, 1)
        assert config.gate.cool_off_minutes == 30
        assert config.gate.post_trade_pause_minutes == 5

    def test_env_overrides_toml(self, tmp_path, monkeypatch):
        path = tmp_path / "custom.toml"
        path.write_text('db_path = "journal.db"\nlog_level = "INFO"\n')
        monkeypatch.setenv("SAFETRADEX_DB_PATH", "/tmp/other.db")
        monkeypatch.setenv("SAFETRADEX_LOG_LEVEL", "DEBUG")
        config = AppConfig.load(str(path))
        assert config.db_path == "/tmp/other.db"
        assert config.log_level == "DEBUG"

    def test_missing_file_falls_back_to_defaults(self, tmp_path):
        config = AppConfig.load(str(tmp_path / "missing.toml"))
        assert config == AppConfig()


class TestTradingSettings:
    def test_defaults(self):
        s = TradingSettings()
        assert s.max_daily_loss_percent == 2.0
        assert s.daily_profit_target_percent == 5.0
        assert s.max_trades_per_day == 10
        assert s.brokerage_per_order == 20.0
        assert s.id is None

    @pytest.mark.parametrize("field,value", [
        ("starting_capital", -1),
        ("max_daily_loss_percent", -0.5),
        ("max_trades_per_day", 0),
        ("brokerage_per_order", -20),
    ])
    def test_rejects_invalid(self, field, value):
        with pytest.raises(ValidationError):
            TradingSettings(**{field: value})
