"""Tests for the compounding equity projection and target editing."""

import sys
import os
import pytest
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safetradex.capital import deposit
from safetradex.config.settings import TradingSettings
from safetradex.projections.equity import (
    DEFAULT_TARGET_PERCENT, EquityProjection, apply_bulk_target,
    bulk_target_updates, load_projection, month_days, parse_percent,
    set_day_target, suggested_bulk_percent,
)
from safetradex.records import DailyTarget, Trade
from safetradex.risk.session_filter import SessionFilter
from safetradex.storage.database import Database

# No holidays, so June 2026 has 22 weekday sessions starting Monday the 1st
NO_HOLIDAYS = SessionFilter(holidays=set(), special_days=set())


def _trade(pnl, trade_date):
    return Trade(trade_name="NIFTY", pnl_amount=pnl, trade_date=trade_date)


def _projection(trades=(), targets=(), capital=100000):
    return EquityProjection(capital, list(trades), list(targets),
                            session_filter=NO_HOLIDAYS)


JUNE_TRADES = [_trade(1000, date(2026, 6, 1)), _trade(-500, date(2026, 6, 3))]


class TestPastMonth:
    def setup_method(self):
        self.proj = _projection(JUNE_TRADES)
        self.rows = self.proj.month_rows(2026, 6, today=date(2026, 7, 15))

    def test_one_row_per_trading_day(self):
        assert len(self.rows) == 22
        assert self.rows[0].date == date(2026, 6, 1)
        assert all(r.date.weekday() < 5 for r in self.rows)

    def test_day_with_trade(self):
        first = self.rows[0]
        assert first.calc_start_balance == 100000
        assert first.projected_gain == pytest.approx(1000)
        assert first.actual_pnl == 1000
        assert first.actual_end_balance == 101000
        assert first.actual_percent == pytest.approx(1.0)
        assert first.variance == pytest.approx(0)

    def test_missed_past_day_is_flat(self):
        missed = self.rows[1]
        assert not missed.has_actual
        assert missed.calc_start_balance == 101000
        assert self.rows[2].calc_start_balance == 101000

    def test_actual_end_is_start_plus_pnl(self):
        for r in self.rows:
            if r.has_actual:
                assert r.actual_end_balance == r.calc_start_balance + r.actual_pnl

    def test_next_day_follows_actual(self):
        assert self.rows[2].actual_end_balance == 100500
        assert self.rows[3].calc_start_balance == 100500

    def test_summary(self):
        summary = self.proj.month_summary(2026, 6, date(2026, 7, 15), rows=self.rows)
        assert summary.month_start_balance == 100000
        assert summary.month_end_reality == 100500
        assert summary.month_actual_gain == 500
        assert not summary.is_future_month


class TestCurrentMonth:
    def test_today_uses_strict_morning_balance(self):
        proj = _projection(JUNE_TRADES)
        rows = proj.month_rows(2026, 6, today=date(2026, 6, 3))
        today_row = next(r for r in rows if r.is_today)
        assert today_row.date == date(2026, 6, 3)
        assert today_row.calc_start_balance == 101000
        assert today_row.start_balance == 101000

    def test_future_rows_show_real_balance_but_compound(self):
        proj = _projection(JUNE_TRADES)
        rows = proj.month_rows(2026, 6, today=date(2026, 6, 3))
        tomorrow, after = rows[3], rows[4]
        assert tomorrow.is_future and after.is_future
        assert tomorrow.start_balance == 100500
        assert tomorrow.calc_start_balance == 100500
        assert after.start_balance == 100500
        assert after.calc_start_balance == pytest.approx(100500 * 1.01)
        assert after.projected_end_balance == pytest.approx(100500 * 1.01 * 1.01)

    def test_day_override_target(self):
        proj = _projection(targets=[DailyTarget(date(2026, 6, 1), 2.0)])
        rows = proj.month_rows(2026, 6, today=date(2026, 5, 29))
        assert rows[0].target_percent == 2.0
        assert rows[1].target_percent == DEFAULT_TARGET_PERCENT

    def test_idempotent(self):
        proj = _projection(JUNE_TRADES)
        first = proj.month_rows(2026, 6, today=date(2026, 6, 3))
        second = proj.month_rows(2026, 6, today=date(2026, 6, 3))
        assert first == second

    def test_zero_start_reports_zero_percent(self):
        proj = _projection([_trade(100, date(2026, 6, 1))], capital=0)
        row = proj.month_rows(2026, 6, today=date(2026, 6, 30))[0]
        assert row.actual_percent == 0.0
        assert row.actual_end_balance == 100


class TestFutureMonth:
    def test_gap_days_compound(self):
        # Today is Friday 26 June; Mon 29 and Tue 30 June fill the gap to July
        proj = _projection(JUNE_TRADES)
        today = date(2026, 6, 26)
        assert proj.opening_balance(2026, 7, today) == pytest.approx(100500 * 1.01 ** 2)

        rows = proj.month_rows(2026, 7, today)
        assert rows[0].date == date(2026, 7, 1)
        assert rows[0].calc_start_balance == pytest.approx(100500 * 1.01 ** 2)
        assert rows[0].start_balance == 100500
        assert all(r.is_future and not r.has_actual for r in rows)

    def test_summary_flags_future(self):
        proj = _projection(JUNE_TRADES)
        summary = proj.month_summary(2026, 7, date(2026, 6, 26))
        assert summary.is_future_month
        assert summary.month_actual_gain == 0


class TestTargetEditing:
    def setup_method(self):
        self.db = Database(db_path=":memory:")
        self.db.connect()

    def teardown_method(self):
        self.db.close()

    def test_parse_percent(self):
        assert parse_percent("1.5") == 1.5
        assert parse_percent(2) == 2.0
        assert parse_percent("-0.5") == -0.5

    @pytest.mark.parametrize("bad", ["", "abc", None, "nan", "inf"])
    def test_parse_percent_rejects(self, bad):
        with pytest.raises(ValueError):
            parse_percent(bad)

    def test_set_day_target_upserts(self):
        set_day_target(self.db, date(2026, 6, 2), "1.2")
        set_day_target(self.db, date(2026, 6, 2), "0.8")
        targets = self.db.get_daily_targets(date(2026, 6, 1), date(2026, 6, 30))
        assert len(targets) == 1
        assert targets[0].target_percentage == 0.8

    def test_invalid_target_not_written(self):
        with pytest.raises(ValueError):
            set_day_target(self.db, date(2026, 6, 2), "abc")
        assert self.db.get_daily_targets(date(2026, 6, 1), date(2026, 6, 30)) == []

    def test_bulk_covers_every_calendar_day(self):
        assert len(bulk_target_updates(2026, 2, 1.5)) == 28
        count = apply_bulk_target(self.db, 2026, 2, "1.5")
        assert count == 28
        targets = self.db.get_daily_targets(date(2026, 2, 1), date(2026, 2, 28))
        assert [t.date for t in targets] == month_days(2026, 2)
        assert all(t.target_percentage == 1.5 for t in targets)

    def test_bulk_overwrites(self):
        apply_bulk_target(self.db, 2026, 2, 1.5)
        apply_bulk_target(self.db, 2026, 2, 2.0)
        targets = self.db.get_daily_targets(date(2026, 2, 1), date(2026, 2, 28))
        assert len(targets) == 28
        assert {t.target_percentage for t in targets} == {2.0}

    def test_suggested_bulk_percent(self):
        settings = TradingSettings(monthly_target_percent=30)
        june = [DailyTarget(date(2026, 6, 10), 0.7), DailyTarget(date(2026, 6, 3), 1.3)]
        assert suggested_bulk_percent(june, 2026, 6, settings) == 1.3
        assert suggested_bulk_percent(june, 2026, 7, settings) == 1.5
        assert suggested_bulk_percent([], 2026, 7) == DEFAULT_TARGET_PERCENT

    def test_load_projection_includes_deposits(self):
        settings = TradingSettings(starting_capital=100000)
        deposit(self.db, 50000, date(2026, 6, 2))
        self.db.insert_trade(_trade(1000, date(2026, 6, 1)))
        proj = load_projection(self.db, settings, 2026, 6, date(2026, 6, 5))
        assert proj.balance_through(date(2026, 6, 5)) == 151000

    def test_load_projection_sees_gap_targets(self):
        settings = TradingSettings(starting_capital=100000)
        set_day_target(self.db, date(2026, 6, 29), 0)
        set_day_target(self.db, date(2026, 6, 30), 0)
        proj = load_projection(self.db, settings, 2026, 7, date(2026, 6, 26))
        assert proj.target_for(date(2026, 6, 29)) == 0
        assert proj.opening_balance(2026, 7, date(2026, 6, 26)) == 100000
