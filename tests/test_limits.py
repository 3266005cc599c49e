"""Tests for daily risk limit evaluation."""

import sys
import os
import pytest
from datetime import date

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safetradex.config.settings import TradingSettings
from safetradex.records import CAPITAL_ADJUSTMENT, DEPOSIT, WITHDRAWAL, Trade
from safetradex.risk.limits import (
    MAX_LOSS_REASON, PROFIT_TARGET_REASON,
    evaluate_daily_limits, evaluate_session, opening_equity,
)

TODAY = date(2026, 3, 10)


def _trade(pnl, trade_date=TODAY, name="NIFTY 22000 CE", comments=None):
    return Trade(trade_name=name, pnl_amount=pnl, trade_date=trade_date,
                 comments=comments)


def _settings(**overrides):
    data = dict(starting_capital=100000, max_daily_loss_percent=2,
                daily_profit_target_percent=5, brokerage_per_order=20)
    data.update(overrides)
    return TradingSettings(**data)


class TestMaxLoss:
    def test_two_losses_past_limit_lock_session(self):
        snap = evaluate_daily_limits([_trade(-1500), _trade(-550)], _settings(), 100000)
        assert snap.gross_pnl == -2050
        assert snap.max_loss_amount == 2000
        assert snap.current_pnl_pct == pytest.approx(-2.05)
        assert snap.is_max_loss_reached
        assert snap.is_locked
        assert snap.lock_reason == MAX_LOSS_REASON

    def test_exact_limit_counts_as_reached(self):
        snap = evaluate_daily_limits([_trade(-2000)], _settings(), 100000)
        assert snap.is_max_loss_reached

    def test_just_inside_limit_stays_open(self):
        snap = evaluate_daily_limits([_trade(-1999.99)], _settings(), 100000)
        assert not snap.is_max_loss_reached
        assert not snap.is_locked
        assert snap.lock_reason is None


class TestProfitTarget:
    def test_exact_target_counts_as_reached(self):
        snap = evaluate_daily_limits([_trade(3000), _trade(2000)], _settings(), 100000)
        assert snap.is_profit_target_reached
        assert snap.lock_reason == PROFIT_TARGET_REASON

    def test_below_target(self):
        snap = evaluate_daily_limits([_trade(4999)], _settings(), 100000)
        assert not snap.is_profit_target_reached

    def test_max_loss_reason_wins_when_both_reached(self):
        # 0% limits make both boundaries true at zero P&L
        s = _settings(max_daily_loss_percent=0, daily_profit_target_percent=0)
        snap = evaluate_daily_limits([], s, 100000)
        assert snap.is_max_loss_reached and snap.is_profit_target_reached
        assert snap.lock_reason == MAX_LOSS_REASON


class TestEdgeCases:
    def test_no_trades(self):
        snap = evaluate_daily_limits([], _settings(), 100000)
        assert snap.trade_count == 0
        assert snap.gross_pnl == 0
        assert snap.current_pnl_pct == 0
        assert not snap.is_locked

    def test_zero_equity_reports_zero_percent(self):
        snap = evaluate_daily_limits([_trade(-100)], _settings(), 0)
        assert snap.current_pnl_pct == 0.0
        assert snap.max_loss_amount == 0
        assert snap.is_max_loss_reached

    def test_negative_equity_reports_zero_percent(self):
        snap = evaluate_daily_limits([_trade(500)], _settings(), -1000)
        assert snap.current_pnl_pct == 0.0

    def test_adjustments_ignored(self):
        trades = [
            _trade(50000, name=DEPOSIT, comments=CAPITAL_ADJUSTMENT),
            _trade(-1000, name=WITHDRAWAL),
            _trade(300),
        ]
        snap = evaluate_daily_limits(trades, _settings(), 100000)
        assert snap.trade_count == 1
        assert snap.gross_pnl == 300
        assert not snap.is_locked


class TestCharges:
    def test_net_pnl(self):
        snap = evaluate_daily_limits([_trade(-1500), _trade(-550)], _settings(), 100000)
        assert snap.brokerage_total == 80           # 2 trades x 20 x 2
        assert snap.estimated_taxes == pytest.approx(2.05)
        assert snap.net_pnl == pytest.approx(-2050 - 80 - 2.05)
        assert snap.brokerage_with_gst == pytest.approx(94.4)


class TestOpeningEquity:
    def test_only_prior_days_count(self):
        trades = [
            _trade(1000, trade_date=date(2026, 3, 9)),
            _trade(-400, trade_date=date(2026, 3, 6)),
            _trade(5000, trade_date=TODAY),
        ]
        assert opening_equity(100000, trades, TODAY) == 100600

    def test_adjustments_move_the_balance(self):
        trades = [
            _trade(25000, trade_date=date(2026, 3, 9), name=DEPOSIT,
                   comments=CAPITAL_ADJUSTMENT),
            _trade(-5000, trade_date=date(2026, 3, 9), name=WITHDRAWAL,
                   comments=CAPITAL_ADJUSTMENT),
        ]
        assert opening_equity(100000, trades, TODAY) == 120000

    def test_evaluate_session_splits_days(self):
        trades = [
            _trade(50000, trade_date=date(2026, 3, 9), name=DEPOSIT,
                   comments=CAPITAL_ADJUSTMENT),
            _trade(-2000, trade_date=TODAY),
        ]
        snap = evaluate_session(trades, _settings(), TODAY)
        assert snap.opening_equity == 150000
        assert snap.max_loss_amount == 3000
        assert snap.trade_count == 1
        assert not snap.is_max_loss_reached
