"""Tests for the pre-market sentiment heuristic."""

import sys
import os
import sqlite3
import pytest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from safetradex.sentiment.scoring import (
    BULL_DIVERGENCE_WARNING, HIGH_CONVICTION, HIGH_VIX_WARNING, LOW_CONVICTION,
    LOW_VIX_WARNING, MEDIUM_CONVICTION, OVERBOUGHT_WARNING, OVERSOLD_WARNING,
    SentimentInputs, conviction_label, log_sentiment, score_sentiment,
)
from safetradex.storage.database import Database


class TestVerdicts:
    def test_bullish_alignment_clamps_to_100(self):
        # 50 + 30 + 10 + 5 + 15 + 5 + 10 = 125
        result = score_sentiment(SentimentInputs(
            cpr_type="narrow", vix_range="stable", oi_build_up="long_buildup",
            pcr_value=1.0, global_cues="positive",
        ))
        assert result.verdict == "bullish"
        assert result.conviction_score == 100
        assert result.conviction_label == HIGH_CONVICTION
        assert result.warnings == []

    def test_bearish_with_panic_and_high_pcr(self):
        # 50 - 30 + 10 - 10 + 15 - 10 - 15 = 10
        result = score_sentiment(SentimentInputs(
            cpr_type="narrow", vix_range="panic", oi_build_up="short_buildup",
            pcr_value=5.0, global_cues="negative",
        ))
        assert result.verdict == "bearish"
        assert result.conviction_score == 10
        assert result.conviction_label == LOW_CONVICTION
        assert result.warnings == [OVERBOUGHT_WARNING, HIGH_VIX_WARNING]

    def test_sideways_resets_to_neutral(self):
        # 50 + 10 + 5 + 5 = 70
        result = score_sentiment(SentimentInputs(
            cpr_type="narrow", vix_range="stable", oi_build_up="long_buildup",
            pcr_value=1.0, global_cues="neutral",
        ))
        assert result.verdict == "sideways"
        assert result.conviction_score == 70

    def test_wide_cpr_is_sideways(self):
        result = score_sentiment(SentimentInputs(cpr_type="wide", global_cues="positive"))
        assert result.verdict == "sideways"

    def test_uncertain(self):
        # 50 + 10 + 10 + 5 + 10 = 85
        result = score_sentiment(SentimentInputs(
            cpr_type="narrow", vix_range="elevated", oi_build_up="long_unwinding",
            pcr_value=1.0, global_cues="positive",
        ))
        assert result.verdict == "uncertain"
        assert result.verdict_label == "Uncertain"
        assert result.conviction_score == 85


class TestBoundsAndWarnings:
    def test_stacked_penalties_floor_at_zero(self):
        # 50 - 15 - 10 - 15 - 10 = 0
        result = score_sentiment(SentimentInputs(
            cpr_type="wide", vix_range="ultra_low", oi_build_up="long_buildup",
            pcr_value=5.0, global_cues="negative",
        ))
        assert result.conviction_score == 0
        assert result.conviction_label == LOW_CONVICTION
        assert result.warnings == [
            OVERBOUGHT_WARNING, LOW_VIX_WARNING, BULL_DIVERGENCE_WARNING,
        ]

    def test_oversold_pcr(self):
        result = score_sentiment(SentimentInputs(pcr_value=0.5))
        assert OVERSOLD_WARNING in result.warnings

    def test_score_always_in_range(self):
        for cpr in ("narrow", "wide"):
            for vix in ("ultra_low", "stable", "elevated", "panic"):
                for oi in ("long_buildup", "short_buildup",
                           "long_unwinding", "short_covering"):
                    for cues in ("positive", "neutral", "negative"):
                        for pcr in (0.1, 1.0, 1.25, 9.0):
                            score = score_sentiment(SentimentInputs(
                                cpr, vix, oi, pcr, cues,
                            )).conviction_score
                            assert 0 <= score <= 100

    def test_conviction_labels(self):
        assert conviction_label(70) == HIGH_CONVICTION
        assert conviction_label(69) == MEDIUM_CONVICTION
        assert conviction_label(45) == MEDIUM_CONVICTION
        assert conviction_label(44) == LOW_CONVICTION

    @pytest.mark.parametrize("field,value", [
        ("cpr_type", "medium"),
        ("vix_range", "calm"),
        ("oi_build_up", "none"),
        ("global_cues", "mixed"),
    ])
    def test_invalid_input_rejected(self, field, value):
        with pytest.raises(ValueError):
            SentimentInputs(**{field: value})


class TestLogging:
    def setup_method(self):
        self.db = Database(db_path=":memory:")
        self.db.connect()

    def teardown_method(self):
        self.db.close()

    def test_log_saved(self):
        inputs = SentimentInputs(pcr_value=1.5, support_level="22000")
        log_id = log_sentiment(self.db, inputs, score_sentiment(inputs))
        assert log_id is not None
        assert self.db.count_sentiment_logs() == 1

    def test_store_failure_returns_none(self):
        inputs = SentimentInputs()
        with patch.object(self.db, "insert_sentiment_log",
                          side_effect=sqlite3.OperationalError("locked")):
            assert log_sentiment(self.db, inputs, score_sentiment(inputs)) is None
        assert self.db.count_sentiment_logs() == 0
