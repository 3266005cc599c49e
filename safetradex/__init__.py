"""Safe TradeX - Trading Discipline Journal.

Usage:
    from safetradex.risk.gate import TradeEntryGate
    from safetradex.risk.limits import evaluate_daily_limits
    from safetradex.projections.equity import EquityProjection
    from safetradex.sentiment.scoring import score_sentiment
"""

from safetradex.analytics.performance import TradeStats
from safetradex.config.settings import AppConfig, GateConfig, TradingSettings
from safetradex.projections.equity import EquityProjection
from safetradex.records import Trade
from safetradex.risk.gate import TradeEntryGate
from safetradex.risk.limits import DailyRiskSnapshot, evaluate_daily_limits
from safetradex.sentiment.scoring import SentimentInputs, score_sentiment
from safetradex.storage.database import Database

__all__ = [
    "AppConfig",
    "DailyRiskSnapshot",
    "Database",
    "EquityProjection",
    "GateConfig",
    "SentimentInputs",
    "Trade",
    "TradeEntryGate",
    "TradeStats",
    "TradingSettings",
    "evaluate_daily_limits",
    "score_sentiment",
]
