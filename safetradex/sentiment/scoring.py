"""Pre-market sentiment heuristic.

Maps five market inputs to a verdict and a 0-100 conviction score:

    CPR width, India VIX bucket, OI build-up, put/call ratio, global cues

The score starts at 50. The verdict checks run in a fixed order (bullish,
bearish, sideways, otherwise uncertain), then additive modifiers and
warning penalties are applied and the result is clamped to [0, 100].
The constants are a configured rule of thumb; none are fitted to data.
Trade history is never consulted.
"""

import logging
import sqlite3
from dataclasses import dataclass, field
from typing import Optional

from safetradex.records import SentimentLog
from safetradex.storage.database import Database

logger = logging.getLogger(__name__)

CPR_TYPES = ("narrow", "wide")
VIX_RANGES = ("ultra_low", "stable", "elevated", "panic")
OI_BUILD_UPS = ("long_buildup", "short_buildup", "long_unwinding", "short_covering")
GLOBAL_CUES = ("positive", "neutral", "negative")
VERDICTS = ("bullish", "bearish", "sideways", "uncertain")

VIX_LABELS = {
    "ultra_low": "9.0 - 10.5 (Ultra-Low)",
    "stable": "10.5 - 13.0 (Stable)",
    "elevated": "13.0 - 18.0 (Elevated)",
    "panic": "18.0+ (Panic)",
}

OI_LABELS = {
    "long_buildup": "Long Build-up",
    "short_buildup": "Short Build-up",
    "long_unwinding": "Long Unwinding",
    "short_covering": "Short Covering",
}

NEUTRAL_SCORE = 50
VERDICT_BONUS = 30

VIX_ADJUSTMENTS = {
    "ultra_low": -15,
    "stable": 5,
    "elevated": 10,
    "panic": -10,
}

BALANCED_PCR = (0.8, 1.2)
OVERBOUGHT_PCR = 1.3
OVERSOLD_PCR = 0.7

HIGH_CONVICTION = "High Conviction"
MEDIUM_CONVICTION = "Medium Conviction"
LOW_CONVICTION = "Low/Avoid"

OVERBOUGHT_WARNING = "OVERBOUGHT: High risk of reversal/profit booking."
OVERSOLD_WARNING = "OVERSOLD: High risk of short covering rally."
LOW_VIX_WARNING = "LOW VOLATILITY: Expect slow moves and heavy theta decay."
HIGH_VIX_WARNING = "HIGH VIX: Extreme volatility, consider reducing position size."
BULL_DIVERGENCE_WARNING = (
    "DIVERGENCE: Domestic strength vs Global weakness. Exercise caution."
)
BEAR_DIVERGENCE_WARNING = (
    "DIVERGENCE: Domestic weakness vs Global strength. Watch for reversal."
)


@dataclass(frozen=True)
class SentimentInputs:
    """Pre-market observations entered by the trader."""
    cpr_type: str = "narrow"
    vix_range: str = "stable"
    oi_build_up: str = "long_buildup"
    pcr_value: float = 1.0
    global_cues: str = "neutral"
    support_level: str = ""         # Display only
    resistance_level: str = ""      # Display only

    def __post_init__(self):
        _check_choice("cpr_type", self.cpr_type, CPR_TYPES)
        _check_choice("vix_range", self.vix_range, VIX_RANGES)
        _check_choice("oi_build_up", self.oi_build_up, OI_BUILD_UPS)
        _check_choice("global_cues", self.global_cues, GLOBAL_CUES)


@dataclass(frozen=True)
class SentimentResult:
    verdict: str
    conviction_score: int
    verdict_label: str
    conviction_label: str
    warnings: list[str] = field(default_factory=list)


def _check_choice(name: str, value: str, allowed: tuple) -> None:
    if value not in allowed:
        raise ValueError(f"{name} must be one of {allowed}, got {value!r}")


def conviction_label(score: float) -> str:
    if score >= 70:
        return HIGH_CONVICTION
    if score >= 45:
        return MEDIUM_CONVICTION
    return LOW_CONVICTION


def score_sentiment(inputs: SentimentInputs) -> SentimentResult:
    """Evaluate the heuristic for one set of inputs."""
    cpr = inputs.cpr_type
    vix = inputs.vix_range
    oi = inputs.oi_build_up
    pcr = inputs.pcr_value
    cues = inputs.global_cues

    warnings: list[str] = []
    score = NEUTRAL_SCORE

    # Verdict, first match wins
    if cpr == "narrow" and oi == "long_buildup" and cues == "positive":
        verdict = "bullish"
        verdict_label = "BULLISH - Strong upside momentum expected"
        score += VERDICT_BONUS
    elif cpr == "narrow" and oi == "short_buildup" and cues == "negative":
        verdict = "bearish"
        verdict_label = "BEARISH - Strong downside momentum expected"
        score -= VERDICT_BONUS
    elif cpr == "wide" or vix == "ultra_low" or cues == "neutral":
        verdict = "sideways"
        verdict_label = "SIDEWAYS - Range-bound action expected"
        score = NEUTRAL_SCORE
    else:
        verdict = "uncertain"
        verdict_label = "Uncertain"

    # Conviction modifiers
    if cpr == "narrow":
        score += 10

    score += VIX_ADJUSTMENTS[vix]

    if verdict == "bullish" and oi in ("long_buildup", "short_covering"):
        score += 15
    elif verdict == "bearish" and oi in ("short_buildup", "long_unwinding"):
        score += 15

    if BALANCED_PCR[0] <= pcr <= BALANCED_PCR[1]:
        score += 5

    if cues == "positive":
        score += 10
    elif cues == "negative":
        score -= 10

    # Warnings
    if pcr > OVERBOUGHT_PCR:
        warnings.append(OVERBOUGHT_WARNING)
        score -= 15
    if pcr < OVERSOLD_PCR:
        warnings.append(OVERSOLD_WARNING)
        score -= 10

    if vix == "ultra_low":
        warnings.append(LOW_VIX_WARNING)
    if vix == "panic":
        warnings.append(HIGH_VIX_WARNING)

    if oi == "long_buildup" and cues == "negative":
        warnings.append(BULL_DIVERGENCE_WARNING)
        score -= 10
    if oi == "short_buildup" and cues == "positive":
        warnings.append(BEAR_DIVERGENCE_WARNING)
        score -= 10

    score = max(0, min(100, score))

    return SentimentResult(
        verdict=verdict,
        conviction_score=score,
        verdict_label=verdict_label,
        conviction_label=conviction_label(score),
        warnings=warnings,
    )


def log_sentiment(db: Database, inputs: SentimentInputs,
                  result: SentimentResult) -> Optional[int]:
    """Archive an evaluation. Returns the log ID, or None if the write failed."""
    try:
        log_id = db.insert_sentiment_log(SentimentLog(
            cpr_type=inputs.cpr_type,
            vix_range=inputs.vix_range,
            oi_build_up=inputs.oi_build_up,
            pcr_value=inputs.pcr_value,
            global_cues=inputs.global_cues,
            support_level=inputs.support_level,
            resistance_level=inputs.resistance_level,
            final_verdict=result.verdict,
            conviction_score=result.conviction_score,
            warnings=list(result.warnings),
        ))
    except sqlite3.Error as e:
        logger.error(f"Error logging sentiment: {e}")
        return None
    logger.info(
        f"[Sentiment] Logged #{log_id}: {result.verdict} "
        f"({result.conviction_score}, {result.conviction_label})"
    )
    return log_id
